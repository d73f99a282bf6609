# jet/description/fabric.py
from __future__ import annotations
import logging
import posixpath
from typing import Awaitable, Callable
from urllib.parse import quote

from jet.config.settings import JetSettings
from jet.core.errors import DescriptionError
from jet.core.hashing import sha512Hex
from jet.http.client import HTTPError, request
from .model import BuildDescription, DirectoryDecl, FabricServerDecl, RemoteDecl, RunScriptDecl

logger = logging.getLogger(__name__)

__all__ = ["BytesGetter", "fabricServerUrl", "findFabricServer", "resolveFabricServer"]

# (url) -> response body
BytesGetter = Callable[[str], Awaitable[bytes]]



def fabricServerUrl(decl: FabricServerDecl, metaBase: str) -> str:
    parts = "/".join(quote(part, safe="") for part in (decl.minecraft, decl.loader, decl.installer))
    return f"{metaBase.rstrip('/')}/versions/loader/{parts}/server/jar"



def findFabricServer(contents, prefix: str = "") -> str | None:
    """Archive path of the first fabric-server declaration, in declaration order."""
    for decl in contents:
        if isinstance(decl, FabricServerDecl):
            return posixpath.join(prefix, decl.jarName) if prefix else decl.jarName
        if isinstance(decl, DirectoryDecl):
            found = findFabricServer(decl.contents, posixpath.join(prefix, decl.name) if prefix else decl.name)
            if found is not None:
                return found
    return None



def _httpBytesGetter(settings: JetSettings) -> BytesGetter:
    headers = {"User-Agent": settings.fetch.userAgent}

    async def getBytes(url: str) -> bytes:
        try:
            resp = await request(
                "GET",
                url,
                headers=headers,
                timeoutMs=settings.fetch.timeoutMs,
                retries=max(0, settings.fetch.attempts - 1),
                backoffBaseMs=settings.fetch.backoffBaseMs,
                backoffMaxMs=settings.fetch.backoffMaxMs,
            )
        except HTTPError as err:
            raise DescriptionError(f"GET {url} failed: {err}") from err
        except Exception as err:
            raise DescriptionError(f"GET {url} failed: {type(err).__name__}: {err}") from err
        if resp["status"] != 200:
            raise DescriptionError(f"GET {url} returned HTTP {resp['status']}")
        return resp["content"]

    return getBytes



async def _resolveContents(contents, prefix: str, serverJar: str | None, metaBase: str, getBytes: BytesGetter) -> tuple:
    out = []
    for decl in contents:
        if isinstance(decl, DirectoryDecl):
            inner = await _resolveContents(
                decl.contents, posixpath.join(prefix, decl.name) if prefix else decl.name, serverJar, metaBase, getBytes,
            )
            out.append(decl.model_copy(update={"contents": inner}))
        elif isinstance(decl, FabricServerDecl):
            url = fabricServerUrl(decl, metaBase)
            data = await getBytes(url)
            if not data:
                raise DescriptionError(f"Fabric meta returned an empty jar for {decl.jarName}")
            logger.info("Pinned %s (%d bytes)", decl.jarName, len(data))
            out.append(RemoteDecl(name=decl.jarName, url=url, sha512=sha512Hex(data), size=len(data)))
        elif isinstance(decl, RunScriptDecl) and serverJar and "serverJar" not in decl.options.model_fields_set:
            # Scripts cd into their own directory before launching
            relJar = posixpath.relpath(serverJar, prefix or ".")
            options = decl.options.model_copy(update={"serverJar": relJar})
            out.append(decl.model_copy(update={"options": options}))
        else:
            out.append(decl)
    return tuple(out)



async def resolveFabricServer(
    description: BuildDescription,
    settings: JetSettings,
    *,
    getBytes: BytesGetter | None = None,
) -> BuildDescription:
    """
    Replaces every FabricServerDecl by a RemoteDecl pinned to the SHA-512 of the
    jar Fabric meta serves today; the meta API publishes no hashes of its own.

    Run scripts that do not name a server jar explicitly launch the first
    fabric server jar of the description.
    """
    serverJar = findFabricServer(description.contents)
    if serverJar is None:
        return description
    getter = getBytes or _httpBytesGetter(settings)
    contents = await _resolveContents(description.contents, "", serverJar, settings.fabric.metaBase, getter)
    return description.model_copy(update={"contents": contents})
