# jet/description/modrinth.py
from __future__ import annotations
import logging
from pathlib import PurePosixPath
from typing import Any, Awaitable, Callable
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from jet.config.settings import JetSettings
from jet.core.errors import DescriptionError
from jet.http.client import HTTPError, request
from .model import BuildDescription, DirectoryDecl, ModrinthDecl, RemoteDecl

logger = logging.getLogger(__name__)

__all__ = ["JsonGetter", "ModrinthHashes", "ModrinthVersionFile", "ModrinthVersion", "remoteDeclsFor", "resolveModrinth"]

# (url) -> parsed JSON body
JsonGetter = Callable[[str], Awaitable[Any]]



class ModrinthHashes(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sha512: str
    sha1: str | None = None



class ModrinthVersionFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    hashes: ModrinthHashes
    url: str
    filename: str
    primary: bool = False
    size: int | None = None



class ModrinthVersion(BaseModel):
    """The subset of GET /project/{id}/version/{id} that jet relies on."""
    model_config = ConfigDict(extra="ignore")

    id: str
    files: list[ModrinthVersionFile] = Field(default_factory=list)



def remoteDeclsFor(decl: ModrinthDecl, version: ModrinthVersion) -> list[RemoteDecl]:
    """
    Primary file lands as "<project>-<version>.<ext>"; any other file keeps its
    upstream filename so several files of one version never collide.
    """
    out: list[RemoteDecl] = []
    for file in version.files:
        if file.primary or len(version.files) == 1:
            suffix = PurePosixPath(file.filename).suffix
            name = f"{decl.project}-{decl.version}{suffix}"
        else:
            name = file.filename
        out.append(RemoteDecl(name=name, url=file.url, sha512=file.hashes.sha512, size=file.size))
    return out



def _httpJsonGetter(settings: JetSettings) -> JsonGetter:
    headers = {"User-Agent": settings.fetch.userAgent, "Accept": "application/json"}

    async def getJson(url: str) -> Any:
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
        if resp["status"] != 200 or "json" not in resp:
            raise DescriptionError(f"GET {url} returned HTTP {resp['status']}")
        return resp["json"]

    return getJson



async def _resolveContents(contents, apiBase: str, getJson: JsonGetter) -> tuple:
    out = []
    for decl in contents:
        if isinstance(decl, DirectoryDecl):
            inner = await _resolveContents(decl.contents, apiBase, getJson)
            out.append(decl.model_copy(update={"contents": inner}))
        elif isinstance(decl, ModrinthDecl):
            url = f"{apiBase.rstrip('/')}/project/{quote(decl.project, safe='')}/version/{quote(decl.version, safe='')}"
            body = await getJson(url)
            try:
                version = ModrinthVersion.model_validate(body)
            except ValidationError as err:
                raise DescriptionError(f"Unexpected Modrinth response for {decl.project} {decl.version}: {err}") from err
            remotes = remoteDeclsFor(decl, version)
            logger.info("Resolved modrinth %s %s into %d file(s)", decl.project, decl.version, len(remotes))
            out.extend(remotes)
        else:
            out.append(decl)
    return tuple(out)



async def resolveModrinth(
    description: BuildDescription,
    settings: JetSettings,
    *,
    getJson: JsonGetter | None = None,
) -> BuildDescription:
    """
    Returns a copy of `description` where every ModrinthDecl is replaced by the
    RemoteDecls of its version files. Happens at pack time so the compiled manifest
    pins exact URLs and hashes.
    """
    getter = getJson or _httpJsonGetter(settings)
    contents = await _resolveContents(description.contents, settings.modrinth.apiBase, getter)
    return description.model_copy(update={"contents": contents})
