# jet/manifest/codec.py
"""
Binary encoding of a Manifest (the @manifest archive entry).

Layout (little-endian):

    magic "JETM" | u16 formatVersion
    project:  str name | str description | str version | u16 n | n * str author
    inline:   u32 n | n * (str path | u64 size | 64s sha512)
    remote:   u32 n | n * (str path | str url | 64s sha512 | u8 hasSize | u64 size)
    launch:   u32 n | n * (str path | u8 platform | str javaMem | str javaGcOpts
                          | u16 n | n * str extraOpt | str serverJar)
    u32 crc32 of every preceding byte

    str = u32 byte length | UTF-8 bytes
"""
from __future__ import annotations
import json
import struct
import zlib

from pydantic import ValidationError

from jet.core.errors import MalformedManifest
from jet.description.model import LaunchOptions, ProjectInfo
from .model import FORMAT_VERSION, InlineEntry, LaunchEntry, LaunchPlatform, Manifest, RemoteEntry

__all__ = ["MAGIC", "SUPPORTED_VERSIONS", "encodeManifest", "decodeManifest", "renderManifest"]

MAGIC = b"JETM"
SUPPORTED_VERSIONS = frozenset({FORMAT_VERSION})

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")
_DIGEST_LEN = 64

_PLATFORM_CODES = {LaunchPlatform.SH: 0, LaunchPlatform.BAT: 1}
_PLATFORM_BY_CODE = {code: platform for platform, code in _PLATFORM_CODES.items()}



class _Writer:
    def __init__(self) -> None:
        self._parts: list[bytes] = []

    def raw(self, data: bytes) -> None:
        self._parts.append(data)

    def u8(self, value: int) -> None:
        self._parts.append(_U8.pack(value))

    def u16(self, value: int) -> None:
        self._parts.append(_U16.pack(value))

    def u32(self, value: int) -> None:
        self._parts.append(_U32.pack(value))

    def u64(self, value: int) -> None:
        self._parts.append(_U64.pack(value))

    def text(self, value: str) -> None:
        data = value.encode("utf-8")
        self.u32(len(data))
        self._parts.append(data)

    def digest(self, hexDigest: str) -> None:
        self._parts.append(bytes.fromhex(hexDigest))

    def getvalue(self) -> bytes:
        return b"".join(self._parts)



class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = memoryview(data)
        self._offset = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def _take(self, size: int, what: str) -> memoryview:
        if size > self.remaining:
            raise MalformedManifest(f"Manifest truncated while reading {what} at offset {self._offset}")
        chunk = self._data[self._offset:self._offset + size]
        self._offset += size
        return chunk

    def skip(self, size: int) -> None:
        self._take(size, "header")

    def _unpack(self, st: struct.Struct, what: str) -> int:
        return st.unpack(self._take(st.size, what))[0]

    def u8(self, what: str) -> int:
        return self._unpack(_U8, what)

    def u16(self, what: str) -> int:
        return self._unpack(_U16, what)

    def u32(self, what: str) -> int:
        return self._unpack(_U32, what)

    def u64(self, what: str) -> int:
        return self._unpack(_U64, what)

    def text(self, what: str) -> str:
        size = self.u32(what)
        try:
            return bytes(self._take(size, what)).decode("utf-8")
        except UnicodeDecodeError as err:
            raise MalformedManifest(f"Manifest {what} is not valid UTF-8") from err

    def digest(self, what: str) -> str:
        return bytes(self._take(_DIGEST_LEN, what)).hex()



def encodeManifest(manifest: Manifest) -> bytes:
    out = _Writer()
    out.raw(MAGIC)
    out.u16(manifest.formatVersion)

    project = manifest.project
    out.text(project.name)
    out.text(project.description)
    out.text(project.version)
    out.u16(len(project.authors))
    for author in project.authors:
        out.text(author)

    out.u32(len(manifest.inline))
    for entry in manifest.inline:
        out.text(entry.path)
        out.u64(entry.size)
        out.digest(entry.sha512)

    out.u32(len(manifest.remote))
    for entry in manifest.remote:
        out.text(entry.path)
        out.text(entry.url)
        out.digest(entry.sha512)
        out.u8(0 if entry.size is None else 1)
        out.u64(entry.size or 0)

    out.u32(len(manifest.launch))
    for entry in manifest.launch:
        out.text(entry.path)
        out.u8(_PLATFORM_CODES[entry.platform])
        out.text(entry.options.javaMem)
        out.text(entry.options.javaGcOpts)
        out.u16(len(entry.options.javaExtraOpts))
        for opt in entry.options.javaExtraOpts:
            out.text(opt)
        out.text(entry.options.serverJar)

    body = out.getvalue()
    return body + _U32.pack(zlib.crc32(body))



def decodeManifest(data: bytes) -> Manifest:
    """
    Decodes bytes produced by encodeManifest. Raises MalformedManifest on any
    defect; never returns a partially built Manifest.
    """
    data = bytes(data)
    if len(data) < len(MAGIC) + _U16.size + _U32.size:
        raise MalformedManifest("Manifest is empty or truncated")
    if data[:len(MAGIC)] != MAGIC:
        raise MalformedManifest("Manifest has bad magic (not a jet manifest)")

    version = _U16.unpack_from(data, len(MAGIC))[0]
    if version not in SUPPORTED_VERSIONS:
        raise MalformedManifest(f"Unsupported manifest format version {version}")

    body, trailer = data[:-_U32.size], data[-_U32.size:]
    if zlib.crc32(body) != _U32.unpack(trailer)[0]:
        raise MalformedManifest("Manifest checksum mismatch (corrupt @manifest entry)")

    rd = _Reader(body)
    rd.skip(len(MAGIC) + _U16.size)

    try:
        name = rd.text("project name")
        description = rd.text("project description")
        projectVersion = rd.text("project version")
        authors = tuple(rd.text("author") for _ in range(rd.u16("author count")))
        project = ProjectInfo(name=name, description=description, version=projectVersion, authors=authors)

        inline = []
        for _ in range(rd.u32("inline count")):
            inline.append(InlineEntry(path=rd.text("inline path"), size=rd.u64("inline size"), sha512=rd.digest("inline hash")))

        remote = []
        for _ in range(rd.u32("remote count")):
            path = rd.text("remote path")
            url = rd.text("remote url")
            digest = rd.digest("remote hash")
            hasSize = rd.u8("remote size flag")
            size = rd.u64("remote size")
            if hasSize not in (0, 1):
                raise MalformedManifest(f"Remote entry '{path}' has invalid size flag {hasSize}")
            remote.append(RemoteEntry(path=path, url=url, sha512=digest, size=size if hasSize else None))

        launch = []
        for _ in range(rd.u32("launch count")):
            path = rd.text("launch path")
            code = rd.u8("launch platform")
            if code not in _PLATFORM_BY_CODE:
                raise MalformedManifest(f"Launch entry '{path}' has unknown platform code {code}")
            javaMem = rd.text("java memory")
            javaGcOpts = rd.text("java gc options")
            extra = tuple(rd.text("java option") for _ in range(rd.u16("java option count")))
            serverJar = rd.text("server jar")
            options = LaunchOptions(javaMem=javaMem, javaGcOpts=javaGcOpts, javaExtraOpts=extra, serverJar=serverJar)
            launch.append(LaunchEntry(path=path, platform=_PLATFORM_BY_CODE[code], options=options))

        if rd.remaining:
            raise MalformedManifest(f"Manifest has {rd.remaining} unexpected trailing bytes")

        return Manifest(
            formatVersion=version,
            project=project,
            inline=tuple(inline),
            remote=tuple(remote),
            launch=tuple(launch),
        )
    except ValidationError as err:
        raise MalformedManifest(f"Manifest violates its invariants: {err}") from err



def renderManifest(manifest: Manifest) -> str:
    """Pretty JSON rendering for humans (written as @manifest.json by unpack)."""
    return json.dumps(manifest.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"
