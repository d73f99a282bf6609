import io

import pytest

from jet.archive.compression import Codec
from jet.archive.container import DESCRIPTION_ENTRY, MANIFEST_ENTRY, ArchiveReader, ArchiveWriter
from jet.archive.jetpack import openJetArchive, readDescription, writeJetArchive
from jet.core.errors import CompileError, EntryNotFound, MalformedArchive, MalformedManifest
from jet.core.hashing import sha512Hex
from jet.description.model import ProjectInfo
from jet.manifest.codec import encodeManifest
from jet.manifest.model import InlineEntry, Manifest, RemoteEntry

DESCRIPTION = b"<jet><project><name>demo</name></project></jet>"


def _manifest() -> Manifest:
    return Manifest(
        project=ProjectInfo(name="demo"),
        inline=(
            InlineEntry(path="readme.txt", size=12, sha512=sha512Hex(b"hello, jet!\n")),
            InlineEntry(path="cfg/a.properties", size=3, sha512=sha512Hex(b"a=1")),
        ),
        remote=(RemoteEntry(path="libs/big.jar", url="https://cdn.example/big.jar", sha512=sha512Hex(b"big")),),
    )


INLINE = {"readme.txt": b"hello, jet!\n", "cfg/a.properties": b"a=1"}


def test_reserved_entries_come_first_then_inline_in_manifest_order(buildArchive):
    data = buildArchive(_manifest(), INLINE, DESCRIPTION)
    names = list(ArchiveReader(io.BytesIO(data)).names())
    assert names == [MANIFEST_ENTRY, DESCRIPTION_ENTRY, "readme.txt", "cfg/a.properties"]


@pytest.mark.parametrize("codec", [Codec.NONE, Codec.ZLIB])
def test_open_decodes_manifest_and_streams_files(buildArchive, codec):
    data = buildArchive(_manifest(), INLINE, DESCRIPTION, codec=codec)

    with openJetArchive(io.BytesIO(data), codec) as archive:
        assert archive.manifest == _manifest()
        files = {entry.name: entry.read() for entry in archive.fileEntries()}

    assert files == INLINE
    assert archive.description == DESCRIPTION


def test_remote_entries_are_not_stored(buildArchive):
    data = buildArchive(_manifest(), INLINE)
    assert "libs/big.jar" not in list(ArchiveReader(io.BytesIO(data)).names())


def test_missing_inline_source_is_rejected(tmp_path):
    with pytest.raises(CompileError, match="readme.txt"):
        writeJetArchive(io.BytesIO(), _manifest(), DESCRIPTION, {})


def test_source_changed_since_compile_is_rejected(tmp_path):
    readme = tmp_path / "readme.txt"
    readme.write_bytes(b"grown since compile\n")
    with pytest.raises(CompileError, match="changed size"):
        writeJetArchive(io.BytesIO(), _manifest(), DESCRIPTION, {"readme.txt": readme})


def test_manifest_must_be_first_entry():
    buf = io.BytesIO()
    with ArchiveWriter(buf) as writer:
        writer.put(DESCRIPTION_ENTRY, DESCRIPTION)
        writer.put(MANIFEST_ENTRY, encodeManifest(_manifest()))
    with pytest.raises(MalformedArchive, match="First archive entry"):
        openJetArchive(io.BytesIO(buf.getvalue()))


def test_empty_container_is_malformed():
    buf = io.BytesIO()
    ArchiveWriter(buf).finish()
    with pytest.raises(MalformedArchive, match="empty"):
        openJetArchive(io.BytesIO(buf.getvalue()))


def test_read_description_skips_an_undecodable_manifest():
    buf = io.BytesIO()
    with ArchiveWriter(buf) as writer:
        writer.put(MANIFEST_ENTRY, b"from a future jet version")
        writer.put(DESCRIPTION_ENTRY, DESCRIPTION)
    data = buf.getvalue()

    assert readDescription(io.BytesIO(data)) == DESCRIPTION
    with pytest.raises(MalformedManifest):
        openJetArchive(io.BytesIO(data))


def test_read_description_without_entry_raises():
    buf = io.BytesIO()
    with ArchiveWriter(buf) as writer:
        writer.put(MANIFEST_ENTRY, encodeManifest(_manifest()))
    with pytest.raises(EntryNotFound):
        readDescription(io.BytesIO(buf.getvalue()))


def test_unknown_reserved_entries_are_not_yielded_as_files():
    buf = io.BytesIO()
    with ArchiveWriter(buf) as writer:
        writer.put(MANIFEST_ENTRY, encodeManifest(_manifest()))
        writer.put(DESCRIPTION_ENTRY, DESCRIPTION)
        writer.put("@signature", b"from a future jet version")
        writer.put("readme.txt", b"hello, jet!\n")

    with openJetArchive(io.BytesIO(buf.getvalue())) as archive:
        names = [entry.name for entry in archive.fileEntries()]

    assert names == ["readme.txt"]
    assert archive.description == DESCRIPTION
