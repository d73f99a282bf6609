import io

import pytest

from jet.archive.container import (
    DESCRIPTION_ENTRY,
    MANIFEST_ENTRY,
    ArchiveReader,
    ArchiveWriter,
    isReservedName,
)
from jet.core.errors import ArchiveCorrupt, DuplicateEntryName, EntryNotFound


def _archive(entries: list[tuple[str, bytes]]) -> bytes:
    buf = io.BytesIO()
    with ArchiveWriter(buf) as writer:
        for name, data in entries:
            writer.put(name, data)
    return buf.getvalue()


def test_entries_come_back_in_write_order():
    data = _archive([("b.txt", b"bee"), ("a/b/c.bin", bytes(range(256))), ("empty", b"")])
    reader = ArchiveReader(io.BytesIO(data))
    assert [(entry.name, entry.read()) for entry in reader.entries()] == [
        ("b.txt", b"bee"),
        ("a/b/c.bin", bytes(range(256))),
        ("empty", b""),
    ]


def test_duplicate_name_is_rejected():
    writer = ArchiveWriter(io.BytesIO())
    writer.put("x", b"1")
    with pytest.raises(DuplicateEntryName) as excinfo:
        writer.put("x", b"2")
    assert excinfo.value.name == "x"


def test_put_file_streams_from_disk(tmp_path):
    source = tmp_path / "big.bin"
    source.write_bytes(b"z" * 300_000)
    buf = io.BytesIO()
    with ArchiveWriter(buf) as writer:
        assert writer.putFile("big.bin", source) == 300_000
    assert ArchiveReader(io.BytesIO(buf.getvalue())).read("big.bin") == b"z" * 300_000


def test_finish_is_idempotent_and_closes_for_writing():
    buf = io.BytesIO()
    writer = ArchiveWriter(buf)
    writer.put("a", b"1")
    writer.finish()
    size = len(buf.getvalue())
    writer.finish()
    assert len(buf.getvalue()) == size
    with pytest.raises(RuntimeError):
        writer.put("b", b"2")


def test_identical_input_gives_identical_bytes():
    entries = [("a", b"1"), ("b", b"22")]
    assert _archive(entries) == _archive(entries)


def test_read_returns_first_match():
    data = _archive([("one", b"1"), ("two", b"2")])
    assert ArchiveReader(io.BytesIO(data)).read("two") == b"2"


def test_read_missing_entry_raises():
    data = _archive([("one", b"1")])
    with pytest.raises(EntryNotFound) as excinfo:
        ArchiveReader(io.BytesIO(data)).read("nope")
    assert excinfo.value.name == "nope"


def test_reader_is_single_pass():
    reader = ArchiveReader(io.BytesIO(_archive([("one", b"1")])))
    assert list(reader.names()) == ["one"]
    with pytest.raises(RuntimeError):
        list(reader.names())


def test_reader_works_on_non_seekable_stream():
    class _Pipe(io.RawIOBase):
        def __init__(self, data: bytes):
            self._inner = io.BytesIO(data)

        def readable(self):
            return True

        def readinto(self, buf):
            chunk = self._inner.read(min(len(buf), 100))
            buf[:len(chunk)] = chunk
            return len(chunk)

    data = _archive([("a", b"1" * 5000), ("b", b"2")])
    reader = ArchiveReader(io.BufferedReader(_Pipe(data)))
    assert list(reader.names()) == ["a", "b"]


@pytest.mark.parametrize("data", [b"", b"definitely not a tar stream" * 40])
def test_garbage_is_corrupt(data):
    with pytest.raises(ArchiveCorrupt):
        list(ArchiveReader(io.BytesIO(data)).entries())


def test_truncated_stream_is_corrupt():
    data = _archive([("a", b"x" * 4000), ("b", b"y" * 4000)])
    with pytest.raises(ArchiveCorrupt):
        reader = ArchiveReader(io.BytesIO(data[:2048]))
        for entry in reader.entries():
            entry.read()


def test_reserved_names():
    assert isReservedName(MANIFEST_ENTRY)
    assert isReservedName(DESCRIPTION_ENTRY)
    assert not isReservedName("manifest")


def test_any_at_prefixed_name_is_reserved():
    assert isReservedName("@manifest.json")
    assert isReservedName("@future/entry")
    assert not isReservedName("mods/@odd.jar")
