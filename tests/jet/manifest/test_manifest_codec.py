import json
import struct
import zlib

import pytest

from jet.core.errors import MalformedManifest
from jet.core.hashing import sha512Hex
from jet.description.model import LaunchOptions, ProjectInfo
from jet.manifest.codec import MAGIC, decodeManifest, encodeManifest, renderManifest
from jet.manifest.model import InlineEntry, LaunchEntry, LaunchPlatform, Manifest, RemoteEntry


def _manifest() -> Manifest:
    return Manifest(
        project=ProjectInfo(name="demo", description="Demo server", version="1.2", authors=("ana", "bo")),
        inline=(
            InlineEntry(path="readme.txt", size=12, sha512=sha512Hex(b"hello, jet!\n")),
            InlineEntry(path="config/server.properties", size=0, sha512=sha512Hex(b"")),
        ),
        remote=(
            RemoteEntry(path="libs/big.jar", url="https://cdn.example/big.jar", sha512=sha512Hex(b"big"), size=3),
            RemoteEntry(path="mods/üñí.jar", url="https://cdn.example/u.jar", sha512=sha512Hex(b"u")),
        ),
        launch=(
            LaunchEntry(
                path="run.sh",
                platform=LaunchPlatform.SH,
                options=LaunchOptions(javaMem="8G", javaGcOpts="", javaExtraOpts=("-Dfoo=1", "-Dbar=2")),
            ),
            LaunchEntry(path="run.bat", platform=LaunchPlatform.BAT),
        ),
    )


def _resealed(body: bytes) -> bytes:
    return body + struct.pack("<I", zlib.crc32(body))


def test_round_trip_preserves_every_field():
    manifest = _manifest()
    data = encodeManifest(manifest)

    assert data.startswith(MAGIC)
    assert decodeManifest(data) == manifest


def test_encoding_is_deterministic():
    assert encodeManifest(_manifest()) == encodeManifest(_manifest())


def test_remote_size_absent_stays_absent():
    decoded = decodeManifest(encodeManifest(_manifest()))
    assert decoded.remote[0].size == 3
    assert decoded.remote[1].size is None


def test_empty_manifest_round_trips():
    manifest = Manifest(project=ProjectInfo(name="empty"))
    assert decodeManifest(encodeManifest(manifest)) == manifest


def test_bad_magic_is_rejected():
    data = encodeManifest(_manifest())
    with pytest.raises(MalformedManifest, match="magic"):
        decodeManifest(b"NOPE" + data[4:])


def test_unknown_format_version_is_rejected():
    data = bytearray(encodeManifest(_manifest()))
    struct.pack_into("<H", data, len(MAGIC), 99)
    with pytest.raises(MalformedManifest, match="version 99"):
        decodeManifest(bytes(data))


def test_flipped_byte_fails_checksum():
    data = bytearray(encodeManifest(_manifest()))
    data[20] ^= 0xFF
    with pytest.raises(MalformedManifest, match="checksum"):
        decodeManifest(bytes(data))


@pytest.mark.parametrize("data", [b"", b"JETM", b"JETM\x01\x00"])
def test_short_input_is_rejected(data):
    with pytest.raises(MalformedManifest):
        decodeManifest(data)


def test_truncated_body_is_rejected_even_with_valid_checksum():
    body = encodeManifest(_manifest())[:-4]
    with pytest.raises(MalformedManifest, match="truncated"):
        decodeManifest(_resealed(body[:-30]))


def test_trailing_bytes_are_rejected():
    body = encodeManifest(_manifest())[:-4]
    with pytest.raises(MalformedManifest, match="trailing"):
        decodeManifest(_resealed(body + b"\x00"))


def test_decoded_paths_must_satisfy_manifest_invariants():
    manifest = Manifest(
        project=ProjectInfo(name="dup"),
        inline=(InlineEntry(path="a.txt", size=1, sha512=sha512Hex(b"a")),),
        remote=(RemoteEntry(path="b.txt", url="https://x/b", sha512=sha512Hex(b"b")),),
    )
    body = encodeManifest(manifest)[:-4]
    # Same length, so only the path changes: the remote now collides with the inline entry
    tampered = body.replace(b"b.txt", b"a.txt")
    with pytest.raises(MalformedManifest, match="invariants"):
        decodeManifest(_resealed(tampered))


def test_render_is_readable_json():
    rendered = json.loads(renderManifest(_manifest()))
    assert rendered["project"]["name"] == "demo"
    assert [entry["path"] for entry in rendered["inline"]] == ["readme.txt", "config/server.properties"]
    assert rendered["launch"][0]["platform"] == "sh"
