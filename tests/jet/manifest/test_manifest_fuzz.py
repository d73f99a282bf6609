# tests/jet/manifest/test_manifest_fuzz.py
from __future__ import annotations
import struct
import zlib

import pytest

hypothesis = pytest.importorskip("hypothesis")
from hypothesis import given, settings, strategies as st  # type: ignore[no-redef]

from jet.core.errors import MalformedManifest
from jet.core.paths import normalizeRelPath
from jet.manifest.codec import MAGIC, decodeManifest
from jet.manifest.model import FORMAT_VERSION, Manifest


def _sealed(body: bytes) -> bytes:
    """Valid header and checksum around arbitrary body bytes, so decoding gets past the envelope."""
    data = MAGIC + struct.pack("<H", FORMAT_VERSION) + body
    return data + struct.pack("<I", zlib.crc32(data))


@settings(max_examples=300, deadline=None)
@given(st.binary(max_size=512))
def test_decode_arbitraryBody_onlyRaisesMalformedManifest(body: bytes) -> None:
    try:
        manifest = decodeManifest(_sealed(body))
    except MalformedManifest:
        return
    assert isinstance(manifest, Manifest)


@settings(max_examples=200, deadline=None)
@given(st.binary(max_size=256))
def test_decode_arbitraryBytes_onlyRaisesMalformedManifest(data: bytes) -> None:
    with pytest.raises(MalformedManifest):
        decodeManifest(data)


path_strat = st.text(
    alphabet=st.sampled_from(list("ab@.:/\\ ")),
    min_size=0,
    max_size=12,
)


@given(path_strat)
def test_normalizeRelPath_neverEscapes(value: str) -> None:
    try:
        normalized = normalizeRelPath(value)
    except ValueError:
        return
    parts = normalized.split("/")
    assert not normalized.startswith("/")
    assert "\\" not in normalized
    assert all(part not in ("", ".", "..") for part in parts)
    assert not parts[0].startswith("@")
    assert normalizeRelPath(normalized) == normalized
