from __future__ import annotations

import hashlib
import logging
import threading

import pytest

from book_fetcher.core.epub import ADOBE, IDPF, DeobfuscatingResource, EPUBDeobfuscator
from book_fetcher.core.fetcher import DataResource, Encryption, FailureResource, Link, ResourceProxy
from book_fetcher.utils.errors import Unavailable

IDPF_LINK = Link(href="font.otf", type="font/otf", encryption=Encryption(IDPF.identifier))
ADOBE_LINK = Link(href="font.ttf", type="font/ttf", encryption=Encryption(ADOBE.identifier))


def _xor(data: bytes, key: bytes, limit: int) -> bytes:
    return bytes(b ^ key[i % len(key)] if i < limit else b for i, b in enumerate(data))


class CloseCountingResource(DataResource):
    close_calls = 0

    def close(self) -> None:
        self.close_calls += 1


def test_idpf_vector_on_zero_bytes() -> None:
    key = hashlib.sha1(b"urn:uuid:1234").digest()
    resource = EPUBDeobfuscator("urn:uuid:1234").deobfuscate(DataResource(IDPF_LINK, bytes(1040)))

    data = resource.read().value
    assert data[0] == key[0]
    assert data == bytes(key[i % 20] for i in range(1040))


def test_adobe_deobfuscation_uses_uuid_key() -> None:
    publication_id = "urn:uuid:12345678-1234-1234-1234-123456789abc"
    key = bytes.fromhex("12345678123412341234123456789abc")
    original = bytes(range(256)) * 6
    obfuscated = _xor(original, key, 1024)

    resource = EPUBDeobfuscator(publication_id).deobfuscate(DataResource(ADOBE_LINK, obfuscated))

    assert resource.read().value == original


def test_deobfuscation_is_self_inverse() -> None:
    original = b"The quick brown fox jumps over the lazy dog" * 10
    deobfuscator = EPUBDeobfuscator("urn:uuid:1234")

    once = deobfuscator.deobfuscate(DataResource(IDPF_LINK, original)).read().value
    twice = deobfuscator.deobfuscate(DataResource(IDPF_LINK, once)).read().value

    assert once != original
    assert twice == original


def test_tail_is_never_transformed() -> None:
    original = bytes(range(256)) * 10
    resource = EPUBDeobfuscator("urn:uuid:1234").deobfuscate(DataResource(IDPF_LINK, original))

    data = resource.read().value
    assert len(data) == len(original)
    assert data[1040:] == original[1040:]
    assert resource.read(range(1040, 2000)).value == original[1040:2000]
    assert resource.read(range(2000, 5000)).value == original[2000:]


def test_partial_range_uses_absolute_key_position() -> None:
    key = b"\x01\x02\x03\x04"
    resource = DeobfuscatingResource(DataResource(IDPF_LINK, bytes(20)), IDPF, key)

    assert resource.read(range(6, 10)).value == bytes(key[(6 + i) % 4] for i in range(4))


def test_range_straddling_obfuscated_prefix() -> None:
    original = bytes(range(256)) * 8
    deobfuscator = EPUBDeobfuscator("urn:uuid:1234")
    full = deobfuscator.deobfuscate(DataResource(IDPF_LINK, original)).read().value
    resource = deobfuscator.deobfuscate(DataResource(IDPF_LINK, original))

    assert resource.read(range(1000, 1100)).value == full[1000:1100]
    assert resource.read(range(-50, 30)).value == full[0:30]
    assert resource.read(range(2040, 9999)).value == full[2040:]
    assert resource.read(range(30, 10)).value == b""


def test_every_subrange_matches_full_read() -> None:
    original = bytes(range(256)) * 5
    resource = EPUBDeobfuscator("urn:uuid:1234").deobfuscate(DataResource(IDPF_LINK, original))
    full = resource.read().value

    for start in range(0, 1280, 97):
        for stop in (start + 1, start + 19, start + 500):
            assert resource.read(range(start, stop)).value == full[start:stop]


def test_passthrough_without_encryption() -> None:
    plain = DataResource(Link(href="chapter.xhtml"), b"<html/>")
    assert EPUBDeobfuscator("urn:uuid:1234").deobfuscate(plain) is plain


def test_unknown_algorithm_passthrough() -> None:
    link = Link(href="font.otf", encryption=Encryption("http://example.com/unknown"))
    resource = DataResource(link, b"\x01\x02\x03")

    result = EPUBDeobfuscator("urn:uuid:1234").deobfuscate(resource)
    assert result is resource
    assert result.read(range(0, 2)).value == b"\x01\x02"


def test_empty_key_leaves_resource_untouched(caplog: pytest.LogCaptureFixture) -> None:
    resource = DataResource(ADOBE_LINK, b"\x01\x02\x03")

    with caplog.at_level(logging.WARNING):
        result = EPUBDeobfuscator("urn:uuid:").deobfuscate(resource)

    assert result is resource
    assert "Empty" in caplog.text


def test_whitespace_is_removed_from_publication_id() -> None:
    spaced = EPUBDeobfuscator(" urn:uuid:AB\tCD\r\n")
    compact = EPUBDeobfuscator("urn:uuid:ABCD")
    assert spaced.publication_id == compact.publication_id == "urn:uuid:ABCD"

    data = bytes(64)
    assert (
        spaced.deobfuscate(DataResource(IDPF_LINK, data)).read().value
        == compact.deobfuscate(DataResource(IDPF_LINK, data)).read().value
    )


def test_deobfuscator_is_a_transformer() -> None:
    deobfuscator = EPUBDeobfuscator("urn:uuid:1234")
    resource = deobfuscator(DataResource(IDPF_LINK, bytes(8)))

    assert isinstance(resource, DeobfuscatingResource)
    assert isinstance(resource, ResourceProxy)
    assert resource.link is IDPF_LINK


def test_errors_pass_through() -> None:
    resource = EPUBDeobfuscator("urn:uuid:1234").deobfuscate(FailureResource(IDPF_LINK, Unavailable()))

    assert isinstance(resource.read().error, Unavailable)
    assert isinstance(resource.length().error, Unavailable)


def test_close_reaches_wrapped_resource() -> None:
    inner = CloseCountingResource(IDPF_LINK, bytes(8))
    resource = EPUBDeobfuscator("urn:uuid:1234").deobfuscate(inner)

    resource.close()
    resource.close()
    assert inner.close_calls == 2


def test_concurrent_reads_return_consistent_bytes() -> None:
    original = bytes(range(256)) * 8
    resource = EPUBDeobfuscator("urn:uuid:1234").deobfuscate(DataResource(IDPF_LINK, original))
    expected = resource.read().value
    failures: list[range] = []

    def worker(offset: int) -> None:
        for start in range(offset, 1500, 13):
            byte_range = range(start, start + 37)
            if resource.read(byte_range).value != expected[start:start + 37]:
                failures.append(byte_range)

    threads = [threading.Thread(target=worker, args=(offset,)) for offset in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert failures == []
