"""Tests for the digest engine."""

import hashlib

import pytest

from capabilities.base import DigestProvider
from capabilities.local import HashlibDigest
from core.errors import DigestUnavailable
from pipeline.digest import DigestEngine

WORKED_EXAMPLE = "nav:UA1||screen:1920x1080||canvas:data:abc||webgl:||audio:"


class BrokenDigest(DigestProvider):
    algorithm = "broken"

    def digest(self, data: bytes) -> bytes:
        raise RuntimeError("primitive crashed")


class ShortDigest(DigestProvider):
    algorithm = "short"

    def digest(self, data: bytes) -> bytes:
        return b"\x00" * 16


class TestDigestEngine:
    """Test DigestEngine.digest()."""

    def test_worked_example_matches_reference_sha256(self):
        engine = DigestEngine(HashlibDigest("sha256"))
        expected = hashlib.sha256(WORKED_EXAMPLE.encode("utf-8")).hexdigest()
        assert engine.digest(WORKED_EXAMPLE) == expected

    def test_returns_64_lowercase_hex(self):
        result = DigestEngine(HashlibDigest()).digest("anything")
        assert len(result) == 64
        assert all(c in "0123456789abcdef" for c in result)

    def test_deterministic(self):
        engine = DigestEngine(HashlibDigest())
        assert engine.digest("same input") == engine.digest("same input")

    def test_utf8_encoding(self):
        text = "nav:Zürich ✓"
        assert DigestEngine(HashlibDigest()).digest(text) == hashlib.sha256(text.encode("utf-8")).hexdigest()

    def test_other_256_bit_algorithm(self):
        result = DigestEngine(HashlibDigest("sha3_256")).digest(WORKED_EXAMPLE)
        assert result == hashlib.sha3_256(WORKED_EXAMPLE.encode("utf-8")).hexdigest()

    def test_missing_provider(self):
        with pytest.raises(DigestUnavailable):
            DigestEngine(None).digest(WORKED_EXAMPLE)

    def test_unknown_algorithm(self):
        with pytest.raises(DigestUnavailable):
            DigestEngine(HashlibDigest("no-such-hash")).digest(WORKED_EXAMPLE)

    def test_wrong_size_algorithm_refused(self):
        with pytest.raises(DigestUnavailable):
            DigestEngine(HashlibDigest("sha512")).digest(WORKED_EXAMPLE)

    def test_provider_error_becomes_digest_unavailable(self):
        with pytest.raises(DigestUnavailable) as exc_info:
            DigestEngine(BrokenDigest()).digest(WORKED_EXAMPLE)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_short_digest_refused(self):
        with pytest.raises(DigestUnavailable):
            DigestEngine(ShortDigest()).digest(WORKED_EXAMPLE)
