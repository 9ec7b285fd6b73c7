"""Digest engine: canonical string -> fixed-length hex fingerprint."""
import logging
from typing import Optional

from capabilities.base import DigestProvider
from config import Defaults
from core.errors import DigestUnavailable

logger = logging.getLogger("deviceid.digest")


class DigestEngine:
    """Hashes canonical strings through a digest capability.

    The only fatal step of the pipeline: any problem with the primitive is
    raised as DigestUnavailable, never papered over.
    """

    def __init__(self, provider: Optional[DigestProvider], digest_size: int = Defaults.DIGEST_SIZE):
        """Initialize digest engine.

        Args:
            provider: Digest capability (None = unavailable)
            digest_size: Required digest length in bytes
        """
        self.provider = provider
        self.digest_size = digest_size

    @property
    def algorithm(self) -> str:
        return getattr(self.provider, "algorithm", "unavailable")

    @property
    def hex_length(self) -> int:
        return self.digest_size * 2

    def digest(self, text: str) -> str:
        """UTF-8 encode, hash, and render as lowercase hex.

        Args:
            text: Canonical string

        Returns:
            Lowercase hex string of hex_length characters

        Raises:
            DigestUnavailable: If the primitive is missing or misbehaves
        """
        if self.provider is None:
            raise DigestUnavailable("No digest capability provided by host")

        try:
            raw = self.provider.digest(text.encode("utf-8"))
        except DigestUnavailable:
            raise
        except Exception as e:
            raise DigestUnavailable(f"Digest primitive '{self.algorithm}' failed: {e}") from e

        if not isinstance(raw, (bytes, bytearray)) or len(raw) != self.digest_size:
            size = len(raw) if isinstance(raw, (bytes, bytearray)) else type(raw).__name__
            raise DigestUnavailable(
                f"Digest primitive '{self.algorithm}' returned {size}, expected {self.digest_size} bytes"
            )

        return bytes(raw).hex()
