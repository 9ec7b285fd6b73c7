"""Fingerprint pipeline: executor -> serializer -> digest."""
from .executor import ProbeExecutor
from .serializer import serialize, parse
from .digest import DigestEngine
from .service import FingerprintService

__all__ = ["ProbeExecutor", "serialize", "parse", "DigestEngine", "FingerprintService"]
