"""Fingerprint service - top-level entry point of the pipeline.

Per call: Idle -> Collecting (sync inline, async concurrent) -> AwaitingJoin
-> Serializing -> Digesting -> Done. No retries; a digest failure ends the
call with DigestUnavailable and no identifier.
"""
import asyncio
import logging
from enum import Enum
from typing import Optional

from capabilities.base import HostCapabilities
from config import Defaults, Settings, ProbeToggles, get_settings
from core.debug import debug_print
from core.models import FingerprintReport
from probes.registry import ProbeRegistry
from .digest import DigestEngine
from .executor import FailureCallback, ProbeExecutor
from .serializer import serialize

logger = logging.getLogger("deviceid.service")


class GenerationState(str, Enum):
    """Stages of a single generate() call."""
    IDLE = "idle"
    COLLECTING = "collecting"
    SERIALIZING = "serializing"
    DIGESTING = "digesting"
    DONE = "done"


class FingerprintService:
    """Derives device fingerprints from a frozen probe registry.

    Example:
        service = FingerprintService(default_registry(), local_capabilities())
        fingerprint = await service.generate()
        fingerprint = service.generate_sync(ProbeToggles(audio=False))
    """

    def __init__(
        self,
        registry: ProbeRegistry,
        capabilities: HostCapabilities,
        probe_timeout: Optional[float] = Defaults.PROBE_TIMEOUT,
        digest_engine: Optional[DigestEngine] = None,
        on_failure: Optional[FailureCallback] = None,
        default_configuration: Optional[ProbeToggles] = None
    ):
        """Initialize fingerprint service.

        Args:
            registry: Frozen probe registry (the fingerprint schema)
            capabilities: Host capability bundle
            probe_timeout: Per async probe timeout in seconds (default 5.0, None = no timeout)
            digest_engine: Digest engine (defaults to the bundle's digest capability)
            on_failure: Optional diagnostic hook for probe failures
            default_configuration: Toggles used when generate() gets none

        Raises:
            ValueError: If the registry is not frozen
        """
        if not registry.frozen:
            raise ValueError("Probe registry must be frozen before building a FingerprintService")

        self.registry = registry
        self.capabilities = capabilities
        self.executor = ProbeExecutor(capabilities, probe_timeout=probe_timeout, on_failure=on_failure)
        self.digest_engine = digest_engine or DigestEngine(capabilities.digest)
        self.default_configuration = default_configuration or ProbeToggles()

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        capabilities: Optional[HostCapabilities] = None,
        registry: Optional[ProbeRegistry] = None
    ) -> "FingerprintService":
        """Build a service from Settings, defaulting to the local host and standard schema.

        Args:
            settings: Settings (defaults to get_settings())
            capabilities: Capability bundle (defaults to local_capabilities())
            registry: Probe registry (defaults to default_registry())

        Returns:
            Configured FingerprintService
        """
        from capabilities.local import local_capabilities
        from probes.catalog import default_registry

        settings = settings or get_settings()
        if capabilities is None:
            capabilities = local_capabilities(settings.digest.algorithm)
        if registry is None:
            registry = default_registry()

        return cls(
            registry=registry,
            capabilities=capabilities,
            probe_timeout=settings.executor.probe_timeout,
            default_configuration=settings.probes,
        )

    async def generate(self, configuration: Optional[ProbeToggles] = None) -> str:
        """Derive the fingerprint.

        Args:
            configuration: Probe toggles (service defaults when None)

        Returns:
            Lowercase hex fingerprint (64 chars for a 256-bit digest)

        Raises:
            DigestUnavailable: If the digest primitive cannot run
        """
        report = await self.explain(configuration)
        return report.fingerprint

    async def explain(self, configuration: Optional[ProbeToggles] = None) -> FingerprintReport:
        """Derive the fingerprint and keep the intermediate values.

        Args:
            configuration: Probe toggles (service defaults when None)

        Returns:
            FingerprintReport with fingerprint, canonical string and probe results

        Raises:
            DigestUnavailable: If the digest primitive cannot run
        """
        configuration = configuration or self.default_configuration
        state = GenerationState.IDLE
        probes = self.registry.all()

        state = self._advance(state, GenerationState.COLLECTING)
        results = await self.executor.run_all(probes, configuration)

        state = self._advance(state, GenerationState.SERIALIZING)
        canonical = serialize(results)

        state = self._advance(state, GenerationState.DIGESTING)
        try:
            fingerprint = self.digest_engine.digest(canonical)
        except Exception:
            logger.error(f"[SERVICE] Digest failed in state {state.value}, no fingerprint produced")
            raise

        self._advance(state, GenerationState.DONE)
        failed = [r.name for r in results if not r.succeeded and not r.skipped]
        if failed:
            logger.debug(f"[SERVICE] Probes using fallback: {', '.join(failed)}")

        return FingerprintReport(
            fingerprint=fingerprint,
            schema_version=self.registry.schema_version,
            schema_id=self.registry.schema_id,
            algorithm=self.digest_engine.algorithm,
            canonical=canonical,
            results=results,
        )

    def generate_sync(self, configuration: Optional[ProbeToggles] = None) -> str:
        """Blocking wrapper around generate() for code without an event loop."""
        return asyncio.run(self.generate(configuration))

    def explain_sync(self, configuration: Optional[ProbeToggles] = None) -> FingerprintReport:
        """Blocking wrapper around explain()."""
        return asyncio.run(self.explain(configuration))

    @staticmethod
    def _advance(current: GenerationState, new: GenerationState) -> GenerationState:
        logger.debug(f"[SERVICE] {current.value} -> {new.value}")
        debug_print(f"[SERVICE] {new.value}")
        return new
