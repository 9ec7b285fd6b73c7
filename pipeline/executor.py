"""Probe execution with per-probe failure isolation."""
import asyncio
import logging
import time
from typing import Callable, List, Optional, Sequence

from capabilities.base import HostCapabilities
from config import Defaults, ProbeToggles
from core.debug import debug_print
from core.errors import ProbeFailure
from core.models import ProbeResult
from core.utils import elapsed_ms
from probes.base import Probe

logger = logging.getLogger("deviceid.executor")

FailureCallback = Callable[[ProbeFailure], None]


class ProbeExecutor:
    """Runs probes against a capability bundle.

    Every probe yields exactly one ProbeResult; nothing a collector does can
    abort a run. Disabled probes are not invoked and record an empty value.
    Async probes are spawned as tasks and joined before run_all() returns.
    """

    def __init__(
        self,
        capabilities: HostCapabilities,
        probe_timeout: Optional[float] = Defaults.PROBE_TIMEOUT,
        on_failure: Optional[FailureCallback] = None
    ):
        """Initialize probe executor.

        Args:
            capabilities: Host capability bundle handed to every collector
            probe_timeout: Seconds an async probe may take before its fallback
                is used (None = wait indefinitely). Sync probes are not bounded.
            on_failure: Optional diagnostic hook called with each ProbeFailure.
                It cannot change results; errors it raises are logged.
        """
        self.capabilities = capabilities
        self.probe_timeout = probe_timeout
        self.on_failure = on_failure

    def is_enabled(self, probe: Probe, configuration: ProbeToggles) -> bool:
        """Whether configuration lets the probe run. Unknown options count as enabled."""
        try:
            return configuration.is_enabled(probe.option)
        except KeyError:
            logger.warning(f"[EXECUTOR] Probe '{probe.name}' uses unknown option '{probe.option}', running it")
            return True

    async def run(self, probe: Probe, configuration: Optional[ProbeToggles] = None) -> ProbeResult:
        """Run a single probe. Never raises.

        Args:
            probe: The probe to run
            configuration: Probe toggles (defaults when None)

        Returns:
            ProbeResult for the probe
        """
        configuration = configuration or ProbeToggles()
        if not self.is_enabled(probe, configuration):
            debug_print(f"  [PROBE] {probe.name}: disabled")
            return ProbeResult.disabled(probe.name)
        if probe.is_async:
            return await self._run_async(probe)
        return self._run_sync(probe)

    async def run_all(
        self,
        probes: Sequence[Probe],
        configuration: Optional[ProbeToggles] = None
    ) -> List[ProbeResult]:
        """Run every probe and return results in input order.

        Enabled async probes are started as concurrent tasks first, sync
        probes then run inline, and the call returns only after every task
        has settled.

        Args:
            probes: Probes in registry order
            configuration: Probe toggles (defaults when None)

        Returns:
            One ProbeResult per probe, same order as probes
        """
        configuration = configuration or ProbeToggles()
        results: List[Optional[ProbeResult]] = [None] * len(probes)
        tasks = {}

        for index, probe in enumerate(probes):
            if not self.is_enabled(probe, configuration):
                results[index] = ProbeResult.disabled(probe.name)
            elif probe.is_async:
                tasks[index] = asyncio.create_task(self._run_async(probe), name=f"probe:{probe.name}")

        if tasks:
            # Let the tasks reach their first await before sync probes block the loop
            await asyncio.sleep(0)

        for index, probe in enumerate(probes):
            if results[index] is None and index not in tasks:
                results[index] = self._run_sync(probe)

        if tasks:
            logger.debug(f"[EXECUTOR] Awaiting {len(tasks)} async probes")
            settled = await asyncio.gather(*tasks.values())
            for index, result in zip(tasks.keys(), settled):
                results[index] = result

        return results

    # -------------------------------------------------------------------------

    def _run_sync(self, probe: Probe) -> ProbeResult:
        start = time.perf_counter()
        try:
            value = probe.collector(self.capabilities)
        except Exception as e:
            return self._failed(probe, e, start)
        return self._succeeded(probe, value, start)

    async def _run_async(self, probe: Probe) -> ProbeResult:
        start = time.perf_counter()
        try:
            if self.probe_timeout is None:
                value = await probe.collector(self.capabilities)
            else:
                value = await asyncio.wait_for(probe.collector(self.capabilities), timeout=self.probe_timeout)
        except asyncio.TimeoutError:
            return self._failed(probe, TimeoutError(f"timed out after {self.probe_timeout}s"), start)
        except Exception as e:
            return self._failed(probe, e, start)
        return self._succeeded(probe, value, start)

    def _succeeded(self, probe: Probe, value, start: float) -> ProbeResult:
        if value is None:
            return self._failed(probe, ValueError("collector returned no value"), start)
        if not isinstance(value, str):
            value = str(value)
        duration = elapsed_ms(start)
        debug_print(f"  [PROBE] {probe.name}: ok ({duration}ms)")
        return ProbeResult(name=probe.name, value=value, succeeded=True, duration_ms=duration)

    def _failed(self, probe: Probe, error: BaseException, start: float) -> ProbeResult:
        failure = ProbeFailure(probe.name, error)
        duration = elapsed_ms(start)
        logger.debug(f"[EXECUTOR] {failure}")
        debug_print(f"  [PROBE] {probe.name}: failed ({error})")
        self._notify(failure)
        return ProbeResult(
            name=probe.name,
            value=probe.fallback,
            succeeded=False,
            error=f"{type(error).__name__}: {error}",
            duration_ms=duration
        )

    def _notify(self, failure: ProbeFailure) -> None:
        if self.on_failure is None:
            return
        try:
            self.on_failure(failure)
        except Exception as e:
            logger.warning(f"[EXECUTOR] Failure hook raised for '{failure.probe_name}': {e}")
