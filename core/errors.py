"""Exception hierarchy for DeviceID.

Only DigestUnavailable ever reaches a caller of FingerprintService.generate();
everything else is absorbed by the probe executor and recorded on the result.
"""


class DeviceIDError(Exception):
    """Base class for all DeviceID errors."""


class ProbeFailure(DeviceIDError):
    """A probe collector raised or rejected."""

    def __init__(self, probe_name: str, cause: BaseException):
        self.probe_name = probe_name
        self.cause = cause
        super().__init__(f"Probe '{probe_name}' failed: {cause}")


class CapabilityUnavailable(DeviceIDError):
    """A host capability required by a probe is absent."""

    def __init__(self, capability: str, reason: str = "not provided by host"):
        self.capability = capability
        self.reason = reason
        super().__init__(f"Capability '{capability}' unavailable: {reason}")


class DigestUnavailable(DeviceIDError):
    """The cryptographic digest primitive cannot run. Fatal for generate()."""


class RegistryFrozenError(DeviceIDError):
    """A probe was registered after the registry was frozen."""
