"""Host capability providers.

Example usage:
    from capabilities import local_capabilities

    caps = local_capabilities()
    caps.require("canvas").measure_canvas_signature()
"""
from .base import (
    AudioGraphSpec,
    BatteryState,
    ConnectionHints,
    EnvironmentFields,
    GPUParameters,
    HostCapabilities,
    PermissionState,
)
from .local import HashlibDigest, local_capabilities
from .snapshot import SignalSnapshot, load_snapshot, snapshot_capabilities

__all__ = [
    "AudioGraphSpec",
    "BatteryState",
    "ConnectionHints",
    "EnvironmentFields",
    "GPUParameters",
    "HostCapabilities",
    "PermissionState",
    "HashlibDigest",
    "local_capabilities",
    "SignalSnapshot",
    "load_snapshot",
    "snapshot_capabilities",
]
