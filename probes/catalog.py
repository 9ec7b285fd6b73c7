"""The standard probe schema.

SCHEMA_VERSION must be bumped whenever the probe list below changes (order,
names, categories, collectors or the constants they depend on). Fingerprints
from different schema versions are not comparable.
"""
from .base import Probe, ProbeCategory, ProbeKind
from .registry import ProbeRegistry
from . import collectors

SCHEMA_VERSION = 1

STANDARD_PROBES = (
    Probe("nav", ProbeCategory.IDENTITY, ProbeKind.SYNC, collectors.collect_navigator,
          description="User agent, language, platform, CPU count, device memory"),
    Probe("screen", ProbeCategory.IDENTITY, ProbeKind.SYNC, collectors.collect_screen,
          description="Screen geometry and depth"),
    Probe("timezone", ProbeCategory.IDENTITY, ProbeKind.SYNC, collectors.collect_timezone,
          description="Timezone offset and name"),
    Probe("canvas", ProbeCategory.RENDERING, ProbeKind.SYNC, collectors.collect_canvas,
          description="Raster signature of a fixed canvas drawing"),
    Probe("webgl", ProbeCategory.GPU, ProbeKind.SYNC, collectors.collect_webgl,
          description="GPU vendor, renderer and parameters"),
    Probe("audio", ProbeCategory.AUDIO, ProbeKind.ASYNC, collectors.collect_audio,
          option="audio", description="Offline audio graph signature"),
    Probe("fonts", ProbeCategory.TYPOGRAPHY, ProbeKind.SYNC, collectors.collect_fonts,
          option="fonts", description="Installed fonts detected by text width"),
    Probe("media_devices", ProbeCategory.HARDWARE, ProbeKind.ASYNC, collectors.collect_media_devices,
          option="media_devices", description="Media device counts per kind"),
    Probe("connection", ProbeCategory.HARDWARE, ProbeKind.SYNC, collectors.collect_connection,
          description="Network connection hints"),
    Probe("battery", ProbeCategory.HARDWARE, ProbeKind.ASYNC, collectors.collect_battery,
          option="battery", description="Battery charging state and level"),
    Probe("permissions", ProbeCategory.PERMISSIONS, ProbeKind.ASYNC, collectors.collect_permissions,
          option="permissions", description="Permission grant states"),
)


def default_registry() -> ProbeRegistry:
    """Build and freeze a registry holding the standard schema."""
    registry = ProbeRegistry(schema_version=SCHEMA_VERSION)
    for probe in STANDARD_PROBES:
        registry.register(probe)
    return registry.freeze()
