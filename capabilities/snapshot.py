"""Capability providers that replay a recorded signal snapshot.

A snapshot is the set of raw signals a remote client (typically a browser
running a small collector script) reports to a server: navigator and screen
fields, the canvas data URL, WebGL parameters, audio samples, installed fonts,
device counts and so on. Replaying it through the same probes yields the same
identifier the client-side pipeline would compute.

Sections missing from the snapshot become unavailable capabilities.
"""
import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import yaml
from pydantic import BaseModel, Field

from config import Defaults
from core.errors import CapabilityUnavailable
from .base import (
    AudioGraphSpec,
    AudioProvider,
    BatteryProvider,
    BatteryState,
    CanvasProvider,
    ConnectionHints,
    ConnectionProvider,
    EnvironmentFields,
    EnvironmentProvider,
    FontProvider,
    GPUParameters,
    GPUProvider,
    HostCapabilities,
    MediaDeviceProvider,
    PermissionProvider,
    PermissionState,
)
from .local import HashlibDigest, split_font_family


# =============================================================================
# Snapshot document
# =============================================================================

class EnvironmentSnapshot(BaseModel):
    """navigator/screen/timezone section."""
    user_agent: str = ""
    language: str = ""
    platform: str = ""
    hardware_concurrency: Optional[int] = None
    device_memory: Optional[float] = None
    screen_width: Optional[int] = None
    screen_height: Optional[int] = None
    color_depth: Optional[int] = None
    pixel_depth: Optional[int] = None
    timezone_offset: Optional[int] = None
    timezone_name: str = ""


class GPUSnapshot(BaseModel):
    """WebGL parameters section."""
    vendor: str = ""
    renderer: str = ""
    version: str = ""
    extensions: List[str] = Field(default_factory=list)
    precision: str = ""


class BatterySnapshot(BaseModel):
    charging: bool
    level_percent: int


class ConnectionSnapshot(BaseModel):
    effective_type: str = ""
    downlink_max: Optional[float] = None
    rtt: Optional[int] = None


class SignalSnapshot(BaseModel):
    """Raw signals reported by a client.

    Every section is optional. audio_samples holds the rendered samples of the
    signature graph (at least the hashed prefix), installed_fonts the
    font families the client detected.
    """
    environment: Optional[EnvironmentSnapshot] = None
    canvas: Optional[str] = None
    gpu: Optional[GPUSnapshot] = None
    audio_samples: Optional[List[float]] = None
    installed_fonts: Optional[List[str]] = None
    media_devices: Optional[Dict[str, int]] = None
    permissions: Optional[Dict[str, str]] = None
    battery: Optional[BatterySnapshot] = None
    connection: Optional[ConnectionSnapshot] = None


def load_snapshot(path: Path) -> SignalSnapshot:
    """Load a snapshot document from JSON or YAML.

    Args:
        path: .json, .yaml or .yml file

    Returns:
        Parsed SignalSnapshot

    Raises:
        ValueError: If the file format is not supported or cannot be parsed
        pydantic.ValidationError: If the document does not match the schema
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        elif path.suffix.lower() in (".yaml", ".yml"):
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path.name}: {e}") from e
        else:
            raise ValueError(f"Unsupported snapshot format: {path.suffix}")
    return SignalSnapshot.model_validate(data)


# =============================================================================
# Replay providers
# =============================================================================

class SnapshotEnvironment(EnvironmentProvider):
    def __init__(self, section: EnvironmentSnapshot):
        self.section = section

    def query_stable_environment_fields(self) -> EnvironmentFields:
        return EnvironmentFields(**self.section.model_dump())


class SnapshotCanvas(CanvasProvider):
    def __init__(self, data_url: str):
        self.data_url = data_url

    def measure_canvas_signature(self) -> str:
        return self.data_url


class SnapshotGPU(GPUProvider):
    def __init__(self, section: GPUSnapshot):
        self.section = section

    def query_gpu_parameters(self) -> GPUParameters:
        return GPUParameters(
            vendor=self.section.vendor,
            renderer=self.section.renderer,
            version=self.section.version,
            extensions=tuple(self.section.extensions),
            precision=self.section.precision,
        )


class SnapshotAudio(AudioProvider):
    """Returns the recorded samples; they must cover the hashed prefix."""

    def __init__(self, samples: Sequence[float]):
        self.samples = list(samples)

    async def render_offline_audio_samples(self, spec: AudioGraphSpec) -> Sequence[float]:
        if len(self.samples) < spec.prefix_length:
            raise CapabilityUnavailable(
                "audio", f"snapshot holds {len(self.samples)} samples, {spec.prefix_length} needed"
            )
        return self.samples


class SnapshotFonts(FontProvider):
    """Synthesises text widths from a list of installed fonts.

    Generic families get fixed baseline widths; a named family that is in the
    installed list gets a width offset from every baseline, a missing one
    falls through to the next family in the list. Detection by width
    comparison therefore reports exactly the installed list.
    """

    BASELINE_WIDTHS = {"monospace": 600.0, "sans-serif": 560.0, "serif": 540.0}

    def __init__(self, installed: Sequence[str]):
        self.installed = {name.lower(): name for name in installed}

    def measure_text_width(self, font_family: str, test_string: str, size_px: int) -> float:
        families = split_font_family(font_family)
        for family in families:
            if family in self.BASELINE_WIDTHS:
                return self.BASELINE_WIDTHS[family]
            if family.lower() in self.installed:
                return 500.0 + (sum(family.encode("utf-8")) % 97) + 0.5
        raise CapabilityUnavailable("fonts", f"no baseline family in '{font_family}'")


class SnapshotMediaDevices(MediaDeviceProvider):
    def __init__(self, counts: Dict[str, int]):
        self.counts = dict(counts)

    async def enumerate_media_device_kinds(self) -> Dict[str, int]:
        return dict(self.counts)


class SnapshotPermissions(PermissionProvider):
    """Unlisted permissions report PermissionState.UNKNOWN."""

    def __init__(self, states: Dict[str, str]):
        self.states = dict(states)

    async def query_permission_state(self, name: str) -> PermissionState:
        return PermissionState.parse(self.states.get(name, PermissionState.UNKNOWN.value))


class SnapshotBattery(BatteryProvider):
    def __init__(self, section: BatterySnapshot):
        self.section = section

    async def query_battery_state(self) -> BatteryState:
        return BatteryState(charging=self.section.charging, level_percent=self.section.level_percent)


class SnapshotConnection(ConnectionProvider):
    def __init__(self, section: ConnectionSnapshot):
        self.section = section

    def query_connection_hints(self) -> ConnectionHints:
        return ConnectionHints(**self.section.model_dump())


def snapshot_capabilities(
    snapshot: SignalSnapshot,
    digest_algorithm: str = Defaults.DIGEST_ALGORITHM
) -> HostCapabilities:
    """Build a capability bundle replaying a snapshot.

    Args:
        snapshot: Recorded client signals
        digest_algorithm: hashlib algorithm for the digest provider

    Returns:
        HostCapabilities with one provider per present section
    """
    return HostCapabilities(
        environment=SnapshotEnvironment(snapshot.environment) if snapshot.environment else None,
        canvas=SnapshotCanvas(snapshot.canvas) if snapshot.canvas is not None else None,
        gpu=SnapshotGPU(snapshot.gpu) if snapshot.gpu else None,
        audio=SnapshotAudio(snapshot.audio_samples) if snapshot.audio_samples is not None else None,
        fonts=SnapshotFonts(snapshot.installed_fonts) if snapshot.installed_fonts is not None else None,
        media_devices=SnapshotMediaDevices(snapshot.media_devices) if snapshot.media_devices is not None else None,
        permissions=SnapshotPermissions(snapshot.permissions) if snapshot.permissions is not None else None,
        battery=SnapshotBattery(snapshot.battery) if snapshot.battery else None,
        connection=SnapshotConnection(snapshot.connection) if snapshot.connection else None,
        digest=HashlibDigest(digest_algorithm),
    )
