"""Base classes for host capability providers.

A capability provider is the host-specific accessor behind a probe: canvas
rendering, GPU parameters, offline audio, font metrics and so on. Probes never
touch the host directly; they ask a HostCapabilities bundle for the provider
they need. A capability that the host lacks is simply left out of the bundle
and HostCapabilities.require() raises CapabilityUnavailable for it.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Dict, List, Optional, Sequence

from config import Defaults
from core.errors import CapabilityUnavailable


class PermissionState(str, Enum):
    """Grant state of a host permission."""
    GRANTED = "granted"
    DENIED = "denied"
    PROMPT = "prompt"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str) -> "PermissionState":
        """Parse a reported state, mapping anything unrecognised to UNKNOWN."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class EnvironmentFields:
    """Stable, user-agent-equivalent environment attributes.

    Attributes:
        user_agent: User agent or runtime identification string
        language: Preferred locale (e.g., "en-US")
        platform: Platform identifier (e.g., "linux", "MacIntel")
        hardware_concurrency: Logical CPU count
        device_memory: Approximate device memory in GiB
        screen_width: Screen width in CSS pixels
        screen_height: Screen height in CSS pixels
        color_depth: Screen colour depth in bits
        pixel_depth: Screen pixel depth in bits
        timezone_offset: Minutes to add to local time to get UTC
        timezone_name: IANA or abbreviated zone name
    """
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


@dataclass(frozen=True)
class GPUParameters:
    """WebGL-style GPU description."""
    vendor: str = ""
    renderer: str = ""
    version: str = ""
    extensions: Sequence[str] = field(default_factory=tuple)
    precision: str = ""


@dataclass(frozen=True)
class BatteryState:
    """Battery snapshot."""
    charging: bool
    level_percent: int


@dataclass(frozen=True)
class ConnectionHints:
    """Network information hints."""
    effective_type: str = ""
    downlink_max: Optional[float] = None
    rtt: Optional[int] = None


@dataclass(frozen=True)
class AudioGraphSpec:
    """Fixed offline audio graph: oscillator -> compressor -> gain.

    The default values are the signature graph; changing any of them changes
    every audio signature and therefore the schema.
    """
    sample_rate: int = Defaults.AUDIO_SAMPLE_RATE
    length: int = 5000
    oscillator_type: str = "triangle"
    frequency: float = 10000.0
    compressor_threshold: float = -50.0   # dB
    compressor_knee: float = 40.0         # dB
    compressor_ratio: float = 12.0
    compressor_attack: float = 0.0        # seconds
    compressor_release: float = 0.25      # seconds
    gain: float = 1.0
    prefix_length: int = 500              # Leading samples that make up the signature


# =============================================================================
# Provider interfaces
# =============================================================================

class EnvironmentProvider(ABC):
    """Source of stable navigator/screen/timezone fields."""
    name = "environment"

    @abstractmethod
    def query_stable_environment_fields(self) -> EnvironmentFields:
        pass


class CanvasProvider(ABC):
    """Renders the fixed drawing sequence and returns its raster signature."""
    name = "canvas"

    @abstractmethod
    def measure_canvas_signature(self) -> str:
        pass


class GPUProvider(ABC):
    """Reports GPU vendor/renderer parameters."""
    name = "gpu"

    @abstractmethod
    def query_gpu_parameters(self) -> GPUParameters:
        pass


class AudioProvider(ABC):
    """Renders an audio graph offline (no audible output)."""
    name = "audio"

    @abstractmethod
    async def render_offline_audio_samples(self, spec: AudioGraphSpec) -> Sequence[float]:
        pass


class FontProvider(ABC):
    """Measures rendered text width for a CSS-style font family list."""
    name = "fonts"

    @abstractmethod
    def measure_text_width(self, font_family: str, test_string: str, size_px: int) -> float:
        pass


class MediaDeviceProvider(ABC):
    """Enumerates media devices by kind (counts only, no labels)."""
    name = "media_devices"

    @abstractmethod
    async def enumerate_media_device_kinds(self) -> Dict[str, int]:
        pass


class PermissionProvider(ABC):
    """Queries the current grant state of a named permission."""
    name = "permissions"

    @abstractmethod
    async def query_permission_state(self, name: str) -> PermissionState:
        pass


class BatteryProvider(ABC):
    """Reports battery charging state and level."""
    name = "battery"

    @abstractmethod
    async def query_battery_state(self) -> BatteryState:
        pass


class ConnectionProvider(ABC):
    """Reports network connection hints."""
    name = "connection"

    @abstractmethod
    def query_connection_hints(self) -> ConnectionHints:
        pass


class DigestProvider(ABC):
    """Cryptographic digest primitive."""
    name = "digest"
    algorithm = "unknown"
    digest_size = 32

    @abstractmethod
    def digest(self, data: bytes) -> bytes:
        pass


@dataclass(frozen=True)
class HostCapabilities:
    """Bundle of the capability providers a host offers.

    Every field is optional; a None field means the capability is unavailable
    on this host. Probes obtain providers through require(), which turns
    absence into CapabilityUnavailable.

    Example:
        caps = HostCapabilities(environment=LocalEnvironment(), canvas=PillowCanvas())
        caps.require("canvas").measure_canvas_signature()
        caps.require("gpu")  # raises CapabilityUnavailable
    """
    environment: Optional[EnvironmentProvider] = None
    canvas: Optional[CanvasProvider] = None
    gpu: Optional[GPUProvider] = None
    audio: Optional[AudioProvider] = None
    fonts: Optional[FontProvider] = None
    media_devices: Optional[MediaDeviceProvider] = None
    permissions: Optional[PermissionProvider] = None
    battery: Optional[BatteryProvider] = None
    connection: Optional[ConnectionProvider] = None
    digest: Optional[DigestProvider] = None

    def require(self, name: str):
        """Get a provider by capability name.

        Args:
            name: Capability name (a field of this bundle)

        Returns:
            The provider

        Raises:
            CapabilityUnavailable: If the host does not offer it
            KeyError: If the name is not a known capability
        """
        if name not in self.names():
            raise KeyError(f"Unknown capability: {name}")
        provider = getattr(self, name)
        if provider is None:
            raise CapabilityUnavailable(name)
        return provider

    def is_available(self, name: str) -> bool:
        """Whether the host offers a capability."""
        return getattr(self, name, None) is not None

    def available(self) -> List[str]:
        """Names of the capabilities present in this bundle."""
        return [n for n in self.names() if getattr(self, n) is not None]

    @classmethod
    def names(cls) -> List[str]:
        """All capability names in declaration order."""
        return [f.name for f in fields(cls)]
