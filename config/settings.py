"""Settings and configuration management for DeviceID.

Configuration is loaded from (in order of precedence):
1. CLI arguments (highest priority)
2. Environment variables (DEVICEID_*)
3. Config file (./deviceid.yaml or ~/.deviceid/config.yaml)
4. Built-in defaults (lowest priority)

IMPORTANT: All default values should be defined HERE only.
Other modules should import from config to avoid duplication.
"""
import os
from pathlib import Path
from typing import Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator
from functools import lru_cache
import yaml


# =============================================================================
# SINGLE SOURCE OF TRUTH: Default Values
# =============================================================================
# All default values are defined here. Do NOT duplicate in other files.

class Defaults:
    """Central location for all default values."""

    # Optional probe toggles
    FONTS = True
    AUDIO = True
    BATTERY = False          # Volatile signal, off unless asked for
    MEDIA_DEVICES = True
    PERMISSIONS = True

    # Executor
    PROBE_TIMEOUT = 5.0      # Seconds per async probe (None = wait forever)

    # Digest
    DIGEST_ALGORITHM = "sha256"
    DIGEST_SIZE = 32         # Bytes (256 bits -> 64 hex chars)

    # Local capability providers
    CANVAS_WIDTH = 300
    CANVAS_HEIGHT = 150
    AUDIO_SAMPLE_RATE = 44100

    @classmethod
    def get_toggles(cls) -> Dict[str, bool]:
        """Get default probe toggles as dictionary."""
        return {
            "fonts": cls.FONTS,
            "audio": cls.AUDIO,
            "battery": cls.BATTERY,
            "media_devices": cls.MEDIA_DEVICES,
            "permissions": cls.PERMISSIONS,
        }


# =============================================================================
# Configuration Models
# =============================================================================

class ProbeToggles(BaseModel):
    """Per-signal enable/disable switches.

    identity, rendering and gpu probes always run. A disabled probe still
    occupies its slot in the canonical string with an empty value.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    fonts: bool = Field(default=Defaults.FONTS, description="Enable typography probe")
    audio: bool = Field(default=Defaults.AUDIO, description="Enable audio-signature probe")
    battery: bool = Field(default=Defaults.BATTERY, description="Enable battery-state probe")
    media_devices: bool = Field(
        default=Defaults.MEDIA_DEVICES,
        alias="mediaDevices",
        description="Enable device-kind-count probe"
    )
    permissions: bool = Field(default=Defaults.PERMISSIONS, description="Enable permission-state probe")

    def is_enabled(self, option: Optional[str]) -> bool:
        """Check whether a probe gated by ``option`` should run.

        Args:
            option: Toggle name, or None for always-on probes

        Returns:
            True if the probe runs

        Raises:
            KeyError: If the option is not a known toggle
        """
        if option is None:
            return True
        if option not in type(self).model_fields:
            raise KeyError(f"Unknown probe option: {option}")
        return bool(getattr(self, option))


class ExecutorConfig(BaseModel):
    """Probe executor settings."""
    probe_timeout: Optional[float] = Field(
        default=Defaults.PROBE_TIMEOUT,
        description="Per-probe timeout in seconds for async probes (null = no timeout)"
    )

    @field_validator("probe_timeout")
    @classmethod
    def _positive_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError("probe_timeout must be positive or null")
        return value


class DigestConfig(BaseModel):
    """Digest engine settings."""
    algorithm: str = Field(default=Defaults.DIGEST_ALGORITHM, description="256-bit hashlib algorithm")


class OutputConfig(BaseModel):
    """Output formatting."""
    as_json: bool = Field(default=False, description="Emit JSON instead of plain text")
    explain: bool = Field(default=False, description="Include per-probe results")


class Settings(BaseModel):
    """Main settings container."""
    probes: ProbeToggles = Field(default_factory=ProbeToggles)
    executor: ExecutorConfig = Field(default_factory=ExecutorConfig)
    digest: DigestConfig = Field(default_factory=DigestConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    def load_overrides_from_env(self) -> None:
        """Apply DEVICEID_* environment overrides.

        Values go through the same validation as the config file.

        Raises:
            ValidationError: If an override is not a valid value
        """
        timeout = os.getenv("DEVICEID_PROBE_TIMEOUT")
        if timeout:
            value = None if timeout.lower() in ("none", "null", "0") else timeout
            self.executor = ExecutorConfig(probe_timeout=value)

        algorithm = os.getenv("DEVICEID_DIGEST_ALGORITHM")
        if algorithm:
            self.digest = DigestConfig(algorithm=algorithm)


# =============================================================================
# Config File Loading
# =============================================================================

def find_config_file() -> Optional[Path]:
    """Find config file in standard locations.

    Search order:
    1. ./deviceid.yaml (current directory)
    2. ~/.deviceid/config.yaml (user home)
    3. ~/.config/deviceid/config.yaml (XDG config)
    """
    locations = [
        Path("./deviceid.yaml"),
        Path("./deviceid.yml"),
        Path.home() / ".deviceid" / "config.yaml",
        Path.home() / ".deviceid" / "config.yml",
        Path.home() / ".config" / "deviceid" / "config.yaml",
    ]

    for path in locations:
        if path.exists():
            return path

    return None


def load_config_file(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        path: Optional explicit path, otherwise searches standard locations

    Returns:
        Dictionary of config values (empty if no file found)
    """
    if path is None:
        path = find_config_file()

    if path is None or not path.exists():
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
        return config
    except (OSError, yaml.YAMLError) as e:
        print(f"[WARNING] Failed to load config file {path}: {e}")
        return {}


def merge_config(base: Dict, override: Dict) -> Dict:
    """Deep merge two config dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_config(result[key], value)
        else:
            result[key] = value
    return result


@lru_cache()
def get_settings(config_file: Optional[str] = None) -> Settings:
    """Get settings instance (cached).

    Loads from config file and environment variables.

    Args:
        config_file: Optional explicit config file path

    Returns:
        Settings instance with merged configuration
    """
    file_config = load_config_file(Path(config_file) if config_file else None)

    if file_config:
        settings = Settings.model_validate(file_config)
    else:
        settings = Settings()

    settings.load_overrides_from_env()

    return settings


def create_default_config_file(path: Path = None) -> Path:
    """Create a default config file with all options documented.

    Args:
        path: Where to create the file (default: ./deviceid.yaml)

    Returns:
        Path to created file
    """
    if path is None:
        path = Path("./deviceid.yaml")

    default_config = """\
# DeviceID Configuration File
# ===========================
# Place this file in:
#   - ./deviceid.yaml (current directory)
#   - ~/.deviceid/config.yaml (user home)
#   - ~/.config/deviceid/config.yaml (XDG config)

# Optional probes. identity, rendering and gpu probes always run.
# Disabling a probe keeps its slot in the canonical string (empty value),
# so the schema does not change, but the resulting fingerprint does.
probes:
  fonts: true              # Installed-font detection
  audio: true              # Offline audio rendering signature
  battery: false           # Battery state (volatile, off by default)
  media_devices: true      # Media device kind counts
  permissions: true        # Permission grant states

# Probe executor
executor:
  probe_timeout: 5.0       # Seconds per async probe (null = wait indefinitely)

# Digest engine
digest:
  algorithm: "sha256"      # sha256, sha3_256 or blake2s (all 256-bit)

# CLI output
output:
  as_json: false           # Emit JSON
  explain: false           # Include per-probe results
"""

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(default_config)

    return path
