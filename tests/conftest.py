"""Shared pytest configuration and fixtures for the DeviceID test suite."""

import sys
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from capabilities.snapshot import SignalSnapshot, snapshot_capabilities  # noqa: E402
from config.settings import get_settings  # noqa: E402
from probes.catalog import default_registry  # noqa: E402


# =============================================================================
# Snapshot data
# =============================================================================

def snapshot_data() -> dict:
    """A complete, deterministic set of client signals."""
    return {
        "environment": {
            "user_agent": "Mozilla/5.0 (X11; Linux x86_64) Test/1.0",
            "language": "en-US",
            "platform": "Linux x86_64",
            "hardware_concurrency": 8,
            "device_memory": 8,
            "screen_width": 1920,
            "screen_height": 1080,
            "color_depth": 24,
            "pixel_depth": 24,
            "timezone_offset": -120,
            "timezone_name": "Europe/Berlin",
        },
        "canvas": "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAASwAAACWCAYAAABkW7XSAAAA",
        "gpu": {
            "vendor": "Google Inc. (Intel)",
            "renderer": "ANGLE (Intel, Mesa Intel(R) UHD Graphics 620)",
            "version": "WebGL 1.0 (OpenGL ES 2.0 Chromium)",
            "extensions": ["OES_texture_float", "ANGLE_instanced_arrays", "EXT_blend_minmax"],
            "precision": "highp/23",
        },
        "audio_samples": [((i * 37) % 200 - 100) / 1000.0 for i in range(5000)],
        "installed_fonts": ["Arial", "Courier New", "DejaVu Sans", "Verdana"],
        "media_devices": {"videoinput": 1, "audioinput": 2, "audiooutput": 1},
        "permissions": {"geolocation": "prompt", "notifications": "denied", "camera": "granted"},
        "battery": {"charging": True, "level_percent": 87},
        "connection": {"effective_type": "4g", "downlink_max": 10.0, "rtt": 50},
    }


def make_snapshot(**overrides) -> SignalSnapshot:
    """Build a snapshot, replacing whole sections with the given overrides."""
    data = snapshot_data()
    data.update(overrides)
    return SignalSnapshot.model_validate(data)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep settings independent of the developer's environment and config files."""
    for name in ("DEVICEID_PROBE_TIMEOUT", "DEVICEID_DIGEST_ALGORITHM", "DEVICEID_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def snapshot():
    return make_snapshot()


@pytest.fixture
def capabilities(snapshot):
    return snapshot_capabilities(snapshot)


@pytest.fixture
def registry():
    return default_registry()
