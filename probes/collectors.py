"""Collector functions for the standard probes.

Each collector takes a HostCapabilities bundle and renders one signal as a
string. Collectors raise freely (CapabilityUnavailable, provider errors);
the executor turns any failure into the probe's fallback value.

Everything that feeds a collector's output is fixed here: the font list, the
permission list, the audio graph and the text used for measurement. Changing
any of them changes the fingerprint schema.
"""
import asyncio
import logging
from typing import Dict, Iterable, Optional

import mmh3

from capabilities.base import AudioGraphSpec, HostCapabilities, PermissionState
from core.errors import CapabilityUnavailable
from core.utils import format_number

logger = logging.getLogger("deviceid.probes")


# Fonts probed for presence, in output order
FONT_LIST = (
    "Andale Mono", "Arial", "Arial Black", "Arial Narrow", "Book Antiqua",
    "Bookman Old Style", "Calibri", "Cambria", "Century Gothic", "Comic Sans MS",
    "Consolas", "Courier New", "DejaVu Sans", "Garamond", "Georgia", "Helvetica",
    "Impact", "Liberation Mono", "Lucida Console", "Lucida Sans Unicode", "Menlo",
    "Monaco", "Noto Sans", "Palatino Linotype", "Segoe UI", "Tahoma",
    "Times New Roman", "Trebuchet MS", "Ubuntu", "Verdana",
)
BASELINE_FONTS = ("monospace", "sans-serif", "serif")
FONT_TEST_STRING = "mmmmmmmmmmlli"
FONT_TEST_SIZE = 72

# Permissions queried, in output order
PERMISSION_NAMES = (
    "geolocation", "notifications", "camera", "microphone",
    "clipboard-read", "persistent-storage",
)

AUDIO_GRAPH = AudioGraphSpec()


def _num(value: Optional[float], default: str = "") -> str:
    """Compact number rendering: 8.0 -> "8", 0.5 -> "0.5", None -> default."""
    if value is None:
        return default
    return f"{float(value):g}"


def _join(values: Iterable[str], sep: str = "|") -> str:
    return sep.join(values)


# =============================================================================
# identity
# =============================================================================

def collect_navigator(caps: HostCapabilities) -> str:
    """user agent | language | platform | hardware concurrency | device memory.

    Missing concurrency and memory count as 1.
    """
    env = caps.require("environment").query_stable_environment_fields()
    return _join([
        env.user_agent,
        env.language,
        env.platform,
        _num(env.hardware_concurrency, "1"),
        _num(env.device_memory, "1"),
    ])


def collect_screen(caps: HostCapabilities) -> str:
    """width x height x colour depth x pixel depth (depths only when reported)."""
    env = caps.require("environment").query_stable_environment_fields()
    if env.screen_width is None or env.screen_height is None:
        raise CapabilityUnavailable("environment", "no screen geometry")
    parts = [env.screen_width, env.screen_height]
    parts += [d for d in (env.color_depth, env.pixel_depth) if d is not None]
    return "x".join(str(int(p)) for p in parts)


def collect_timezone(caps: HostCapabilities) -> str:
    """Offset in minutes (UTC - local) | zone name."""
    env = caps.require("environment").query_stable_environment_fields()
    if env.timezone_offset is None:
        raise CapabilityUnavailable("environment", "no timezone offset")
    return _join([str(int(env.timezone_offset)), env.timezone_name])


# =============================================================================
# rendering / gpu
# =============================================================================

def collect_canvas(caps: HostCapabilities) -> str:
    return caps.require("canvas").measure_canvas_signature()


def collect_webgl(caps: HostCapabilities) -> str:
    """vendor | renderer | version | sorted extensions | precision."""
    gpu = caps.require("gpu").query_gpu_parameters()
    return _join([
        gpu.vendor,
        gpu.renderer,
        gpu.version,
        ",".join(sorted(gpu.extensions)),
        gpu.precision,
    ])


# =============================================================================
# audio
# =============================================================================

async def collect_audio(caps: HostCapabilities) -> str:
    """Sum and hash of a prefix of the offline-rendered signature graph.

    Output: "<sum of |samples|>:<mmh3 128-bit hex of the prefix>".
    """
    provider = caps.require("audio")
    samples = await provider.render_offline_audio_samples(AUDIO_GRAPH)

    prefix = list(samples[:AUDIO_GRAPH.prefix_length])
    if len(prefix) != AUDIO_GRAPH.prefix_length:
        raise ValueError(f"Audio render returned {len(samples)} samples, prefix needs {AUDIO_GRAPH.prefix_length}")

    total = sum(abs(float(s)) for s in prefix)
    text = ",".join(format_number(s, 7) for s in prefix)
    prefix_hash = format(mmh3.hash128(text.encode("utf-8"), signed=False), "032x")
    return f"{format_number(total, 6)}:{prefix_hash}"


# =============================================================================
# typography
# =============================================================================

def collect_fonts(caps: HostCapabilities) -> str:
    """Comma-separated list of installed fonts from FONT_LIST.

    A font counts as installed when text rendered with it (falling back to a
    baseline family) differs in width from the baseline family alone, for at
    least one baseline.
    """
    provider = caps.require("fonts")
    baseline: Dict[str, float] = {
        base: provider.measure_text_width(base, FONT_TEST_STRING, FONT_TEST_SIZE)
        for base in BASELINE_FONTS
    }

    detected = []
    for font in FONT_LIST:
        for base in BASELINE_FONTS:
            width = provider.measure_text_width(f"'{font}', {base}", FONT_TEST_STRING, FONT_TEST_SIZE)
            if width != baseline[base]:
                detected.append(font)
                break
    return ",".join(detected)


# =============================================================================
# hardware
# =============================================================================

async def collect_media_devices(caps: HostCapabilities) -> str:
    """kind=count pairs sorted by kind (no labels)."""
    counts = await caps.require("media_devices").enumerate_media_device_kinds()
    return ",".join(f"{kind}={int(count)}" for kind, count in sorted(counts.items()))


def collect_connection(caps: HostCapabilities) -> str:
    """effective type | downlink max | rtt."""
    hints = caps.require("connection").query_connection_hints()
    return _join([hints.effective_type, _num(hints.downlink_max), _num(hints.rtt)])


async def collect_battery(caps: HostCapabilities) -> str:
    """charging|<level> or discharging|<level>."""
    state = await caps.require("battery").query_battery_state()
    status = "charging" if state.charging else "discharging"
    return _join([status, str(int(state.level_percent))])


# =============================================================================
# permissions
# =============================================================================

async def collect_permissions(caps: HostCapabilities) -> str:
    """name=state pairs for PERMISSION_NAMES.

    All queries run concurrently. A single failed query reports "unknown"
    for that permission instead of failing the whole probe.
    """
    provider = caps.require("permissions")
    states = await asyncio.gather(
        *(provider.query_permission_state(name) for name in PERMISSION_NAMES),
        return_exceptions=True
    )

    pairs = []
    for name, state in zip(PERMISSION_NAMES, states):
        if isinstance(state, BaseException):
            logger.debug(f"[PERMISSIONS] Query for {name} failed: {state}")
            state = PermissionState.UNKNOWN
        else:
            state = PermissionState.parse(getattr(state, "value", state))
        pairs.append(f"{name}={state.value}")
    return ",".join(pairs)
