"""Capability providers backed by the local Python host.

These read the machine the interpreter runs on: platform and locale fields,
a Pillow raster canvas, Pillow font metrics, a numpy rendering of the audio
graph, psutil battery state and hashlib digests. Capabilities a desktop
process has no equivalent for (WebGL, media devices, permissions, connection
hints) are left out of the bundle.
"""
import asyncio
import base64
import hashlib
import locale
import logging
import math
import os
import platform
from datetime import datetime
from io import BytesIO
from typing import List, Optional, Sequence

import numpy as np
import psutil
from PIL import Image, ImageDraw, ImageFont

from config import Defaults
from core.debug import debug_print
from core.errors import CapabilityUnavailable, DigestUnavailable
from .base import (
    AudioGraphSpec,
    AudioProvider,
    BatteryProvider,
    BatteryState,
    CanvasProvider,
    DigestProvider,
    EnvironmentFields,
    EnvironmentProvider,
    FontProvider,
    HostCapabilities,
)

logger = logging.getLogger("deviceid.capabilities")


# Font files tried for the CSS generic families, first match wins
GENERIC_FONT_FILES = {
    "monospace": ["DejaVuSansMono.ttf", "LiberationMono-Regular.ttf", "cour.ttf", "Menlo.ttc"],
    "sans-serif": ["DejaVuSans.ttf", "LiberationSans-Regular.ttf", "arial.ttf", "Helvetica.ttc"],
    "serif": ["DejaVuSerif.ttf", "LiberationSerif-Regular.ttf", "times.ttf", "Times.ttc"],
}


def split_font_family(font_family: str) -> List[str]:
    """Split a CSS font-family list into bare family names.

    Args:
        font_family: e.g. "'Courier New', monospace"

    Returns:
        ["Courier New", "monospace"]
    """
    families = []
    for part in font_family.split(","):
        name = part.strip().strip("'\"").strip()
        if name:
            families.append(name)
    return families


def _try_truetype(candidates: Sequence[str], size_px: int) -> Optional[ImageFont.FreeTypeFont]:
    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size_px)
        except OSError:
            continue
    return None


def load_font(font_family: str, size_px: int):
    """Resolve a CSS font-family list to a Pillow font, falling back like a browser.

    Each family is tried in order; generic families map to common font files.
    When nothing resolves, Pillow's built-in default font is used.
    """
    for family in split_font_family(font_family):
        if family in GENERIC_FONT_FILES:
            candidates = GENERIC_FONT_FILES[family]
        else:
            candidates = [family, family.replace(" ", ""), f"{family}.ttf"]
        font = _try_truetype(candidates, size_px)
        if font is not None:
            return font
    return ImageFont.load_default(size=size_px)


# =============================================================================
# Providers
# =============================================================================

class LocalEnvironment(EnvironmentProvider):
    """Runtime, locale, CPU/memory and timezone of the local process.

    A headless process has no screen, so screen fields stay None.
    """

    def query_stable_environment_fields(self) -> EnvironmentFields:
        now = datetime.now().astimezone()
        offset = now.utcoffset()
        # Same sign convention as Date.getTimezoneOffset(): UTC - local
        offset_minutes = -int(offset.total_seconds() // 60) if offset is not None else None

        return EnvironmentFields(
            user_agent=self._user_agent(),
            language=self._language(),
            platform=platform.system().lower() or "unknown",
            hardware_concurrency=os.cpu_count() or psutil.cpu_count(logical=True),
            device_memory=self._device_memory(),
            timezone_offset=offset_minutes,
            timezone_name=now.tzname() or "",
        )

    @staticmethod
    def _user_agent() -> str:
        return (
            f"{platform.python_implementation()}/{platform.python_version()} "
            f"({platform.system()} {platform.release()}; {platform.machine()})"
        )

    @staticmethod
    def _language() -> str:
        lang = locale.getlocale()[0]
        if not lang:
            lang = os.environ.get("LC_ALL") or os.environ.get("LANG") or ""
            lang = lang.split(".")[0]
        return lang.replace("_", "-")

    @staticmethod
    def _device_memory() -> Optional[float]:
        """Total memory in GiB, rounded down to a power of two like navigator.deviceMemory."""
        try:
            total_gib = psutil.virtual_memory().total / (1024 ** 3)
        except (OSError, RuntimeError) as e:
            logger.debug(f"[ENV] Could not read memory size: {e}")
            return None
        if total_gib <= 0:
            return None
        return max(0.25, 2.0 ** math.floor(math.log2(total_gib)))


class PillowCanvas(CanvasProvider):
    """Draws the fixed canvas test sequence with Pillow and returns a PNG data URL."""

    TEXT = "DeviceFingerprintTest"

    def __init__(self, width: int = Defaults.CANVAS_WIDTH, height: int = Defaults.CANVAS_HEIGHT):
        self.width = width
        self.height = height

    def measure_canvas_signature(self) -> str:
        font = load_font("'Arial', sans-serif", 14)
        buffer = BytesIO()
        with Image.new("RGBA", (self.width, self.height), (0, 0, 0, 0)) as img:
            draw = ImageDraw.Draw(img, "RGBA")
            draw.rectangle((125, 1, 125 + 62, 1 + 20), fill="#f60")
            draw.text((2, 15), self.TEXT, font=font, fill="#069")
            draw.text((4, 17), self.TEXT, font=font, fill=(102, 204, 0, 178))
            img.save(buffer, format="PNG")
        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:image/png;base64,{encoded}"


class PillowFonts(FontProvider):
    """Text width measurement through Pillow's FreeType bindings."""

    def measure_text_width(self, font_family: str, test_string: str, size_px: int) -> float:
        font = load_font(font_family, size_px)
        return float(font.getlength(test_string))


class NumpyAudio(AudioProvider):
    """Offline rendering of the oscillator -> compressor -> gain graph with numpy.

    Rendering runs on a worker thread so the event loop keeps serving the
    other async probes.
    """

    async def render_offline_audio_samples(self, spec: AudioGraphSpec) -> Sequence[float]:
        samples = await asyncio.to_thread(render_audio_graph, spec)
        return samples.tolist()


def _oscillator(spec: AudioGraphSpec) -> np.ndarray:
    t = np.arange(spec.length, dtype=np.float64) / spec.sample_rate
    phase = np.mod(t * spec.frequency, 1.0)
    kind = spec.oscillator_type
    if kind == "sine":
        return np.sin(2 * np.pi * phase)
    if kind == "square":
        return np.where(phase < 0.5, 1.0, -1.0)
    if kind == "sawtooth":
        return 2.0 * phase - 1.0
    if kind == "triangle":
        return 1.0 - 4.0 * np.abs(phase - 0.5)
    raise ValueError(f"Unsupported oscillator type: {kind}")


def _compress(signal: np.ndarray, spec: AudioGraphSpec) -> np.ndarray:
    """Soft-knee feed-forward compressor with attack/release smoothing."""
    level_db = 20.0 * np.log10(np.maximum(np.abs(signal), 1e-12))
    over = level_db - spec.compressor_threshold
    knee = spec.compressor_knee
    slope = 1.0 / spec.compressor_ratio - 1.0

    reduction = np.zeros_like(level_db)
    in_knee = np.abs(2.0 * over) <= knee
    above = 2.0 * over > knee
    if knee > 0:
        reduction[in_knee] = slope * (over[in_knee] + knee / 2.0) ** 2 / (2.0 * knee)
    reduction[above] = slope * over[above]

    attack = math.exp(-1.0 / (spec.compressor_attack * spec.sample_rate)) if spec.compressor_attack > 0 else 0.0
    release = math.exp(-1.0 / (spec.compressor_release * spec.sample_rate)) if spec.compressor_release > 0 else 0.0

    envelope = np.empty_like(reduction)
    current = 0.0
    for i, target in enumerate(reduction):
        coeff = attack if target < current else release
        current = coeff * current + (1.0 - coeff) * target
        envelope[i] = current

    return signal * np.power(10.0, envelope / 20.0)


def render_audio_graph(spec: AudioGraphSpec) -> np.ndarray:
    """Render the audio graph to float32 samples."""
    signal = _oscillator(spec)
    signal = _compress(signal, spec)
    return (signal * spec.gain).astype(np.float32)


class PsutilBattery(BatteryProvider):
    """Battery state via psutil.sensors_battery()."""

    async def query_battery_state(self) -> BatteryState:
        battery = await asyncio.to_thread(self._read)
        if battery is None:
            raise CapabilityUnavailable("battery", "no battery reported by psutil")
        return BatteryState(
            charging=bool(battery.power_plugged),
            level_percent=int(round(battery.percent)),
        )

    @staticmethod
    def _read():
        sensors_battery = getattr(psutil, "sensors_battery", None)
        if sensors_battery is None:
            return None
        return sensors_battery()


class HashlibDigest(DigestProvider):
    """256-bit digest through hashlib.

    Algorithms whose digest is not 32 bytes are refused, so the identifier
    is always 64 hex characters.
    """

    def __init__(self, algorithm: str = Defaults.DIGEST_ALGORITHM):
        self.algorithm = algorithm
        self.digest_size = Defaults.DIGEST_SIZE

    def digest(self, data: bytes) -> bytes:
        try:
            hasher = hashlib.new(self.algorithm)
        except (ValueError, TypeError) as e:
            raise DigestUnavailable(f"hashlib cannot provide '{self.algorithm}': {e}") from e

        if hasher.digest_size != self.digest_size:
            raise DigestUnavailable(
                f"'{self.algorithm}' produces {hasher.digest_size * 8}-bit digests, "
                f"{self.digest_size * 8} required"
            )

        hasher.update(data)
        return hasher.digest()


def local_capabilities(digest_algorithm: str = Defaults.DIGEST_ALGORITHM) -> HostCapabilities:
    """Build the capability bundle for the local host.

    Args:
        digest_algorithm: hashlib algorithm for the digest provider

    Returns:
        HostCapabilities with the providers this process can offer
    """
    caps = HostCapabilities(
        environment=LocalEnvironment(),
        canvas=PillowCanvas(),
        audio=NumpyAudio(),
        fonts=PillowFonts(),
        battery=PsutilBattery(),
        digest=HashlibDigest(digest_algorithm),
    )
    debug_print(f"[CAPS] Local host offers: {', '.join(caps.available())}")
    return caps
