"""Utility functions shared across the pipeline."""
import time
from datetime import datetime, timezone


def utc_now_iso() -> str:
    """Get current UTC timestamp in ISO 8601 format with Z suffix.
    
    Returns:
        ISO formatted timestamp (e.g., "2025-12-06T12:30:00.123456Z")
    """
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def elapsed_ms(start: float) -> int:
    """Milliseconds elapsed since a ``time.perf_counter()`` reading."""
    return int((time.perf_counter() - start) * 1000)


def format_number(value: float, precision: int = 6) -> str:
    """Render a float with fixed precision and no trailing noise.

    Used wherever a numeric measurement enters the canonical string, so that
    the textual form does not depend on repr() details.

    Args:
        value: Number to render
        precision: Digits after the decimal point

    Returns:
        Fixed-precision string (e.g., "124.043473")
    """
    text = f"{float(value):.{precision}f}"
    if text.startswith("-") and float(text) == 0:
        text = text[1:]
    return text
