"""Pipeline trace output for DeviceID.

Trace lines go to the ``deviceid.trace`` logger, which main.configure_logging
attaches to stderr alongside the other ``deviceid.*`` loggers. Stdout stays
reserved for the fingerprint itself.
"""
import logging
import os

DEBUG_ENV_VAR = "DEVICEID_DEBUG"

logger = logging.getLogger("deviceid.trace")


def is_debug_mode() -> bool:
    """True if DEVICEID_DEBUG is set to "1", "true" or "yes"."""
    return os.environ.get(DEBUG_ENV_VAR, "").lower() in ("1", "true", "yes")


def debug_print(message: str) -> None:
    """Emit a trace line when debug mode is on."""
    if is_debug_mode():
        logger.debug(message)
