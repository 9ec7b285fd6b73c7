"""Configuration management for DeviceID."""
from .settings import Settings, ProbeToggles, get_settings, load_config_file, Defaults

__all__ = ["Settings", "ProbeToggles", "get_settings", "load_config_file", "Defaults"]
