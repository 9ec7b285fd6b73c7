"""Probe definitions and registry.

Example usage:
    from probes import Probe, ProbeCategory, ProbeKind, ProbeRegistry

    def collect_locale(caps):
        return caps.require("environment").query_stable_environment_fields().language

    registry = ProbeRegistry(schema_version=1)
    registry.register(Probe("locale", ProbeCategory.IDENTITY, ProbeKind.SYNC, collect_locale))
    registry.freeze()
"""
from .base import Probe, ProbeCategory, ProbeKind
from .registry import ProbeRegistry
from .catalog import SCHEMA_VERSION, STANDARD_PROBES, default_registry

__all__ = [
    "Probe",
    "ProbeCategory",
    "ProbeKind",
    "ProbeRegistry",
    "SCHEMA_VERSION",
    "STANDARD_PROBES",
    "default_registry",
]
