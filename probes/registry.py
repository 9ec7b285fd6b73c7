"""Probe registry.

The registry is an ordered catalogue of probes. Its order is the field order
of the canonical string, so it is part of the fingerprint schema: adding,
removing or reordering probes changes every fingerprint and must come with a
schema_version bump.

Registries are explicit values. Build one, register probes, freeze it, then
hand it to the executor and service. Nothing is global.
"""
import hashlib
import logging
from typing import Dict, Iterator, List, Optional, Tuple

from core.errors import RegistryFrozenError
from .base import Probe

logger = logging.getLogger("deviceid.registry")


class ProbeRegistry:
    """Ordered, freezable catalogue of probes.

    Example:
        registry = ProbeRegistry(schema_version=1)
        registry.register(nav_probe)
        registry.register(canvas_probe)
        registry.freeze()

        for probe in registry.all():
            print(probe.name)
    """

    def __init__(self, schema_version: int = 1):
        self.schema_version = schema_version
        self._probes: Dict[str, Probe] = {}
        self._order: Tuple[Probe, ...] = ()
        self._frozen = False

    def register(self, probe: Probe) -> None:
        """Register a probe at the end of the current order.

        Args:
            probe: The probe to register

        Raises:
            RegistryFrozenError: If the registry is frozen
            ValueError: If a probe with the same name is already registered
        """
        if self._frozen:
            raise RegistryFrozenError(f"Cannot register '{probe.name}': registry is frozen")
        if probe.name in self._probes:
            raise ValueError(f"Probe '{probe.name}' already registered")
        self._probes[probe.name] = probe
        self._order = self._order + (probe,)
        logger.debug(f"[REGISTRY] Registered {probe.name} ({probe.category.value}, {probe.kind.value})")

    def freeze(self) -> "ProbeRegistry":
        """End initialization. Further register() calls fail.

        Returns:
            self, for chaining
        """
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def all(self) -> Tuple[Probe, ...]:
        """All probes in registration order."""
        return self._order

    def names(self) -> List[str]:
        """Probe names in registration order."""
        return [p.name for p in self._order]

    def get(self, name: str) -> Optional[Probe]:
        """Get a probe by name, or None."""
        return self._probes.get(name)

    @property
    def schema_id(self) -> str:
        """Short digest of the ordered name:category list.

        Two registries with the same schema_id produce comparable
        fingerprints; any change to order, names or categories changes it.
        """
        layout = "|".join(f"{p.name}:{p.category.value}" for p in self._order)
        return hashlib.sha256(f"v{self.schema_version}|{layout}".encode("utf-8")).hexdigest()[:12]

    def info(self) -> List[Dict]:
        """Describe every probe, in order."""
        return [
            {
                "position": index + 1,
                "name": p.name,
                "category": p.category.value,
                "kind": p.kind.value,
                "option": p.option,
                "description": p.description,
            }
            for index, p in enumerate(self._order)
        ]

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Probe]:
        return iter(self._order)

    def __contains__(self, name: str) -> bool:
        return name in self._probes

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"<ProbeRegistry(v{self.schema_version}, {len(self)} probes, {state})>"
