"""Probe definition.

A probe is one named collector of one environment signal. Probes are plain
frozen values: the registry orders them, the executor runs them.
"""
import inspect
import re
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from capabilities.base import HostCapabilities


class ProbeCategory(str, Enum):
    """What kind of signal a probe samples."""
    IDENTITY = "identity"
    RENDERING = "rendering"
    GPU = "gpu"
    AUDIO = "audio"
    TYPOGRAPHY = "typography"
    HARDWARE = "hardware"
    PERMISSIONS = "permissions"


class ProbeKind(str, Enum):
    """Whether the collector is a plain function or a coroutine function."""
    SYNC = "sync"
    ASYNC = "async"


Collector = Callable[[HostCapabilities], Union[str, Awaitable[str]]]

# Names never contain a serializer separator
PROBE_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


@dataclass(frozen=True)
class Probe:
    """A named signal collector.

    Attributes:
        name: Unique key, also the field name in the canonical string
        category: Signal category
        kind: sync or async
        collector: Function of a HostCapabilities bundle returning the value
        fallback: Value recorded when the collector fails
        option: Configuration toggle gating this probe (None = always runs)
        description: Human-readable description
    """
    name: str
    category: ProbeCategory
    kind: ProbeKind
    collector: Collector
    fallback: str = ""
    option: Optional[str] = None
    description: str = ""

    def __post_init__(self):
        if not PROBE_NAME_PATTERN.match(self.name):
            raise ValueError(f"Invalid probe name '{self.name}': must match {PROBE_NAME_PATTERN.pattern}")
        if not isinstance(self.fallback, str):
            raise TypeError(f"Probe '{self.name}' fallback must be a string")

        is_coroutine = inspect.iscoroutinefunction(self.collector)
        if self.kind == ProbeKind.ASYNC and not is_coroutine:
            raise ValueError(f"Async probe '{self.name}' needs a coroutine function collector")
        if self.kind == ProbeKind.SYNC and is_coroutine:
            raise ValueError(f"Sync probe '{self.name}' has a coroutine function collector")

    @property
    def is_async(self) -> bool:
        return self.kind == ProbeKind.ASYNC

    def __repr__(self) -> str:
        return f"<Probe(name={self.name}, category={self.category.value}, kind={self.kind.value})>"
