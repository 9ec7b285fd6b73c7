"""Data models for probe results and fingerprint reports."""
from typing import List, Optional, Dict
from pydantic import BaseModel, ConfigDict, Field

from core.utils import utc_now_iso


class ProbeResult(BaseModel):
    """Outcome of a single probe for one generate() call."""
    model_config = ConfigDict(frozen=True)

    name: str
    value: str = ""
    succeeded: bool = False

    # Execution details (diagnostic only, never serialized into the fingerprint)
    skipped: bool = False            # Disabled by configuration
    error: Optional[str] = None      # Error message if the collector failed
    duration_ms: Optional[int] = None

    @classmethod
    def disabled(cls, name: str) -> "ProbeResult":
        """Result for a probe switched off by configuration."""
        return cls(name=name, value="", succeeded=False, skipped=True)

    def model_dump(self, **kwargs) -> dict:
        """Override to exclude None values and default flags."""
        kwargs.setdefault('exclude_none', True)
        data = super().model_dump(**kwargs)
        if not data.get('skipped'):
            data.pop('skipped', None)
        return data


class FingerprintReport(BaseModel):
    """Fingerprint plus everything needed to explain how it was derived."""
    fingerprint: str
    schema_version: int
    schema_id: str
    algorithm: str
    canonical: str
    results: List[ProbeResult] = Field(default_factory=list)
    generated_at: str = Field(default_factory=utc_now_iso)

    @property
    def succeeded_count(self) -> int:
        return sum(1 for r in self.results if r.succeeded)

    @property
    def skipped_count(self) -> int:
        return sum(1 for r in self.results if r.skipped)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if not r.succeeded and not r.skipped)

    def errors(self) -> Dict[str, str]:
        """Map of probe name to error message for failed probes."""
        return {r.name: r.error for r in self.results if r.error}

    def model_dump(self, **kwargs) -> dict:
        """Override to dump nested results through their own model_dump."""
        data = super().model_dump(**kwargs)
        data['results'] = [r.model_dump() for r in self.results]
        data['summary'] = {
            "succeeded": self.succeeded_count,
            "skipped": self.skipped_count,
            "failed": self.failed_count,
        }
        return data
