"""Canonical serialization of probe results.

Format (schema version 1):

    name:value||name:value||...

Records appear in registry order, one per probe, empty values included.
Probe names never contain ':' or '|', so the first ':' of a record always
ends the name and ':' inside values is written as is. Inside values, '\\' is
written as '\\\\' and '|' as '\\|', so '||' in the output is always a record
separator. Values without backslashes or pipes are written verbatim.
"""
import re
from typing import List, Sequence, Tuple

from core.models import ProbeResult

FIELD_SEPARATOR = ":"
RECORD_SEPARATOR = "||"

_UNESCAPE = re.compile(r"\\(.)", re.DOTALL)


def escape_value(value: str) -> str:
    """Escape backslashes and pipes in a field value."""
    return value.replace("\\", "\\\\").replace("|", "\\|")


def unescape_value(value: str) -> str:
    """Invert escape_value()."""
    return _UNESCAPE.sub(r"\1", value)


def serialize(results: Sequence[ProbeResult]) -> str:
    """Build the canonical string for an ordered result sequence.

    Args:
        results: Probe results in registry order

    Returns:
        Canonical string

    Raises:
        ValueError: If a result name contains a separator character
    """
    records = []
    for result in results:
        if FIELD_SEPARATOR in result.name or "|" in result.name or "\\" in result.name:
            raise ValueError(f"Probe name '{result.name}' contains a separator character")
        records.append(f"{result.name}{FIELD_SEPARATOR}{escape_value(result.value)}")
    return RECORD_SEPARATOR.join(records)


def _split_records(text: str) -> List[str]:
    records: List[str] = []
    current: List[str] = []
    i = 0
    while i < len(text):
        if text[i] == "\\" and i + 1 < len(text):
            current.append(text[i:i + 2])
            i += 2
        elif text.startswith(RECORD_SEPARATOR, i):
            records.append("".join(current))
            current = []
            i += len(RECORD_SEPARATOR)
        else:
            current.append(text[i])
            i += 1
    records.append("".join(current))
    return records


def parse(text: str) -> List[Tuple[str, str]]:
    """Split a canonical string back into (name, value) pairs.

    Args:
        text: Output of serialize()

    Returns:
        List of (name, value) in record order

    Raises:
        ValueError: If a record has no field separator
    """
    if not text:
        return []

    pairs = []
    for record in _split_records(text):
        name, sep, raw_value = record.partition(FIELD_SEPARATOR)
        if not sep:
            raise ValueError(f"Malformed canonical record: '{record[:50]}'")
        pairs.append((name, unescape_value(raw_value)))
    return pairs
