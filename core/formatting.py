"""Shared formatting utilities."""
from typing import Dict, List

from core.models import FingerprintReport


def print_section_header(title: str, char: str = "=", width: int = 70) -> None:
    """Print a section header.

    Args:
        title: Title to print
        char: Character for the line (default: "=")
        width: Line width (default: 70)
    """
    print("\n" + char * width)
    print(title)
    print(char * width)


def truncate(value: str, width: int = 40) -> str:
    """Shorten long values (canvas data URLs) for display."""
    if len(value) <= width:
        return value
    return value[:width - 3] + "..."


def print_report(report: FingerprintReport) -> None:
    """Print a fingerprint report with per-probe status.

    Args:
        report: The report to display
    """
    print_section_header("FINGERPRINT REPORT")
    print(f"Fingerprint: {report.fingerprint}")
    print(f"Schema: v{report.schema_version} ({report.schema_id})")
    print(f"Algorithm: {report.algorithm}")
    print(f"Generated: {report.generated_at}")

    print(f"\nProbes:")
    for result in report.results:
        if result.skipped:
            status = "-"
            detail = "disabled"
        elif result.succeeded:
            status = "✓"
            detail = truncate(result.value) or "(empty)"
        else:
            status = "✗"
            detail = result.error or "failed"
        print(f"  {status} {result.name:<14} {detail}")

    print(f"\nSucceeded: {report.succeeded_count}  "
          f"Fallback: {report.failed_count}  "
          f"Disabled: {report.skipped_count}")
    print("=" * 70)


def print_probe_table(schema_version: int, schema_id: str, probes: List[Dict]) -> None:
    """Print the probe schema table.

    Args:
        schema_version: Registry schema version
        schema_id: Registry schema id
        probes: ProbeRegistry.info() output
    """
    print_section_header(f"PROBE SCHEMA v{schema_version} ({schema_id})")
    print(f"  {'#':>2}  {'name':<14} {'category':<12} {'kind':<6} {'option':<14} description")
    for p in probes:
        option = p["option"] or "always"
        print(f"  {p['position']:>2}  {p['name']:<14} {p['category']:<12} {p['kind']:<6} {option:<14} {p['description']}")
    print("=" * 70)
