"""CLI argument parsing and configuration."""
import argparse
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from pathlib import Path

# Import defaults from config - single source of truth
from config import Defaults
from config.settings import Settings, merge_config


# =============================================================================
# Shared Argument Helpers
# =============================================================================

def _add_toggle_args(parser_or_group) -> None:
    """Add probe toggle arguments.

    Each toggle defaults to None so that only flags actually given override
    the config file.
    """
    parser_or_group.add_argument(
        "--no-fonts",
        dest="fonts",
        action="store_const",
        const=False,
        default=None,
        help=f"Disable the typography probe (default: {'on' if Defaults.FONTS else 'off'})"
    )
    parser_or_group.add_argument(
        "--no-audio",
        dest="audio",
        action="store_const",
        const=False,
        default=None,
        help=f"Disable the audio-signature probe (default: {'on' if Defaults.AUDIO else 'off'})"
    )
    parser_or_group.add_argument(
        "--battery",
        dest="battery",
        action="store_const",
        const=True,
        default=None,
        help=f"Enable the battery-state probe (default: {'on' if Defaults.BATTERY else 'off'})"
    )
    parser_or_group.add_argument(
        "--no-media-devices",
        dest="media_devices",
        action="store_const",
        const=False,
        default=None,
        help=f"Disable the media-device probe (default: {'on' if Defaults.MEDIA_DEVICES else 'off'})"
    )
    parser_or_group.add_argument(
        "--no-permissions",
        dest="permissions",
        action="store_const",
        const=False,
        default=None,
        help=f"Disable the permission-state probe (default: {'on' if Defaults.PERMISSIONS else 'off'})"
    )


# =============================================================================
# Configuration Dataclasses
# =============================================================================

TOGGLE_NAMES = ("fonts", "audio", "battery", "media_devices", "permissions")


@dataclass
class GenerateConfig:
    """'generate' subcommand configuration."""
    snapshot: Optional[Path] = None
    config_file: Optional[str] = None
    toggles: Dict[str, bool] = field(default_factory=dict)   # Only flags given on the CLI
    timeout: Optional[float] = None
    no_timeout: bool = False
    algorithm: Optional[str] = None
    explain: bool = False
    as_json: bool = False

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "GenerateConfig":
        """Create config from parsed arguments."""
        toggles = {
            name: getattr(args, name)
            for name in TOGGLE_NAMES
            if getattr(args, name, None) is not None
        }
        snapshot = getattr(args, "snapshot", None)
        return cls(
            snapshot=Path(snapshot) if snapshot else None,
            config_file=getattr(args, "config", None),
            toggles=toggles,
            timeout=getattr(args, "timeout", None),
            no_timeout=getattr(args, "no_timeout", False),
            algorithm=getattr(args, "algorithm", None),
            explain=getattr(args, "explain", False),
            as_json=getattr(args, "json", False),
        )

    def overrides(self) -> Dict[str, Any]:
        """Settings overrides expressed as a nested dict."""
        overrides: Dict[str, Any] = {}
        if self.toggles:
            overrides["probes"] = dict(self.toggles)
        if self.no_timeout:
            overrides["executor"] = {"probe_timeout": None}
        elif self.timeout is not None:
            overrides["executor"] = {"probe_timeout": self.timeout}
        if self.algorithm:
            overrides["digest"] = {"algorithm": self.algorithm}
        output = {}
        if self.explain:
            output["explain"] = True
        if self.as_json:
            output["as_json"] = True
        if output:
            overrides["output"] = output
        return overrides

    def apply(self, settings: Settings) -> Settings:
        """Return a new Settings with CLI overrides applied on top."""
        merged = merge_config(settings.model_dump(), self.overrides())
        return Settings.model_validate(merged)


# ============================================================================
# Subcommand Parsers
# ============================================================================

def _add_generate_parser(subparsers) -> None:
    """Add 'generate' subcommand."""
    parser = subparsers.add_parser(
        "generate",
        help="Derive the device fingerprint",
        description="Sample the environment signals and print the device fingerprint.",
        epilog="""
Examples:
  deviceid generate
  deviceid generate --no-audio --battery
  deviceid generate --snapshot client_signals.json --explain
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "-s", "--snapshot",
        metavar="FILE",
        type=str,
        default=None,
        help="Replay client-reported signals from a JSON/YAML snapshot instead of the local host"
    )
    parser.add_argument(
        "-c", "--config",
        metavar="FILE",
        type=str,
        default=None,
        help="Config file (default: search ./deviceid.yaml, ~/.deviceid/config.yaml)"
    )

    toggles = parser.add_argument_group("probe toggles")
    _add_toggle_args(toggles)

    execution = parser.add_argument_group("execution")
    execution.add_argument(
        "-t", "--timeout",
        metavar="SECONDS",
        type=float,
        default=None,
        help=f"Per-probe timeout for async probes (default: {Defaults.PROBE_TIMEOUT})"
    )
    execution.add_argument(
        "--no-timeout",
        action="store_true",
        help="Wait indefinitely for async probes"
    )
    execution.add_argument(
        "--algorithm",
        metavar="NAME",
        type=str,
        default=None,
        help=f"256-bit hashlib algorithm (default: {Defaults.DIGEST_ALGORITHM})"
    )

    output = parser.add_argument_group("output")
    output.add_argument(
        "--explain",
        action="store_true",
        help="Show per-probe results and the canonical string"
    )
    output.add_argument(
        "--json",
        action="store_true",
        help="Emit JSON"
    )
    parser.set_defaults(command="generate")


def _add_probes_parser(subparsers) -> None:
    """Add 'probes' subcommand."""
    parser = subparsers.add_parser(
        "probes",
        help="List the probe schema",
        description="List registered probes in canonical order with schema version and id."
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit JSON"
    )
    parser.set_defaults(command="probes")


def _add_config_parser(subparsers) -> None:
    """Add 'config' subcommand for configuration management."""
    parser = subparsers.add_parser(
        "config",
        help="Manage configuration",
        description="Generate or show configuration file."
    )
    parser.add_argument(
        "action",
        choices=["init", "show", "path"],
        nargs="?",
        default="show",
        help="Action: init (create config file), show (display current config), path (show config file location)"
    )
    parser.add_argument(
        "-o", "--output",
        metavar="PATH",
        type=str,
        default="./deviceid.yaml",
        help="Output path for config file (default: ./deviceid.yaml)"
    )
    parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Overwrite an existing config file without asking"
    )
    parser.set_defaults(command="config")


# ============================================================================
# Main Parser
# ============================================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="deviceid",
        description="DeviceID - stable device fingerprint from environment signals",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Subcommands:
  generate      Derive the device fingerprint
  probes        List the probe schema
  config        Manage configuration file

Examples:
  # Generate default config file
  deviceid config init

  # Fingerprint this machine
  deviceid generate
  deviceid generate --explain

  # Fingerprint signals reported by a browser
  deviceid generate --snapshot signals.json --json
        """
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(
        title="commands",
        dest="command",
        metavar="<command>"
    )

    _add_generate_parser(subparsers)
    _add_probes_parser(subparsers)
    _add_config_parser(subparsers)

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # If no command specified, show help
    if not args.command:
        parser.print_help()
        raise SystemExit(0)

    return args
