"""CLI module for DeviceID."""
from .args import parse_args, create_parser, GenerateConfig
from .commands import cmd_generate, cmd_probes, cmd_config

__all__ = [
    "parse_args",
    "create_parser",
    "GenerateConfig",
    "cmd_generate",
    "cmd_probes",
    "cmd_config",
]
