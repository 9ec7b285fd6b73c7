#!/usr/bin/env python3
"""DeviceID - stable device fingerprint from environment signals.

This is the main entry point for the DeviceID tool.

Usage:
    deviceid generate                       # Fingerprint this machine
    deviceid generate --snapshot FILE       # Fingerprint client-reported signals
    deviceid probes                         # List the probe schema
    deviceid config init                    # Create default config file
    deviceid config show                    # Show current configuration
"""
import os
import sys
import logging
from typing import List, Optional

from dotenv import load_dotenv

from core.debug import DEBUG_ENV_VAR, is_debug_mode

# Load environment variables from .env file
load_dotenv()


LOGGER_NAMES = [
    "deviceid.registry",
    "deviceid.executor",
    "deviceid.probes",
    "deviceid.capabilities",
    "deviceid.digest",
    "deviceid.service",
    "deviceid.cli",
    "deviceid.trace",
]


def configure_logging(verbose: bool = False):
    """Configure logging based on verbosity.
    
    Args:
        verbose: If True, enable debug logging for deviceid modules
    """
    debug_mode = verbose or is_debug_mode()

    # --verbose also turns on trace lines from debug_print
    if debug_mode:
        os.environ[DEBUG_ENV_VAR] = "1"
    
    level = logging.DEBUG if debug_mode else logging.WARNING
    
    for logger_name in LOGGER_NAMES:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        if not logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter("%(message)s"))
            logger.addHandler(handler)


def main(argv: Optional[List[str]] = None):
    """Main entry point - routes to subcommands."""
    from cli.args import parse_args
    from cli.commands import cmd_generate, cmd_probes, cmd_config
    
    # Command router
    commands = {
        "generate": cmd_generate,
        "probes": cmd_probes,
        "config": cmd_config,
    }
    
    args = parse_args(argv)
    
    verbose = getattr(args, 'verbose', False)
    configure_logging(verbose)
    
    handler = commands.get(args.command)
    if handler:
        exit_code = handler(args)
        sys.exit(exit_code)
    else:
        print(f"Unknown command: {args.command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
