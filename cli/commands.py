"""CLI subcommand implementations."""
import json
import logging
from pathlib import Path

from core.errors import DigestUnavailable
from core.formatting import print_probe_table, print_report

logger = logging.getLogger("deviceid.cli")


def cmd_generate(args) -> int:
    """Derive and print the device fingerprint.

    Args:
        args: Parsed arguments with snapshot, toggles, timeout, output flags

    Returns:
        Exit code (0 = success, 1 = bad input, 2 = digest unavailable)
    """
    from pydantic import ValidationError

    from capabilities.local import local_capabilities
    from capabilities.snapshot import load_snapshot, snapshot_capabilities
    from cli.args import GenerateConfig
    from config.settings import get_settings
    from pipeline.service import FingerprintService

    config = GenerateConfig.from_args(args)

    try:
        settings = config.apply(get_settings(config.config_file))
    except ValidationError as e:
        print(f"[!] Invalid configuration: {e}")
        return 1

    if config.snapshot:
        try:
            snapshot = load_snapshot(config.snapshot)
        except (OSError, ValueError) as e:
            print(f"[!] Could not load snapshot {config.snapshot}: {e}")
            return 1
        capabilities = snapshot_capabilities(snapshot, settings.digest.algorithm)
    else:
        capabilities = local_capabilities(settings.digest.algorithm)

    service = FingerprintService.from_settings(settings, capabilities=capabilities)

    try:
        report = service.explain_sync()
    except DigestUnavailable as e:
        logger.error(f"[CLI] {e}")
        print(f"[!] Digest unavailable: {e}")
        return 2

    if settings.output.as_json:
        data = report.model_dump() if settings.output.explain else {
            "fingerprint": report.fingerprint,
            "schema_version": report.schema_version,
            "schema_id": report.schema_id,
        }
        print(json.dumps(data, indent=2))
    elif settings.output.explain:
        print_report(report)
        print(f"\nCanonical string:\n{report.canonical}")
    else:
        print(report.fingerprint)

    return 0


def cmd_probes(args) -> int:
    """List the probe schema.

    Args:
        args: Parsed arguments with json flag

    Returns:
        Exit code (0 = success)
    """
    from probes.catalog import default_registry

    registry = default_registry()

    if getattr(args, "json", False):
        print(json.dumps({
            "schema_version": registry.schema_version,
            "schema_id": registry.schema_id,
            "probes": registry.info(),
        }, indent=2))
    else:
        print_probe_table(registry.schema_version, registry.schema_id, registry.info())

    return 0


def cmd_config(args) -> int:
    """Manage configuration.

    Args:
        args: Parsed arguments with action (init, show, path)

    Returns:
        Exit code (0 = success, 1 = cancelled or invalid configuration)
    """
    from config.settings import (
        get_settings,
        create_default_config_file,
        find_config_file
    )

    action = getattr(args, 'action', 'show')

    if action == "init":
        output_path = Path(args.output)
        if output_path.exists() and not getattr(args, 'force', False):
            print(f"[!] Config file already exists: {output_path}")
            response = input("Overwrite? [y/N]: ").strip().lower()
            if response != 'y':
                print("Cancelled.")
                return 1

        created_path = create_default_config_file(output_path)
        print(f"\n[✓] Created config file: {created_path}")
        print("\nEdit this file to customize:")
        print("  - Optional probes (fonts, audio, battery, media_devices, permissions)")
        print("  - Per-probe timeout")
        print("  - Digest algorithm")
        return 0

    elif action == "show":
        from pydantic import ValidationError

        try:
            settings = get_settings()
        except ValidationError as e:
            print(f"[!] Invalid configuration: {e}")
            return 1

        print("\n" + "=" * 70)
        print("CURRENT CONFIGURATION")
        print("=" * 70)

        config_file = find_config_file()
        if config_file:
            print(f"Config file: {config_file}")
        else:
            print("Config file: None (using defaults)")

        print("\n[Probes]")
        for name, enabled in settings.probes.model_dump().items():
            print(f"  {name:<14} {'on' if enabled else 'off'}")

        print("\n[Executor]")
        timeout = settings.executor.probe_timeout
        print(f"  probe_timeout: {f'{timeout}s' if timeout is not None else 'none'}")

        print("\n[Digest]")
        print(f"  algorithm: {settings.digest.algorithm}")
        print("=" * 70)
        return 0

    elif action == "path":
        config_file = find_config_file()
        if config_file:
            print(config_file.resolve())
        else:
            print("No config file found")
        return 0

    return 1
