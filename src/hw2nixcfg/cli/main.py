"""CLI entry point for hw2nixcfg.

Subcommands:
    env        Synthesize and write the document set for a host.
    validate   Run synthesis and the consistency checks, write nothing.
    info       Show the effective configuration.

Exit codes: 0 success, 2 invalid input, 3 inconsistent hardware
description, 4 inconsistent documents, 5 write failure.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from hw2nixcfg.errors import SynthesisError
from hw2nixcfg.utils.terminal import print_error, print_warning


def _load_config(args: argparse.Namespace):
    from hw2nixcfg.config import load_config

    return load_config(getattr(args, "config", None))


def _prepare(args: argparse.Namespace):
    """Load config, hardware description and identity from the arguments.

    Returns (config, description, identity).
    """
    from hw2nixcfg.derivations.identity import build_identity, resolve_host_id
    from hw2nixcfg.sources.hardware_file import load_hardware

    config = _load_config(args)
    description = load_hardware(args.hardware)

    host_id = resolve_host_id(args.host_id, description.host_id, config.host.machine_id)
    identity = build_identity(
        host_name=args.host,
        host_id=host_id,
        key_name=args.key_name,
        key_source_path=args.key_path,
        wifi_ssid=args.wpa_ssid,
        wifi_password=args.wpa_password,
        hardware=description.name,
    )
    return config, description, identity


def _report_warnings(validation) -> None:
    for violation in validation.warnings:
        print_warning(f"{violation.code}: {violation.message}")


# ---------------------------------------------------------------------------
# Subcommand: env
# ---------------------------------------------------------------------------

def cmd_env(args: argparse.Namespace) -> int:
    """Synthesize the document set for a host and write it."""
    from hw2nixcfg.constraints.consistency import check_host_id_unique
    from hw2nixcfg.emit import write_documents
    from hw2nixcfg.pipeline import synthesize

    config, description, identity = _prepare(args)
    result = synthesize(description, identity, config)
    result.raise_for_errors()

    if args.stdout:
        _report_warnings(result.validation)
        for document in sorted(result.documents.values(), key=lambda d: d.filename):
            print(f"# === {document.filename} ===")
            print(document.text, end="")
        return 0

    output_root = Path(args.output) if args.output else config.output.root
    result.validation.extend(
        check_host_id_unique(identity.host_name, identity.host_id, output_root)
    )
    _report_warnings(result.validation)

    output_dir = output_root / identity.host_name
    paths = write_documents(result.documents, output_dir)
    for path in paths:
        print(f"  {path.name}: wrote {path.stat().st_size} bytes")
    print(f"\nGenerated {len(paths)} document(s) in {output_dir}/")
    return 0


# ---------------------------------------------------------------------------
# Subcommand: validate
# ---------------------------------------------------------------------------

def cmd_validate(args: argparse.Namespace) -> int:
    """Run the pipeline and print the consistency report."""
    from hw2nixcfg.errors import ConsistencyError
    from hw2nixcfg.pipeline import synthesize

    config, description, identity = _prepare(args)
    result = synthesize(description, identity, config)

    print(f"Host:       {identity.host_name} ({identity.host_id})")
    print(f"Partitions: {len(result.profile.partitions)}")
    print(f"Encrypted:  {len(result.profile.encrypted_mounts)}")
    print(f"Secrets:    {len(result.profile.secrets)}")
    print()
    print(result.validation.report())

    return ConsistencyError.exit_code if result.validation.has_errors else 0


# ---------------------------------------------------------------------------
# Subcommand: info
# ---------------------------------------------------------------------------

def cmd_info(args: argparse.Namespace) -> int:
    """Show the effective configuration."""
    config = _load_config(args)

    print(f"Config:      {config.source or '(defaults)'}")
    print(f"Output root: {config.output.root}")
    print()
    print("Secrets:")
    print(f"  runtime dir: {config.secrets.runtime_dir}")
    print(f"  install dir: {config.secrets.install_dir}")
    print()
    print("Bootloader:")
    print(f"  EFI mount point: {config.bootloader.efi_mount_point}")
    timeout = config.bootloader.timeout
    print(f"  timeout:         {timeout if timeout is not None else '(unset)'}")
    print()
    print("Filesystems:")
    print(f"  explicit support: {', '.join(config.filesystems.explicit_support) or '(none)'}")
    print(f"  plain labels:     {'yes' if config.filesystems.plain_labels else 'no'}")
    print()
    print(f"Host id fallback: {config.host.machine_id or '(none)'}")
    return 0


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def _add_synthesis_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--hardware", required=True,
        help="Path to the hardware description (JSON)",
    )
    parser.add_argument("--host", required=True, help="Host name")
    parser.add_argument(
        "--key-name", required=True,
        help="File name of the disk key",
    )
    parser.add_argument(
        "--key-path", required=True,
        help="Directory the key material is generated in",
    )
    parser.add_argument("--wpa-ssid", help="WiFi SSID (requires --wpa-password)")
    parser.add_argument("--wpa-password", help="WiFi password (requires --wpa-ssid)")
    parser.add_argument(
        "--host-id",
        help="networking.hostId (default: from the hardware description, "
             "then the machine-id file)",
    )


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="hw2nixcfg",
        description="Generate NixOS disk, boot and host configuration from a hardware description.",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to hw2nixcfg.toml (default: ./hw2nixcfg.toml if present)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # env
    env_parser = subparsers.add_parser("env", help="Generate the document set for a host")
    _add_synthesis_arguments(env_parser)
    env_parser.add_argument(
        "-o", "--output",
        help="Output root directory (default: [output] root from the config)",
    )
    env_parser.add_argument(
        "--stdout", action="store_true",
        help="Print documents to stdout instead of writing files",
    )

    # validate
    validate_parser = subparsers.add_parser("validate", help="Run consistency checks only")
    _add_synthesis_arguments(validate_parser)

    # info
    subparsers.add_parser("info", help="Show the effective configuration")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "env": cmd_env,
        "validate": cmd_validate,
        "info": cmd_info,
    }

    try:
        return commands[args.command](args)
    except SynthesisError as e:
        print_error(f"{e.kind}: {e}")
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
