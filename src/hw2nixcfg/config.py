"""Load synthesis configuration from hw2nixcfg.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from hw2nixcfg.errors import InputValidationError

DEFAULT_CONFIG_NAME = "hw2nixcfg.toml"


@dataclass
class OutputConfig:
    """Where host document sets are written: <root>/<host>/."""

    root: Path = field(default_factory=lambda: Path("hosts"))


@dataclass
class SecretsConfig:
    """Key file locations.

    runtime_dir is where the key appears inside the initrd; install_dir
    is where it is installed on the target system.
    """

    runtime_dir: str = "/"
    install_dir: str = "/etc/secrets/disks"


@dataclass
class BootloaderSettings:
    efi_mount_point: str = "/boot/efi"
    timeout: int | None = 1


@dataclass
class FilesystemsConfig:
    """Filesystem rendering options.

    explicit_support lists filesystem kinds that must be enabled via
    boot.supportedFilesystems when a partition uses them. plain_labels
    also emits `label` on non-encrypted fileSystems entries.
    """

    explicit_support: tuple[str, ...] = ("zfs",)
    plain_labels: bool = False


@dataclass
class HostConfig:
    """Fallback source for the host id when none is given."""

    machine_id: Path | None = field(default_factory=lambda: Path("/etc/machine-id"))


@dataclass
class SynthConfig:
    """Full configuration loaded from hw2nixcfg.toml."""

    output: OutputConfig = field(default_factory=OutputConfig)
    secrets: SecretsConfig = field(default_factory=SecretsConfig)
    bootloader: BootloaderSettings = field(default_factory=BootloaderSettings)
    filesystems: FilesystemsConfig = field(default_factory=FilesystemsConfig)
    host: HostConfig = field(default_factory=HostConfig)
    source: Path | None = None


def _section(data: dict, name: str) -> dict:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise InputValidationError(f"config: [{name}] must be a table", field=name)
    return section


def _value(section: dict, name: str, key: str, kind: type, default):
    """Return section[key] checked against kind, or default if absent."""
    if key not in section:
        return default
    value = section[key]
    # TOML booleans are Python bools, which isinstance() also accepts as int.
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise InputValidationError(
            f"config: [{name}] {key} must be {kind.__name__}, got {type(value).__name__}",
            field=f"{name}.{key}",
        )
    return value


def _string_list(section: dict, name: str, key: str, default: list[str]) -> tuple[str, ...]:
    values = _value(section, name, key, list, default)
    for value in values:
        if not isinstance(value, str):
            raise InputValidationError(
                f"config: [{name}] {key} must be a list of strings",
                field=f"{name}.{key}",
            )
    return tuple(values)


def _build_bootloader(data: dict) -> BootloaderSettings:
    section = _section(data, "bootloader")
    timeout = _value(section, "bootloader", "timeout", int, 1)
    # A negative timeout in the file means "leave boot.loader.timeout unset".
    if timeout < 0:
        timeout = None
    return BootloaderSettings(
        efi_mount_point=_value(section, "bootloader", "efi_mount_point", str, "/boot/efi"),
        timeout=timeout,
    )


def _build_filesystems(data: dict) -> FilesystemsConfig:
    section = _section(data, "filesystems")
    return FilesystemsConfig(
        explicit_support=_string_list(section, "filesystems", "explicit_support", ["zfs"]),
        plain_labels=_value(section, "filesystems", "plain_labels", bool, False),
    )


def _build_host(data: dict) -> HostConfig:
    section = _section(data, "host")
    machine_id = _value(section, "host", "machine_id", str, "/etc/machine-id")
    return HostConfig(machine_id=Path(machine_id) if machine_id else None)


def parse_config(data: dict, source: Path | None = None) -> SynthConfig:
    """Build a SynthConfig from parsed TOML data; missing keys use defaults.

    Raises:
        InputValidationError: A section is not a table or a value has the
            wrong type.
    """
    output = _section(data, "output")
    secrets = _section(data, "secrets")
    return SynthConfig(
        output=OutputConfig(root=Path(_value(output, "output", "root", str, "hosts"))),
        secrets=SecretsConfig(
            runtime_dir=_value(secrets, "secrets", "runtime_dir", str, "/"),
            install_dir=_value(secrets, "secrets", "install_dir", str, "/etc/secrets/disks"),
        ),
        bootloader=_build_bootloader(data),
        filesystems=_build_filesystems(data),
        host=_build_host(data),
        source=source,
    )


def load_config(config_path: Path | str | None = None) -> SynthConfig:
    """Load configuration from a TOML file.

    If config_path is None, looks for hw2nixcfg.toml in the current
    directory and falls back to defaults when there is none. An explicit
    path that does not exist is an error.

    Raises:
        InputValidationError: Missing explicit file or invalid TOML.
    """
    if config_path is None:
        path = Path(DEFAULT_CONFIG_NAME)
        if not path.exists():
            return SynthConfig()
    else:
        path = Path(config_path)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as e:
        raise InputValidationError(f"config file not found: {path}", field="config") from e
    except tomllib.TOMLDecodeError as e:
        raise InputValidationError(f"invalid config file {path}: {e}", field="config") from e

    return parse_config(data, source=path)
