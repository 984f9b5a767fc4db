"""Host identity derivation: validate CLI parameters, resolve the host id."""

from __future__ import annotations

import re
from pathlib import Path

from hw2nixcfg.errors import InputValidationError
from hw2nixcfg.models.identity import HostIdentity

_HOST_NAME_RE = re.compile(r'^[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?$')

HOST_ID_LENGTH = 8


def read_machine_host_id(path: Path | str) -> str:
    """Return the first 8 characters of a machine-id file.

    Raises:
        InputValidationError: If the file cannot be read or is too short.
    """
    path = Path(path)
    try:
        machine_id = path.read_text(encoding="ascii").strip()
    except (OSError, UnicodeDecodeError) as e:
        raise InputValidationError(
            f"cannot read host id from {path}: {e}", field="host_id",
        ) from e
    if len(machine_id) < HOST_ID_LENGTH:
        raise InputValidationError(
            f"{path} holds {machine_id!r}, too short for a host id", field="host_id",
        )
    return machine_id[:HOST_ID_LENGTH]


def resolve_host_id(
    explicit: str | None,
    described: str = "",
    machine_id_path: Path | str | None = None,
) -> str:
    """Pick the host id: command line, then hardware description, then machine-id.

    The value is not format-checked here; a malformed id is reported by
    the consistency checker so it appears alongside the other violations.
    """
    if explicit:
        return explicit
    if described:
        return described
    if machine_id_path is None:
        raise InputValidationError("no host id given and no machine-id file configured",
                                   field="host_id")
    return read_machine_host_id(machine_id_path)


def build_identity(
    host_name: str,
    host_id: str,
    key_name: str,
    key_source_path: str,
    wifi_ssid: str | None = None,
    wifi_password: str | None = None,
    hardware: str = "",
) -> HostIdentity:
    """Validate run parameters and build the HostIdentity.

    Raises:
        InputValidationError: On an invalid host name, a lone WiFi
            credential, or an empty/invalid key name or key path.
    """
    if not host_name or not _HOST_NAME_RE.match(host_name):
        raise InputValidationError(f"invalid host name: {host_name!r}", field="host")

    if bool(wifi_ssid) != bool(wifi_password):
        raise InputValidationError(
            "--wpa-ssid and --wpa-password must be given together", field="wpa-ssid",
        )

    if not key_name or "/" in key_name or key_name in (".", ".."):
        raise InputValidationError(f"invalid key name: {key_name!r}", field="key-name")

    if not key_source_path:
        raise InputValidationError("key path must not be empty", field="key-path")

    return HostIdentity(
        host_name=host_name,
        host_id=host_id,
        wifi_ssid=wifi_ssid or "",
        wifi_password=wifi_password or "",
        key_name=key_name,
        key_source_path=key_source_path,
        hardware=hardware,
    )
