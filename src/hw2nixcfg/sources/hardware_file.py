"""Hardware description parser: JSON layout → partition and encryption specs.

The layout lists disks and their partitions, plus optional explicit
encryption entries:

    {
      "host_id": "082dbc0f",
      "disks": [
        {"device": "/dev/disk/by-id/mmc-SU08G_0x21a906b7",
         "partitions": [
           {"id": "data_1", "number": 2, "fs_type": "ext4"},
           {"id": "system", "number": 4, "encrypted": true, "root": true}
         ]}
      ],
      "encryption": [{"partition": "system", "mapper_name": "system"}]
    }

Only shape, types and names are checked here (ids, labels, mapper and
key names must be non-empty and contain no "/"). Reference checks belong
to derivations.profile_builder.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from hw2nixcfg.errors import InputValidationError


@dataclass
class PartitionSpec:
    """A raw partition entry from the hardware description."""

    id: str
    block_device_path: str
    encrypted: bool = False
    label: str = ""
    fs_type: str = ""
    mount_point: str = ""
    is_root: bool = False


@dataclass
class EncryptionSpec:
    """A raw encryption entry: which partition, under which mapper name.

    Empty mapper_name and key_name fall back to the partition label and
    the run's key name respectively.
    """

    partition_id: str
    mapper_name: str = ""
    key_name: str = ""


@dataclass
class HardwareDescription:
    """Everything read from one hardware description file."""

    name: str
    partitions: list[PartitionSpec] = field(default_factory=list)
    encryption: list[EncryptionSpec] = field(default_factory=list)
    host_id: str = ""


def _check_type(value: Any, key: str, kind: type, where: str) -> Any:
    # bool is an int subclass; a partition number of `true` is a typo.
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise InputValidationError(
            f"{where}: {key!r} must be {kind.__name__}, got {type(value).__name__}",
            field=key,
        )
    return value


def _require(data: dict, key: str, kind: type, where: str) -> Any:
    if key not in data:
        raise InputValidationError(f"{where}: missing required key {key!r}", field=key)
    return _check_type(data[key], key, kind, where)


def _optional(data: dict, key: str, kind: type, where: str, default: Any) -> Any:
    if key not in data:
        return default
    return _check_type(data[key], key, kind, where)


def _optional_name(data: dict, key: str, where: str) -> str:
    """An optional name used in Nix attribute names and file paths."""
    if key not in data:
        return ""
    return _check_name(data[key], key, where)


def _check_name(value: Any, key: str, where: str) -> str:
    value = _check_type(value, key, str, where)
    if not value:
        raise InputValidationError(f"{where}: {key!r} must not be empty", field=key)
    if "/" in value or value in (".", ".."):
        raise InputValidationError(f"{where}: invalid {key!r}: {value!r}", field=key)
    return value


def _partition_device(disk_device: str, number: int | None, where: str) -> str:
    """Derive a partition path from its disk path using by-id naming."""
    if number is None:
        raise InputValidationError(
            f"{where}: needs either 'device' or 'number'", field="number",
        )
    if not disk_device:
        raise InputValidationError(
            f"{where}: 'number' given but the disk has no 'device'", field="device",
        )
    return f"{disk_device}-part{number}"


def _parse_partition(entry: Any, disk_device: str, where: str) -> PartitionSpec:
    if not isinstance(entry, dict):
        raise InputValidationError(f"{where}: partition must be an object")

    partition_id = _check_name(_require(entry, "id", str, where), "id", where)
    where = f"{where} ({partition_id})"

    device = _optional(entry, "device", str, where, "")
    if not device:
        number = _optional(entry, "number", int, where, None)
        device = _partition_device(disk_device, number, where)

    return PartitionSpec(
        id=partition_id,
        block_device_path=device,
        encrypted=_optional(entry, "encrypted", bool, where, False),
        label=_optional_name(entry, "label", where),
        fs_type=_optional(entry, "fs_type", str, where, ""),
        mount_point=_optional(entry, "mount_point", str, where, ""),
        is_root=_optional(entry, "root", bool, where, False),
    )


def _parse_encryption(entry: Any, where: str) -> EncryptionSpec:
    if not isinstance(entry, dict):
        raise InputValidationError(f"{where}: encryption entry must be an object")
    return EncryptionSpec(
        partition_id=_check_name(_require(entry, "partition", str, where), "partition", where),
        mapper_name=_optional_name(entry, "mapper_name", where),
        key_name=_optional_name(entry, "key_name", where),
    )


def parse_hardware(text: str, name: str) -> HardwareDescription:
    """Parse hardware description JSON into a HardwareDescription.

    Encrypted partitions that have no explicit entry in "encryption" get a
    default EncryptionSpec so every encrypted partition is covered.

    Args:
        text: JSON document text.
        name: Hardware name, used in messages and the environment document.

    Raises:
        InputValidationError: On malformed JSON or unexpected shapes/types.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InputValidationError(f"{name}: invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise InputValidationError(f"{name}: top level must be an object")

    disks = _optional(data, "disks", list, name, [])
    partitions: list[PartitionSpec] = []
    for disk_index, disk in enumerate(disks):
        where = f"{name}: disks[{disk_index}]"
        if not isinstance(disk, dict):
            raise InputValidationError(f"{where}: disk must be an object")
        disk_device = _optional(disk, "device", str, where, "")
        for part_index, entry in enumerate(_optional(disk, "partitions", list, where, [])):
            partitions.append(
                _parse_partition(entry, disk_device, f"{where}.partitions[{part_index}]")
            )

    encryption = [
        _parse_encryption(entry, f"{name}: encryption[{i}]")
        for i, entry in enumerate(_optional(data, "encryption", list, name, []))
    ]

    explicit = {spec.partition_id for spec in encryption}
    for partition in partitions:
        if partition.encrypted and partition.id not in explicit:
            encryption.append(EncryptionSpec(partition_id=partition.id))

    return HardwareDescription(
        name=name,
        partitions=partitions,
        encryption=encryption,
        host_id=_optional(data, "host_id", str, name, ""),
    )


def load_hardware(path: Path | str) -> HardwareDescription:
    """Read and parse a hardware description file.

    The hardware name is the file name without its extension.

    Raises:
        InputValidationError: If the file cannot be read or parsed.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InputValidationError(
            f"cannot read hardware description {path}: {e.strerror or e}",
            field="hardware",
        ) from e
    return parse_hardware(text, path.stem)
