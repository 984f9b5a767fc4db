"""Cross-document consistency rules.

Generators render each document independently from the same profile, so
nothing but these rules guarantees the documents still agree with each
other. Every rule reports under its own code:

    unmatched_device_mapper_reference  encrypted fileSystems ↔ LUKS devices
    encrypted_block_device_mismatch    encrypted.blkdev ↔ LUKS device path
    unresolved_key_file_reference      key files ↔ initrd secrets
    malformed_host_id                  networking.hostId format
    bootloader_encryption_mismatch     enableCryptodisk ↔ encrypted mounts
    duplicate_block_device             one partition per block device
    duplicate_mount_point              one fileSystems entry per mount name
    missing_document                   all core documents rendered
    missing_import                     default.nix imports every Nix file
"""

from __future__ import annotations

import re
from collections import Counter
from pathlib import Path

from hw2nixcfg.constraints.errors import ConstraintViolation, Severity, ValidationResult
from hw2nixcfg.models.documents import (
    CORE_KINDS,
    BootloaderLayer,
    DiskEncryptionLayer,
    DocumentKind,
    DocumentSet,
    FileSystemLayer,
    ImportsLayer,
    SecretsLayer,
)
from hw2nixcfg.models.hardware import MAPPER_DIR, HardwareProfile

_HOST_ID_RE = re.compile(r'^[0-9a-f]{8}$')
_HOST_ID_NIX_RE = re.compile(r'networking\.hostId\s*=\s*"([^"]*)"')

UNMATCHED_DEVICE_MAPPER_REFERENCE = "unmatched_device_mapper_reference"
ENCRYPTED_BLOCK_DEVICE_MISMATCH = "encrypted_block_device_mismatch"
UNRESOLVED_KEY_FILE_REFERENCE = "unresolved_key_file_reference"
MALFORMED_HOST_ID = "malformed_host_id"
BOOTLOADER_ENCRYPTION_MISMATCH = "bootloader_encryption_mismatch"
DUPLICATE_BLOCK_DEVICE = "duplicate_block_device"
DUPLICATE_MOUNT_POINT = "duplicate_mount_point"
MISSING_DOCUMENT = "missing_document"
MISSING_IMPORT = "missing_import"
DUPLICATE_HOST_ID = "duplicate_host_id"


def _layer(documents: DocumentSet, kind: DocumentKind, layer_type: type):
    """Return the typed layer of a document, or None if it is absent."""
    document = documents.get(kind)
    if document is None or not isinstance(document.layer, layer_type):
        return None
    return document.layer


def _error(code: str, message: str, entity: str = "",
           document: DocumentKind | None = None) -> ConstraintViolation:
    return ConstraintViolation(
        severity=Severity.ERROR,
        code=code,
        message=message,
        entity=entity,
        document=document,
    )


# ---------------------------------------------------------------------------
# Document set
# ---------------------------------------------------------------------------

def check_document_set(documents: DocumentSet) -> ValidationResult:
    """Every core document kind must be present with the right layer type."""
    result = ValidationResult()
    for kind in CORE_KINDS:
        if kind not in documents:
            result.add(_error(
                MISSING_DOCUMENT, f"{kind.filename} was not rendered",
                entity=kind.filename, document=kind,
            ))
    return result


def check_imports(documents: DocumentSet) -> ValidationResult:
    """default.nix, when present, must import every other Nix document."""
    result = ValidationResult()
    imports = _layer(documents, DocumentKind.IMPORTS, ImportsLayer)
    if imports is None:
        return result

    imported = set(imports.imports)
    for kind in sorted(documents, key=lambda k: k.filename):
        if not kind.is_nix or kind is DocumentKind.IMPORTS:
            continue
        path = f"./{kind.filename}"
        if path not in imported:
            result.add(_error(
                MISSING_IMPORT, f"{path} is not imported",
                entity=path, document=DocumentKind.IMPORTS,
            ))
    return result


# ---------------------------------------------------------------------------
# Device-mapper and block device references
# ---------------------------------------------------------------------------

def check_device_mapper_references(documents: DocumentSet) -> ValidationResult:
    """Encrypted fileSystems entries and LUKS devices must pair up one-to-one.

    Checks:
    - every mapper name in an `encrypted` block names exactly one LUKS device
    - every LUKS device is referenced by exactly one `encrypted` block
    - an encrypted entry mounts /dev/mapper/<its mapper name>
    - an `encrypted.blkdev` equals the block device of its LUKS device
    """
    result = ValidationResult()
    devices = _layer(documents, DocumentKind.DISK_ENCRYPTION, DiskEncryptionLayer)
    filesystems = _layer(documents, DocumentKind.FILESYSTEMS, FileSystemLayer)
    if devices is None or filesystems is None:
        return result

    luks_by_name: dict[str, list] = {}
    for device in devices.devices:
        luks_by_name.setdefault(device.name, []).append(device)

    for name, entries in luks_by_name.items():
        if len(entries) > 1:
            result.add(_error(
                UNMATCHED_DEVICE_MAPPER_REFERENCE,
                f"LUKS device {name!r} is declared {len(entries)} times",
                entity=name, document=DocumentKind.DISK_ENCRYPTION,
            ))

    references: Counter[str] = Counter()
    for fs in filesystems.filesystems:
        if fs.encrypted is None:
            continue
        name = fs.encrypted.label
        references[name] += 1

        expected_device = f"{MAPPER_DIR}/{name}"
        if fs.device != expected_device:
            result.add(_error(
                UNMATCHED_DEVICE_MAPPER_REFERENCE,
                f"fileSystems.{fs.name!r} mounts {fs.device!r} but its "
                f"encrypted label is {name!r} (expected {expected_device!r})",
                entity=name, document=DocumentKind.FILESYSTEMS,
            ))

        entries = luks_by_name.get(name, [])
        if not entries:
            result.add(_error(
                UNMATCHED_DEVICE_MAPPER_REFERENCE,
                f"fileSystems.{fs.name!r} uses mapper name {name!r} "
                f"which has no LUKS device",
                entity=name, document=DocumentKind.FILESYSTEMS,
            ))
        elif len(entries) == 1 and entries[0].device != fs.encrypted.blkdev:
            result.add(_error(
                ENCRYPTED_BLOCK_DEVICE_MISMATCH,
                f"fileSystems.{fs.name!r} has blkdev {fs.encrypted.blkdev!r} "
                f"but LUKS device {name!r} opens {entries[0].device!r}",
                entity=name, document=DocumentKind.FILESYSTEMS,
            ))

    for name in luks_by_name:
        count = references[name]
        if count != 1:
            result.add(_error(
                UNMATCHED_DEVICE_MAPPER_REFERENCE,
                f"LUKS device {name!r} is referenced by {count} "
                f"encrypted fileSystems entries, expected 1",
                entity=name, document=DocumentKind.DISK_ENCRYPTION,
            ))

    return result


def check_block_devices(profile: HardwareProfile) -> ValidationResult:
    """No two partitions may share a block device path."""
    result = ValidationResult()
    owners: dict[str, list[str]] = {}
    for partition in profile.partitions:
        owners.setdefault(partition.block_device_path, []).append(partition.id)

    for path, ids in owners.items():
        if len(ids) > 1:
            result.add(_error(
                DUPLICATE_BLOCK_DEVICE,
                f"{path} is declared by partitions {', '.join(ids)}",
                entity=path,
            ))
    return result


def check_mount_points(documents: DocumentSet) -> ValidationResult:
    """No two fileSystems entries may share an attribute name."""
    result = ValidationResult()
    filesystems = _layer(documents, DocumentKind.FILESYSTEMS, FileSystemLayer)
    if filesystems is None:
        return result

    counts = Counter(fs.name for fs in filesystems.filesystems)
    for name, count in counts.items():
        if count > 1:
            result.add(_error(
                DUPLICATE_MOUNT_POINT,
                f"fileSystems.{name!r} is declared {count} times",
                entity=name, document=DocumentKind.FILESYSTEMS,
            ))
    return result


# ---------------------------------------------------------------------------
# Key files
# ---------------------------------------------------------------------------

def check_key_file_references(documents: DocumentSet) -> ValidationResult:
    """Every key file used by a LUKS device or encrypted block must match
    exactly one initrd secret runtime path."""
    result = ValidationResult()
    secrets = _layer(documents, DocumentKind.SECRETS, SecretsLayer)
    if secrets is None:
        return result
    declared = Counter(s.runtime_path for s in secrets.secrets)

    references: list[tuple[DocumentKind, str, str]] = []
    devices = _layer(documents, DocumentKind.DISK_ENCRYPTION, DiskEncryptionLayer)
    if devices is not None:
        for device in devices.devices:
            references.append((DocumentKind.DISK_ENCRYPTION, device.name, device.key_file))
    filesystems = _layer(documents, DocumentKind.FILESYSTEMS, FileSystemLayer)
    if filesystems is not None:
        for fs in filesystems.filesystems:
            if fs.encrypted is not None:
                references.append((DocumentKind.FILESYSTEMS, fs.name, fs.encrypted.key_file))

    for kind, owner, key_file in references:
        count = declared[key_file]
        if count == 1:
            continue
        reason = "no secret declares it" if count == 0 else f"{count} secrets declare it"
        result.add(_error(
            UNRESOLVED_KEY_FILE_REFERENCE,
            f"{owner!r} uses key file {key_file!r}: {reason}",
            entity=key_file, document=kind,
        ))
    return result


# ---------------------------------------------------------------------------
# Host id and bootloader
# ---------------------------------------------------------------------------

def is_valid_host_id(host_id: str) -> bool:
    return bool(_HOST_ID_RE.match(host_id))


def check_host_id(documents: DocumentSet) -> ValidationResult:
    """networking.hostId must be exactly 8 lowercase hex characters."""
    result = ValidationResult()
    filesystems = _layer(documents, DocumentKind.FILESYSTEMS, FileSystemLayer)
    if filesystems is not None and not is_valid_host_id(filesystems.host_id):
        result.add(_error(
            MALFORMED_HOST_ID,
            f"host id {filesystems.host_id!r} is not 8 lowercase hex characters",
            entity=filesystems.host_id, document=DocumentKind.FILESYSTEMS,
        ))
    return result


def check_bootloader_encryption(
    documents: DocumentSet,
    profile: HardwareProfile,
) -> ValidationResult:
    """enableCryptodisk must be on exactly when something is encrypted."""
    result = ValidationResult()
    bootloader = _layer(documents, DocumentKind.BOOTLOADER, BootloaderLayer)
    if bootloader is None:
        return result

    enabled = bootloader.config.cryptodisk_enabled
    if enabled != profile.has_encryption:
        result.add(_error(
            BOOTLOADER_ENCRYPTION_MISMATCH,
            f"enableCryptodisk is {str(enabled).lower()} but the profile has "
            f"{len(profile.encrypted_mounts)} encrypted mount(s)",
            document=DocumentKind.BOOTLOADER,
        ))

    devices = _layer(documents, DocumentKind.DISK_ENCRYPTION, DiskEncryptionLayer)
    if devices is not None and enabled != bool(devices.devices):
        result.add(_error(
            BOOTLOADER_ENCRYPTION_MISMATCH,
            f"enableCryptodisk is {str(enabled).lower()} but devices.nix "
            f"declares {len(devices.devices)} LUKS device(s)",
            document=DocumentKind.BOOTLOADER,
        ))
    return result


def check_host_id_unique(
    host_name: str,
    host_id: str,
    output_root: Path | str,
) -> ValidationResult:
    """Warn if another host already generated under output_root uses host_id.

    Reads <output_root>/<other host>/filesystems.nix for every host
    directory other than host_name.
    """
    result = ValidationResult()
    root = Path(output_root)
    if not root.is_dir():
        return result

    try:
        host_dirs = sorted(root.iterdir())
    except OSError:
        return result

    for host_dir in host_dirs:
        if not host_dir.is_dir() or host_dir.name == host_name:
            continue
        path = host_dir / DocumentKind.FILESYSTEMS.filename
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            # Unreadable sibling output is skipped.
            continue
        match = _HOST_ID_NIX_RE.search(text)
        if match and match.group(1) == host_id:
            result.add(ConstraintViolation(
                severity=Severity.WARNING,
                code=DUPLICATE_HOST_ID,
                message=f"host id {host_id!r} is already used by host {host_dir.name!r}",
                entity=host_id,
                document=DocumentKind.FILESYSTEMS,
            ))
    return result


def check_consistency(documents: DocumentSet, profile: HardwareProfile) -> ValidationResult:
    """Run every cross-document rule.

    Returns a combined ValidationResult; an empty result means the
    document set may be emitted.
    """
    combined = ValidationResult()

    for result in [
        check_document_set(documents),
        check_device_mapper_references(documents),
        check_key_file_references(documents),
        check_host_id(documents),
        check_bootloader_encryption(documents, profile),
        check_block_devices(profile),
        check_mount_points(documents),
        check_imports(documents),
    ]:
        combined.extend(result)

    return combined
