"""Rendered documents and the typed layers they were rendered from.

Each generator returns a Document carrying both the rendered text and the
structured layer behind it. The consistency checker reads the layers so
cross-references are compared as values rather than parsed back out of
Nix source.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Mapping, Union

from hw2nixcfg.models.hardware import BootloaderConfig


class DocumentKind(enum.Enum):
    """Output document kinds; the value is the file name."""

    DISK_ENCRYPTION = "devices.nix"
    SECRETS = "secrets.nix"
    FILESYSTEMS = "filesystems.nix"
    BOOTLOADER = "bootloader.nix"
    NETWORK_CREDENTIALS = "env.json"
    IMPORTS = "default.nix"

    @property
    def filename(self) -> str:
        return self.value

    @property
    def is_nix(self) -> bool:
        return self.value.endswith(".nix")


# The documents every run must produce; IMPORTS is layered on top.
CORE_KINDS = (
    DocumentKind.DISK_ENCRYPTION,
    DocumentKind.SECRETS,
    DocumentKind.FILESYSTEMS,
    DocumentKind.BOOTLOADER,
    DocumentKind.NETWORK_CREDENTIALS,
)


# ---------------------------------------------------------------------------
# Disk-encryption layer (devices.nix)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LuksDevice:
    """One boot.initrd.luks.devices entry."""

    name: str
    device: str
    key_file: str
    allow_discards: bool = True
    pre_lvm: bool = True


@dataclass(frozen=True)
class DiskEncryptionLayer:
    devices: tuple[LuksDevice, ...] = ()
    supported_filesystems: tuple[str, ...] = ()
    initrd_supported_filesystems: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Secrets layer (secrets.nix)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SecretEntry:
    runtime_path: str
    source_path: str


@dataclass(frozen=True)
class SecretsLayer:
    secrets: tuple[SecretEntry, ...] = ()


# ---------------------------------------------------------------------------
# Filesystem-mount layer (filesystems.nix)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EncryptedBlock:
    """The `encrypted` sub-block of an encrypted fileSystems entry.

    Duplicates the LUKS device's block path and key file; the checker
    keeps the two in sync.
    """

    blkdev: str
    label: str
    key_file: str


@dataclass(frozen=True)
class FileSystemEntry:
    name: str
    device: str
    fs_type: str = ""
    label: str = ""
    encrypted: EncryptedBlock | None = None


@dataclass(frozen=True)
class FileSystemLayer:
    host_id: str
    filesystems: tuple[FileSystemEntry, ...] = ()


# ---------------------------------------------------------------------------
# Bootloader, credentials and imports
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BootloaderLayer:
    config: BootloaderConfig


@dataclass(frozen=True)
class NetworkCredentialsLayer:
    host: str
    hardware: str
    key_file: str
    key_filename: str
    wifi_ssid: str = ""
    wifi_password: str = ""


@dataclass(frozen=True)
class ImportsLayer:
    imports: tuple[str, ...] = ()


Layer = Union[
    DiskEncryptionLayer,
    SecretsLayer,
    FileSystemLayer,
    BootloaderLayer,
    NetworkCredentialsLayer,
    ImportsLayer,
]


@dataclass(frozen=True)
class Document:
    """A rendered output file."""

    kind: DocumentKind
    layer: Layer
    text: str = field(repr=False)

    @property
    def filename(self) -> str:
        return self.kind.filename


DocumentSet = Mapping[DocumentKind, Document]
