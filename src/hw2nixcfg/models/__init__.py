"""Data models for hardware profiles, host identities and documents."""

from hw2nixcfg.models.documents import Document, DocumentKind
from hw2nixcfg.models.hardware import (
    BootloaderConfig,
    EncryptedMount,
    HardwareProfile,
    Partition,
    PartitionRole,
    Secret,
)
from hw2nixcfg.models.identity import HostIdentity

__all__ = [
    "BootloaderConfig",
    "Document",
    "DocumentKind",
    "EncryptedMount",
    "HardwareProfile",
    "HostIdentity",
    "Partition",
    "PartitionRole",
    "Secret",
]
