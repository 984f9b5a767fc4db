"""Hardware models: partitions, encrypted mounts, secrets and the profile."""

from __future__ import annotations

import enum
from dataclasses import dataclass

MAPPER_DIR = "/dev/mapper"


class PartitionRole(enum.Enum):
    """How a partition is exposed to the running system."""

    PLAIN = "plain"
    ENCRYPTED = "encrypted"


@dataclass(frozen=True)
class Partition:
    """A single partition of the machine.

    Attributes:
        id: Identifier unique within the profile (e.g. 'data_1')
        block_device_path: Stable by-id path of the raw partition
        role: Plain filesystem or LUKS-encrypted filesystem
        label: Partition label; names the fileSystems entry when no
            mount point is given
        fs_type: Filesystem kind ('ext4', 'zfs', 'vfat', ...), may be empty
        mount_point: Where the filesystem is mounted, may be empty
        is_root: Whether this partition holds the root filesystem
    """

    id: str
    block_device_path: str
    role: PartitionRole
    label: str
    fs_type: str = ""
    mount_point: str = ""
    is_root: bool = False

    @property
    def is_encrypted(self) -> bool:
        return self.role is PartitionRole.ENCRYPTED

    @property
    def mount_name(self) -> str:
        """Name of the fileSystems attribute for this partition."""
        return self.mount_point or self.label


@dataclass(frozen=True)
class EncryptedMount:
    """A LUKS container opened at boot under a device-mapper name."""

    partition: Partition
    device_mapper_name: str
    key_file_runtime_path: str

    @property
    def device_mapper_path(self) -> str:
        return f"{MAPPER_DIR}/{self.device_mapper_name}"


@dataclass(frozen=True)
class Secret:
    """A file copied into the initrd: runtime path ← source path."""

    runtime_path: str
    source_path: str


@dataclass(frozen=True)
class HardwareProfile:
    """The validated storage layout of one machine.

    Built once per run by derivations.profile_builder.build_profile and
    never modified afterwards. Ordering is fixed at build time so every
    generator renders deterministically: partitions keep declaration
    order, encrypted mounts follow partition order and secrets are sorted
    by runtime path.
    """

    partitions: tuple[Partition, ...] = ()
    encrypted_mounts: tuple[EncryptedMount, ...] = ()
    secrets: tuple[Secret, ...] = ()
    supported_filesystem_kinds: frozenset[str] = frozenset()
    initrd_filesystem_kinds: frozenset[str] = frozenset()

    @property
    def has_encryption(self) -> bool:
        return bool(self.encrypted_mounts)

    def partition_by_id(self, partition_id: str) -> Partition | None:
        for partition in self.partitions:
            if partition.id == partition_id:
                return partition
        return None

    def encrypted_mount_for(self, partition_id: str) -> EncryptedMount | None:
        """Return the EncryptedMount wrapping the given partition, if any."""
        for mount in self.encrypted_mounts:
            if mount.partition.id == partition_id:
                return mount
        return None


@dataclass(frozen=True)
class BootloaderConfig:
    """GRUB/EFI settings derived from the profile.

    cryptodisk_enabled is true iff the profile has an encrypted mount;
    zfs_support is true iff zfs is one of the supported filesystem kinds.
    """

    efi_enabled: bool = True
    efi_mount_point: str = "/boot/efi"
    cryptodisk_enabled: bool = False
    zfs_support: bool = False
    timeout: int | None = 1

    @classmethod
    def for_profile(
        cls,
        profile: HardwareProfile,
        efi_mount_point: str = "/boot/efi",
        timeout: int | None = 1,
    ) -> BootloaderConfig:
        return cls(
            efi_enabled=True,
            efi_mount_point=efi_mount_point,
            cryptodisk_enabled=profile.has_encryption,
            zfs_support="zfs" in profile.supported_filesystem_kinds,
            timeout=timeout,
        )
