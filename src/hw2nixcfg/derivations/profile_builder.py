"""Profile builder: turn raw partition/encryption specs into a HardwareProfile.

This is where per-profile reference checks happen (unique ids, encryption
entries pointing at encrypted partitions). Checks that span rendered
documents live in constraints.consistency.
"""

from __future__ import annotations

import posixpath
from typing import Iterable, Sequence

from hw2nixcfg.errors import (
    DanglingEncryptionReference,
    DuplicateDeviceMapperName,
    DuplicateEncryptionReference,
    DuplicatePartitionId,
    MissingEncryptionReference,
    UnstableBlockDevice,
)
from hw2nixcfg.models.hardware import (
    EncryptedMount,
    HardwareProfile,
    Partition,
    PartitionRole,
    Secret,
)
from hw2nixcfg.sources.hardware_file import EncryptionSpec, PartitionSpec

STABLE_DEVICE_PREFIX = "/dev/disk/by-"

DEFAULT_KEY_RUNTIME_DIR = "/"
DEFAULT_SECRETS_DIR = "/etc/secrets/disks"
DEFAULT_EXPLICIT_SUPPORT = ("zfs",)


def _build_partition(spec: PartitionSpec) -> Partition:
    if not spec.block_device_path.startswith(STABLE_DEVICE_PREFIX):
        raise UnstableBlockDevice(spec.id, spec.block_device_path)

    return Partition(
        id=spec.id,
        block_device_path=spec.block_device_path,
        role=PartitionRole.ENCRYPTED if spec.encrypted else PartitionRole.PLAIN,
        label=spec.label or spec.id,
        fs_type=spec.fs_type,
        mount_point=spec.mount_point,
        is_root=spec.is_root or spec.mount_point == "/",
    )


def build_partitions(partition_specs: Sequence[PartitionSpec]) -> tuple[Partition, ...]:
    """Build Partition objects, rejecting duplicate ids."""
    seen: set[str] = set()
    partitions: list[Partition] = []
    for spec in partition_specs:
        if spec.id in seen:
            raise DuplicatePartitionId(spec.id)
        seen.add(spec.id)
        partitions.append(_build_partition(spec))
    return tuple(partitions)


def build_encrypted_mounts(
    partitions: Sequence[Partition],
    encryption_specs: Sequence[EncryptionSpec],
    key_name: str,
    key_runtime_dir: str = DEFAULT_KEY_RUNTIME_DIR,
) -> tuple[EncryptedMount, ...]:
    """Pair every encrypted partition with exactly one encryption spec.

    The result follows partition order, not spec order.

    Raises:
        DanglingEncryptionReference: spec names an unknown or plain partition.
        DuplicateEncryptionReference: two specs name the same partition.
        MissingEncryptionReference: an encrypted partition has no spec.
        DuplicateDeviceMapperName: two mounts share a mapper name.
    """
    by_id = {p.id: p for p in partitions}
    spec_for: dict[str, EncryptionSpec] = {}

    for spec in encryption_specs:
        partition = by_id.get(spec.partition_id)
        if partition is None:
            raise DanglingEncryptionReference(spec.partition_id)
        if not partition.is_encrypted:
            raise DanglingEncryptionReference(
                spec.partition_id, "partition is not declared encrypted",
            )
        if spec.partition_id in spec_for:
            raise DuplicateEncryptionReference(spec.partition_id)
        spec_for[spec.partition_id] = spec

    mounts: list[EncryptedMount] = []
    mapper_names: set[str] = set()
    for partition in partitions:
        if not partition.is_encrypted:
            continue
        spec = spec_for.get(partition.id)
        if spec is None:
            raise MissingEncryptionReference(partition.id)

        mapper_name = spec.mapper_name or partition.label
        if mapper_name in mapper_names:
            raise DuplicateDeviceMapperName(mapper_name)
        mapper_names.add(mapper_name)

        mounts.append(EncryptedMount(
            partition=partition,
            device_mapper_name=mapper_name,
            key_file_runtime_path=posixpath.join(key_runtime_dir, spec.key_name or key_name),
        ))

    return tuple(mounts)


def derive_secrets(
    mounts: Iterable[EncryptedMount],
    key_runtime_dir: str = DEFAULT_KEY_RUNTIME_DIR,
    secrets_dir: str = DEFAULT_SECRETS_DIR,
) -> tuple[Secret, ...]:
    """One Secret per distinct key runtime path, sorted by runtime path.

    Mounts sharing a key file share its Secret. The source is the file
    of the same name under secrets_dir.
    """
    secrets: dict[str, Secret] = {}
    for mount in mounts:
        runtime_path = mount.key_file_runtime_path
        if runtime_path in secrets:
            continue
        key_file = posixpath.relpath(runtime_path, key_runtime_dir)
        secrets[runtime_path] = Secret(
            runtime_path=runtime_path,
            source_path=posixpath.join(secrets_dir, key_file),
        )
    return tuple(secrets[path] for path in sorted(secrets))


def build_profile(
    partition_specs: Sequence[PartitionSpec],
    encryption_specs: Sequence[EncryptionSpec],
    *,
    key_name: str = "key_file",
    key_runtime_dir: str = DEFAULT_KEY_RUNTIME_DIR,
    secrets_dir: str = DEFAULT_SECRETS_DIR,
    explicit_support: Iterable[str] = DEFAULT_EXPLICIT_SUPPORT,
) -> HardwareProfile:
    """Build the immutable HardwareProfile for one run.

    Args:
        partition_specs: Partitions in declaration order.
        encryption_specs: Encryption entries referencing partition ids.
        key_name: Key file name used when a spec names none.
        key_runtime_dir: Directory of the key inside the initrd.
        secrets_dir: Directory the key is installed to on the target.
        explicit_support: Filesystem kinds the kernel must be told
            about (boot.supportedFilesystems).

    Raises:
        ProfileBuildError: A subclass naming the offending identifier.
    """
    partitions = build_partitions(partition_specs)
    mounts = build_encrypted_mounts(partitions, encryption_specs, key_name, key_runtime_dir)
    secrets = derive_secrets(mounts, key_runtime_dir, secrets_dir)

    explicit = set(explicit_support)
    supported = frozenset(p.fs_type for p in partitions if p.fs_type in explicit)
    initrd = frozenset(p.fs_type for p in partitions if p.fs_type in explicit and p.is_root)

    return HardwareProfile(
        partitions=partitions,
        encrypted_mounts=mounts,
        secrets=secrets,
        supported_filesystem_kinds=supported,
        initrd_filesystem_kinds=initrd,
    )
