"""Tests for the hardware and identity models."""

import dataclasses

import pytest

from hw2nixcfg.models.hardware import (
    BootloaderConfig,
    EncryptedMount,
    HardwareProfile,
    Partition,
    PartitionRole,
)
from hw2nixcfg.models.identity import HostIdentity

DISK = "/dev/disk/by-id/mmc-SU08G_0x21a906b7"


def _partition(pid, number, role=PartitionRole.PLAIN, **kwargs):
    return Partition(
        id=pid,
        block_device_path=f"{DISK}-part{number}",
        role=role,
        label=kwargs.pop("label", pid),
        **kwargs,
    )


class TestPartition:
    def test_is_encrypted(self):
        assert _partition("system", 4, PartitionRole.ENCRYPTED).is_encrypted
        assert not _partition("data_1", 2).is_encrypted

    def test_mount_name_defaults_to_label(self):
        assert _partition("data_1", 2).mount_name == "data_1"

    def test_mount_name_prefers_mount_point(self):
        p = _partition("efi", 1, mount_point="/boot/efi")
        assert p.mount_name == "/boot/efi"

    def test_frozen(self):
        p = _partition("data_1", 2)
        with pytest.raises(dataclasses.FrozenInstanceError):
            p.label = "other"


class TestEncryptedMount:
    def test_device_mapper_path(self):
        mount = EncryptedMount(
            partition=_partition("system", 4, PartitionRole.ENCRYPTED),
            device_mapper_name="system",
            key_file_runtime_path="/key_file",
        )
        assert mount.device_mapper_path == "/dev/mapper/system"


class TestHardwareProfile:
    def _profile(self):
        data = _partition("data_1", 2)
        system = _partition("system", 4, PartitionRole.ENCRYPTED)
        mount = EncryptedMount(system, "system", "/key_file")
        return HardwareProfile(partitions=(data, system), encrypted_mounts=(mount,))

    def test_partition_by_id(self):
        profile = self._profile()
        assert profile.partition_by_id("system").block_device_path.endswith("part4")
        assert profile.partition_by_id("nope") is None

    def test_encrypted_mount_for(self):
        profile = self._profile()
        assert profile.encrypted_mount_for("system").device_mapper_name == "system"
        assert profile.encrypted_mount_for("data_1") is None

    def test_has_encryption(self):
        assert self._profile().has_encryption
        assert not HardwareProfile().has_encryption


class TestBootloaderConfig:
    def test_cryptodisk_follows_encryption(self):
        profile = HardwareProfile(
            encrypted_mounts=(
                EncryptedMount(_partition("system", 4, PartitionRole.ENCRYPTED), "system", "/k"),
            ),
        )
        assert BootloaderConfig.for_profile(profile).cryptodisk_enabled is True
        assert BootloaderConfig.for_profile(HardwareProfile()).cryptodisk_enabled is False

    def test_efi_always_enabled(self):
        config = BootloaderConfig.for_profile(HardwareProfile(), efi_mount_point="/efi")
        assert config.efi_enabled is True
        assert config.efi_mount_point == "/efi"

    def test_zfs_support(self):
        profile = HardwareProfile(supported_filesystem_kinds=frozenset({"zfs"}))
        assert BootloaderConfig.for_profile(profile).zfs_support is True
        assert BootloaderConfig.for_profile(HardwareProfile()).zfs_support is False


class TestHostIdentity:
    def test_key_file_joins_path_and_name(self):
        identity = HostIdentity(
            host_name="calculon", host_id="082dbc0f",
            key_name="key_file", key_source_path="/tmp/keys",
        )
        assert identity.key_file == "/tmp/keys/key_file"

    def test_has_wifi(self):
        assert HostIdentity("h", "082dbc0f", wifi_ssid="s", wifi_password="p").has_wifi
        assert not HostIdentity("h", "082dbc0f").has_wifi
