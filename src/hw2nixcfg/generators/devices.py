"""Disk-encryption layer generator (devices.nix).

Declares one boot.initrd.luks.devices entry per encrypted mount and the
filesystem kinds the kernel and initrd must support.
"""

from __future__ import annotations

from hw2nixcfg.generators.nix import NIX_ENV
from hw2nixcfg.models.documents import (
    DiskEncryptionLayer,
    Document,
    DocumentKind,
    LuksDevice,
)
from hw2nixcfg.models.hardware import HardwareProfile
from hw2nixcfg.models.identity import HostIdentity

_DEVICES_TEMPLATE = NIX_ENV.from_string("""\
{{ header }}
{ config, ... }:

{
  boot = {
{% if layer.supported_filesystems %}
    supportedFilesystems = {{ layer.supported_filesystems|nix_list }};

{% endif %}
    initrd = {
{% if layer.initrd_supported_filesystems %}
      supportedFilesystems = {{ layer.initrd_supported_filesystems|nix_list }};
{% endif %}
{% for device in layer.devices %}

      luks.devices.{{ device.name|nix_str }} = {
        device = {{ device.device|nix_str }};
        keyFile = {{ device.key_file|nix_str }};
        allowDiscards = {{ device.allow_discards|nix_bool }};
        preLVM = {{ device.pre_lvm|nix_bool }};
      };
{% endfor %}
    };
  };
}
""")


def build_disk_encryption_layer(profile: HardwareProfile) -> DiskEncryptionLayer:
    devices = tuple(
        LuksDevice(
            name=mount.device_mapper_name,
            device=mount.partition.block_device_path,
            key_file=mount.key_file_runtime_path,
        )
        for mount in profile.encrypted_mounts
    )
    return DiskEncryptionLayer(
        devices=devices,
        supported_filesystems=tuple(sorted(profile.supported_filesystem_kinds)),
        initrd_supported_filesystems=tuple(sorted(profile.initrd_filesystem_kinds)),
    )


def generate_devices(profile: HardwareProfile, identity: HostIdentity) -> Document:
    """Generate devices.nix from the profile's encrypted mounts."""
    layer = build_disk_encryption_layer(profile)
    return Document(
        kind=DocumentKind.DISK_ENCRYPTION,
        layer=layer,
        text=_DEVICES_TEMPLATE.render(layer=layer),
    )
