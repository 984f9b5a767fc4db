"""Filesystem-mount layer generator (filesystems.nix).

Emits networking.hostId and one fileSystems entry per partition. Plain
partitions mount their block device directly. Encrypted partitions mount
the device-mapper path and carry an `encrypted` block that repeats the
raw block device and key file of the matching LUKS device.
"""

from __future__ import annotations

from hw2nixcfg.generators.nix import NIX_ENV
from hw2nixcfg.models.documents import (
    Document,
    DocumentKind,
    EncryptedBlock,
    FileSystemEntry,
    FileSystemLayer,
)
from hw2nixcfg.models.hardware import HardwareProfile, Partition
from hw2nixcfg.models.identity import HostIdentity

_FILESYSTEMS_TEMPLATE = NIX_ENV.from_string("""\
{{ header }}
{ config, ... }:

{
  networking.hostId = {{ layer.host_id|nix_str }};
{% for fs in layer.filesystems %}

  fileSystems.{{ fs.name|nix_str }} = {
    device = {{ fs.device|nix_str }};
{% if fs.fs_type %}
    fsType = {{ fs.fs_type|nix_str }};
{% endif %}
{% if fs.label %}
    label = {{ fs.label|nix_str }};
{% endif %}
{% if fs.encrypted %}

    encrypted = {
      enable = true;
      blkdev = {{ fs.encrypted.blkdev|nix_str }};
      label = {{ fs.encrypted.label|nix_str }};
      keyFile = {{ fs.encrypted.key_file|nix_str }};
    };
{% endif %}
  };
{% endfor %}
}
""")


def _entry(profile: HardwareProfile, partition: Partition, plain_labels: bool) -> FileSystemEntry:
    mount = profile.encrypted_mount_for(partition.id)
    if mount is None:
        return FileSystemEntry(
            name=partition.mount_name,
            device=partition.block_device_path,
            fs_type=partition.fs_type,
            label=partition.label if plain_labels else "",
        )

    return FileSystemEntry(
        name=partition.mount_name,
        device=mount.device_mapper_path,
        fs_type=partition.fs_type,
        encrypted=EncryptedBlock(
            blkdev=partition.block_device_path,
            label=mount.device_mapper_name,
            key_file=mount.key_file_runtime_path,
        ),
    )


def generate_filesystems(
    profile: HardwareProfile,
    identity: HostIdentity,
    plain_labels: bool = False,
) -> Document:
    """Generate filesystems.nix.

    Args:
        profile: Hardware profile.
        identity: Supplies the host id.
        plain_labels: Also emit `label` on non-encrypted entries.
    """
    layer = FileSystemLayer(
        host_id=identity.host_id,
        filesystems=tuple(_entry(profile, p, plain_labels) for p in profile.partitions),
    )
    return Document(
        kind=DocumentKind.FILESYSTEMS,
        layer=layer,
        text=_FILESYSTEMS_TEMPLATE.render(layer=layer),
    )
