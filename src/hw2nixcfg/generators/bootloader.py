"""Bootloader layer generator (bootloader.nix): GRUB on EFI."""

from __future__ import annotations

from hw2nixcfg.generators.nix import NIX_ENV
from hw2nixcfg.models.documents import BootloaderLayer, Document, DocumentKind
from hw2nixcfg.models.hardware import BootloaderConfig, HardwareProfile
from hw2nixcfg.models.identity import HostIdentity

_BOOTLOADER_TEMPLATE = NIX_ENV.from_string("""\
{{ header }}
{ config, ... }:

{
  boot.loader = {
{% if config.timeout is not none %}
    timeout = {{ config.timeout }};

{% endif %}
    efi = {
      canTouchEfiVariables = {{ config.efi_enabled|nix_bool }};
      efiSysMountPoint = {{ config.efi_mount_point|nix_str }};
    };

    grub = {
      enable = true;
      device = "nodev";
      efiSupport = {{ config.efi_enabled|nix_bool }};
      enableCryptodisk = {{ config.cryptodisk_enabled|nix_bool }};
      copyKernels = true;
{% if config.zfs_support %}
      zfsSupport = true;
{% endif %}
    };
  };
}
""")


def generate_bootloader(
    profile: HardwareProfile,
    identity: HostIdentity,
    efi_mount_point: str = "/boot/efi",
    timeout: int | None = 1,
) -> Document:
    """Generate bootloader.nix.

    enableCryptodisk follows whether the profile has encrypted mounts;
    nothing else about the bootloader depends on the hardware.
    """
    config = BootloaderConfig.for_profile(profile, efi_mount_point=efi_mount_point, timeout=timeout)
    layer = BootloaderLayer(config=config)
    return Document(
        kind=DocumentKind.BOOTLOADER,
        layer=layer,
        text=_BOOTLOADER_TEMPLATE.render(config=config),
    )
