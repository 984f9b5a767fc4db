"""Host identity: the scalar parameters of a synthesis run."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass


@dataclass(frozen=True)
class HostIdentity:
    """Who the machine is and where its key material comes from.

    Attributes:
        host_name: Host name, also the output directory name
        host_id: networking.hostId, 8 lowercase hex characters
        wifi_ssid: WiFi network name for the provisioning environment
        wifi_password: WiFi passphrase for the provisioning environment
        key_name: File name of the disk key
        key_source_path: Directory the key material is generated in
        hardware: Name of the hardware description the host was built from
    """

    host_name: str
    host_id: str
    wifi_ssid: str = ""
    wifi_password: str = ""
    key_name: str = "key_file"
    key_source_path: str = "/tmp"
    hardware: str = ""

    @property
    def key_file(self) -> str:
        """Full path of the key material on the provisioning machine."""
        return posixpath.join(self.key_source_path, self.key_name)

    @property
    def has_wifi(self) -> bool:
        return bool(self.wifi_ssid and self.wifi_password)
