"""Network-credentials layer generator (env.json).

A flat parameter set read by the provisioning environment: which host and
hardware are being set up, where the disk key lives, and the WiFi
credentials to connect with. Unlike the Nix documents it is driven by the
command-line parameters rather than the hardware profile.
"""

from __future__ import annotations

import json

from hw2nixcfg.models.documents import Document, DocumentKind, NetworkCredentialsLayer
from hw2nixcfg.models.hardware import HardwareProfile
from hw2nixcfg.models.identity import HostIdentity


def _to_json(layer: NetworkCredentialsLayer) -> str:
    data = {
        "nixos": {
            "host": layer.host,
            "hardware": layer.hardware,
            "key_file": layer.key_file,
            "key_filename": layer.key_filename,
        },
        "wifi": {
            "ssid": layer.wifi_ssid,
            "password": layer.wifi_password,
        },
    }
    return json.dumps(data, indent=2) + "\n"


def generate_network(profile: HardwareProfile, identity: HostIdentity) -> Document:
    """Generate env.json from the host identity."""
    layer = NetworkCredentialsLayer(
        host=identity.host_name,
        hardware=identity.hardware,
        key_file=identity.key_file,
        key_filename=identity.key_name,
        wifi_ssid=identity.wifi_ssid,
        wifi_password=identity.wifi_password,
    )
    return Document(
        kind=DocumentKind.NETWORK_CREDENTIALS,
        layer=layer,
        text=_to_json(layer),
    )
