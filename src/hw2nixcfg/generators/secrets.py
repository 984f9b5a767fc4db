"""Secrets layer generator (secrets.nix)."""

from __future__ import annotations

from hw2nixcfg.generators.nix import NIX_ENV
from hw2nixcfg.models.documents import Document, DocumentKind, SecretEntry, SecretsLayer
from hw2nixcfg.models.hardware import HardwareProfile
from hw2nixcfg.models.identity import HostIdentity

_SECRETS_TEMPLATE = NIX_ENV.from_string("""\
{{ header }}
{ config, ... }:

{
  boot.initrd.secrets = {
{% for secret in layer.secrets %}
    {{ secret.runtime_path|nix_str }} = {{ secret.source_path|nix_str }};
{% endfor %}
  };
}
""")


def generate_secrets(profile: HardwareProfile, identity: HostIdentity) -> Document:
    """Generate secrets.nix: initrd runtime path → file on the target."""
    layer = SecretsLayer(secrets=tuple(
        SecretEntry(runtime_path=s.runtime_path, source_path=s.source_path)
        for s in profile.secrets
    ))
    return Document(
        kind=DocumentKind.SECRETS,
        layer=layer,
        text=_SECRETS_TEMPLATE.render(layer=layer),
    )
