"""Imports generator (default.nix): pulls the other Nix documents together."""

from __future__ import annotations

from hw2nixcfg.generators.nix import NIX_ENV
from hw2nixcfg.models.documents import Document, DocumentKind, ImportsLayer
from hw2nixcfg.models.hardware import HardwareProfile
from hw2nixcfg.models.identity import HostIdentity

_IMPORTS_TEMPLATE = NIX_ENV.from_string("""\
{{ header }}
{ ... }:

{
  imports = [
{% for path in layer.imports %}
    {{ path }}
{% endfor %}
  ];
}
""")


def generate_imports(profile: HardwareProfile, identity: HostIdentity) -> Document:
    """Generate default.nix importing every other Nix document, sorted by name."""
    names = sorted(
        kind.filename for kind in DocumentKind
        if kind.is_nix and kind is not DocumentKind.IMPORTS
    )
    layer = ImportsLayer(imports=tuple(f"./{name}" for name in names))
    return Document(
        kind=DocumentKind.IMPORTS,
        layer=layer,
        text=_IMPORTS_TEMPLATE.render(layer=layer),
    )
