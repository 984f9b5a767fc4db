"""Shared jinja2 environment and filters for rendering Nix expressions."""

from __future__ import annotations

from typing import Iterable

import jinja2

HEADER = "# Auto-generated, do not edit !"


def nix_str(value: str) -> str:
    """Quote a Python string as a Nix double-quoted string."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("${", "\\${")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def nix_bool(value: bool) -> str:
    return "true" if value else "false"


def nix_list(values: Iterable[str]) -> str:
    """Render strings as a Nix list: ["a" "b"]."""
    return "[" + " ".join(nix_str(v) for v in values) + "]"


NIX_ENV = jinja2.Environment(
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    undefined=jinja2.StrictUndefined,
    autoescape=False,
)
NIX_ENV.filters["nix_str"] = nix_str
NIX_ENV.filters["nix_bool"] = nix_bool
NIX_ENV.filters["nix_list"] = nix_list
NIX_ENV.globals["header"] = HEADER
