"""Generator protocol: the interface all document generators implement."""

from __future__ import annotations

from typing import Protocol

from hw2nixcfg.models.documents import Document
from hw2nixcfg.models.hardware import HardwareProfile
from hw2nixcfg.models.identity import HostIdentity


class Generator(Protocol):
    """Protocol for document generators.

    Each generator takes the HardwareProfile and HostIdentity and produces
    exactly one Document. Generators are pure: they read nothing but their
    arguments and share no state, so they may run in any order or in
    parallel. Cross-document agreement is not their concern; the
    consistency checker verifies it afterwards.

    Generator-specific settings (EFI mount point, plain labels, ...) are
    passed as keyword arguments.
    """

    def __call__(self, profile: HardwareProfile, identity: HostIdentity, **settings) -> Document:
        """Render one document from the profile and identity."""
        ...
