"""Synthesis pipeline: build → render → check.

    HardwareDescription ─┐
                         ├─ build_profile ─┐
    HostIdentity ────────┘                 ├─ generators (thread pool) ─ join ─ check_consistency
                                           │
    SynthConfig (settings) ────────────────┘

Emission is separate (see emit.write_documents) so the validate command
can run the whole pipeline without touching the filesystem.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass

from hw2nixcfg.config import SynthConfig
from hw2nixcfg.constraints.consistency import check_consistency
from hw2nixcfg.constraints.errors import ValidationResult
from hw2nixcfg.derivations.profile_builder import build_profile
from hw2nixcfg.errors import ConsistencyError
from hw2nixcfg.generators.base import Generator
from hw2nixcfg.generators.bootloader import generate_bootloader
from hw2nixcfg.generators.devices import generate_devices
from hw2nixcfg.generators.filesystems import generate_filesystems
from hw2nixcfg.generators.imports import generate_imports
from hw2nixcfg.generators.network import generate_network
from hw2nixcfg.generators.secrets import generate_secrets
from hw2nixcfg.models.documents import Document, DocumentKind
from hw2nixcfg.models.hardware import HardwareProfile
from hw2nixcfg.models.identity import HostIdentity
from hw2nixcfg.sources.hardware_file import HardwareDescription

GENERATORS: dict[DocumentKind, Generator] = {
    DocumentKind.DISK_ENCRYPTION: generate_devices,
    DocumentKind.SECRETS: generate_secrets,
    DocumentKind.FILESYSTEMS: generate_filesystems,
    DocumentKind.BOOTLOADER: generate_bootloader,
    DocumentKind.NETWORK_CREDENTIALS: generate_network,
    DocumentKind.IMPORTS: generate_imports,
}


@dataclass(frozen=True)
class SynthesisResult:
    """Everything one run produced, before anything is written."""

    identity: HostIdentity
    profile: HardwareProfile
    documents: dict[DocumentKind, Document]
    validation: ValidationResult

    def raise_for_errors(self) -> None:
        """Raise ConsistencyError if any rule reported an error."""
        if self.validation.has_errors:
            raise ConsistencyError(self.validation)


def generator_settings(config: SynthConfig) -> dict[DocumentKind, dict]:
    """Keyword arguments each generator takes from the configuration."""
    return {
        DocumentKind.FILESYSTEMS: {
            "plain_labels": config.filesystems.plain_labels,
        },
        DocumentKind.BOOTLOADER: {
            "efi_mount_point": config.bootloader.efi_mount_point,
            "timeout": config.bootloader.timeout,
        },
    }


def render_documents(
    profile: HardwareProfile,
    identity: HostIdentity,
    config: SynthConfig | None = None,
    max_workers: int | None = None,
) -> dict[DocumentKind, Document]:
    """Render every document, in parallel.

    All generators are submitted up front and the function returns only
    after every one of them has finished. A generator exception
    propagates from here.
    """
    settings = generator_settings(config or SynthConfig())

    with ThreadPoolExecutor(max_workers=max_workers or len(GENERATORS)) as pool:
        futures: list[tuple[DocumentKind, Future[Document]]] = [
            (kind, pool.submit(generate, profile, identity, **settings.get(kind, {})))
            for kind, generate in GENERATORS.items()
        ]
        # Collected in GENERATORS order so the mapping order is stable.
        return {kind: future.result() for kind, future in futures}


def build_host_profile(
    description: HardwareDescription,
    identity: HostIdentity,
    config: SynthConfig,
) -> HardwareProfile:
    """Build the HardwareProfile for a description using config defaults."""
    return build_profile(
        description.partitions,
        description.encryption,
        key_name=identity.key_name,
        key_runtime_dir=config.secrets.runtime_dir,
        secrets_dir=config.secrets.install_dir,
        explicit_support=config.filesystems.explicit_support,
    )


def synthesize(
    description: HardwareDescription,
    identity: HostIdentity,
    config: SynthConfig | None = None,
) -> SynthesisResult:
    """Run the pipeline up to (not including) emission.

    Raises:
        ProfileBuildError: If the description is inconsistent. Raised
            before any generator runs.
    """
    config = config or SynthConfig()
    profile = build_host_profile(description, identity, config)
    documents = render_documents(profile, identity, config)
    validation = check_consistency(documents, profile)
    return SynthesisResult(
        identity=identity,
        profile=profile,
        documents=documents,
        validation=validation,
    )
