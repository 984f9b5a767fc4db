"""Exception types for a synthesis run.

Every error is terminal for the run. The CLI maps each class to its own
exit code so callers can tell input problems from consistency failures
and I/O failures.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hw2nixcfg.constraints.errors import ValidationResult


class SynthesisError(Exception):
    """Base class for all errors raised while synthesizing a host."""

    exit_code = 1

    @property
    def kind(self) -> str:
        return type(self).__name__


class InputValidationError(SynthesisError):
    """Malformed or missing input parameters."""

    exit_code = 2

    def __init__(self, message: str, field: str = "") -> None:
        super().__init__(message)
        self.field = field


# ---------------------------------------------------------------------------
# Profile build errors
# ---------------------------------------------------------------------------

class ProfileBuildError(SynthesisError):
    """The hardware description references itself inconsistently.

    Attributes:
        identifier: The partition id, mapper name or path at fault.
    """

    exit_code = 3

    def __init__(self, identifier: str, message: str) -> None:
        super().__init__(message)
        self.identifier = identifier


class DuplicatePartitionId(ProfileBuildError):
    def __init__(self, identifier: str) -> None:
        super().__init__(identifier, f"partition id {identifier!r} is declared more than once")


class DanglingEncryptionReference(ProfileBuildError):
    def __init__(self, identifier: str, reason: str = "no such partition") -> None:
        super().__init__(
            identifier,
            f"encryption entry references partition {identifier!r}: {reason}",
        )


class DuplicateEncryptionReference(ProfileBuildError):
    def __init__(self, identifier: str) -> None:
        super().__init__(
            identifier,
            f"partition {identifier!r} has more than one encryption entry",
        )


class MissingEncryptionReference(ProfileBuildError):
    def __init__(self, identifier: str) -> None:
        super().__init__(
            identifier,
            f"encrypted partition {identifier!r} has no encryption entry",
        )


class DuplicateDeviceMapperName(ProfileBuildError):
    def __init__(self, identifier: str) -> None:
        super().__init__(
            identifier,
            f"device-mapper name {identifier!r} is used by more than one partition",
        )


class UnstableBlockDevice(ProfileBuildError):
    def __init__(self, identifier: str, path: str) -> None:
        super().__init__(
            identifier,
            f"partition {identifier!r} uses {path!r}, expected a /dev/disk/by-* path",
        )
        self.path = path


# ---------------------------------------------------------------------------
# Consistency and emission
# ---------------------------------------------------------------------------

class ConsistencyError(SynthesisError):
    """The rendered documents disagree with each other or with the profile."""

    exit_code = 4

    def __init__(self, result: ValidationResult) -> None:
        super().__init__(result.report())
        self.result = result


class EmissionError(SynthesisError):
    """Writing the document set failed; nothing was left behind."""

    exit_code = 5

    def __init__(self, message: str, path: Path | str = "") -> None:
        super().__init__(message)
        self.path = path
