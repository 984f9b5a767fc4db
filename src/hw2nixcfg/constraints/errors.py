"""Structured violation and result types for consistency rules."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable

from hw2nixcfg.models.documents import DocumentKind


class Severity(enum.Enum):
    """Violation severity."""

    ERROR = "error"      # Abort, write nothing
    WARNING = "warning"  # Write + report


@dataclass(frozen=True)
class ConstraintViolation:
    """A single rule violation with context.

    Attributes:
        severity: Whether this should abort emission or just warn.
        code: Machine-readable rule code (e.g. 'malformed_host_id').
        message: Human-readable description naming the conflicting entries.
        entity: The mapper name, key path, partition id or host id at fault.
        document: The document the violation was found in, if any.
    """

    severity: Severity
    code: str
    message: str
    entity: str = ""
    document: DocumentKind | None = None

    def __str__(self) -> str:
        prefix = self.severity.value.upper()
        loc = f" [{self.document.filename}]" if self.document else ""
        return f"{prefix}{loc} {self.code}: {self.message}"


@dataclass
class ValidationResult:
    """Aggregated result of running the consistency rules."""

    violations: list[ConstraintViolation]

    def __init__(self, violations: Iterable[ConstraintViolation] = ()) -> None:
        self.violations = list(violations)

    def add(self, violation: ConstraintViolation) -> None:
        self.violations.append(violation)

    def extend(self, other: ValidationResult) -> None:
        self.violations.extend(other.violations)

    @property
    def errors(self) -> list[ConstraintViolation]:
        return [v for v in self.violations if v.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ConstraintViolation]:
        return [v for v in self.violations if v.severity == Severity.WARNING]

    @property
    def has_errors(self) -> bool:
        return any(v.severity == Severity.ERROR for v in self.violations)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def codes(self) -> set[str]:
        """Distinct rule codes present, for quick assertions."""
        return {v.code for v in self.violations}

    def report(self) -> str:
        """Generate a human-readable report of all violations."""
        if not self.violations:
            return "No violations found."

        lines = []
        errors = self.errors
        warnings = self.warnings
        if errors:
            lines.append(f"{len(errors)} error(s):")
            for v in errors:
                lines.append(f"  {v}")
        if warnings:
            lines.append(f"{len(warnings)} warning(s):")
            for v in warnings:
                lines.append(f"  {v}")
        return "\n".join(lines)
