"""Validation result types for storyline checks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


@dataclass(frozen=True)
class InvalidReference:
    """A transition slot pointing at an event that does not exist.

    Attributes:
        event_id: Event owning the slot.
        target_label: Slot name (e.g. "Option 2", "Win branch").
        target_id: The dangling target id.
    """

    event_id: str
    target_label: str
    target_id: str


@dataclass
class ValidationCheck:
    """Result of a single validation check.

    Attributes:
        name: Identifier for the check.
        severity: "pass", "warn", or "fail". "fail" blocks saving.
        message: Human-readable description of the result.
    """

    name: str
    severity: Literal["pass", "warn", "fail"]
    message: str = ""


@dataclass
class ValidationReport:
    """Aggregated results of validation checks."""

    checks: list[ValidationCheck] = field(default_factory=list)

    @property
    def failures(self) -> list[ValidationCheck]:
        return [c for c in self.checks if c.severity == "fail"]

    @property
    def warnings(self) -> list[ValidationCheck]:
        return [c for c in self.checks if c.severity == "warn"]

    @property
    def has_failures(self) -> bool:
        """True if any check blocks saving."""
        return bool(self.failures)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def summary(self) -> str:
        """Human-readable summary, e.g. ``"1 failed, 2 passed"``."""
        passes = len(self.checks) - len(self.failures) - len(self.warnings)
        parts: list[str] = []
        if self.failures:
            parts.append(f"{len(self.failures)} failed")
        if self.warnings:
            parts.append(f"{len(self.warnings)} warnings")
        if passes:
            parts.append(f"{passes} passed")
        return ", ".join(parts)
