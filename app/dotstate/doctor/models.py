"""Result types for diagnostics and repairs."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class CheckStatus(str, Enum):
    """Severity of a diagnostic result."""

    PASS = "pass"
    WARNING = "warning"
    ERROR = "error"


class CheckCategory(str, Enum):
    """Diagnostic categories, in the order they run."""

    CONFIG = "Config"
    ACTIVATION = "Activation"
    MANIFEST = "Manifest"
    TRACKING = "Tracking"
    GIT = "Git"
    PERMISSIONS = "Permissions"


# Repair actions. Each is narrow, idempotent, and never deletes user data.
FIX_SYNC_ACTIVATION = "Sync activation state"
FIX_PRUNE_MISSING = "prune missing entries"
FIX_REACTIVATE = "Re-activate profile"


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """One diagnostic finding.

    Attributes:
        category: Which store or subsystem was checked.
        message: Human-readable finding.
        status: Pass, Warning or Error.
        fix_action: Repair that resolves the finding, if any.
    """

    category: CheckCategory
    message: str
    status: CheckStatus
    fix_action: str | None = None

    @property
    def fixable(self) -> bool:
        """Check if a repair is available."""
        return self.fix_action is not None and self.status != CheckStatus.PASS

    def to_dict(self) -> dict[str, Any]:
        """Serialise for JSON output."""
        data = asdict(self)
        data["category"] = self.category.value
        data["status"] = self.status.value
        data["fixable"] = self.fixable
        return data


@dataclass(frozen=True, slots=True)
class FixOutcome:
    """Result of applying one repair.

    Attributes:
        action: The repair that ran.
        success: Whether it completed.
        message: What it did, or why it failed.
    """

    action: str
    success: bool
    message: str


@dataclass(slots=True)
class DoctorReport:
    """Every finding from one diagnostics run, plus any repairs applied."""

    results: list[ValidationResult] = field(default_factory=list)
    fixes: list[FixOutcome] = field(default_factory=list)

    def add(
        self,
        category: CheckCategory,
        message: str,
        status: CheckStatus = CheckStatus.PASS,
        fix_action: str | None = None,
    ) -> None:
        """Record a finding."""
        self.results.append(ValidationResult(category, message, status, fix_action))

    def by_category(self, category: CheckCategory) -> list[ValidationResult]:
        """Get the findings for one category."""
        return [r for r in self.results if r.category == category]

    @property
    def errors(self) -> list[ValidationResult]:
        """Findings with Error status."""
        return [r for r in self.results if r.status == CheckStatus.ERROR]

    @property
    def warnings(self) -> list[ValidationResult]:
        """Findings with Warning status."""
        return [r for r in self.results if r.status == CheckStatus.WARNING]

    @property
    def fixable(self) -> list[ValidationResult]:
        """Findings a repair can resolve."""
        return [r for r in self.results if r.fixable]

    @property
    def has_errors(self) -> bool:
        """Check if any finding is an Error."""
        return bool(self.errors)

    def to_dict(self) -> dict[str, Any]:
        """Serialise for JSON output."""
        return {
            "results": [r.to_dict() for r in self.results],
            "fixes": [asdict(f) for f in self.fixes],
            "summary": {
                "passed": sum(1 for r in self.results if r.status == CheckStatus.PASS),
                "warnings": len(self.warnings),
                "errors": len(self.errors),
            },
        }
