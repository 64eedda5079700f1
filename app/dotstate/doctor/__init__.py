"""Diagnostics and repair for the dotstate stores."""

from dotstate.doctor.models import (
    FIX_PRUNE_MISSING,
    FIX_REACTIVATE,
    FIX_SYNC_ACTIVATION,
    CheckCategory,
    CheckStatus,
    DoctorReport,
    FixOutcome,
    ValidationResult,
)
from dotstate.doctor.runner import Doctor

__all__ = [
    "FIX_PRUNE_MISSING",
    "FIX_REACTIVATE",
    "FIX_SYNC_ACTIVATION",
    "CheckCategory",
    "CheckStatus",
    "Doctor",
    "DoctorReport",
    "FixOutcome",
    "ValidationResult",
]
