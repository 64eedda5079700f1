"""Services coordinating the manifest, the tracking ledger and the filesystem."""

from dotstate.services.packages import PackageService, PackageState
from dotstate.services.profiles import (
    ProfileActivationResult,
    ProfileService,
    ProfileSwitchResult,
)
from dotstate.services.remote import RemoteSyncResult, RemoteSyncService
from dotstate.services.sync import DotfileEntry, SyncOutcome, SyncService, SyncStatus

__all__ = [
    "DotfileEntry",
    "PackageService",
    "PackageState",
    "ProfileActivationResult",
    "ProfileService",
    "ProfileSwitchResult",
    "RemoteSyncResult",
    "RemoteSyncService",
    "SyncOutcome",
    "SyncService",
    "SyncStatus",
]
