"""Schedule editor engine for the Climate Scheduler integration."""
from .clipboard import ClipboardService
from .controller import ScheduleController
from .exceptions import (
    ClimateSchedulerEditorError,
    InvalidBucketState,
    InvalidScheduleData,
    ProfileReactivationFailure,
    StoreUnavailable,
)
from .models import (
    Capabilities,
    EntityTarget,
    GroupTarget,
    Profile,
    ScheduleMode,
    ScheduleState,
)
from .session import EditorSession
from .settings import EditorSettings, async_load_settings
from .storage import LocalScheduleStore
from .store import HomeAssistantScheduleStore, ScheduleStore
from .sync_guard import SyncGuard, SyncState

__all__ = [
    "Capabilities",
    "ClimateSchedulerEditorError",
    "ClipboardService",
    "EditorSession",
    "EditorSettings",
    "EntityTarget",
    "GroupTarget",
    "HomeAssistantScheduleStore",
    "InvalidBucketState",
    "InvalidScheduleData",
    "LocalScheduleStore",
    "Profile",
    "ProfileReactivationFailure",
    "ScheduleController",
    "ScheduleMode",
    "ScheduleState",
    "ScheduleStore",
    "StoreUnavailable",
    "SyncGuard",
    "SyncState",
    "async_load_settings",
]
