"""Per-editor session state."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .const import BUCKET_ALL_DAYS
from .models import Capabilities, ScheduleMode, ScheduleState, Target
from .sync_guard import SyncGuard


@dataclass
class EditorSession:
    """What one editor is looking at.

    Every controller call takes the session explicitly, so several editors
    can work against the same store side by side.
    """

    graph: Any = None
    target: Optional[Target] = None
    mode: ScheduleMode = ScheduleMode.ALL_DAYS
    day: str = BUCKET_ALL_DAYS
    editing_profile: Optional[str] = None
    active_profile: Optional[str] = None
    enabled: bool = True
    state: Optional[ScheduleState] = None
    capabilities: Capabilities = field(default_factory=Capabilities)
    guard: SyncGuard = field(default_factory=SyncGuard)
    scheduled_temp: Optional[float] = None
    next_node: Optional[Dict[str, Any]] = None
    history: List[Dict[str, Any]] = field(default_factory=list)
    last_saved: Optional[Dict[str, Any]] = None
    last_error: Optional[Exception] = None

    @property
    def is_loading(self) -> bool:
        return self.guard.is_loading

    @property
    def is_overlaying(self) -> bool:
        """Editing a profile other than the one driving the thermostats."""
        return (
            self.editing_profile is not None
            and self.active_profile is not None
            and self.editing_profile != self.active_profile
        )

    @property
    def profile_in_view(self) -> Optional[str]:
        return self.editing_profile or self.active_profile
