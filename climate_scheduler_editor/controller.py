"""Controller that keeps an editor's graph in sync with the schedule store."""
import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from homeassistant.util import dt as dt_util

from .buckets import (
    clear_writes,
    default_bucket,
    nodes_for_bucket,
    nodes_for_state,
    resolve_bucket,
)
from .clipboard import ClipboardService
from .const import FALLBACK_NODE
from .exceptions import (
    InvalidBucketState,
    InvalidScheduleData,
    ProfileReactivationFailure,
    StoreUnavailable,
)
from .graph import Notifier, log_notifier
from .history import async_get_target_history
from .models import Capabilities, ScheduleMode, ScheduleState, Target
from .profiles import ProfileOverlay
from .schedule import TimeOfDay, copy_nodes, get_next_node, interpolate
from .session import EditorSession
from .settings import EditorSettings
from .store import ScheduleStore
from .units import async_convert_all

_LOGGER = logging.getLogger(__name__)

# Errors that leave the editor usable: reported, never retried
RECOVERABLE_ERRORS = (StoreUnavailable, InvalidScheduleData, ValueError)


class ScheduleController:
    """Load, switch and save schedules for editor sessions.

    State that belongs to one editor lives in its EditorSession. The
    controller itself only holds what every editor shares: the store, the
    settings, the clipboard and the notifier.
    """

    def __init__(
        self,
        store: ScheduleStore,
        settings: Optional[EditorSettings] = None,
        clipboard: Optional[ClipboardService] = None,
        notify: Optional[Notifier] = None,
    ) -> None:
        """Initialize the controller."""
        self.store = store
        self.settings = settings or EditorSettings()
        self.clipboard = clipboard or ClipboardService()
        self.profiles = ProfileOverlay(store)
        self._notify = notify or log_notifier

    # Loading

    async def async_load_for(
        self,
        session: EditorSession,
        target: Target,
        day: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        """Open a target in the editor."""
        if session.target != target:
            session.editing_profile = None
        session.target = target
        _LOGGER.info(f"Loading schedule for '{target.target_id}'")

        try:
            state = await self.store.async_get_schedule(target)
        except RECOVERABLE_ERRORS as err:
            self._report(session, err, f"Failed to load schedule for {target.target_id}")
            return False

        mode = state.schedule_mode if state is not None else ScheduleMode.ALL_DAYS
        session.mode = mode
        session.day = resolve_bucket(mode, day, now)
        self._apply_state(session, state, now)

        await self.async_refresh_members(session, now)
        return True

    async def async_refresh_members(self, session: EditorSession, now: Optional[datetime] = None) -> None:
        """Refresh the capability union and history feed of a target's members."""
        target = session.target
        if target is None:
            return

        results = await asyncio.gather(
            *(self.store.async_get_capabilities(entity_id) for entity_id in target.members),
            return_exceptions=True,
        )
        capabilities = []
        names = {}
        for entity_id, result in zip(target.members, results):
            if isinstance(result, Exception):
                _LOGGER.warning(f"Could not read capabilities of {entity_id}: {result}")
                continue
            capabilities.append(result)
            if result.friendly_name:
                names[entity_id] = result.friendly_name
        session.capabilities = Capabilities.merge(capabilities)
        session.history = await async_get_target_history(self.store, target, names, now=now)

    async def async_switch_mode(
        self,
        session: EditorSession,
        mode: Union[str, ScheduleMode],
        now: Optional[datetime] = None,
    ) -> bool:
        """Change how the schedule splits the week and show today's bucket."""
        mode = ScheduleMode.parse(mode)
        target = session.target
        if target is None:
            return False

        if self.profiles.return_to_active(session):
            _LOGGER.debug("Mode switch returns to the active profile")
        session.mode = mode
        session.day = default_bucket(mode, now)
        _LOGGER.info(f"Switching '{target.target_id}' to mode '{mode}', day '{session.day}'")

        try:
            state = await self.store.async_get_schedule(target)
            nodes = nodes_for_state(state, session.day, self.settings.default_schedule)
            await self.store.async_set_schedule(target, nodes or [dict(FALLBACK_NODE)], session.day, mode)
            state = await self.store.async_get_schedule(target)
        except RECOVERABLE_ERRORS as err:
            self._report(session, err, f"Failed to switch schedule mode for {target.target_id}")
            return False

        self._apply_state(session, state, now)
        return True

    async def async_switch_day(
        self,
        session: EditorSession,
        day: str,
        now: Optional[datetime] = None,
    ) -> bool:
        """Show another day's bucket."""
        target = session.target
        if target is None:
            return False

        self.profiles.return_to_active(session)
        session.day = resolve_bucket(session.mode, day, now)
        _LOGGER.debug(f"Switching '{target.target_id}' to day '{session.day}'")
        return await self.async_reload(session, now)

    async def async_reload(self, session: EditorSession, now: Optional[datetime] = None) -> bool:
        """Re-fetch the target and show the current bucket of the profile in view."""
        target = session.target
        if target is None:
            return False
        try:
            state = await self.store.async_get_schedule(target)
        except RECOVERABLE_ERRORS as err:
            self._report(session, err, f"Failed to load schedule for {target.target_id}")
            return False
        self._apply_state(session, state, now)
        return True

    def _apply_state(
        self,
        session: EditorSession,
        state: Optional[ScheduleState],
        now: Optional[datetime] = None,
    ) -> None:
        """Push the resolved nodes of a freshly fetched state into the graph."""
        session.state = state
        self.profiles.sync_from_state(session, state)
        schedules, mode, legacy_nodes = self.profiles.schedules_for(session, state)
        if state is not None and mode != session.mode:
            _LOGGER.debug(f"Stored mode is '{mode}', not '{session.mode}'")
            session.mode = mode
            session.day = resolve_bucket(mode, session.day, now)

        if state is None:
            nodes = copy_nodes(self.settings.default_schedule)
        else:
            nodes = nodes_for_bucket(schedules, session.day, self.settings.default_schedule, legacy_nodes)
        if not nodes:
            err = InvalidBucketState(f"No schedule resolved for bucket '{session.day}'")
            _LOGGER.warning(f"{err}, using a single default node")
            nodes = [dict(FALLBACK_NODE)]

        session.enabled = state.enabled if state is not None else True
        session.guard.begin_load()
        session.graph.set_nodes(nodes)
        session.graph.enabled = session.enabled
        session.last_saved = self._signature(session, nodes, session.enabled)
        self._refresh_readouts(session, now)

    def handle_load_complete(self, session: EditorSession) -> None:
        """Graph finished applying nodes pushed by a load."""
        session.guard.load_complete()

    # Saving

    async def async_save_current(self, session: EditorSession) -> bool:
        """Write the graph's nodes and the enabled flag to the store.

        Does nothing while a load is settling. Returns True when written.
        """
        target = session.target
        if target is None:
            return False
        if not session.guard.try_begin_save():
            _LOGGER.debug(f"Skipping save for '{target.target_id}', schedule is loading")
            return False

        try:
            nodes = session.graph.get_nodes()
            enabled = bool(session.graph.enabled)
            view = self._view(session)
            saved = self._signature(session, nodes, enabled)
            bucket = resolve_bucket(session.mode, session.day)
            _LOGGER.debug(
                f"Saving '{target.target_id}' - bucket: {bucket}, mode: {session.mode}, "
                f"profile: {session.profile_in_view}, nodes: {len(nodes)}"
            )
            await self.profiles.async_write(session, nodes, bucket, session.mode)
            if enabled:
                await self.store.async_enable(target)
            else:
                await self.store.async_disable(target)
        except ProfileReactivationFailure as err:
            self._report(session, err, f"Active profile of {target.target_id} could not be restored")
            raise
        except RECOVERABLE_ERRORS as err:
            self._report(session, err, f"Failed to save schedule for {target.target_id}")
            return False
        finally:
            session.guard.end_save()

        session.last_error = None
        if session.target != target or self._view(session) != view:
            _LOGGER.debug(f"View of '{target.target_id}' changed while saving, keeping the loaded state")
            return True
        session.enabled = enabled
        session.last_saved = saved
        return True

    async def async_handle_nodes_changed(
        self,
        session: EditorSession,
        force: bool = False,
        now: Optional[datetime] = None,
    ) -> bool:
        """Graph reported an edit: refresh readouts and save.

        Unforced notifications that leave nodes and enabled flag as last
        saved or loaded do not write.
        """
        if session.target is None:
            return False
        self._refresh_readouts(session, now)
        if not force:
            current = self._signature(session, session.graph.get_nodes(), bool(session.graph.enabled))
            if current == session.last_saved:
                _LOGGER.debug("Nodes unchanged, not saving")
                return False
        return await self.async_save_current(session)

    async def async_set_enabled(self, session: EditorSession, enabled: bool) -> bool:
        """Toggle scheduling; a target's first enable seeds the default schedule."""
        target = session.target
        if target is None:
            return False
        if enabled and session.state is None:
            nodes = copy_nodes(self.settings.default_schedule)
            try:
                await self.store.async_set_schedule(target, nodes, session.day, session.mode)
                await self.store.async_enable(target)
            except RECOVERABLE_ERRORS as err:
                self._report(session, err, f"Failed to enable schedule for {target.target_id}")
                return False
            _LOGGER.info(f"Created schedule for '{target.target_id}' from the default schedule")
            return await self.async_reload(session)

        session.graph.enabled = enabled
        return await self.async_save_current(session)

    async def async_clear(
        self,
        session: EditorSession,
        target: Optional[Target] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        """Reset every bucket of the current mode to the default schedule."""
        target = target or session.target
        if target is None:
            return False
        in_view = target == session.target

        try:
            state = await self.store.async_get_schedule(target)
            if in_view:
                self.profiles.sync_from_state(session, state)
                _, mode, _ = self.profiles.schedules_for(session, state)
            else:
                mode = state.schedule_mode if state is not None else ScheduleMode.ALL_DAYS
            writes = clear_writes(mode, self.settings.default_schedule)
            _LOGGER.info(f"Clearing '{target.target_id}': {len(writes)} buckets in mode '{mode}'")
            if in_view:
                await self.profiles.async_write_buckets(session, writes, mode)
            else:
                for bucket, nodes in writes:
                    await self.store.async_set_schedule(target, nodes, bucket, mode)
        except ProfileReactivationFailure as err:
            self._report(session, err, f"Active profile of {target.target_id} could not be restored")
            raise
        except RECOVERABLE_ERRORS as err:
            self._report(session, err, f"Failed to clear schedule for {target.target_id}")
            return False

        if in_view:
            session.mode = mode
            session.day = resolve_bucket(mode, session.day, now)
            nodes = copy_nodes(self.settings.default_schedule)
            session.guard.begin_load()
            session.graph.set_nodes(nodes)
            session.last_saved = self._signature(session, nodes, bool(session.graph.enabled))
            self._refresh_readouts(session, now)
        self._notify(f"Cleared schedule for {target.target_id}", "info")
        return True

    # Profiles

    async def async_select_profile(self, session: EditorSession, profile_name: str) -> bool:
        """Edit a profile without making it active."""
        if session.target is None:
            return False
        self.profiles.select(session, profile_name)
        return await self.async_reload(session)

    async def async_return_to_active_profile(self, session: EditorSession) -> bool:
        """Stop editing a non-active profile and show the live one."""
        self.profiles.return_to_active(session)
        return await self.async_reload(session)

    async def async_activate_profile(self, session: EditorSession, profile_name: str) -> bool:
        """Make a profile the one that drives the thermostats."""
        if session.target is None:
            return False
        try:
            await self.profiles.async_activate(session, profile_name)
        except RECOVERABLE_ERRORS as err:
            self._report(session, err, f"Failed to activate profile '{profile_name}'")
            return False
        return await self.async_reload(session)

    async def async_create_profile(self, session: EditorSession, profile_name: str) -> bool:
        if session.target is None:
            return False
        try:
            await self.profiles.async_create(session, profile_name)
        except RECOVERABLE_ERRORS as err:
            self._report(session, err, f"Failed to create profile '{profile_name}'")
            return False
        return await self.async_reload(session)

    async def async_rename_profile(self, session: EditorSession, old_name: str, new_name: str) -> bool:
        if session.target is None:
            return False
        try:
            await self.profiles.async_rename(session, old_name, new_name)
        except RECOVERABLE_ERRORS as err:
            self._report(session, err, f"Failed to rename profile '{old_name}'")
            return False
        return await self.async_reload(session)

    async def async_delete_profile(self, session: EditorSession, profile_name: str) -> bool:
        if session.target is None:
            return False
        try:
            await self.profiles.async_delete(session, profile_name)
        except RECOVERABLE_ERRORS as err:
            self._report(session, err, f"Failed to delete profile '{profile_name}'")
            return False
        return await self.async_reload(session)

    # Clipboard

    def copy(self, session: EditorSession) -> bool:
        """Copy the displayed nodes to the shared clipboard."""
        return self.clipboard.copy(session.graph.get_nodes())

    async def async_paste(self, session: EditorSession) -> bool:
        """Replace the displayed nodes with the clipboard and save once."""
        nodes = self.clipboard.paste()
        if nodes is None or session.target is None:
            return False
        # The graph echoes set_nodes as an edit; mark the pasted nodes as saved first
        previous = session.last_saved
        session.last_saved = self._signature(session, nodes, bool(session.graph.enabled))
        session.graph.set_nodes(nodes)
        self._refresh_readouts(session)
        try:
            saved = await self.async_save_current(session)
        except ProfileReactivationFailure:
            session.last_saved = previous
            raise
        if not saved:
            session.last_saved = previous
        return saved

    # Units

    async def async_convert_all(
        self,
        from_unit: str,
        to_unit: str,
        session: Optional[EditorSession] = None,
    ) -> bool:
        """Convert every stored schedule and temperature setting to another unit."""
        try:
            settings = await async_convert_all(self.store, from_unit, to_unit)
        except ProfileReactivationFailure as err:
            self._report(session, err, "Unit conversion left a profile active")
            raise
        except RECOVERABLE_ERRORS as err:
            self._report(session, err, "Failed to convert schedules")
            return False
        self.settings = EditorSettings.from_dict(settings, to_unit)
        if session is not None and session.target is not None:
            return await self.async_reload(session)
        return True

    # Readouts

    @staticmethod
    def interpolate(nodes: List[Dict[str, Any]], time_of_day: TimeOfDay) -> float:
        """Temperature in effect at a time of day."""
        return interpolate(nodes, time_of_day)

    def scheduled_temperature(self, session: EditorSession, now: Optional[datetime] = None) -> Optional[float]:
        """Temperature the displayed nodes call for, None when there are none."""
        nodes = session.graph.get_nodes()
        if not nodes:
            return None
        return interpolate(nodes, now or dt_util.now())

    def _refresh_readouts(self, session: EditorSession, now: Optional[datetime] = None) -> None:
        now = now or dt_util.now()
        session.scheduled_temp = self.scheduled_temperature(session, now)
        session.next_node = get_next_node(session.graph.get_nodes(), now)

    @staticmethod
    def _view(session: EditorSession) -> Tuple[Optional[str], str, str]:
        return session.profile_in_view, str(session.mode), session.day

    @staticmethod
    def _signature(session: EditorSession, nodes: List[Dict[str, Any]], enabled: bool) -> Dict[str, Any]:
        return {
            "profile": session.profile_in_view,
            "mode": str(session.mode),
            "day": session.day,
            "nodes": copy_nodes(nodes),
            "enabled": enabled,
        }

    def _report(self, session: Optional[EditorSession], err: Exception, message: str) -> None:
        """Log and notify a failure. Local state is kept as it is."""
        if session is not None:
            session.last_error = err
        if isinstance(err, ProfileReactivationFailure):
            _LOGGER.error(f"{message}: {err}")
        else:
            _LOGGER.warning(f"{message}: {err}")
        self._notify(f"{message}: {err}", "error")
