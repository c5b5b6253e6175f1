"""Tests for editing non-active profiles."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from climate_scheduler_editor.exceptions import ProfileReactivationFailure, StoreUnavailable
from climate_scheduler_editor.models import EntityTarget, ScheduleMode
from climate_scheduler_editor.profiles import ProfileOverlay
from climate_scheduler_editor.session import EditorSession
from climate_scheduler_editor.storage import LocalScheduleStore

TARGET = EntityTarget("climate.lounge")
HOME = [{"time": "00:00", "temp": 18.0}, {"time": "07:00", "temp": 21.0}]
AWAY = [{"time": "00:00", "temp": 12.0}]


def recording_store(calls, reactivate_error=None):
    store = MagicMock()

    async def set_active_profile(target, name):
        calls.append(("activate", name))
        if reactivate_error is not None and len([c for c in calls if c[0] == "activate"]) == 2:
            raise reactivate_error

    async def set_schedule(target, nodes, bucket, mode):
        calls.append(("write", bucket))

    store.async_set_active_profile = AsyncMock(side_effect=set_active_profile)
    store.async_set_schedule = AsyncMock(side_effect=set_schedule)
    return store


async def test_write_to_active_profile_is_direct():
    calls = []
    overlay = ProfileOverlay(recording_store(calls))
    session = EditorSession(target=TARGET, active_profile="Home")

    await overlay.async_write(session, AWAY, "all_days", ScheduleMode.ALL_DAYS)

    assert calls == [("write", "all_days")]


async def test_write_to_other_profile_activates_and_restores():
    calls = []
    overlay = ProfileOverlay(recording_store(calls))
    session = EditorSession(target=TARGET, active_profile="Home", editing_profile="Away")

    await overlay.async_write_buckets(
        session, [("weekday", AWAY), ("weekend", AWAY)], ScheduleMode.FIVE_TWO
    )

    assert calls == [
        ("activate", "Away"),
        ("write", "weekday"),
        ("write", "weekend"),
        ("activate", "Home"),
    ]


async def test_failed_write_still_restores_active_profile():
    calls = []
    store = recording_store(calls)
    store.async_set_schedule = AsyncMock(side_effect=StoreUnavailable("set_schedule", "HTTP 500"))
    overlay = ProfileOverlay(store)
    session = EditorSession(target=TARGET, active_profile="Home", editing_profile="Away")

    with pytest.raises(StoreUnavailable):
        await overlay.async_write(session, AWAY, "all_days", ScheduleMode.ALL_DAYS)

    assert calls == [("activate", "Away"), ("activate", "Home")]


async def test_failed_reactivation_raises():
    calls = []
    overlay = ProfileOverlay(
        recording_store(calls, reactivate_error=StoreUnavailable("set_active_profile", "request timeout"))
    )
    session = EditorSession(target=TARGET, active_profile="Home", editing_profile="Away")

    with pytest.raises(ProfileReactivationFailure) as exc_info:
        await overlay.async_write(session, AWAY, "all_days", ScheduleMode.ALL_DAYS)

    err = exc_info.value
    assert err.target_id == "climate.lounge"
    assert err.expected_profile == "Home"
    assert err.left_active == "Away"
    assert isinstance(err.cause, StoreUnavailable)


async def test_overlay_write_against_local_store():
    store = LocalScheduleStore()
    await store.async_set_schedule(TARGET, HOME, "all_days", ScheduleMode.ALL_DAYS)
    await store.async_create_profile(TARGET, "Away")
    state = await store.async_get_schedule(TARGET)

    overlay = ProfileOverlay(store)
    session = EditorSession(target=TARGET, editing_profile="Away")
    overlay.sync_from_state(session, state)
    assert session.is_overlaying

    await overlay.async_write(session, AWAY, "all_days", ScheduleMode.ALL_DAYS)

    state = await store.async_get_schedule(TARGET)
    assert state.active_profile == "Default"
    assert state.schedules["all_days"] == HOME
    assert state.profiles["Away"].schedules["all_days"] == AWAY
    assert state.profiles["Default"].schedules["all_days"] == HOME


async def test_sync_from_state_drops_stale_pointers():
    store = LocalScheduleStore()
    await store.async_set_schedule(TARGET, HOME, "all_days", ScheduleMode.ALL_DAYS)
    state = await store.async_get_schedule(TARGET)
    overlay = ProfileOverlay(store)

    session = EditorSession(target=TARGET, editing_profile="Deleted")
    overlay.sync_from_state(session, state)
    assert session.editing_profile is None
    assert session.active_profile == "Default"

    session.editing_profile = "Default"
    overlay.sync_from_state(session, state)
    assert session.editing_profile is None
    assert not session.is_overlaying


async def test_schedules_for_profile_in_view():
    store = LocalScheduleStore()
    await store.async_set_schedule(TARGET, HOME, "all_days", ScheduleMode.ALL_DAYS)
    await store.async_create_profile(TARGET, "Away")
    await store.async_set_active_profile(TARGET, "Away")
    await store.async_set_schedule(TARGET, AWAY, "weekday", ScheduleMode.FIVE_TWO)
    await store.async_set_active_profile(TARGET, "Default")
    state = await store.async_get_schedule(TARGET)

    overlay = ProfileOverlay(store)
    session = EditorSession(target=TARGET, state=state)
    overlay.sync_from_state(session, state)

    schedules, mode, legacy = overlay.schedules_for(session, state)
    assert mode is ScheduleMode.ALL_DAYS
    assert schedules["all_days"] == HOME

    overlay.select(session, "Away")
    schedules, mode, legacy = overlay.schedules_for(session, state)
    assert mode is ScheduleMode.FIVE_TWO
    assert schedules["weekday"] == AWAY
    assert legacy is None

    assert overlay.return_to_active(session)
    assert not overlay.return_to_active(session)


async def test_select_unknown_profile():
    store = LocalScheduleStore()
    await store.async_set_schedule(TARGET, HOME, "all_days", ScheduleMode.ALL_DAYS)
    state = await store.async_get_schedule(TARGET)
    session = EditorSession(target=TARGET, state=state, active_profile="Default")

    with pytest.raises(ValueError):
        ProfileOverlay(store).select(session, "Holiday")


async def test_rename_follows_session_pointers():
    store = LocalScheduleStore()
    await store.async_set_schedule(TARGET, HOME, "all_days", ScheduleMode.ALL_DAYS)
    await store.async_create_profile(TARGET, "Away")
    overlay = ProfileOverlay(store)
    session = EditorSession(target=TARGET, active_profile="Default", editing_profile="Away")

    await overlay.async_rename(session, "Away", "Holiday")
    assert session.editing_profile == "Holiday"

    await overlay.async_rename(session, "Default", "Home")
    assert session.active_profile == "Home"
    state = await store.async_get_schedule(TARGET)
    assert state.active_profile == "Home"
    assert set(state.profiles) == {"Home", "Holiday"}


async def test_delete_rules():
    store = LocalScheduleStore()
    await store.async_set_schedule(TARGET, HOME, "all_days", ScheduleMode.ALL_DAYS)
    overlay = ProfileOverlay(store)
    session = EditorSession(target=TARGET, active_profile="Default")

    with pytest.raises(ValueError):
        await overlay.async_delete(session, "Default")

    await overlay.async_create(session, "Away")
    session.editing_profile = "Away"
    await overlay.async_delete(session, "Away")
    assert session.editing_profile is None
