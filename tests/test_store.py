"""Tests for the REST-backed schedule store."""
from datetime import datetime, timezone

import pytest
from aiohttp import test_utils, web

from climate_scheduler_editor.exceptions import InvalidScheduleData, StoreUnavailable
from climate_scheduler_editor.models import EntityTarget, GroupTarget, ScheduleMode
from climate_scheduler_editor.store import HomeAssistantScheduleStore

LOUNGE = EntityTarget("climate.lounge")
UPSTAIRS = GroupTarget("Upstairs", ("climate.bedroom", "climate.landing"))

CALLS = web.AppKey("calls", list)
STATE = web.AppKey("state", dict)

SCHEDULE = {
    "entity_id": "climate.lounge",
    "enabled": True,
    "schedule_mode": "5/2",
    "schedules": {"weekday": [{"time": "06:30", "temp": 20.5}]},
    "profiles": {"Default": {"schedule_mode": "5/2", "schedules": {}}},
    "active_profile": "Default",
}

GROUPS = {
    "groups": {
        "Upstairs": {
            "entities": ["climate.bedroom", "climate.landing"],
            "enabled": False,
            "schedule_mode": "individual",
            "schedules": {"mon": [{"time": "07:00", "temp": 19.0}]},
        },
        "__entity_climate.lounge": {
            "entities": ["climate.lounge"],
            "_is_single_entity_group": True,
            "schedule_mode": "all_days",
            "schedules": {},
        },
    }
}


async def handle_service(request):
    service = request.match_info["service"]
    request.app[CALLS].append(
        {
            "service": service,
            "data": await request.json(),
            "return_response": "return_response" in request.query,
            "auth": request.headers.get("Authorization"),
        }
    )
    if request.app[STATE]["mode"] == "error":
        return web.Response(status=500, text="boom")
    if request.app[STATE]["mode"] == "garbage":
        return web.Response(text="not json")
    responses = {
        "get_schedule": SCHEDULE,
        "get_groups": GROUPS,
        "get_settings": {"settings": {"min_temp": 5.0}},
        "get_profiles": {"profiles": SCHEDULE["profiles"], "active_profile": "Default"},
    }
    if service in responses:
        return web.json_response({"changed_states": [], "service_response": responses[service]})
    return web.json_response([])


async def handle_history(request):
    request.app[CALLS].append({"history": request.match_info["start"], "query": dict(request.query)})
    return web.json_response(
        [
            [
                {
                    "entity_id": "climate.lounge",
                    "attributes": {"current_temperature": 19.5},
                    "last_updated": "2024-01-02T08:15:00+00:00",
                },
                {
                    "entity_id": "climate.lounge",
                    "attributes": {"hvac_action": "idle"},
                    "last_updated": "2024-01-02T08:20:00+00:00",
                },
                {"a": {"current_temperature": "20.0"}, "lu": 1704186000},
            ]
        ]
    )


async def handle_state(request):
    return web.json_response(
        {"entity_id": request.match_info["entity_id"], "attributes": {"hvac_modes": ["heat", "off"]}}
    )


@pytest.fixture
async def server():
    app = web.Application()
    app[CALLS] = []
    app[STATE] = {"mode": "ok"}
    app.router.add_post("/api/services/climate_scheduler/{service}", handle_service)
    app.router.add_get("/api/history/period/{start}", handle_history)
    app.router.add_get("/api/states/{entity_id}", handle_state)
    server = test_utils.TestServer(app)
    await server.start_server()
    yield server
    await server.close()


@pytest.fixture
async def store(server):
    async with HomeAssistantScheduleStore(f"http://{server.host}:{server.port}/", "secret") as store:
        yield store


async def test_get_schedule(server, store):
    state = await store.async_get_schedule(LOUNGE)

    assert state.schedule_mode is ScheduleMode.FIVE_TWO
    assert state.schedules["weekday"] == [{"time": "06:30", "temp": 20.5}]
    call = server.app[CALLS][0]
    assert call["service"] == "get_schedule"
    assert call["data"] == {"schedule_id": "climate.lounge"}
    assert call["return_response"]
    assert call["auth"] == "Bearer secret"


async def test_get_group_schedule_reads_groups(server, store):
    state = await store.async_get_schedule(UPSTAIRS)

    assert state.schedule_mode is ScheduleMode.INDIVIDUAL
    assert not state.enabled
    assert state.entities == ["climate.bedroom", "climate.landing"]
    assert server.app[CALLS][0]["service"] == "get_groups"


async def test_get_groups(store):
    groups = await store.async_get_groups()

    assert groups["Upstairs"].as_target() == UPSTAIRS
    assert groups["__entity_climate.lounge"].as_target() == LOUNGE


async def test_set_schedule_picks_service(server, store):
    nodes = [{"time": "07:00", "temp": 21.0}]
    await store.async_set_schedule(LOUNGE, nodes, "weekday", ScheduleMode.FIVE_TWO)
    await store.async_set_schedule(UPSTAIRS, nodes, "mon", ScheduleMode.INDIVIDUAL)

    first, second = server.app[CALLS]
    assert first["service"] == "set_schedule"
    assert first["data"] == {
        "schedule_id": "climate.lounge",
        "nodes": nodes,
        "day": "weekday",
        "schedule_mode": "5/2",
    }
    assert not first["return_response"]
    assert second["service"] == "set_group_schedule"
    assert second["data"]["group_name"] == "Upstairs"


async def test_enable_disable(server, store):
    await store.async_enable(LOUNGE)
    await store.async_disable(UPSTAIRS)

    assert [call["service"] for call in server.app[CALLS]] == ["enable_schedule", "disable_group"]


async def test_profile_services(server, store):
    await store.async_create_profile(LOUNGE, "Away")
    await store.async_rename_profile(LOUNGE, "Away", "Holiday")
    await store.async_set_active_profile(LOUNGE, "Holiday")
    await store.async_delete_profile(LOUNGE, "Default")
    profiles = await store.async_get_profiles(LOUNGE)

    calls = server.app[CALLS]
    assert [call["service"] for call in calls] == [
        "create_profile",
        "rename_profile",
        "set_active_profile",
        "delete_profile",
        "get_profiles",
    ]
    assert calls[1]["data"] == {"schedule_id": "climate.lounge", "old_name": "Away", "new_name": "Holiday"}
    assert list(profiles.profiles) == ["Default"]


async def test_settings(server, store):
    assert await store.async_get_settings() == {"min_temp": 5.0}

    await store.async_save_settings({"min_temp": 6.0})
    assert server.app[CALLS][1]["data"] == {"settings": '{"min_temp": 6.0}'}


async def test_history(server, store):
    start = datetime(2024, 1, 2, 0, 0, tzinfo=timezone.utc)
    end = datetime(2024, 1, 2, 12, 0, tzinfo=timezone.utc)

    samples = await store.async_get_history("climate.lounge", start, end)

    assert samples == [{"time": "08:15", "temp": 19.5}, {"time": "09:00", "temp": 20.0}]
    call = server.app[CALLS][0]
    assert call["query"]["filter_entity_id"] == "climate.lounge"


async def test_capabilities(store):
    capabilities = await store.async_get_capabilities("climate.lounge")
    assert capabilities.hvac_modes == ["heat", "off"]


async def test_http_error_raises_store_unavailable(server, store):
    server.app[STATE]["mode"] = "error"

    with pytest.raises(StoreUnavailable) as exc_info:
        await store.async_set_schedule(LOUNGE, [], "all_days", ScheduleMode.ALL_DAYS)

    assert exc_info.value.service == "set_schedule"
    assert "HTTP 500" in exc_info.value.reason


async def test_invalid_json_raises_invalid_data(server, store):
    server.app[STATE]["mode"] = "garbage"

    with pytest.raises(InvalidScheduleData):
        await store.async_get_schedule(LOUNGE)


async def test_connection_error_raises_store_unavailable(server):
    url = f"http://{server.host}:{server.port}"
    await server.close()

    async with HomeAssistantScheduleStore(url, "secret") as store:
        with pytest.raises(StoreUnavailable):
            await store.async_enable(LOUNGE)
