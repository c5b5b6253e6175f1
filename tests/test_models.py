"""Tests for store response models."""
import pytest

from climate_scheduler_editor.exceptions import InvalidScheduleData
from climate_scheduler_editor.models import (
    Capabilities,
    EntityTarget,
    GroupTarget,
    ScheduleMode,
    ScheduleState,
    parse_groups,
)


def test_mode_parse():
    assert ScheduleMode.parse("5/2") is ScheduleMode.FIVE_TWO
    assert ScheduleMode.parse(None) is ScheduleMode.ALL_DAYS
    assert ScheduleMode.INDIVIDUAL.buckets[0] == "mon"
    with pytest.raises(ValueError):
        ScheduleMode.parse("weekly")


def test_targets():
    assert EntityTarget("climate.lounge").members == ["climate.lounge"]
    group = GroupTarget("Upstairs", ("climate.a", "climate.b"))
    assert group.is_group
    assert group.target_id == "Upstairs"
    assert group.members == ["climate.a", "climate.b"]


def test_state_from_dict():
    state = ScheduleState.from_dict(
        {
            "enabled": False,
            "schedule_mode": "individual",
            "schedules": {"tue": [{"time": "07:00", "temp": "20"}]},
            "profiles": {"Home": {"schedule_mode": "5/2", "schedules": {}}},
            "active_profile": "Home",
            "future_field": 1,
        }
    )
    assert not state.enabled
    assert state.schedule_mode is ScheduleMode.INDIVIDUAL
    assert state.schedules["tue"] == [{"time": "07:00", "temp": 20.0}]
    assert state.profile("Home").schedule_mode is ScheduleMode.FIVE_TWO
    assert state.profile(None) is None


def test_state_without_schedule():
    assert ScheduleState.from_dict({}) is None
    assert ScheduleState.from_dict({"schedule": None}) is None
    assert ScheduleState.from_dict({"schedule_mode": None}).schedule_mode is ScheduleMode.ALL_DAYS


@pytest.mark.parametrize(
    "data",
    [
        {"schedules": {"mon": [{"time": "7am", "temp": 20}]}},
        {"schedule_mode": "fortnightly"},
        {"profiles": {"Home": {"schedule_mode": "weekly"}}},
    ],
)
def test_state_rejects_malformed_data(data):
    with pytest.raises(InvalidScheduleData):
        ScheduleState.from_dict(data)


def test_parse_groups():
    groups = parse_groups(
        {
            "groups": {
                "Upstairs": {"entities": ["climate.a", "climate.b"]},
                "__entity_climate.c": {"entities": ["climate.c"], "_is_single_entity_group": True},
                "broken": "not a group",
            }
        }
    )
    assert set(groups) == {"Upstairs", "__entity_climate.c"}
    assert groups["__entity_climate.c"].as_target() == EntityTarget("climate.c")

    with pytest.raises(InvalidScheduleData):
        parse_groups({"groups": ["Upstairs"]})


def test_capabilities_union():
    merged = Capabilities.merge(
        [
            Capabilities.from_attributes({"hvac_modes": ["heat", "off"], "fan_modes": None}),
            Capabilities.from_attributes({"hvac_modes": ["cool", "heat"], "fan_modes": ["auto"]}),
        ]
    )
    assert merged.hvac_modes == ["heat", "off", "cool"]
    assert merged.fan_modes == ["auto"]
    assert merged.preset_modes == []
    assert merged.friendly_name is None


def test_capabilities_keep_friendly_name():
    capabilities = Capabilities.from_attributes({"friendly_name": "Lounge", "hvac_modes": ["heat"]})
    assert capabilities.friendly_name == "Lounge"
    assert Capabilities.from_attributes({}).friendly_name is None
