"""User settings for the schedule editor."""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

import voluptuous as vol
from homeassistant.const import UnitOfTemperature

from .const import (
    DEFAULT_SCHEDULE,
    MAX_TEMP,
    MAX_TEMP_F,
    MIN_TEMP,
    MIN_TEMP_F,
)
from .exceptions import InvalidScheduleData
from .schedule import NODES_SCHEMA, copy_nodes
from .store import ScheduleStore
from .units import async_convert_all, convert_schedule_nodes, convert_temperature

_LOGGER = logging.getLogger(__name__)

# Schedules stored before a unit was recorded never go this high in Celsius
CELSIUS_CEILING = 40

TEMPERATURE_UNITS = [UnitOfTemperature.CELSIUS, UnitOfTemperature.FAHRENHEIT]

SETTINGS_SCHEMA = vol.Schema(
    {
        vol.Optional("defaultSchedule"): vol.Any(None, NODES_SCHEMA),
        vol.Optional("min_temp"): vol.Any(None, vol.Coerce(float)),
        vol.Optional("max_temp"): vol.Any(None, vol.Coerce(float)),
        vol.Optional("temperature_unit"): vol.Any(None, vol.In(TEMPERATURE_UNITS)),
        vol.Optional("tooltipMode", default="history"): vol.In(["history", "cursor"]),
    },
    extra=vol.ALLOW_EXTRA,
)


@dataclass
class EditorSettings:
    """Settings shared by every editor."""

    default_schedule: List[Dict[str, Any]] = field(default_factory=lambda: copy_nodes(DEFAULT_SCHEDULE))
    min_temp: float = MIN_TEMP
    max_temp: float = MAX_TEMP
    temperature_unit: str = UnitOfTemperature.CELSIUS
    tooltip_mode: str = "history"

    @classmethod
    def from_dict(cls, data: Dict[str, Any], temperature_unit: str) -> "EditorSettings":
        try:
            data = SETTINGS_SCHEMA(data)
        except vol.Invalid as err:
            raise InvalidScheduleData(f"Invalid settings: {err}") from err
        fahrenheit = temperature_unit == UnitOfTemperature.FAHRENHEIT
        min_temp = data.get("min_temp")
        max_temp = data.get("max_temp")
        return cls(
            default_schedule=copy_nodes(data.get("defaultSchedule") or DEFAULT_SCHEDULE),
            min_temp=min_temp if min_temp is not None else (MIN_TEMP_F if fahrenheit else MIN_TEMP),
            max_temp=max_temp if max_temp is not None else (MAX_TEMP_F if fahrenheit else MAX_TEMP),
            temperature_unit=temperature_unit,
            tooltip_mode=data["tooltipMode"],
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "defaultSchedule": copy_nodes(self.default_schedule),
            "min_temp": self.min_temp,
            "max_temp": self.max_temp,
            "temperature_unit": self.temperature_unit,
            "tooltipMode": self.tooltip_mode,
        }

    async def async_save(self, store: ScheduleStore) -> None:
        """Persist the settings."""
        await store.async_save_settings(self.as_dict())
        _LOGGER.debug("Editor settings saved")


def _convert_first_run(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Convert Celsius-looking settings on a Fahrenheit system's first run."""
    default_schedule = settings.get("defaultSchedule")
    if not default_schedule:
        return settings
    if max(float(node["temp"]) for node in default_schedule) >= CELSIUS_CEILING:
        return settings

    _LOGGER.info("First load on a Fahrenheit system, converting default schedule from Celsius")
    c, f = UnitOfTemperature.CELSIUS, UnitOfTemperature.FAHRENHEIT
    settings["defaultSchedule"] = convert_schedule_nodes(default_schedule, c, f)
    for key in ("min_temp", "max_temp"):
        value = settings.get(key)
        if value is not None and float(value) < CELSIUS_CEILING:
            settings[key] = convert_temperature(float(value), c, f)
    return settings


async def async_load_settings(store: ScheduleStore, temperature_unit: str) -> EditorSettings:
    """Load settings, migrating stored schedules if the display unit changed."""
    settings = await store.async_get_settings()
    saved_unit = settings.get("temperature_unit")

    if saved_unit and saved_unit != temperature_unit:
        _LOGGER.info(f"Temperature unit changed from {saved_unit} to {temperature_unit}, converting schedules")
        settings = await async_convert_all(store, saved_unit, temperature_unit)
    elif not saved_unit:
        if temperature_unit == UnitOfTemperature.FAHRENHEIT:
            settings = _convert_first_run(settings)
        settings["temperature_unit"] = temperature_unit
        await store.async_save_settings(settings)

    return EditorSettings.from_dict(settings, temperature_unit)
