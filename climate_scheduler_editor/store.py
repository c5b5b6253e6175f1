"""Remote schedule store interface and the Home Assistant implementation."""
import abc
import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import aiohttp
from homeassistant.util import dt as dt_util

from .const import DOMAIN, REQUEST_TIMEOUT_SECONDS
from .exceptions import InvalidScheduleData, StoreUnavailable
from .models import (
    Capabilities,
    GroupRecord,
    ScheduleMode,
    ScheduleState,
    Target,
    parse_groups,
)
from .schedule import format_time

_LOGGER = logging.getLogger(__name__)


class ScheduleStore(abc.ABC):
    """Authoritative store of schedules, groups, profiles and settings.

    Writes always land in the target's currently active profile.
    Implementations raise StoreUnavailable when a call is rejected or times out.
    """

    @abc.abstractmethod
    async def async_get_schedule(self, target: Target) -> Optional[ScheduleState]:
        """Full schedule state of a target, or None if it has none yet."""

    @abc.abstractmethod
    async def async_set_schedule(
        self, target: Target, nodes: List[Dict[str, Any]], bucket: str, mode: ScheduleMode
    ) -> None:
        """Write one bucket of the target's active profile."""

    @abc.abstractmethod
    async def async_enable(self, target: Target) -> None:
        """Enable scheduling for a target."""

    @abc.abstractmethod
    async def async_disable(self, target: Target) -> None:
        """Disable scheduling for a target."""

    @abc.abstractmethod
    async def async_get_profiles(self, target: Target) -> ScheduleState:
        """Profiles of a target; only profiles and active_profile are meaningful."""

    @abc.abstractmethod
    async def async_create_profile(self, target: Target, profile_name: str) -> None:
        """Create a profile seeded from the live schedule."""

    @abc.abstractmethod
    async def async_rename_profile(self, target: Target, old_name: str, new_name: str) -> None:
        """Rename a profile."""

    @abc.abstractmethod
    async def async_delete_profile(self, target: Target, profile_name: str) -> None:
        """Delete a profile that is not active."""

    @abc.abstractmethod
    async def async_set_active_profile(self, target: Target, profile_name: str) -> None:
        """Make a profile the one that drives the thermostats."""

    @abc.abstractmethod
    async def async_get_groups(self) -> Dict[str, GroupRecord]:
        """All groups, including single-entity ones."""

    @abc.abstractmethod
    async def async_get_settings(self) -> Dict[str, Any]:
        """Global editor settings."""

    @abc.abstractmethod
    async def async_save_settings(self, settings: Dict[str, Any]) -> None:
        """Merge and persist global editor settings."""

    @abc.abstractmethod
    async def async_get_history(
        self, entity_id: str, start: datetime, end: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """Measured temperature samples as [{"time": "HH:MM", "temp": float}]."""

    @abc.abstractmethod
    async def async_get_capabilities(self, entity_id: str) -> Capabilities:
        """Climate modes an entity supports."""


def _parse_history(entity_id: str, result: Any) -> List[Dict[str, Any]]:
    """Extract current_temperature samples from a history response."""
    samples: List[Dict[str, Any]] = []
    if not isinstance(result, list):
        return samples

    for series in result:
        if not isinstance(series, list):
            continue
        for state in series:
            if state.get("entity_id", entity_id) != entity_id:
                break
            attributes = state.get("attributes") or state.get("a")
            last_updated = state.get("last_updated") or state.get("lu")
            if not attributes:
                continue
            try:
                temp = float(attributes.get("current_temperature"))
            except (TypeError, ValueError):
                continue

            if isinstance(last_updated, str):
                stamp = dt_util.parse_datetime(last_updated)
            elif isinstance(last_updated, (int, float)):
                # Abbreviated responses use epoch seconds, some proxies milliseconds
                seconds = last_updated / 1000 if last_updated > 10_000_000_000 else last_updated
                stamp = dt_util.utc_from_timestamp(seconds)
            else:
                stamp = None
            if stamp is None:
                continue

            samples.append({"time": format_time(dt_util.as_local(stamp)), "temp": temp})
    return samples


class HomeAssistantScheduleStore(ScheduleStore):
    """Store backed by the climate_scheduler services over the REST API."""

    def __init__(
        self,
        base_url: str,
        token: str,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the store."""
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def __aenter__(self) -> "HomeAssistantScheduleStore":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.async_close()

    async def async_close(self) -> None:
        """Close the HTTP session if this store created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def _request(
        self,
        method: str,
        path: str,
        name: str,
        *,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        url = f"{self._base_url}{path}"
        try:
            async with self._get_session().request(
                method,
                url,
                json=payload,
                params=params,
                headers=self._headers,
                timeout=self._timeout,
            ) as resp:
                if resp.status >= 400:
                    text = await resp.text()
                    raise StoreUnavailable(name, f"HTTP {resp.status}: {text}")
                return await resp.json(content_type=None)
        except asyncio.TimeoutError as err:
            raise StoreUnavailable(name, "request timeout") from err
        except aiohttp.ClientError as err:
            raise StoreUnavailable(name, str(err)) from err
        except json.JSONDecodeError as err:
            raise InvalidScheduleData(f"Invalid JSON from '{name}': {err}") from err

    async def _call_service(
        self, service: str, data: Dict[str, Any], return_response: bool = False
    ) -> Any:
        """Call a climate_scheduler service, returning its response data."""
        _LOGGER.debug(f"Calling {DOMAIN}.{service} with {data}")
        params = {"return_response": ""} if return_response else None
        result = await self._request(
            "POST", f"/api/services/{DOMAIN}/{service}", service, payload=data, params=params
        )
        if not return_response:
            return None
        if not isinstance(result, dict):
            raise InvalidScheduleData(f"Unexpected response from '{service}': {result}")
        return result.get("service_response", {})

    async def async_get_schedule(self, target: Target) -> Optional[ScheduleState]:
        if target.is_group:
            groups = await self.async_get_groups()
            record = groups.get(target.target_id)
            return record.state if record is not None else None
        result = await self._call_service(
            "get_schedule", {"schedule_id": target.target_id}, return_response=True
        )
        return ScheduleState.from_dict(result)

    async def async_set_schedule(
        self, target: Target, nodes: List[Dict[str, Any]], bucket: str, mode: ScheduleMode
    ) -> None:
        data = {"nodes": nodes, "day": bucket, "schedule_mode": str(mode)}
        if target.is_group:
            await self._call_service("set_group_schedule", {"group_name": target.target_id, **data})
        else:
            await self._call_service("set_schedule", {"schedule_id": target.target_id, **data})

    async def async_enable(self, target: Target) -> None:
        if target.is_group:
            await self._call_service("enable_group", {"group_name": target.target_id})
        else:
            await self._call_service("enable_schedule", {"schedule_id": target.target_id})

    async def async_disable(self, target: Target) -> None:
        if target.is_group:
            await self._call_service("disable_group", {"group_name": target.target_id})
        else:
            await self._call_service("disable_schedule", {"schedule_id": target.target_id})

    async def async_get_profiles(self, target: Target) -> ScheduleState:
        result = await self._call_service(
            "get_profiles", {"schedule_id": target.target_id}, return_response=True
        )
        return ScheduleState.from_dict(result) or ScheduleState()

    async def async_create_profile(self, target: Target, profile_name: str) -> None:
        await self._call_service(
            "create_profile", {"schedule_id": target.target_id, "profile_name": profile_name}
        )

    async def async_rename_profile(self, target: Target, old_name: str, new_name: str) -> None:
        await self._call_service(
            "rename_profile",
            {"schedule_id": target.target_id, "old_name": old_name, "new_name": new_name},
        )

    async def async_delete_profile(self, target: Target, profile_name: str) -> None:
        await self._call_service(
            "delete_profile", {"schedule_id": target.target_id, "profile_name": profile_name}
        )

    async def async_set_active_profile(self, target: Target, profile_name: str) -> None:
        await self._call_service(
            "set_active_profile", {"schedule_id": target.target_id, "profile_name": profile_name}
        )

    async def async_get_groups(self) -> Dict[str, GroupRecord]:
        result = await self._call_service("get_groups", {}, return_response=True)
        return parse_groups(result)

    async def async_get_settings(self) -> Dict[str, Any]:
        result = await self._call_service("get_settings", {}, return_response=True)
        settings = result.get("settings", result) if isinstance(result, dict) else None
        if not isinstance(settings, dict):
            raise InvalidScheduleData(f"Malformed settings response: {result}")
        return settings

    async def async_save_settings(self, settings: Dict[str, Any]) -> None:
        await self._call_service("save_settings", {"settings": json.dumps(settings)})

    async def async_get_history(
        self, entity_id: str, start: datetime, end: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        end = end or dt_util.now()
        result = await self._request(
            "GET",
            f"/api/history/period/{start.isoformat()}",
            "history",
            params={"filter_entity_id": entity_id, "end_time": end.isoformat()},
        )
        return _parse_history(entity_id, result)

    async def async_get_capabilities(self, entity_id: str) -> Capabilities:
        result = await self._request("GET", f"/api/states/{entity_id}", "states")
        if not isinstance(result, dict):
            raise InvalidScheduleData(f"Malformed state for {entity_id}: {result}")
        return Capabilities.from_attributes(result.get("attributes") or {})
