"""Exceptions for the Climate Scheduler editor."""
from typing import Optional

from homeassistant.exceptions import HomeAssistantError


class ClimateSchedulerEditorError(HomeAssistantError):
    """Base error for the schedule editor."""


class StoreUnavailable(ClimateSchedulerEditorError):
    """Remote schedule store rejected a call or timed out."""

    def __init__(self, service: str, reason: str) -> None:
        """Initialize the error."""
        super().__init__(f"Schedule store call '{service}' failed: {reason}")
        self.service = service
        self.reason = reason


class InvalidScheduleData(ClimateSchedulerEditorError):
    """Store returned data that does not match the expected shape."""


class InvalidBucketState(ClimateSchedulerEditorError):
    """No node list resolved for a bucket, even after the fallback chain."""


class ProfileReactivationFailure(ClimateSchedulerEditorError):
    """The original active profile could not be restored after a write.

    The store is left with the wrong active profile until someone fixes it.
    """

    def __init__(
        self,
        target_id: str,
        expected_profile: str,
        left_active: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        """Initialize the error."""
        super().__init__(
            f"Failed to reactivate profile '{expected_profile}' for '{target_id}'; "
            f"'{left_active}' is still active"
        )
        self.target_id = target_id
        self.expected_profile = expected_profile
        self.left_active = left_active
        self.cause = cause
