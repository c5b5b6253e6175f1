"""Shared fixtures for the schedule editor tests."""
import asyncio
import copy
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from climate_scheduler_editor.clipboard import ClipboardService
from climate_scheduler_editor.controller import ScheduleController
from climate_scheduler_editor.session import EditorSession
from climate_scheduler_editor.storage import LocalScheduleStore

# 2024-01-01 was a Monday
TUESDAY = datetime(2024, 1, 2, 9, 30, tzinfo=timezone.utc)
WEDNESDAY = datetime(2024, 1, 3, 12, 0, tzinfo=timezone.utc)
SATURDAY = datetime(2024, 1, 6, 10, 0, tzinfo=timezone.utc)


class FakeGraph:
    """Graph component that records what the controller pushes into it."""

    def __init__(self):
        self.enabled = True
        self.nodes = []
        self.set_calls = 0

    def set_nodes(self, nodes):
        self.nodes = copy.deepcopy(nodes)
        self.set_calls += 1

    def get_nodes(self):
        return copy.deepcopy(self.nodes)


async def settle():
    """Wait past the sync guard's fallback settle window."""
    await asyncio.sleep(0.15)


@pytest.fixture
def store():
    return LocalScheduleStore()


@pytest.fixture
def notify():
    return MagicMock()


@pytest.fixture
def clipboard():
    return ClipboardService()


@pytest.fixture
def controller(store, clipboard, notify):
    return ScheduleController(store, clipboard=clipboard, notify=notify)


@pytest.fixture
def session():
    return EditorSession(graph=FakeGraph())
