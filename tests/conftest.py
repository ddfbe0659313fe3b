"""Pytest fixtures for tests."""

from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import Mock

import pytest

from oscsurface.devices import ClientAddress
from oscsurface.models import AppConfig


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def temp_dir():
    """Create a temporary directory that gets cleaned up."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def transport():
    """Mock transport; every outbound message lands in transport.send.call_args_list."""
    mock = Mock()
    mock.send = Mock(return_value=None)
    return mock


@pytest.fixture
def sent(transport):
    """
    Read back what was sent through the mock transport.

    Returns a function: sent(path=None) -> [(destination, path, args), ...]
    """
    def _sent(path=None):
        calls = [(c.args[0], c.args[1], tuple(c.args[2:])) for c in transport.send.call_args_list]
        return [call for call in calls if path is None or call[1] == path]
    return _sent


@pytest.fixture
def client():
    return ClientAddress("10.0.0.5", 9000)


@pytest.fixture
def other_client():
    return ClientAddress("10.0.0.6", 9000)


@pytest.fixture
def config():
    """Default config with a fixed prefix and 4 slots."""
    return AppConfig(prefix="/oscsurface", max_slots=4)
