import queue
import time

import pytest

from urlsweep.config import logger
from urlsweep.utils.log_utils import LogChannel


@pytest.fixture
def sleeps(monkeypatch):
    recorded = []
    monkeypatch.setattr(time, "sleep", recorded.append)
    return recorded


@pytest.fixture
def events():
    return queue.Queue()


@pytest.fixture
def channel(events):
    return LogChannel(events)


@pytest.fixture
def use_session(monkeypatch):
    def install(session):
        monkeypatch.setattr("urlsweep.phases.passive.get_session_with_proxy", lambda self: session)
        return session
    return install


@pytest.fixture(autouse=True)
def restore_logger():
    handlers = list(logger.handlers)
    level = logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
