"""Pytest fixtures: in-memory store, fake timers and a fake HTTP session."""

import pytest
import requests

from config import Config
from controller import TrackerController
from services import KeyValueStore, LibraryStore


class FakeTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.stopped = False
        self.fired = False

    def stop(self):
        self.stopped = True


class FakeScheduler:
    """Stands in for App.set_timer; timers only fire when the test says so."""

    def __init__(self):
        self.timers = []

    def __call__(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def live(self):
        return [t for t in self.timers if not t.stopped and not t.fired]

    def fire(self):
        for timer in self.live:
            timer.fired = True
            timer.callback()


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse({"results": []})
        self.error = error
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        if self.error:
            raise self.error
        return self.response


@pytest.fixture
def config():
    return Config(TMDB_API_KEY="tmdb-key", RAWG_API_KEY="rawg-key")


@pytest.fixture
def kv():
    store = KeyValueStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def library(kv):
    return LibraryStore(kv)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def launched():
    return []


@pytest.fixture
def controller(library, config, scheduler, launched):
    ticks = iter(range(1_000, 10_000))
    return TrackerController(library, config, schedule=scheduler,
                             launch_search=launched.append,
                             clock=lambda: next(ticks))
