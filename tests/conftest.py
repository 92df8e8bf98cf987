"""
Shared fixtures for the dirwatcher tests.

FakeProvider/FakeHandle stand in for the native watch facility so the watch
loop can be driven batch by batch from the test thread.
"""

import queue
import threading

import pytest

from dirwatcher.provider import RawKind, RawNotification, WatchHandle, WatchProvider
from dirwatcher.watchable import DirectoryWatchable

WAIT_TIMEOUT = 5.0

_CLOSED = object()


def note(kind, path):
    """Shorthand for a RawNotification, e.g. note("create", "a.txt")."""
    return RawNotification(RawKind(kind), path)


class FakeHandle(WatchHandle):
    def __init__(self, directory, kinds, recursive):
        self.directory = directory
        self.kinds = kinds
        self.recursive = recursive
        self.closed = False
        self.reset_results = []
        self.reset_calls = 0
        self.waits = 0
        self._queue = queue.Queue()
        self._cond = threading.Condition()

    def push(self, *notifications):
        self._queue.put(list(notifications))

    def fail(self, error):
        self._queue.put(error)

    def next_batch(self):
        with self._cond:
            self.waits += 1
            self._cond.notify_all()
        item = self._queue.get()
        if item is _CLOSED or self.closed:
            return None
        if isinstance(item, Exception):
            raise item
        return item

    def reset(self):
        self.reset_calls += 1
        if self.reset_results:
            return self.reset_results.pop(0)
        return True

    def close(self):
        if not self.closed:
            self.closed = True
            self._queue.put(_CLOSED)

    def wait_for_waits(self, count, timeout=WAIT_TIMEOUT):
        """Block until the worker has asked for its count-th batch."""
        with self._cond:
            return self._cond.wait_for(lambda: self.waits >= count, timeout)


class FakeProvider(WatchProvider):
    def __init__(self):
        self.handles = []
        self.register_error = None
        self._cond = threading.Condition()

    def register(self, directory, kinds=None, recursive=False):
        if self.register_error is not None:
            raise self.register_error
        handle = FakeHandle(directory, kinds, recursive)
        with self._cond:
            self.handles.append(handle)
            self._cond.notify_all()
        return handle

    def wait_for_handle(self, index=0, timeout=WAIT_TIMEOUT):
        with self._cond:
            assert self._cond.wait_for(lambda: len(self.handles) > index, timeout), "no registration"
            handle = self.handles[index]
        assert handle.wait_for_waits(1, timeout), "worker never waited for a batch"
        return handle


class Recorder(DirectoryWatchable):
    """Collects events and failures delivered by a watcher."""

    def __init__(self):
        self.events = []
        self.failures = []
        self._cond = threading.Condition()

    def on_change_detected(self, event):
        with self._cond:
            self.events.append(event)
            self._cond.notify_all()

    def on_failure(self, error):
        with self._cond:
            self.failures.append(error)
            self._cond.notify_all()

    def wait_for_events(self, count, timeout=WAIT_TIMEOUT):
        with self._cond:
            return self._cond.wait_for(lambda: len(self.events) >= count, timeout)

    def wait_for_failures(self, count=1, timeout=WAIT_TIMEOUT):
        with self._cond:
            return self._cond.wait_for(lambda: len(self.failures) >= count, timeout)


@pytest.fixture
def watch_dir(tmp_path):
    directory = tmp_path / "watched"
    directory.mkdir()
    return directory


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def make_watcher(watch_dir, provider, recorder):
    from dirwatcher.watcher import DirectoryWatcher

    created = []

    def _make(**kwargs):
        kwargs.setdefault("provider", provider)
        watcher = DirectoryWatcher(watch_dir, recorder, **kwargs)
        created.append(watcher)
        return watcher

    yield _make

    for watcher in created:
        watcher.stop()
        watcher.join(WAIT_TIMEOUT)
