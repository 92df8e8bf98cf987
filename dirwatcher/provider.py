"""
Host watch providers.

A provider turns the operating system's change notifications for one directory
into a blocking stream of raw notification batches. DirectoryWatcher only talks
to the WatchProvider/WatchHandle interfaces defined here; WatchdogProvider is the
default implementation, built on the watchdog library's native observers
(inotify, FSEvents, ReadDirectoryChangesW, kqueue).
"""

import logging
import os
import queue
import threading
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import FrozenSet, List, NamedTuple, Optional

from watchdog.events import (EVENT_TYPE_CREATED, EVENT_TYPE_DELETED,
                             EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED,
                             FileSystemEventHandler)
from watchdog.observers import Observer

from dirwatcher.errors import InvalidArgument, WatchFailure

logger = logging.getLogger(__name__)

DEFAULT_BATCH_LATENCY = 0.05
ROOT_CHECK_INTERVAL = 0.5
OBSERVER_JOIN_TIMEOUT = 2.0


class RawKind(Enum):
    """Raw notification kinds as reported by a provider."""

    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"
    OVERFLOW = "overflow"


ALL_KINDS: FrozenSet[RawKind] = frozenset({RawKind.CREATE, RawKind.MODIFY, RawKind.DELETE})


class RawNotification(NamedTuple):
    """One raw notification: its kind and the path relative to the watched directory."""

    kind: RawKind
    relative_path: str


class WatchHandle(ABC):
    """A live registration for one directory."""

    @abstractmethod
    def next_batch(self) -> Optional[List[RawNotification]]:
        """
        Block until at least one notification is available.

        Returns:
            list[RawNotification] | None: The next batch in arrival order, or
            None once the handle has been closed.

        Raises:
            WatchFailure: If the registration failed while waiting.
        """

    @abstractmethod
    def reset(self) -> bool:
        """Re-arm the registration; False means it is no longer valid."""

    @abstractmethod
    def close(self) -> None:
        """Release the registration and wake any blocked next_batch(). Idempotent."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class WatchProvider(ABC):
    """Factory for WatchHandle registrations."""

    @abstractmethod
    def register(self, directory, kinds=ALL_KINDS, recursive=False) -> WatchHandle:
        """
        Start watching a directory.

        Args:
            directory (Path | str): Absolute directory path.
            kinds (frozenset[RawKind]): Kinds of change to report.
            recursive (bool): Also report changes inside subdirectories.

        Raises:
            WatchFailure: If the directory cannot be watched.
        """


_WAKE = object()


def _relative_to(path, root):
    """Path relative to root, or None for root itself and paths outside it."""
    try:
        if os.path.commonpath([root, path]) != root:
            return None
    except ValueError:
        # different drives, or mixing absolute and relative paths
        return None
    rel = os.path.relpath(path, root)
    return None if rel == os.curdir else rel


class _QueueingHandler(FileSystemEventHandler):
    """Translates watchdog events into RawNotification items on a queue."""

    def __init__(self, handle):
        super().__init__()
        self._handle = handle

    def on_any_event(self, event):
        src = os.fsdecode(event.src_path)
        if event.event_type in (EVENT_TYPE_DELETED, EVENT_TYPE_MOVED) and self._handle.is_root(src):
            self._handle.invalidate(FileNotFoundError(f"Watched directory was removed: {src}"))
            return

        if event.event_type == EVENT_TYPE_MOVED:
            dest = os.fsdecode(event.dest_path)
            src_rel = self._handle.relative(src)
            dest_rel = self._handle.relative(dest)
            if src_rel is not None:
                self._handle.push(RawKind.DELETE, src_rel)
            if dest_rel is not None:
                self._handle.push(RawKind.CREATE, dest_rel)
            return

        rel = self._handle.relative(src)
        if rel is None:
            return
        if event.event_type == EVENT_TYPE_CREATED:
            self._handle.push(RawKind.CREATE, rel)
        elif event.event_type == EVENT_TYPE_MODIFIED and event.is_directory:
            # a directory's own mtime changing because an entry inside it changed
            self._handle.push(RawKind.OVERFLOW, rel)
        elif event.event_type == EVENT_TYPE_MODIFIED:
            self._handle.push(RawKind.MODIFY, rel)
        elif event.event_type == EVENT_TYPE_DELETED:
            self._handle.push(RawKind.DELETE, rel)
        else:
            # opened/closed and anything newer watchdog adds
            self._handle.push(RawKind.OVERFLOW, rel)


class WatchdogHandle(WatchHandle):
    """WatchHandle backed by a dedicated watchdog Observer."""

    def __init__(self, directory, kinds, recursive, batch_latency=DEFAULT_BATCH_LATENCY):
        self._root = os.path.abspath(str(directory))
        self._real_root = os.path.realpath(self._root)
        self._kinds = frozenset(kinds)
        self._latency = batch_latency
        self._queue = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False
        self._error = None
        self._observer = Observer()
        self._observer.daemon = True
        try:
            self._observer.schedule(_QueueingHandler(self), self._root, recursive=recursive)
            self._observer.start()
        except OSError as e:
            self._closed = True
            raise WatchFailure(f"Cannot watch {self._root}: {e}") from e
        logger.debug("Registered watch on %s (recursive=%s)", self._root, recursive)

    def is_root(self, path):
        return path in (self._root, self._real_root)

    def relative(self, path):
        """Path relative to the watched root, or None for the root itself or outside paths."""
        for root in (self._root, self._real_root):
            rel = _relative_to(path, root)
            if rel is not None:
                return rel
        return None

    def push(self, kind, relative_path):
        if kind is RawKind.OVERFLOW or kind in self._kinds:
            self._queue.put(RawNotification(kind, relative_path))

    def invalidate(self, error):
        logger.warning("Watch on %s invalidated: %s", self._root, error)
        self._error = error
        self._queue.put(_WAKE)

    def _check_root(self):
        """Raise WatchFailure once the watched root is gone or the watch was invalidated."""
        if self._error is None and not os.path.isdir(self._root):
            self.invalidate(FileNotFoundError(f"Watched directory was removed: {self._root}"))
        if self._error is not None:
            raise WatchFailure(str(self._error)) from self._error

    def next_batch(self):
        while True:
            if self._closed:
                return None
            if self._error is not None and self._queue.empty():
                raise WatchFailure(str(self._error)) from self._error
            try:
                # A renamed root may report nothing at all, so look at it now and then.
                first = self._queue.get(timeout=ROOT_CHECK_INTERVAL)
            except queue.Empty:
                self._check_root()
                continue
            batch = [first]
            deadline = time.monotonic() + self._latency
            while True:
                remaining = deadline - time.monotonic()
                try:
                    if remaining > 0:
                        batch.append(self._queue.get(timeout=remaining))
                    else:
                        batch.append(self._queue.get_nowait())
                except queue.Empty:
                    break

            if self._closed:
                return None
            notifications = [item for item in batch if item is not _WAKE]
            if notifications:
                # Paths under a root that has gone away must not be handed out.
                self._check_root()
                return notifications

    def reset(self):
        if self._closed or self._error is not None:
            return False
        if not os.path.isdir(self._root):
            self.invalidate(FileNotFoundError(f"Watched directory was removed: {self._root}"))
            return False
        return True

    def close(self):
        with self._lock:
            if self._closed and not self._observer.is_alive():
                return
            self._closed = True
        self._queue.put(_WAKE)
        if self._observer.is_alive():
            self._observer.stop()
            if self._observer is not threading.current_thread():
                self._observer.join(OBSERVER_JOIN_TIMEOUT)
        logger.debug("Released watch on %s", self._root)


class WatchdogProvider(WatchProvider):
    """
    Default provider using watchdog's native Observer.

    Args:
        batch_latency (float): Seconds to keep collecting notifications after the
            first one of a batch arrives. Native facilities report one logical
            change as several notifications in quick succession; this window
            lets them land in the same batch.
    """

    def __init__(self, batch_latency=DEFAULT_BATCH_LATENCY):
        if batch_latency < 0:
            raise InvalidArgument("batch_latency must not be negative")
        self.batch_latency = batch_latency

    def register(self, directory, kinds=ALL_KINDS, recursive=False):
        return WatchdogHandle(directory, kinds, recursive, batch_latency=self.batch_latency)
