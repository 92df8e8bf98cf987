"""
Directory watcher.

DirectoryWatcher watches one directory and tells a DirectoryWatchable about
every file that is created, modified or deleted in it. Watching happens on one
dedicated daemon thread per running watcher:

- the worker registers the directory with a WatchProvider and blocks waiting
  for the next batch of raw notifications (no CPU is used while idle);
- each batch is classified into ChangeEvents, passed through the active filter
  and handed to the consumer synchronously, in provider order;
- stop() closes the registration, which wakes the blocked worker and ends the
  run quietly. Provider errors end the run through on_failure().

Native facilities commonly report one content change as two MODIFY
notifications (data, then timestamp). Within a batch, the first MODIFY is
delivered and every later notification of that batch is dropped. Batches are
never merged with each other.
"""

import logging
import threading
from enum import Enum
from pathlib import Path

from dirwatcher.errors import InvalidArgument, WatchFailure
from dirwatcher.events import ChangeEvent, ChangeKind
from dirwatcher.filters import accept_all
from dirwatcher.provider import ALL_KINDS, RawKind, WatchdogProvider
from dirwatcher.watchable import as_watchable

logger = logging.getLogger(__name__)

_KINDS = {
    RawKind.CREATE: ChangeKind.CREATED,
    RawKind.MODIFY: ChangeKind.MODIFIED,
    RawKind.DELETE: ChangeKind.DELETED,
}


class WatchOptions(Enum):
    """How much of the directory tree a DirectoryWatcher covers."""

    ROOT_ONLY = "root_only"
    INCLUDE_SUB_DIRS = "include_sub_dirs"


class _WatchWorker(threading.Thread):
    """
    The background thread of one watcher run.

    A worker is used for exactly one run; restarting a watcher creates a new
    worker with a fresh registration.
    """

    def __init__(self, watcher):
        super(_WatchWorker, self).__init__(name=f"dirwatcher-{watcher.directory.name}")
        self._watcher = watcher
        self._lock = threading.Lock()
        self._handle = None
        self.stop_event = threading.Event()
        self.daemon = True

    @property
    def stopped(self):
        return self.stop_event.is_set()

    def attach(self, handle):
        """Remember the live registration so stop() can interrupt it."""
        with self._lock:
            if self.stop_event.is_set():
                return False
            self._handle = handle
            return True

    def run(self):
        logger.debug("Watch worker %s started", self.name)
        self._watcher._watch(self)
        logger.debug("Watch worker %s finished", self.name)

    def stop(self):
        """Signal the run to end and interrupt a blocked wait."""
        with self._lock:
            self.stop_event.set()
            handle = self._handle
        if handle is not None:
            handle.close()


class DirectoryWatcher:
    """
    Watches a directory for created, modified and deleted entries.

    Example:
        watcher = DirectoryWatcher("/srv/inbox", lambda event: print(event))
        watcher.start()
        ...
        watcher.stop()

    Args:
        directory (Path | str): Directory to watch. Must exist and be a directory.
        watchable (DirectoryWatchable | callable): Receiver of change events.
            A plain callable is wrapped in a CallbackWatchable.
        options (WatchOptions): ROOT_ONLY (default) or INCLUDE_SUB_DIRS.
        provider (WatchProvider, optional): Source of raw notifications,
            defaults to a WatchdogProvider.
        watch_filter (callable, optional): Initial filter, defaults to accept_all.

    Raises:
        InvalidArgument: If directory is missing or not a directory, or if
            watchable or watch_filter is None.
    """

    def __init__(self, directory, watchable, options=WatchOptions.ROOT_ONLY, provider=None,
                 watch_filter=accept_all):
        if directory is None:
            raise InvalidArgument("directory must not be None")
        directory = Path(directory).absolute()
        if not directory.is_dir():
            raise InvalidArgument(f"directory must be an existing directory: {directory}")
        if not isinstance(options, WatchOptions):
            raise InvalidArgument(f"options must be a WatchOptions value, got {options!r}")

        self._directory = directory
        self._watchable = as_watchable(watchable)
        self._options = options
        self._provider = provider if provider is not None else WatchdogProvider()
        self.filter = watch_filter

        self._lifecycle_lock = threading.Lock()
        # Re-entrant so a consumer may call stop() from inside on_change_detected().
        self._dispatch_lock = threading.RLock()
        self._worker = None
        self._last_worker = None

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def options(self) -> WatchOptions:
        return self._options

    @property
    def is_watching(self) -> bool:
        return self._worker is not None

    @property
    def filter(self):
        """The active filter; replacing it applies from the next classified event."""
        return self._filter

    @filter.setter
    def filter(self, watch_filter):
        if watch_filter is None:
            raise InvalidArgument("filter must not be None")
        if not callable(watch_filter):
            raise InvalidArgument("filter must be callable")
        self._filter = watch_filter

    def start(self):
        """
        Start watching. Has no effect if the watcher is already watching.

        Can be used again after stop() (or after a failure) to restart with a
        fresh registration.
        """
        with self._lifecycle_lock:
            if self._worker is not None:
                return
            worker = _WatchWorker(self)
            self._worker = worker
            self._last_worker = worker
            worker.start()
        logger.info("Started watching %s", self._directory)

    def stop(self):
        """
        Stop watching. Has no effect if the watcher is not watching.

        Returns once no further events can be delivered; it does not wait for
        the worker thread to exit (see join()).
        """
        with self._lifecycle_lock:
            worker = self._worker
            if worker is None:
                return
            self._worker = None
            worker.stop()
        # Wait out a delivery that was already in progress.
        with self._dispatch_lock:
            pass
        logger.info("Stopped watching %s", self._directory)

    def join(self, timeout=None):
        """Wait for the most recent worker thread to exit."""
        worker = self._last_worker
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False

    def __repr__(self):
        state = "watching" if self.is_watching else "idle"
        return f"DirectoryWatcher({str(self._directory)!r}, {self._options.name}, {state})"

    # -- worker side ---------------------------------------------------------

    def _watch(self, worker):
        recursive = self._options is WatchOptions.INCLUDE_SUB_DIRS
        try:
            with self._provider.register(self._directory, ALL_KINDS, recursive=recursive) as handle:
                if not worker.attach(handle):
                    return
                while not worker.stopped:
                    batch = handle.next_batch()
                    if batch is None or worker.stopped:
                        return
                    self._process_batch(worker, handle, batch)
        except WatchFailure as e:
            self._fail(worker, e)
        except OSError as e:
            failure = WatchFailure(f"Error watching {self._directory}: {e}")
            failure.__cause__ = e
            self._fail(worker, failure)
        except Exception as e:
            self._fail(worker, e)

    def _process_batch(self, worker, handle, batch):
        modify_seen = False
        for notification in batch:
            if worker.stopped:
                return
            if modify_seen:
                continue
            if notification.kind is RawKind.OVERFLOW:
                continue
            kind = _KINDS[notification.kind]
            if kind is ChangeKind.MODIFIED:
                modify_seen = True

            event = ChangeEvent(path=self._directory / notification.relative_path, kind=kind)
            self._dispatch(worker, event)

            if not handle.reset():
                logger.warning("Watch registration for %s is no longer valid", self._directory)
                break

    def _dispatch(self, worker, event):
        watch_filter = self._filter
        if not watch_filter(event):
            logger.debug("Filtered out %s", event)
            return
        with self._dispatch_lock:
            if worker.stopped:
                return
            self._watchable.on_change_detected(event)

    def _fail(self, worker, error):
        with self._lifecycle_lock:
            current = self._worker is worker
            if current:
                self._worker = None
            worker.stop_event.set()
        if not current:
            # stop() got there first; ending a cancelled run is not a failure
            logger.debug("Ignoring error after stop on %s: %s", self._directory, error)
            return
        logger.warning("Watching %s failed: %s", self._directory, error)
        self._watchable.on_failure(error)
