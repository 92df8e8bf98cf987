"""
Consumer contract for DirectoryWatcher.

Implement DirectoryWatchable (or wrap plain functions with CallbackWatchable) to
be told about changes. Both methods run on the watcher's worker thread, one call
at a time. A slow on_change_detected() stalls the worker and lets the provider's
own queue grow; hand heavy work off to another thread if that matters.
"""

import logging
from abc import ABC, abstractmethod

from dirwatcher.errors import InvalidArgument

logger = logging.getLogger(__name__)


class DirectoryWatchable(ABC):
    """Receives change events and failure notifications from a DirectoryWatcher."""

    @abstractmethod
    def on_change_detected(self, event):
        """
        Called once for every accepted change.

        Args:
            event (ChangeEvent): The change that was detected.
        """

    def on_failure(self, error):
        """
        Called at most once per run when watching ends abnormally.

        The default implementation writes the error and its traceback to the
        diagnostic stream through logging.

        Args:
            error (Exception): The WatchFailure (or consumer error) that ended the run.
        """
        logger.error("Directory watch failed: %s", error, exc_info=error)


class CallbackWatchable(DirectoryWatchable):
    """Adapts a pair of plain functions to the DirectoryWatchable contract."""

    def __init__(self, on_change, on_failure=None):
        if on_change is None:
            raise InvalidArgument("on_change must not be None")
        self._on_change = on_change
        self._on_failure = on_failure

    def on_change_detected(self, event):
        self._on_change(event)

    def on_failure(self, error):
        if self._on_failure is None:
            super().on_failure(error)
        else:
            self._on_failure(error)


def as_watchable(obj):
    """
    Return obj as a DirectoryWatchable.

    Args:
        obj: A DirectoryWatchable instance or a callable taking a ChangeEvent.

    Raises:
        InvalidArgument: If obj is None or neither of the accepted types.
    """
    if obj is None:
        raise InvalidArgument("watchable must not be None")
    if isinstance(obj, DirectoryWatchable):
        return obj
    if callable(obj):
        return CallbackWatchable(obj)
    raise InvalidArgument(f"Unsupported watchable type: {type(obj).__name__}")
