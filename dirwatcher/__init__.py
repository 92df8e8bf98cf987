"""
dirwatcher: push-based notification of file changes in a directory.

Create a DirectoryWatcher for a directory and a DirectoryWatchable (or a plain
callable), call start(), and receive a ChangeEvent for every file that is
created, modified or deleted until stop() is called.
"""

from dirwatcher.errors import DirWatcherError, InvalidArgument, WatchFailure
from dirwatcher.events import ChangeEvent, ChangeKind
from dirwatcher.filters import accept_all, all_of, kind_filter, pattern_filter
from dirwatcher.watchable import CallbackWatchable, DirectoryWatchable
from dirwatcher.watcher import DirectoryWatcher, WatchOptions

__version__ = "0.1.0"

__all__ = [
    "CallbackWatchable",
    "ChangeEvent",
    "ChangeKind",
    "DirWatcherError",
    "DirectoryWatchable",
    "DirectoryWatcher",
    "InvalidArgument",
    "WatchFailure",
    "WatchOptions",
    "accept_all",
    "all_of",
    "kind_filter",
    "pattern_filter",
]
