"""
Exception types raised by dirwatcher.

Construction problems are reported synchronously with InvalidArgument. Problems
that happen on the background worker are wrapped in WatchFailure and only ever
reach the consumer through DirectoryWatchable.on_failure().
"""


class DirWatcherError(Exception):
    """Base class for all dirwatcher errors."""

    pass


class InvalidArgument(DirWatcherError, ValueError):
    """Raised when a watcher is built or configured with an unusable argument."""

    pass


class WatchFailure(DirWatcherError, OSError):
    """Raised by a watch provider when it cannot register or keep watching a directory."""

    pass
