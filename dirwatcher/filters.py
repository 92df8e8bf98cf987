"""
Filter helpers for DirectoryWatcher.

A filter is any callable taking a ChangeEvent and returning True when the event
should be forwarded to the consumer. The helpers below build the common ones.
"""

import fnmatch

from dirwatcher.errors import InvalidArgument


def accept_all(event):
    """Default filter: forward every event."""
    return True


def _matches_any(event, patterns):
    name = event.path.name
    full = str(event.path)
    return any(fnmatch.fnmatch(name, pat) or fnmatch.fnmatch(full, pat) for pat in patterns)


def pattern_filter(include=None, exclude=None):
    """
    Build a filter from glob patterns.

    Patterns are matched against both the file name and the absolute path.
    Exclusions win over inclusions; an empty include list accepts everything
    that is not excluded.

    Args:
        include (list[str], optional): Patterns an event must match.
        exclude (list[str], optional): Patterns that reject an event.

    Returns:
        callable: The filter.
    """
    include = list(include or [])
    exclude = list(exclude or [])

    def _filter(event):
        if exclude and _matches_any(event, exclude):
            return False
        if not include:
            return True
        return _matches_any(event, include)

    return _filter


def kind_filter(*kinds):
    """Build a filter accepting only the given ChangeKind values."""
    if not kinds:
        raise InvalidArgument("kind_filter needs at least one ChangeKind")
    wanted = frozenset(kinds)
    return lambda event: event.kind in wanted


def all_of(*filters):
    """Combine filters; an event passes only if every filter accepts it."""
    if any(f is None for f in filters):
        raise InvalidArgument("filters must not be None")
    return lambda event: all(f(event) for f in filters)
