from pathlib import Path

import pytest

from dirwatcher.errors import InvalidArgument
from dirwatcher.events import ChangeEvent, ChangeKind
from dirwatcher.filters import accept_all, all_of, kind_filter, pattern_filter


def make_event(path, kind=ChangeKind.CREATED):
    return ChangeEvent(Path(path), kind)


def test_accept_all():
    assert accept_all(make_event("/srv/anything"))


def test_pattern_filter_include():
    f = pattern_filter(include=["*.txt"])
    assert f(make_event("/srv/a.txt"))
    assert not f(make_event("/srv/a.log"))


def test_pattern_filter_exclude_wins():
    f = pattern_filter(include=["*.txt"], exclude=["secret*"])
    assert f(make_event("/srv/notes.txt"))
    assert not f(make_event("/srv/secret.txt"))


def test_pattern_filter_matches_full_path():
    f = pattern_filter(exclude=["*/build/*"])
    assert not f(make_event("/srv/build/out.o"))
    assert f(make_event("/srv/src/main.c"))


def test_pattern_filter_without_patterns_accepts_everything():
    assert pattern_filter()(make_event("/srv/a.bin"))


def test_kind_filter():
    f = kind_filter(ChangeKind.CREATED, ChangeKind.DELETED)
    assert f(make_event("/srv/a", ChangeKind.CREATED))
    assert f(make_event("/srv/a", ChangeKind.DELETED))
    assert not f(make_event("/srv/a", ChangeKind.MODIFIED))


def test_kind_filter_needs_kinds():
    with pytest.raises(InvalidArgument):
        kind_filter()


def test_all_of():
    f = all_of(pattern_filter(include=["*.txt"]), kind_filter(ChangeKind.MODIFIED))
    assert f(make_event("/srv/a.txt", ChangeKind.MODIFIED))
    assert not f(make_event("/srv/a.txt", ChangeKind.CREATED))
    assert not f(make_event("/srv/a.log", ChangeKind.MODIFIED))


def test_all_of_rejects_none():
    with pytest.raises(InvalidArgument):
        all_of(accept_all, None)
