from datetime import datetime
from pathlib import Path

import pytest

from dirwatcher.events import ChangeEvent, ChangeKind


def test_kind_predicates():
    created = ChangeEvent(Path("/srv/a.txt"), ChangeKind.CREATED)
    modified = ChangeEvent(Path("/srv/a.txt"), ChangeKind.MODIFIED)
    deleted = ChangeEvent(Path("/srv/a.txt"), ChangeKind.DELETED)

    assert created.is_created and not created.is_modified and not created.is_deleted
    assert modified.is_modified and not modified.is_created
    assert deleted.is_deleted and not deleted.is_created


def test_change_kind_has_exactly_three_members():
    assert [k.value for k in ChangeKind] == ["created", "modified", "deleted"]


def test_event_is_immutable():
    event = ChangeEvent(Path("/srv/a.txt"), ChangeKind.CREATED)
    with pytest.raises(AttributeError):
        event.kind = ChangeKind.DELETED


def test_detected_at_is_captured_on_construction():
    before = datetime.now()
    event = ChangeEvent(Path("/srv/a.txt"), ChangeKind.CREATED)
    after = datetime.now()
    assert before <= event.detected_at <= after


def test_when_as_string():
    event = ChangeEvent(Path("/srv/a.txt"), ChangeKind.MODIFIED, datetime(2024, 3, 5, 14, 7, 9))
    assert event.when_as_string() == "2024-03-05 14:07:09"
    assert event.when_as_string("%H:%M") == "14:07"


def test_name_and_str():
    event = ChangeEvent(Path("/srv/data/report.csv"), ChangeKind.DELETED, datetime(2024, 1, 1))
    assert event.name == "report.csv"
    assert str(event) == "deleted /srv/data/report.csv at 2024-01-01 00:00:00"
