"""Change event model delivered to DirectoryWatchable consumers."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

DEFAULT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class ChangeKind(str, Enum):
    """Kinds of change a watcher reports."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class ChangeEvent:
    """
    A single accepted change inside a watched directory.

    Instances are built by the watch loop only; consumers read them.

    Note that ``detected_at`` is taken when the watch loop classifies the
    notification, not when the filesystem was mutated, so it lags the real
    change by an unknown (usually small) amount.

    Attributes:
        path (Path): Absolute path of the affected entry.
        kind (ChangeKind): What happened to the entry.
        detected_at (datetime): Local time the change was classified.
    """

    path: Path
    kind: ChangeKind
    detected_at: datetime = field(default_factory=datetime.now)

    @property
    def name(self) -> str:
        """Final component of the changed path."""
        return self.path.name

    @property
    def is_created(self) -> bool:
        return self.kind is ChangeKind.CREATED

    @property
    def is_modified(self) -> bool:
        return self.kind is ChangeKind.MODIFIED

    @property
    def is_deleted(self) -> bool:
        return self.kind is ChangeKind.DELETED

    def when_as_string(self, fmt: str = DEFAULT_TIME_FORMAT) -> str:
        """
        Format the detection time.

        Args:
            fmt (str): strftime pattern, defaults to ``%Y-%m-%d %H:%M:%S``.

        Returns:
            str: The formatted detection time.
        """
        return self.detected_at.strftime(fmt)

    def __str__(self) -> str:
        return f"{self.kind.value} {self.path} at {self.when_as_string()}"
