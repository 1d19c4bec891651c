"""Core snapshot types and the abstract snapshotter interface."""

from __future__ import annotations

import abc
import enum
import inspect
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Union,
)

_CleanupCallback = Callable[[], Union[None, Awaitable[Any]]]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Kind(enum.Enum):
    """Snapshot kinds."""

    UNKNOWN = "Unknown"
    VIEW = "View"
    ACTIVE = "Active"
    COMMITTED = "Committed"


@dataclass
class Info:
    """Information about a particular snapshot."""

    kind: Kind = Kind.UNKNOWN
    name: str = ""
    parent: str = ""
    labels: Dict[str, str] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class Usage:
    """Disk resources consumed by a snapshot itself, excluding its parents."""

    inodes: int = 0
    size: int = 0

    def __add__(self, other: Usage) -> Usage:
        if not isinstance(other, Usage):
            return NotImplemented
        return Usage(inodes=self.inodes + other.inodes, size=self.size + other.size)

    def __iadd__(self, other: Usage) -> Usage:
        if not isinstance(other, Usage):
            return NotImplemented
        self.inodes += other.inodes
        self.size += other.size
        return self


@dataclass
class Mount:
    """A mount that, when performed, makes a snapshot available."""

    type: str = ""
    source: str = ""
    target: str = ""
    options: List[str] = field(default_factory=list)


class Snapshotter(abc.ABC):
    """Allocates, snapshots and mounts filesystem changesets.

    Every snapshot has a parent; the empty parent is the empty string.
    Errors are reported by raising exceptions.
    """

    @abc.abstractmethod
    async def stat(self, key: str) -> Info:
        """Return the info for an active or committed snapshot by name or key."""

    @abc.abstractmethod
    async def update(self, info: Info, fieldpaths: Optional[Sequence[str]]) -> Info:
        """Update the mutable properties of a snapshot and return the new info."""

    @abc.abstractmethod
    async def usage(self, key: str) -> Usage:
        """Return the resource usage of a snapshot, excluding its parents."""

    @abc.abstractmethod
    async def mounts(self, key: str) -> List[Mount]:
        """Return the mounts for the active snapshot identified by key."""

    @abc.abstractmethod
    async def prepare(self, key: str, parent: str, labels: Dict[str, str]) -> List[Mount]:
        """Create an active snapshot descending from parent and return its mounts."""

    @abc.abstractmethod
    async def view(self, key: str, parent: str, labels: Dict[str, str]) -> List[Mount]:
        """Create a read-only view of parent tracked by key and return its mounts."""

    @abc.abstractmethod
    async def commit(self, name: str, key: str, labels: Dict[str, str]) -> None:
        """Capture the changes of key into a committed snapshot called name."""

    @abc.abstractmethod
    async def remove(self, key: str) -> None:
        """Remove the committed or active snapshot identified by key."""

    def _defer_cleanup(self, callback: _CleanupCallback) -> None:
        """Queue a cleanup callback to be run by the next call to clear()."""
        self.__dict__.setdefault("_cleanup_callbacks", []).append(callback)

    async def clear(self) -> None:
        """Run deferred resource cleanup; with nothing queued this succeeds at once."""
        pending: List[_CleanupCallback] = self.__dict__.pop("_cleanup_callbacks", [])
        for callback in pending:
            result = callback()
            if inspect.isawaitable(result):
                await result

    @abc.abstractmethod
    def list(self, snapshotter: str, filters: Sequence[str]) -> AsyncIterator[Info]:
        """Return an asynchronous iterator over all matching snapshots."""