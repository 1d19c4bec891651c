"""Request handling that exposes a snapshotter as the snapshots service."""

from __future__ import annotations

import enum
import inspect
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Dict, List, Optional, TypeVar

from .convert import ConversionError, InfoMessage, info_from_message, info_to_message
from .model import Info, Mount, Snapshotter

T = TypeVar("T")

_LIST_BATCH_SIZE = 100


class Code(enum.IntEnum):
    """Status codes reported to service callers."""

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16


class Status(Exception):
    """A failed request, carrying a status code and a message."""

    def __init__(self, code: Code, message: str = "") -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"Status(code={self.code.name}, message={self.message!r})"


def _to_status(exc: Exception) -> Status:
    if isinstance(exc, Status):
        return exc
    if isinstance(exc, ConversionError):
        return Status(Code.INTERNAL, str(exc))
    return Status(Code.UNKNOWN, str(exc))


@dataclass
class FieldMask:
    """Set of field paths to update."""

    paths: List[str] = field(default_factory=list)


@dataclass
class PrepareSnapshotRequest:
    snapshotter: str = ""
    key: str = ""
    parent: str = ""
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass
class PrepareSnapshotResponse:
    mounts: List[Mount] = field(default_factory=list)


@dataclass
class ViewSnapshotRequest:
    snapshotter: str = ""
    key: str = ""
    parent: str = ""
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass
class ViewSnapshotResponse:
    mounts: List[Mount] = field(default_factory=list)


@dataclass
class MountsRequest:
    snapshotter: str = ""
    key: str = ""


@dataclass
class MountsResponse:
    mounts: List[Mount] = field(default_factory=list)


@dataclass
class CommitSnapshotRequest:
    snapshotter: str = ""
    name: str = ""
    key: str = ""
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass
class RemoveSnapshotRequest:
    snapshotter: str = ""
    key: str = ""


@dataclass
class StatSnapshotRequest:
    snapshotter: str = ""
    key: str = ""


@dataclass
class StatSnapshotResponse:
    info: Optional[InfoMessage] = None


@dataclass
class UpdateSnapshotRequest:
    snapshotter: str = ""
    info: Optional[InfoMessage] = None
    update_mask: Optional[FieldMask] = None


@dataclass
class UpdateSnapshotResponse:
    info: Optional[InfoMessage] = None


@dataclass
class ListSnapshotsRequest:
    snapshotter: str = ""
    filters: List[str] = field(default_factory=list)


@dataclass
class ListSnapshotsResponse:
    info: List[InfoMessage] = field(default_factory=list)


@dataclass
class UsageRequest:
    snapshotter: str = ""
    key: str = ""


@dataclass
class UsageResponse:
    size: int = 0
    inodes: int = 0


@dataclass
class CleanupRequest:
    snapshotter: str = ""


class SnapshotsService:
    """Serves snapshot requests by delegating to a snapshotter.

    Every failure is raised as a :class:`Status`.
    """

    def __init__(self, snapshotter: Snapshotter) -> None:
        self.snapshotter = snapshotter

    @staticmethod
    async def _call(awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except Exception as exc:
            status = _to_status(exc)
            if status is exc:
                raise
            raise status from exc

    async def prepare(self, request: PrepareSnapshotRequest) -> PrepareSnapshotResponse:
        mounts = await self._call(
            self.snapshotter.prepare(request.key, request.parent, dict(request.labels))
        )
        return PrepareSnapshotResponse(mounts=list(mounts))

    async def view(self, request: ViewSnapshotRequest) -> ViewSnapshotResponse:
        mounts = await self._call(
            self.snapshotter.view(request.key, request.parent, dict(request.labels))
        )
        return ViewSnapshotResponse(mounts=list(mounts))

    async def mounts(self, request: MountsRequest) -> MountsResponse:
        mounts = await self._call(self.snapshotter.mounts(request.key))
        return MountsResponse(mounts=list(mounts))

    async def commit(self, request: CommitSnapshotRequest) -> None:
        await self._call(
            self.snapshotter.commit(request.name, request.key, dict(request.labels))
        )

    async def remove(self, request: RemoveSnapshotRequest) -> None:
        await self._call(self.snapshotter.remove(request.key))

    async def stat(self, request: StatSnapshotRequest) -> StatSnapshotResponse:
        info = await self._call(self.snapshotter.stat(request.key))
        return StatSnapshotResponse(info=info_to_message(info))

    async def update(self, request: UpdateSnapshotRequest) -> UpdateSnapshotResponse:
        if request.info is None:
            raise Status(Code.FAILED_PRECONDITION, "info is required")
        try:
            info = info_from_message(request.info)
        except ConversionError as exc:
            raise Status(
                Code.INVALID_ARGUMENT, f"Failed to convert timestamp: {exc}"
            ) from exc

        fields_ = None if request.update_mask is None else list(request.update_mask.paths)
        updated = await self._call(self.snapshotter.update(info, fields_))
        return UpdateSnapshotResponse(info=info_to_message(updated))

    async def list(self, request: ListSnapshotsRequest) -> AsyncIterator[ListSnapshotsResponse]:
        """Yield snapshot infos in batches of at most 100."""
        try:
            stream = self.snapshotter.list(request.snapshotter, list(request.filters))
            if inspect.isawaitable(stream):
                stream = await stream
            batch: List[InfoMessage] = []
            async for info in stream:
                batch.append(info_to_message(info))
                if len(batch) >= _LIST_BATCH_SIZE:
                    yield ListSnapshotsResponse(info=batch)
                    batch = []
        except Exception as exc:
            status = _to_status(exc)
            if status is exc:
                raise
            raise status from exc
        if batch:
            yield ListSnapshotsResponse(info=batch)

    async def usage(self, request: UsageRequest) -> UsageResponse:
        usage = await self._call(self.snapshotter.usage(request.key))
        return UsageResponse(size=usage.size, inodes=usage.inodes)

    async def cleanup(self, request: CleanupRequest) -> None:
        await self._call(self.snapshotter.clear())


def server(snapshotter: Snapshotter) -> SnapshotsService:
    """Create a snapshots service for any snapshotter."""
    return SnapshotsService(snapshotter)


__all__ = [
    "Code",
    "Status",
    "FieldMask",
    "Info",
    "PrepareSnapshotRequest",
    "PrepareSnapshotResponse",
    "ViewSnapshotRequest",
    "ViewSnapshotResponse",
    "MountsRequest",
    "MountsResponse",
    "CommitSnapshotRequest",
    "RemoveSnapshotRequest",
    "StatSnapshotRequest",
    "StatSnapshotResponse",
    "UpdateSnapshotRequest",
    "UpdateSnapshotResponse",
    "ListSnapshotsRequest",
    "ListSnapshotsResponse",
    "UsageRequest",
    "UsageResponse",
    "CleanupRequest",
    "SnapshotsService",
    "server",
]