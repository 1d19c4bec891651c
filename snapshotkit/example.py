"""A snapshotter that logs each call and returns empty results."""

from __future__ import annotations

import logging
from typing import AsyncIterator, Dict, List, Optional, Sequence

from .model import Info, Mount, Snapshotter, Usage

_log = logging.getLogger(__name__)


async def _empty_stream() -> AsyncIterator[Info]:
    for info in ():
        yield info


class ExampleSnapshotter(Snapshotter):
    """Logs every request and answers with default values."""

    async def stat(self, key: str) -> Info:
        _log.info("Stat: %s", key)
        return Info()

    async def update(self, info: Info, fieldpaths: Optional[Sequence[str]]) -> Info:
        _log.info("Update: info=%r, fieldpaths=%r", info, fieldpaths)
        return Info()

    async def usage(self, key: str) -> Usage:
        _log.info("Usage: %s", key)
        return Usage()

    async def mounts(self, key: str) -> List[Mount]:
        _log.info("Mounts: %s", key)
        return []

    async def prepare(self, key: str, parent: str, labels: Dict[str, str]) -> List[Mount]:
        _log.info("Prepare: key=%s, parent=%s, labels=%r", key, parent, labels)
        return []

    async def view(self, key: str, parent: str, labels: Dict[str, str]) -> List[Mount]:
        _log.info("View: key=%s, parent=%s, labels=%r", key, parent, labels)
        return []

    async def commit(self, name: str, key: str, labels: Dict[str, str]) -> None:
        _log.info("Commit: name=%s, key=%s, labels=%r", name, key, labels)

    async def remove(self, key: str) -> None:
        _log.info("Remove: %s", key)

    def list(self, snapshotter: str, filters: Sequence[str]) -> AsyncIterator[Info]:
        _log.info("List: snapshotter=%s, filters=%r", snapshotter, list(filters))
        return _empty_stream()