from datetime import datetime, timezone

import pytest

from snapshotkit.convert import ConversionError, InfoMessage, Timestamp
from snapshotkit.model import Info, Kind, Mount, Snapshotter, Usage
from snapshotkit.service import (
    CleanupRequest,
    Code,
    CommitSnapshotRequest,
    FieldMask,
    ListSnapshotsRequest,
    MountsRequest,
    PrepareSnapshotRequest,
    RemoveSnapshotRequest,
    StatSnapshotRequest,
    Status,
    UpdateSnapshotRequest,
    UsageRequest,
    ViewSnapshotRequest,
    server,
)

FIXED = datetime(2021, 1, 1, tzinfo=timezone.utc)


class Recorder(Snapshotter):
    def __init__(self, infos=(), error=None):
        self.calls = []
        self.infos = list(infos)
        self.error = error

    def _maybe_fail(self):
        if self.error is not None:
            raise self.error

    async def stat(self, key):
        self.calls.append(("stat", key))
        self._maybe_fail()
        return Info(kind=Kind.COMMITTED, name=key, created_at=FIXED, updated_at=FIXED)

    async def update(self, info, fieldpaths):
        self.calls.append(("update", info, fieldpaths))
        self._maybe_fail()
        return info

    async def usage(self, key):
        self.calls.append(("usage", key))
        self._maybe_fail()
        return Usage(inodes=3, size=4096)

    async def mounts(self, key):
        self.calls.append(("mounts", key))
        self._maybe_fail()
        return [Mount(type="bind", source=key)]

    async def prepare(self, key, parent, labels):
        self.calls.append(("prepare", key, parent, labels))
        self._maybe_fail()
        return [Mount(type="overlay", source=parent, target=key)]

    async def view(self, key, parent, labels):
        self.calls.append(("view", key, parent, labels))
        self._maybe_fail()
        return [Mount(type="overlay", source=parent, target=key, options=["ro"])]

    async def commit(self, name, key, labels):
        self.calls.append(("commit", name, key, labels))
        self._maybe_fail()

    async def remove(self, key):
        self.calls.append(("remove", key))
        self._maybe_fail()

    async def clear(self):
        self.calls.append(("clear",))
        self._maybe_fail()

    async def list(self, snapshotter, filters):
        self.calls.append(("list", snapshotter, filters))
        self._maybe_fail()
        for info in self.infos:
            yield info


def make_infos(count):
    return [Info(name=f"snap-{n}", created_at=FIXED, updated_at=FIXED) for n in range(count)]


async def collect(service, request):
    return [response async for response in service.list(request)]


@pytest.mark.asyncio
async def test_prepare_passes_arguments_and_returns_mounts():
    rec = Recorder()
    response = await server(rec).prepare(
        PrepareSnapshotRequest(key="k", parent="p", labels={"a": "b"})
    )
    assert rec.calls == [("prepare", "k", "p", {"a": "b"})]
    assert response.mounts == [Mount(type="overlay", source="p", target="k")]


@pytest.mark.asyncio
async def test_view_returns_mounts():
    rec = Recorder()
    response = await server(rec).view(ViewSnapshotRequest(key="k", parent="p"))
    assert rec.calls == [("view", "k", "p", {})]
    assert response.mounts[0].options == ["ro"]


@pytest.mark.asyncio
async def test_mounts_returns_mounts():
    rec = Recorder()
    response = await server(rec).mounts(MountsRequest(key="k"))
    assert response.mounts == [Mount(type="bind", source="k")]


@pytest.mark.asyncio
async def test_commit_and_remove_delegate():
    rec = Recorder()
    service = server(rec)
    await service.commit(CommitSnapshotRequest(name="n", key="k", labels={"x": "y"}))
    await service.remove(RemoveSnapshotRequest(key="k"))
    assert rec.calls == [("commit", "n", "k", {"x": "y"}), ("remove", "k")]


@pytest.mark.asyncio
async def test_stat_converts_info():
    response = await server(Recorder()).stat(StatSnapshotRequest(key="k"))
    assert response.info.name == "k"
    assert response.info.kind == 3
    assert response.info.created_at == Timestamp.from_datetime(FIXED)


@pytest.mark.asyncio
async def test_update_requires_info():
    with pytest.raises(Status) as err:
        await server(Recorder()).update(UpdateSnapshotRequest())
    assert err.value.code is Code.FAILED_PRECONDITION
    assert err.value.message == "info is required"


@pytest.mark.asyncio
async def test_update_rejects_bad_kind():
    rec = Recorder()
    with pytest.raises(Status) as err:
        await server(rec).update(UpdateSnapshotRequest(info=InfoMessage(kind=9)))
    assert err.value.code is Code.INVALID_ARGUMENT
    assert err.value.message.startswith("Failed to convert timestamp: ")
    assert rec.calls == []


@pytest.mark.asyncio
async def test_update_without_mask_passes_none():
    rec = Recorder()
    message = InfoMessage(name="n", kind=2, created_at=Timestamp.from_datetime(FIXED))
    response = await server(rec).update(UpdateSnapshotRequest(info=message))
    assert rec.calls[0][2] is None
    assert rec.calls[0][1].kind is Kind.ACTIVE
    assert response.info.name == "n"
    assert response.info.created_at == Timestamp.from_datetime(FIXED)


@pytest.mark.asyncio
async def test_update_with_mask_passes_paths():
    rec = Recorder()
    await server(rec).update(
        UpdateSnapshotRequest(info=InfoMessage(), update_mask=FieldMask(paths=["labels.a"]))
    )
    assert rec.calls[0][2] == ["labels.a"]


@pytest.mark.asyncio
async def test_list_empty_yields_nothing():
    rec = Recorder()
    responses = await collect(server(rec), ListSnapshotsRequest(snapshotter="s", filters=["f"]))
    assert responses == []
    assert rec.calls == [("list", "s", ["f"])]


@pytest.mark.asyncio
async def test_list_batches_of_at_most_100():
    infos = make_infos(250)
    responses = await collect(server(Recorder(infos)), ListSnapshotsRequest())
    sizes = [len(r.info) for r in responses]
    assert all(size == 100 for size in sizes[:-1])
    assert 0 < sizes[-1] <= 100
    names = [m.name for r in responses for m in r.info]
    assert names == [i.name for i in infos]


@pytest.mark.asyncio
async def test_list_exactly_one_full_batch():
    responses = await collect(server(Recorder(make_infos(100))), ListSnapshotsRequest())
    assert [len(r.info) for r in responses] == [100]


@pytest.mark.asyncio
async def test_usage_maps_fields():
    response = await server(Recorder()).usage(UsageRequest(key="k"))
    assert (response.size, response.inodes) == (4096, 3)


@pytest.mark.asyncio
async def test_cleanup_calls_clear():
    rec = Recorder()
    await server(rec).cleanup(CleanupRequest())
    assert rec.calls == [("clear",)]


@pytest.mark.asyncio
async def test_status_errors_propagate_unchanged():
    failure = Status(Code.NOT_FOUND, "missing")
    with pytest.raises(Status) as err:
        await server(Recorder(error=failure)).stat(StatSnapshotRequest(key="k"))
    assert err.value is failure


@pytest.mark.asyncio
async def test_conversion_errors_become_internal():
    with pytest.raises(Status) as err:
        await server(Recorder(error=ConversionError("bad"))).usage(UsageRequest(key="k"))
    assert err.value.code is Code.INTERNAL
    assert err.value.message == "bad"


@pytest.mark.asyncio
async def test_list_errors_become_status():
    with pytest.raises(Status) as err:
        await collect(server(Recorder(error=RuntimeError("boom"))), ListSnapshotsRequest())
    assert err.value.code is Code.UNKNOWN
    assert err.value.message == "boom"