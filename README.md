# snapshotkit

`snapshotkit` gives you the pieces needed to write a snapshotter: the
component that allocates, snapshots and mounts filesystem changesets for a
container runtime. Snapshots are built up as sets of changes with
parent-child relationships; every snapshot has a parent, and the empty
parent is written as the empty string.

The package has no runtime dependencies outside the standard library and
needs Python 3.10 or later.

## What is inside

- `snapshotkit.model`: the snapshot data model and the abstract base class.
  - `Kind`: `UNKNOWN`, `VIEW`, `ACTIVE`, `COMMITTED`.
  - `Info`: `kind`, `name`, `parent`, `labels`, `created_at`, `updated_at`
    (both times default to the current UTC time).
  - `Usage`: `inodes` and `size`; supports `+` and `+=`.
  - `Mount`: `type`, `source`, `target`, `options`.
  - `Snapshotter`: abstract coroutines `stat`, `update`, `usage`, `mounts`,
    `prepare`, `view`, `commit`, `remove`, a `list` method returning an
    async iterator of `Info`, and a ready-made `clear`.
- `snapshotkit.convert`: conversion between the model and wire-level
  messages: `Timestamp` (with `to_datetime()` and `from_datetime()`),
  `InfoMessage`, `kind_to_int`, `kind_from_int`, `info_from_message` and
  `info_to_message`. Bad input raises `ConversionError`, either as
  `InvalidEnumValue` or `TimestampError`.
- `snapshotkit.service`: the request/response dataclasses, `FieldMask`,
  the `Code` enum, the `Status` exception, and `SnapshotsService`, which
  routes each request to a `Snapshotter`. `server(snapshotter)` builds one.
- `snapshotkit.example`: `ExampleSnapshotter`, which logs every call and
  answers with default values; listing yields nothing.
- `snapshotkit.shimutil`: helpers for runtime shims (see below).

## Writing a snapshotter

Subclass `Snapshotter` and implement its methods. Errors are reported by
raising exceptions. `clear` needs no override: with no cleanup pending it
simply returns.

```python
from snapshotkit.model import Info, Snapshotter, Usage


class MemorySnapshotter(Snapshotter):
    def __init__(self):
        self.snapshots = {}

    async def stat(self, key):
        return self.snapshots[key]

    async def update(self, info, fieldpaths):
        self.snapshots[info.name] = info
        return info

    async def usage(self, key):
        return Usage()

    async def mounts(self, key):
        return []

    async def prepare(self, key, parent, labels):
        self.snapshots[key] = Info(name=key, parent=parent, labels=dict(labels))
        return []

    async def view(self, key, parent, labels):
        return await self.prepare(key, parent, labels)

    async def commit(self, name, key, labels):
        self.snapshots[name] = self.snapshots.pop(key)

    async def remove(self, key):
        del self.snapshots[key]

    async def list(self, snapshotter, filters):
        for info in list(self.snapshots.values()):
            yield info
```

`Usage` values add up, which is handy when totalling a chain of snapshots:

```python
total = Usage()
total += Usage(inodes=3, size=4096)
```

## Serving requests

Wrap the snapshotter in a service and hand it requests:

```python
import asyncio

from snapshotkit.example import ExampleSnapshotter
from snapshotkit.service import PrepareSnapshotRequest, server


async def main():
    service = server(ExampleSnapshotter())
    response = await service.prepare(
        PrepareSnapshotRequest(key="layer-1", parent="", labels={})
    )
    print(response.mounts)


asyncio.run(main())
```

`SnapshotsService.list` is an async generator that yields
`ListSnapshotsResponse` batches of at most 100 snapshots each; it yields
nothing when there are no snapshots. `commit`, `remove` and `cleanup`
return `None`; `cleanup` calls the snapshotter's `clear`.

Every failure is raised as a `Status` with a `code` and a `message`:

- a `Status` raised by the snapshotter passes through unchanged;
- a `ConversionError` becomes `Code.INTERNAL`;
- any other exception becomes `Code.UNKNOWN`;
- an `UpdateSnapshotRequest` without `info` is rejected with
  `Code.FAILED_PRECONDITION` ("info is required");
- an update whose info has an unknown kind or an unrepresentable timestamp
  is rejected with `Code.INVALID_ARGUMENT`.

## Conversions

`info_from_message` turns a missing timestamp into the Unix epoch and
raises `InvalidEnumValue` for a kind number other than 0–3.
`Timestamp.to_datetime()` returns a UTC datetime truncated to microseconds
and raises `TimestampError` when out of range. `Timestamp.from_datetime()`
treats naive datetimes as UTC.

## Shim helpers

`snapshotkit.shimutil` provides:

- `CONFIG_FILE_NAME`, `OPTIONS_FILE_NAME` and `RUNTIME_FILE_NAME`.
- `JsonOptions`: the runtime options file, with `from_dict`, `to_dict`,
  `from_json` and `to_json`. Parsing raises `ValueError` on unknown fields,
  missing required fields (`shim_cgroup`, `binary_name`, `root`,
  `criu_path`, `criu_image_path`, `criu_work_path`), values of the wrong
  type, or `io_uid`/`io_gid` outside the unsigned 32-bit range.
- `connect(address)`: connects to a Unix stream socket and returns a raw,
  close-on-exec file descriptor; the socket is closed if connecting fails.
- `timestamp()`: the current time as a `Timestamp`.
- `convert_to_timestamp(exited_at)`: a datetime (naive taken as UTC) as a
  `Timestamp`; `None` gives the zero timestamp.
- `none_if(value, predicate)` and `as_option(text)`: return `None` when the
  predicate holds, or when the text is empty, and the value otherwise.

## What the package does not do

`SnapshotsService` is a plain async object that takes and returns Python
dataclasses. The package has no network transport, no binary message
encoding and no command-line program: to serve snapshot requests over a
socket you need to put your own server in front of the service. It also
stores nothing itself; persistence is up to your `Snapshotter`.