"""Helpers for runtime shims: option files, sockets and timestamps."""

from __future__ import annotations

import json
import socket
import time
from dataclasses import asdict, dataclass, fields, MISSING
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, TypeVar

from .convert import Timestamp

CONFIG_FILE_NAME = "config.json"
OPTIONS_FILE_NAME = "options.json"
RUNTIME_FILE_NAME = "runtime"

_U32_MAX = 2**32 - 1

T = TypeVar("T")


@dataclass(kw_only=True)
class JsonOptions:
    """Runtime options as stored in the options file."""

    no_pivot_root: bool = False
    no_new_keyring: bool = False
    shim_cgroup: str
    io_uid: int = 0
    io_gid: int = 0
    binary_name: str
    root: str
    criu_path: str
    systemd_cgroup: bool = False
    criu_image_path: str
    criu_work_path: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> JsonOptions:
        """Build options from a mapping, rejecting unknown or ill-typed fields."""
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(data) - set(known))
        if unknown:
            raise ValueError(f"unknown field `{unknown[0]}`")
        for name, spec in known.items():
            if name not in data:
                if spec.default is MISSING:
                    raise ValueError(f"missing field `{name}`")
                continue
            _check_field(name, spec.type, data[name])
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Return the options as a plain mapping."""
        return asdict(self)

    @classmethod
    def from_json(cls, text: str) -> JsonOptions:
        """Parse options from JSON text."""
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("options must be a JSON object")
        return cls.from_dict(data)

    def to_json(self) -> str:
        """Serialize the options to compact JSON text."""
        return json.dumps(self.to_dict(), separators=(",", ":"))


def _check_field(name: str, type_name: Any, value: Any) -> None:
    if type_name in ("bool", bool):
        if not isinstance(value, bool):
            raise ValueError(f"field `{name}` must be a boolean")
    elif type_name in ("int", int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"field `{name}` must be an integer")
        if not 0 <= value <= _U32_MAX:
            raise ValueError(f"field `{name}` is out of range for u32")
    elif not isinstance(value, str):
        raise ValueError(f"field `{name}` must be a string")


def connect(address: str) -> int:
    """Connect to a Unix stream socket and return its close-on-exec descriptor."""
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.set_inheritable(False)
        sock.connect(address)
    except BaseException:
        sock.close()
        raise
    return sock.detach()


def timestamp() -> Timestamp:
    """Return the current time as a timestamp."""
    now = time.time_ns()
    if now < 0:
        raise ValueError("system time is before the Unix epoch")
    seconds, nanos = divmod(now, 1_000_000_000)
    return Timestamp(seconds=seconds, nanos=nanos)


def convert_to_timestamp(exited_at: Optional[datetime]) -> Timestamp:
    """Convert an optional exit time; None gives the zero timestamp."""
    if exited_at is None:
        return Timestamp()
    if exited_at.tzinfo is None:
        exited_at = exited_at.replace(tzinfo=timezone.utc)
    return Timestamp(
        seconds=int(exited_at.timestamp() // 1),
        nanos=exited_at.microsecond * 1000,
    )


def none_if(value: T, predicate: Callable[[T], bool]) -> Optional[T]:
    """Return None when predicate holds for value, otherwise value."""
    return None if predicate(value) else value


def as_option(text: str) -> Optional[str]:
    """Return None for an empty string, otherwise the string."""
    return text if text else None