"""Conversions between wire messages and native snapshot types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from .model import Info, Kind

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_NANOS_PER_SECOND = 1_000_000_000

_KIND_TO_INT = {
    Kind.UNKNOWN: 0,
    Kind.VIEW: 1,
    Kind.ACTIVE: 2,
    Kind.COMMITTED: 3,
}
_INT_TO_KIND = {number: kind for kind, number in _KIND_TO_INT.items()}


class ConversionError(Exception):
    """A wire message could not be converted to a native type."""


class InvalidEnumValue(ConversionError):
    """An integer does not name a known enum member."""

    def __init__(self, value: int) -> None:
        super().__init__(f"Invalid enum value: {value}")
        self.value = value


class TimestampError(ConversionError):
    """A wire timestamp cannot be represented."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to convert GRPC timestamp: {reason}")
        self.reason = reason


@dataclass
class Timestamp:
    """Seconds and nanoseconds since the Unix epoch."""

    seconds: int = 0
    nanos: int = 0

    def to_datetime(self) -> datetime:
        """Return the UTC time; precision is truncated to microseconds."""
        carry, nanos = divmod(self.nanos, _NANOS_PER_SECOND)
        seconds = self.seconds + carry
        try:
            return _EPOCH + timedelta(seconds=seconds, microseconds=nanos // 1000)
        except OverflowError as exc:
            raise TimestampError("timestamp is out of range") from exc

    @classmethod
    def from_datetime(cls, value: datetime) -> Timestamp:
        """Build a timestamp from a datetime; naive values are taken as UTC."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        delta = value - _EPOCH
        return cls(
            seconds=delta.days * 86400 + delta.seconds,
            nanos=delta.microseconds * 1000,
        )


@dataclass
class InfoMessage:
    """Wire form of snapshot info."""

    name: str = ""
    parent: str = ""
    kind: int = 0
    created_at: Optional[Timestamp] = None
    updated_at: Optional[Timestamp] = None
    labels: Dict[str, str] = field(default_factory=dict)


def kind_to_int(kind: Kind) -> int:
    """Return the wire number of a snapshot kind."""
    return _KIND_TO_INT[kind]


def kind_from_int(value: int) -> Kind:
    """Return the snapshot kind for a wire number."""
    try:
        return _INT_TO_KIND[value]
    except KeyError:
        raise InvalidEnumValue(value) from None


def info_from_message(message: InfoMessage) -> Info:
    """Convert a wire info message; missing timestamps become the epoch."""
    return Info(
        kind=kind_from_int(message.kind),
        name=message.name,
        parent=message.parent,
        labels=dict(message.labels),
        created_at=(message.created_at or Timestamp()).to_datetime(),
        updated_at=(message.updated_at or Timestamp()).to_datetime(),
    )


def info_to_message(info: Info) -> InfoMessage:
    """Convert native info into its wire message."""
    return InfoMessage(
        name=info.name,
        parent=info.parent,
        kind=kind_to_int(info.kind),
        created_at=Timestamp.from_datetime(info.created_at),
        updated_at=Timestamp.from_datetime(info.updated_at),
        labels=dict(info.labels),
    )