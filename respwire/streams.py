"""Arguments and reply types for the stream commands."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, Callable, TypeVar

from respwire.types import (
    ErrorKind,
    RedisError,
    to_redis_args,
    value_to_int,
    value_to_list,
    value_to_map,
    value_to_str,
)

T = TypeVar("T")

_USIZE_RE = re.compile(r"\+?[0-9]+", re.ASCII)


def _incompatible(value: Any, reason: str) -> RedisError:
    return RedisError(
        ErrorKind.TYPE_ERROR,
        "Response was of incompatible type",
        f"{reason} (response was {value!r})",
    )


def _cannot_parse(stage: int) -> RedisError:
    return RedisError(ErrorKind.TYPE_ERROR, f"Cannot parse redis data ({stage})")


def _illegal_state(message: str) -> RedisError:
    return RedisError(ErrorKind.IO_ERROR, "I/O error", message)


def _decode_utf8(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise RedisError(ErrorKind.TYPE_ERROR, "Cannot convert from UTF-8") from exc


def _optional(convert: Callable[[Any], T], value: Any) -> T | None:
    return None if value is None else convert(value)


def _decimal(number: int) -> bytes:
    return str(number).encode("ascii")


@dataclass(frozen=True)
class StreamMaxlen:
    """A ``MAXLEN = n`` or ``MAXLEN ~ n`` argument."""

    count: int
    approximate: bool = False

    @classmethod
    def equals(cls, count: int) -> "StreamMaxlen":
        """Trim to exactly ``count`` entries."""
        return cls(count, approximate=False)

    @classmethod
    def approx(cls, count: int) -> "StreamMaxlen":
        """Trim to roughly ``count`` entries."""
        return cls(count, approximate=True)

    def to_redis_args(self) -> list[bytes]:
        """Encode as ``MAXLEN``, the comparison sign and the count."""
        sign = b"~" if self.approximate else b"="
        return [b"MAXLEN", sign, *to_redis_args(self.count)]


@dataclass(frozen=True)
class StreamClaimOptions:
    """Options for XCLAIM. Every builder method returns a new object."""

    _idle: int | None = None
    _time: int | None = None
    _retry: int | None = None
    _force: bool = False
    _justid: bool = False

    def idle(self, ms: int) -> "StreamClaimOptions":
        """Set ``IDLE <milliseconds>``."""
        return replace(self, _idle=ms)

    def time(self, ms_time: int) -> "StreamClaimOptions":
        """Set ``TIME <mstime>``."""
        return replace(self, _time=ms_time)

    def retry(self, count: int) -> "StreamClaimOptions":
        """Set ``RETRYCOUNT <count>``."""
        return replace(self, _retry=count)

    def with_force(self) -> "StreamClaimOptions":
        """Set ``FORCE``."""
        return replace(self, _force=True)

    def with_justid(self) -> "StreamClaimOptions":
        """Set ``JUSTID``; the reply then holds only ids."""
        return replace(self, _justid=True)

    def to_redis_args(self) -> list[bytes]:
        """Encode the options as command arguments."""
        out: list[bytes] = []
        if self._idle is not None:
            out += [b"IDLE", _decimal(self._idle)]
        if self._time is not None:
            out += [b"TIME", _decimal(self._time)]
        if self._retry is not None:
            out += [b"RETRYCOUNT", _decimal(self._retry)]
        if self._force:
            out.append(b"FORCE")
        if self._justid:
            out.append(b"JUSTID")
        return out


@dataclass(frozen=True)
class StreamReadOptions:
    """Options for XREAD and XREADGROUP. Builder methods return new objects."""

    _block: int | None = None
    _count: int | None = None
    _noack: bool = False
    _group: tuple[tuple[bytes, ...], tuple[bytes, ...]] | None = None

    def read_only(self) -> bool:
        """Whether the read is outside a consumer group (plain XREAD)."""
        return self._group is None

    def noack(self) -> "StreamReadOptions":
        """Do not add read messages to the pending entries list."""
        return replace(self, _noack=True)

    def block(self, ms: int) -> "StreamReadOptions":
        """Block for up to ``ms`` milliseconds."""
        return replace(self, _block=ms)

    def count(self, n: int) -> "StreamReadOptions":
        """Return at most ``n`` entries per stream."""
        return replace(self, _count=n)

    def group(self, group_name: Any, consumer_name: Any) -> "StreamReadOptions":
        """Read as ``consumer_name`` in the consumer group ``group_name``."""
        return replace(
            self,
            _group=(
                tuple(to_redis_args(group_name)),
                tuple(to_redis_args(consumer_name)),
            ),
        )

    def to_redis_args(self) -> list[bytes]:
        """Encode the options as command arguments."""
        out: list[bytes] = []
        if self._block is not None:
            out += [b"BLOCK", _decimal(self._block)]
        if self._count is not None:
            out += [b"COUNT", _decimal(self._count)]
        if self._group is not None:
            # NOACK only exists for XREADGROUP.
            if self._noack:
                out.append(b"NOACK")
            group_args, consumer_args = self._group
            out.append(b"GROUP")
            out += group_args
            out += consumer_args
        return out


@dataclass
class StreamId:
    """One stream entry: its id and its fields with raw reply values."""

    id: str = ""
    map: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_bulk_value(cls, value: Any) -> "StreamId":
        """Build an entry from an ``[id, [field, value, ...]]`` reply."""
        entry = cls()
        if isinstance(value, list):
            if len(value) > 0:
                entry.id = value_to_str(value[0])
            if len(value) > 1:
                entry.map = value_to_map(value[1])
        return entry

    def get(
        self, key: str, convert: Callable[[Any], T] = value_to_str
    ) -> T | None:
        """Return field ``key`` converted, or None if missing or unconvertible."""
        if key not in self.map:
            return None
        try:
            return convert(self.map[key])
        except RedisError:
            return None

    def __contains__(self, key: object) -> bool:
        return key in self.map

    def __len__(self) -> int:
        return len(self.map)


@dataclass
class StreamKey:
    """A stream key together with the entries read from it."""

    key: str = ""
    ids: list[StreamId] = field(default_factory=list)


def _entries_of(value: Any) -> list[StreamId]:
    rows = [
        {entry_id: value_to_map(fields) for entry_id, fields in value_to_map(row).items()}
        for row in value_to_list(value)
    ]
    return [
        StreamId(entry_id, fields) for row in rows for entry_id, fields in row.items()
    ]


@dataclass
class StreamReadReply:
    """Reply of XREAD and XREADGROUP."""

    keys: list[StreamKey] = field(default_factory=list)

    @classmethod
    def from_value(cls, value: Any) -> "StreamReadReply":
        """Build the reply from a raw multi-bulk value."""
        rows = [
            {key: _entries_of(entries) for key, entries in value_to_map(row).items()}
            for row in value_to_list(value)
        ]
        return cls([StreamKey(key, ids) for row in rows for key, ids in row.items()])


@dataclass
class StreamRangeReply:
    """Reply of XRANGE and XREVRANGE."""

    ids: list[StreamId] = field(default_factory=list)

    @classmethod
    def from_value(cls, value: Any) -> "StreamRangeReply":
        """Build the reply from a raw multi-bulk value."""
        return cls(_entries_of(value))


@dataclass
class StreamClaimReply:
    """Reply of XCLAIM: the entries whose ownership changed."""

    ids: list[StreamId] = field(default_factory=list)

    @classmethod
    def from_value(cls, value: Any) -> "StreamClaimReply":
        """Build the reply from a raw multi-bulk value."""
        return cls(_entries_of(value))


@dataclass
class StreamInfoConsumer:
    """A consumer of a consumer group."""

    name: str = ""
    pending: int = 0
    idle: int = 0


@dataclass
class StreamInfoGroup:
    """A consumer group of a stream."""

    name: str = ""
    consumers: int = 0
    pending: int = 0
    last_delivered_id: str = ""


@dataclass
class StreamPendingId:
    """A message delivered to a consumer but not yet acknowledged."""

    id: str = ""
    consumer: str = ""
    last_delivered_ms: int = 0
    times_delivered: int = 0


@dataclass
class StreamPendingData:
    """Summary of the pending messages of a consumer group."""

    count: int = 0
    start_id: str = ""
    end_id: str = ""
    consumers: list[StreamInfoConsumer] = field(default_factory=list)


def _consumer_pair(value: Any) -> tuple[str, str]:
    if not isinstance(value, list):
        raise _incompatible(value, "Not a bulk response")
    if len(value) != 2:
        raise _incompatible(value, "Bulk response of wrong dimension")
    name, pending = value
    return value_to_str(name), value_to_str(pending)


def _parse_usize(text: str) -> int:
    return int(text) if _USIZE_RE.fullmatch(text) else 0


@dataclass
class StreamPendingReply:
    """Reply of the summary form of XPENDING; ``data`` is None when empty."""

    data: StreamPendingData | None = None

    def count(self) -> int:
        """Return the number of pending messages."""
        return 0 if self.data is None else self.data.count

    @classmethod
    def from_value(cls, value: Any) -> "StreamPendingReply":
        """Build the reply from ``[count, start, end, consumers]``."""
        if not isinstance(value, list):
            raise _incompatible(value, "Not a bulk response")
        if len(value) != 4:
            raise _incompatible(value, "Bulk response of wrong dimension")
        count_value, start_value, end_value, consumers_value = value
        count = value_to_int(count_value)
        start_id = _optional(value_to_str, start_value)
        end_id = _optional(value_to_str, end_value)
        consumer_data = [
            _optional(_consumer_pair, item) for item in value_to_list(consumers_value)
        ]

        if count == 0:
            return cls()
        if start_id is None:
            raise _illegal_state("IllegalState: Non-zero pending expects start id")
        if end_id is None:
            raise _illegal_state("IllegalState: Non-zero pending expects end id")

        consumers = [
            StreamInfoConsumer(name=name, pending=_parse_usize(pending))
            for name, pending in filter(None, consumer_data)
        ]
        return cls(StreamPendingData(count, start_id, end_id, consumers))


@dataclass
class StreamPendingCountReply:
    """Reply of the extended form of XPENDING."""

    ids: list[StreamPendingId] = field(default_factory=list)

    @classmethod
    def from_value(cls, value: Any) -> "StreamPendingCountReply":
        """Build the reply from a list of ``[id, consumer, ms, count]``."""
        if not isinstance(value, list):
            raise _cannot_parse(1)
        reply = cls()
        for outer in value:
            if not isinstance(outer, list):
                raise _cannot_parse(2)
            match outer:
                case [bytes() as id_bytes, bytes() as consumer_bytes, int() as ms, int() as times] if (
                    not isinstance(ms, bool) and not isinstance(times, bool)
                ):
                    reply.ids.append(
                        StreamPendingId(
                            id=_decode_utf8(id_bytes),
                            consumer=_decode_utf8(consumer_bytes),
                            last_delivered_ms=ms,
                            times_delivered=times,
                        )
                    )
                case _:
                    raise _cannot_parse(3)
        return reply


@dataclass
class StreamInfoStreamReply:
    """Reply of XINFO STREAM."""

    last_generated_id: str = ""
    radix_tree_keys: int = 0
    groups: int = 0
    length: int = 0
    first_entry: StreamId = field(default_factory=StreamId)
    last_entry: StreamId = field(default_factory=StreamId)

    @classmethod
    def from_value(cls, value: Any) -> "StreamInfoStreamReply":
        """Build the reply from a flat key/value reply."""
        info = value_to_map(value)
        reply = cls()
        if "last-generated-id" in info:
            reply.last_generated_id = value_to_str(info["last-generated-id"])
        if "radix-tree-nodes" in info:
            reply.radix_tree_keys = value_to_int(info["radix-tree-nodes"])
        if "groups" in info:
            reply.groups = value_to_int(info["groups"])
        if "length" in info:
            reply.length = value_to_int(info["length"])
        if "first-entry" in info:
            reply.first_entry = StreamId.from_bulk_value(info["first-entry"])
        if "last-entry" in info:
            reply.last_entry = StreamId.from_bulk_value(info["last-entry"])
        return reply


@dataclass
class StreamInfoConsumersReply:
    """Reply of XINFO CONSUMERS."""

    consumers: list[StreamInfoConsumer] = field(default_factory=list)

    @classmethod
    def from_value(cls, value: Any) -> "StreamInfoConsumersReply":
        """Build the reply from a list of flat key/value replies."""
        reply = cls()
        for info in map(value_to_map, value_to_list(value)):
            consumer = StreamInfoConsumer()
            if "name" in info:
                consumer.name = value_to_str(info["name"])
            if "pending" in info:
                consumer.pending = value_to_int(info["pending"])
            if "idle" in info:
                consumer.idle = value_to_int(info["idle"])
            reply.consumers.append(consumer)
        return reply


@dataclass
class StreamInfoGroupsReply:
    """Reply of XINFO GROUPS."""

    groups: list[StreamInfoGroup] = field(default_factory=list)

    @classmethod
    def from_value(cls, value: Any) -> "StreamInfoGroupsReply":
        """Build the reply from a list of flat key/value replies."""
        reply = cls()
        for info in map(value_to_map, value_to_list(value)):
            group = StreamInfoGroup()
            if "name" in info:
                group.name = value_to_str(info["name"])
            if "pending" in info:
                group.pending = value_to_int(info["pending"])
            if "consumers" in info:
                group.consumers = value_to_int(info["consumers"])
            if "last-delivered-id" in info:
                group.last_delivered_id = value_to_str(info["last-delivered-id"])
            reply.groups.append(group)
        return reply