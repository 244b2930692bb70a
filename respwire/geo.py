"""Arguments and reply types for the geospatial commands."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Generic, TypeVar

from respwire.types import (
    ErrorKind,
    RedisError,
    to_redis_args,
    value_to_float,
    value_to_list,
    value_to_str,
)

T = TypeVar("T")


def _incompatible(value: Any, reason: str) -> RedisError:
    return RedisError(
        ErrorKind.TYPE_ERROR,
        "Response was of incompatible type",
        f"{reason!r} (response was {value!r})",
    )


class Unit(enum.Enum):
    """Distance units understood by GEODIST and GEORADIUS."""

    METERS = "m"
    KILOMETERS = "km"
    MILES = "mi"
    FEET = "ft"

    def to_redis_args(self) -> list[bytes]:
        """Encode the unit as a single command argument."""
        return [self.value.encode("ascii")]


@dataclass
class Coord(Generic[T]):
    """A (longitude, latitude) pair."""

    longitude: T
    latitude: T

    @classmethod
    def lon_lat(cls, longitude: T, latitude: T) -> "Coord[T]":
        """Create a coordinate from longitude and latitude."""
        return cls(longitude, latitude)

    def to_redis_args(self) -> list[bytes]:
        """Encode as two arguments: longitude, then latitude."""
        return to_redis_args(self.longitude) + to_redis_args(self.latitude)

    @classmethod
    def from_value(
        cls, value: Any, convert: Callable[[Any], T] = value_to_float
    ) -> "Coord[T]":
        """Build a coordinate from a two-element reply, converting each item."""
        items = [convert(item) for item in value_to_list(value)]
        if len(items) != 2:
            raise _incompatible(value, "Expect a pair of numbers")
        longitude, latitude = items
        return cls(longitude, latitude)


class RadiusOrder(enum.Enum):
    """Sort order for GEORADIUS results."""

    UNSORTED = enum.auto()
    ASC = enum.auto()
    DESC = enum.auto()


@dataclass(frozen=True)
class RadiusOptions:
    """Options for GEORADIUS and GEORADIUSBYMEMBER.

    Every builder method returns a new options object.
    """

    _with_coord: bool = False
    _with_dist: bool = False
    _count: int | None = None
    _order: RadiusOrder = RadiusOrder.UNSORTED
    _store: list[bytes] | None = field(default=None)
    _store_dist: list[bytes] | None = field(default=None)

    def limit(self, n: int) -> "RadiusOptions":
        """Limit the results to the first ``n`` matching items."""
        return replace(self, _count=n)

    def with_dist(self) -> "RadiusOptions":
        """Return the distance of each item from the center."""
        return replace(self, _with_dist=True)

    def with_coord(self) -> "RadiusOptions":
        """Return the coordinates of each item."""
        return replace(self, _with_coord=True)

    def order(self, order: RadiusOrder) -> "RadiusOptions":
        """Sort the returned items."""
        return replace(self, _order=order)

    def store(self, key: Any) -> "RadiusOptions":
        """Store the results in a sorted set at ``key``."""
        return replace(self, _store=to_redis_args(key))

    def store_dist(self, key: Any) -> "RadiusOptions":
        """Store the results at ``key`` with the distance as score."""
        return replace(self, _store_dist=to_redis_args(key))

    def to_redis_args(self) -> list[bytes]:
        """Encode the options as command arguments."""
        out: list[bytes] = []
        if self._with_coord:
            out.append(b"WITHCOORD")
        if self._with_dist:
            out.append(b"WITHDIST")
        if self._count is not None:
            out += [b"COUNT", str(self._count).encode("ascii")]
        if self._order is RadiusOrder.ASC:
            out.append(b"ASC")
        elif self._order is RadiusOrder.DESC:
            out.append(b"DESC")
        if self._store is not None:
            out.append(b"STORE")
            out += self._store
        if self._store_dist is not None:
            out.append(b"STOREDIST")
            out += self._store_dist
        return out


def _try(convert: Callable[[Any], T], value: Any) -> T | None:
    try:
        return convert(value)
    except RedisError:
        return None


@dataclass
class RadiusSearchResult:
    """One item returned by a radius search."""

    name: str
    coord: Coord[float] | None = None
    dist: float | None = None

    @classmethod
    def from_value(cls, value: Any) -> "RadiusSearchResult":
        """Build a result from a plain name or a [name, dist?, coord?] reply."""
        name = _try(value_to_str, value)
        if name is not None:
            return cls(name)
        if isinstance(value, list):
            result = cls._parse_multi_values(value)
            if result is not None:
                return result
        raise _incompatible(value, "Response type not RadiusSearchResult compatible.")

    @classmethod
    def _parse_multi_values(cls, items: list) -> "RadiusSearchResult | None":
        rest = iter(items)
        first = next(rest, None)
        name = None if first is None else _try(value_to_str, first)
        if name is None:
            return None
        current = next(rest, None)
        dist = None if current is None else _try(value_to_float, current)
        if dist is not None:
            current = next(rest, None)
        coord = None if current is None else _try(Coord.from_value, current)
        return cls(name, coord, dist)