import pytest

from respwire.geo import (
    Coord,
    RadiusOptions,
    RadiusOrder,
    RadiusSearchResult,
    Unit,
)
from respwire.types import ErrorKind, RedisError, Status, to_redis_args, value_to_str


def _strings(value):
    return [arg.decode("utf-8") for arg in to_redis_args(value)]


def test_coord_to_args():
    member = ("Palermo", Coord.lon_lat("13.361389", "38.115556"))
    assert _strings(member) == ["Palermo", "13.361389", "38.115556"]


def test_radius_options_empty():
    assert to_redis_args(RadiusOptions()) == []


@pytest.mark.parametrize(
    "opts, expected",
    [
        (RadiusOptions().with_coord().with_dist(), ["WITHCOORD", "WITHDIST"]),
        (RadiusOptions().limit(50), ["COUNT", "50"]),
        (RadiusOptions().limit(50).store("x"), ["COUNT", "50", "STORE", "x"]),
        (
            RadiusOptions().limit(100).store_dist("y"),
            ["COUNT", "100", "STOREDIST", "y"],
        ),
        (
            RadiusOptions().order(RadiusOrder.ASC).limit(10).with_dist(),
            ["WITHDIST", "COUNT", "10", "ASC"],
        ),
    ],
)
def test_radius_options(opts, expected):
    assert _strings(opts) == expected


def test_radius_options_desc_and_unsorted():
    assert _strings(RadiusOptions().order(RadiusOrder.DESC)) == ["DESC"]
    assert _strings(RadiusOptions().order(RadiusOrder.UNSORTED)) == []


def test_builder_does_not_mutate_original():
    base = RadiusOptions()
    base.limit(5)
    assert to_redis_args(base) == []


@pytest.mark.parametrize(
    "unit, text",
    [(Unit.METERS, "m"), (Unit.KILOMETERS, "km"), (Unit.MILES, "mi"), (Unit.FEET, "ft")],
)
def test_unit_args(unit, text):
    assert _strings(unit) == [text]


def test_coord_from_value_floats():
    coord = Coord.from_value([b"13.361389", b"38.115556"])
    assert coord == Coord(13.361389, 38.115556)


def test_coord_from_value_keeps_text():
    coord = Coord.from_value([b"13.361389", b"38.115556"], value_to_str)
    assert coord == Coord.lon_lat("13.361389", "38.115556")


@pytest.mark.parametrize("value", [[b"1.0"], [b"1.0", b"2.0", b"3.0"], None])
def test_coord_from_value_wrong_length(value):
    with pytest.raises(RedisError) as info:
        Coord.from_value(value)
    assert info.value.kind() is ErrorKind.TYPE_ERROR


def test_radius_result_plain_name():
    result = RadiusSearchResult.from_value(b"Palermo")
    assert result == RadiusSearchResult("Palermo", None, None)


def test_radius_result_with_dist_and_coord():
    value = [b"Palermo", b"190.4424", [b"13.361389", b"38.115556"]]
    result = RadiusSearchResult.from_value(value)
    assert result.name == "Palermo"
    assert result.dist == 190.4424
    assert result.coord == Coord(13.361389, 38.115556)


def test_radius_result_with_coord_only():
    value = [b"Catania", [b"15.087269", b"37.502669"]]
    result = RadiusSearchResult.from_value(value)
    assert result.dist is None
    assert result.coord == Coord(15.087269, 37.502669)


def test_radius_result_with_dist_only():
    result = RadiusSearchResult.from_value([b"Catania", b"56.4413"])
    assert (result.name, result.dist, result.coord) == ("Catania", 56.4413, None)


def test_radius_result_status_name():
    assert RadiusSearchResult.from_value(Status("Palermo")).name == "Palermo"


@pytest.mark.parametrize("value", [None, [], [[b"x"]]])
def test_radius_result_incompatible(value):
    with pytest.raises(RedisError) as info:
        RadiusSearchResult.from_value(value)
    assert info.value.kind() is ErrorKind.TYPE_ERROR