import io

import pytest

from respwire.parser import INCOMPLETE, Parser, ValueCodec, parse_redis_value
from respwire.types import ErrorKind, Okay, RedisError, Status, pack_command


class _OneByteReader:
    def __init__(self, data):
        self._data = data

    def read(self, n):
        chunk, self._data = self._data[:1], self._data[1:]
        return chunk


class _BrokenReader:
    def read(self, n):
        raise OSError("connection reset")


def test_decode_eof_returns_incomplete_at_eof():
    codec = ValueCodec()
    buffer = bytearray(b"+GET 123\r\n")
    assert codec.decode_eof(buffer) == parse_redis_value(b"+GET 123\r\n")
    assert codec.decode_eof(buffer) is INCOMPLETE
    assert codec.decode_eof(buffer) is INCOMPLETE


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"+OK\r\n", Okay()),
        (b"+GET 123\r\n", Status("GET 123")),
        (b":1000\r\n", 1000),
        (b":-5\r\n", -5),
        (b": 42 \r\n", 42),
        (b"$6\r\nfoobar\r\n", b"foobar"),
        (b"$0\r\n\r\n", b""),
        (b"$4\r\na\r\nb\r\n", b"a\r\nb"),
        (b"$-1\r\n", None),
        (b"*-1\r\n", None),
        (b"*0\r\n", []),
        (b"*2\r\n$3\r\nfoo\r\n:3\r\n", [b"foo", 3]),
        (b"*2\r\n*1\r\n:1\r\n$-1\r\n", [[1], None]),
    ],
)
def test_parse_values(data, expected):
    assert parse_redis_value(data) == expected


@pytest.mark.parametrize(
    "code, kind",
    [
        ("ERR", ErrorKind.RESPONSE_ERROR),
        ("EXECABORT", ErrorKind.EXEC_ABORT_ERROR),
        ("LOADING", ErrorKind.BUSY_LOADING_ERROR),
        ("NOSCRIPT", ErrorKind.NO_SCRIPT_ERROR),
        ("MOVED", ErrorKind.MOVED),
        ("ASK", ErrorKind.ASK),
        ("TRYAGAIN", ErrorKind.TRY_AGAIN),
        ("CLUSTERDOWN", ErrorKind.CLUSTER_DOWN),
        ("CROSSSLOT", ErrorKind.CROSS_SLOT),
        ("MASTERDOWN", ErrorKind.MASTER_DOWN),
        ("READONLY", ErrorKind.READ_ONLY),
    ],
)
def test_server_error_kinds(code, kind):
    with pytest.raises(RedisError) as info:
        parse_redis_value(f"-{code} some detail\r\n".encode())
    assert info.value.kind() is kind
    assert info.value.description == "An error was signalled by the server"
    assert info.value.detail == "some detail"


def test_server_error_without_detail():
    with pytest.raises(RedisError) as info:
        parse_redis_value(b"-ERR\r\n")
    assert info.value.kind() is ErrorKind.RESPONSE_ERROR
    assert info.value.detail is None


def test_extension_error():
    with pytest.raises(RedisError) as info:
        parse_redis_value(b"-WRONGPASS invalid username-password pair\r\n")
    assert info.value.kind() is ErrorKind.EXTENSION_ERROR
    assert info.value.code == "WRONGPASS"
    assert info.value.detail == "invalid username-password pair"


def test_error_inside_array_consumes_whole_array():
    parser = Parser()
    reader = io.BytesIO(b"*2\r\n-ERR inner\r\n:1\r\n:7\r\n")
    with pytest.raises(RedisError) as info:
        parser.parse_value(reader)
    assert info.value.detail == "inner"
    assert parser.parse_value(reader) == 7


@pytest.mark.parametrize(
    "data",
    [b":abc\r\n", b":1_0\r\n", b"$x\r\n", b"?what\r\n", b"$3\r\nfooXX", b"+\xff\r\n"],
)
def test_parse_errors(data):
    with pytest.raises(RedisError) as info:
        parse_redis_value(data)
    assert info.value.kind() is ErrorKind.RESPONSE_ERROR
    assert info.value.description == "parse error"


def test_integer_overflow_is_parse_error():
    with pytest.raises(RedisError) as info:
        parse_redis_value(b":9223372036854775808\r\n")
    assert info.value.description == "parse error"


@pytest.mark.parametrize("data", [b"", b"$5\r\nab", b"*2\r\n:1\r\n"])
def test_unexpected_eof(data):
    with pytest.raises(RedisError) as info:
        parse_redis_value(data)
    assert info.value.kind() is ErrorKind.IO_ERROR


def test_reader_failure_is_io_error():
    with pytest.raises(RedisError) as info:
        Parser().parse_value(_BrokenReader())
    assert info.value.kind() is ErrorKind.IO_ERROR
    assert info.value.detail == "connection reset"


def test_multiple_values_from_one_reader():
    parser = Parser()
    reader = io.BytesIO(b"+OK\r\n:5\r\n$3\r\nabc\r\n")
    assert parser.parse_value(reader) == Okay()
    assert parser.parse_value(reader) == 5
    assert parser.parse_value(reader) == b"abc"


def test_byte_at_a_time_reader():
    parser = Parser()
    reader = _OneByteReader(b"*2\r\n$3\r\nfoo\r\n:12\r\n+PONG\r\n")
    assert parser.parse_value(reader) == [b"foo", 12]
    assert parser.parse_value(reader) == Status("PONG")


def test_packed_command_parses_back():
    args = [b"SET", b"key", b"a\r\nb"]
    assert parse_redis_value(pack_command(args)) == args


def test_codec_incremental_decode():
    codec = ValueCodec()
    buffer = bytearray()
    codec.encode(b"*2\r\n$3\r\nfo", buffer)
    assert codec.decode(buffer) is INCOMPLETE
    assert buffer == bytearray(b"*2\r\n$3\r\nfo")
    codec.encode(b"o\r\n:1\r\n:2\r\n", buffer)
    assert codec.decode(buffer) == [b"foo", 1]
    assert buffer == bytearray(b":2\r\n")
    assert codec.decode(buffer) == 2
    assert codec.decode(buffer) is INCOMPLETE


def test_codec_decodes_nil_distinct_from_incomplete():
    codec = ValueCodec()
    buffer = bytearray(b"$-1\r\n")
    assert codec.decode(buffer) is None
    assert codec.decode(buffer) is INCOMPLETE


def test_codec_raises_server_error_and_advances():
    codec = ValueCodec()
    buffer = bytearray(b"-NOSCRIPT no script\r\n+OK\r\n")
    with pytest.raises(RedisError) as info:
        codec.decode(buffer)
    assert info.value.kind() is ErrorKind.NO_SCRIPT_ERROR
    assert codec.decode(buffer) == Okay()


def test_codec_decode_eof_partial_is_parse_error():
    codec = ValueCodec()
    buffer = bytearray(b"$5\r\nab")
    with pytest.raises(RedisError) as info:
        codec.decode_eof(buffer)
    assert info.value.kind() is ErrorKind.RESPONSE_ERROR
    assert info.value.description == "parse error"


def test_codec_encode_appends():
    codec = ValueCodec()
    buffer = bytearray(b"abc")
    codec.encode(b"def", buffer)
    assert buffer == bytearray(b"abcdef")