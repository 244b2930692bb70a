"""Parsing of RESP replies from readers and byte buffers."""

from __future__ import annotations

import enum
import io
import re
from typing import Any

from respwire.types import (
    ErrorKind,
    Okay,
    RedisError,
    Status,
    make_extension_error,
)

_CRLF = b"\r\n"
_INT_RE = re.compile(r"[+-]?[0-9]+")
_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1
_READ_SIZE = 8192

_SERVER_ERROR_KINDS = {
    "ERR": ErrorKind.RESPONSE_ERROR,
    "EXECABORT": ErrorKind.EXEC_ABORT_ERROR,
    "LOADING": ErrorKind.BUSY_LOADING_ERROR,
    "NOSCRIPT": ErrorKind.NO_SCRIPT_ERROR,
    "MOVED": ErrorKind.MOVED,
    "ASK": ErrorKind.ASK,
    "TRYAGAIN": ErrorKind.TRY_AGAIN,
    "CLUSTERDOWN": ErrorKind.CLUSTER_DOWN,
    "CROSSSLOT": ErrorKind.CROSS_SLOT,
    "MASTERDOWN": ErrorKind.MASTER_DOWN,
    "READONLY": ErrorKind.READ_ONLY,
}


class _Marker(enum.Enum):
    INCOMPLETE = "INCOMPLETE"


INCOMPLETE = _Marker.INCOMPLETE
"""Returned by :class:`ValueCodec` when the buffer holds no complete reply."""


class _Incomplete(Exception):
    pass


def _parse_error(detail: str) -> RedisError:
    return RedisError(ErrorKind.RESPONSE_ERROR, "parse error", detail)


def _eof_error() -> RedisError:
    return RedisError(ErrorKind.IO_ERROR, "I/O error", "unexpected end of file")


def _read_line(buf: bytearray, pos: int) -> tuple[str, int]:
    end = buf.find(_CRLF, pos)
    if end < 0:
        raise _Incomplete
    try:
        text = bytes(buf[pos:end]).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise _parse_error(f"invalid UTF-8 in line at offset {pos}") from exc
    return text, end + 2


def _read_int(buf: bytearray, pos: int) -> tuple[int, int]:
    text, pos = _read_line(buf, pos)
    text = text.strip()
    if not _INT_RE.fullmatch(text):
        raise _parse_error("Expected integer, got garbage")
    number = int(text)
    if not _I64_MIN <= number <= _I64_MAX:
        raise _parse_error("Expected integer, got garbage")
    return number, pos


def _server_error(line: str) -> RedisError:
    pieces = line.split(" ", 1)
    code = pieces[0]
    detail = pieces[1] if len(pieces) > 1 else None
    kind = _SERVER_ERROR_KINDS.get(code)
    if kind is None:
        return make_extension_error(code, detail)
    return RedisError(kind, "An error was signalled by the server", detail)


def _parse_value(buf: bytearray, pos: int) -> tuple[Any, int]:
    """Parse one reply at ``pos``.

    Returns the value (a RedisError instance for an error reply) and the
    position after it. Raises _Incomplete when more input is needed and
    RedisError on malformed input.
    """
    if pos >= len(buf):
        raise _Incomplete
    marker = buf[pos]
    pos += 1

    if marker == ord("+"):
        line, pos = _read_line(buf, pos)
        return (Okay() if line == "OK" else Status(line)), pos

    if marker == ord(":"):
        return _read_int(buf, pos)

    if marker == ord("$"):
        size, pos = _read_int(buf, pos)
        if size < 0:
            return None, pos
        end = pos + size
        if len(buf) < end + 2:
            raise _Incomplete
        if buf[end : end + 2] != _CRLF:
            raise _parse_error(f"expected CRLF after bulk data at offset {end}")
        return bytes(buf[pos:end]), end + 2

    if marker == ord("*"):
        length, pos = _read_int(buf, pos)
        if length < 0:
            return None, pos
        items = []
        first_error = None
        for _ in range(length):
            item, pos = _parse_value(buf, pos)
            if isinstance(item, RedisError):
                if first_error is None:
                    first_error = item
            else:
                items.append(item)
        return (first_error if first_error is not None else items), pos

    if marker == ord("-"):
        line, pos = _read_line(buf, pos)
        return _server_error(line), pos

    raise _parse_error(f"Unexpected token {bytes([marker])!r} at offset {pos - 1}")


class Parser:
    """Reads replies from a byte stream, one at a time.

    More than one reply may be behind the reader; data read past the end of
    one reply is kept for the next call.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    @staticmethod
    def _read_chunk(reader: Any) -> bytes:
        read = getattr(reader, "read1", None) or reader.read
        try:
            return read(_READ_SIZE)
        except OSError as exc:
            raise RedisError(ErrorKind.IO_ERROR, "I/O error", str(exc)) from exc

    def parse_value(self, reader: Any) -> Any:
        """Parse a single reply from ``reader`` (a binary stream or bytes).

        Error replies from the server are raised as :class:`RedisError`.
        """
        if isinstance(reader, (bytes, bytearray, memoryview)):
            reader = io.BytesIO(bytes(reader))
        while True:
            try:
                result, consumed = _parse_value(self._buffer, 0)
            except _Incomplete:
                chunk = self._read_chunk(reader)
                if not chunk:
                    self._buffer.clear()
                    raise _eof_error() from None
                self._buffer += chunk
                continue
            except RedisError:
                self._buffer.clear()
                raise
            del self._buffer[:consumed]
            if isinstance(result, RedisError):
                raise result
            return result


class ValueCodec:
    """Incremental decoder over a caller-owned ``bytearray``."""

    def encode(self, item: bytes, buffer: bytearray) -> None:
        """Append an already packed command to ``buffer``."""
        buffer.extend(item)

    def decode(self, buffer: bytearray) -> Any:
        """Take one reply off the front of ``buffer``.

        Returns :data:`INCOMPLETE` and leaves the buffer untouched when no
        complete reply is available yet.
        """
        return self._decode(buffer, eof=False)

    def decode_eof(self, buffer: bytearray) -> Any:
        """Like :meth:`decode`, but no further input will arrive."""
        return self._decode(buffer, eof=True)

    @staticmethod
    def _decode(buffer: bytearray, eof: bool) -> Any:
        try:
            result, consumed = _parse_value(buffer, 0)
        except _Incomplete:
            if eof and buffer:
                raise _parse_error("unexpected end of input") from None
            return INCOMPLETE
        del buffer[:consumed]
        if isinstance(result, RedisError):
            raise result
        return result


def parse_redis_value(data: bytes) -> Any:
    """Parse a single reply from ``data``."""
    return Parser().parse_value(data)