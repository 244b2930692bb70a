"""Reply values, errors and argument encoding for the RESP protocol.

Replies are represented with plain Python values:

* ``None`` for a nil reply,
* ``int`` for an integer reply,
* ``bytes`` for a bulk string,
* ``list`` for a multi-bulk reply,
* :class:`Status` for a status line and :class:`Okay` for ``+OK``.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Any, Iterable

_INT_RE = re.compile(r"[+-]?[0-9]+")


class ErrorKind(enum.Enum):
    """Categories of errors raised by the client or signalled by the server."""

    RESPONSE_ERROR = enum.auto()
    AUTHENTICATION_FAILED = enum.auto()
    TYPE_ERROR = enum.auto()
    EXEC_ABORT_ERROR = enum.auto()
    BUSY_LOADING_ERROR = enum.auto()
    NO_SCRIPT_ERROR = enum.auto()
    INVALID_CLIENT_CONFIG = enum.auto()
    MOVED = enum.auto()
    ASK = enum.auto()
    TRY_AGAIN = enum.auto()
    CLUSTER_DOWN = enum.auto()
    CROSS_SLOT = enum.auto()
    MASTER_DOWN = enum.auto()
    IO_ERROR = enum.auto()
    CLIENT_ERROR = enum.auto()
    EXTENSION_ERROR = enum.auto()
    READ_ONLY = enum.auto()


class RedisError(Exception):
    """An error from the server, the protocol layer or a value conversion."""

    def __init__(
        self,
        kind: ErrorKind,
        description: str,
        detail: str | None = None,
        *,
        code: str | None = None,
    ) -> None:
        super().__init__(description)
        self._kind = kind
        self.description = description
        self.detail = detail
        self.code = code

    def kind(self) -> ErrorKind:
        """Return the category of this error."""
        return self._kind

    def _key(self) -> tuple:
        return (self._kind, self.description, self.detail, self.code)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RedisError):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        if self.code is not None:
            return f"{self.code}: {self.detail}" if self.detail else self.code
        if self.detail is not None:
            return f"{self.description}: {self.detail}"
        return self.description

    def __repr__(self) -> str:
        return (
            f"RedisError({self._kind.name}, {self.description!r}, "
            f"{self.detail!r}, code={self.code!r})"
        )


@dataclass(frozen=True)
class Status:
    """A status line reply other than ``OK``."""

    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Okay:
    """The ``+OK`` status reply."""

    def __str__(self) -> str:
        return "OK"


def make_extension_error(code: str, detail: str | None) -> RedisError:
    """Build an error for a server error code the client does not know."""
    return RedisError(
        ErrorKind.EXTENSION_ERROR,
        "An error was signalled by the server",
        detail,
        code=code,
    )


def to_redis_args(value: Any) -> list[bytes]:
    """Encode a Python value as a list of command arguments."""
    if value is None:
        return []
    if isinstance(value, (bytes, bytearray, memoryview)):
        return [bytes(value)]
    if isinstance(value, str):
        return [value.encode("utf-8")]
    if isinstance(value, bool):
        return [b"1" if value else b"0"]
    if isinstance(value, int):
        return [str(value).encode("ascii")]
    if isinstance(value, float):
        return [repr(value).encode("ascii")]
    encoder = getattr(value, "to_redis_args", None)
    if callable(encoder):
        return list(encoder())
    if isinstance(value, (list, tuple)):
        return [arg for item in value for arg in to_redis_args(item)]
    raise TypeError(f"cannot encode {type(value).__name__} as a command argument")


def pack_command(args: Iterable[bytes]) -> bytes:
    """Encode command arguments as a RESP array of bulk strings."""
    items = [bytes(arg) for arg in args]
    out = bytearray(b"*%d\r\n" % len(items))
    for item in items:
        out += b"$%d\r\n" % len(item)
        out += item
        out += b"\r\n"
    return bytes(out)


def _incompatible(value: Any, reason: str) -> RedisError:
    return RedisError(
        ErrorKind.TYPE_ERROR,
        "Response was of incompatible type",
        f"{reason} (response was {value!r})",
    )


def _scalar_text(value: Any) -> str | None:
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError:
            return None
    if isinstance(value, Status):
        return value.text
    if isinstance(value, Okay):
        return "OK"
    return None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def value_to_str(value: Any) -> str:
    """Convert a reply to text."""
    if _is_int(value):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise _incompatible(value, "Invalid UTF-8") from exc
    text = _scalar_text(value)
    if text is None:
        raise _incompatible(value, "Response type not string compatible.")
    return text


def value_to_int(value: Any) -> int:
    """Convert a reply to an integer."""
    if _is_int(value):
        return value
    text = _scalar_text(value)
    if text is not None and _INT_RE.fullmatch(text):
        return int(text)
    raise _incompatible(value, "Response type not integer compatible.")


def value_to_float(value: Any) -> float:
    """Convert a reply to a float."""
    if _is_int(value):
        return float(value)
    text = _scalar_text(value)
    if text and text == text.strip() and "_" not in text:
        try:
            return float(text)
        except ValueError:
            pass
    raise _incompatible(value, "Response type not float compatible.")


def value_to_list(value: Any) -> list:
    """Convert a reply to a list of raw reply values."""
    if isinstance(value, list):
        return list(value)
    if value is None:
        return []
    if isinstance(value, (bytes, bytearray)):
        return [bytes(value)]
    raise _incompatible(value, "Response type not vector compatible.")


def value_to_map(value: Any) -> dict[str, Any]:
    """Convert a flat key/value multi-bulk reply to a dict of raw values."""
    if not isinstance(value, list):
        raise _incompatible(value, "Response type not hashmap compatible")
    pairs = iter(value)
    return {value_to_str(key): item for key, item in zip(pairs, pairs)}