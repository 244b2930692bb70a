"""Lua scripts that are loaded on demand and invoked by their SHA1 hash."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any

from respwire.types import ErrorKind, RedisError, pack_command, to_redis_args


class Script:
    """An immutable Lua script.

    ``con`` arguments are connections with a ``req_packed_command(packed)``
    method that sends one packed command and returns its reply, raising
    :class:`RedisError` for error replies.
    """

    def __init__(self, code: str) -> None:
        self._code = code
        self._hash = hashlib.sha1(code.encode("utf-8")).hexdigest()

    @property
    def code(self) -> str:
        """The script source."""
        return self._code

    def hash(self) -> str:
        """Return the script's SHA1 hash in hexadecimal."""
        return self._hash

    def key(self, key: Any) -> "ScriptInvocation":
        """Start an invocation with ``key`` filled in."""
        return ScriptInvocation(self, keys=to_redis_args(key))

    def arg(self, arg: Any) -> "ScriptInvocation":
        """Start an invocation with ``arg`` filled in."""
        return ScriptInvocation(self, args=to_redis_args(arg))

    def prepare_invoke(self) -> "ScriptInvocation":
        """Start an empty invocation."""
        return ScriptInvocation(self)

    def invoke(self, con: Any) -> Any:
        """Invoke the script without keys or arguments."""
        return self.prepare_invoke().invoke(con)

    def __repr__(self) -> str:
        return f"Script(hash={self._hash!r})"


@dataclass
class ScriptInvocation:
    """Keys and arguments collected for one call of a script."""

    script: Script
    args: list[bytes] = field(default_factory=list)
    keys: list[bytes] = field(default_factory=list)

    def arg(self, arg: Any) -> "ScriptInvocation":
        """Add an argument, seen as ``ARGV[i]`` by the script."""
        self.args.extend(to_redis_args(arg))
        return self

    def key(self, key: Any) -> "ScriptInvocation":
        """Add a key, seen as ``KEYS[i]`` by the script."""
        self.keys.extend(to_redis_args(key))
        return self

    def eval_command(self) -> list[bytes]:
        """Return the arguments of the EVALSHA command for this call."""
        return [
            b"EVALSHA",
            self.script.hash().encode("ascii"),
            str(len(self.keys)).encode("ascii"),
            *self.keys,
            *self.args,
        ]

    def _load_command(self) -> list[bytes]:
        return [b"SCRIPT", b"LOAD", self.script.code.encode("utf-8")]

    def invoke(self, con: Any) -> Any:
        """Run the script, loading it first if the server does not know it."""
        eval_packed = pack_command(self.eval_command())
        while True:
            try:
                return con.req_packed_command(eval_packed)
            except RedisError as err:
                if err.kind() is not ErrorKind.NO_SCRIPT_ERROR:
                    raise
            con.req_packed_command(pack_command(self._load_command()))