"""Command pipelines: several commands sent in one round trip."""

from __future__ import annotations

from typing import Any, Iterator

from respwire.types import ErrorKind, RedisError, pack_command, to_redis_args


class Pipeline:
    """A list of commands sent together, optionally inside MULTI/EXEC.

    ``con`` arguments are connections with two methods:

    * ``supports_pipelining()``, which returns whether pipelines may be sent;
    * ``req_packed_commands(packed, offset, count)``, which sends ``packed``,
      reads ``offset + count`` replies and returns the last ``count`` of
      them as a list.

    Builder methods return the pipeline itself so that calls can be chained.
    A pipeline keeps its commands after :meth:`query`; call :meth:`clear`
    to reuse it for other commands.
    """

    def __init__(self) -> None:
        self._commands: list[list[bytes]] = []
        self._transaction_mode = False
        self._ignored_commands: set[int] = set()

    def __len__(self) -> int:
        return len(self._commands)

    def __repr__(self) -> str:
        return (
            f"Pipeline(commands={self._commands!r}, "
            f"atomic={self._transaction_mode!r}, "
            f"ignored={sorted(self._ignored_commands)!r})"
        )

    def atomic(self) -> "Pipeline":
        """Wrap the whole pipeline in MULTI/EXEC when it is sent."""
        self._transaction_mode = True
        return self

    def get_packed_pipeline(self) -> bytes:
        """Return the commands encoded as they would be sent."""
        return self._encode(self._transaction_mode)

    def _encode(self, atomic: bool) -> bytes:
        packed = b"".join(pack_command(command) for command in self._commands)
        if atomic:
            return pack_command([b"MULTI"]) + packed + pack_command([b"EXEC"])
        return packed

    def _execute_pipelined(self, con: Any) -> list:
        replies = con.req_packed_commands(
            self._encode(False), 0, len(self._commands)
        )
        return self._make_pipeline_results(replies)

    def _execute_transaction(self, con: Any) -> list | None:
        replies = list(
            con.req_packed_commands(self._encode(True), len(self._commands) + 1, 1)
        )
        last = replies.pop() if replies else _MISSING
        if last is None:
            return None
        if isinstance(last, list):
            return self._make_pipeline_results(last)
        raise RedisError(
            ErrorKind.RESPONSE_ERROR,
            "Invalid response when parsing multi response",
        )

    def query(self, con: Any) -> list | None:
        """Send the pipeline and return the replies of non-ignored commands.

        An atomic pipeline whose transaction was aborted (EXEC returned nil)
        yields None.
        """
        if not con.supports_pipelining():
            raise RedisError(
                ErrorKind.RESPONSE_ERROR,
                "This connection does not support pipelining.",
            )
        if not self._commands:
            return []
        if self._transaction_mode:
            return self._execute_transaction(con)
        return self._execute_pipelined(con)

    def execute(self, con: Any) -> None:
        """Send the pipeline and discard the replies; errors are raised."""
        self.query(con)

    def add_command(self, command: Any) -> "Pipeline":
        """Append a command given as its arguments, name first."""
        self._commands.append(to_redis_args(command))
        return self

    def cmd(self, name: Any) -> "Pipeline":
        """Start a new command; :meth:`arg` then adds its arguments."""
        return self.add_command(name)

    def cmd_iter(self) -> Iterator[tuple[bytes, ...]]:
        """Iterate over the commands, each as a tuple of its arguments."""
        return (tuple(command) for command in self._commands)

    def ignore(self) -> "Pipeline":
        """Drop the reply of the last command from the results.

        The reply is still checked for errors. Does nothing on an empty
        pipeline.
        """
        if self._commands:
            self._ignored_commands.add(len(self._commands) - 1)
        return self

    def arg(self, arg: Any) -> "Pipeline":
        """Add an argument to the last started command.

        Raises IndexError if no command was started.
        """
        if not self._commands:
            raise IndexError("No command on stack")
        self._commands[-1].extend(to_redis_args(arg))
        return self

    def clear(self) -> None:
        """Remove all commands and ignore marks; atomic mode is kept."""
        self._commands.clear()
        self._ignored_commands.clear()

    def _make_pipeline_results(self, replies: Any) -> list:
        return [
            reply
            for index, reply in enumerate(replies)
            if index not in self._ignored_commands
        ]


_MISSING = object()


def pipe() -> Pipeline:
    """Create an empty pipeline."""
    return Pipeline()