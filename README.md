# respwire

Building blocks for talking to a Redis server over its wire protocol (RESP):

- **`respwire.parser`**: a `Parser` that reads one reply at a time from a binary stream or
  bytes, a `parse_redis_value` helper for a complete reply, and `ValueCodec`, which takes
  replies off the front of a `bytearray` as they arrive. `ValueCodec.decode` returns
  `respwire.parser.INCOMPLETE` while no whole reply is in the buffer.
- **`respwire.types`**: `RedisError` and `ErrorKind` for server and protocol errors,
  `Status` and `Okay` for status replies, `to_redis_args` and `pack_command` to encode a
  command, and `value_to_str`, `value_to_int`, `value_to_float`, `value_to_list` and
  `value_to_map` to turn parsed replies into Python values.
- **`respwire.pipeline`**: `Pipeline` (or `pipe()`) sends many commands in one round trip.
  It can wrap them in `MULTI`/`EXEC` and drops from the results the replies you mark with
  `ignore()`.
- **`respwire.script`**: `Script` runs a Lua script with `EVALSHA`. If the server replies
  `NOSCRIPT`, it loads the script with `SCRIPT LOAD` and tries again.
- **`respwire.geo`**: options and reply types for the geospatial commands: `Unit`, `Coord`,
  `RadiusOptions`, `RadiusOrder` and `RadiusSearchResult`.
- **`respwire.streams`**: options and reply types for the stream commands: `StreamMaxlen`,
  `StreamReadOptions`, `StreamClaimOptions`, `StreamReadReply`, `StreamRangeReply`,
  `StreamPendingReply`, `StreamInfoStreamReply` and more.

The package has no runtime dependencies.

## Installation

```
pip install respwire
```

## Parsing replies

Nil is `None`, integers are `int`, bulk strings are `bytes` and multi-bulk replies are
lists. Error replies are raised as `RedisError`.

```python
from respwire.parser import parse_redis_value
from respwire.types import RedisError, ErrorKind

parse_redis_value(b"*2\r\n$3\r\nfoo\r\n:42\r\n")   # [b"foo", 42]

try:
    parse_redis_value(b"-ERR unknown command\r\n")
except RedisError as err:
    assert err.kind() is ErrorKind.RESPONSE_ERROR
```

## Pipelines

```python
from respwire.pipeline import pipe

p = pipe().atomic()
p.cmd("SET").arg("key_1").arg(42).ignore()
p.cmd("GET").arg("key_1")
payload = p.get_packed_pipeline()   # MULTI ... EXEC, encoded as bytes
```

`Pipeline.query(con)` sends the commands through a connection object and returns the
replies that were not ignored; an aborted transaction gives `None`.

## Scripts

```python
from respwire.script import Script

script = Script("return tonumber(ARGV[1]) + tonumber(ARGV[2])")
call = script.arg(1).arg(2)
call.eval_command()   # [b"EVALSHA", <sha1>, b"0", b"1", b"2"]
```

`call.invoke(con)` sends the command and returns its reply.

## Geospatial options

```python
from respwire.geo import RadiusOptions, RadiusOrder

RadiusOptions().order(RadiusOrder.ASC).limit(10).with_dist().to_redis_args()
# [b"WITHDIST", b"COUNT", b"10", b"ASC"]
```

## What it does not do

There is no client or connection here: the package opens no sockets. `Pipeline.query` and
`Script.invoke` work through a connection object you supply:

- for pipelines, one with `supports_pipelining()` and
  `req_packed_commands(packed, offset, count)`, which sends the bytes, reads
  `offset + count` replies and returns the last `count` of them as a list;
- for scripts, one with `req_packed_command(packed)`, which sends one command and returns
  its reply, raising `RedisError` for an error reply.

There are no high-level command methods; build commands from their arguments with
`Pipeline.cmd`/`arg` or `to_redis_args` and `pack_command`.

## Running the tests

```
pip install -e ".[test]"
pytest
```