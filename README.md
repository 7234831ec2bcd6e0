# minnow

This package provides building blocks for a user-space TCP/IP stack. It also includes two small command-line tools. It has no dependencies outside the standard library and targets Linux.

## Modules

- `minnow.byte_stream` provides `ByteStream`, a pipe held in memory that buffers at most `capacity` unread bytes.
  - Its `Writer` side (`stream.writer()`) has `push`, `close`, `is_closed`, `available_capacity` and `bytes_pushed`.
  - Its `Reader` side (`stream.reader()`) has `peek`, `pop`, `is_finished`, `bytes_buffered` and `bytes_popped`.
  - `read(reader, length)` peeks and pops up to `length` bytes and returns them.
- `minnow.reassembler` provides `Reassembler`. It takes indexed substrings that may arrive out of order or overlap, and writes them in order into a `ByteStream`.
  - Bytes beyond the stream's available capacity are discarded.
  - The stream is closed once the last byte of the final substring has been written.
- `minnow.checksum` provides `InternetChecksum`, the ones'-complement Internet checksum.
- `minnow.parser` provides `Parser` and `Serializer` for big-endian wire formats, plus the `parse` and `serialize` helpers.
- `minnow.ipv4_header` provides `IPv4Header`, which can be parsed, serialized and checksummed. Options are skipped when parsing.
- `minnow.ipv4_datagram` provides `IPv4Datagram`, a header followed by its payload buffers.
- `minnow.errors` provides `TaggedError`, `UnixError`, `check_system_call` and `notnull`.
- `minnow.file_descriptor` provides `FileDescriptor`, a handle on an OS file descriptor. It counts reads and writes and tracks end of file. Its `duplicate()` handles share one descriptor.
- `minnow.address` provides `Address`.
  - It can be resolved from a host and service, or built with `from_ip`, `from_sockaddr` or `from_ipv4_numeric`.
  - `str()` gives `ip:port`.
- `minnow.socket` provides the socket classes: `Socket`, `DatagramSocket`, `UDPSocket`, `TCPSocket`, `PacketSocket`, `LocalStreamSocket` and `LocalDatagramSocket`.
- `minnow.eventloop` provides `EventLoop`, a `poll`-based loop.
  - `add_rule` registers plain rules and `add_fd_rule` registers descriptor rules.
  - `wait_next_event` serves at most one ready rule and returns a `Result`.
- `minnow.rng` provides `get_random_engine()`, which returns a `random.Random` seeded from OS entropy.
- `minnow.stream_copy` provides `bidirectional_stream_copy`. It copies between a socket and a pair of local descriptors, which default to standard input and output.

## Example

```python
from minnow.byte_stream import ByteStream, read
from minnow.reassembler import Reassembler

r = Reassembler(ByteStream(64))
r.insert(1, b"b", True)
r.insert(0, b"a")
assert read(r.reader(), 2) == b"ab"
assert r.reader().is_finished()
```

## Commands

Fetch a page over HTTP/1.1 and print the raw response:

```
minnow-webget HOST PATH
```

Connect to a TCP peer and copy standard input and output both ways:

```
minnow-tcp-native HOST PORT
```

Listen for one connection on HOST:PORT instead:

```
minnow-tcp-native -l HOST PORT
```

## Limitations

The package cannot open TUN or TAP devices. Carrying IP datagrams through a virtual network interface is therefore up to the caller.

## Tests

```
pip install .[test]
pytest
```