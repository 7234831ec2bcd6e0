import random

import pytest

from minnow.byte_stream import ByteStream, read
from minnow.reassembler import Reassembler


def make(capacity):
    return Reassembler(ByteStream(capacity))


def read_all(r, expected):
    assert read(r.reader(), len(expected)) == expected
    assert r.reader().bytes_buffered() == 0


def ins(index, data, last=False):
    return ("insert", index, data, last)


def pu(n):
    return ("pushed", n)


def pe(n):
    return ("pending", n)


def rd(data):
    return ("read", data)


def fin(value):
    return ("finished", value)


ZERO_TAIL = bytes([0x30, 0x0D, 0x62, 0x00, 0x61, 0x00, 0x00])
ZERO_HEAD = bytes([0x0D, 0x0A, 0x63, 0x61, 0x0A, 0x66])
ZERO_LONG = bytes([0x0D, 0x0A, 0x63, 0x61, 0x0A, 0x66, 0x65, 0x20, 0x62, 0x30])

SCRIPTS = {
    # single
    "construction": (65000, [pu(0), fin(False)]),
    "insert a @ 0": (65000, [ins(0, b"a"), pu(1), rd(b"a"), fin(False)]),
    "insert a @ 0 [last]": (65000, [ins(0, b"a", True), pu(1), rd(b"a"), fin(True)]),
    "empty stream": (65000, [ins(0, b"", True), pu(0), fin(True)]),
    "insert b @ 0 [last]": (65000, [ins(0, b"b", True), pu(1), rd(b"b"), fin(True)]),
    "insert empty string @ 0": (65000, [ins(0, b""), pu(0), fin(False)]),
    "insert after first unacceptable": (1, [ins(3, b"g"), pu(0), fin(False)]),
    "insert before first unassembled": (
        1,
        [ins(0, b"b"), rd(b"b"), pu(1), ins(0, b"b"), pu(1), fin(False)],
    ),
    # capacity
    "all within capacity": (
        2,
        [
            ins(0, b"ab"), pu(2), pe(0), rd(b"ab"),
            ins(2, b"cd"), pu(4), pe(0), rd(b"cd"),
            ins(4, b"ef"), pu(6), pe(0), rd(b"ef"),
        ],
    ),
    "insert beyond capacity": (
        2,
        [
            ins(0, b"ab"), pu(2), pe(0),
            ins(2, b"cd"), pu(2), pe(0),
            rd(b"ab"), pu(2), pe(0),
            ins(2, b"cd"), pu(4), pe(0),
            rd(b"cd"),
        ],
    ),
    "overlapping inserts": (
        1,
        [
            ins(0, b"ab"), pu(1), pe(0),
            ins(0, b"ab"), pu(1), pe(0),
            rd(b"a"), pu(1), pe(0),
            ins(0, b"abc"), pu(2), pe(0),
            rd(b"b"), pu(2), pe(0),
        ],
    ),
    "insert beyond capacity repeated with different data": (
        2,
        [
            ins(1, b"b"), pu(0), pe(1),
            ins(2, b"bX"), pu(0), pe(1),
            ins(0, b"a"), pu(2), pe(0), rd(b"ab"),
            ins(1, b"bc"), pu(3), pe(0), rd(b"c"),
        ],
    ),
    "insert last beyond capacity": (
        2,
        [
            ins(1, b"bc", True), pu(0), pe(1),
            ins(0, b"a"), pu(2), pe(0), rd(b"ab"), fin(False),
            ins(1, b"bc", True), pu(3), pe(0), rd(b"c"), fin(True),
        ],
    ),
    # sequential
    "seq 1": (
        65000,
        [ins(0, b"abcd"), pu(4), rd(b"abcd"), fin(False), ins(4, b"efgh"), pu(8), rd(b"efgh"), fin(False)],
    ),
    "seq 2": (
        65000,
        [ins(0, b"abcd"), pu(4), fin(False), ins(4, b"efgh"), pu(8), rd(b"abcdefgh"), fin(False)],
    ),
    "seq 3": (
        65000,
        [step for i in range(100) for step in (pu(4 * i), ins(4 * i, b"abcd"), fin(False))]
        + [rd(b"abcd" * 100), fin(False)],
    ),
    "seq 4": (
        65000,
        [step for i in range(100) for step in (pu(4 * i), ins(4 * i, b"abcd"), fin(False), rd(b"abcd"))],
    ),
    "zero-valued byte in substring": (
        16,
        [
            ins(9, ZERO_TAIL), pu(0), rd(b""), fin(False),
            ins(0, ZERO_HEAD), pu(6),
            ins(0, ZERO_LONG), pu(16), pe(0), rd(ZERO_LONG + ZERO_TAIL[1:]),
        ],
    ),
    # duplicates
    "dup 1": (
        65000,
        [ins(0, b"abcd"), pu(4), rd(b"abcd"), fin(False), ins(0, b"abcd"), pu(4), rd(b""), fin(False)],
    ),
    "dup 2": (
        65000,
        [
            ins(0, b"abcd"), pu(4), rd(b"abcd"), fin(False),
            ins(4, b"abcd"), pu(8), rd(b"abcd"), fin(False),
            ins(0, b"abcd"), pu(8), rd(b""), fin(False),
            ins(4, b"abcd"), pu(8), rd(b""), fin(False),
        ],
    ),
    "dup 4": (
        65000,
        [ins(0, b"abcd"), pu(4), rd(b"abcd"), fin(False), ins(0, b"abcdef"), pu(6), rd(b"ef"), fin(False)],
    ),
    # holes
    "holes 1": (65000, [ins(1, b"b"), pu(0), rd(b""), fin(False)]),
    "holes 2": (65000, [ins(1, b"b"), ins(0, b"a"), pu(2), rd(b"ab"), fin(False)]),
    "holes 3": (
        65000,
        [ins(1, b"b", True), pu(0), rd(b""), fin(False), ins(0, b"a"), pu(2), rd(b"ab"), fin(True)],
    ),
    "holes 4": (65000, [ins(1, b"b"), ins(0, b"ab"), pu(2), rd(b"ab"), fin(False)]),
    "holes 5": (
        65000,
        [
            ins(1, b"b"), pu(0), rd(b""), fin(False),
            ins(3, b"d"), pu(0), rd(b""), fin(False),
            ins(2, b"c"), pu(0), rd(b""), fin(False),
            ins(0, b"a"), pu(4), rd(b"abcd"), fin(False),
        ],
    ),
    "holes 6": (
        65000,
        [
            ins(1, b"b"), pu(0), rd(b""), fin(False),
            ins(3, b"d"), pu(0), rd(b""), fin(False),
            ins(0, b"abc"), pu(4), rd(b"abcd"), fin(False),
        ],
    ),
    "holes 7": (
        65000,
        [
            ins(1, b"b"), pu(0), rd(b""), fin(False),
            ins(3, b"d"), pu(0), rd(b""), fin(False),
            ins(0, b"a"), pu(2), rd(b"ab"), fin(False),
            ins(2, b"c"), pu(4), rd(b"cd"), fin(False),
            ins(4, b"", True), pu(4), rd(b""), fin(True),
        ],
    ),
    # overlapping
    "overlapping assembled/unread section": (1000, [ins(0, b"a"), ins(0, b"ab"), pu(2), rd(b"ab")]),
    "overlapping assembled/read section": (1000, [ins(0, b"a"), rd(b"a"), ins(0, b"ab"), rd(b"b"), pu(2)]),
    "overlapping unassembled section to fill hole": (
        1000,
        [ins(1, b"b"), rd(b""), ins(0, b"ab"), rd(b"ab"), pe(0), pu(2)],
    ),
    "overlapping unassembled section": (1000, [ins(1, b"b"), rd(b""), ins(1, b"bc"), rd(b""), pe(2), pu(0)]),
    "overlapping unassembled section 2": (
        1000,
        [ins(2, b"c"), rd(b""), ins(1, b"bcd"), rd(b""), pe(3), pu(0)],
    ),
    "overlapping multiple unassembled sections": (
        1000,
        [ins(1, b"b"), ins(3, b"d"), rd(b""), ins(1, b"bcde"), rd(b""), pu(0), pe(4)],
    ),
    "insert over existing section": (
        1000,
        [ins(2, b"c"), ins(1, b"bcd"), rd(b""), pu(0), pe(3), ins(0, b"a"), rd(b"abcd"), pu(4), pe(0)],
    ),
    "insert within existing section": (
        1000,
        [ins(1, b"bcd"), ins(2, b"c"), rd(b""), pu(0), pe(3), ins(0, b"a"), rd(b"abcd"), pu(4), pe(0)],
    ),
    "hole filled with overlap": (
        20,
        [
            ins(5, b"fgh"), pu(0), rd(b""), fin(False),
            ins(0, b"abc"), pu(3),
            ins(0, b"abcdef"), pu(8), pe(0), rd(b"abcdefgh"),
        ],
    ),
    "multiple overlaps": (
        1000,
        [
            ins(2, b"c"), ins(4, b"e"), rd(b""), pu(0), pe(2),
            ins(1, b"bcdef"), rd(b""), pu(0), pe(5),
            ins(0, b"a"), rd(b"abcdef"), pu(6), pe(0),
        ],
    ),
    "overlap between two pending": (
        1000,
        [
            ins(1, b"bc"), ins(4, b"ef"), rd(b""), pu(0), pe(4),
            ins(2, b"cde"), rd(b""), pu(0), pe(5),
            ins(0, b"a"), rd(b"abcdef"), pu(6), pe(0),
        ],
    ),
    "exact copy": (
        1000,
        [
            ins(1, b"b"), rd(b""), pu(0), pe(1),
            ins(1, b"b"), rd(b""), pu(0), pe(1),
            ins(0, b"a"), rd(b"ab"), pu(2), pe(0),
        ],
    ),
    "yet another overlap test": (
        150,
        [
            ins(4, b"efgh"), pu(0), pe(4),
            ins(14, b"op"), pu(0), pe(6),
            ins(18, b"s"), pu(0), pe(7),
            ins(0, b"a"), pu(1), pe(7),
            ins(0, b"abcde"), pu(8), pe(3),
            ins(14, b"opqrst"), pu(8), pe(6),
            ins(14, b"op"), pu(8), pe(6),
            ins(8, b"ijklmn"), pu(20), pe(0),
        ],
    ),
    "small capacity with overlapping insert": (
        2,
        [ins(1, b"bc"), rd(b""), pu(0), pe(1), ins(0, b"a"), rd(b"ab"), pu(2), pe(0)],
    ),
    "overlapping multiple unassembled sections 2": (
        1000,
        [ins(1, b"bcd"), ins(2, b"cde"), rd(b""), pu(0), pe(4), ins(0, b"a"), rd(b"abcde"), pu(5), pe(0)],
    ),
}


@pytest.mark.parametrize("name", list(SCRIPTS))
def test_script(name):
    capacity, steps = SCRIPTS[name]
    r = make(capacity)
    for kind, *args in steps:
        match kind:
            case "insert":
                r.insert(*args)
            case "pushed":
                assert r.writer().bytes_pushed() == args[0]
            case "pending":
                assert r.bytes_pending() == args[0]
            case "read":
                read_all(r, args[0])
            case "finished":
                assert r.reader().is_finished() is args[0]
            case _:
                raise AssertionError(f"unknown step {kind}")


def test_dup_3():
    rng = random.Random(31337)
    r = make(65000)
    data = b"abcdefgh"
    r.insert(0, data, False)
    assert r.writer().bytes_pushed() == 8
    read_all(r, data)
    assert r.reader().is_finished() is False
    for _ in range(1000):
        start = rng.randint(0, 8)
        end = rng.randint(start, 8)
        r.insert(start, data[start:end], False)
        assert r.writer().bytes_pushed() == 8
        read_all(r, b"")
        assert r.reader().is_finished() is False


@pytest.mark.parametrize("rep", range(32))
def test_win(rep):
    nsegs, max_seg_len = 128, 2048
    rng = random.Random(rep)
    r = make(nsegs * max_seg_len)

    seq_size = []
    offset = 0
    for _ in range(nsegs):
        size = 1 + rng.randrange(max_seg_len - 1)
        offs = min(offset, 1 + rng.randrange(1023))
        seq_size.append((offset - offs, size + offs))
        offset += size
    rng.shuffle(seq_size)

    data = bytes(rng.randrange(256) for _ in range(offset))
    for off, size in seq_size:
        r.insert(off, data[off : off + size], off + size == offset)

    read_all(r, data)
    assert r.reader().is_finished() is True
    assert r.bytes_pending() == 0