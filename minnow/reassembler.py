"""Reassembly of indexed, possibly overlapping substrings into a byte stream."""

from __future__ import annotations

from .byte_stream import ByteStream, Reader, Writer


class Reassembler:
    """Writes indexed substrings into a ByteStream in order as gaps fill in.

    Bytes beyond the stream's available capacity are discarded; bytes that fit
    but cannot be written yet are held until the preceding bytes arrive. The
    stream is closed once the last byte of the final substring is written.
    """

    def __init__(self, output: ByteStream) -> None:
        self._output = output
        self._segments: list[tuple[int, bytes]] = []
        self._pending = 0
        self._next_index = 0
        self._end_index: int | None = None

    def insert(self, first_index: int, data: bytes, is_last_substring: bool = False) -> None:
        """Insert ``data`` that starts at stream index ``first_index``."""
        data = bytes(data)
        if is_last_substring:
            self._end_index = first_index + len(data)

        writer = self._output.writer()
        first_unacceptable = self._next_index + writer.available_capacity()
        start = max(first_index, self._next_index)
        end = min(first_index + len(data), first_unacceptable)
        if start < end:
            self._store(start, data[start - first_index : end - first_index])
        self._flush(writer)

        if self._end_index is not None and self._next_index >= self._end_index:
            writer.close()

    def bytes_pending(self) -> int:
        """How many bytes are held inside the reassembler."""
        return self._pending

    def reader(self) -> Reader:
        """The reading side of the output stream."""
        return self._output.reader()

    def writer(self) -> Writer:
        """The writing side of the output stream."""
        return self._output.writer()

    def _store(self, start: int, data: bytes) -> None:
        merged_start, merged = start, data
        kept: list[tuple[int, bytes]] = []
        for seg_start, seg in self._segments:
            seg_end = seg_start + len(seg)
            merged_end = merged_start + len(merged)
            if seg_end < merged_start or seg_start > merged_end:
                kept.append((seg_start, seg))
                continue
            if seg_start < merged_start:
                merged = seg[: merged_start - seg_start] + merged
                merged_start = seg_start
            if seg_end > merged_end:
                merged = merged + seg[merged_end - seg_start :]
        kept.append((merged_start, merged))
        kept.sort(key=lambda segment: segment[0])
        self._segments = kept
        self._pending = sum(len(seg) for _, seg in kept)

    def _flush(self, writer: Writer) -> None:
        while self._segments and self._segments[0][0] <= self._next_index:
            seg_start, seg = self._segments.pop(0)
            self._pending -= len(seg)
            fresh = seg[self._next_index - seg_start :]
            if fresh:
                writer.push(fresh)
                self._next_index += len(fresh)