"""
Binary codec for the C word2vec model layout.

    <vocab_size> <layer_size>\\n
    (<token utf-8> ' ' <layer_size x float32> ['\\n'])*

Vectors are float32 on disk and float64 in memory: widened on read, narrowed
on write. Writing always uses little endian, the byte order of the C tool.

Inputs are read through a bounded memory mapped view. Once the cursor moves
past the remap threshold (1 GiB by default) the file is re-mapped one
threshold further along, so files of any size can be read with views that
never exceed the mapping limit. Re-mapping happens only between vectors; a
single token plus vector longer than ``map_limit - remap_threshold`` bytes
cannot be read.
"""

import mmap
import os
import time
from pathlib import Path
from typing import BinaryIO, Optional, Tuple, Union

import numpy as np

from src.core.config import (
    get_default_byte_order,
    get_max_double_buffer,
    get_max_map_bytes,
    get_progress_interval,
    get_remap_threshold,
)
from util.logging import ProgressTimer, log_codec_operation

from .errors import MalformedHeaderError
from .segments import SegmentedVectorStore, allocate_segments, vectors_per_segment_for

_FLOAT_DTYPES = {
    "little": np.dtype("<f4"),
    "big": np.dtype(">f4"),
}


def float_dtype(byte_order: str) -> np.dtype:
    """float32 dtype for a byte order name ('little' or 'big')."""
    try:
        return _FLOAT_DTYPES[byte_order]
    except KeyError:
        raise ValueError(f"byte_order must be 'little' or 'big', got {byte_order!r}") from None


class MappedCursor:
    """
    Sequential reader over a bounded memory mapped window of a file.

    Tracks the current view, the cursor inside it and how many times the
    window has been advanced. ``absolute_position`` is the cursor's offset
    in the file.
    """

    def __init__(self, fileobj: BinaryIO, map_limit: int, remap_threshold: int):
        if remap_threshold % mmap.ALLOCATIONGRANULARITY != 0:
            raise ValueError(
                f"remap_threshold ({remap_threshold}) must be a multiple of {mmap.ALLOCATIONGRANULARITY}"
            )
        if remap_threshold >= map_limit:
            raise ValueError(
                f"remap_threshold ({remap_threshold}) must be smaller than map_limit ({map_limit})"
            )

        self._file = fileobj
        self.file_size = os.fstat(fileobj.fileno()).st_size
        self.map_limit = map_limit
        self.remap_threshold = remap_threshold
        self.remap_count = 0
        self.position = 0
        self.view: Optional[mmap.mmap] = None
        self.view_offset = 0
        self._map(0)

    def _map(self, offset: int) -> None:
        size = min(self.file_size - offset, self.map_limit)
        view = mmap.mmap(self._file.fileno(), size, access=mmap.ACCESS_READ, offset=offset)
        if self.view is not None:
            self.view.close()
        self.view = view
        self.view_offset = offset

    @property
    def absolute_position(self) -> int:
        return self.view_offset + self.position

    @property
    def view_size(self) -> int:
        return len(self.view)

    def _truncated(self, wanted: str) -> EOFError:
        if self.view_offset + len(self.view) < self.file_size:
            return EOFError(
                f"{wanted} at offset {self.absolute_position} crosses the end of the mapped view "
                f"({self.view_offset}..{self.view_offset + len(self.view)})"
            )
        return EOFError(f"Unexpected end of file at offset {self.absolute_position} while reading {wanted}")

    def read_until(self, terminator: bytes, wanted: str) -> bytes:
        """Bytes up to (not including) ``terminator``; the cursor moves past it."""
        end = self.view.find(terminator, self.position)
        if end == -1:
            raise self._truncated(wanted)
        data = self.view[self.position:end]
        self.position = end + len(terminator)
        return data

    def read_token(self) -> bytes:
        """
        Bytes up to the next space, with newline bytes dropped.

        Producers disagree on whether a newline follows each vector, so the
        newline shows up at the front of the next token and is ignored.
        """
        return self.read_until(b" ", "token").replace(b"\n", b"")

    def read_floats(self, count: int, dtype: np.dtype) -> np.ndarray:
        nbytes = count * dtype.itemsize
        if self.position + nbytes > len(self.view):
            raise self._truncated("vector")
        # slicing copies out of the map, so no buffer export outlives a remap
        values = np.frombuffer(self.view[self.position:self.position + nbytes], dtype=dtype)
        self.position += nbytes
        return values

    def remap_due(self) -> bool:
        return self.position > self.remap_threshold

    def remap(self) -> Tuple[int, int]:
        """Advance the window by one threshold; returns (new offset, new view size)."""
        self.remap_count += 1
        offset = self.remap_threshold * self.remap_count
        self.position -= self.remap_threshold
        self._map(offset)
        return offset, len(self.view)

    def close(self) -> None:
        if self.view is not None:
            self.view.close()
            self.view = None

    def __enter__(self) -> "MappedCursor":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def parse_header(line: bytes, filename: str) -> Tuple[int, int]:
    """Parse ``<vocab_size> <layer_size>`` from the first line of a binary model."""
    try:
        text = line.decode("ascii")
    except UnicodeDecodeError:
        raise MalformedHeaderError(
            f"Expected an ASCII header in the first line of file '{filename}': {line[:64]!r}"
        ) from None

    index = text.find(" ")
    if index == -1:
        raise MalformedHeaderError(
            f"Expected a space in the first line of file '{filename}': '{text}'"
        )

    try:
        vocab_size = int(text[:index])
        layer_size = int(text[index + 1:])
    except ValueError:
        raise MalformedHeaderError(
            f"Expected two integers in the first line of file '{filename}': '{text}'"
        ) from None

    if vocab_size < 0 or layer_size <= 0:
        raise MalformedHeaderError(
            f"Invalid sizes in the first line of file '{filename}': '{text}'"
        )
    return vocab_size, layer_size


def decode(path: Union[str, Path],
           byte_order: Optional[str] = None,
           max_segment_doubles: Optional[int] = None,
           progress: Optional[ProgressTimer] = None,
           remap_threshold: Optional[int] = None,
           map_limit: Optional[int] = None,
           unicode_errors: str = "strict") -> SegmentedVectorStore:
    """
    Read a binary word2vec model into a segmented store.

    Args:
        path: Model file
        byte_order: 'little' or 'big' for the float data (default from config)
        max_segment_doubles: Segment capacity bound (default from config)
        progress: Progress sink (default: none)
        remap_threshold: Cursor offset in bytes that triggers a re-map
        map_limit: Size cap of a single mapped view, in bytes
        unicode_errors: Error handler used when decoding tokens

    Returns:
        SegmentedVectorStore holding every vector in file order

    Raises:
        MalformedHeaderError: Header line cannot be parsed
        EOFError: File ends before all declared vectors are read
    """
    dtype = float_dtype(byte_order or get_default_byte_order())
    max_segment_doubles = max_segment_doubles or get_max_double_buffer()
    progress = progress or ProgressTimer.NONE
    remap_threshold = remap_threshold or get_remap_threshold()
    map_limit = map_limit or get_max_map_bytes()
    filename = str(Path(path).absolute())
    interval = get_progress_interval()

    with open(path, "rb") as fileobj, progress.start("Loading vectors from bin file"):
        if os.fstat(fileobj.fileno()).st_size == 0:
            raise MalformedHeaderError(f"Expected a header line in empty file '{filename}'")

        with MappedCursor(fileobj, map_limit, remap_threshold) as cursor:
            progress.start("Reading gigabyte #1")
            try:
                try:
                    header = cursor.read_until(b"\n", "header")
                except EOFError:
                    raise MalformedHeaderError(
                        f"Expected a newline-terminated header in file '{filename}'"
                    ) from None
                vocab_size, layer_size = parse_header(header, filename)
                progress.append_to_log(
                    "Loading %d vectors with dimensionality %d" % (vocab_size, layer_size)
                )

                vectors_per_segment = vectors_per_segment_for(layer_size, max_segment_doubles)
                segments = allocate_segments(vocab_size, layer_size, max_segment_doubles)
                vocab = []
                last_log_message = time.monotonic()
                lineno = 0

                for segment in segments:
                    for offset in range(0, segment.size, layer_size):
                        vocab.append(cursor.read_token().decode("utf-8", errors=unicode_errors))
                        segment[offset:offset + layer_size] = cursor.read_floats(layer_size, dtype)
                        lineno += 1

                        now = time.monotonic()
                        if now - last_log_message > interval:
                            percentage = lineno / vocab_size * 100.0
                            progress.append_to_log(
                                "Loaded %d/%d vectors (%f%%)" % (lineno, vocab_size, percentage)
                            )
                            last_log_message = now

                        if cursor.remap_due():
                            start = cursor.remap_threshold * (cursor.remap_count + 1)
                            size = min(cursor.file_size - start, cursor.map_limit)
                            progress.end_and_start(
                                "Reading gigabyte #%d. Start: %d, size: %d",
                                cursor.remap_count + 1, start, size,
                            )
                            cursor.remap()
                remaps = cursor.remap_count
            finally:
                progress.end()

    log_codec_operation("bin", "decode", filename, {
        "vocab_size": vocab_size,
        "layer_size": layer_size,
        "segments": len(segments),
        "remaps": remaps,
    })
    return SegmentedVectorStore(vocab, layer_size, segments, vectors_per_segment=vectors_per_segment)


def encode(store: SegmentedVectorStore, out: BinaryIO) -> None:
    """
    Write ``store`` in the C word2vec binary layout.

    Each vector is narrowed to little endian float32 and followed by a newline.
    """
    out.write(f"{store.vocab_size} {store.layer_size}\n".encode("utf-8"))

    little = _FLOAT_DTYPES["little"]
    index = 0
    for segment in store.segments:
        rows = segment.astype(little).reshape(-1, store.layer_size)
        for row in rows:
            out.write(f"{store.vocab[index]} ".encode("utf-8"))
            out.write(row.tobytes())
            out.write(b"\n")
            index += 1

    out.flush()
    log_codec_operation("bin", "encode", getattr(out, "name", None), {
        "vocab_size": store.vocab_size,
        "layer_size": store.layer_size,
    })
