"""
Text codec for the C word2vec model layout.

    <vocab_size> <layer_size>
    <token> <v1> <v2> ... <v_layer_size>

Fields are separated by plain spaces and lines by "\n" (or "\r\n"), so
tokens may contain any other whitespace such as tabs or U+00A0.

All lines are materialized in memory, so this path suits models that fit in
RAM; large models go through the binary codec.
"""

from pathlib import Path
from typing import List, Optional, Sequence, TextIO, Union

import numpy as np

from util.logging import log_codec_operation

from .errors import MalformedHeaderError, SizeMismatchError
from .segments import SegmentedVectorStore


def split_fields(line: str) -> List[str]:
    """Space separated fields of a line; runs of spaces count as one separator."""
    return [field for field in line.rstrip("\r").split(" ") if field]


def split_lines(text: str) -> List[str]:
    """Lines of a text model, without the empty string after a final newline."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def decode(lines: Sequence[str], filename: str = "<memory>",
           max_segment_doubles: Optional[int] = None) -> SegmentedVectorStore:
    """
    Build a store from the lines of a text model.

    Args:
        lines: Header line followed by one line per vector
        filename: Name reported in error messages
        max_segment_doubles: Segment capacity bound; one segment when omitted

    Raises:
        MalformedHeaderError: First line is not two integers
        SizeMismatchError: Line count or a line's value count disagrees with the header
    """
    if not lines:
        raise MalformedHeaderError(f"Expected a header line in file '{filename}'")

    header = split_fields(lines[0])
    if len(header) != 2:
        raise MalformedHeaderError(
            f"Expected '<vocab size> <layer size>' in the first line of file '{filename}': '{lines[0]}'"
        )
    try:
        vocab_size = int(header[0])
        layer_size = int(header[1])
    except ValueError:
        raise MalformedHeaderError(
            f"Expected two integers in the first line of file '{filename}': '{lines[0]}'"
        ) from None
    if layer_size <= 0:
        raise MalformedHeaderError(f"Invalid layer size {layer_size} in file '{filename}'")

    if vocab_size != len(lines) - 1:
        raise SizeMismatchError(
            f"For file '{filename}', vocab size is {vocab_size}, "
            f"but there are {len(lines) - 1} word vectors in the file",
            filename=filename, line=0, expected=vocab_size, actual=len(lines) - 1,
        )

    vocab = []
    vectors = np.empty(vocab_size * layer_size, dtype=np.float64)

    for n in range(1, len(lines)):
        values = split_fields(lines[n])
        vocab.append(values[0] if values else "")

        # Sanity check
        if layer_size != len(values) - 1:
            raise SizeMismatchError(
                f"For file '{filename}', on line {n}, layer size is {layer_size}, "
                f"but found {len(values) - 1} values in the word vector",
                filename=filename, line=n, expected=layer_size, actual=len(values) - 1,
            )

        start = (n - 1) * layer_size
        try:
            vectors[start:start + layer_size] = [float(v) for v in values[1:]]
        except ValueError as e:
            raise ValueError(f"For file '{filename}', on line {n}: {e}") from e

    return SegmentedVectorStore.from_dense(vocab, layer_size, vectors, max_segment_doubles, copy=False)


def decode_file(path: Union[str, Path], max_segment_doubles: Optional[int] = None) -> SegmentedVectorStore:
    """Read a text model from ``path``."""
    filename = str(Path(path).absolute())
    with open(path, encoding="utf-8", newline=None) as f:
        lines = split_lines(f.read())
    store = decode(lines, filename, max_segment_doubles)

    log_codec_operation("text", "decode", filename, {
        "vocab_size": store.vocab_size,
        "layer_size": store.layer_size,
    })
    return store


def encode(store: SegmentedVectorStore, out: TextIO) -> None:
    """
    Write ``store`` in the text layout.

    Values are narrowed to float32 and printed in their shortest exact form.
    """
    out.write(f"{store.vocab_size} {store.layer_size}\n")
    for word, vector in store.iter_vectors():
        out.write(word)
        for value in vector.astype(np.float32):
            out.write(" ")
            out.write(str(value))
        out.write("\n")

    out.flush()
    log_codec_operation("text", "encode", getattr(out, "name", None), {
        "vocab_size": store.vocab_size,
        "layer_size": store.layer_size,
    })
