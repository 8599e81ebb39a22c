"""
Exceptions raised by the segmented store and its codecs.
"""


class Word2VecError(Exception):
    """Base exception for store and codec errors."""
    pass


class MalformedHeaderError(Word2VecError, ValueError):
    """
    Model file header could not be parsed.

    Raised when:
    - The header line has no separating space
    - Vocabulary size or layer size is not an integer
    """
    pass


class SizeMismatchError(Word2VecError, ValueError):
    """
    Declared and actual sizes in a model file disagree.

    Raised when:
    - The header vocabulary size differs from the number of vector lines
    - A vector line carries a different number of values than the layer size
    """

    def __init__(self, message: str, filename: str = None, line: int = None,
                 expected: int = None, actual: int = None):
        super().__init__(message)
        self.filename = filename
        self.line = line
        self.expected = expected
        self.actual = actual


class VectorIndexError(Word2VecError, IndexError):
    """Vector lookup outside [0, vocab_size)."""

    def __init__(self, index: int, vocab_size: int):
        super().__init__(f"Vector index {index} out of range for vocabulary of size {vocab_size}")
        self.index = index
        self.vocab_size = vocab_size


class CompactFormatError(Word2VecError, ValueError):
    """
    Compact model file is invalid.

    Raised when:
    - The magic bytes or format version do not match
    - The file ends before all declared tokens and vectors are read
    - The declared layer size is zero
    """
    pass


class UnknownWordError(Word2VecError, KeyError):
    """Word is not part of the model vocabulary."""

    def __init__(self, word: str):
        super().__init__(word)
        self.word = word

    def __str__(self):
        return f"Unknown word: {self.word!r}"
