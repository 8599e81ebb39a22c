"""
Codec and store configuration.
Environment driven settings for segment sizing, binary remapping and progress reporting.
"""

import os

# A single memory mapped view never exceeds the signed 32-bit limit.
MAX_MAP_BYTES = int(os.getenv("W2V_MAX_MAP_BYTES", str(2**31 - 1)))

# Largest segment we build, in doubles. Mirrors the view limit above (8 bytes per double).
MAX_DOUBLE_BUFFER = int(os.getenv("W2V_MAX_DOUBLE_BUFFER", str((2**31 - 1) // 8)))

# Binary decode re-maps the input every time the cursor passes this many bytes.
ONE_GB = 1024 * 1024 * 1024
REMAP_THRESHOLD_BYTES = int(os.getenv("W2V_REMAP_THRESHOLD_BYTES", str(ONE_GB)))

# Progress sink throttling
PROGRESS_INTERVAL_SEC = float(os.getenv("W2V_PROGRESS_INTERVAL_SEC", "1.0"))

# Byte order used when reading binary models (writing is always little endian)
DEFAULT_BYTE_ORDER = os.getenv("W2V_DEFAULT_BYTE_ORDER", "little")  # little|big

# Searcher returned by Word2VecModel.for_search()
SEARCH_BACKEND = os.getenv("W2V_SEARCH_BACKEND", "memory")  # memory|faiss

# Slow tests build a multi-gigabyte binary file on disk
RUN_SLOW_TESTS = os.getenv("RUN_SLOW_TESTS", "false").lower() == "true"

SUPPORTED_FORMATS = ("bin", "text", "compact")

# Version string
VERSION = "1.0.0"


def get_max_double_buffer() -> int:
    """Get the maximum segment capacity in doubles."""
    return MAX_DOUBLE_BUFFER


def get_remap_threshold() -> int:
    """Get the cursor offset (bytes) after which the binary reader re-maps."""
    return REMAP_THRESHOLD_BYTES


def get_max_map_bytes() -> int:
    """Get the size cap (bytes) of a single memory mapped view."""
    return MAX_MAP_BYTES


def get_progress_interval() -> float:
    """Get the minimum number of seconds between progress messages."""
    return PROGRESS_INTERVAL_SEC


def get_default_byte_order() -> str:
    """Get byte order for binary reads (little|big)."""
    return DEFAULT_BYTE_ORDER


def get_search_backend() -> str:
    """Get the searcher backend (memory|faiss)."""
    return SEARCH_BACKEND


def get_searcher_class(backend: str = None):
    """Get configured searcher implementation class."""
    backend = backend or get_search_backend()

    if backend == "memory":
        from src.vector.index import SimpleInMemorySearcher
        return SimpleInMemorySearcher
    elif backend == "faiss":
        from src.vector.faiss_store import FaissSearcher
        return FaissSearcher
    else:
        raise ValueError(f"Unknown search backend: {backend}")


def validate_codec_config():
    """Validate codec configuration and return any issues."""
    issues = []

    if MAX_DOUBLE_BUFFER < 1:
        issues.append("W2V_MAX_DOUBLE_BUFFER must be >= 1")

    if MAX_MAP_BYTES < 1:
        issues.append("W2V_MAX_MAP_BYTES must be >= 1")

    if REMAP_THRESHOLD_BYTES < 1 or REMAP_THRESHOLD_BYTES >= MAX_MAP_BYTES:
        issues.append("W2V_REMAP_THRESHOLD_BYTES must be >= 1 and smaller than W2V_MAX_MAP_BYTES")

    # mmap offsets have to land on allocation boundaries
    import mmap
    if REMAP_THRESHOLD_BYTES % mmap.ALLOCATIONGRANULARITY != 0:
        issues.append(
            f"W2V_REMAP_THRESHOLD_BYTES must be a multiple of {mmap.ALLOCATIONGRANULARITY}"
        )

    if DEFAULT_BYTE_ORDER not in ["little", "big"]:
        issues.append(f"Invalid W2V_DEFAULT_BYTE_ORDER: {DEFAULT_BYTE_ORDER}")

    if SEARCH_BACKEND not in ["memory", "faiss"]:
        issues.append(f"Invalid W2V_SEARCH_BACKEND: {SEARCH_BACKEND}")

    if PROGRESS_INTERVAL_SEC < 0:
        issues.append("W2V_PROGRESS_INTERVAL_SEC must be >= 0")

    return issues
