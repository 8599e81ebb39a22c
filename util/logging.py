"""
Structured logging for store construction and codec operations.
Also provides the progress sink injected into long running decodes.
"""

import logging
import time
from typing import Any, Dict, List, Optional


class StructuredLogger:
    """Structured logger for store and codec operations."""

    def __init__(self, name: str = "w2v_store"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.info(message)

    def log_codec_operation(self, codec: str, operation: str, path: Optional[str] = None,
                            details: Dict[str, Any] = None, status: str = "success"):
        """Log a codec load/save."""
        log_details = {}
        if path is not None:
            log_details["path"] = str(path)
        if details:
            log_details.update(details)

        self.log_operation(f"{codec}.{operation}", status, log_details)

    def log_store_built(self, vocab_size: int, layer_size: int, segment_count: int, source: str):
        """Log construction of a segmented store."""
        self.log_operation("store.build", "success", {
            "vocab_size": vocab_size,
            "layer_size": layer_size,
            "segments": segment_count,
            "source": source,
        })

    # Plain messages
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)


# Global logger instance
logger = StructuredLogger()


class ProgressTimer:
    """
    Progress sink for long running operations.

    Sections are opened with ``start`` (usable as a context manager) and
    closed with ``end``; each closed section logs its elapsed time. Messages
    passed to ``append_to_log`` go to the same logger.

    A failing logger never propagates out of the sink: progress reporting is
    best effort and must not abort the operation being timed.
    """

    def __init__(self, structured_logger: StructuredLogger = None):
        self._logger = structured_logger or logger
        self._sections: List[tuple] = []

    def start(self, message: str, *args) -> "_Section":
        """Open a named section."""
        name = message % args if args else message
        self._sections.append((name, time.monotonic()))
        self._emit(f"Started: {name}")
        return _Section(self)

    def end(self) -> None:
        """Close the innermost section."""
        if not self._sections:
            return
        name, started = self._sections.pop()
        elapsed = round((time.monotonic() - started) * 1000, 2)
        self._emit(f"Finished: {name} ({elapsed}ms)")

    def end_and_start(self, message: str, *args) -> None:
        """Close the innermost section and open a new one in its place."""
        self.end()
        self.start(message, *args)

    def append_to_log(self, message: str) -> None:
        """Write a free-form progress message."""
        self._emit(message)

    @property
    def depth(self) -> int:
        return len(self._sections)

    def _emit(self, message: str) -> None:
        try:
            self._logger.info(message)
        except Exception:
            # progress output is best effort
            pass


class _Section:
    """Context manager returned by ProgressTimer.start."""

    def __init__(self, timer: ProgressTimer):
        self._timer = timer

    def __enter__(self):
        return self._timer

    def __exit__(self, *args) -> None:
        self._timer.end()


class _NullProgressTimer(ProgressTimer):
    """Sink that discards everything."""

    def __init__(self):
        super().__init__(structured_logger=None)

    def start(self, message: str, *args) -> "_Section":
        return _Section(self)

    def end(self) -> None:
        pass

    def _emit(self, message: str) -> None:
        pass


ProgressTimer.NONE = _NullProgressTimer()


def log_codec_operation(codec: str, operation: str, path: Optional[str] = None,
                        details: Dict[str, Any] = None, status: str = "success"):
    """Log a codec load/save."""
    logger.log_codec_operation(codec, operation, path, details, status)
