"""Structured logging: one JSON object per line."""

from __future__ import annotations

import json
import sys
import threading
import time
import uuid
from typing import Any, Optional, TextIO


class StructuredLogger:
    """JSON line logger keyed by a trace id.

    Safe to share between the worker threads of a batch validation: lines are
    written under a lock and node timers are tracked per thread.
    """

    def __init__(self, trace_id: Optional[str] = None, output: Optional[TextIO] = None):
        self.trace_id = trace_id or str(uuid.uuid4())[:8]
        self._output = output
        self._timers: dict[tuple[str, int], float] = {}
        self._write_lock = threading.Lock()

    def _internal_error(self, timestamp: float, exc: Exception) -> str:
        return json.dumps(
            {
                "event": "logger_internal_error",
                "trace_id": self.trace_id,
                "timestamp": timestamp,
                "error": str(exc),
            }
        )

    def _emit(self, data: dict[str, Any]) -> None:
        record = {**data, "trace_id": self.trace_id, "timestamp": time.time()}
        try:
            line = json.dumps(record, ensure_ascii=False, default=str)
        except (TypeError, ValueError) as exc:
            line = self._internal_error(record["timestamp"], exc)
        # sys.stderr is looked up on every write.
        stream = self._output if self._output is not None else sys.stderr
        try:
            with self._write_lock:
                stream.write(line + "\n")
                stream.flush()
        except (OSError, ValueError) as exc:
            # Last-resort fallback to the interpreter's original stderr.
            try:
                sys.__stderr__.write(self._internal_error(record["timestamp"], exc) + "\n")
            except (AttributeError, OSError, ValueError):
                return

    @staticmethod
    def _timer_key(node_name: str) -> tuple[str, int]:
        return node_name, threading.get_ident()

    def node_start(self, node_name: str, **extra: Any) -> None:
        self._timers[self._timer_key(node_name)] = time.time()
        self._emit({"event": "node_start", "node": node_name, **extra})

    def node_end(self, node_name: str, **extra: Any) -> None:
        start = self._timers.pop(self._timer_key(node_name), time.time())
        duration_ms = round((time.time() - start) * 1000, 1)
        self._emit({"event": "node_end", "node": node_name, "duration_ms": duration_ms, **extra})

    def error(self, node_name: str, error: str, **extra: Any) -> None:
        self._timers.pop(self._timer_key(node_name), None)
        self._emit({"event": "error", "node": node_name, "error": error, **extra})

    def warning(self, node_name: str, message: str, **extra: Any) -> None:
        self._emit({"event": "warning", "node": node_name, "message": message, **extra})

    def summary(self, **extra: Any) -> None:
        self._emit({"event": "summary", **extra})


_logger: Optional[StructuredLogger] = None


def get_logger(trace_id: Optional[str] = None) -> StructuredLogger:
    """Process-wide logger; a different ``trace_id`` replaces it."""
    global _logger
    if _logger is None or (trace_id and _logger.trace_id != trace_id):
        _logger = StructuredLogger(trace_id=trace_id)
    return _logger


__all__ = ["StructuredLogger", "get_logger"]
