"""
Capture of raw GigaChat streaming traffic for troubleshooting.

When ``STREAM_TRACE_ENABLED`` is set, every streaming request gets its own
log file holding the SSE lines read from GigaChat and the events the parser
produced from them. Files are capped at ``STREAM_TRACE_MAX_BYTES``.
"""

from __future__ import annotations

import datetime
from pathlib import Path
from typing import Optional

TRUNCATION_MARKER = "[stream trace truncated]\n"


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _sanitize_route(route: str) -> str:
    cleaned = "".join(ch if ch.isalnum() or ch in "._" else "-" for ch in route)
    return cleaned.strip("-") or "stream"


class StreamTracer:
    """Writes one streaming exchange into a request-scoped log file."""

    def __init__(self, request_id: str, route: str, base_dir: str, max_bytes: Optional[int]):
        self.request_id = request_id
        self.route = _sanitize_route(route)
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

        started = _utc_now().strftime("%Y%m%dT%H%M%SZ")
        self.path = self.base_dir / f"{started}_{self.route}_{request_id}.log"
        self._file = self.path.open("w", encoding="utf-8")

        self._budget = max_bytes if isinstance(max_bytes, int) and max_bytes > 0 else None
        self._truncated = False
        self.source_lines = 0
        self.events = 0

        self.log_note(f"trace opened for request {request_id}")

    @property
    def truncated(self) -> bool:
        return self._truncated

    def log_source_line(self, line: str) -> None:
        """Record a raw SSE line received from GigaChat."""
        self.source_lines += 1
        self._append("GIGACHAT", line)

    def log_event(self, event: object) -> None:
        """Record an event handed to the consumer."""
        self.events += 1
        self._append("EVENT", repr(event))

    def log_note(self, note: str) -> None:
        self._append("NOTE", note)

    def log_error(self, message: str) -> None:
        self._append("ERROR", message)

    def close(self) -> None:
        if self._file.closed:
            return
        try:
            self.log_note(f"trace closed: {self.source_lines} lines, {self.events} events")
        finally:
            self._file.close()

    def _append(self, label: str, payload: object) -> None:
        if self._file.closed or self._truncated:
            return

        text = payload if isinstance(payload, str) else repr(payload)
        entry = f"[{_utc_now().isoformat(timespec='milliseconds')}] [{label}] len={len(text)}\n{text}\n"

        if self._budget is None:
            self._file.write(entry)
            self._file.flush()
            return

        data = entry.encode("utf-8", "replace")
        if len(data) > self._budget:
            # Keep whatever fits, dropping a trailing partial character
            self._file.write(data[:self._budget].decode("utf-8", "ignore"))
            self._file.write("\n" + TRUNCATION_MARKER)
            self._budget = 0
            self._truncated = True
        else:
            self._file.write(entry)
            self._budget -= len(data)
        self._file.flush()


def maybe_create_stream_tracer(
    enabled: bool,
    request_id: str,
    route: str,
    base_dir: str,
    max_bytes: Optional[int],
) -> Optional[StreamTracer]:
    """Create a tracer when tracing is enabled, otherwise return None."""
    if not enabled:
        return None
    return StreamTracer(request_id=request_id, route=route, base_dir=base_dir, max_bytes=max_bytes)
