"""
Server-Sent Events (SSE) parser for the project event stream.
"""
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class SSEFrame:
    """Represents a parsed Server-Sent Events frame."""
    event: Optional[str]
    data: str
    id: Optional[str] = None
    retry: Optional[int] = None

    @property
    def name(self) -> str:
        """Event name, "message" when the frame has no event field."""
        return self.event or "message"


class SSEParser:
    """Incremental parser for text/event-stream payloads."""

    def __init__(self) -> None:
        self._buffer = ""
        self._reset_frame()
        self.last_event_id: Optional[str] = None

    def _reset_frame(self) -> None:
        self._event: Optional[str] = None
        self._data: List[str] = []
        self._retry: Optional[int] = None
        self._has_fields = False

    def feed(self, chunk: str) -> List[SSEFrame]:
        """Consume raw chunk text and return completed frames."""
        frames: List[SSEFrame] = []
        if not chunk:
            return frames

        self._buffer += chunk

        while True:
            newline_idx = self._buffer.find("\n")
            if newline_idx == -1:
                break

            line = self._buffer[:newline_idx]
            self._buffer = self._buffer[newline_idx + 1:]

            # Trim CR from Windows-style endings
            if line.endswith("\r"):
                line = line[:-1]

            if line == "":
                # Blank line terminates the current frame
                frame = self._dispatch()
                if frame is not None:
                    frames.append(frame)
                continue

            if line.startswith(":"):
                # Comment / keepalive
                continue

            field, _, value = line.partition(":")
            if value.startswith(" "):
                value = value[1:]
            self._apply_field(field, value)

        return frames

    def _apply_field(self, field: str, value: str) -> None:
        if field == "event":
            self._event = value
        elif field == "data":
            self._data.append(value)
        elif field == "id":
            # Ids containing NUL are ignored per the SSE spec
            if "\0" not in value:
                self.last_event_id = value
        elif field == "retry":
            if value.isdigit():
                self._retry = int(value)
        else:
            return
        self._has_fields = True

    def _dispatch(self) -> Optional[SSEFrame]:
        frame = None
        if self._data:
            frame = SSEFrame(
                event=self._event,
                data="\n".join(self._data),
                id=self.last_event_id,
                retry=self._retry,
            )
        self._reset_frame()
        return frame

    def flush(self) -> List[SSEFrame]:
        """Drop any partial frame at stream end (incomplete frames are never dispatched)."""
        self._buffer = ""
        self._reset_frame()
        return []
