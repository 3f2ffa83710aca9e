# docvault/documents/form_stream.py
from __future__ import annotations
"""
Incremental multipart/form-data reading for the upload route.

request.form() spools the whole body to a temporary file before the handler
runs. FormStream instead feeds the request stream to python-multipart as it
arrives: the wanted file part is handed out as soon as its headers are
parsed, and its bytes are then pulled off the socket by whoever reads it.
Nothing is buffered beyond the chunk currently being parsed.
"""

import logging
from collections import deque
from typing import AsyncIterator, Deque, List, Optional, Tuple

from fastapi import HTTPException, Request
from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

log = logging.getLogger(__name__)

# parser events, queued by the sync callbacks and drained by the async side
_HEADERS = "headers"
_DATA = "data"
_PART_END = "part_end"
_END = "end"


class MalformedUpload(HTTPException):
    def __init__(self) -> None:
        super().__init__(status_code=400, detail="Malformed upload")


def _decode(value: bytes) -> str:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return value.decode("latin-1")


class StreamedPart:
    """One file part, read straight from the request body."""

    def __init__(self, stream: "FormStream", filename: str, content_type: str) -> None:
        self.filename = filename
        self.content_type = content_type
        self._stream = stream
        self._buf = bytearray()
        self._done = False

    async def read(self, size: int = -1) -> bytes:
        while not self._done and (size < 0 or len(self._buf) < size):
            kind, data = await self._stream.next_event()
            if kind == _DATA:
                self._buf += data
            elif kind == _PART_END:
                self._done = True
            else:
                raise MalformedUpload()
        if size < 0:
            size = len(self._buf)
        out = bytes(self._buf[:size])
        del self._buf[:size]
        return out

    async def close(self) -> None:
        self._buf.clear()


class FormStream:
    def __init__(self, chunks: AsyncIterator[bytes], boundary: bytes) -> None:
        self._chunks = chunks
        self._events: Deque[Tuple[str, object]] = deque()
        self._exhausted = False
        self._header_field = b""
        self._header_value = b""
        self._headers: List[Tuple[bytes, bytes]] = []
        self._parser = MultipartParser(
            boundary,
            {
                "on_part_begin": self._on_part_begin,
                "on_header_field": self._on_header_field,
                "on_header_value": self._on_header_value,
                "on_header_end": self._on_header_end,
                "on_headers_finished": self._on_headers_finished,
                "on_part_data": self._on_part_data,
                "on_part_end": self._on_part_end,
                "on_end": self._on_end,
            },
        )

    @classmethod
    def from_request(cls, request: Request) -> Optional["FormStream"]:
        """None when the body is not multipart/form-data (so it has no file)."""
        ctype, params = parse_options_header(request.headers.get("content-type"))
        if ctype.strip().lower() != b"multipart/form-data":
            return None
        boundary = params.get(b"boundary")
        if not boundary:
            raise MalformedUpload()
        return cls(request.stream().__aiter__(), boundary)

    async def file_part(self, field: str) -> Optional[StreamedPart]:
        """
        Skip ahead to the first part named `field` that carries a filename.
        Other parts are read and discarded. Returns None if the body ends
        without one.
        """
        while True:
            kind, data = await self.next_event()
            if kind == _END:
                return None
            if kind != _HEADERS:
                continue
            name, filename, content_type = data
            if name == field and filename is not None:
                return StreamedPart(self, filename, content_type)

    async def next_event(self) -> Tuple[str, object]:
        while not self._events:
            if self._exhausted:
                # body ended before the closing boundary
                raise MalformedUpload()
            try:
                chunk = await self._chunks.__anext__()
            except StopAsyncIteration:
                self._exhausted = True
                continue
            try:
                self._parser.write(chunk)
            except MultipartParseError as e:
                log.info("Rejected multipart body: %s", e)
                raise MalformedUpload() from e
        return self._events.popleft()

    # --- python-multipart callbacks ---

    def _on_part_begin(self) -> None:
        self._headers = []

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def _on_header_end(self) -> None:
        self._headers.append((self._header_field.lower(), self._header_value))
        self._header_field = b""
        self._header_value = b""

    def _on_headers_finished(self) -> None:
        headers = dict(self._headers)
        _, options = parse_options_header(headers.get(b"content-disposition"))
        name = _decode(options.get(b"name", b""))
        filename = _decode(options[b"filename"]) if b"filename" in options else None
        content_type = _decode(headers.get(b"content-type", b""))
        self._events.append((_HEADERS, (name, filename, content_type)))

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        self._events.append((_DATA, data[start:end]))

    def _on_part_end(self) -> None:
        self._events.append((_PART_END, None))

    def _on_end(self) -> None:
        self._events.append((_END, None))
