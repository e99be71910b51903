"""Streaming multipart/form-data parsing on top of python-multipart."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, MultipartState, parse_options_header

from upload_storage.storage.extensions import DEFAULT_CONTENT_TYPE


class UploadParseError(Exception):
    """Request body is not a parseable multipart/form-data payload."""


class PartSink(Protocol):
    """Destination for the bytes of one file part."""

    def write(self, data: bytes) -> object: ...

    def close(self) -> None: ...


@dataclass(frozen=True, slots=True)
class PartInfo:
    """Headers of a file part, known before its body is streamed."""

    field_name: str
    filename: str
    content_type: str


type SinkFactory[S: PartSink] = Callable[[PartInfo], S]


def get_boundary(content_type: str | None) -> bytes:
    """Extract the boundary of a multipart/form-data content type header."""
    ctype, options = parse_options_header(content_type)
    if ctype != b"multipart/form-data":
        raise UploadParseError(f"Expected multipart/form-data, got '{ctype.decode('latin-1')}'")
    boundary = options.get(b"boundary")
    if not boundary:
        raise UploadParseError("Missing multipart boundary")
    return boundary


def decode_header_value(value: bytes) -> str:
    """Decode a part header parameter: UTF-8 as browsers send it, latin-1 otherwise."""
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return value.decode("latin-1")


def parse_multipart[S: PartSink](
    content_type: str | None, body: bytes, open_sink: SinkFactory[S]
) -> list[tuple[PartInfo, S]]:
    """Stream every file part of ``body`` into a sink opened by ``open_sink``.

    Plain form fields are skipped. Sinks are opened when a part's headers are
    complete and closed when the part ends, so a sink never sees two parts.
    Returns the parts in upload order together with their (closed) sinks.
    Raises ``UploadParseError`` for a malformed body or one that ends before
    its closing boundary.
    """
    boundary = get_boundary(content_type)

    parts: list[tuple[PartInfo, S]] = []
    headers: dict[bytes, bytes] = {}
    header_name: list[bytes] = []
    header_value: list[bytes] = []
    sink: S | None = None

    def on_part_begin() -> None:
        headers.clear()

    def on_header_field(data: bytes, start: int, end: int) -> None:
        header_name.append(data[start:end])

    def on_header_value(data: bytes, start: int, end: int) -> None:
        header_value.append(data[start:end])

    def on_header_end() -> None:
        headers[b"".join(header_name).lower()] = b"".join(header_value)
        header_name.clear()
        header_value.clear()

    def on_headers_finished() -> None:
        nonlocal sink
        _, disposition = parse_options_header(headers.get(b"content-disposition"))
        filename = disposition.get(b"filename")
        if filename is None:
            return

        part_type, _ = parse_options_header(headers.get(b"content-type"))
        info = PartInfo(
            field_name=decode_header_value(disposition.get(b"name", b"")),
            filename=decode_header_value(filename),
            content_type=part_type.decode("latin-1") or DEFAULT_CONTENT_TYPE,
        )
        sink = open_sink(info)
        parts.append((info, sink))

    def on_part_data(data: bytes, start: int, end: int) -> None:
        if sink is not None:
            sink.write(data[start:end])

    def on_part_end() -> None:
        nonlocal sink
        if sink is not None:
            sink.close()
            sink = None

    parser = MultipartParser(
        boundary,
        callbacks={
            "on_part_begin": on_part_begin,
            "on_part_data": on_part_data,
            "on_part_end": on_part_end,
            "on_header_field": on_header_field,
            "on_header_value": on_header_value,
            "on_header_end": on_header_end,
            "on_headers_finished": on_headers_finished,
        },
    )

    try:
        parser.write(body)
        parser.finalize()
    except MultipartParseError as ex:
        raise UploadParseError(f"Malformed multipart body: {ex}") from ex
    finally:
        if sink is not None:
            sink.close()

    # finalize() accepts a body cut off before its closing boundary
    if parser.state != MultipartState.END:
        raise UploadParseError("Unexpected end of multipart body")

    return parts
