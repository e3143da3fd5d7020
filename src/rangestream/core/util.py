from __future__ import annotations
from typing import Any, Dict, Iterator, Mapping

from .model import ByteRange, ErrorInfo, LoaderErrorKind


def range_header_value(byte_range: ByteRange) -> str | None:
    """Return the ``Range`` header value, or None for the whole resource."""
    if byte_range.is_full:
        return None
    if byte_range.end != -1:
        return f"bytes={byte_range.start}-{byte_range.end}"
    return f"bytes={byte_range.start}-"


def parse_content_length(headers: Mapping[str, str]) -> int | None:
    value = headers.get("content-length")
    if not value:
        return None
    try:
        length = int(value)
    except ValueError:
        return None
    return length if length > 0 else None


def summary_asdict(loader, *, error: tuple[LoaderErrorKind, ErrorInfo] | None = None) -> Dict[str, Any]:
    """Return a JSON-serialisable summary of a finished exchange (skip None)."""
    payload: Dict[str, Any] = {
        "success": error is None,
        "url": loader.url,
        "loader": loader.type,
        "range_from": loader.range.start if loader.range else None,
        "range_to": loader.range.end if loader.range else None,
        "received_length": loader.received_length,
        "content_length": loader.content_length,
    }
    if error is not None:
        kind, info = error
        payload.update({"error": kind.value, "error_code": info.code, "error_message": info.message})
    return {k: v for k, v in payload.items() if v is not None}


def split_chunk(data: bytes, limit: int) -> Iterator[bytes]:
    """Yield ``data`` in pieces of at most ``limit`` bytes."""
    for offset in range(0, len(data), limit):
        yield data[offset:offset + limit]
