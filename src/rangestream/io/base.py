"""Base protocol and shared constants for loader backends."""

from typing import Optional, Protocol, runtime_checkable

from ..core.loader_base import (  # noqa: F401  re-exported
    DEFAULT_CHUNK_SIZE,
    DEFAULT_TIMEOUT,
    CompleteCallback,
    ContentLengthCallback,
    DataArrivalCallback,
    ErrorCallback,
)
from ..core.model import ByteRange, LoaderStatus


@runtime_checkable
class Loader(Protocol):
    """Static interface every loader backend exposes."""

    on_error: ErrorCallback
    on_content_length_known: Optional[ContentLengthCallback]
    on_data_arrival: Optional[DataArrivalCallback]
    on_complete: Optional[CompleteCallback]

    @property
    def status(self) -> LoaderStatus:
        ...

    def open(self, url: str, byte_range: Optional[ByteRange] = None) -> None:
        """Start fetching; all results arrive through the callback slots."""
        ...

    def abort(self) -> None:
        """Cancel the exchange; neither on_complete nor on_error fires afterwards."""
        ...

    def destroy(self) -> None:
        """Abort if still working and release the transport."""
        ...
