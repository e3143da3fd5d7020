"""Range-addressable streaming loader state machine shared by all backends."""

from __future__ import annotations
import contextlib
import logging
from abc import ABC, abstractmethod
from typing import Callable, ClassVar, ContextManager, Mapping, Optional

from .model import (
    ByteRange,
    ErrorInfo,
    LoaderContractError,
    LoaderErrorKind,
    LoaderStatus,
)
from .util import range_header_value

_logger = logging.getLogger("rangestream")

# Applied per network operation: a body stalled this long after data has
# started still reports ConnectingTimeout, after delivering what arrived.
DEFAULT_TIMEOUT = 10.0              # seconds of connect/read inactivity
DEFAULT_CHUNK_SIZE = 64 * 1024      # upper bound on one delivered chunk

ContentLengthCallback = Callable[[int], None]
DataArrivalCallback = Callable[[bytes, int, int], None]
CompleteCallback = Callable[[int, int], None]
ErrorCallback = Callable[[LoaderErrorKind, ErrorInfo], None]


class StreamLoaderBase(ABC):
    """One single-use GET of a byte range, delivered chunk by chunk.

    Backends translate their transport's notifications into the five
    ``_on_*`` events below and implement ``_start``, ``_cancel`` and
    ``_release``. Everything the caller observes goes through the callback
    slots; exactly one of ``on_complete`` / ``on_error`` fires per ``open``
    unless ``abort()`` came first, in which case neither does.
    """

    # --- required by subclasses ---
    type_name: ClassVar[str]
    priority: ClassVar[int] = 100            # lower = examined earlier
    need_stash_buffer: ClassVar[bool] = True

    def __init__(
        self,
        on_error: ErrorCallback,
        *,
        on_content_length_known: Optional[ContentLengthCallback] = None,
        on_data_arrival: Optional[DataArrivalCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
        timeout: float = DEFAULT_TIMEOUT,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        headers: Optional[Mapping[str, str]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.on_error = on_error
        self.on_content_length_known = on_content_length_known
        self.on_data_arrival = on_data_arrival
        self.on_complete = on_complete

        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.extra_headers = dict(headers or {})
        self.log = logger or _logger

        self._status = LoaderStatus.IDLE
        self._url: Optional[str] = None
        self._range: Optional[ByteRange] = None
        self._opened = False
        self._destroyed = False
        self._reset_session()

    # --- registry hook ---
    def __init_subclass__(cls, **kw):
        super().__init_subclass__(**kw)
        # only backends naming themselves are registered
        if "type_name" not in cls.__dict__:
            return
        from .registry import _REGISTRY
        _REGISTRY.register(cls)           # noqa: E402

    @classmethod
    @abstractmethod
    def is_supported(cls) -> bool:
        """Return True if this backend can deliver partial responses here."""
        ...

    # --- transport hooks ---
    @abstractmethod
    def _start(self, url: str, headers: dict[str, str]) -> None:
        """Issue the GET without blocking; events arrive via ``_on_*``."""
        ...

    @abstractmethod
    def _cancel(self) -> None:
        """Ask the transport to drop the in-flight exchange."""
        ...

    @abstractmethod
    def _release(self) -> None:
        """Detach from and let go of the transport handle."""
        ...

    def _guard(self) -> ContextManager:
        """Serialises event handling; backends delivering from a thread override this."""
        return contextlib.nullcontext()

    # --- public surface ---
    @property
    def on_error(self) -> ErrorCallback:
        return self._on_error

    @on_error.setter
    def on_error(self, callback: ErrorCallback) -> None:
        if callback is None or not callable(callback):
            raise LoaderContractError(f"{type(self).__name__} requires a callable on_error handler")
        self._on_error = callback

    @property
    def type(self) -> str:
        return self.type_name

    @property
    def status(self) -> LoaderStatus:
        return self._status

    @property
    def url(self) -> Optional[str]:
        return self._url

    @property
    def range(self) -> Optional[ByteRange]:
        return self._range

    @property
    def content_length(self) -> Optional[int]:
        return self._content_length

    @property
    def received_length(self) -> int:
        return self._received_length

    def is_working(self) -> bool:
        return self._status in (LoaderStatus.CONNECTING, LoaderStatus.BUFFERING)

    def open(self, url: str, byte_range: ByteRange | None = None) -> None:
        """Start fetching ``byte_range`` of ``url``; returns immediately."""
        if self._destroyed:
            raise LoaderContractError("Loader has been destroyed")
        if self._opened:
            raise LoaderContractError("Loader is single-use; create a new one to fetch again")
        byte_range = byte_range or ByteRange(0, -1)

        self._opened = True
        self._url = url
        self._range = byte_range
        self._reset_session()

        headers = {"Accept-Encoding": "identity", **self.extra_headers}
        param = range_header_value(byte_range)
        if param is not None:
            headers["Range"] = param

        self.log.debug("%s: GET %s (Range: %s)", self.type_name, url, param or "none")
        self._status = LoaderStatus.CONNECTING
        self._start(url, headers)

    def abort(self) -> None:
        with self._guard():
            self._request_abort = True
            self._cancel()
            self._status = LoaderStatus.COMPLETE

    def destroy(self) -> None:
        if self.is_working():
            self.abort()
        self._destroyed = True
        self.on_content_length_known = None
        self.on_data_arrival = None
        self.on_complete = None
        self._release()

    # --- transport events ---
    def _suppressed(self) -> bool:
        return self._destroyed or self._request_abort

    def _on_headers_received(self, status_code: int, reason: str) -> bool:
        """Return True if the body should be consumed."""
        with self._guard():
            if self._suppressed():
                return False
            # 0 is the opaque-response case some transports report
            if status_code != 0 and not 200 <= status_code <= 299:
                self._status = LoaderStatus.ERROR
                self._report_error(
                    LoaderErrorKind.HTTP_STATUS_CODE_INVALID,
                    ErrorInfo(code=status_code, message=reason),
                )
                return False
            self._status = LoaderStatus.BUFFERING
            return True

    def _on_progress(self, chunk: bytes, total: Optional[int]) -> None:
        with self._guard():
            if self._suppressed() or self._status is LoaderStatus.ERROR:
                return

            if self._content_length is None and total:
                self._content_length = total
                if self.on_content_length_known:
                    self.on_content_length_known(total)

            byte_start = self._range.start + self._received_length
            self._received_length += len(chunk)

            self.log.debug(
                "%s: received chunk, size = %d, total_received = %d",
                self.type_name, len(chunk), self._received_length,
            )

            if self.on_data_arrival:
                self.on_data_arrival(chunk, byte_start, self._received_length)

    def _on_load_end(self) -> None:
        with self._guard():
            if self._request_abort:
                self._request_abort = False
                return
            if self._destroyed or self._status is LoaderStatus.ERROR:
                return

            self._status = LoaderStatus.COMPLETE
            start = self._range.start
            end = start + self._received_length - 1
            self.log.debug("%s: complete, bytes %d-%d", self.type_name, start, end)
            if self.on_complete:
                self.on_complete(start, end)

    def _on_timeout(self) -> None:
        with self._guard():
            if self._suppressed() or not self.is_working():
                return
            self._status = LoaderStatus.ERROR
            self._report_error(
                LoaderErrorKind.CONNECTING_TIMEOUT,
                ErrorInfo(code=-1, message="Connection timeout"),
            )

    def _on_transport_error(self, exc: BaseException, loaded: Optional[int] = None) -> None:
        with self._guard():
            if self._suppressed() or not self.is_working():
                return
            self._status = LoaderStatus.ERROR
            if loaded is None:
                loaded = self._received_length

            if self._content_length and loaded < self._content_length:
                kind = LoaderErrorKind.EARLY_EOF
                info = ErrorInfo(
                    code=-1,
                    message=f"Stream met early EOF: {loaded} of {self._content_length} bytes",
                )
            else:
                kind = LoaderErrorKind.EXCEPTION
                info = ErrorInfo(code=-1, message=f"{type(exc).__name__} {exc}".strip())
            self._report_error(kind, info)

    def _report_error(self, kind: LoaderErrorKind, info: ErrorInfo) -> None:
        self.log.warning("%s: %s (%d) %s for %s", self.type_name, kind.value, info.code, info.message, self._url)
        self._on_error(kind, info)

    def _reset_session(self) -> None:
        self._received_length = 0
        self._content_length: Optional[int] = None
        self._request_abort = False
