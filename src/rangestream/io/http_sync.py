"""Threaded streaming range loader using requests."""

import threading
from typing import Optional

import requests
from urllib3.exceptions import HTTPError as Urllib3HTTPError, ReadTimeoutError

from ..core.loader_base import StreamLoaderBase
from ..core.util import parse_content_length


def _is_read_timeout(exc: Exception) -> bool:
    # requests wraps a read timeout in ConnectionError, raw reads raise it bare
    if isinstance(exc, (requests.Timeout, ReadTimeoutError)):
        return True
    return any(isinstance(arg, ReadTimeoutError) for arg in exc.args)


class RequestsStreamLoader(StreamLoaderBase):
    """Streams one byte range on a worker thread.

    Callbacks run on that worker thread, one at a time, in transport order.
    """

    type_name = "requests-stream"
    priority = 50

    def __init__(self, on_error, *, session: Optional[requests.Session] = None, **kwargs):
        super().__init__(on_error, **kwargs)
        self._session = session
        self._owns_session = session is None
        self._response: Optional[requests.Response] = None
        self._thread: Optional[threading.Thread] = None
        self._failure: Optional[BaseException] = None
        self._lock = threading.RLock()

    @classmethod
    def is_supported(cls) -> bool:
        return True

    def _guard(self):
        return self._lock

    def _start(self, url: str, headers: dict[str, str]) -> None:
        if self._session is None:
            self._session = requests.Session()
        self._thread = threading.Thread(
            target=self._run, args=(url, headers), name=f"{self.type_name}-{id(self):x}", daemon=True
        )
        self._thread.start()

    def _run(self, url: str, headers: dict[str, str]) -> None:
        session = self._session
        try:
            self._exchange(session, url, headers)
        except (requests.RequestException, Urllib3HTTPError) as e:
            if _is_read_timeout(e):
                self._on_timeout()
            else:
                self._on_transport_error(e)
        except Exception as e:
            if not self._suppressed():
                self._failure = e
                self.log.error("%s: callback or transport failure for %s", self.type_name, self.url, exc_info=True)
                return
            # closing the response under an aborted read raises from urllib3
            self.log.debug("%s: ignoring %s after abort", self.type_name, type(e).__name__)
        finally:
            self._close_response()
            if self._owns_session:
                session.close()
        self._on_load_end()

    def _exchange(self, session: requests.Session, url: str, headers: dict[str, str]) -> None:
        response = session.get(url, headers=headers, stream=True, timeout=(self.timeout, self.timeout))
        with self._lock:
            self._response = response
            if self._suppressed():
                return
        if not self._on_headers_received(response.status_code, response.reason or ""):
            return
        total = parse_content_length(response.headers)
        # read1 returns whatever is buffered or arrives in one socket read
        while True:
            chunk = response.raw.read1(self.chunk_size, decode_content=True)
            if not chunk or self._suppressed():
                break
            self._on_progress(chunk, total)

    def _close_response(self) -> None:
        with self._lock:
            response, self._response = self._response, None
        if response is not None:
            response.close()

    def _cancel(self) -> None:
        # from inside a callback the stream loop sees the abort flag itself
        if threading.current_thread() is self._thread:
            return
        with self._lock:
            response = self._response
        if response is not None:
            try:
                # wakes a read blocked on the socket in the worker thread
                response.raw.shutdown()
            except (ValueError, RuntimeError, OSError):
                pass  # connection already released
        self._close_response()

    def _release(self) -> None:
        if self._owns_session:
            self._session = None

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the worker thread, re-raising any callback failure."""
        if self._thread is not None:
            self._thread.join(timeout)
        if self._failure is not None:
            failure, self._failure = self._failure, None
            raise failure
