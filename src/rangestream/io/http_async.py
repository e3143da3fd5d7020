"""Asynchronous streaming range loader using httpx."""

import asyncio
from typing import Optional

import httpx

from ..core.loader_base import StreamLoaderBase
from ..core.model import LoaderContractError
from ..core.util import parse_content_length, split_chunk


class HttpxStreamLoader(StreamLoaderBase):
    """Streams one byte range from inside the running asyncio event loop."""

    type_name = "httpx-stream"
    priority = 10

    def __init__(self, on_error, *, client: Optional[httpx.AsyncClient] = None, **kwargs):
        super().__init__(on_error, **kwargs)
        self._client = client
        self._owns_client = client is None
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def is_supported(cls) -> bool:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return False
        return True

    def _start(self, url: str, headers: dict[str, str]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise LoaderContractError(f"{self.type_name} must be opened inside a running event loop") from None
        self._task = loop.create_task(self._run(url, headers))

    async def _run(self, url: str, headers: dict[str, str]) -> None:
        client = self._client or httpx.AsyncClient(follow_redirects=True)
        try:
            await self._exchange(client, url, headers)
        except httpx.TimeoutException:
            self._on_timeout()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self._on_transport_error(e)
        except asyncio.CancelledError:
            if not self._request_abort:
                raise
        finally:
            if self._owns_client:
                await client.aclose()
        self._on_load_end()

    async def _exchange(self, client: httpx.AsyncClient, url: str, headers: dict[str, str]) -> None:
        async with client.stream("GET", url, headers=headers, timeout=self.timeout) as response:
            if not self._on_headers_received(response.status_code, response.reason_phrase):
                return
            total = parse_content_length(response.headers)
            # no size: each read is delivered as soon as the network supplies it
            async for data in response.aiter_bytes():
                for chunk in split_chunk(data, self.chunk_size):
                    if self._suppressed():
                        return
                    self._on_progress(chunk, total)

    def _cancel(self) -> None:
        task = self._task
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # from inside a callback the stream loop sees the abort flag itself
        if task is not current:
            task.cancel()

    def _release(self) -> None:
        self._cancel()
        self._task = None
        self._client = None

    async def join(self) -> None:
        """Wait for the exchange to finish, re-raising any callback failure."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
