"""Tests for loader factory functions."""

import logging

import pytest

import rangestream
from rangestream import create_loader
from rangestream.core.model import LoaderContractError, LoaderNotSupportedError
from rangestream.io import Loader, DEFAULT_TIMEOUT, DEFAULT_CHUNK_SIZE
from rangestream.io.http_async import HttpxStreamLoader
from rangestream.io.http_sync import RequestsStreamLoader


def _ignore(kind, info):
    pass


class TestCreateLoader:
    """Test capability negotiation through the factory."""

    def test_outside_event_loop_uses_requests(self):
        loader = create_loader(_ignore)
        assert isinstance(loader, RequestsStreamLoader)
        assert loader.type == "requests-stream"

    @pytest.mark.asyncio
    async def test_inside_event_loop_uses_httpx(self):
        loader = create_loader(_ignore)
        assert isinstance(loader, HttpxStreamLoader)
        assert loader.type == "httpx-stream"

    @pytest.mark.asyncio
    async def test_forced_backend(self):
        loader = create_loader(_ignore, name="requests-stream")
        assert isinstance(loader, RequestsStreamLoader)

    def test_forced_backend_must_be_supported(self):
        with pytest.raises(LoaderNotSupportedError):
            create_loader(_ignore, name="httpx-stream")

    def test_unknown_backend(self):
        with pytest.raises(LoaderNotSupportedError):
            create_loader(_ignore, name="xhr-moz-chunked")

    def test_options_forwarded(self):
        log = logging.getLogger("tests.factory")
        loader = create_loader(_ignore, timeout=2.5, chunk_size=512, headers={"X-Test": "1"}, logger=log)
        assert loader.timeout == 2.5
        assert loader.chunk_size == 512
        assert loader.extra_headers == {"X-Test": "1"}
        assert loader.log is log

    def test_defaults(self):
        loader = create_loader(_ignore)
        assert loader.timeout == DEFAULT_TIMEOUT == 10.0
        assert loader.chunk_size == DEFAULT_CHUNK_SIZE

    def test_error_handler_required(self):
        with pytest.raises(LoaderContractError):
            create_loader(None)

    def test_satisfies_loader_protocol(self):
        assert isinstance(create_loader(_ignore), Loader)

    @pytest.mark.asyncio
    async def test_async_backend_satisfies_loader_protocol(self):
        assert isinstance(create_loader(_ignore), Loader)


class TestAsyncOpenContract:
    """The asyncio backend needs a running loop to open."""

    def test_open_without_loop(self):
        loader = HttpxStreamLoader(_ignore)
        with pytest.raises(LoaderContractError):
            loader.open("http://example.invalid/seg.flv")


def test_package_logger_has_null_handler():
    handlers = logging.getLogger("rangestream").handlers
    assert any(isinstance(h, logging.NullHandler) for h in handlers)
    assert rangestream.__version__
