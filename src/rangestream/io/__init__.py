"""Loader backends for rangestream - deliver a byte range chunk by chunk."""

# Re-export these for import convenience
from .base import Loader, DEFAULT_TIMEOUT, DEFAULT_CHUNK_SIZE
from .http_async import HttpxStreamLoader
from .http_sync import RequestsStreamLoader
from ..core.registry import _REGISTRY


def create_loader(on_error, *, name=None, **options):
    """Factory function creating the best loader the environment supports.

    Inside a running event loop this is the httpx backend, elsewhere the
    threaded requests backend. ``name`` forces a specific backend, which must
    still pass its capability probe.
    """
    loader_cls = _REGISTRY.choose(name)
    return loader_cls(on_error, **options)


__all__ = [
    "Loader", "HttpxStreamLoader", "RequestsStreamLoader", "create_loader",
    "DEFAULT_TIMEOUT", "DEFAULT_CHUNK_SIZE",
]
