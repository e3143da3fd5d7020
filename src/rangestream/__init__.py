"""rangestream - resumable, range-addressable streaming HTTP loaders."""

import logging

from .core.model import (                                              # re-export
    ByteRange, LoaderStatus, LoaderErrorKind, ErrorInfo,
    RangeStreamError, LoaderContractError, LoaderNotSupportedError,
)
from .core.registry import _REGISTRY                                   # singleton
from .io import Loader, HttpxStreamLoader, RequestsStreamLoader, create_loader

__version__ = "0.1.0"

logging.getLogger("rangestream").addHandler(logging.NullHandler())
logging.getLogger("httpx").setLevel(logging.INFO)


__all__ = [
    "create_loader", "Loader", "HttpxStreamLoader", "RequestsStreamLoader",
    "ByteRange", "LoaderStatus", "LoaderErrorKind", "ErrorInfo",
    "RangeStreamError", "LoaderContractError", "LoaderNotSupportedError",
]
