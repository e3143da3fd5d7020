from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True, slots=True)
class ByteRange:
    start: int          # inclusive
    end: int = -1       # inclusive, -1 = to end of resource

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"Range start cannot be negative: {self.start}")
        if self.end < -1:
            raise ValueError(f"Range end must be >= -1: {self.end}")
        if self.end != -1 and self.end < self.start:
            raise ValueError(f"Range end {self.end} precedes start {self.start}")

    @property
    def is_full(self) -> bool:
        """True for the whole-resource default (0, -1)."""
        return self.start == 0 and self.end == -1


class LoaderStatus(Enum):
    IDLE = "Idle"
    CONNECTING = "Connecting"
    BUFFERING = "Buffering"
    COMPLETE = "Complete"
    ERROR = "Error"


class LoaderErrorKind(Enum):
    HTTP_STATUS_CODE_INVALID = "HttpStatusCodeInvalid"
    CONNECTING_TIMEOUT = "ConnectingTimeout"
    EARLY_EOF = "EarlyEof"
    EXCEPTION = "Exception"


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    code: int
    message: str


class RangeStreamError(RuntimeError):
    """Base class for errors raised by rangestream."""
    pass


class LoaderContractError(RangeStreamError):
    """Raised when a caller misuses a loader (no error handler, re-open, ...)."""
    pass


class LoaderNotSupportedError(RangeStreamError):
    """Raised when no registered loader backend can run in this environment."""
    pass
