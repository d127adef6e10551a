"""
autotrim/errors.py
Error taxonomy. Every per-image error carries the FailReason it is reported under.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from .trimtypes import FailReason


class TrimError(Exception):
    """Base class for all autotrim errors"""
    reason = FailReason.UNKNOWN


class DecodeKind(Enum):
    """Why a source image could not be decoded"""
    FILE_NOT_FOUND = "file_not_found"
    UNSUPPORTED_FORMAT = "unsupported_format"
    CORRUPT_DATA = "corrupt_data"
    INSUFFICIENT_CHANNELS = "insufficient_channels"


class DecodeError(TrimError):
    """Source image is missing, unreadable, corrupt or has fewer than 3 channels"""
    reason = FailReason.DECODE_FAIL

    def __init__(self, path: Path, kind: DecodeKind, detail: str = ""):
        self.path = path
        self.kind = kind
        self.detail = detail
        message = f"{kind.value}: {path}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class NoContentError(TrimError):
    """Every pixel is background or near-transparent"""
    reason = FailReason.NO_CONTENT


class AllocationError(TrimError):
    """Out of memory while allocating a crop or scale buffer"""
    reason = FailReason.ALLOCATION


class ResampleError(TrimError):
    """The resampler rejected its inputs"""
    reason = FailReason.RESAMPLE_FAIL


class EncodeError(TrimError):
    """Writing the output PNG failed"""
    reason = FailReason.WRITE_FAIL

    def __init__(self, path: Path, detail: Optional[str] = None):
        self.path = path
        super().__init__(f"Failed to write {path}" + (f": {detail}" if detail else ""))


class DirectoryError(TrimError):
    """Output directory cannot be created or used. Fatal for the whole batch."""
    reason = FailReason.DIRECTORY

    def __init__(self, path: Path, detail: str):
        self.path = path
        super().__init__(f"Output directory unusable: {path} ({detail})")
