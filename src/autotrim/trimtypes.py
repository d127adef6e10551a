"""
autotrim/trimtypes.py
Data structure definitions: Pixel, BoundingBox, PixelBuffer, TrimParams, ReportItem, etc.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any, NamedTuple, Tuple

import numpy as np


class Pixel(NamedTuple):
    """
    One RGBA color, 8 bits per channel.
    Tuple ordering gives the lexicographic R, G, B, A order.
    """
    r: int
    g: int
    b: int
    a: int = 255

    @classmethod
    def white(cls) -> "Pixel":
        return cls(255, 255, 255, 255)

    @classmethod
    def parse(cls, color_str: str) -> "Pixel":
        """
        Parse color string
        Supported formats: black, white, #RGB, #RRGGBB, #RRGGBBAA, rgb(r,g,b), rgba(r,g,b,a)
        """
        text = color_str.strip().lower()

        if text == "black":
            return cls(0, 0, 0, 255)
        elif text == "white":
            return cls.white()
        elif text.startswith("#"):
            hex_str = text[1:]
            try:
                if len(hex_str) == 3:
                    return cls(*(int(ch, 16) * 17 for ch in hex_str))
                if len(hex_str) in (6, 8):
                    return cls(*(int(hex_str[i:i + 2], 16) for i in range(0, len(hex_str), 2)))
            except ValueError:
                pass
        else:
            match = re.fullmatch(r"rgba?\s*\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*(?:,\s*(\d+)\s*)?\)", text)
            if match:
                values = [int(v) for v in match.groups() if v is not None]
                if all(0 <= v <= 255 for v in values):
                    return cls(*values)

        raise ValueError(f"Unable to parse color: {color_str}")

    def hex(self) -> str:
        return "#{:02x}{:02x}{:02x}{:02x}".format(*self)


@dataclass(frozen=True)
class BoundingBox:
    """
    Inclusive pixel rectangle (top, left, bottom, right)
    The empty box has bottom < top and right < left, so width and height are 0
    """
    top: int
    left: int
    bottom: int
    right: int

    @classmethod
    def empty(cls) -> "BoundingBox":
        return cls(top=0, left=0, bottom=-1, right=-1)

    @property
    def width(self) -> int:
        return self.right - self.left + 1 if self.right >= self.left else 0

    @property
    def height(self) -> int:
        return self.bottom - self.top + 1 if self.bottom >= self.top else 0

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def fits(self, width: int, height: int) -> bool:
        """True if the box is non-empty and lies inside a width x height image"""
        return (
            not self.is_empty
            and 0 <= self.left <= self.right < width
            and 0 <= self.top <= self.bottom < height
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "top": self.top,
            "left": self.left,
            "bottom": self.bottom,
            "right": self.right,
            "width": self.width,
            "height": self.height,
        }


class PixelBuffer:
    """
    Rectangular uint8 pixel array of shape (H, W, C), C in {3, 4}
    Row-major, top-left origin. Stages never modify a buffer they receive.
    """

    __slots__ = ("pixels",)

    def __init__(self, pixels: np.ndarray):
        if not isinstance(pixels, np.ndarray) or pixels.dtype != np.uint8:
            raise ValueError("PixelBuffer requires a uint8 numpy array")
        if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
            raise ValueError(f"PixelBuffer requires shape (H, W, 3|4), got {pixels.shape}")
        self.pixels = pixels

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def channels(self) -> int:
        return self.pixels.shape[2]

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def pixel_at(self, x: int, y: int) -> Pixel:
        """Effective RGBA color at (x, y); alpha is 255 for 3-channel buffers"""
        p = self.pixels[y, x]
        alpha = int(p[3]) if self.channels == 4 else 255
        return Pixel(int(p[0]), int(p[1]), int(p[2]), alpha)

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height}, channels={self.channels})"


# Pillow resampling filters, by lowercase Image.Resampling name
RESAMPLE_FILTERS = ("lanczos", "bicubic", "bilinear", "hamming", "box", "nearest")

DEFAULT_TARGET_SIZE = (360, 180)
DEFAULT_ALPHA_THRESHOLD = 10  # alpha below this is treated as background
DEFAULT_SUFFIX = "_trimmed"
DEFAULT_RESAMPLE = "lanczos"


@dataclass
class TrimParams:
    """Trim and scale parameters"""
    target_width: int = DEFAULT_TARGET_SIZE[0]
    target_height: int = DEFAULT_TARGET_SIZE[1]
    alpha_threshold: int = DEFAULT_ALPHA_THRESHOLD  # RGBA only
    resample: str = DEFAULT_RESAMPLE
    suffix: str = DEFAULT_SUFFIX
    background: Optional[Pixel] = None  # None: estimate per image

    def __post_init__(self):
        if self.target_width <= 0 or self.target_height <= 0:
            raise ValueError(f"Target size must be positive, got {self.target_width}x{self.target_height}")
        if not 0 <= self.alpha_threshold <= 256:
            raise ValueError(f"alpha_threshold must be within 0-256, got {self.alpha_threshold}")
        if self.resample not in RESAMPLE_FILTERS:
            raise ValueError(f"Unknown resample filter: {self.resample}")

    @property
    def target_size(self) -> Tuple[int, int]:
        return (self.target_width, self.target_height)


class JobStatus(Enum):
    """Job status"""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class FailReason(Enum):
    """Failure reason"""
    NONE = "none"
    DECODE_FAIL = "decode_fail"
    NO_CONTENT = "no_content"
    ALLOCATION = "allocation"
    RESAMPLE_FAIL = "resample_fail"
    WRITE_FAIL = "write_fail"
    DIRECTORY = "directory"
    DRY_RUN = "dry_run"
    UNKNOWN = "unknown"


@dataclass
class TrimResult:
    """Output of the in-memory trim stages for one image"""
    background: Pixel
    box: BoundingBox
    cropped_size: Tuple[int, int]
    buffer: PixelBuffer


@dataclass
class ReportItem:
    """
    Processing report item
    """
    status: JobStatus
    reason: FailReason = FailReason.NONE

    input_path: Optional[Path] = None
    output_path: Optional[Path] = None

    source_size: Optional[Tuple[int, int]] = None
    channels: Optional[int] = None
    background: Optional[Pixel] = None
    box: Optional[BoundingBox] = None
    cropped_size: Optional[Tuple[int, int]] = None
    output_size: Optional[Tuple[int, int]] = None
    elapsed_ms: float = 0.0

    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.status == JobStatus.SUCCESS

    @property
    def error(self) -> Optional[str]:
        return self.extra.get("error")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "reason": self.reason.value,
            "input_path": str(self.input_path) if self.input_path else None,
            "output_path": str(self.output_path) if self.output_path else None,
            "source_size": list(self.source_size) if self.source_size else None,
            "channels": self.channels,
            "background": self.background.hex() if self.background else None,
            "box": self.box.to_dict() if self.box else None,
            "cropped_size": list(self.cropped_size) if self.cropped_size else None,
            "output_size": list(self.output_size) if self.output_size else None,
            "elapsed_ms": round(self.elapsed_ms, 3),
            "extra": self.extra,
        }


@dataclass
class ProcessReport:
    """
    Processing summary report
    """
    items: list = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for it in self.items if it.status == JobStatus.SUCCESS)

    @property
    def failed_count(self) -> int:
        return sum(1 for it in self.items if it.status == JobStatus.FAILED)

    @property
    def skipped_count(self) -> int:
        return sum(1 for it in self.items if it.status == JobStatus.SKIPPED)

    @property
    def total_count(self) -> int:
        return len(self.items)

    def add(self, item: ReportItem) -> None:
        self.items.append(item)

    def get_failures_by_reason(self) -> Dict[FailReason, list]:
        """Group by failure reason"""
        result: Dict[FailReason, list] = {}
        for it in self.items:
            if it.status == JobStatus.FAILED:
                result.setdefault(it.reason, []).append(it)
        return result

    def summary(self) -> str:
        """Generate summary text"""
        lines = [
            "=" * 50,
            "Processing Report",
            "=" * 50,
            f"Total: {self.total_count} file(s)",
            f"  Success: {self.success_count}",
            f"  Failed: {self.failed_count}",
            f"  Skipped: {self.skipped_count}",
        ]

        failures = self.get_failures_by_reason()
        if failures:
            lines.append("")
            lines.append("Failure reason breakdown:")
            for reason, items in sorted(failures.items(), key=lambda x: -len(x[1])):
                lines.append(f"  {reason.value}: {len(items)} file(s)")

        lines.append("=" * 50)
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total_count,
            "success": self.success_count,
            "failed": self.failed_count,
            "skipped": self.skipped_count,
            "items": [it.to_dict() for it in self.items],
        }
