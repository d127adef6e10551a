"""
autotrim/imageops.py
Image operation module:
- Decode / encode (Pillow)
- Background color estimation (most frequent opaque color)
- Content bounding box detection
- Crop to RGBA and aspect-preserving scale into a target box
"""

import logging
import math
from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import (
    AllocationError,
    DecodeError,
    DecodeKind,
    EncodeError,
    NoContentError,
    ResampleError,
)
from .trimtypes import (
    DEFAULT_ALPHA_THRESHOLD,
    DEFAULT_RESAMPLE,
    RESAMPLE_FILTERS,
    BoundingBox,
    Pixel,
    PixelBuffer,
    TrimParams,
    TrimResult,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================

RESAMPLE_MODES = {name: getattr(Image.Resampling, name.upper()) for name in RESAMPLE_FILTERS}

# Modes Pillow can turn into RGB without losing meaning
_COLOR_MODES = {"CMYK", "YCbCr", "LAB", "HSV"}


# ============================================================================
# Decode / encode
# ============================================================================

def _normalize_mode(img: Image.Image, path: Path) -> Image.Image:
    """Bring a decoded image to RGB or RGBA; reject grayscale sources"""
    mode = img.mode
    if mode in ("RGB", "RGBA"):
        return img
    if mode in ("P", "PA"):
        has_alpha = mode == "PA" or "transparency" in img.info
        return img.convert("RGBA" if has_alpha else "RGB")
    if mode in _COLOR_MODES:
        return img.convert("RGB")

    bands = img.getbands()
    if len(bands) < 3:
        raise DecodeError(path, DecodeKind.INSUFFICIENT_CHANNELS, f"mode {mode} has {len(bands)} channel(s)")
    return img.convert("RGBA" if "A" in bands or "a" in bands else "RGB")


def load_pixels(path: Union[str, Path]) -> PixelBuffer:
    """Load image as a 3- or 4-channel PixelBuffer"""
    path = Path(path)
    try:
        with Image.open(path) as img:
            img.load()
            arr = np.array(_normalize_mode(img, path), dtype=np.uint8)
    except FileNotFoundError as e:
        raise DecodeError(path, DecodeKind.FILE_NOT_FOUND, str(e)) from e
    except UnidentifiedImageError as e:
        raise DecodeError(path, DecodeKind.UNSUPPORTED_FORMAT, str(e)) from e
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(path, DecodeKind.CORRUPT_DATA, str(e)) from e

    return PixelBuffer(arr)


def save_rgba(buffer: PixelBuffer, path: Path) -> None:
    """Save an RGBA buffer as PNG. The parent directory must already exist."""
    if buffer.channels != 4:
        raise ValueError(f"save_rgba requires a 4-channel buffer, got {buffer.channels}")
    try:
        Image.fromarray(buffer.pixels).save(path, format="PNG")
    except (OSError, ValueError) as e:
        raise EncodeError(path, str(e)) from e


# ============================================================================
# Background color estimation
# ============================================================================

def _pack_rgba(pixels: np.ndarray) -> np.ndarray:
    """Pack (N, 3|4) uint8 rows into uint32 RGBA keys; missing alpha is 255"""
    p = pixels.astype(np.uint32)
    alpha = p[:, 3] if pixels.shape[1] == 4 else np.uint32(255)
    return (p[:, 0] << 24) | (p[:, 1] << 16) | (p[:, 2] << 8) | alpha


def _unpack_rgba(key: int) -> Pixel:
    key = int(key)
    return Pixel((key >> 24) & 0xFF, (key >> 16) & 0xFF, (key >> 8) & 0xFF, key & 0xFF)


def estimate_background(buffer: PixelBuffer) -> Pixel:
    """
    Estimate background color
    Strategy: the most frequent exact RGBA value among pixels that are not fully transparent

    Ties go to the color that reached the winning count first in row-major order,
    i.e. a color only takes the lead by strictly exceeding the current leader.

    Returns:
        Pixel, opaque white if no pixel qualifies
    """
    flat = buffer.pixels.reshape(-1, buffer.channels)
    if buffer.channels == 4:
        flat = flat[flat[:, 3] != 0]
    if flat.shape[0] == 0:
        return Pixel.white()

    packed = _pack_rgba(flat)

    # Unique over the reversed scan gives each color's last occurrence
    keys, rev_first, counts = np.unique(packed[::-1], return_index=True, return_counts=True)
    last_seen = packed.shape[0] - 1 - rev_first

    leaders = counts == counts.max()
    winner = keys[leaders][np.argmin(last_seen[leaders])]
    return _unpack_rgba(winner)


# ============================================================================
# Content bounding box
# ============================================================================

def background_mask(
    buffer: PixelBuffer,
    background: Pixel,
    alpha_threshold: int = DEFAULT_ALPHA_THRESHOLD,
) -> np.ndarray:
    """
    Boolean (H, W) mask of background pixels
    A pixel is background if it equals the background color exactly, or
    (RGBA only) its alpha is below alpha_threshold whatever its color.
    """
    arr = buffer.pixels
    target_rgb = np.array(background[:3], dtype=np.uint8)
    rgb_equal = np.all(arr[..., :3] == target_rgb, axis=-1)

    if buffer.channels == 4:
        alpha = arr[..., 3]
        return (rgb_equal & (alpha == background.a)) | (alpha < alpha_threshold)

    # 3-channel pixels are opaque
    return rgb_equal & (background.a == 255)


def detect_bbox(
    buffer: PixelBuffer,
    background: Pixel,
    alpha_threshold: int = DEFAULT_ALPHA_THRESHOLD,
) -> BoundingBox:
    """
    Tight box around all non-background pixels

    Returns:
        BoundingBox, BoundingBox.empty() if there is no content
    """
    content = ~background_mask(buffer, background, alpha_threshold)

    rows = np.flatnonzero(content.any(axis=1))
    if rows.size == 0:
        return BoundingBox.empty()
    cols = np.flatnonzero(content.any(axis=0))

    return BoundingBox(
        top=int(rows[0]),
        left=int(cols[0]),
        bottom=int(rows[-1]),
        right=int(cols[-1]),
    )


# ============================================================================
# Crop
# ============================================================================

def crop(buffer: PixelBuffer, box: BoundingBox) -> PixelBuffer:
    """
    Copy box out of buffer into a new RGBA buffer
    3-channel sources get alpha 255.

    Raises:
        ValueError: box is empty or outside the buffer
        AllocationError: not enough memory for the result
    """
    if not box.fits(buffer.width, buffer.height):
        raise ValueError(f"Invalid crop box {box} for {buffer.width}x{buffer.height} buffer")

    try:
        out = np.empty((box.height, box.width, 4), dtype=np.uint8)
    except MemoryError as e:
        raise AllocationError(f"Cannot allocate {box.width}x{box.height} crop buffer") from e

    region = buffer.pixels[box.top:box.bottom + 1, box.left:box.right + 1]
    out[..., :3] = region[..., :3]
    if buffer.channels == 4:
        out[..., 3] = region[..., 3]
    else:
        out[..., 3] = 255

    return PixelBuffer(out)


# ============================================================================
# Scale
# ============================================================================

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def fit_size(width: int, height: int, target_width: int, target_height: int) -> Tuple[int, int]:
    """
    Largest size with the aspect ratio of width x height that fits the target box
    Each side is at least 1.
    """
    if width <= 0 or height <= 0:
        raise ResampleError(f"Cannot scale an empty {width}x{height} image")
    if target_width <= 0 or target_height <= 0:
        raise ResampleError(f"Invalid target size {target_width}x{target_height}")

    factor = min(target_width / width, target_height / height)
    out_w = max(1, _round_half_up(width * factor))
    out_h = max(1, _round_half_up(height * factor))
    return out_w, out_h


def scale(
    buffer: PixelBuffer,
    target_width: int,
    target_height: int,
    resample: str = DEFAULT_RESAMPLE,
) -> PixelBuffer:
    """
    Resample buffer to fit inside target_width x target_height, keeping aspect ratio

    Args:
        buffer: Source buffer (3 or 4 channels)
        target_width, target_height: Bounding box of the result
        resample: Pillow filter name, see RESAMPLE_MODES

    Returns:
        RGBA PixelBuffer

    Raises:
        ResampleError: invalid sizes or resampler failure
        AllocationError: not enough memory for the result
    """
    out_w, out_h = fit_size(buffer.width, buffer.height, target_width, target_height)

    try:
        filter_ = RESAMPLE_MODES[resample]
    except KeyError:
        raise ResampleError(f"Unknown resample filter: {resample}") from None

    try:
        img = Image.fromarray(buffer.pixels)
        if img.mode != "RGBA":
            img = img.convert("RGBA")
        resized = img.resize((out_w, out_h), resample=filter_)
        out = np.array(resized, dtype=np.uint8)
    except MemoryError as e:
        raise AllocationError(f"Cannot allocate {out_w}x{out_h} scaled buffer") from e
    except ValueError as e:
        raise ResampleError(str(e)) from e

    return PixelBuffer(out)


# ============================================================================
# Convenience functions
# ============================================================================

def locate_content(buffer: PixelBuffer, params: TrimParams) -> Tuple[Pixel, BoundingBox]:
    """
    Pick the background color (fixed or estimated) and find the content box

    Raises:
        NoContentError: nothing but background in the image
    """
    if params.background is not None:
        background = params.background
    else:
        background = estimate_background(buffer)
    logger.debug("Background color %s", background.hex())

    box = detect_bbox(buffer, background, params.alpha_threshold)
    if box.is_empty:
        raise NoContentError(f"No content found against background {background.hex()}")
    logger.debug("Content box %s", box)
    return background, box


def trim_image(buffer: PixelBuffer, params: TrimParams) -> TrimResult:
    """
    Run background estimation, box detection, crop and scale on one buffer
    The caller keeps buffer alive; file-to-file processing goes through
    process_single, which drops the decoded source before scaling.

    Raises:
        NoContentError: nothing but background in the image
        AllocationError, ResampleError: crop/scale failures
    """
    background, box = locate_content(buffer, params)
    cropped = crop(buffer, box)
    scaled = scale(cropped, params.target_width, params.target_height, params.resample)

    return TrimResult(
        background=background,
        box=box,
        cropped_size=cropped.size,
        buffer=scaled,
    )


def process_single(input_path: Path, output_path: Path, params: TrimParams) -> TrimResult:
    """
    Load, trim, scale and save one image
    At most two pixel buffers are alive at a time: source and crop, then crop and result.

    Returns:
        TrimResult
    """
    buffer = load_pixels(input_path)
    background, box = locate_content(buffer, params)
    cropped = crop(buffer, box)
    del buffer

    cropped_size = cropped.size
    scaled = scale(cropped, params.target_width, params.target_height, params.resample)
    del cropped

    save_rgba(scaled, output_path)
    return TrimResult(
        background=background,
        box=box,
        cropped_size=cropped_size,
        buffer=scaled,
    )
