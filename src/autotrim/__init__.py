"""
autotrim - Background Trim & Fit Tool

Usage:
    autotrim process ./input -o ./output
    autotrim scan ./input
    autotrim info ./image.png

    python -m autotrim process a.png b.png
"""

__version__ = "1.0.0"

from .trimtypes import (
    Pixel,
    BoundingBox,
    PixelBuffer,
    TrimParams,
    TrimResult,
    ReportItem,
    ProcessReport,
    JobStatus,
    FailReason,
)

from .errors import (
    TrimError,
    DecodeError,
    DecodeKind,
    NoContentError,
    AllocationError,
    ResampleError,
    EncodeError,
    DirectoryError,
)

from .imageops import (
    load_pixels,
    save_rgba,
    estimate_background,
    background_mask,
    detect_bbox,
    locate_content,
    crop,
    fit_size,
    scale,
    trim_image,
    process_single,
)

from .sources import (
    InputSource,
    PathListSource,
    DirectorySource,
    CompositeSource,
    source_from_args,
    scan_images,
    output_path_for,
)

from .pipeline import (
    Pipeline,
    run_pipeline,
)

__all__ = [
    # Version
    "__version__",
    # Types
    "Pixel",
    "BoundingBox",
    "PixelBuffer",
    "TrimParams",
    "TrimResult",
    "ReportItem",
    "ProcessReport",
    "JobStatus",
    "FailReason",
    # Errors
    "TrimError",
    "DecodeError",
    "DecodeKind",
    "NoContentError",
    "AllocationError",
    "ResampleError",
    "EncodeError",
    "DirectoryError",
    # Image Operations
    "load_pixels",
    "save_rgba",
    "estimate_background",
    "background_mask",
    "detect_bbox",
    "locate_content",
    "crop",
    "fit_size",
    "scale",
    "trim_image",
    "process_single",
    # Sources
    "InputSource",
    "PathListSource",
    "DirectorySource",
    "CompositeSource",
    "source_from_args",
    "scan_images",
    "output_path_for",
    # Pipeline
    "Pipeline",
    "run_pipeline",
]
