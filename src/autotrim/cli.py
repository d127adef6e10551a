"""
autotrim/cli.py
Command-line interface (using click)
"""

import json
import logging
import re
import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from . import __version__
from .errors import DirectoryError, TrimError
from .imageops import estimate_background, detect_bbox, fit_size, load_pixels
from .pipeline import Pipeline
from .sources import output_path_for, source_from_args
from .trimtypes import Pixel, TrimParams, RESAMPLE_FILTERS

_DEFAULTS = TrimParams()
_DEFAULT_SIZE = f"{_DEFAULTS.target_width}x{_DEFAULTS.target_height}"


def parse_size(size_str: str) -> Tuple[int, int]:
    """
    Parse "WxH" (also "W,H" or "W H")
    """
    match = re.fullmatch(r"\s*(\d+)\s*[xX, ]\s*(\d+)\s*", size_str)
    if not match:
        raise ValueError(f"Unable to parse size: {size_str}")
    w, h = int(match.group(1)), int(match.group(2))
    if w <= 0 or h <= 0:
        raise ValueError(f"Size must be positive: {size_str}")
    return w, h


def _size_callback(ctx, param, value):
    if value is None:
        return None
    try:
        return parse_size(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _color_callback(ctx, param, value):
    if value is None or value.strip().lower() == "auto":
        return None
    try:
        return Pixel.parse(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


def setup_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.group()
@click.version_option(version=__version__, prog_name="autotrim")
def cli():
    """
    Image Trim & Fit Tool

    Detects each image's solid background color, crops away the border
    around the content and scales the result into a fixed box as RGBA PNG.

    \b
    Common Examples:

      # Trim selected files into ./output (default 360x180 box)
      autotrim process a.png b.jpg

      # Whole directory, recursively, custom box
      autotrim process ./input -r -o ./trimmed --size 512x256

      # Force a white background instead of estimating it
      autotrim process ./input --bg-color white

      # Parallel processing + JSON report
      autotrim process ./input -j 4 -v --report-json report.json

      # Preview inputs and output names
      autotrim scan ./input -o ./trimmed
    """
    pass


@cli.command()
@click.argument("inputs", nargs=-1, type=click.Path(path_type=Path))
@click.option("-o", "--output", "output_dir", type=click.Path(path_type=Path), default=Path("output"),
              envvar="AUTOTRIM_OUTPUT", show_default=True,
              help="Output directory, created if absent")
@click.option("-r", "--recursive", is_flag=True,
              help="Recursively scan directories given as inputs")
@click.option("--size", "size", default=_DEFAULT_SIZE, envvar="AUTOTRIM_SIZE", show_default=True,
              callback=_size_callback,
              help="Target box WxH; output keeps the aspect ratio and fits inside it")
@click.option("--alpha-threshold", type=click.IntRange(0, 256), default=_DEFAULTS.alpha_threshold, show_default=True,
              help="Pixels with alpha below this value count as background (RGBA images only)")
@click.option("--resample", type=click.Choice(RESAMPLE_FILTERS), default=_DEFAULTS.resample, show_default=True,
              help="Resampling filter used for scaling")
@click.option("--suffix", default=_DEFAULTS.suffix, show_default=True,
              help="Appended to the input file stem to form the output name")
@click.option("--bg-color", default=None, callback=_color_callback,
              help="Background color: auto (estimate per image), black, white, #RRGGBB[AA], rgb(r,g,b) (default: auto)")
@click.option("-j", "--jobs", type=click.IntRange(min=1), default=1, show_default=True,
              help="Number of parallel processes")
@click.option("--dry-run", is_flag=True,
              help="Preview mode: list inputs and output paths without processing")
@click.option("-v", "--verbose", count=True,
              help="Per-image log lines (-v), stage details (-vv)")
@click.option("--report-json", type=click.Path(path_type=Path), default=None,
              help="Save processing report to specified JSON file")
def process(
    inputs: Tuple[Path, ...],
    output_dir: Path,
    recursive: bool,
    size: Tuple[int, int],
    alpha_threshold: int,
    resample: str,
    suffix: str,
    bg_color: Optional[Pixel],
    jobs: int,
    dry_run: bool,
    verbose: int,
    report_json: Optional[Path],
):
    """
    Trim and scale images

    INPUTS: image files and/or directories containing images.

    \b
    Processing Flow:
      1. Estimate background color (most frequent opaque color)
      2. Find the bounding box of non-background pixels
      3. Crop to the box as RGBA
      4. Scale into the target box, keeping aspect ratio
      5. Save as <name><suffix>.png in the output directory

    \b
    Exit status: 0 all succeeded, 1 some failed, 2 output directory unusable
    """
    setup_logging(verbose)

    params = TrimParams(
        target_width=size[0],
        target_height=size[1],
        alpha_threshold=alpha_threshold,
        resample=resample,
        suffix=suffix,
        background=bg_color,
    )

    pipeline = Pipeline(
        source=source_from_args(inputs, recursive),
        output_root=output_dir,
        params=params,
        workers=jobs,
        dry_run=dry_run,
        progress=True,
    )

    if not pipeline.resolve():
        click.echo("No input files. Nothing to do.")
        return

    click.echo(f"Input files: {len(pipeline.jobs)}")
    click.echo(f"Output directory: {output_dir}")
    click.echo(f"Target box: {params.target_width}x{params.target_height}")
    click.echo()

    try:
        report = pipeline.run()
    except DirectoryError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)
    except KeyboardInterrupt:
        click.echo("\nUser cancelled")
        sys.exit(130)

    if dry_run:
        for item in report.items:
            click.echo(f"{item.input_path} -> {item.output_path}")
    else:
        for item in report.items:
            if not item.is_success:
                click.echo(f"  FAILED {item.input_path.name}: {item.reason.value} ({item.error})", err=True)

    click.echo()
    click.echo(report.summary())

    if report_json:
        report_json.parent.mkdir(parents=True, exist_ok=True)
        with open(report_json, "w", encoding="utf-8") as f:
            json.dump(report.to_dict(), f, ensure_ascii=False, indent=2)
        click.echo(f"\nReport saved: {report_json}")

    if report.failed_count > 0:
        sys.exit(1)


@cli.command()
@click.argument("inputs", nargs=-1, type=click.Path(path_type=Path))
@click.option("-o", "--output", "output_dir", type=click.Path(path_type=Path), default=Path("output"),
              envvar="AUTOTRIM_OUTPUT", show_default=True, help="Output directory")
@click.option("-r", "--recursive", is_flag=True, help="Recursively scan directories")
@click.option("--suffix", default=_DEFAULTS.suffix, show_default=True, help="Output name suffix")
@click.option("--json", "as_json", is_flag=True, help="Output in JSON format for script parsing")
def scan(inputs: Tuple[Path, ...], output_dir: Path, recursive: bool, suffix: str, as_json: bool):
    """
    List the files that would be processed and their output paths

    INPUTS: image files and/or directories.
    """
    paths = source_from_args(inputs, recursive).paths()

    if as_json:
        data = [
            {"input": str(p), "output": str(output_path_for(p, output_dir, suffix))}
            for p in paths
        ]
        click.echo(json.dumps(data, ensure_ascii=False, indent=2))
        return

    click.echo(f"Found {len(paths)} file(s)")
    for i, p in enumerate(paths, 1):
        click.echo(f"[{i}] {p}")
        click.echo(f"    -> {output_path_for(p, output_dir, suffix)}")


@cli.command()
@click.argument("image_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--alpha-threshold", type=click.IntRange(0, 256), default=_DEFAULTS.alpha_threshold, show_default=True,
              help="Pixels with alpha below this value count as background")
@click.option("--size", "size", default=_DEFAULT_SIZE, envvar="AUTOTRIM_SIZE", show_default=True,
              callback=_size_callback, help="Target box WxH")
@click.option("--bg-color", default=None, callback=_color_callback,
              help="Background color instead of the estimated one: black, white, #RRGGBB[AA], rgb(r,g,b)")
def info(image_path: Path, alpha_threshold: int, size: Tuple[int, int], bg_color: Optional[Pixel]):
    """
    Display background and content analysis for one image

    IMAGE_PATH: Image file path
    """
    try:
        buffer = load_pixels(image_path)
    except TrimError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    background = bg_color if bg_color is not None else estimate_background(buffer)
    box = detect_bbox(buffer, background, alpha_threshold)

    click.echo(f"File: {image_path.name}")
    click.echo(f"Size: {buffer.width} x {buffer.height}")
    click.echo(f"Channels: {buffer.channels}")
    click.echo(f"Background: {background.hex()} {tuple(background)}")

    if box.is_empty:
        click.echo("Content box: none (image is all background)")
        sys.exit(1)

    out_w, out_h = fit_size(box.width, box.height, *size)
    click.echo(f"Content box: x={box.left}, y={box.top}, w={box.width}, h={box.height}")
    click.echo(f"Output size: {out_w} x {out_h} (box {size[0]}x{size[1]})")


def main():
    """Entry point"""
    cli()


if __name__ == "__main__":
    main()
