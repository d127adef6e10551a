"""
autotrim/pipeline.py
Task orchestration:
- Resolve inputs and output paths
- Sequential or parallel processing
- dry-run mode
- Report aggregation
"""

import logging
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from tqdm import tqdm

from .errors import DirectoryError, TrimError
from .imageops import crop, load_pixels, locate_content, save_rgba, scale
from .sources import InputSource, PathListSource, find_collisions, output_path_for
from .trimtypes import (
    FailReason,
    JobStatus,
    ProcessReport,
    ReportItem,
    TrimParams,
)

logger = logging.getLogger(__name__)


def ensure_output_dir(output_root: Path) -> None:
    """
    Create the output directory if absent

    Raises:
        DirectoryError: path exists but is not a directory, or cannot be created
    """
    if output_root.exists() and not output_root.is_dir():
        raise DirectoryError(output_root, "exists but is not a directory")
    try:
        output_root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryError(output_root, str(e)) from e


def _process_job_impl(input_path: Path, output_path: Path, params: TrimParams) -> ReportItem:
    """
    Process single image (worker function)
    Every per-image error ends up in the returned ReportItem.
    """
    start_time = time.perf_counter()
    item = ReportItem(status=JobStatus.FAILED, input_path=input_path)

    try:
        buffer = load_pixels(input_path)
        item.source_size = buffer.size
        item.channels = buffer.channels

        item.background, item.box = locate_content(buffer, params)
        cropped = crop(buffer, item.box)
        del buffer

        item.cropped_size = cropped.size
        scaled = scale(cropped, params.target_width, params.target_height, params.resample)
        del cropped
        item.output_size = scaled.size

        item.output_path = output_path
        save_rgba(scaled, output_path)
    except TrimError as e:
        item.reason = e.reason
        item.extra["error"] = str(e)
    except Exception as e:
        item.reason = FailReason.UNKNOWN
        item.extra["error"] = f"Unknown error: {e!r}"
    else:
        item.status = JobStatus.SUCCESS

    item.elapsed_ms = (time.perf_counter() - start_time) * 1000
    return item


# Top-level function for multiprocessing
def _worker_process_job(args):
    """Worker process function"""
    input_path, output_path, params = args
    return _process_job_impl(input_path, output_path, params)


def _log_item(item: ReportItem) -> None:
    """One log record per image outcome"""
    if item.is_success:
        logger.info(
            "OK %s: %sx%s ch=%s bg=%s box=(x=%d, y=%d, w=%d, h=%d) -> %sx%s %s",
            item.input_path,
            *item.source_size,
            item.channels,
            item.background.hex(),
            item.box.left,
            item.box.top,
            item.box.width,
            item.box.height,
            *item.output_size,
            item.output_path,
        )
    else:
        logger.info(
            "FAILED %s: %s (%s) size=%s box=%s",
            item.input_path,
            item.reason.value,
            item.error,
            item.source_size,
            item.box,
        )


class Pipeline:
    """
    Processing pipeline
    """

    def __init__(
        self,
        source: InputSource,
        output_root: Path,
        params: Optional[TrimParams] = None,
        workers: int = 1,
        dry_run: bool = False,
        progress: bool = False,
    ):
        self.source = source
        self.output_root = Path(output_root)
        self.params = params or TrimParams()
        self.workers = workers
        self.dry_run = dry_run
        self.progress = progress

        self.jobs: List[Tuple[Path, Path]] = []
        self.report = ProcessReport()

    def resolve(self) -> List[Tuple[Path, Path]]:
        """Resolve (input, output) pairs"""
        inputs = self.source.paths()
        self.jobs = [
            (p, output_path_for(p, self.output_root, self.params.suffix))
            for p in inputs
        ]
        for out, ins in find_collisions(inputs, self.output_root, self.params.suffix).items():
            logger.warning(
                "%d inputs map to %s; later files overwrite earlier ones: %s",
                len(ins), out, ", ".join(str(p) for p in ins),
            )
        return self.jobs

    def _record_dry_run(self) -> None:
        for input_path, output_path in self.jobs:
            self.report.add(ReportItem(
                status=JobStatus.SKIPPED,
                reason=FailReason.DRY_RUN,
                input_path=input_path,
                output_path=output_path,
            ))
            logger.info("DRY RUN %s -> %s", input_path, output_path)

    def _run_sequential(self) -> None:
        for input_path, output_path in tqdm(self.jobs, desc="Processing", disable=not self.progress):
            item = _process_job_impl(input_path, output_path, self.params)
            _log_item(item)
            self.report.add(item)

    def _run_parallel(self) -> None:
        args_list = [(i, o, self.params) for i, o in self.jobs]
        results: List[Optional[ReportItem]] = [None] * len(args_list)

        with ProcessPoolExecutor(max_workers=self.workers) as executor:
            futures = {
                executor.submit(_worker_process_job, args): idx
                for idx, args in enumerate(args_list)
            }

            for future in tqdm(as_completed(futures), total=len(futures), desc="Processing",
                               disable=not self.progress):
                idx = futures[future]
                input_path, output_path = self.jobs[idx]
                try:
                    item = future.result()
                except Exception as e:
                    item = ReportItem(
                        status=JobStatus.FAILED,
                        reason=FailReason.UNKNOWN,
                        input_path=input_path,
                        extra={"error": f"Process execution failed: {e!r}"},
                    )
                _log_item(item)
                results[idx] = item

        # Report in input order
        for item in results:
            self.report.add(item)

    def run(self) -> ProcessReport:
        """
        Execute processing pipeline

        Raises:
            DirectoryError: output directory unusable; nothing is processed
        """
        if not self.jobs:
            self.resolve()

        if not self.jobs:
            logger.info("No input files, nothing to do")
            return self.report

        if self.dry_run:
            self._record_dry_run()
            return self.report

        ensure_output_dir(self.output_root)
        logger.info("Processing %d file(s) into %s", len(self.jobs), self.output_root)

        if self.workers <= 1 or len(self.jobs) == 1:
            self._run_sequential()
        else:
            self._run_parallel()

        logger.info(
            "Done: %d succeeded, %d failed",
            self.report.success_count,
            self.report.failed_count,
        )
        return self.report


def run_pipeline(
    inputs: Sequence[Path],
    output_root: Path,
    params: Optional[TrimParams] = None,
    workers: int = 1,
    dry_run: bool = False,
    progress: bool = False,
) -> ProcessReport:
    """
    Convenience function: run processing pipeline over an explicit list of files
    """
    pipeline = Pipeline(
        source=PathListSource(inputs),
        output_root=output_root,
        params=params,
        workers=workers,
        dry_run=dry_run,
        progress=progress,
    )
    return pipeline.run()
