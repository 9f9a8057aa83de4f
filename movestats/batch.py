"""
Bulk demo processing.

One task per demo file, at most `max_concurrent` running at a time. Each task is isolated: anything it raises is
recorded on its FileOutcome, its report file is removed, and the batch carries on with the rest.
"""

from __future__ import annotations

import concurrent.futures
import multiprocessing
import os
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from .config import Config
from .log import log
from .stats.move_computer import analyze_demo, get_report_path
from .stats.stat_types import MoveReport


@dataclass
class FileOutcome:
    """Result of analyzing a single demo. `error` is None on success."""

    path: Path
    error: BaseException | None = None
    report: MoveReport | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class BatchResult:
    """Every outcome of a batch run, in completion order."""

    outcomes: list[FileOutcome] = field(default_factory=list)

    @property
    def successful(self) -> list[FileOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.failed]

    @property
    def failed(self) -> list[FileOutcome]:
        return [outcome for outcome in self.outcomes if outcome.failed]

    def __len__(self):
        return len(self.outcomes)


def find_demos(root: os.PathLike | str, extension: str = ".dem") -> Iterator[Path]:
    """Yields `root` itself if it is a file, otherwise every file under `root` with the given extension.

    The directory is walked lazily so work can start before the walk finishes. Errors reading a directory are not
    caught; they end the walk."""
    root = Path(root)
    if root.is_file():
        yield root
        return

    with os.scandir(root) as entries:
        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                yield from find_demos(entry.path, extension)
            elif entry.is_file() and os.path.splitext(entry.name)[1] == extension:
                yield Path(entry.path)


def _run_task(analyze: Callable[..., MoveReport], path: Path, config: Config) -> FileOutcome:
    # Runs inside the worker. Nothing may escape from here.
    try:
        report = analyze(path, config=config)
    except (KeyboardInterrupt, SystemExit):
        raise
    except BaseException as exc:
        # decoder panics surface as BaseException subclasses
        log.error(f"Failed to analyze {path}: {exc}")
        _discard_report(path, config)
        return FileOutcome(path, error=exc)
    return FileOutcome(path, report=report)


def _discard_report(path: Path, config: Config):
    try:
        get_report_path(path, config.report_extension).unlink(missing_ok=True)
    except OSError as exc:
        log.warning(f"Could not remove partial report for {path}: {exc}")


class BatchRunner:
    """
    Analyzes many demos with bounded parallelism.

    Usage:
        runner = BatchRunner(max_concurrent=4)
        result = runner.run(find_demos("demos/"))
        for outcome in result.failed:
            print(outcome.path, outcome.error)

    Attributes:
        max_concurrent : int
            Worker count, i.e. the most demos decoded at the same time
        use_processes : bool
            Process workers when True, thread workers when False
        analyze : Callable
            Called as analyze(path, config=config) for each demo. Must be picklable when using processes.
        on_submit : Callable[[Path], None] | None
            Called from the submitting thread as each demo is queued
        on_complete : Callable[[FileOutcome], None] | None
            Called from the submitting thread as each demo finishes, in completion order
    """

    def __init__(
        self,
        max_concurrent: int | None = None,
        use_processes: bool | None = None,
        analyze: Callable[..., MoveReport] = analyze_demo,
        config: Config | None = None,
        on_submit: Callable[[Path], None] | None = None,
        on_complete: Callable[[FileOutcome], None] | None = None,
    ):
        self.config = config if config is not None else Config()
        self.max_concurrent = max_concurrent if max_concurrent is not None else self.config.max_concurrent
        if self.max_concurrent < 1:
            raise ValueError(f"max_concurrent must be at least 1, got {self.max_concurrent}")
        self.use_processes = use_processes if use_processes is not None else self.config.use_processes
        self.analyze = analyze
        self.on_submit = on_submit
        self.on_complete = on_complete

    def _executor(self) -> concurrent.futures.Executor:
        if self.use_processes:
            # forked workers deadlock once the parent has used polars
            return concurrent.futures.ProcessPoolExecutor(
                max_workers=self.max_concurrent, mp_context=multiprocessing.get_context("spawn")
            )
        return concurrent.futures.ThreadPoolExecutor(max_workers=self.max_concurrent)

    def run(self, paths: Iterable[os.PathLike | str]) -> BatchResult:
        """Analyzes every path. `paths` is consumed while workers are already running, so it can be a lazy walk.

        Returns:
            BatchResult with one FileOutcome per path
        Raises:
            Whatever iterating `paths` raises. Queued demos are dropped, running ones are allowed to finish.
        """
        result = BatchResult()

        with self._executor() as executor:
            futures = {}
            try:
                for path in paths:
                    path = Path(path)
                    if self.on_submit:
                        self.on_submit(path)
                    futures[executor.submit(_run_task, self.analyze, path, self.config)] = path
            except BaseException:
                executor.shutdown(wait=True, cancel_futures=True)
                raise

            for future in concurrent.futures.as_completed(futures):
                path = futures[future]
                try:
                    outcome = future.result()
                except (KeyboardInterrupt, SystemExit):
                    raise
                except BaseException as exc:
                    # the worker itself died, e.g. a broken process pool
                    log.error(f"Worker for {path} failed: {exc}")
                    _discard_report(path, self.config)
                    outcome = FileOutcome(path, error=exc)

                result.outcomes.append(outcome)
                if self.on_complete:
                    self.on_complete(outcome)

        log.info(f"Batch complete: {len(result.successful)}/{len(result)} successful")
        return result


def get_stats(
    source: os.PathLike | str,
    max_concurrent: int | None = None,
    config: Config | None = None,
) -> BatchResult:
    """Analyzes a single demo or every demo under a directory and writes a report next to each one.

    Args:
        source : os.PathLike | str
            Demo file, or directory to search recursively
        max_concurrent : int | None
            Defaults to config.max_concurrent
        config : Config | None
            Defaults to Config.from_env()
    Returns:
        BatchResult
    """
    if config is None:
        config = Config.from_env()
    runner = BatchRunner(max_concurrent=max_concurrent, config=config)
    return runner.run(find_demos(source, config.extension))
