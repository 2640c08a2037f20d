"""Bounded-concurrency ingestion of many repositories."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Union

from git_log_sqlite.core.errors import IngestionError
from git_log_sqlite.core.persistence import PersistenceGateway
from git_log_sqlite.core.progress import NullProgressReporter, Phase, ProgressReporter
from git_log_sqlite.core.repository import UninitializedRepository
from git_log_sqlite.models.outcome import (
    BatchSummary,
    IngestionOutcome,
    Skipped,
    SkipReason,
    Stored,
)

logger = logging.getLogger(__name__)

DEFAULT_NUM_WORKERS = 8


class IngestionOrchestrator:
    """Runs open -> analyze -> store for each candidate directory.

    Every directory becomes exactly one outcome: a failure in one task is
    turned into a ``Skipped`` value and never reaches sibling tasks.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        *,
        num_workers: int = DEFAULT_NUM_WORKERS,
        author_map: Optional[Mapping[str, str]] = None,
        reporter: Optional[ProgressReporter] = None,
    ):
        if num_workers < 1:
            raise ValueError("num_workers must be at least 1")
        self.gateway = gateway
        self.num_workers = num_workers
        self.author_map: Optional[Mapping[str, str]] = (
            MappingProxyType(dict(author_map)) if author_map else None
        )
        self.reporter = reporter or NullProgressReporter()

    def process(self, path: Union[str, Path]) -> IngestionOutcome:
        """Ingest one directory and report the result as a value."""
        path = Path(path)
        try:
            uninitialized = UninitializedRepository.try_new(path)
            identity = uninitialized.identity

            self.reporter.phase(path, Phase.OPENING)
            with uninitialized.open() as opened:
                self.reporter.phase(path, Phase.ANALYZING)
                analyzed = opened.analyze(self.author_map)

            self.reporter.phase(path, Phase.STORING)
            commit_count = self.gateway.store(analyzed)
        except IngestionError as e:
            logger.warning("Skipping %s (%s): %s", path, e.reason.value, e.message)
            return Skipped(path=path, reason=e.reason, detail=e.message)
        except Exception as e:
            logger.exception("Unexpected failure while ingesting %s", path)
            return Skipped(path=path, reason=SkipReason.UNEXPECTED, detail=str(e))

        logger.info("Stored %s with %d commits", identity.name, commit_count)
        return Stored(identity=identity, commit_count=commit_count)

    def run(self, directories: Iterable[Union[str, Path]]) -> BatchSummary:
        """Process all directories and wait for every task before summarizing."""
        paths = [Path(d) for d in directories]
        started = time.monotonic()
        outcomes: List[IngestionOutcome] = []

        self.reporter.start(len(paths))
        try:
            with ThreadPoolExecutor(max_workers=self.num_workers) as executor:
                futures = [executor.submit(self.process, path) for path in paths]
                for future in as_completed(futures):
                    outcomes.append(future.result())
                    self.reporter.advance()
        finally:
            self.reporter.finish()

        summary = BatchSummary.from_outcomes(outcomes, time.monotonic() - started)
        logger.info(
            "Processed %d directories: %d stored, %d skipped in %.2fs",
            summary.processed_count,
            summary.stored_count,
            summary.skipped_count,
            summary.elapsed_seconds,
        )
        return summary
