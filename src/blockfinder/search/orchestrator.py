"""Parallel search over a set of region files."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from blockfinder.models import ChunkResult, FileOutcome, SearchRequest, SearchStats
from blockfinder.search.scanner import scan_region

LOGGER = logging.getLogger(__name__)

OutcomeCallback = Callable[[FileOutcome], None]


@dataclass(slots=True)
class SearchReport:
    """Outcomes of a run, in the order the files were submitted."""

    outcomes: List[FileOutcome] = field(default_factory=list)
    stats: SearchStats = field(default_factory=SearchStats)

    @property
    def results(self) -> List[ChunkResult]:
        return [result for outcome in self.outcomes for result in outcome.results]

    @property
    def failures(self) -> List[FileOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]


class BlockSearch:
    """Fans a search request out over region files, one task per file."""

    def __init__(
        self,
        request: SearchRequest,
        *,
        workers: Optional[int] = None,
        fail_fast: bool = False,
    ) -> None:
        self.request = request
        self.workers = workers
        self.fail_fast = fail_fast

    def run(
        self, paths: Sequence[Path], on_outcome: Optional[OutcomeCallback] = None
    ) -> SearchReport:
        """Scan every path and collect the outcomes.

        A failing file is recorded in its outcome and the other files carry on,
        unless ``fail_fast`` is set, in which case the first error is raised.
        """
        if not paths:
            LOGGER.warning("No region files to scan")
            return SearchReport()

        if self.workers == 1:
            outcomes = self._run_serial(paths, on_outcome)
        else:
            outcomes = self._run_parallel(paths, on_outcome)

        report = SearchReport(outcomes=outcomes)
        for outcome in outcomes:
            report.stats.increment(outcome)
        LOGGER.debug(
            "Scanned %d, pruned %d, failed %d region files; %d chunks matched",
            report.stats.scanned,
            report.stats.pruned,
            report.stats.failed,
            report.stats.chunks,
        )
        return report

    def _scan(self, path: Path) -> FileOutcome:
        return scan_region(path, self.request.block, self.request.distance_filter)

    def _handle(self, outcome: FileOutcome, on_outcome: Optional[OutcomeCallback]) -> None:
        if on_outcome is not None:
            on_outcome(outcome)
        if not outcome.ok:
            LOGGER.error("Failed to scan %s: %s", outcome.path, outcome.error)
            if self.fail_fast:
                raise outcome.error

    def _run_serial(
        self, paths: Sequence[Path], on_outcome: Optional[OutcomeCallback]
    ) -> List[FileOutcome]:
        outcomes: List[FileOutcome] = []
        for path in paths:
            outcome = self._scan(path)
            self._handle(outcome, on_outcome)
            outcomes.append(outcome)
        return outcomes

    def _run_parallel(
        self, paths: Sequence[Path], on_outcome: Optional[OutcomeCallback]
    ) -> List[FileOutcome]:
        distance_filter = self.request.distance_filter
        slots: Dict[Future, int] = {}
        outcomes: List[Optional[FileOutcome]] = [None] * len(paths)

        with ProcessPoolExecutor(max_workers=self.workers) as executor:
            for index, path in enumerate(paths):
                future = executor.submit(scan_region, path, self.request.block, distance_filter)
                slots[future] = index
            try:
                for future in as_completed(slots):
                    outcome = future.result()
                    outcomes[slots[future]] = outcome
                    self._handle(outcome, on_outcome)
            except BaseException:
                executor.shutdown(wait=True, cancel_futures=True)
                raise

        return [outcome for outcome in outcomes if outcome is not None]
