"""Sequence fetch, discovery and batched analysis for one session."""

import logging
import time
from collections import OrderedDict
from typing import Any, Optional

from pydantic import BaseModel

from novelgraph.analysis.config import AnalysisConfig, default_config
from novelgraph.analysis.exceptions import FetchError, RunError
from novelgraph.analysis.fetcher import DocumentFetcher
from novelgraph.analysis.merger import merge_with_stats
from novelgraph.analysis.models import (
    AnalysisResult,
    RunState,
    StreamingUpdate,
    UpdateType,
)
from novelgraph.analysis.oracle import ExtractionOracle
from novelgraph.analysis.progress import ProgressReporter
from novelgraph.analysis.registry import RegistryBuilder
from novelgraph.analysis.scheduler import BatchScheduler
from novelgraph.analysis.segmenter import TextSegmenter

logger = logging.getLogger(__name__)


class AnalysisRun(BaseModel):
    """Status of one analysis run."""

    session_id: str
    document_id: str
    state: RunState = RunState.FETCHING
    character_count: int = 0
    batches_completed: int = 0
    total_batches: int = 0
    dropped_interactions: int = 0
    error: Optional[str] = None
    result: Optional[AnalysisResult] = None
    started_at: float = 0.0
    finished_at: Optional[float] = None


class AnalysisOrchestrator:
    """Run the full character network analysis for a document."""

    def __init__(
        self,
        fetcher: DocumentFetcher,
        oracle: ExtractionOracle,
        reporter: ProgressReporter,
        config: Optional[AnalysisConfig] = None,
    ):
        """Initialize the orchestrator.

        Args:
            fetcher: Source of document text.
            oracle: Extraction oracle for discovery and analysis.
            reporter: Progress reporter for session events.
            config: Analysis configuration. Uses defaults if None.
        """
        self.fetcher = fetcher
        self.reporter = reporter
        self.config = config or default_config

        self.segmenter = TextSegmenter.from_config(self.config)
        self.registry_builder = RegistryBuilder(oracle, self.config)
        self.scheduler = BatchScheduler(oracle, self.config)

        self.runs: OrderedDict[str, AnalysisRun] = OrderedDict()

    def get_run(self, session_id: str) -> Optional[AnalysisRun]:
        return self.runs.get(session_id)

    def _track(self, run: AnalysisRun) -> None:
        """Record a run, evicting the oldest finished runs past the limit."""
        self.runs.pop(run.session_id, None)
        self.runs[run.session_id] = run

        finished = [
            session_id
            for session_id, tracked in self.runs.items()
            if tracked.state in (RunState.COMPLETE, RunState.ERRORED)
        ]
        excess = len(self.runs) - self.config.max_tracked_runs
        for session_id in finished[:max(excess, 0)]:
            del self.runs[session_id]

    async def run(self, session_id: str, document_id: str) -> AnalysisRun:
        """Analyze a document, publishing progress to the session.

        Failures are reported as a single ``error`` update and recorded on the
        returned run; they are not re-raised.
        """
        run = AnalysisRun(
            session_id=session_id,
            document_id=document_id,
            started_at=time.time(),
        )
        self._track(run)
        logger.info(f"Starting analysis for session {session_id}, document {document_id}")

        try:
            await self._execute(run)
        except FetchError as e:
            await self._fail(run, e)
        except Exception as e:
            logger.exception(f"Unexpected failure in session {session_id}")
            await self._fail(run, RunError(str(e)))

        run.finished_at = time.time()
        return run

    async def _execute(self, run: AnalysisRun) -> None:
        session_id = run.session_id

        await self._progress(session_id, "Fetching book and identifying characters...")
        text = await self.fetcher.fetch(run.document_id)

        run.state = RunState.DISCOVERING
        await self._progress(session_id, "Discovering main characters...")
        registry = await self.registry_builder.build(text)
        run.character_count = len(registry)

        run.state = RunState.ANALYZING
        await self._progress(
            session_id,
            f"Found {len(registry)} main characters. Starting detailed analysis...",
            data={"characterCount": len(registry), "registry": registry.to_dict()},
        )

        windows = self.segmenter.split(text)
        all_results: list[AnalysisResult] = []

        async def on_batch_start(batch_index: int, total_batches: int) -> None:
            run.total_batches = total_batches
            await self.reporter.publish(
                session_id,
                StreamingUpdate(
                    type=UpdateType.PROGRESS,
                    message=f"Analyzing interactions: Batch {batch_index + 1}/{total_batches}",
                    batch_index=batch_index,
                    total_batches=total_batches,
                ),
            )

        async def on_batch_complete(batch_index: int, total_batches: int, results: list[AnalysisResult]) -> None:
            all_results.extend(results)
            snapshot, dropped = merge_with_stats(all_results, registry)
            run.batches_completed = batch_index + 1
            run.dropped_interactions = dropped
            run.result = snapshot

            await self.reporter.publish(
                session_id,
                StreamingUpdate(
                    type=UpdateType.BATCH_COMPLETE,
                    batch_index=batch_index,
                    total_batches=total_batches,
                    data={
                        **snapshot.model_dump(),
                        "batchIndex": batch_index,
                        "totalBatches": total_batches,
                        "isComplete": batch_index == total_batches - 1,
                        "droppedInteractions": dropped,
                    },
                ),
            )

        await self.scheduler.run(
            windows,
            registry,
            on_batch_start=on_batch_start,
            on_batch_complete=on_batch_complete,
        )

        final, dropped = merge_with_stats(all_results, registry)
        run.result = final
        run.dropped_interactions = dropped
        run.state = RunState.COMPLETE

        logger.info(
            f"Analysis complete for session {session_id}: "
            f"{len(final.characters)} characters, {len(final.interactions)} interactions"
        )
        await self.reporter.publish(
            session_id,
            StreamingUpdate(
                type=UpdateType.ANALYSIS_COMPLETE,
                message="Character network analysis complete!",
                data={**final.model_dump(), "droppedInteractions": dropped},
            ),
        )

    async def _progress(
        self,
        session_id: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
    ) -> None:
        await self.reporter.publish(
            session_id,
            StreamingUpdate(type=UpdateType.PROGRESS, message=message, data=data),
        )

    async def _fail(self, run: AnalysisRun, error: Exception) -> None:
        logger.error(f"Analysis failed for session {run.session_id}: {error}")
        run.state = RunState.ERRORED
        run.error = str(error)
        await self.reporter.publish(
            run.session_id,
            StreamingUpdate(type=UpdateType.ERROR, message=f"Analysis failed: {error}"),
        )
