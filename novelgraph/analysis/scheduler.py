"""Batched, paced window analysis against a fixed character registry."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Optional

from novelgraph.analysis.config import AnalysisConfig, default_config
from novelgraph.analysis.exceptions import OracleCallError
from novelgraph.analysis.models import (
    AnalysisResult,
    Character,
    CharacterRegistry,
    Interaction,
)
from novelgraph.analysis.oracle import ExtractionOracle
from novelgraph.analysis.registry import NameResolver

logger = logging.getLogger(__name__)

# (batch_index, total_batches) -> None
BatchStartHandler = Callable[[int, int], Awaitable[None]]
# (batch_index, total_batches, batch_results) -> None
BatchCompleteHandler = Callable[[int, int, list[AnalysisResult]], Awaitable[None]]


def partition(windows: list[str], batch_size: int) -> list[list[str]]:
    """Split windows into consecutive, non-overlapping batches."""
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    return [windows[i : i + batch_size] for i in range(0, len(windows), batch_size)]


class BatchScheduler:
    """Run window analysis batch by batch.

    Windows inside a batch are analyzed concurrently; the next batch starts
    only after the previous batch has completed and its handler returned, so
    at most ``batch_size`` oracle calls are in flight.
    """

    def __init__(
        self,
        oracle: ExtractionOracle,
        config: Optional[AnalysisConfig] = None,
    ):
        """Initialize the scheduler.

        Args:
            oracle: Extraction oracle used for window analysis.
            config: Analysis configuration. Uses defaults if None.
        """
        self.oracle = oracle
        self.config = config or default_config

    async def run(
        self,
        windows: list[str],
        registry: CharacterRegistry,
        on_batch_start: Optional[BatchStartHandler] = None,
        on_batch_complete: Optional[BatchCompleteHandler] = None,
    ) -> list[AnalysisResult]:
        """Analyze all windows in sequential batches.

        Args:
            windows: Document windows in order.
            registry: Read-only registry shared by every call.
            on_batch_start: Awaited before each batch is dispatched.
            on_batch_complete: Awaited with each batch's results once all of
                its windows have resolved.

        Returns:
            One AnalysisResult per window, in window order.
        """
        batches = partition(windows, self.config.batch_size)
        total_batches = len(batches)
        resolver = NameResolver(registry, self.config.name_match_threshold)
        all_results: list[AnalysisResult] = []

        for batch_index, batch in enumerate(batches):
            if on_batch_start:
                await on_batch_start(batch_index, total_batches)

            offset = batch_index * self.config.batch_size
            logger.info(
                f"Dispatching batch {batch_index + 1}/{total_batches} "
                f"({len(batch)} windows)"
            )

            batch_results = await asyncio.gather(
                *[
                    self._analyze_window(window, offset + i, registry, resolver)
                    for i, window in enumerate(batch)
                ]
            )
            all_results.extend(batch_results)

            if on_batch_complete:
                await on_batch_complete(batch_index, total_batches, list(batch_results))

            if batch_index < total_batches - 1 and self.config.batch_delay_seconds > 0:
                await asyncio.sleep(self.config.batch_delay_seconds)

        return all_results

    async def _analyze_window(
        self,
        window: str,
        window_index: int,
        registry: CharacterRegistry,
        resolver: NameResolver,
    ) -> AnalysisResult:
        """Analyze one window; failures yield an empty result."""
        if not registry:
            return AnalysisResult()

        try:
            result = await self.oracle.analyze(window, registry)
        except OracleCallError as e:
            logger.warning(f"Analysis failed for window {window_index}: {e}")
            return AnalysisResult()

        return self._canonicalize(result, resolver)

    def _canonicalize(self, result: AnalysisResult, resolver: NameResolver) -> AnalysisResult:
        """Rewrite alias names in a window result to canonical names."""
        return AnalysisResult(
            characters=[
                Character(
                    name=resolver.resolve(c.name),
                    mentions=c.mentions,
                    description=c.description,
                )
                for c in result.characters
            ],
            interactions=[
                Interaction(
                    source=resolver.resolve(i.source),
                    target=resolver.resolve(i.target),
                    weight=i.weight,
                    contexts=list(i.contexts),
                )
                for i in result.interactions
            ],
        )
