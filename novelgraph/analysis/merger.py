"""Merge per-window results into one cumulative character graph."""

import logging

from novelgraph.analysis.models import (
    AnalysisResult,
    Character,
    CharacterRegistry,
    Interaction,
)

logger = logging.getLogger(__name__)


def merge_with_stats(
    results: list[AnalysisResult],
    registry: CharacterRegistry,
) -> tuple[AnalysisResult, int]:
    """Merge window results against the registry.

    Inputs are never mutated, so calling this repeatedly with a growing list
    yields consistent, accumulating snapshots.

    Args:
        results: Window results so far, in window order.
        registry: Canonical registry for the run.

    Returns:
        Tuple of (merged result, number of interactions dropped because an
        endpoint is not a registered character).
    """
    characters: dict[str, Character] = {
        name: Character(
            name=name,
            mentions=0,
            description=entry.description,
            aliases=list(entry.aliases),
        )
        for name, entry in registry.entries.items()
    }

    for result in results:
        for reported in result.characters:
            existing = characters.get(reported.name)
            if existing is None:
                continue
            existing.mentions += reported.mentions
            if len(reported.description) > len(existing.description):
                existing.description = reported.description

    interactions: dict[tuple[str, str], Interaction] = {}
    dropped = 0

    for result in results:
        for reported in result.interactions:
            if reported.source not in characters or reported.target not in characters:
                dropped += 1
                continue

            existing = interactions.get(reported.key)
            if existing is None:
                interactions[reported.key] = Interaction(
                    source=reported.source,
                    target=reported.target,
                    weight=reported.weight,
                    contexts=list(dict.fromkeys(reported.contexts)),
                )
            else:
                existing.weight += reported.weight
                existing.contexts = list(
                    dict.fromkeys(existing.contexts + reported.contexts)
                )

    if dropped:
        logger.debug(f"Dropped {dropped} interactions with unregistered endpoints")

    # sorted() is stable, so ties keep first-seen order
    merged = AnalysisResult(
        characters=sorted(
            (c for c in characters.values() if c.mentions > 0),
            key=lambda c: c.mentions,
            reverse=True,
        ),
        interactions=sorted(
            interactions.values(),
            key=lambda i: i.weight,
            reverse=True,
        ),
    )
    return merged, dropped


def merge_results(
    results: list[AnalysisResult],
    registry: CharacterRegistry,
) -> AnalysisResult:
    """Merge window results into one snapshot. See ``merge_with_stats``."""
    merged, _ = merge_with_stats(results, registry)
    return merged
