"""Character registry construction and name canonicalization."""

import asyncio
import logging
from typing import Optional

from rapidfuzz import fuzz, process

from novelgraph.analysis.config import AnalysisConfig, default_config
from novelgraph.analysis.exceptions import OracleCallError
from novelgraph.analysis.models import Character, CharacterRegistry, RegistryEntry
from novelgraph.analysis.oracle import ExtractionOracle
from novelgraph.analysis.sampler import sample_windows

logger = logging.getLogger(__name__)


def names_similar(name1: str, name2: str) -> bool:
    """Check whether two names plausibly refer to the same character.

    Names match when equal, when one contains the other ("Capulet" and
    "Lady Capulet"), or when they share a word longer than two characters.
    This is a heuristic: "Lady Capulet" and "Lady Montague" also match.
    """
    n1 = name1.strip().lower()
    n2 = name2.strip().lower()

    if n1 == n2:
        return True

    if n1 in n2 or n2 in n1:
        return True

    words1 = {w for w in n1.split() if len(w) > 2}
    words2 = {w for w in n2.split() if len(w) > 2}
    return bool(words1 & words2)


class RegistryBuilder:
    """Build a canonical character registry from sampled discovery calls."""

    def __init__(
        self,
        oracle: ExtractionOracle,
        config: Optional[AnalysisConfig] = None,
    ):
        """Initialize the builder.

        Args:
            oracle: Extraction oracle used for discovery.
            config: Analysis configuration. Uses defaults if None.
        """
        self.oracle = oracle
        self.config = config or default_config

    async def build(self, text: str) -> CharacterRegistry:
        """Discover characters across samples of the text and fold them.

        Args:
            text: Full document text.

        Returns:
            CharacterRegistry with entries above the mention threshold.
        """
        samples = sample_windows(text, self.config.sample_count, self.config.sample_size)

        discoveries = await asyncio.gather(
            *[self._discover(sample, index) for index, sample in enumerate(samples)]
        )

        candidates = [character for found in discoveries for character in found]
        registry = self.fold(candidates)

        logger.info(f"Character registry built: {registry.names}")
        return registry

    async def _discover(self, sample: str, index: int) -> list[Character]:
        """Run discovery on one sample; failures yield no candidates."""
        try:
            return await self.oracle.discover(sample)
        except OracleCallError as e:
            logger.warning(f"Discovery failed for sample {index}: {e}")
            return []

    def fold(self, candidates: list[Character]) -> CharacterRegistry:
        """Fold candidate characters into canonical registry entries.

        Args:
            candidates: Discovery candidates in the order they were found.

        Returns:
            Filtered CharacterRegistry.
        """
        entries: dict[str, RegistryEntry] = {}

        for candidate in candidates:
            name = candidate.name.strip()
            if not name:
                continue

            matched = self._find_match(name, entries)
            if matched is None:
                entries[name] = RegistryEntry(
                    aliases=(name,),
                    description=candidate.description,
                    mentions=candidate.mentions,
                )
                continue

            # The longer name is more specific and becomes the canonical key
            canonical = matched
            if len(name) > len(matched) and not entries[matched].has_alias(name):
                canonical = name
                entries = self._rekey(entries, matched, name)

            entries[canonical] = self._absorb(entries[canonical], name, candidate)

        filtered = {
            name: entry
            for name, entry in entries.items()
            if entry.mentions >= self.config.min_mentions
        }

        dropped = len(entries) - len(filtered)
        if dropped:
            logger.debug(f"Dropped {dropped} low-mention registry candidates")

        return CharacterRegistry(entries=filtered)

    def _find_match(self, name: str, entries: dict[str, RegistryEntry]) -> Optional[str]:
        """Find the canonical key an incoming name belongs to."""
        for canonical, entry in entries.items():
            if entry.has_alias(name):
                return canonical

        for canonical in entries:
            if names_similar(name, canonical):
                return canonical

        return None

    def _absorb(self, entry: RegistryEntry, name: str, candidate: Character) -> RegistryEntry:
        """Merge one candidate into an existing entry."""
        aliases = entry.aliases
        if not entry.has_alias(name):
            aliases = aliases + (name,)

        description = entry.description
        if len(candidate.description) > len(description):
            description = candidate.description

        return entry.model_copy(
            update={
                "aliases": aliases,
                "description": description,
                "mentions": entry.mentions + candidate.mentions,
            }
        )

    def _rekey(
        self,
        entries: dict[str, RegistryEntry],
        old: str,
        new: str,
    ) -> dict[str, RegistryEntry]:
        """Rename a canonical key in place, keeping insertion order."""
        return {(new if key == old else key): entry for key, entry in entries.items()}


class NameResolver:
    """Map surface names from oracle output onto canonical registry names."""

    def __init__(self, registry: CharacterRegistry, threshold: Optional[int] = None):
        """Initialize the resolver.

        Args:
            registry: Canonical registry for the run.
            threshold: Minimum rapidfuzz ratio (0-100) for a fuzzy alias match.
        """
        self.registry = registry
        self.threshold = (
            threshold if threshold is not None else default_config.name_match_threshold
        )

        self._surface_forms: dict[str, str] = {}
        for canonical, entry in registry.entries.items():
            self._surface_forms.setdefault(canonical.lower(), canonical)
            for alias in entry.aliases:
                self._surface_forms.setdefault(alias.lower(), canonical)

    def resolve(self, name: str) -> str:
        """Get the canonical name for ``name``, or ``name`` itself if unknown."""
        if name in self.registry:
            return name

        key = name.strip().lower()
        if key in self._surface_forms:
            return self._surface_forms[key]

        if not self._surface_forms:
            return name

        match = process.extractOne(
            key,
            list(self._surface_forms),
            scorer=fuzz.ratio,
            score_cutoff=self.threshold,
        )
        if match is None:
            return name
        return self._surface_forms[match[0]]
