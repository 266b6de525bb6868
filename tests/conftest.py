"""Shared fixtures for analysis tests."""

import pytest

from novelgraph.analysis import (
    AnalysisConfig,
    AnalysisResult,
    Character,
    CharacterRegistry,
    Interaction,
    OracleCallError,
    RegistryEntry,
)


class FakeOracle:
    """Scripted extraction oracle.

    ``discoveries`` and ``analyses`` map a substring of the window text to the
    value to return, or to an exception to raise.
    """

    def __init__(self, discoveries=None, analyses=None, default_analysis=None):
        self.discoveries = discoveries or {}
        self.analyses = analyses or {}
        self.default_analysis = default_analysis
        self.discover_calls: list[str] = []
        self.analyze_calls: list[tuple[str, CharacterRegistry]] = []

    async def discover(self, text):
        self.discover_calls.append(text)
        return self._lookup(self.discoveries, text, [])

    async def analyze(self, text, registry):
        self.analyze_calls.append((text, registry))
        default = self.default_analysis or AnalysisResult()
        return self._lookup(self.analyses, text, default)

    def _lookup(self, table, text, default):
        for marker, value in table.items():
            if marker in text:
                if isinstance(value, Exception):
                    raise value
                return value
        return default


class FakeFetcher:
    """Returns fixed text, or raises the configured error."""

    def __init__(self, text="", error=None):
        self.text = text
        self.error = error
        self.calls: list[str] = []

    async def fetch(self, document_id):
        self.calls.append(document_id)
        if self.error:
            raise self.error
        return self.text


@pytest.fixture
def make_oracle():
    """Factory for scripted oracles."""
    return FakeOracle


@pytest.fixture
def make_fetcher():
    """Factory for fake fetchers."""
    return FakeFetcher


@pytest.fixture
def fast_config():
    """Small windows, no pacing delay."""
    return AnalysisConfig(
        window_size=100,
        overlap_size=10,
        sample_count=3,
        sample_size=50,
        batch_size=2,
        batch_delay_seconds=0,
    )


@pytest.fixture
def verona_registry():
    """Registry with three canonical characters."""
    return CharacterRegistry(
        entries={
            "Romeo Montague": RegistryEntry(
                aliases=("Romeo Montague", "Romeo"),
                description="Young Montague heir",
                mentions=12,
            ),
            "Juliet Capulet": RegistryEntry(
                aliases=("Juliet Capulet", "Juliet"),
                description="Capulet daughter",
                mentions=10,
            ),
            "Tybalt": RegistryEntry(
                aliases=("Tybalt",),
                description="Juliet's cousin",
                mentions=5,
            ),
        }
    )


@pytest.fixture
def failing_call():
    """An oracle failure for one call."""
    return OracleCallError("model returned garbage")


def window_result(characters=(), interactions=()):
    """Build a window result from (name, mentions) and (src, tgt, weight, contexts) tuples."""
    return AnalysisResult(
        characters=[Character(name=n, mentions=m) for n, m in characters],
        interactions=[
            Interaction(source=s, target=t, weight=w, contexts=list(c))
            for s, t, w, c in interactions
        ],
    )


@pytest.fixture
def make_result():
    """Factory for compact window results."""
    return window_result
