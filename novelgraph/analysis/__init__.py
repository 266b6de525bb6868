"""Character network analysis of long-form text.

This module turns a document into a character interaction graph:
- Overlapping, sentence-aware windows over the full text
- Character discovery on sampled windows, folded into a canonical registry
- Batched window analysis constrained to the registry
- Incremental merging into weighted interaction snapshots
- Session-scoped progress events for subscribers
"""

from novelgraph.analysis.config import AnalysisConfig, default_config
from novelgraph.analysis.exceptions import (
    AnalysisError,
    FetchError,
    OracleCallError,
    RunError,
)
from novelgraph.analysis.fetcher import DocumentFetcher, GutenbergFetcher
from novelgraph.analysis.merger import merge_results, merge_with_stats
from novelgraph.analysis.models import (
    AnalysisResult,
    Character,
    CharacterRegistry,
    Interaction,
    RegistryEntry,
    RunState,
    StreamingUpdate,
    UpdateType,
)
from novelgraph.analysis.oracle import ExtractionOracle, OpenAIOracle
from novelgraph.analysis.orchestrator import AnalysisOrchestrator, AnalysisRun
from novelgraph.analysis.progress import ProgressReporter, QueueSubscriber, Subscriber
from novelgraph.analysis.registry import NameResolver, RegistryBuilder, names_similar
from novelgraph.analysis.sampler import sample_windows
from novelgraph.analysis.scheduler import BatchScheduler, partition
from novelgraph.analysis.segmenter import TextSegmenter, split_into_windows

__all__ = [
    # Orchestration
    "AnalysisOrchestrator",
    "AnalysisRun",
    # Pipeline stages
    "TextSegmenter",
    "split_into_windows",
    "sample_windows",
    "RegistryBuilder",
    "NameResolver",
    "names_similar",
    "BatchScheduler",
    "partition",
    "merge_results",
    "merge_with_stats",
    # Progress
    "ProgressReporter",
    "QueueSubscriber",
    "Subscriber",
    # Collaborators
    "DocumentFetcher",
    "GutenbergFetcher",
    "ExtractionOracle",
    "OpenAIOracle",
    # Configuration
    "AnalysisConfig",
    "default_config",
    # Models
    "AnalysisResult",
    "Character",
    "CharacterRegistry",
    "Interaction",
    "RegistryEntry",
    "RunState",
    "StreamingUpdate",
    "UpdateType",
    # Errors
    "AnalysisError",
    "FetchError",
    "OracleCallError",
    "RunError",
]
