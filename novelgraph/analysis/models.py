"""Data models for character analysis results and progress events."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Character(BaseModel):
    """A character as reported by one window, or as merged across a run."""

    name: str
    mentions: int = Field(default=1, ge=0)  # Absent counts as one mention
    description: str = ""
    aliases: list[str] = Field(default_factory=list)


class Interaction(BaseModel):
    """A directed, weighted relationship between two characters."""

    source: str
    target: str
    weight: int = Field(default=1, ge=0)
    contexts: list[str] = Field(default_factory=list)  # Short evidence strings

    @property
    def key(self) -> tuple[str, str]:
        return (self.source, self.target)


class AnalysisResult(BaseModel):
    """Characters and interactions for one window or a whole run."""

    characters: list[Character] = Field(default_factory=list)
    interactions: list[Interaction] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.characters and not self.interactions


class RegistryEntry(BaseModel):
    """One canonical character in the registry."""

    model_config = ConfigDict(frozen=True)

    aliases: tuple[str, ...] = ()
    description: str = ""
    mentions: int = 0

    def has_alias(self, name: str) -> bool:
        """Case-insensitive alias check."""
        name_lower = name.strip().lower()
        return any(alias.lower() == name_lower for alias in self.aliases)


class CharacterRegistry(BaseModel):
    """Closed vocabulary of canonical characters for one run.

    Built once during discovery and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    entries: dict[str, RegistryEntry] = Field(default_factory=dict)

    def __contains__(self, name: object) -> bool:
        return name in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def names(self) -> list[str]:
        """Canonical names in registry order."""
        return list(self.entries)

    def lookup(self, name: str) -> Optional[str]:
        """Get the canonical name for an exact name or alias match."""
        if name in self.entries:
            return name
        for canonical, entry in self.entries.items():
            if canonical.lower() == name.strip().lower() or entry.has_alias(name):
                return canonical
        return None

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Plain mapping form: name -> {aliases, description, mentions}."""
        return {
            name: {
                "aliases": list(entry.aliases),
                "description": entry.description,
                "mentions": entry.mentions,
            }
            for name, entry in self.entries.items()
        }


class UpdateType(str, Enum):
    """Kinds of progress events published during a run."""

    PROGRESS = "progress"
    BATCH_COMPLETE = "batch_complete"
    ANALYSIS_COMPLETE = "analysis_complete"
    ERROR = "error"


class StreamingUpdate(BaseModel):
    """A progress event delivered to session subscribers."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: UpdateType
    batch_index: Optional[int] = None
    total_batches: Optional[int] = None
    data: Optional[dict[str, Any]] = None
    message: Optional[str] = None

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting unset fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RunState(str, Enum):
    """Lifecycle of a single analysis run."""

    FETCHING = "fetching"
    DISCOVERING = "discovering"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    ERRORED = "errored"
