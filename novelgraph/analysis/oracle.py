"""LLM-backed character discovery and interaction extraction."""

import json
import logging
from typing import Any, Optional, Protocol

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from novelgraph.analysis.config import AnalysisConfig, default_config
from novelgraph.analysis.exceptions import OracleCallError
from novelgraph.analysis.models import (
    AnalysisResult,
    Character,
    CharacterRegistry,
    Interaction,
)
from novelgraph.analysis.prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    ANALYSIS_USER_PROMPT,
    DISCOVERY_SYSTEM_PROMPT,
    DISCOVERY_USER_PROMPT,
    EMPTY_REGISTRY_TEXT,
)
from novelgraph.core.config import settings

logger = logging.getLogger(__name__)


class ExtractionOracle(Protocol):
    """Semantic extraction over a bounded window of text."""

    async def discover(self, text: str) -> list[Character]:
        """Propose candidate characters found in the text."""
        ...

    async def analyze(self, text: str, registry: CharacterRegistry) -> AnalysisResult:
        """Extract characters and interactions restricted to the registry."""
        ...


def format_registry(registry: CharacterRegistry) -> str:
    """Render the registry as one ``name (aliases: ...)`` line per character."""
    if not registry:
        return EMPTY_REGISTRY_TEXT
    return "\n".join(
        f"{name} (aliases: {', '.join(entry.aliases)})"
        for name, entry in registry.entries.items()
    )


class OpenAIOracle:
    """Extraction oracle using OpenAI chat completions in JSON mode."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
        config: Optional[AnalysisConfig] = None,
    ):
        """Initialize the oracle.

        Args:
            client: OpenAI client. Created from settings if None.
            model: Chat model name. Uses settings if None.
            config: Analysis configuration. Uses defaults if None.
        """
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key)
        self.model = model or settings.openai_model
        self.config = config or default_config

    async def discover(self, text: str) -> list[Character]:
        """Propose candidate characters from a sample of the text.

        Raises:
            OracleCallError: If the call fails or the response is unusable.
        """
        payload = await self._complete(
            system=DISCOVERY_SYSTEM_PROMPT,
            user=DISCOVERY_USER_PROMPT.format(text=text),
            temperature=self.config.discovery_temperature,
            max_tokens=self.config.discovery_max_tokens,
        )
        return self._parse_characters(payload.get("characters", []))

    async def analyze(self, text: str, registry: CharacterRegistry) -> AnalysisResult:
        """Extract characters and interactions using the registry as vocabulary.

        Raises:
            OracleCallError: If the call fails or the response is unusable.
        """
        payload = await self._complete(
            system=ANALYSIS_SYSTEM_PROMPT,
            user=ANALYSIS_USER_PROMPT.format(
                known_characters=format_registry(registry),
                text=text,
            ),
            temperature=self.config.analysis_temperature,
            max_tokens=self.config.analysis_max_tokens,
        )
        return AnalysisResult(
            characters=self._parse_characters(payload.get("characters", [])),
            interactions=self._parse_interactions(payload.get("interactions", [])),
        )

    async def _complete(
        self,
        system: str,
        user: str,
        temperature: float,
        max_tokens: int,
    ) -> dict[str, Any]:
        """Run one JSON-mode completion and decode the response object."""
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                response_format={"type": "json_object"},
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            raise OracleCallError(f"Completion request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise OracleCallError("Empty response from model")

        try:
            payload = json.loads(content)
        except json.JSONDecodeError as e:
            raise OracleCallError(f"Response is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise OracleCallError("Response JSON is not an object")
        return payload

    def _parse_characters(self, raw_characters: Any) -> list[Character]:
        """Parse raw character dicts, skipping malformed entries."""
        if not isinstance(raw_characters, list):
            raise OracleCallError("'characters' is not a list")

        characters = []
        for raw in raw_characters:
            if not isinstance(raw, dict):
                continue
            name = str(raw.get("name") or "").strip()
            if not name:
                continue
            try:
                characters.append(
                    Character(
                        name=name,
                        mentions=raw.get("mentions") or 1,
                        description=raw.get("description") or "",
                    )
                )
            except ValidationError:
                continue  # Skip malformed entries

        return characters

    def _parse_interactions(self, raw_interactions: Any) -> list[Interaction]:
        """Parse raw interaction dicts, skipping malformed entries."""
        if not isinstance(raw_interactions, list):
            raise OracleCallError("'interactions' is not a list")

        interactions = []
        for raw in raw_interactions:
            if not isinstance(raw, dict):
                continue
            source = str(raw.get("source") or "").strip()
            target = str(raw.get("target") or "").strip()
            if not source or not target:
                continue

            contexts = raw.get("contexts") or []
            if isinstance(contexts, str):
                contexts = [contexts]

            try:
                interactions.append(
                    Interaction(
                        source=source,
                        target=target,
                        weight=raw.get("weight", 1),
                        contexts=contexts,
                    )
                )
            except ValidationError:
                continue  # Skip malformed entries

        return interactions
