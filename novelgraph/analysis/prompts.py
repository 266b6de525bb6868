"""Prompt templates for the extraction oracle."""

DISCOVERY_SYSTEM_PROMPT = """You are a literary analysis expert specializing in character identification. Always return valid JSON with consistent character names."""

DISCOVERY_USER_PROMPT = """Analyze this text sample and identify ALL MAIN CHARACTERS. Focus on:
1. Named individuals (not generic titles like "soldier" or "messenger")
2. Characters who speak dialogue or perform actions
3. Provide the MOST COMMON name/title for each character
4. Include important titles (e.g., "Lady Capulet" not just "Capulet")

Return ONLY valid JSON:
{{
  "characters": [
    {{"name": "Romeo Montague", "mentions": 12, "description": "Young Montague heir, protagonist"}},
    {{"name": "Lady Capulet", "mentions": 8, "description": "Juliet's mother, Capulet family matriarch"}}
  ]
}}

Text sample:
---
{text}
---"""

ANALYSIS_SYSTEM_PROMPT = """You are a literary analysis expert. Use ONLY the provided character registry. Always return valid JSON with exact canonical names."""

ANALYSIS_USER_PROMPT = """Analyze this text for character interactions. Use ONLY the character names from this registry:

KNOWN CHARACTERS:
{known_characters}

Rules:
1. Only identify interactions between characters from the registry above
2. Use the EXACT canonical names from the registry
3. If you see an alias, map it to the canonical name
4. Ignore characters not in the registry
5. Rate interaction strength 1-10 based on dialogue, actions, and emotional significance

Return ONLY valid JSON:
{{
  "characters": [
    {{"name": "Romeo Montague", "mentions": 5, "description": "Young lover, conflicted"}}
  ],
  "interactions": [
    {{"source": "Romeo Montague", "target": "Lady Capulet", "weight": 7, "contexts": ["confrontation scene"]}}
  ]
}}

Text:
---
{text}
---"""

EMPTY_REGISTRY_TEXT = "(No known characters)"
