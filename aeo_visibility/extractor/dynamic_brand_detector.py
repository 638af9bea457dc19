"""
LLM-assisted brand detection for AEO Visibility.

Instead of matching a fixed competitor list, this module asks a generative
model to enumerate every brand/company name in an answer, in order of
appearance. It finds brands nobody thought to list as competitors.

Key features:
- Client injected through the LLMClient protocol (no module-level clients)
- Tolerant parsing of the model reply (JSON array, {"brands": [...]} object,
  fenced ```json block, or bare quoted strings)
- Never raises: any client or parsing failure becomes the empty analysis
- Empty text short-circuits without a network call

Example:
    >>> detector = DynamicBrandDetector(client)
    >>> analysis = await detector.detect(
    ...     "Beta and Acme are both popular.", our_brand="Acme"
    ... )
    >>> [(m.brand_name, m.position) for m in analysis.brands_detected]
    [('Beta', 1), ('Acme', 2)]
"""

import json
import logging
import re

from aeo_visibility.extractor.brand_detector import (
    BrandAnalysis,
    BrandMention,
    build_brand_analysis,
    empty_brand_analysis,
    normalize_brand_name,
)
from aeo_visibility.llm_runner.models import LLMClient

logger = logging.getLogger(__name__)

BRAND_EXTRACTION_SYSTEM_PROMPT = (
    "You are an expert at identifying brand and company names in text. "
    "Return only valid JSON arrays."
)

BRAND_EXTRACTION_PROMPT_TEMPLATE = """Extract all brand/company names mentioned in the following text.
Return ONLY a JSON array of brand names in the order they appear.
Example: ["Brand1", "Brand2", "Brand3"]

Text:
{text}

Brands:"""

# Offset spacing for brands the model names but the text never spells out
PLACEHOLDER_OFFSET_STEP = 100

FENCED_BLOCK_PATTERN = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)
QUOTED_STRING_PATTERN = re.compile(r'"([^"]+)"')


def build_brand_extraction_prompt(response_text: str) -> str:
    """Embed an answer into the brand-extraction instruction."""
    return BRAND_EXTRACTION_PROMPT_TEMPLATE.format(text=response_text)


def _clean_names(names: list) -> list[str]:
    """Trim, drop blanks and non-strings, drop case-insensitive duplicates."""
    cleaned: list[str] = []
    seen: set[str] = set()

    for name in names:
        if not isinstance(name, str):
            continue
        stripped = name.strip()
        if not stripped:
            continue
        key = normalize_brand_name(stripped)
        if key in seen:
            continue
        seen.add(key)
        cleaned.append(stripped)

    return cleaned


def parse_brand_list(content: str) -> list[str]:
    """
    Parse the model's reply into an ordered list of brand names.

    Accepted shapes, tried in order:
    1. JSON array of strings (inside a ```json fence or bare)
    2. JSON object with a "brands" list
    3. Any double-quoted substrings in the reply

    Never raises; returns [] when nothing usable is found.

    Example:
        >>> parse_brand_list('["Acme", "Beta"]')
        ['Acme', 'Beta']
        >>> parse_brand_list('Sure! Here they are: "Acme", "Beta"')
        ['Acme', 'Beta']
        >>> parse_brand_list("no brands here")
        []
    """
    if not content or content.isspace():
        return []

    candidate = content.strip()
    fenced = FENCED_BLOCK_PATTERN.search(candidate)
    if fenced:
        candidate = fenced.group(1)

    try:
        parsed = json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        parsed = None

    if isinstance(parsed, dict):
        parsed = parsed.get("brands")

    if isinstance(parsed, list):
        return _clean_names(parsed)

    logger.debug("Brand list reply was not a JSON array, falling back to quoted strings")
    return _clean_names(QUOTED_STRING_PATTERN.findall(content))


def build_dynamic_mentions(
    response_text: str, brand_names: list[str], our_brand: str
) -> list[BrandMention]:
    """
    Turn the model's ordered brand list into ranked mentions.

    Position follows the model's order. first_occurrence is the first
    case-insensitive index of the name in the text, or index * 100 when the
    text never contains it.
    """
    lowered_text = response_text.lower()
    our_key = normalize_brand_name(our_brand) if our_brand else ""

    mentions = []
    for index, name in enumerate(brand_names):
        offset = lowered_text.find(name.lower())
        if offset < 0:
            offset = index * PLACEHOLDER_OFFSET_STEP

        mentions.append(
            BrandMention(
                brand_name=name,
                position=index + 1,
                first_occurrence=offset,
                is_our_brand=bool(our_key) and normalize_brand_name(name) == our_key,
            )
        )

    return mentions


class DynamicBrandDetector:
    """
    Brand detector backed by a generative model.

    Attributes:
        client: Any object implementing the LLMClient protocol
    """

    def __init__(self, client: LLMClient):
        self.client = client

    async def detect(self, response_text: str, our_brand: str) -> BrandAnalysis:
        """
        Detect all brands in an answer and flag the tracked one.

        Args:
            response_text: Raw LLM answer text
            our_brand: Name of the tracked brand (may be empty)

        Returns:
            BrandAnalysis with detection_method "dynamic", or the empty
            analysis on empty text or any failure. Never raises.
        """
        if not response_text or response_text.isspace():
            return empty_brand_analysis()

        try:
            prompt = build_brand_extraction_prompt(response_text)
            response = await self.client.generate_answer(prompt)
            brand_names = parse_brand_list(response.answer_text)
            mentions = build_dynamic_mentions(response_text, brand_names, our_brand)
        except Exception as e:
            logger.error(f"Dynamic brand detection failed: {e}", exc_info=True)
            return empty_brand_analysis()

        logger.info(f"Dynamic detection found {len(mentions)} brands")

        return build_brand_analysis(mentions, detection_method="dynamic")


async def detect_brands_dynamically(
    response_text: str, our_brand: str, client: LLMClient
) -> BrandAnalysis:
    """Convenience wrapper: one-shot dynamic detection with the given client."""
    return await DynamicBrandDetector(client).detect(response_text, our_brand)
