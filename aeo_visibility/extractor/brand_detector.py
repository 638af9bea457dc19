"""
Static brand detection for AEO Visibility.

This module detects mentions of a fixed list of brands (our tracked brand plus
known competitors) in LLM answers and ranks them by order of appearance.

Key features:
- Whole-word matching (critical for accuracy): "Cap" does NOT match inside
  "Capital", "Acme" does NOT match inside "Acmeish"
- Case-insensitive detection
- Only the FIRST occurrence of each brand is tracked
- Dense 1-based positions by first occurrence (candidate order breaks ties)
- Three-valued relevancy score: 100 (our brand), 50 (competitors only), 0

A "word boundary" here is the start/end of the text or one of: whitespace,
. , ; : ! ? ( ) [ ] { } " ' ` -

Security:
- Always uses re.escape() to prevent regex injection from brand names

The BrandMention / BrandAnalysis shapes defined here are shared with the
dynamic (LLM-assisted) detector so both strategies are interchangeable.

Example:
    >>> analysis = detect_brands(
    ...     "Beta is solid, but Acme leads the market, and Gamma trails.",
    ...     our_brand="Acme",
    ...     competitors=["Beta", "Gamma"],
    ... )
    >>> [(m.brand_name, m.position) for m in analysis.brands_detected]
    [('Beta', 1), ('Acme', 2), ('Gamma', 3)]
    >>> analysis.our_brand_position, analysis.relevancy_score
    (2, 100)
"""

import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# Characters that may surround a brand name for it to count as a whole word
BOUNDARY_CHARS = r"\s.,;:!?()\[\]{}\"'`\-"

RELEVANCY_OUR_BRAND = 100
RELEVANCY_COMPETITORS_ONLY = 50
RELEVANCY_NONE = 0


@dataclass
class BrandMention:
    """
    A brand detected in one LLM answer.

    Attributes:
        brand_name: Brand name as supplied (static) or as returned by the model (dynamic)
        position: Dense 1-based rank by order of appearance
        first_occurrence: Character offset of the first mention
        is_our_brand: True for the tracked brand
    """

    brand_name: str
    position: int
    first_occurrence: int
    is_our_brand: bool

    def __post_init__(self):
        """Validate position and first_occurrence ranges."""
        if self.position < 1:
            raise ValueError(f"position must be >= 1, got: {self.position}")
        if self.first_occurrence < 0:
            raise ValueError(
                f"first_occurrence must be >= 0, got: {self.first_occurrence}"
            )

    def to_dict(self) -> dict:
        return {
            "brand_name": self.brand_name,
            "position": self.position,
            "first_occurrence": self.first_occurrence,
            "is_our_brand": self.is_our_brand,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BrandMention":
        return cls(
            brand_name=data["brand_name"],
            position=int(data["position"]),
            first_occurrence=int(data["first_occurrence"]),
            is_our_brand=bool(data["is_our_brand"]),
        )


@dataclass
class BrandAnalysis:
    """
    Brand signals extracted from one LLM answer.

    Attributes:
        our_brand_mentioned: True if the tracked brand was detected
        our_brand_position: Rank of the tracked brand, None iff not mentioned
        brands_detected: Ranked mentions (one per distinct brand)
        total_brands_mentioned: len(brands_detected)
        relevancy_score: 100 / 50 / 0
        detection_method: "static", "dynamic" or "none" (short-circuit/failure)
    """

    our_brand_mentioned: bool = False
    our_brand_position: int | None = None
    brands_detected: list[BrandMention] = field(default_factory=list)
    total_brands_mentioned: int = 0
    relevancy_score: int = RELEVANCY_NONE
    detection_method: str = "none"

    def __post_init__(self):
        """Validate relevancy_score and detection_method."""
        valid_scores = {RELEVANCY_NONE, RELEVANCY_COMPETITORS_ONLY, RELEVANCY_OUR_BRAND}
        if self.relevancy_score not in valid_scores:
            raise ValueError(
                f"relevancy_score must be one of {sorted(valid_scores)}, "
                f"got: {self.relevancy_score}"
            )
        if self.detection_method not in ("static", "dynamic", "none"):
            raise ValueError(
                f"detection_method must be 'static', 'dynamic' or 'none', "
                f"got: {self.detection_method}"
            )

    def to_dict(self) -> dict:
        return {
            "our_brand_mentioned": self.our_brand_mentioned,
            "our_brand_position": self.our_brand_position,
            "brands_detected": [m.to_dict() for m in self.brands_detected],
            "total_brands_mentioned": self.total_brands_mentioned,
            "relevancy_score": self.relevancy_score,
            "detection_method": self.detection_method,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BrandAnalysis":
        """Rebuild an analysis from its to_dict() form; missing keys take defaults."""
        mentions = [BrandMention.from_dict(m) for m in data.get("brands_detected", [])]
        return cls(
            our_brand_mentioned=bool(data.get("our_brand_mentioned", False)),
            our_brand_position=data.get("our_brand_position"),
            brands_detected=mentions,
            total_brands_mentioned=int(data.get("total_brands_mentioned", len(mentions))),
            relevancy_score=int(data.get("relevancy_score", RELEVANCY_NONE)),
            detection_method=data.get("detection_method", "none"),
        )


def empty_brand_analysis() -> BrandAnalysis:
    """Return the canonical "no brands found" analysis."""
    return BrandAnalysis()


def normalize_brand_name(name: str) -> str:
    """Normalize a brand name for comparisons (trimmed, lowercase)."""
    return name.strip().lower()


def create_brand_pattern(brand_name: str) -> re.Pattern:
    """
    Create a whole-word, case-insensitive pattern for a brand name.

    Uses lookarounds instead of \\b so that brands ending in punctuation
    (e.g. "Warmly.io", "C++") and hyphenated neighbours behave the same way
    as plain words.

    Raises:
        ValueError: If brand_name is empty or whitespace

    Example:
        >>> bool(create_brand_pattern("Cap").search("Capital One"))
        False
        >>> bool(create_brand_pattern("Cap").search("(Cap) is a brand"))
        True
    """
    if not brand_name or brand_name.isspace():
        raise ValueError("Brand name cannot be empty or whitespace")

    escaped = re.escape(brand_name.strip())

    # "not preceded/followed by a non-boundary char" also matches at text edges
    pattern = rf"(?<![^{BOUNDARY_CHARS}]){escaped}(?![^{BOUNDARY_CHARS}])"

    return re.compile(pattern, re.IGNORECASE)


def find_brand_occurrences(text: str, brand_name: str) -> list[int]:
    """
    Return the character offsets of every whole-word occurrence of a brand.

    Returns an empty list for empty text or an empty brand name.
    """
    if not text or not brand_name or brand_name.isspace():
        return []

    pattern = create_brand_pattern(brand_name)
    return [match.start() for match in pattern.finditer(text)]


def calculate_relevancy(our_brand_mentioned: bool, total_brands: int) -> int:
    """Three-valued relevancy: 100 if ours, 50 if only competitors, else 0."""
    if our_brand_mentioned:
        return RELEVANCY_OUR_BRAND
    if total_brands > 0:
        return RELEVANCY_COMPETITORS_ONLY
    return RELEVANCY_NONE


def build_brand_analysis(
    mentions: list[BrandMention], detection_method: str
) -> BrandAnalysis:
    """
    Package ranked mentions into a BrandAnalysis.

    Our brand's position is taken from the first mention flagged as ours.
    """
    our_mention = next((m for m in mentions if m.is_our_brand), None)
    our_brand_mentioned = our_mention is not None

    return BrandAnalysis(
        our_brand_mentioned=our_brand_mentioned,
        our_brand_position=our_mention.position if our_mention else None,
        brands_detected=mentions,
        total_brands_mentioned=len(mentions),
        relevancy_score=calculate_relevancy(our_brand_mentioned, len(mentions)),
        detection_method=detection_method,
    )


def detect_brands(
    response_text: str,
    our_brand: str,
    competitors: list[str] | None = None,
) -> BrandAnalysis:
    """
    Detect our brand and known competitors in an LLM answer.

    Process:
    1. Candidates: our brand first, then competitors in input order
    2. Find the first whole-word, case-insensitive occurrence of each
    3. Drop brands that never occur
    4. Stable-sort by first occurrence and assign dense positions
    5. Derive our brand's position and the relevancy score

    Args:
        response_text: Raw LLM answer text
        our_brand: Name of the tracked brand
        competitors: Competitor brand names (blank and duplicate names ignored)

    Returns:
        BrandAnalysis. Empty text or empty our_brand returns the empty analysis
        without scanning.

    Example:
        >>> detect_brands("Capitalism is complex", "Capital", []).our_brand_mentioned
        False
    """
    if not response_text or not our_brand or our_brand.isspace():
        return empty_brand_analysis()

    candidates: list[tuple[str, bool]] = [(our_brand.strip(), True)]
    seen_names = {normalize_brand_name(our_brand)}

    for name in competitors or []:
        if not name or name.isspace():
            continue
        key = normalize_brand_name(name)
        if key in seen_names:
            continue
        candidates.append((name.strip(), False))
        seen_names.add(key)

    found: list[tuple[str, int, bool]] = []
    for name, is_ours in candidates:
        match = create_brand_pattern(name).search(response_text)
        if match is not None:
            found.append((name, match.start(), is_ours))

    # sorted() is stable, so candidate order is the tie-break
    found = sorted(found, key=lambda item: item[1])

    mentions = [
        BrandMention(
            brand_name=name,
            position=index + 1,
            first_occurrence=offset,
            is_our_brand=is_ours,
        )
        for index, (name, offset, is_ours) in enumerate(found)
    ]

    logger.debug(
        f"Static detection found {len(mentions)} of {len(candidates)} candidate brands"
    )

    return build_brand_analysis(mentions, detection_method="static")


def extract_brand_data(analysis: BrandAnalysis) -> tuple[list[str], dict[str, int]]:
    """
    Flatten an analysis into storage-friendly brand names and positions.

    Returns:
        (brand_names in rank order, {brand_name: position})
    """
    brand_names = [m.brand_name for m in analysis.brands_detected]
    brand_positions = {m.brand_name: m.position for m in analysis.brands_detected}
    return brand_names, brand_positions


def aggregate_competitor_mentions(analyses: list[BrandAnalysis]) -> dict[str, int]:
    """
    Count, per competitor, how many analyses mention it.

    Feeds "competitor mentioned in N of M responses" displays.
    """
    counts: dict[str, int] = {}
    for analysis in analyses:
        for mention in analysis.brands_detected:
            if not mention.is_our_brand:
                counts[mention.brand_name] = counts.get(mention.brand_name, 0) + 1
    return counts


def calculate_average_positions(analyses: list[BrandAnalysis]) -> dict[str, float]:
    """Average rank of every brand across the analyses that mention it."""
    sums: dict[str, int] = {}
    counts: dict[str, int] = {}

    for analysis in analyses:
        for mention in analysis.brands_detected:
            sums[mention.brand_name] = sums.get(mention.brand_name, 0) + mention.position
            counts[mention.brand_name] = counts.get(mention.brand_name, 0) + 1

    return {name: sums[name] / counts[name] for name in sums}
