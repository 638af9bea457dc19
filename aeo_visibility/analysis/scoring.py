"""
Per-answer KPI sub-scores.

Pure, synchronous scoring functions used by the response analyzer:

- calculate_sentiment: keyword-presence sentiment in [-1, 1]
- calculate_prominence: how early/emphasised the brand appears, in [0, 1]
- calculate_alignment: length/structure heuristic in [0, 1]
- detect_legacy_mention: substring check on brand name or website domain

None of them raise, and all guard empty input.

Example:
    >>> calculate_sentiment("Acme is the best and most trusted option")
    0.4
    >>> calculate_prominence("Nothing relevant here", "acme")
    1.0
"""

import re

POSITIVE_WORDS = (
    "best",
    "recommended",
    "great",
    "top",
    "ideal",
    "trusted",
    "excellent",
    "outstanding",
    "leading",
)

NEGATIVE_WORDS = (
    "avoid",
    "poor",
    "bad",
    "limitations",
    "issues",
    "problem",
    "worst",
    "failed",
    "concerns",
)

# Keyword hits needed to saturate sentiment at +/-1
SENTIMENT_SCALE = 5

# Prominence context window around the first brand occurrence
WINDOW_BEFORE = 100
WINDOW_AFTER = 150

RANKING_CUE_PATTERN = re.compile(r"\b(1\.|2\.|3\.|first|second|third|top\s+\d+)", re.IGNORECASE)
LINK_CUE_PATTERN = re.compile(r"https?://")
RANKING_CUE_BONUS = 0.2
LINK_CUE_BONUS = 0.1

# Prominence when there is nothing to look for / the brand never appears
PROMINENCE_NO_TERM = 0.5
PROMINENCE_ABSENT = 1.0

ALIGNMENT_FULL_WORDS = 200
STRUCTURE_PATTERN = re.compile(r"(\d+\.|•|-|\n\n)")
STRUCTURE_BONUS = 0.1

PROTOCOL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def calculate_sentiment(text: str) -> float:
    """
    Keyword-presence sentiment.

    Each positive word present anywhere in the lowercased text adds 1, each
    negative word subtracts 1 (substring presence, counted once per word).
    The total is divided by 5 and clamped to [-1, 1].

    Example:
        >>> calculate_sentiment("Avoid it: poor support, bad docs.")
        -0.6
    """
    if not text:
        return 0.0

    lowered = text.lower()
    score = sum(1 for word in POSITIVE_WORDS if word in lowered)
    score -= sum(1 for word in NEGATIVE_WORDS if word in lowered)

    if score == 0:
        return 0.0

    return clamp(score / SENTIMENT_SCALE, -1.0, 1.0)


def calculate_prominence(text: str, brand_term: str) -> float:
    """
    Prominence of a brand term within an answer.

    Algorithm:
    1. Empty term -> 0.5; term absent from the lowercased text -> 1.0
    2. score = 1 - first_index / len(text)
    3. Within [index - 100, index + 150): a ranking cue (1., 2., 3., first,
       second, third, top N) adds 0.2, a URL adds 0.1, each capped at 1
    4. Return clamp(1 - score, 0, 1)

    Lower values therefore mean "earlier and more emphasised".

    Args:
        text: Raw answer text
        brand_term: Lowercased brand name, or website domain

    Returns:
        Float in [0, 1]
    """
    if not brand_term:
        return PROMINENCE_NO_TERM

    lowered = text.lower() if text else ""
    index = lowered.find(brand_term.lower())
    if index < 0:
        return PROMINENCE_ABSENT

    score = 1 - index / len(lowered)

    window = lowered[max(0, index - WINDOW_BEFORE) : index + WINDOW_AFTER]
    if RANKING_CUE_PATTERN.search(window):
        score = min(1.0, score + RANKING_CUE_BONUS)
    if LINK_CUE_PATTERN.search(window):
        score = min(1.0, score + LINK_CUE_BONUS)

    return clamp(1 - score, 0.0, 1.0)


def calculate_alignment(text: str) -> float:
    """
    Length/structure heuristic.

    min(1, words / 200), plus 0.1 when the answer has list or paragraph
    structure (numbered items, bullets, dashes, blank lines), capped at 1.
    """
    if not text:
        return 0.0

    word_count = len(text.split())
    score = min(1.0, word_count / ALIGNMENT_FULL_WORDS)

    if STRUCTURE_PATTERN.search(text):
        score = min(1.0, score + STRUCTURE_BONUS)

    return score


def normalize_website_domain(website: str | None) -> str:
    """
    Reduce a website to a bare lowercase domain for substring matching.

    Example:
        >>> normalize_website_domain("https://www.Acme.com/pricing")
        'acme.com/pricing'
    """
    if not website:
        return ""
    domain = PROTOCOL_PATTERN.sub("", website.strip())
    if domain.lower().startswith("www."):
        domain = domain[4:]
    return domain.lower()


def brand_search_term(brand_name: str | None, website: str | None) -> str:
    """Lowercased brand name if set, else the website domain, else ""."""
    if brand_name and brand_name.strip():
        return brand_name.strip().lower()
    return normalize_website_domain(website)


def detect_legacy_mention(text: str, brand_name: str | None, website: str | None) -> bool:
    """True if the brand name or the website domain occurs in the text (substring)."""
    if not text:
        return False

    lowered = text.lower()

    if brand_name and brand_name.strip() and brand_name.strip().lower() in lowered:
        return True

    domain = normalize_website_domain(website)
    return bool(domain) and domain in lowered
