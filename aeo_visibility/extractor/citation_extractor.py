"""
Citation extraction for AEO Visibility.

This module finds the URLs an LLM cited in its answer and turns them into
ranked Citation records.

Three syntactic shapes are recognized, in this priority order for first-seen
deduplication:
1. Markdown links: [title](https://example.com)
2. Bare URLs: https://example.com/page (ended by whitespace, ")", ">" or "]")
3. Numbered references: [1] https://example.com, [1]: https://..., 1. https://...

Numbered references only feed a reference-number -> URL map for downstream
use (find_numbered_references); they never add citations of their own.

Key features:
- Trailing punctuation (.,;:!?) stripped from every matched URL
- Deduplication by exact cleaned URL (not by domain)
- Dense 1-based positions ordered by first character offset
- Domain and favicon derived without any network call
- Never raises: unparseable URLs fall back to the raw string as domain

Example:
    >>> citations = extract_citations(
    ...     "Check [our site](https://acme.com/pricing) and https://other.com/page."
    ... )
    >>> [(c.domain, c.title, c.position) for c in citations]
    [('acme.com', 'our site', 1), ('other.com', None, 2)]
"""

import logging
import re
from dataclasses import dataclass
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

MARKDOWN_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")

URL_PATTERN = re.compile(r"https?://[^\s)>\]]+", re.IGNORECASE)

NUMBERED_REFERENCE_PATTERN = re.compile(
    r"(?:\[(\d+)\]:?|(\d+)\.)\s*(https?://[^\s)>\]]+)", re.IGNORECASE
)

TRAILING_PUNCTUATION_PATTERN = re.compile(r"[.,;:!?]+$")

FAVICON_URL_TEMPLATE = "https://www.google.com/s2/favicons?domain={domain}&sz=32"


@dataclass
class Citation:
    """
    A URL cited in one LLM answer.

    Attributes:
        url: Cleaned URL (trailing punctuation removed)
        domain: Hostname without leading "www." (raw URL if unparseable)
        title: Link text for markdown links, None for bare URLs
        favicon_url: Favicon hint derived from the domain
        position: Dense 1-based rank by first occurrence within the answer
        first_occurrence: Character offset where the citation starts
    """

    url: str
    domain: str
    title: str | None
    favicon_url: str | None
    position: int
    first_occurrence: int

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
            "url": self.url,
            "domain": self.domain,
            "title": self.title,
            "favicon_url": self.favicon_url,
            "position": self.position,
            "first_occurrence": self.first_occurrence,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Citation":
        """Rebuild a Citation from its to_dict() form."""
        return cls(
            url=data["url"],
            domain=data["domain"],
            title=data.get("title"),
            favicon_url=data.get("favicon_url"),
            position=int(data["position"]),
            first_occurrence=int(data["first_occurrence"]),
        )


def clean_url(url: str) -> str:
    """Strip trailing sentence punctuation from a matched URL."""
    return TRAILING_PUNCTUATION_PATTERN.sub("", url)


def extract_domain(url: str) -> str:
    """
    Derive the display domain of a URL.

    Returns the hostname with a leading "www." removed. When the URL cannot
    be parsed or has no hostname, the raw URL string is returned instead.

    Example:
        >>> extract_domain("https://www.example.com/path?q=1")
        'example.com'
        >>> extract_domain("not a url")
        'not a url'
    """
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return url

    if not hostname:
        return url

    return hostname.removeprefix("www.")


def favicon_url(domain: str) -> str:
    """Build the favicon hint URL for a domain (pure string template)."""
    return FAVICON_URL_TEMPLATE.format(domain=domain)


def find_markdown_links(text: str) -> list[tuple[str, str, int]]:
    """Return (url, title, offset) for every markdown link in text."""
    return [
        (clean_url(match.group(2)), match.group(1), match.start())
        for match in MARKDOWN_LINK_PATTERN.finditer(text)
    ]


def find_urls(text: str) -> list[tuple[str, int]]:
    """Return (url, offset) for every bare http(s) URL in text."""
    return [(clean_url(match.group(0)), match.start()) for match in URL_PATTERN.finditer(text)]


def find_numbered_references(text: str) -> dict[int, str]:
    """
    Map reference numbers to URLs from a references section.

    Recognizes "[1] url", "[1]: url" and "1. url". When a number repeats,
    the last URL wins.

    Example:
        >>> find_numbered_references("[1] https://a.com\\n[2]: https://b.com.")
        {1: 'https://a.com', 2: 'https://b.com'}
    """
    references: dict[int, str] = {}

    for match in NUMBERED_REFERENCE_PATTERN.finditer(text):
        ref_num = int(match.group(1) or match.group(2))
        references[ref_num] = clean_url(match.group(3))

    return references


def extract_citations(response_text: str, llm_provider: str = "openai") -> list[Citation]:
    """
    Extract ranked citations from an LLM answer.

    Process:
    1. Collect markdown links (these carry titles)
    2. Collect bare URLs not already seen
    3. Stable-sort by first occurrence
    4. Assign dense positions 1..N

    Args:
        response_text: Raw LLM answer text
        llm_provider: Provider that produced the answer (recorded in logs only;
            every provider shares the same citation syntax)

    Returns:
        List of Citation objects sorted by position. Empty for empty input.

    Example:
        >>> [c.url for c in extract_citations("See https://a.com and also https://a.com")]
        ['https://a.com']
    """
    if not response_text:
        return []

    seen_urls: set[str] = set()
    collected: list[tuple[str, str | None, int]] = []

    for url, title, offset in find_markdown_links(response_text):
        if url in seen_urls:
            continue
        collected.append((url, title, offset))
        seen_urls.add(url)

    for url, offset in find_urls(response_text):
        if url in seen_urls:
            continue
        collected.append((url, None, offset))
        seen_urls.add(url)

    # sorted() is stable: equal offsets keep markdown-before-bare order
    collected = sorted(collected, key=lambda item: item[2])

    citations = []
    for index, (url, title, offset) in enumerate(collected):
        domain = extract_domain(url)
        citations.append(
            Citation(
                url=url,
                domain=domain,
                title=title,
                favicon_url=favicon_url(domain),
                position=index + 1,
                first_occurrence=offset,
            )
        )

    logger.debug(
        f"Extracted {len(citations)} citations from {llm_provider} response "
        f"({len(response_text)} chars)"
    )

    return citations


def website_domain(website: str) -> str:
    """
    Domain of a configured website, which may omit the scheme.

    Example:
        >>> website_domain("www.acme.com")
        'acme.com'
    """
    if "://" not in website:
        website = f"https://{website}"
    return extract_domain(website)


def get_unique_domains(citations: list[Citation]) -> list[str]:
    """Return distinct citation domains in first-seen order."""
    return list(dict.fromkeys(c.domain for c in citations))


def is_our_website_cited(citations: list[Citation], our_website: str | None) -> bool:
    """Check whether any citation points at our website's domain."""
    if not our_website:
        return False

    our_domain = website_domain(our_website)
    return any(c.domain == our_domain for c in citations)


def count_citations_per_domain(citations: list[Citation]) -> dict[str, int]:
    """Count citations per domain."""
    counts: dict[str, int] = {}
    for citation in citations:
        counts[citation.domain] = counts.get(citation.domain, 0) + 1
    return counts


def get_our_best_citation_position(
    citations: list[Citation], our_website: str | None
) -> int | None:
    """
    Return the earliest position at which our website is cited.

    Returns None when no website is given or it is not cited.
    """
    if not our_website:
        return None

    our_domain = website_domain(our_website)
    positions = [c.position for c in citations if c.domain == our_domain]

    return min(positions) if positions else None
