"""
Aggregation of per-answer KPIs into snapshots.

aggregate() reduces the KPIMetrics of one prompt / provider / day into an
AggregateSnapshot; aggregate_topic() rolls several prompt snapshots up into
a TopicSnapshot.

Both are pure reductions: no retries and no special handling of partial
records. Empty input yields zero rates, zero visibility and None positions,
never NaN.

Visibility formula:
    0.4 * mention_rate + 0.25 * P + 0.2 * citation_rate + 0.15 * avg_alignment

where P is avg_prominence under ProminenceConvention.RAW (the historical
formula) and 1 - avg_prominence under ProminenceConvention.INVERTED. Since
prominence is "lower = more prominent", RAW rewards being buried; INVERTED
is available for consumers that want a consistent "higher is better" score.

Example:
    >>> snapshot = aggregate([])
    >>> snapshot.total_measurements, snapshot.mention_rate, snapshot.avg_brand_position
    (0, 0.0, None)
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum

from aeo_visibility.analysis.analyzer import KPIMetrics
from aeo_visibility.extractor.brand_detector import (
    BrandAnalysis,
    aggregate_competitor_mentions,
    calculate_average_positions,
)
from aeo_visibility.extractor.citation_extractor import Citation, get_unique_domains

logger = logging.getLogger(__name__)

MENTION_WEIGHT = 0.4
PROMINENCE_WEIGHT = 0.25
CITATION_WEIGHT = 0.2
ALIGNMENT_WEIGHT = 0.15


class ProminenceConvention(StrEnum):
    """How avg_prominence enters the visibility score."""

    RAW = "raw"
    INVERTED = "inverted"


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _rate(count: int, total: int) -> float:
    return count / total if total else 0.0


@dataclass
class AggregateSnapshot:
    """
    KPIs for one prompt, one provider, one day.

    Attributes:
        total_measurements: Number of records aggregated
        mention_count: Records with mention_present OR our_brand_mentioned
        citation_count: Records with at least one citation
        mention_rate: mention_count / total_measurements
        citation_rate: citation_count / total_measurements
        avg_sentiment: Mean sentiment
        avg_prominence: Mean prominence
        avg_alignment: Mean alignment
        avg_brand_position: Mean rank over records where our brand ranked, else None
        avg_position: avg_brand_position, falling back to avg_prominence
            (None for an empty snapshot)
        visibility_score: Weighted score in [0, 1]
        competitor_mentions: Competitor name -> records mentioning it
    """

    total_measurements: int
    mention_count: int
    citation_count: int
    mention_rate: float
    citation_rate: float
    avg_sentiment: float
    avg_prominence: float
    avg_alignment: float
    avg_brand_position: float | None
    avg_position: float | None
    visibility_score: float
    competitor_mentions: dict[str, int] = field(default_factory=dict)

    def to_record(self) -> dict:
        """
        Persistence-ready form.

        visibility_score, mention_rate and citation_rate are scaled to
        0-100 and rounded to integers; averages are rounded to 2 decimals.
        """
        return {
            "total_measurements": self.total_measurements,
            "mention_count": self.mention_count,
            "citation_count": self.citation_count,
            "visibility_score": round(self.visibility_score * 100),
            "mention_rate": round(self.mention_rate * 100),
            "citation_rate": round(self.citation_rate * 100),
            "avg_sentiment": round(self.avg_sentiment, 2),
            "avg_prominence": round(self.avg_prominence, 2),
            "avg_alignment": round(self.avg_alignment, 2),
            "avg_brand_position": _round_optional(self.avg_brand_position),
            "avg_position": _round_optional(self.avg_position),
            "competitor_mentions": dict(self.competitor_mentions),
        }


def _round_optional(value: float | None) -> float | None:
    return round(value, 2) if value is not None else None


def calculate_visibility_score(
    mention_rate: float,
    avg_prominence: float,
    citation_rate: float,
    avg_alignment: float,
    prominence_convention: ProminenceConvention = ProminenceConvention.RAW,
) -> float:
    """Weighted visibility score in [0, 1]."""
    if prominence_convention == ProminenceConvention.INVERTED:
        prominence_term = 1 - avg_prominence
    else:
        prominence_term = avg_prominence

    return (
        MENTION_WEIGHT * mention_rate
        + PROMINENCE_WEIGHT * prominence_term
        + CITATION_WEIGHT * citation_rate
        + ALIGNMENT_WEIGHT * avg_alignment
    )


def aggregate(
    metrics: list[KPIMetrics],
    prominence_convention: ProminenceConvention = ProminenceConvention.RAW,
) -> AggregateSnapshot:
    """
    Reduce per-answer KPIs into a snapshot.

    Args:
        metrics: Records for one prompt / provider / day
        prominence_convention: How avg_prominence enters visibility_score

    Returns:
        AggregateSnapshot (all-zero with None positions for empty input)
    """
    total = len(metrics)

    mention_count = sum(1 for m in metrics if m.mention_present or m.our_brand_mentioned)
    citation_count = sum(1 for m in metrics if m.citations_count > 0)

    mention_rate = _rate(mention_count, total)
    citation_rate = _rate(citation_count, total)

    avg_sentiment = _mean([m.sentiment for m in metrics])
    avg_prominence = _mean([m.prominence for m in metrics])
    avg_alignment = _mean([m.alignment for m in metrics])

    positions = [m.our_brand_position for m in metrics if m.our_brand_position is not None]
    avg_brand_position = _mean(positions) if positions else None

    if avg_brand_position is not None:
        avg_position = avg_brand_position
    elif total:
        avg_position = avg_prominence
    else:
        avg_position = None

    if total:
        visibility_score = calculate_visibility_score(
            mention_rate,
            avg_prominence,
            citation_rate,
            avg_alignment,
            prominence_convention=ProminenceConvention(prominence_convention),
        )
    else:
        visibility_score = 0.0

    competitor_mentions = aggregate_competitor_mentions([m.brand_analysis for m in metrics])

    logger.debug(
        f"Aggregated {total} measurements: mentions={mention_count}, "
        f"citations={citation_count}, visibility={visibility_score:.3f}"
    )

    return AggregateSnapshot(
        total_measurements=total,
        mention_count=mention_count,
        citation_count=citation_count,
        mention_rate=mention_rate,
        citation_rate=citation_rate,
        avg_sentiment=avg_sentiment,
        avg_prominence=avg_prominence,
        avg_alignment=avg_alignment,
        avg_brand_position=avg_brand_position,
        avg_position=avg_position,
        visibility_score=visibility_score,
        competitor_mentions=competitor_mentions,
    )


@dataclass
class TopicSnapshot:
    """
    Topic-level rollup of prompt snapshots for one day.

    Attributes:
        total_prompts_measured: Number of prompt snapshots
        total_llm_queries: Sum of their total_measurements
        our_brand_mention_count: Sum of their mention_count
        visibility_score: our_brand_mention_count / total_llm_queries, in [0, 1]
        avg_rank: Mean of non-null prompt avg_position values
        best_rank: Lowest prompt avg_position
        worst_rank: Highest prompt avg_position
        total_citations: Sum of their citation_count
        unique_domains_cited: Distinct cited domains, first-seen order
        competitor_mentions: Competitor -> analyses mentioning it
        competitor_positions: Competitor -> mean rank where mentioned
    """

    total_prompts_measured: int
    total_llm_queries: int
    our_brand_mention_count: int
    visibility_score: float
    avg_rank: float | None
    best_rank: float | None
    worst_rank: float | None
    total_citations: int
    unique_domains_cited: list[str] = field(default_factory=list)
    competitor_mentions: dict[str, int] = field(default_factory=dict)
    competitor_positions: dict[str, float] = field(default_factory=dict)

    def to_record(self) -> dict:
        """Persistence-ready form (visibility scaled to 0-100, ranks to 2 decimals)."""
        return {
            "total_prompts_measured": self.total_prompts_measured,
            "total_llm_queries": self.total_llm_queries,
            "our_brand_mention_count": self.our_brand_mention_count,
            "visibility_score": round(self.visibility_score * 100),
            "avg_rank": _round_optional(self.avg_rank),
            "best_rank": _round_optional(self.best_rank),
            "worst_rank": _round_optional(self.worst_rank),
            "total_citations": self.total_citations,
            "unique_domains_cited": list(self.unique_domains_cited),
            "competitor_mentions": dict(self.competitor_mentions),
            "competitor_positions": {
                name: round(pos, 2) for name, pos in self.competitor_positions.items()
            },
        }


def aggregate_topic(
    snapshots: list[AggregateSnapshot],
    brand_analyses: Iterable[BrandAnalysis] = (),
    citations: Iterable[Citation] = (),
) -> TopicSnapshot:
    """
    Roll prompt snapshots up to the topic level.

    Args:
        snapshots: One AggregateSnapshot per prompt in the topic
        brand_analyses: Brand analyses behind those snapshots, for the
            competitor tally and competitor average positions
        citations: Citations behind those snapshots, for unique domains

    Returns:
        TopicSnapshot (zeros and None ranks for empty input)
    """
    total_queries = sum(s.total_measurements for s in snapshots)
    mention_count = sum(s.mention_count for s in snapshots)
    ranks = [s.avg_position for s in snapshots if s.avg_position is not None]

    analyses = list(brand_analyses)
    competitor_only = [
        BrandAnalysis(
            brands_detected=[m for m in a.brands_detected if not m.is_our_brand],
            detection_method=a.detection_method,
        )
        for a in analyses
    ]

    return TopicSnapshot(
        total_prompts_measured=len(snapshots),
        total_llm_queries=total_queries,
        our_brand_mention_count=mention_count,
        visibility_score=_rate(mention_count, total_queries),
        avg_rank=_mean(ranks) if ranks else None,
        best_rank=min(ranks) if ranks else None,
        worst_rank=max(ranks) if ranks else None,
        total_citations=sum(s.citation_count for s in snapshots),
        unique_domains_cited=get_unique_domains(list(citations)),
        competitor_mentions=aggregate_competitor_mentions(analyses),
        competitor_positions=calculate_average_positions(competitor_only),
    )
