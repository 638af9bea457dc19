"""
Tests for analysis.aggregator module.

Tests cover:
- Zero guard for empty input
- Mention counting with OR semantics
- Average brand position excluding unranked records, prominence fallback
- Visibility score under both prominence conventions
- Persistence scaling in to_record()
- Topic-level rollup
"""

import pytest

from aeo_visibility.analysis.aggregator import (
    ProminenceConvention,
    aggregate,
    aggregate_topic,
    calculate_visibility_score,
)
from aeo_visibility.analysis.analyzer import KPIMetrics
from aeo_visibility.extractor.brand_detector import (
    BrandAnalysis,
    BrandMention,
    build_brand_analysis,
    empty_brand_analysis,
)
from aeo_visibility.extractor.citation_extractor import extract_citations


def make_metrics(
    mention_present=False,
    citations_count=0,
    sentiment=0.0,
    prominence=1.0,
    alignment=0.0,
    brand_analysis=None,
):
    """Build a KPIMetrics record with only the fields a test cares about."""
    brand_analysis = brand_analysis or empty_brand_analysis()
    return KPIMetrics(
        mention_present=mention_present,
        citations_count=citations_count,
        sentiment=sentiment,
        prominence=prominence,
        alignment=alignment,
        raw_answer="",
        response_text="",
        brand_analysis=brand_analysis,
        citations=[],
        our_brand_mentioned=brand_analysis.our_brand_mentioned,
        our_brand_position=brand_analysis.our_brand_position,
        relevancy_score=brand_analysis.relevancy_score,
    )


def make_analysis(*names, ours="Acme"):
    """Ranked analysis with the given brand names in order."""
    mentions = [
        BrandMention(
            brand_name=name,
            position=index + 1,
            first_occurrence=index * 10,
            is_our_brand=name == ours,
        )
        for index, name in enumerate(names)
    ]
    return build_brand_analysis(mentions, detection_method="static")


@pytest.fixture
def two_records():
    return [
        make_metrics(
            mention_present=True,
            citations_count=1,
            sentiment=0.4,
            prominence=0.2,
            alignment=0.5,
            brand_analysis=make_analysis("Acme", "Beta"),
        ),
        make_metrics(
            citations_count=0,
            sentiment=0.0,
            prominence=1.0,
            alignment=0.3,
            brand_analysis=make_analysis("Beta", "Gamma"),
        ),
    ]


class TestAggregateEmpty:
    """Test suite for aggregate() on empty input."""

    @pytest.mark.parametrize("convention", list(ProminenceConvention))
    def test_zero_guard(self, convention):
        snapshot = aggregate([], prominence_convention=convention)

        assert snapshot.total_measurements == 0
        assert snapshot.mention_rate == 0.0
        assert snapshot.citation_rate == 0.0
        assert snapshot.avg_sentiment == 0.0
        assert snapshot.avg_prominence == 0.0
        assert snapshot.avg_alignment == 0.0
        assert snapshot.avg_brand_position is None
        assert snapshot.avg_position is None
        assert snapshot.visibility_score == 0.0
        assert snapshot.competitor_mentions == {}


class TestAggregate:
    """Test suite for aggregate()."""

    def test_counts_and_rates(self, two_records):
        snapshot = aggregate(two_records)

        assert snapshot.total_measurements == 2
        assert snapshot.mention_count == 1
        assert snapshot.citation_count == 1
        assert snapshot.mention_rate == 0.5
        assert snapshot.citation_rate == 0.5
        assert snapshot.avg_sentiment == pytest.approx(0.2)
        assert snapshot.avg_prominence == pytest.approx(0.6)
        assert snapshot.avg_alignment == pytest.approx(0.4)

    def test_mention_uses_or_semantics(self):
        """Either the substring check or the brand analysis counts as a mention."""
        records = [
            make_metrics(mention_present=True),
            make_metrics(brand_analysis=make_analysis("Acme")),
            make_metrics(),
        ]

        snapshot = aggregate(records)

        assert snapshot.mention_count == 2

    def test_avg_brand_position_excludes_unranked(self):
        records = [
            make_metrics(brand_analysis=make_analysis("Acme")),
            make_metrics(brand_analysis=make_analysis("Beta", "Gamma", "Acme")),
            make_metrics(brand_analysis=make_analysis("Beta")),
        ]

        snapshot = aggregate(records)

        assert snapshot.avg_brand_position == 2.0
        assert snapshot.avg_position == 2.0

    def test_avg_position_falls_back_to_prominence(self):
        records = [make_metrics(prominence=0.3), make_metrics(prominence=0.5)]

        snapshot = aggregate(records)

        assert snapshot.avg_brand_position is None
        assert snapshot.avg_position == pytest.approx(0.4)

    def test_visibility_raw(self, two_records):
        snapshot = aggregate(two_records)

        assert snapshot.visibility_score == pytest.approx(0.51)

    def test_visibility_inverted(self, two_records):
        snapshot = aggregate(two_records, prominence_convention=ProminenceConvention.INVERTED)

        assert snapshot.visibility_score == pytest.approx(0.46)

    def test_convention_accepts_string(self, two_records):
        snapshot = aggregate(two_records, prominence_convention="inverted")

        assert snapshot.visibility_score == pytest.approx(0.46)

    def test_competitor_mentions(self, two_records):
        snapshot = aggregate(two_records)

        assert snapshot.competitor_mentions == {"Beta": 2, "Gamma": 1}

    def test_to_record_scaling(self, two_records):
        record = aggregate(two_records).to_record()

        assert record["visibility_score"] == 51
        assert record["mention_rate"] == 50
        assert record["citation_rate"] == 50
        assert record["avg_sentiment"] == 0.2
        assert record["avg_prominence"] == 0.6
        assert record["avg_alignment"] == 0.4
        assert record["avg_brand_position"] == 1.0
        assert record["avg_position"] == 1.0

    def test_to_record_empty(self):
        record = aggregate([]).to_record()

        assert record["visibility_score"] == 0
        assert record["avg_brand_position"] is None
        assert record["avg_position"] is None


class TestCalculateVisibilityScore:
    """Test suite for calculate_visibility_score()."""

    def test_weights(self):
        assert calculate_visibility_score(1.0, 0.0, 0.0, 0.0) == pytest.approx(0.4)
        assert calculate_visibility_score(0.0, 1.0, 0.0, 0.0) == pytest.approx(0.25)
        assert calculate_visibility_score(0.0, 0.0, 1.0, 0.0) == pytest.approx(0.2)
        assert calculate_visibility_score(0.0, 0.0, 0.0, 1.0) == pytest.approx(0.15)

    def test_inverted_rewards_prominent_brands(self):
        prominent = calculate_visibility_score(
            1.0, 0.0, 1.0, 1.0, prominence_convention=ProminenceConvention.INVERTED
        )
        buried = calculate_visibility_score(
            1.0, 1.0, 1.0, 1.0, prominence_convention=ProminenceConvention.INVERTED
        )

        assert prominent == pytest.approx(1.0)
        assert buried == pytest.approx(0.75)


class TestAggregateTopic:
    """Test suite for aggregate_topic()."""

    def test_empty(self):
        topic = aggregate_topic([])

        assert topic.total_prompts_measured == 0
        assert topic.visibility_score == 0.0
        assert topic.avg_rank is None
        assert topic.best_rank is None
        assert topic.worst_rank is None
        assert topic.unique_domains_cited == []

    def test_rollup(self, two_records):
        first = aggregate(two_records)
        second = aggregate(
            [
                make_metrics(
                    mention_present=True,
                    citations_count=2,
                    brand_analysis=make_analysis("Beta", "Acme"),
                ),
            ]
        )
        analyses = [m.brand_analysis for m in two_records] + [make_analysis("Beta", "Acme")]
        citations = extract_citations(
            "See https://acme.com and https://www.beta.io/x and https://acme.com/pricing"
        )

        topic = aggregate_topic([first, second], brand_analyses=analyses, citations=citations)

        assert topic.total_prompts_measured == 2
        assert topic.total_llm_queries == 3
        assert topic.our_brand_mention_count == 2
        assert topic.visibility_score == pytest.approx(2 / 3)
        assert topic.avg_rank == pytest.approx(1.5)
        assert topic.best_rank == 1.0
        assert topic.worst_rank == 2.0
        assert topic.total_citations == 2
        assert topic.unique_domains_cited == ["acme.com", "beta.io"]
        assert topic.competitor_mentions == {"Beta": 3, "Gamma": 1}
        assert topic.competitor_positions == pytest.approx({"Beta": 4 / 3, "Gamma": 2.0})

    def test_competitor_positions_exclude_our_brand(self):
        analyses = [make_analysis("Acme", "Beta")]
        snapshot = aggregate([make_metrics(brand_analysis=analyses[0])])

        topic = aggregate_topic([snapshot], brand_analyses=analyses)

        assert "Acme" not in topic.competitor_positions
        assert topic.competitor_positions == {"Beta": 2.0}

    def test_to_record(self, two_records):
        record = aggregate_topic([aggregate(two_records)]).to_record()

        assert record["visibility_score"] == 50
        assert record["avg_rank"] == 1.0
        assert record["competitor_positions"] == {}


class TestBrandAnalysisInput:
    """Aggregation accepts analyses from either detection method."""

    def test_dynamic_and_static_mix(self):
        dynamic = BrandAnalysis(
            our_brand_mentioned=False,
            our_brand_position=None,
            brands_detected=[
                BrandMention("Zeta", position=1, first_occurrence=100, is_our_brand=False)
            ],
            total_brands_mentioned=1,
            relevancy_score=50,
            detection_method="dynamic",
        )
        records = [
            make_metrics(brand_analysis=dynamic),
            make_metrics(brand_analysis=make_analysis("Zeta", "Acme")),
        ]

        snapshot = aggregate(records)

        assert snapshot.competitor_mentions == {"Zeta": 2}
        assert snapshot.avg_brand_position == 2.0
