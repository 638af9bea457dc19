"""
Tests for extractor.brand_detector module.

Tests cover:
- Whole-word, case-insensitive matching (no substring false positives)
- Ranking by first occurrence with candidate-order tie-breaks
- Relevancy three-valued law
- Empty-input short-circuits
- Competitor list hygiene (blanks, duplicates, our brand repeated)
- Aggregation helpers
"""

import re

import pytest

from aeo_visibility.extractor.brand_detector import (
    BrandAnalysis,
    BrandMention,
    aggregate_competitor_mentions,
    build_brand_analysis,
    calculate_average_positions,
    calculate_relevancy,
    create_brand_pattern,
    detect_brands,
    empty_brand_analysis,
    extract_brand_data,
    find_brand_occurrences,
    normalize_brand_name,
)


class TestCreateBrandPattern:
    """Test suite for create_brand_pattern()."""

    def test_matches_whole_word(self):
        assert create_brand_pattern("Acme").search("I use Acme daily")

    def test_no_match_inside_word(self):
        """'Cap' must not match inside 'Capital'."""
        assert create_brand_pattern("Cap").search("Capital One") is None

    def test_no_match_as_suffix(self):
        assert create_brand_pattern("Hub").search("GitHub is popular") is None

    def test_case_insensitive(self):
        assert create_brand_pattern("HubSpot").search("try HUBSPOT today")

    @pytest.mark.parametrize(
        "text",
        [
            "Acme",
            "(Acme)",
            "[Acme]",
            "{Acme}",
            '"Acme"',
            "'Acme'",
            "`Acme`",
            "Acme-based tools",
            "Acme, Beta",
            "Acme; Beta",
            "Acme: great",
            "Acme! Really?",
            "Is it Acme?",
            "Acme.",
        ],
    )
    def test_boundary_characters(self, text):
        """Every listed boundary character delimits a brand."""
        assert create_brand_pattern("Acme").search(text)

    def test_brand_with_punctuation_is_escaped(self):
        """Regex metacharacters in brand names are literal."""
        pattern = create_brand_pattern("Warmly.io")

        assert pattern.search("We recommend Warmly.io for outreach")
        assert pattern.search("We recommend WarmlyXio") is None

    def test_brand_with_plus(self):
        assert create_brand_pattern("C++").search("Written in C++ mostly")

    def test_empty_brand_raises(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            create_brand_pattern("   ")

    def test_returns_compiled_pattern(self):
        assert isinstance(create_brand_pattern("Acme"), re.Pattern)


class TestDetectBrands:
    """Test suite for detect_brands()."""

    def test_ranking_scenario(self):
        """Beta(1), Acme(2), Gamma(3) by first occurrence."""
        text = "...Beta is solid, but Acme leads the market, and Gamma trails..."

        analysis = detect_brands(text, "Acme", ["Beta", "Gamma"])

        assert [(m.brand_name, m.position) for m in analysis.brands_detected] == [
            ("Beta", 1),
            ("Acme", 2),
            ("Gamma", 3),
        ]
        assert analysis.our_brand_mentioned is True
        assert analysis.our_brand_position == 2
        assert analysis.relevancy_score == 100
        assert analysis.total_brands_mentioned == 3
        assert analysis.detection_method == "static"

    def test_word_boundary_precision(self):
        """'Capital' inside 'Capitalism' is not a mention."""
        analysis = detect_brands("Capitalism is complex", "Capital", [])

        assert analysis.our_brand_mentioned is False
        assert analysis.our_brand_position is None
        assert analysis.brands_detected == []

    def test_whole_word_match_found(self):
        analysis = detect_brands("Capital One is great", "Capital", [])

        assert analysis.our_brand_mentioned is True
        assert analysis.our_brand_position == 1

    def test_only_first_occurrence_tracked(self):
        analysis = detect_brands("Acme, Beta, Acme, Acme", "Acme", ["Beta"])

        assert len(analysis.brands_detected) == 2
        assert analysis.brands_detected[0].first_occurrence == 0

    def test_competitors_only_relevancy_50(self):
        analysis = detect_brands("Beta and Gamma dominate", "Acme", ["Beta", "Gamma"])

        assert analysis.our_brand_mentioned is False
        assert analysis.our_brand_position is None
        assert analysis.relevancy_score == 50
        assert [m.position for m in analysis.brands_detected] == [1, 2]

    def test_no_brands_relevancy_0(self):
        analysis = detect_brands("Nothing to see here", "Acme", ["Beta"])

        assert analysis.relevancy_score == 0
        assert analysis.total_brands_mentioned == 0

    def test_tie_broken_by_candidate_order(self):
        """Brands at the same offset keep candidate order (our brand first)."""
        analysis = detect_brands("Acme Labs builds things", "Acme", ["Acme Labs"])

        assert [(m.brand_name, m.position) for m in analysis.brands_detected] == [
            ("Acme", 1),
            ("Acme Labs", 2),
        ]

    def test_empty_text_short_circuits(self):
        analysis = detect_brands("", "Acme", ["Beta"])

        assert analysis == empty_brand_analysis()
        assert analysis.detection_method == "none"

    def test_empty_brand_short_circuits(self):
        """Competitors are not scanned without a tracked brand."""
        analysis = detect_brands("Beta is here", "", ["Beta"])

        assert analysis.brands_detected == []
        assert analysis.relevancy_score == 0

    def test_blank_and_duplicate_competitors_skipped(self):
        analysis = detect_brands(
            "Acme and Beta compete", "Acme", ["", "  ", "beta", "Beta", "ACME"]
        )

        assert [m.brand_name for m in analysis.brands_detected] == ["Acme", "beta"]
        assert sum(1 for m in analysis.brands_detected if m.is_our_brand) == 1

    def test_our_brand_flag(self):
        analysis = detect_brands("Beta then Acme", "Acme", ["Beta"])

        flags = {m.brand_name: m.is_our_brand for m in analysis.brands_detected}
        assert flags == {"Beta": False, "Acme": True}

    def test_idempotent(self):
        text = "Beta is solid, but Acme leads the market, and Gamma trails."

        assert detect_brands(text, "Acme", ["Beta", "Gamma"]) == detect_brands(
            text, "Acme", ["Beta", "Gamma"]
        )

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Acme and Beta", 100),
            ("Only Beta", 50),
            ("Nobody", 0),
            ("Acme alone", 100),
        ],
    )
    def test_relevancy_law(self, text, expected):
        """relevancy is 100 exactly when our brand is mentioned."""
        analysis = detect_brands(text, "Acme", ["Beta"])

        assert analysis.relevancy_score == expected
        assert (analysis.relevancy_score == 100) == analysis.our_brand_mentioned

    def test_positions_dense(self):
        text = "Gamma, Delta, Beta, Acme"

        analysis = detect_brands(text, "Acme", ["Beta", "Gamma", "Delta", "Omega"])

        assert [m.position for m in analysis.brands_detected] == [1, 2, 3, 4]


class TestDataclasses:
    """Test suite for BrandMention / BrandAnalysis validation and serialization."""

    def test_mention_position_validation(self):
        with pytest.raises(ValueError, match="position must be >= 1"):
            BrandMention("Acme", position=0, first_occurrence=0, is_our_brand=True)

    def test_mention_offset_validation(self):
        with pytest.raises(ValueError, match="first_occurrence must be >= 0"):
            BrandMention("Acme", position=1, first_occurrence=-5, is_our_brand=True)

    def test_analysis_relevancy_validation(self):
        with pytest.raises(ValueError, match="relevancy_score must be one of"):
            BrandAnalysis(relevancy_score=75)

    def test_analysis_method_validation(self):
        with pytest.raises(ValueError, match="detection_method"):
            BrandAnalysis(detection_method="fuzzy")

    def test_analysis_round_trip_via_dict(self):
        analysis = detect_brands("Beta then Acme", "Acme", ["Beta"])

        assert BrandAnalysis.from_dict(analysis.to_dict()) == analysis

    def test_from_dict_defaults(self):
        assert BrandAnalysis.from_dict({}) == empty_brand_analysis()


class TestHelpers:
    """Test suite for brand helper functions."""

    def test_normalize_brand_name(self):
        assert normalize_brand_name("  HubSpot ") == "hubspot"

    def test_find_brand_occurrences(self):
        assert find_brand_occurrences("Acme, acme and Acmeish", "Acme") == [0, 6]

    def test_find_brand_occurrences_empty(self):
        assert find_brand_occurrences("", "Acme") == []
        assert find_brand_occurrences("Acme", "") == []

    @pytest.mark.parametrize(
        "ours,total,expected",
        [(True, 3, 100), (True, 1, 100), (False, 2, 50), (False, 0, 0)],
    )
    def test_calculate_relevancy(self, ours, total, expected):
        assert calculate_relevancy(ours, total) == expected

    def test_build_brand_analysis(self):
        mentions = [
            BrandMention("Beta", 1, 0, False),
            BrandMention("Acme", 2, 10, True),
        ]

        analysis = build_brand_analysis(mentions, detection_method="dynamic")

        assert analysis.our_brand_position == 2
        assert analysis.relevancy_score == 100
        assert analysis.detection_method == "dynamic"

    def test_extract_brand_data(self):
        analysis = detect_brands("Beta then Acme", "Acme", ["Beta"])

        names, positions = extract_brand_data(analysis)

        assert names == ["Beta", "Acme"]
        assert positions == {"Beta": 1, "Acme": 2}

    def test_aggregate_competitor_mentions(self):
        analyses = [
            detect_brands("Beta then Acme", "Acme", ["Beta", "Gamma"]),
            detect_brands("Gamma and Beta", "Acme", ["Beta", "Gamma"]),
            detect_brands("Acme only", "Acme", ["Beta", "Gamma"]),
        ]

        assert aggregate_competitor_mentions(analyses) == {"Beta": 2, "Gamma": 1}

    def test_calculate_average_positions(self):
        analyses = [
            detect_brands("Beta then Acme", "Acme", ["Beta"]),
            detect_brands("Acme then Beta", "Acme", ["Beta"]),
        ]

        assert calculate_average_positions(analyses) == {"Beta": 1.5, "Acme": 1.5}
