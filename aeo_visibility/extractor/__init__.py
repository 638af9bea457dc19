"""
Extractor module for parsing LLM answers into citations and brand mentions.

Public API:
    - Citation: Dataclass for one cited URL
    - extract_citations: Find, dedupe and rank cited URLs
    - BrandMention / BrandAnalysis: Brand detection results
    - detect_brands: Whole-word detection of a fixed brand list
    - DynamicBrandDetector: Generative-model-assisted detection
    - find_brand_occurrences / extract_brand_data: Offsets and name -> rank maps
    - count_citations_per_domain: Citations per cited domain
"""

from aeo_visibility.extractor.brand_detector import (
    BrandAnalysis,
    BrandMention,
    create_brand_pattern,
    detect_brands,
    empty_brand_analysis,
    extract_brand_data,
    find_brand_occurrences,
    normalize_brand_name,
)
from aeo_visibility.extractor.citation_extractor import (
    Citation,
    count_citations_per_domain,
    extract_citations,
    extract_domain,
)
from aeo_visibility.extractor.dynamic_brand_detector import (
    DynamicBrandDetector,
    detect_brands_dynamically,
    parse_brand_list,
)

__all__ = [
    "BrandAnalysis",
    "BrandMention",
    "Citation",
    "DynamicBrandDetector",
    "count_citations_per_domain",
    "create_brand_pattern",
    "detect_brands",
    "detect_brands_dynamically",
    "empty_brand_analysis",
    "extract_brand_data",
    "extract_citations",
    "extract_domain",
    "find_brand_occurrences",
    "normalize_brand_name",
    "parse_brand_list",
]
