"""
Analysis module: per-answer KPIs and their aggregation.

Public API:
    - get_response_analyzer / ResponseAnalyzer: KPI calculation per provider
    - KPIMetrics / PromptKPIResult: per-answer and per-prompt results
    - aggregate / AggregateSnapshot: prompt/day rollup
    - aggregate_topic / TopicSnapshot: topic rollup
"""

from aeo_visibility.analysis.aggregator import (
    AggregateSnapshot,
    ProminenceConvention,
    TopicSnapshot,
    aggregate,
    aggregate_topic,
)
from aeo_visibility.analysis.analyzer import (
    KPIMetrics,
    LLMProvider,
    PromptKPIResult,
    RawResponse,
    ResponseAnalyzer,
    analyze_raw_response,
    analyze_response,
    get_response_analyzer,
    resolve_provider,
)

__all__ = [
    "AggregateSnapshot",
    "KPIMetrics",
    "LLMProvider",
    "ProminenceConvention",
    "PromptKPIResult",
    "RawResponse",
    "ResponseAnalyzer",
    "TopicSnapshot",
    "aggregate",
    "aggregate_topic",
    "analyze_raw_response",
    "analyze_response",
    "get_response_analyzer",
    "resolve_provider",
]
