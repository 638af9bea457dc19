"""
Response analysis (KPI calculation) for AEO Visibility.

Turns one raw LLM answer into a KPIMetrics record: citations, brand
analysis, and the sentiment / prominence / alignment sub-scores.

Key features:
- One ResponseAnalyzer per answer-producing provider, selected through the
  LLMProvider enum (get_response_analyzer)
- Dynamic (generative-model) brand detection when a detector is configured
  and the brand has a name; static whole-word detection otherwise
- analyze_response_static: synchronous, network-free entry point with the
  same result shape
- analyze_samples: bounded-concurrency analysis of a batch of answers for
  one prompt

The only suspension point is the dynamic detector's model call, and that
call never raises, so every analysis returns a well-formed record.

Example:
    >>> analyzer = get_response_analyzer("openai")
    >>> metrics = analyzer.analyze_response_static(
    ...     "Acme is the best choice. See https://acme.com",
    ...     BrandContext(name="Acme", competitors=["Beta"]),
    ... )
    >>> metrics.mention_present, metrics.citations_count, metrics.relevancy_score
    (True, 1, 100)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from aeo_visibility.analysis.scoring import (
    brand_search_term,
    calculate_alignment,
    calculate_prominence,
    calculate_sentiment,
    detect_legacy_mention,
)
from aeo_visibility.config.constants import (
    DEFAULT_MAX_CONCURRENCY,
    PROVIDER_DEFAULT_MODELS,
)
from aeo_visibility.config.schema import BrandContext
from aeo_visibility.extractor.brand_detector import BrandAnalysis, detect_brands
from aeo_visibility.extractor.citation_extractor import Citation, extract_citations
from aeo_visibility.extractor.dynamic_brand_detector import DynamicBrandDetector
from aeo_visibility.utils.logging import log_with_context
from aeo_visibility.utils.time import snapshot_date, utc_now

logger = logging.getLogger(__name__)


class LLMProvider(StrEnum):
    """Answer engines whose responses are analyzed."""

    OPENAI = "openai"
    PERPLEXITY = "perplexity"
    CLAUDE = "claude"
    GEMINI = "gemini"


@dataclass(frozen=True)
class RawResponse:
    """An answer as received from an answer engine, before analysis."""

    answer_text: str
    llm_provider: str = LLMProvider.OPENAI.value


@dataclass
class KPIMetrics:
    """
    KPIs for one LLM answer.

    Legacy fields (mention_present, citations_count, sentiment, prominence,
    alignment, raw_answer) are kept for older consumers next to the
    enhanced fields derived from the brand analysis. mention_present is a
    loose substring check and may disagree with our_brand_mentioned.

    Attributes:
        mention_present: Brand name or website domain occurs as a substring
        citations_count: Number of distinct cited URLs
        sentiment: Keyword sentiment in [-1, 1]
        prominence: In [0, 1], lower = more prominent
        alignment: Length/structure heuristic in [0, 1]
        raw_answer: The answer text as received
        response_text: Same text, under the enhanced field name
        brand_analysis: Ranked brand detection result
        citations: Ranked citations
        our_brand_mentioned: From brand_analysis
        our_brand_position: From brand_analysis, None iff not mentioned
        relevancy_score: 100 / 50 / 0, from brand_analysis
        llm_provider: Provider that produced the answer
    """

    mention_present: bool
    citations_count: int
    sentiment: float
    prominence: float
    alignment: float
    raw_answer: str
    response_text: str
    brand_analysis: BrandAnalysis
    citations: list[Citation]
    our_brand_mentioned: bool
    our_brand_position: int | None
    relevancy_score: int
    llm_provider: str = LLMProvider.OPENAI.value

    def to_dict(self) -> dict:
        return {
            "mention_present": self.mention_present,
            "citations_count": self.citations_count,
            "sentiment": self.sentiment,
            "prominence": self.prominence,
            "alignment": self.alignment,
            "raw_answer": self.raw_answer,
            "response_text": self.response_text,
            "brand_analysis": self.brand_analysis.to_dict(),
            "citations": [c.to_dict() for c in self.citations],
            "our_brand_mentioned": self.our_brand_mentioned,
            "our_brand_position": self.our_brand_position,
            "relevancy_score": self.relevancy_score,
            "llm_provider": self.llm_provider,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "KPIMetrics":
        """
        Rebuild a record from its to_dict() form.

        The legacy numeric fields are required. Enhanced fields fall back to
        the embedded brand_analysis, or to an empty one.

        Raises:
            KeyError: If a legacy field is missing
            ValueError / TypeError: If a field has the wrong type
        """
        brand_analysis = BrandAnalysis.from_dict(data.get("brand_analysis") or {})
        citations = [Citation.from_dict(c) for c in data.get("citations") or []]
        raw_answer = data.get("raw_answer", data.get("response_text", ""))

        return cls(
            mention_present=bool(data["mention_present"]),
            citations_count=int(data["citations_count"]),
            sentiment=float(data["sentiment"]),
            prominence=float(data["prominence"]),
            alignment=float(data["alignment"]),
            raw_answer=raw_answer,
            response_text=data.get("response_text", raw_answer),
            brand_analysis=brand_analysis,
            citations=citations,
            our_brand_mentioned=bool(
                data.get("our_brand_mentioned", brand_analysis.our_brand_mentioned)
            ),
            our_brand_position=data.get(
                "our_brand_position", brand_analysis.our_brand_position
            ),
            relevancy_score=int(
                data.get("relevancy_score", brand_analysis.relevancy_score)
            ),
            llm_provider=data.get("llm_provider", LLMProvider.OPENAI.value),
        )


@dataclass
class PromptKPIResult:
    """
    All analyzed samples for one prompt from one provider.

    Attributes:
        prompt_id: Caller-supplied prompt identifier
        metrics: One KPIMetrics per answer, in input order
        calculated_at: UTC time the batch finished
        llm_provider: Provider tag of the analyzer
        llm_model: Model name recorded for that provider
    """

    prompt_id: str
    metrics: list[KPIMetrics]
    calculated_at: datetime
    llm_provider: str
    llm_model: str

    def to_dict(self) -> dict:
        return {
            "prompt_id": self.prompt_id,
            "metrics": [m.to_dict() for m in self.metrics],
            "calculated_at": self.calculated_at.isoformat(),
            "snapshot_date": snapshot_date(self.calculated_at),
            "llm_provider": self.llm_provider,
            "llm_model": self.llm_model,
        }


class ResponseAnalyzer:
    """
    Analyzes answers produced by one provider.

    Subclasses only pin the provider tag; the KPI computation is shared.

    Attributes:
        provider: Provider whose answers this analyzer handles
        detector: Dynamic brand detector, or None for static detection
        model_name: Answer model recorded on PromptKPIResult
    """

    provider: LLMProvider = LLMProvider.OPENAI

    def __init__(
        self,
        detector: DynamicBrandDetector | None = None,
        model_name: str | None = None,
    ):
        self.detector = detector
        self.model_name = model_name or PROVIDER_DEFAULT_MODELS[self.provider.value]

    async def analyze_response(
        self, response_text: str, brand_context: BrandContext
    ) -> KPIMetrics:
        """
        Analyze one answer, using dynamic detection when possible.

        Dynamic detection is used when the brand has a name and a detector
        is configured. A failed detection yields the empty brand analysis;
        the other KPIs are still computed.
        """
        if brand_context.name and self.detector is not None:
            brand_analysis = await self.detector.detect(response_text, brand_context.name)
        else:
            brand_analysis = self._detect_static(response_text, brand_context)

        return self._build_metrics(response_text, brand_context, brand_analysis)

    def analyze_response_static(
        self, response_text: str, brand_context: BrandContext
    ) -> KPIMetrics:
        """Analyze one answer with static detection only (no network)."""
        brand_analysis = self._detect_static(response_text, brand_context)
        return self._build_metrics(response_text, brand_context, brand_analysis)

    async def analyze_samples(
        self,
        answers: list[str],
        brand_context: BrandContext,
        prompt_id: str = "",
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> PromptKPIResult:
        """
        Analyze several already-fetched answers to the same prompt.

        At most max_concurrency analyses run at once; results keep the
        order of answers.

        Raises:
            ValueError: If max_concurrency < 1
        """
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got: {max_concurrency}")

        semaphore = asyncio.Semaphore(max_concurrency)

        async def _analyze_with_semaphore(text: str) -> KPIMetrics:
            async with semaphore:
                return await self.analyze_response(text, brand_context)

        log_with_context(
            logger,
            logging.INFO,
            f"Analyzing {len(answers)} {self.provider.value} answers",
            context={"samples": len(answers), "max_concurrency": max_concurrency},
            prompt_id=prompt_id or None,
        )

        metrics = await asyncio.gather(*(_analyze_with_semaphore(a) for a in answers))

        return PromptKPIResult(
            prompt_id=prompt_id,
            metrics=list(metrics),
            calculated_at=utc_now(),
            llm_provider=self.provider.value,
            llm_model=self.model_name,
        )

    def _detect_static(
        self, response_text: str, brand_context: BrandContext
    ) -> BrandAnalysis:
        return detect_brands(response_text, brand_context.name, brand_context.competitors)

    def _build_metrics(
        self,
        response_text: str,
        brand_context: BrandContext,
        brand_analysis: BrandAnalysis,
    ) -> KPIMetrics:
        text = response_text or ""
        citations = extract_citations(text, llm_provider=self.provider.value)
        term = brand_search_term(brand_context.name, brand_context.website)

        return KPIMetrics(
            mention_present=detect_legacy_mention(
                text, brand_context.name, brand_context.website
            ),
            citations_count=len(citations),
            sentiment=calculate_sentiment(text),
            prominence=calculate_prominence(text, term),
            alignment=calculate_alignment(text),
            raw_answer=text,
            response_text=text,
            brand_analysis=brand_analysis,
            citations=citations,
            our_brand_mentioned=brand_analysis.our_brand_mentioned,
            our_brand_position=brand_analysis.our_brand_position,
            relevancy_score=brand_analysis.relevancy_score,
            llm_provider=self.provider.value,
        )


class OpenAIResponseAnalyzer(ResponseAnalyzer):
    provider = LLMProvider.OPENAI


class PerplexityResponseAnalyzer(ResponseAnalyzer):
    provider = LLMProvider.PERPLEXITY


class ClaudeResponseAnalyzer(ResponseAnalyzer):
    provider = LLMProvider.CLAUDE


class GeminiResponseAnalyzer(ResponseAnalyzer):
    provider = LLMProvider.GEMINI


RESPONSE_ANALYZERS: dict[LLMProvider, type[ResponseAnalyzer]] = {
    LLMProvider.OPENAI: OpenAIResponseAnalyzer,
    LLMProvider.PERPLEXITY: PerplexityResponseAnalyzer,
    LLMProvider.CLAUDE: ClaudeResponseAnalyzer,
    LLMProvider.GEMINI: GeminiResponseAnalyzer,
}


def resolve_provider(provider: str | LLMProvider) -> LLMProvider:
    """
    Map a provider tag to LLMProvider, ignoring case and surrounding whitespace.

    Raises:
        ValueError: If the tag names no supported provider

    Example:
        >>> resolve_provider(" OpenAI ")
        <LLMProvider.OPENAI: 'openai'>
    """
    try:
        return LLMProvider(str(provider).strip().lower())
    except ValueError:
        supported = ", ".join(p.value for p in LLMProvider)
        raise ValueError(
            f"Unsupported provider: '{provider}'. Supported providers: {supported}"
        ) from None


def get_response_analyzer(
    provider: str | LLMProvider,
    detector: DynamicBrandDetector | None = None,
    model_name: str | None = None,
) -> ResponseAnalyzer:
    """
    Create the analyzer for a provider.

    Raises:
        ValueError: If provider is not one of LLMProvider
    """
    key = resolve_provider(provider)
    return RESPONSE_ANALYZERS[key](detector=detector, model_name=model_name)


async def analyze_response(
    response_text: str,
    brand_context: BrandContext,
    llm_provider: str | LLMProvider = LLMProvider.OPENAI,
    detector: DynamicBrandDetector | None = None,
) -> KPIMetrics:
    """
    One-shot convenience: analyze a single answer from a provider.

    An unrecognized provider tag is analyzed with the OpenAI analyzer
    (every provider shares the same citation syntax) and logged as a warning.
    """
    try:
        analyzer = get_response_analyzer(llm_provider, detector=detector)
    except ValueError:
        logger.warning(
            f"Unknown provider '{llm_provider}', analyzing as {LLMProvider.OPENAI.value}"
        )
        analyzer = get_response_analyzer(LLMProvider.OPENAI, detector=detector)

    return await analyzer.analyze_response(response_text, brand_context)


async def analyze_raw_response(
    raw: RawResponse,
    brand_context: BrandContext,
    detector: DynamicBrandDetector | None = None,
) -> KPIMetrics:
    """Analyze a RawResponse with the analyzer for its provider."""
    return await analyze_response(
        raw.answer_text, brand_context, llm_provider=raw.llm_provider, detector=detector
    )
