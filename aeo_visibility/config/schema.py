"""
Configuration schema models for AEO Visibility.

Pydantic v2 models validating the analyzer YAML file, plus the runtime models
produced once API keys have been resolved from the environment.

Models:
    BrandContext: Tracked brand (name, website, competitors, description)
    AnalysisSettings: Provider tag, detection strategy, concurrency, scoring convention
    BrandDetectionModelConfig: Generative model used for dynamic brand detection
    AnalyzerConfig: Root configuration model (validates entire YAML)
    RuntimeBrandDetectionModel: Brand detection model with resolved API key
    RuntimeConfig: Runtime configuration with resolved API keys
"""

from typing import Literal

from pydantic import BaseModel, field_validator, model_validator

from aeo_visibility.config.constants import (
    DEFAULT_BRAND_DETECTION_MAX_TOKENS,
    DEFAULT_BRAND_DETECTION_MODEL,
    DEFAULT_BRAND_DETECTION_TEMPERATURE,
    DEFAULT_MAX_CONCURRENCY,
)


class BrandContext(BaseModel):
    """
    The brand whose visibility is being measured.

    Read-only input to every analysis call.

    Attributes:
        name: Tracked brand name. Empty means "no brand": detection
              short-circuits and mention checks fall back to the website.
        website: Brand website (any form: "https://www.acme.com", "acme.com")
        competitors: Known competitor names, in priority order for tie-breaks
        description: Free-text description (informational only)

    Example:
        brand:
          name: "Acme"
          website: "https://www.acme.com"
          competitors:
            - "Beta"
            - "Gamma"
    """

    name: str = ""
    website: str | None = None
    competitors: list[str] = []
    description: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return v.strip()

    @field_validator("competitors")
    @classmethod
    def validate_competitors(cls, v: list[str]) -> list[str]:
        """
        Remove empty/whitespace-only entries.

        Order is preserved: it decides ranking tie-breaks between brands
        first mentioned at the same offset.
        """
        return [c.strip() for c in v if c and not c.isspace()]


class AnalysisSettings(BaseModel):
    """
    How answers are analyzed and aggregated.

    Attributes:
        llm_provider: Provider that produced the answers (openai, perplexity,
                      claude, gemini); selects the response analyzer
        detection: "dynamic" (generative-model assisted) or "static"
                   (fixed competitor list, no network)
        max_concurrency: Concurrent dynamic-detection calls per batch
        prominence_convention: "raw" (historical visibility formula) or
                               "inverted" (1 - prominence in the formula)
    """

    llm_provider: Literal["openai", "perplexity", "claude", "gemini"] = "openai"
    detection: Literal["dynamic", "static"] = "dynamic"
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    prominence_convention: Literal["raw", "inverted"] = "raw"

    @field_validator("max_concurrency")
    @classmethod
    def validate_max_concurrency(cls, v: int) -> int:
        """Keep fan-out within third-party rate limits."""
        if not 1 <= v <= 50:
            raise ValueError(f"max_concurrency must be between 1 and 50 (got: {v})")
        return v


class BrandDetectionModelConfig(BaseModel):
    """
    Generative model used by the dynamic brand detector.

    Attributes:
        provider: Model provider (only "openai" is implemented)
        model_name: Model identifier (default "gpt-4o-mini")
        env_api_key: Environment variable holding the API key
        temperature: Sampling temperature (0-2)
        max_tokens: Completion token cap
    """

    provider: Literal["openai"] = "openai"
    model_name: str = DEFAULT_BRAND_DETECTION_MODEL
    env_api_key: str = "OPENAI_API_KEY"
    temperature: float = DEFAULT_BRAND_DETECTION_TEMPERATURE
    max_tokens: int = DEFAULT_BRAND_DETECTION_MAX_TOKENS

    @field_validator("model_name")
    @classmethod
    def validate_model_name(cls, v: str) -> str:
        """Validate model_name is non-empty."""
        if not v or v.isspace():
            raise ValueError("model_name cannot be empty")
        return v

    @field_validator("env_api_key")
    @classmethod
    def validate_env_api_key(cls, v: str) -> str:
        """Validate env_api_key is non-empty."""
        if not v or v.isspace():
            raise ValueError("env_api_key cannot be empty")
        return v

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        if not 0 <= v <= 2:
            raise ValueError(f"temperature must be between 0 and 2 (got: {v})")
        return v

    @field_validator("max_tokens")
    @classmethod
    def validate_max_tokens(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_tokens must be positive (got: {v})")
        return v


class AnalyzerConfig(BaseModel):
    """
    Root configuration model for the analyzer YAML file.

    Attributes:
        brand: Tracked brand context
        analysis: Analysis settings (defaults apply when omitted)
        brand_detection_model: Required when analysis.detection is "dynamic"
    """

    brand: BrandContext
    analysis: AnalysisSettings = AnalysisSettings()
    brand_detection_model: BrandDetectionModelConfig | None = None

    @model_validator(mode="after")
    def validate_detection_model(self) -> "AnalyzerConfig":
        """
        Dynamic detection needs a model to call.

        Raises:
            ValueError: If detection is dynamic and no brand_detection_model is set
        """
        if self.analysis.detection == "dynamic" and self.brand_detection_model is None:
            raise ValueError(
                "brand_detection_model must be configured when analysis.detection "
                "is 'dynamic'. Use detection: static for network-free analysis."
            )
        return self


class RuntimeBrandDetectionModel(BaseModel):
    """
    Resolved brand detection model with API key.

    Attributes:
        provider: Model provider
        model_name: Model identifier
        api_key: Resolved API key from environment (NEVER log this)
        temperature: Sampling temperature
        max_tokens: Completion token cap
    """

    provider: str
    model_name: str
    api_key: str
    temperature: float = DEFAULT_BRAND_DETECTION_TEMPERATURE
    max_tokens: int = DEFAULT_BRAND_DETECTION_MAX_TOKENS

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate API key is non-empty."""
        if not v or v.isspace():
            raise ValueError("API key cannot be empty")
        return v


class RuntimeConfig(BaseModel):
    """
    Runtime configuration with resolved API keys.

    Created by config.loader; this is the contract handed to build_analyzer.

    Attributes:
        brand: Tracked brand context
        analysis: Analysis settings
        brand_detection_model: Resolved model, None when detection is static
    """

    brand: BrandContext
    analysis: AnalysisSettings
    brand_detection_model: RuntimeBrandDetectionModel | None = None
