"""
Configuration constants for AEO Visibility.

Defaults shared by the config schema, the generative-model client and the
analyzers, kept here to avoid tight coupling between those modules.
"""

# ~25k tokens at 4 chars/token; brand-extraction prompts embed the whole answer
MAX_PROMPT_LENGTH = 100_000

# Model used to enumerate brands in an answer (cheap, low temperature)
DEFAULT_BRAND_DETECTION_PROVIDER = "openai"
DEFAULT_BRAND_DETECTION_MODEL = "gpt-4o-mini"
DEFAULT_BRAND_DETECTION_TEMPERATURE = 0.1
DEFAULT_BRAND_DETECTION_MAX_TOKENS = 200

# Concurrent dynamic-detection calls when analyzing a batch of samples
DEFAULT_MAX_CONCURRENCY = 3

# Answer-generating model recorded per provider on PromptKPIResult
PROVIDER_DEFAULT_MODELS = {
    "openai": "gpt-4o",
    "perplexity": "sonar-medium-online",
    "claude": "claude-sonnet-4-20250514",
    "gemini": "gemini-pro",
}
