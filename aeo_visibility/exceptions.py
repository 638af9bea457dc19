"""
Custom exceptions for AEO Visibility.

This module provides a hierarchy of exceptions that enable type-safe error
handling throughout the application. All exceptions inherit from the base
AEOVisibilityError for consistent catching.

The analysis core itself never raises: extraction and scoring degrade to
empty or zero values. These exceptions surface from the configuration layer
and from the generative-model client, where the dynamic brand detector
catches them at its boundary.

Exception Hierarchy:
    AEOVisibilityError (base)
    ├── ConfigurationError
    │   ├── ConfigFileNotFoundError
    │   ├── ConfigValidationError
    │   └── APIKeyMissingError
    └── LLMProviderError
        ├── LLMAuthenticationError
        ├── LLMRateLimitError
        ├── LLMTimeoutError
        └── LLMResponseError

Usage:
    from aeo_visibility.exceptions import ConfigurationError

    try:
        config = load_config(path)
    except ConfigFileNotFoundError as e:
        logger.error(f"Config file not found: {e}")
        sys.exit(1)
"""


class AEOVisibilityError(Exception):
    """
    Base exception for all AEO Visibility errors.

    Example:
        try:
            # application code
            pass
        except AEOVisibilityError as e:
            logger.error(f"Application error: {e}")
    """

    pass


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(AEOVisibilityError):
    """
    Base class for configuration-related errors.

    Raised when configuration loading, parsing, or validation fails.
    Should be caught and result in exit code 1 (configuration error).
    """

    pass


class ConfigFileNotFoundError(ConfigurationError):
    """
    Configuration file does not exist at the specified path.

    Example:
        raise ConfigFileNotFoundError("/path/to/aeo.config.yaml")
    """

    pass


class ConfigValidationError(ConfigurationError):
    """
    Configuration file is invalid (schema validation failed).

    Example:
        raise ConfigValidationError("Field 'brand.name' cannot be empty")
    """

    pass


class APIKeyMissingError(ConfigurationError):
    """
    Required API key environment variable is not set.

    Example:
        raise APIKeyMissingError("OPENAI_API_KEY environment variable not set")
    """

    pass


# ============================================================================
# LLM Provider Errors
# ============================================================================


class LLMProviderError(AEOVisibilityError):
    """
    Base class for generative-model API errors.

    The dynamic brand detector converts every one of these into an empty
    brand analysis; callers of the analysis core never see them.
    """

    pass


class LLMAuthenticationError(LLMProviderError):
    """
    Provider authentication failed (invalid API key).

    This error should NOT be retried as it indicates a configuration issue.

    Example:
        raise LLMAuthenticationError("OpenAI API key is invalid")
    """

    pass


class LLMRateLimitError(LLMProviderError):
    """
    Provider rate limit exceeded after all retry attempts.

    Example:
        raise LLMRateLimitError("OpenAI rate limit exceeded")
    """

    pass


class LLMTimeoutError(LLMProviderError):
    """
    Provider request timed out after all retry attempts.

    Example:
        raise LLMTimeoutError("OpenAI request timed out after 30s")
    """

    pass


class LLMResponseError(LLMProviderError):
    """
    Provider returned an invalid or malformed response.

    This includes non-retryable HTTP statuses, invalid JSON, or missing fields.

    Example:
        raise LLMResponseError("OpenAI response missing 'choices' field")
    """

    pass
