"""
Configuration loader for AEO Visibility.

Loads the analyzer YAML file, validates it with the Pydantic models in
schema.py, and resolves API keys from environment variables into a
RuntimeConfig. Also builds the detector and analyzer a RuntimeConfig
describes.

Functions:
    read_config_file: Load and validate YAML into an AnalyzerConfig
    resolve_brand_detection_model: Resolve the detection model's API key
    load_config: Main entrypoint returning a RuntimeConfig
    build_detector: Create the dynamic brand detector (or None)
    build_analyzer: Create the response analyzer for the configured provider
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from aeo_visibility.analysis.analyzer import ResponseAnalyzer, get_response_analyzer
from aeo_visibility.exceptions import (
    APIKeyMissingError,
    ConfigFileNotFoundError,
    ConfigValidationError,
)
from aeo_visibility.extractor.dynamic_brand_detector import (
    BRAND_EXTRACTION_SYSTEM_PROMPT,
    DynamicBrandDetector,
)
from aeo_visibility.llm_runner.models import build_client

from .schema import AnalyzerConfig, RuntimeBrandDetectionModel, RuntimeConfig

logger = logging.getLogger(__name__)


def read_config_file(config_path: str | Path) -> AnalyzerConfig:
    """
    Load and validate a YAML config file without touching the environment.

    Raises:
        ConfigFileNotFoundError: If the file doesn't exist
        ConfigValidationError: If YAML is invalid or validation fails

    Security:
        Uses yaml.safe_load() to prevent code injection
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigFileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML syntax in {config_path}: {e}") from e
    except Exception as e:
        raise ConfigValidationError(
            f"Failed to read configuration file {config_path}: {e}"
        ) from e

    if raw_config is None:
        raise ConfigValidationError(f"Configuration file is empty: {config_path}")

    try:
        return AnalyzerConfig.model_validate(raw_config)
    except ValidationError as e:
        error_messages = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            error_messages.append(f"  - {loc}: {error['msg']}")

        raise ConfigValidationError(
            f"Configuration validation failed in {config_path}:\n"
            + "\n".join(error_messages)
        ) from e


def resolve_brand_detection_model(
    config: AnalyzerConfig,
) -> RuntimeBrandDetectionModel | None:
    """
    Resolve the brand detection model's API key from the environment.

    Returns None when detection is static.

    Raises:
        APIKeyMissingError: If the environment variable is unset or blank

    Security:
        - NEVER logs API keys (not even partial values)
        - API keys are only held in memory, never persisted
    """
    if config.analysis.detection == "static" or config.brand_detection_model is None:
        return None

    model_config = config.brand_detection_model
    env_var_name = model_config.env_api_key
    api_key = os.environ.get(env_var_name)

    if not api_key:
        raise APIKeyMissingError(
            f"Environment variable ${env_var_name} not set "
            f"(required for {model_config.provider}/{model_config.model_name}). "
            f"Set it, or use detection: static."
        )

    if api_key.isspace():
        raise APIKeyMissingError(
            f"Environment variable ${env_var_name} is empty or whitespace "
            f"(required for {model_config.provider}/{model_config.model_name})"
        )

    return RuntimeBrandDetectionModel(
        provider=model_config.provider,
        model_name=model_config.model_name,
        api_key=api_key,
        temperature=model_config.temperature,
        max_tokens=model_config.max_tokens,
    )


def load_config(config_path: str | Path, force_static: bool = False) -> RuntimeConfig:
    """
    Load a config file and resolve API keys.

    Args:
        config_path: Path to the YAML file
        force_static: Switch detection to "static" and skip key resolution

    Returns:
        RuntimeConfig ready for build_analyzer

    Raises:
        ConfigFileNotFoundError: If the file doesn't exist
        ConfigValidationError: If YAML is invalid or validation fails
        APIKeyMissingError: If dynamic detection needs a key that is not set

    Example:
        >>> config = load_config("aeo.config.yaml")
        >>> config.brand.name
        'Acme'
    """
    config = read_config_file(config_path)

    analysis = config.analysis
    if force_static:
        analysis = analysis.model_copy(update={"detection": "static"})
        config = config.model_copy(update={"analysis": analysis})

    runtime_config = RuntimeConfig(
        brand=config.brand,
        analysis=analysis,
        brand_detection_model=resolve_brand_detection_model(config),
    )

    logger.info(
        f"Loaded config from {config_path}: brand='{runtime_config.brand.name}', "
        f"provider={analysis.llm_provider}, detection={analysis.detection}"
    )

    return runtime_config


def build_detector(runtime_config: RuntimeConfig) -> DynamicBrandDetector | None:
    """Create the dynamic brand detector, or None when detection is static."""
    model = runtime_config.brand_detection_model
    if runtime_config.analysis.detection == "static" or model is None:
        return None

    client = build_client(
        provider=model.provider,
        model_name=model.model_name,
        api_key=model.api_key,
        system_prompt=BRAND_EXTRACTION_SYSTEM_PROMPT,
        temperature=model.temperature,
        max_tokens=model.max_tokens,
    )
    return DynamicBrandDetector(client)


def build_analyzer(runtime_config: RuntimeConfig) -> ResponseAnalyzer:
    """Create the response analyzer for the configured provider and detection."""
    return get_response_analyzer(
        runtime_config.analysis.llm_provider,
        detector=build_detector(runtime_config),
    )
