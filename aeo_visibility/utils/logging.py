"""
Structured JSON logging for AEO Visibility.

Provides standardized logging with:
- JSON formatted output to stderr
- UTC timestamps
- Structured context fields (extra={"context": {...}})
- Secret redaction (API keys never reach the log stream in full)

The analysis modules only ever call logging.getLogger(__name__); this module
is wired up once by the CLI (or by an embedding service) via setup_logging().

Examples:
    >>> import logging
    >>> from aeo_visibility.utils.logging import setup_logging
    >>> setup_logging(verbose=True)
    >>> logger = logging.getLogger("aeo_visibility.analysis.analyzer")
    >>> logger.info("Response analyzed", extra={"context": {"citations": 3}})
"""

import json
import logging
import re
import sys
from typing import Any

from aeo_visibility.utils.time import utc_timestamp


class JSONFormatter(logging.Formatter):
    """
    Format log records as single-line JSON objects.

    Fields: timestamp, level, component, message, and optionally context,
    prompt_id and exception.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": utc_timestamp(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "context") and isinstance(record.context, dict):
            log_entry["context"] = record.context

        if hasattr(record, "prompt_id"):
            log_entry["prompt_id"] = record.prompt_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class SecretRedactingFilter(logging.Filter):
    """
    Logging filter that redacts API keys and bearer tokens.

    Full secrets are replaced with a version showing only the last 4 chars:
    "sk-proj-abcdef123456..." -> "sk-...3456"
    """

    SECRET_PATTERNS = [
        (re.compile(r"\bsk-[a-zA-Z0-9_-]{20,}\b"), "sk-...{last4}"),
        (re.compile(r"\bBearer\s+[a-zA-Z0-9_-]{20,}\b"), "Bearer ***{last4}"),
        (re.compile(r"\b[a-zA-Z0-9_-]{32,}\b"), "***{last4}"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self._redact_secrets(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: self._redact_secrets(str(v)) for k, v in record.args.items()
                }
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    self._redact_secrets(str(arg)) for arg in record.args
                )

        if hasattr(record, "context") and isinstance(record.context, dict):
            record.context = self._redact_dict(record.context)

        return True

    def _redact_secrets(self, text: str) -> str:
        for pattern, template in self.SECRET_PATTERNS:

            def redact_match(match: re.Match) -> str:
                return template.format(last4=match.group(0)[-4:])

            text = pattern.sub(redact_match, text)

        return text

    def _redact_dict(self, data: dict[str, Any]) -> dict[str, Any]:
        result = {}
        for key, value in data.items():
            if isinstance(value, str):
                result[key] = self._redact_secrets(value)
            elif isinstance(value, dict):
                result[key] = self._redact_dict(value)
            elif isinstance(value, list):
                result[key] = [
                    self._redact_secrets(v) if isinstance(v, str) else v for v in value
                ]
            else:
                result[key] = value
        return result


def setup_logging(verbose: bool = False, quiet_logs: bool = False) -> None:
    """
    Configure structured JSON logging on the root logger.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise, use INFO.
        quiet_logs: Raise the level to WARNING (unless verbose) so JSON logs
            don't interleave with Rich output in human mode.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet_logs:
        level = logging.WARNING
    else:
        level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Prevents duplicate lines when called more than once (tests, CLI re-entry)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(SecretRedactingFilter())

    root_logger.addHandler(handler)

    # httpx logs every request at INFO, which drowns out analysis logs
    logging.getLogger("httpx").setLevel(logging.WARNING)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    context: dict[str, Any] | None = None,
    prompt_id: str | None = None,
) -> None:
    """
    Log a message with structured context and optional prompt_id.

    Equivalent to logger.log(level, message, extra={'context': {...}, 'prompt_id': '...'})

    Example:
        >>> log_with_context(
        ...     logger,
        ...     logging.INFO,
        ...     "Samples analyzed",
        ...     context={"llm_provider": "openai", "samples": 3},
        ...     prompt_id="prompt-123",
        ... )
    """
    extra = {}

    if context is not None:
        extra["context"] = context

    if prompt_id is not None:
        extra["prompt_id"] = prompt_id

    logger.log(level, message, extra=extra if extra else None)
