"""
CLI entrypoint for AEO Visibility.

Provides a dual-mode command-line interface with:
- Human-friendly output: Rich spinners, tables, colored text
- Agent-friendly output: Structured JSON for automation

Commands:
    analyze: Analyze one LLM answer (file or stdin) into KPIs
    samples: Analyze several answers to one prompt and aggregate them
    aggregate: Aggregate a JSON file of KPI records into a snapshot
    validate: Validate a configuration file

Exit codes:
    0: Success
    1: Configuration error (invalid YAML, missing API keys)
    2: Input error (unreadable answer file, malformed metrics JSON, bad option)

Examples:
    # Network-free analysis with a fixed competitor list
    aeo-visibility analyze answer.txt --brand Acme --competitor Beta --competitor Gamma

    # Dynamic brand detection configured from YAML
    aeo-visibility analyze answer.txt --config aeo.config.yaml --format json

    # Several answers to one prompt, saved for later aggregation
    aeo-visibility samples a1.txt a2.txt a3.txt --config aeo.config.yaml -o prompt.json

    # Aggregate a day's records
    aeo-visibility aggregate metrics.json

Security:
    - API keys are loaded from environment variables only
    - Errors may contain file paths but never API keys
"""

import asyncio
import json
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as package_version
from pathlib import Path
from typing import NoReturn

import typer

from aeo_visibility.analysis.aggregator import ProminenceConvention, aggregate
from aeo_visibility.analysis.analyzer import (
    KPIMetrics,
    ResponseAnalyzer,
    get_response_analyzer,
)
from aeo_visibility.config.loader import build_analyzer, load_config
from aeo_visibility.config.schema import AnalysisSettings, BrandContext
from aeo_visibility.exceptions import (
    APIKeyMissingError,
    ConfigFileNotFoundError,
    ConfigurationError,
)
from aeo_visibility.extractor.brand_detector import extract_brand_data
from aeo_visibility.extractor.citation_extractor import (
    count_citations_per_domain,
    get_our_best_citation_position,
    is_our_website_cited,
)
from aeo_visibility.utils.console import (
    error,
    info,
    output_mode,
    print_brand_table,
    print_citation_table,
    print_kpi_summary,
    print_snapshot,
    spinner,
    success,
    warning,
)
from aeo_visibility.utils.logging import setup_logging
from aeo_visibility.utils.time import snapshot_date

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_INPUT_ERROR = 2

app = typer.Typer(
    name="aeo-visibility",
    help="Measure how AI answer engines mention and cite your brand",
    add_completion=False,
)


def _fail(message: str, exit_code: int, error_type: str) -> NoReturn:
    """Report an error in the current output mode and exit."""
    error(message)

    if output_mode.is_agent():
        output_mode.add_json("error_type", error_type)
        output_mode.flush_json()

    raise typer.Exit(exit_code)


def _read_response_text(response_file: Path | None) -> str:
    """Read the answer from a file, or from stdin when no file (or "-") is given."""
    if response_file is None or str(response_file) == "-":
        return sys.stdin.read()
    return response_file.read_text(encoding="utf-8")


def _resolve_analysis_setup(
    config: Path | None,
    brand: str,
    website: str | None,
    competitor: list[str] | None,
    provider: str,
    static: bool,
) -> tuple[ResponseAnalyzer, BrandContext, AnalysisSettings]:
    """
    Build the analyzer, brand and settings from --config or from brand options.

    Exits with EXIT_CONFIG_ERROR on configuration errors and EXIT_INPUT_ERROR
    on missing brand options or an unknown provider.
    """
    if config is not None:
        try:
            runtime_config = load_config(config, force_static=static)
            analyzer = build_analyzer(runtime_config)
        except APIKeyMissingError as e:
            _fail(str(e), EXIT_CONFIG_ERROR, "api_key_missing")
        except ConfigFileNotFoundError as e:
            _fail(str(e), EXIT_CONFIG_ERROR, "file_not_found")
        except ConfigurationError as e:
            _fail(str(e), EXIT_CONFIG_ERROR, "validation_error")
        return analyzer, runtime_config.brand, runtime_config.analysis

    if not brand and not website:
        _fail("Provide --brand/--website or --config", EXIT_INPUT_ERROR, "input_error")

    try:
        analyzer = get_response_analyzer(provider)
    except ValueError as e:
        _fail(str(e), EXIT_INPUT_ERROR, "input_error")

    brand_context = BrandContext(
        name=brand, website=website, competitors=list(competitor or [])
    )
    # Without a config there is no detection model, so detection is always static
    settings = AnalysisSettings(llm_provider=analyzer.provider.value, detection="static")

    return analyzer, brand_context, settings


@app.command()
def analyze(
    response_file: Path = typer.Argument(
        None,
        help="File containing the LLM answer ('-' or omitted reads stdin)",
        dir_okay=False,
    ),
    config: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration (brand, provider, detection model)",
    ),
    brand: str = typer.Option(
        "",
        "--brand",
        "-b",
        help="Tracked brand name (ignored with --config)",
    ),
    website: str = typer.Option(
        None,
        "--website",
        "-w",
        help="Tracked brand website (ignored with --config)",
    ),
    competitor: list[str] = typer.Option(
        None,
        "--competitor",
        help="Competitor name, repeatable (ignored with --config)",
    ),
    provider: str = typer.Option(
        "openai",
        "--provider",
        "-p",
        help="Provider that produced the answer: openai, perplexity, claude, gemini",
    ),
    static: bool = typer.Option(
        False,
        "--static",
        help="Force network-free static brand detection",
    ),
    format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: 'text' or 'json'",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
):
    """
    Analyze one LLM answer: citations, brands, sentiment, prominence, alignment.

    Without --config the brand comes from --brand/--website/--competitor and
    detection is static. With --config, detection follows the file unless
    --static is given.

    Exit codes:
      0: Analysis complete
      1: Configuration error
      2: Input error
    """
    output_mode.format = format
    setup_logging(verbose=verbose, quiet_logs=output_mode.is_human())

    try:
        response_text = _read_response_text(response_file)
    except (OSError, UnicodeDecodeError) as e:
        _fail(f"Cannot read response: {e}", EXIT_INPUT_ERROR, "input_error")

    analyzer, brand_context, _ = _resolve_analysis_setup(
        config, brand, website, competitor, provider, static
    )

    if not response_text.strip():
        warning("Response is empty; all KPIs will be zero")

    with spinner("Analyzing response..."):
        metrics = asyncio.run(analyzer.analyze_response(response_text, brand_context))

    record = metrics.to_dict()
    website_cited = is_our_website_cited(metrics.citations, brand_context.website)
    best_citation = get_our_best_citation_position(metrics.citations, brand_context.website)

    print_kpi_summary(record)
    print_brand_table(record["brand_analysis"])
    print_citation_table(record["citations"])

    if brand_context.website:
        if website_cited:
            info(f"Our website is cited (best position: {best_citation})")
        else:
            info("Our website is not cited")

    success("Analysis complete")

    if output_mode.is_agent():
        _, brand_positions = extract_brand_data(metrics.brand_analysis)
        output_mode.add_json("our_website_cited", website_cited)
        output_mode.add_json("our_best_citation_position", best_citation)
        output_mode.add_json("brand_positions", brand_positions)
        output_mode.add_json(
            "citations_per_domain", count_citations_per_domain(metrics.citations)
        )
        output_mode.flush_json()

    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def samples(
    response_files: list[Path] = typer.Argument(
        ...,
        help="Files with answers to the same prompt, one answer per file",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    prompt_id: str = typer.Option(
        "",
        "--prompt-id",
        help="Identifier recorded on the prompt result",
    ),
    output: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the prompt result JSON here (readable by 'aggregate')",
        dir_okay=False,
    ),
    config: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration (brand, provider, detection model, concurrency)",
    ),
    brand: str = typer.Option(
        "",
        "--brand",
        "-b",
        help="Tracked brand name (ignored with --config)",
    ),
    website: str = typer.Option(
        None,
        "--website",
        "-w",
        help="Tracked brand website (ignored with --config)",
    ),
    competitor: list[str] = typer.Option(
        None,
        "--competitor",
        help="Competitor name, repeatable (ignored with --config)",
    ),
    provider: str = typer.Option(
        "openai",
        "--provider",
        "-p",
        help="Provider that produced the answers: openai, perplexity, claude, gemini",
    ),
    static: bool = typer.Option(
        False,
        "--static",
        help="Force network-free static brand detection",
    ),
    format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: 'text' or 'json'",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
):
    """
    Analyze several answers to one prompt and aggregate them into a snapshot.

    Concurrency and the prominence convention come from --config
    (analysis.max_concurrency, analysis.prominence_convention) or defaults.

    Exit codes:
      0: Snapshot printed
      1: Configuration error
      2: Input error
    """
    output_mode.format = format
    setup_logging(verbose=verbose, quiet_logs=output_mode.is_human())

    try:
        answers = [path.read_text(encoding="utf-8") for path in response_files]
    except (OSError, UnicodeDecodeError) as e:
        _fail(f"Cannot read response: {e}", EXIT_INPUT_ERROR, "input_error")

    analyzer, brand_context, settings = _resolve_analysis_setup(
        config, brand, website, competitor, provider, static
    )

    with spinner(f"Analyzing {len(answers)} answers..."):
        result = asyncio.run(
            analyzer.analyze_samples(
                answers,
                brand_context,
                prompt_id=prompt_id,
                max_concurrency=settings.max_concurrency,
            )
        )

    snapshot = aggregate(
        result.metrics,
        prominence_convention=ProminenceConvention(settings.prominence_convention),
    )

    if output is not None:
        try:
            output.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
        except OSError as e:
            _fail(f"Cannot write {output}: {e}", EXIT_INPUT_ERROR, "input_error")
        info(f"Prompt result written to {output}")

    print_snapshot(snapshot.to_record(), title=f"Prompt {prompt_id or '-'} snapshot")
    success(f"Analyzed {len(answers)} answers")

    if output_mode.is_agent():
        output_mode.add_json("prompt_id", result.prompt_id)
        output_mode.add_json("llm_provider", result.llm_provider)
        output_mode.add_json("llm_model", result.llm_model)
        output_mode.add_json("snapshot_date", snapshot_date(result.calculated_at))
        output_mode.flush_json()

    raise typer.Exit(EXIT_SUCCESS)


def _load_metric_records(metrics_file: Path) -> list[KPIMetrics]:
    """
    Load KPI records from a JSON list, or from a {"metrics": [...]} object.

    Raises:
        ValueError: If the file is not valid JSON or a record is malformed
    """
    try:
        data = json.loads(metrics_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {metrics_file}: {e}") from e

    if isinstance(data, dict):
        data = data.get("metrics")

    if not isinstance(data, list):
        raise ValueError(
            f"{metrics_file} must contain a list of KPI records or an object "
            f"with a 'metrics' list"
        )

    records = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValueError(f"Record {index} is not an object")
        try:
            records.append(KPIMetrics.from_dict(item))
        except KeyError as e:
            raise ValueError(f"Record {index} is missing field {e}") from e
        except (TypeError, ValueError) as e:
            raise ValueError(f"Record {index} is malformed: {e}") from e

    return records


@app.command("aggregate")
def aggregate_command(
    metrics_file: Path = typer.Argument(
        ...,
        help="JSON file of KPI records (list, or PromptKPIResult with 'metrics')",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    prominence_convention: str = typer.Option(
        "raw",
        "--prominence-convention",
        help="How prominence enters visibility: 'raw' or 'inverted'",
    ),
    format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: 'text' or 'json'",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
):
    """
    Aggregate KPI records into a snapshot (rates scaled to 0-100).

    Exit codes:
      0: Snapshot printed
      2: Input error
    """
    output_mode.format = format
    setup_logging(verbose=verbose, quiet_logs=output_mode.is_human())

    try:
        convention = ProminenceConvention(prominence_convention)
    except ValueError:
        _fail(
            f"Invalid prominence convention: {prominence_convention}. "
            f"Must be 'raw' or 'inverted'",
            EXIT_INPUT_ERROR,
            "input_error",
        )

    try:
        records = _load_metric_records(metrics_file)
    except (OSError, ValueError) as e:
        _fail(str(e), EXIT_INPUT_ERROR, "input_error")

    snapshot = aggregate(records, prominence_convention=convention)

    print_snapshot(snapshot.to_record())
    success(f"Aggregated {snapshot.total_measurements} records")
    output_mode.flush_json()

    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def validate(
    config: Path = typer.Option(
        ...,
        "--config",
        "-c",
        help="Path to YAML configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: 'text' or 'json'",
    ),
):
    """
    Validate a configuration file, including API key resolution.

    Exit codes:
      0: Configuration is valid
      1: Configuration is invalid
    """
    output_mode.format = format

    with spinner("Validating configuration..."):
        try:
            runtime_config = load_config(config)
        except ConfigFileNotFoundError as e:
            if output_mode.is_agent():
                output_mode.add_json("valid", False)
            _fail(str(e), EXIT_CONFIG_ERROR, "file_not_found")
        except APIKeyMissingError as e:
            if output_mode.is_agent():
                output_mode.add_json("valid", False)
            _fail(str(e), EXIT_CONFIG_ERROR, "api_key_missing")
        except ConfigurationError as e:
            if output_mode.is_agent():
                output_mode.add_json("valid", False)
            _fail(f"Validation failed: {e}", EXIT_CONFIG_ERROR, "validation_error")

    analysis = runtime_config.analysis

    success("Configuration is valid")
    info(f"Brand: {runtime_config.brand.name or '-'}")
    info(f"Competitors: {len(runtime_config.brand.competitors)}")
    info(f"Provider: {analysis.llm_provider}")
    info(f"Detection: {analysis.detection}")

    if output_mode.is_agent():
        output_mode.add_json("valid", True)
        output_mode.add_json("brand", runtime_config.brand.name)
        output_mode.add_json("competitors_count", len(runtime_config.brand.competitors))
        output_mode.add_json("llm_provider", analysis.llm_provider)
        output_mode.add_json("detection", analysis.detection)
        output_mode.flush_json()

    raise typer.Exit(EXIT_SUCCESS)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
):
    """
    AEO Visibility - analyze how AI answer engines talk about your brand.

    Use 'aeo-visibility COMMAND --help' for detailed command documentation.
    """
    if version:
        from rich.console import Console

        Console().print(
            f"[bold cyan]aeo-visibility[/bold cyan] version {_read_version()}"
        )
        raise typer.Exit(EXIT_SUCCESS)

    if ctx.invoked_subcommand is None:
        from rich.console import Console

        console = Console()
        console.print("[yellow]Use --help to see available commands[/yellow]")
        console.print()
        console.print("Commands:")
        console.print("  analyze    Analyze one LLM answer into KPIs")
        console.print("  samples    Analyze answers to one prompt into a snapshot")
        console.print("  aggregate  Aggregate KPI records into a snapshot")
        console.print("  validate   Validate configuration")


def _read_version() -> str:
    """Read version from package metadata."""
    try:
        return package_version("aeo-visibility")
    except PackageNotFoundError:
        return "0.1.0"


if __name__ == "__main__":
    app()
