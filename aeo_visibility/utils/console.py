"""
Rich console utilities for dual-mode CLI output.

Human mode (--format text) renders Rich tables and colored status lines;
agent mode (--format json) buffers everything into one JSON document that is
flushed to stdout at the end of the command.

This module provides:
- OutputMode: Output format state (text/json, quiet)
- spinner(): Status spinner in human mode, silent otherwise
- success(), error(), warning(), info(): Status messages
- print_kpi_summary(), print_brand_table(), print_citation_table(),
  print_snapshot(): Analysis result displays

Examples:
    >>> output_mode.format = "json"
    >>> success("Analysis complete")  # Buffers to JSON
    >>> output_mode.flush_json()      # Outputs JSON to stdout
"""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from typing import Any

from rich import box
from rich.console import Console
from rich.table import Table


class OutputMode:
    """
    Output mode configuration for dual-mode CLI.

    Attributes:
        format: Output format - "text" (human) or "json" (agent)
        quiet: If True, suppress non-essential output
        _json_buffer: Internal buffer for JSON output in agent mode
    """

    def __init__(self, format_type: str = "text", quiet: bool = False):
        """
        Raises:
            ValueError: If format_type is not "text" or "json"
        """
        if format_type not in ["text", "json"]:
            raise ValueError(f"Invalid format: {format_type}. Must be 'text' or 'json'")

        self.format = format_type
        self.quiet = quiet
        self._json_buffer: dict[str, Any] = {}

    def is_human(self) -> bool:
        return self.format == "text"

    def is_agent(self) -> bool:
        return self.format == "json"

    def add_json(self, key: str, value: Any) -> None:
        """Add key-value pair to the JSON buffer (flushed by flush_json)."""
        self._json_buffer[key] = value

    def flush_json(self) -> None:
        """
        Output buffered JSON to stdout and clear buffer.

        Only outputs in agent mode. In human mode, this is a no-op.
        """
        if self.is_agent() and self._json_buffer:
            json.dump(self._json_buffer, sys.stdout, indent=2, default=str)
            sys.stdout.write("\n")
            sys.stdout.flush()
            self._json_buffer.clear()


# Global output mode instance (set by CLI flags)
output_mode = OutputMode()

# Global Rich console instances for human mode
console = Console()  # stdout
console_err = Console(stderr=True)  # stderr


@contextmanager
def spinner(message: str):
    """Show a Rich spinner in human mode; silent in agent/quiet modes."""
    if output_mode.is_human() and not output_mode.quiet:
        with console.status(f"[bold blue]{message}", spinner="dots") as status:
            yield status
    else:
        yield None


def success(message: str) -> None:
    """
    Print a success message.

    Human mode: Green checkmark with message
    Agent mode: Buffers {"status": "success", "message": "..."}
    """
    if output_mode.is_human():
        console.print(f"[green]✓[/green] {message}")
    elif output_mode.is_agent():
        output_mode.add_json("status", "success")
        output_mode.add_json("message", message)


def error(message: str) -> None:
    """
    Print an error message.

    Human mode: Red X with message to stderr
    Agent mode: Buffers {"status": "error", "error": "..."}
    """
    if output_mode.is_human():
        console_err.print(f"[red]✗[/red] {message}", style="red")
    elif output_mode.is_agent():
        output_mode.add_json("status", "error")
        output_mode.add_json("error", message)


def warning(message: str) -> None:
    """Print a warning (yellow in human mode, buffered as "warning" in agent mode)."""
    if output_mode.is_human():
        console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")
    elif output_mode.is_agent():
        output_mode.add_json("warning", message)


def info(message: str) -> None:
    """Print an info message (human mode only)."""
    if output_mode.is_human() and not output_mode.quiet:
        console.print(f"[blue]ℹ[/blue] {message}")


def print_kpi_summary(metrics: dict) -> None:
    """
    Print the scalar KPIs of one analyzed answer.

    Expects the KPIMetrics.to_dict() shape. Agent mode buffers the whole
    record under "metrics".
    """
    if output_mode.is_agent():
        output_mode.add_json("metrics", metrics)
        return

    if output_mode.quiet:
        return

    table = Table(title="Response KPIs", box=box.ROUNDED)
    table.add_column("KPI", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right")

    mentioned = "[green]✓[/green]" if metrics["mention_present"] else "[red]✗[/red]"
    position = metrics["our_brand_position"]

    table.add_row("Mention present", mentioned)
    table.add_row("Our brand position", str(position) if position is not None else "-")
    table.add_row("Relevancy", str(metrics["relevancy_score"]))
    table.add_row("Citations", str(metrics["citations_count"]))
    table.add_row("Sentiment", f"{metrics['sentiment']:.2f}")
    table.add_row("Prominence", f"{metrics['prominence']:.2f}")
    table.add_row("Alignment", f"{metrics['alignment']:.2f}")

    console.print(table)


def print_brand_table(brand_analysis: dict) -> None:
    """Print detected brands in rank order (human mode only)."""
    if not output_mode.is_human() or output_mode.quiet:
        return

    brands = brand_analysis.get("brands_detected", [])
    if not brands:
        info(f"No brands detected ({brand_analysis.get('detection_method', 'none')})")
        return

    table = Table(
        title=f"Brands ({brand_analysis.get('detection_method')} detection)",
        box=box.ROUNDED,
    )
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Brand", style="magenta")
    table.add_column("Offset", justify="right")
    table.add_column("Ours", justify="center")

    for mention in brands:
        ours = "[green]✓[/green]" if mention["is_our_brand"] else ""
        table.add_row(
            str(mention["position"]),
            mention["brand_name"],
            str(mention["first_occurrence"]),
            ours,
        )

    console.print(table)


def print_citation_table(citations: list[dict]) -> None:
    """Print citations in rank order (human mode only)."""
    if not output_mode.is_human() or output_mode.quiet or not citations:
        return

    table = Table(title="Citations", box=box.ROUNDED)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Domain", style="magenta")
    table.add_column("Title")
    table.add_column("URL", overflow="fold")

    for citation in citations:
        table.add_row(
            str(citation["position"]),
            citation["domain"],
            citation.get("title") or "-",
            citation["url"],
        )

    console.print(table)


def print_snapshot(record: dict, title: str = "Aggregate Snapshot") -> None:
    """
    Print a persisted snapshot record (AggregateSnapshot.to_record() shape).

    Agent mode buffers it under "snapshot".
    """
    if output_mode.is_agent():
        output_mode.add_json("snapshot", record)
        return

    if output_mode.quiet:
        return

    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right")

    for key, value in record.items():
        if key == "competitor_mentions":
            continue
        table.add_row(key, "-" if value is None else str(value))

    console.print(table)

    competitors = record.get("competitor_mentions") or {}
    if competitors:
        comp_table = Table(title="Competitor mentions", box=box.ROUNDED)
        comp_table.add_column("Competitor", style="magenta")
        comp_table.add_column("Responses", justify="right")
        for name, count in sorted(competitors.items(), key=lambda item: -item[1]):
            comp_table.add_row(name, str(count))
        console.print(comp_table)
