"""Output formatters for verifier results.

Implements the Strategy pattern for output formatting, so every command
can print wait outcomes, validation results and scenario reports as a
table, JSON or YAML.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from enum import StrEnum
from typing import Any

import yaml
from rich.console import Console
from rich.table import Table

from issuance_verifier.services.verification.models import (
    Failed,
    Satisfied,
    TimedOut,
    ValidationResult,
    WaitOutcome,
)
from issuance_verifier.services.verification.scenario import ScenarioReport


class OutputFormat(StrEnum):
    """Supported output formats for CLI commands."""

    TABLE = "table"
    JSON = "json"
    YAML = "yaml"


def outcome_to_dict(outcome: WaitOutcome) -> dict[str, Any]:
    """Plain-data view of a wait outcome, including the subtype's fields."""
    data: dict[str, Any] = {
        "resource": str(outcome.ref),
        "outcome": outcome.kind.value,
        "elapsed": round(outcome.elapsed, 3),
    }
    if isinstance(outcome, Satisfied):
        data["condition"] = outcome.condition.describe()
    elif isinstance(outcome, Failed):
        data["reason"] = outcome.reason
        data["message"] = outcome.message
    elif isinstance(outcome, TimedOut):
        data["timeout"] = outcome.timeout
    data["conditions"] = (
        [c.describe() for c in outcome.status.conditions] if outcome.status else None
    )
    return data


def validation_to_dict(result: ValidationResult) -> dict[str, Any]:
    return {
        "ok": result.ok,
        "key_matches": result.key_matches,
        "names_match": result.names_match,
        "chain_valid": result.chain_valid,
        "request_matches": result.request_matches,
        "errors": list(result.errors),
    }


def report_to_dict(report: ScenarioReport) -> dict[str, Any]:
    return {
        "ok": report.ok,
        "issuer": outcome_to_dict(report.issuer_outcome),
        "request": outcome_to_dict(report.request_outcome) if report.request_outcome else None,
        "validation": validation_to_dict(report.validation) if report.validation else None,
    }


class VerifierFormatter(ABC):
    """Abstract base class for result formatters."""

    def __init__(self, console: Console) -> None:
        self.console = console

    @abstractmethod
    def format_dict(self, data: dict[str, Any], title: str = "") -> None:
        """Format and display a dictionary."""

    def format_outcome(self, outcome: WaitOutcome, title: str = "") -> None:
        self.format_dict(outcome_to_dict(outcome), title=title or "Wait Outcome")

    def format_validation(self, result: ValidationResult, title: str = "") -> None:
        self.format_dict(validation_to_dict(result), title=title or "Validation")

    def format_report(self, report: ScenarioReport, title: str = "") -> None:
        self.format_dict(report_to_dict(report), title=title or "Issuance Scenario")


class TableFormatter(VerifierFormatter):
    """Rich table output formatter."""

    def format_dict(self, data: dict[str, Any], title: str = "") -> None:
        table = Table(title=title, show_header=True)
        table.add_column("Field", style="cyan", no_wrap=True)
        table.add_column("Value", overflow="fold")

        for key, value in data.items():
            table.add_row(key, self._format_value(value))

        self.console.print(table)

    def format_report(self, report: ScenarioReport, title: str = "") -> None:
        # One table per step reads better than a nested dict
        self.format_outcome(report.issuer_outcome, title="Issuer")
        if report.request_outcome is not None:
            self.format_outcome(report.request_outcome, title="CertificateRequest")
        if report.validation is not None:
            self.format_validation(report.validation, title="Validation")
        verdict = "[green]passed[/green]" if report.ok else "[red]failed[/red]"
        self.console.print(f"\n{title or 'Issuance scenario'}: {verdict}")

    def _format_value(self, value: Any) -> str:
        if isinstance(value, dict):
            return json.dumps(value, indent=2)
        elif isinstance(value, list):
            if len(value) == 0:
                return "[]"
            return "\n".join(str(v) for v in value)
        elif isinstance(value, bool):
            return "[green]true[/green]" if value else "[red]false[/red]"
        elif value is None:
            return "[dim]-[/dim]"
        else:
            return str(value)


class JsonFormatter(VerifierFormatter):
    """JSON output formatter."""

    def format_dict(self, data: dict[str, Any], title: str = "") -> None:
        self.console.print(
            json.dumps(data, indent=2, default=str),
            markup=False,
            highlight=False,
            soft_wrap=True,
        )


class YamlFormatter(VerifierFormatter):
    """YAML output formatter."""

    def format_dict(self, data: dict[str, Any], title: str = "") -> None:
        self.console.print(
            yaml.safe_dump(data, default_flow_style=False, sort_keys=False),
            markup=False,
            highlight=False,
            soft_wrap=True,
        )


def get_formatter(format_type: OutputFormat, console: Console | None = None) -> VerifierFormatter:
    """Factory function to get the appropriate formatter."""
    if console is None:
        console = Console()

    formatters: dict[OutputFormat, type[VerifierFormatter]] = {
        OutputFormat.TABLE: TableFormatter,
        OutputFormat.JSON: JsonFormatter,
        OutputFormat.YAML: YamlFormatter,
    }

    formatter_class = formatters.get(format_type, TableFormatter)
    return formatter_class(console)
