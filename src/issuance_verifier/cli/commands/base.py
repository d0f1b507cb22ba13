"""Shared options and error handling for verifier CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console

from issuance_verifier.cli.formatters import OutputFormat
from issuance_verifier.integrations.kubernetes.exceptions import (
    IssuanceArtifactError,
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesTimeoutError,
    KubernetesValidationError,
)

# Shared console instance
console = Console()


# =============================================================================
# Common Typer Option Annotations
# =============================================================================

OutputOption = Annotated[
    OutputFormat | None,
    typer.Option(
        "--output",
        "-o",
        help="Output format: table, json, or yaml (defaults to IV_OUTPUT or table)",
        case_sensitive=False,
    ),
]

NamespaceOption = Annotated[
    str | None,
    typer.Option(
        "--namespace",
        "-n",
        help="Kubernetes namespace (defaults to config or 'default')",
    ),
]

TimeoutOption = Annotated[
    float | None,
    typer.Option(
        "--timeout",
        "-t",
        help="Hard deadline in seconds",
        min=0.001,
    ),
]

PollIntervalOption = Annotated[
    float | None,
    typer.Option(
        "--poll-interval",
        help="Seconds between status reads (defaults to IV_WAIT_POLL_INTERVAL or 0.5)",
        min=0.001,
    ),
]

DnsNameOption = Annotated[
    list[str],
    typer.Option(
        "--dns-name",
        "-d",
        help="Requested DNS name (repeatable); the first one is also the CommonName",
    ),
]


# =============================================================================
# Helpers
# =============================================================================


def read_file(path: Path) -> bytes:
    """Read a PEM input file, exiting with a readable error if it fails."""
    try:
        return path.expanduser().read_bytes()
    except OSError as e:
        console.print(f"[red]Error:[/red] Cannot read {path}: {e.strerror}")
        raise typer.Exit(1) from None


def parse_json_object(value: str, what: str) -> dict[str, Any]:
    """Parse a JSON object given on the command line."""
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] Invalid JSON {what}: {e}")
        raise typer.Exit(1) from None
    if not isinstance(parsed, dict):
        console.print(f"[red]Error:[/red] {what} must be a JSON object")
        raise typer.Exit(1)
    return parsed


# =============================================================================
# Error Handling
# =============================================================================


def handle_k8s_error(error: KubernetesError) -> None:
    """Handle Kubernetes errors with user-friendly output.

    Args:
        error: The Kubernetes error to handle.

    Raises:
        typer.Exit: Always exits with code 1.
    """
    if isinstance(error, KubernetesConnectionError):
        console.print("[red]Error:[/red] Cannot connect to Kubernetes cluster")
        console.print(f"  {error.message}")
        if error.original_error:
            console.print(f"  Cause: {error.original_error}")
        console.print(
            "\n[dim]Hint: Check that your kubeconfig is valid and the cluster is reachable.[/dim]"
        )

    elif isinstance(error, KubernetesAuthError):
        console.print("[red]Error:[/red] Authentication/authorization failed")
        console.print(f"  {error.message}")
        console.print(
            "\n[dim]Hint: The verifier needs create/get/delete on cert-manager.io resources.[/dim]"
        )

    elif isinstance(error, KubernetesNotFoundError):
        console.print("[red]Error:[/red] Resource not found")
        console.print(f"  {error.message}")
        console.print("\n[dim]Hint: Is cert-manager installed in this cluster?[/dim]")

    elif isinstance(error, KubernetesValidationError):
        console.print("[red]Error:[/red] Validation failed")
        console.print(f"  {error.message}")
        if error.validation_errors:
            console.print("\n  Field errors:")
            for field, err in error.validation_errors.items():
                console.print(f"    - {field}: {err}")

    elif isinstance(error, KubernetesConflictError):
        console.print("[red]Error:[/red] Resource conflict")
        console.print(f"  {error.message}")
        console.print("\n[dim]Hint: A resource with that name already exists.[/dim]")

    elif isinstance(error, KubernetesTimeoutError):
        console.print("[red]Error:[/red] Operation timed out")
        console.print(f"  {error.message}")
        console.print(
            "\n[dim]Hint: Try increasing the timeout with --timeout or IV_K8S_TIMEOUT.[/dim]"
        )

    elif isinstance(error, IssuanceArtifactError):
        console.print("[red]Error:[/red] No usable certificate was issued")
        console.print(f"  {error}")

    else:
        console.print(f"[red]Error:[/red] {error.message}")
        if error.status_code:
            console.print(f"  HTTP Status: {error.status_code}")

    raise typer.Exit(1)
