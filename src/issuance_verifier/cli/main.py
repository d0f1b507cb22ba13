"""Main CLI entry point using Typer."""

from __future__ import annotations

from functools import cache

import typer
from rich.console import Console

from issuance_verifier import __version__
from issuance_verifier.cli.commands import (
    register_run_commands,
    register_status_commands,
    register_validate_commands,
    register_wait_commands,
)
from issuance_verifier.integrations.kubernetes.client import KubernetesClient
from issuance_verifier.integrations.kubernetes.config import VerifierConfig
from issuance_verifier.logging.config import configure_logging
from issuance_verifier.services.kubernetes.certmanager_manager import CertManagerManager

app = typer.Typer(
    name="issuance-verifier",
    help="Wait for cert-manager resources to reconcile and verify issued certificates.",
    add_completion=True,
    no_args_is_help=True,
)

console = Console()


@cache
def get_config() -> VerifierConfig:
    """Configuration from the environment, loaded once per process."""
    return VerifierConfig.from_env()


@cache
def get_client() -> KubernetesClient:
    """Kubernetes client, created on first use so offline commands need no cluster."""
    return KubernetesClient(get_config())


def get_manager() -> CertManagerManager:
    return CertManagerManager(get_client())


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"issuance-verifier version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode (logs every poll).",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Render logs as JSON lines.",
    ),
) -> None:
    """Issuance verifier - wait for cert-manager and check what it issued."""
    configure_logging(verbose=verbose, debug=debug, json_output=json_logs)


# Register subcommands
register_wait_commands(app, get_manager, get_config)
register_validate_commands(app, get_config)
register_run_commands(app, get_manager, get_config)
register_status_commands(app, get_client, get_config)


if __name__ == "__main__":
    app()
