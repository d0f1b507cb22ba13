"""Status command for showing cluster connectivity."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import typer

from issuance_verifier import __version__
from issuance_verifier.cli.commands.base import OutputOption, console, handle_k8s_error
from issuance_verifier.cli.formatters import OutputFormat, get_formatter
from issuance_verifier.integrations.kubernetes.exceptions import KubernetesError

if TYPE_CHECKING:
    from issuance_verifier.integrations.kubernetes.client import KubernetesClient
    from issuance_verifier.integrations.kubernetes.config import VerifierConfig


def register_status_commands(
    app: typer.Typer,
    get_client: Callable[[], KubernetesClient],
    get_config: Callable[[], VerifierConfig],
) -> None:
    """Register the ``status`` command."""

    @app.command("status")
    def status(output: OutputOption = None) -> None:
        """Show which cluster the verifier talks to and whether it answers.

        Examples:
            issuance-verifier status
            issuance-verifier status -o json
        """
        config = get_config()
        try:
            client = get_client()
            connected = client.check_connection()
            data: dict[str, str | bool | float] = {
                "verifier_version": __version__,
                "context": client.get_current_context(),
                "namespace": client.default_namespace,
                "connected": connected,
                "issuer_timeout": config.wait.issuer_timeout,
                "request_timeout": config.wait.request_timeout,
                "poll_interval": config.wait.poll_interval,
            }
            formatter = get_formatter(output or OutputFormat(config.output_format), console)
            formatter.format_dict(data, title="Verifier Status")
            if not connected:
                raise typer.Exit(1)
        except KubernetesError as e:
            handle_k8s_error(e)
