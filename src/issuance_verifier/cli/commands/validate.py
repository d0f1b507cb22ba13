"""CLI command that validates an issued certificate offline."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import typer

from issuance_verifier.cli.commands.base import (
    DnsNameOption,
    OutputOption,
    console,
    read_file,
)
from issuance_verifier.cli.formatters import OutputFormat, get_formatter
from issuance_verifier.integrations.kubernetes.models.certmanager import IssuancePayload
from issuance_verifier.services.verification.validator import IssuanceValidator
from issuance_verifier.utils.pki import load_certificates, load_private_key

if TYPE_CHECKING:
    from issuance_verifier.integrations.kubernetes.config import VerifierConfig


def register_validate_commands(
    app: typer.Typer,
    get_config: Callable[[], VerifierConfig],
) -> None:
    """Register the ``validate`` command."""

    @app.command("validate")
    def validate(
        dns_name: DnsNameOption,
        cert: Path = typer.Option(..., "--cert", help="PEM certificate (leaf first)"),
        key: Path = typer.Option(..., "--key", help="PEM private key the certificate should pair with"),
        ca: Path | None = typer.Option(None, "--ca", help="PEM CA bundle returned by the issuer"),
        csr: Path | None = typer.Option(None, "--csr", help="PEM CSR the certificate was issued for"),
        trust_bundle: Path | None = typer.Option(
            None, "--trust-bundle", help="PEM trust anchors; enables the chain check"
        ),
        output: OutputOption = None,
    ) -> None:
        """Validate a certificate against its key and requested names.

        Every check runs and every defect is listed; the exit code is 1 if
        any check fails.

        Examples:
            issuance-verifier validate --cert tls.crt --key tls.key -d foo.example
            issuance-verifier validate --cert tls.crt --key tls.key -d foo.example \\
                --ca ca.crt --trust-bundle ca.crt --csr request.csr -o json
        """
        config = get_config()
        try:
            private_key = load_private_key(read_file(key))
        except (ValueError, TypeError) as e:
            console.print(f"[red]Error:[/red] Cannot load private key {key}: {e}")
            raise typer.Exit(1) from None

        anchors = None
        if trust_bundle is not None:
            try:
                anchors = load_certificates(read_file(trust_bundle))
            except ValueError as e:
                console.print(f"[red]Error:[/red] Cannot load trust bundle {trust_bundle}: {e}")
                raise typer.Exit(1) from None

        payload = IssuancePayload(
            certificate_pem=read_file(cert),
            ca_bundle_pem=read_file(ca) if ca is not None else None,
            csr_pem=read_file(csr) if csr is not None else None,
        )
        result = IssuanceValidator().validate(
            payload,
            private_key,
            dns_name,
            trust_bundle=anchors,
        )

        formatter = get_formatter(output or OutputFormat(config.output_format), console)
        formatter.format_validation(result, title=f"Validation: {cert.name}")
        if not result.ok:
            raise typer.Exit(1)
