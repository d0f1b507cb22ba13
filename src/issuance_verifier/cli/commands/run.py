"""CLI command that runs a complete issuance scenario against a cluster."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import typer

from issuance_verifier.cli.commands.base import (
    DnsNameOption,
    NamespaceOption,
    OutputOption,
    PollIntervalOption,
    console,
    handle_k8s_error,
    parse_json_object,
    read_file,
)
from issuance_verifier.cli.formatters import OutputFormat, get_formatter
from issuance_verifier.integrations.kubernetes.exceptions import KubernetesError
from issuance_verifier.services.verification.scenario import IssuanceScenario, ScenarioContext
from issuance_verifier.utils.pki import KeyAlgorithm, load_certificates, random_dns_label

if TYPE_CHECKING:
    from issuance_verifier.integrations.kubernetes.config import VerifierConfig
    from issuance_verifier.services.kubernetes.certmanager_manager import CertManagerManager

SELF_SIGNED_ISSUER_SPEC = '{"selfSigned": {}}'


def register_run_commands(
    app: typer.Typer,
    get_manager: Callable[[], CertManagerManager],
    get_config: Callable[[], VerifierConfig],
) -> None:
    """Register the ``run`` command."""

    @app.command("run")
    def run(
        dns_name: DnsNameOption,
        namespace: NamespaceOption = None,
        issuer_spec: str = typer.Option(
            SELF_SIGNED_ISSUER_SPEC,
            "--issuer-spec",
            help="Issuer spec as JSON (e.g. '{\"ca\": {\"secretName\": \"root-ca\"}}')",
        ),
        cluster_issuer: bool = typer.Option(
            False, "--cluster-issuer", help="Create a ClusterIssuer instead of an Issuer"
        ),
        key_algorithm: KeyAlgorithm = typer.Option(
            KeyAlgorithm.RSA, "--key-algorithm", help="Algorithm of the generated key"
        ),
        duration: str | None = typer.Option(
            None, "--duration", help="Requested validity (e.g. 2160h)"
        ),
        name_prefix: str = typer.Option(
            "verify", "--name-prefix", help="Prefix of the generated resource names"
        ),
        issuer_timeout: float | None = typer.Option(
            None, "--issuer-timeout", help="Seconds to wait for the issuer", min=0.001
        ),
        request_timeout: float | None = typer.Option(
            None, "--request-timeout", help="Seconds to wait for the request", min=0.001
        ),
        poll_interval: PollIntervalOption = None,
        trust_bundle: Path | None = typer.Option(
            None, "--trust-bundle", help="PEM trust anchors; enables the chain check"
        ),
        keep: bool = typer.Option(
            False, "--keep", help="Keep the created resources for inspection"
        ),
        output: OutputOption = None,
    ) -> None:
        """Create an issuer, request a certificate from it and validate the result.

        Resource names are generated from --name-prefix plus a random suffix,
        and the resources are deleted afterwards unless --keep is given.

        Examples:
            issuance-verifier run -n sandbox -d foo.example
            issuance-verifier run -n sandbox -d foo.example -d bar.example \\
                --issuer-spec '{"ca": {"secretName": "root-ca"}}' --trust-bundle ca.crt
            issuance-verifier run --cluster-issuer -d foo.example --key-algorithm ecdsa -o json
        """
        config = get_config()
        trust_bundle_pem = None
        if trust_bundle is not None:
            trust_bundle_pem = read_file(trust_bundle)
            try:
                load_certificates(trust_bundle_pem)
            except ValueError as e:
                console.print(f"[red]Error:[/red] Cannot load trust bundle {trust_bundle}: {e}")
                raise typer.Exit(1) from None

        suffix = random_dns_label()
        context = ScenarioContext(
            namespace=namespace or config.get_active_namespace(),
            issuer_name=f"{name_prefix}-issuer-{suffix}",
            request_name=f"{name_prefix}-request-{suffix}",
            issuer_spec=parse_json_object(issuer_spec, "issuer spec"),
            dns_names=tuple(dns_name),
            cluster_issuer=cluster_issuer,
            key_algorithm=key_algorithm,
            duration=duration,
            issuer_timeout=issuer_timeout or config.wait.issuer_timeout,
            request_timeout=request_timeout or config.wait.request_timeout,
            poll_interval=poll_interval or config.wait.poll_interval,
            trust_bundle_pem=trust_bundle_pem,
            cleanup=not keep,
        )

        try:
            manager = get_manager()
            report = IssuanceScenario(manager).run(context)
            formatter = get_formatter(output or OutputFormat(config.output_format), console)
            formatter.format_report(report, title=f"Issuance scenario {suffix}")
            if not report.ok:
                raise typer.Exit(1)
        except KubernetesError as e:
            handle_k8s_error(e)
