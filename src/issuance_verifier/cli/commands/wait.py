"""CLI command that waits for a cert-manager resource condition."""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from typing import TYPE_CHECKING

import typer
from pydantic import ValidationError

from issuance_verifier.cli.commands.base import (
    NamespaceOption,
    OutputOption,
    PollIntervalOption,
    TimeoutOption,
    console,
    handle_k8s_error,
)
from issuance_verifier.cli.formatters import OutputFormat, get_formatter
from issuance_verifier.integrations.kubernetes.exceptions import KubernetesError
from issuance_verifier.integrations.kubernetes.models.certmanager import (
    ConditionSpec,
    ConditionStatus,
    ResourceKind,
    ResourceRef,
)
from issuance_verifier.services.verification.waiter import (
    REQUEST_FAILURES,
    REQUEST_READY,
    ConditionWaiter,
)

if TYPE_CHECKING:
    from issuance_verifier.integrations.kubernetes.config import VerifierConfig
    from issuance_verifier.services.kubernetes.certmanager_manager import CertManagerManager


class KindChoice(StrEnum):
    """Resource kinds as typed on the command line."""

    ISSUER = "issuer"
    CLUSTER_ISSUER = "clusterissuer"
    CERTIFICATE_REQUEST = "certificaterequest"

    @property
    def kind(self) -> ResourceKind:
        return {
            KindChoice.ISSUER: ResourceKind.ISSUER,
            KindChoice.CLUSTER_ISSUER: ResourceKind.CLUSTER_ISSUER,
            KindChoice.CERTIFICATE_REQUEST: ResourceKind.CERTIFICATE_REQUEST,
        }[self]


def parse_condition(value: str) -> ConditionSpec:
    """Parse ``Type=Status[:Reason]`` (status defaults to True).

    Examples:
        ``Denied`` → Denied=True; ``Ready=False:Failed`` → Ready=False (Failed)
    """
    type_part, sep, rest = value.partition("=")
    status_part, _, reason = rest.partition(":") if sep else ("True", "", "")
    try:
        status = ConditionStatus(status_part.strip().capitalize())
    except ValueError:
        raise typer.BadParameter(
            f"invalid condition status '{status_part}' in '{value}', expected True, False or Unknown"
        ) from None
    try:
        return ConditionSpec(type=type_part.strip(), status=status, reason=reason.strip() or None)
    except ValidationError:
        raise typer.BadParameter(f"invalid condition '{value}'") from None


def register_wait_commands(
    app: typer.Typer,
    get_manager: Callable[[], CertManagerManager],
    get_config: Callable[[], VerifierConfig],
) -> None:
    """Register the ``wait`` command."""

    @app.command("wait")
    def wait(
        kind: KindChoice = typer.Argument(help="Resource kind", case_sensitive=False),
        name: str = typer.Argument(help="Resource name"),
        namespace: NamespaceOption = None,
        condition: str = typer.Option("Ready", "--condition", "-c", help="Condition type"),
        status: ConditionStatus = typer.Option(
            ConditionStatus.TRUE,
            "--status",
            "-s",
            help="Desired condition status",
            case_sensitive=False,
        ),
        reason: str | None = typer.Option(None, "--reason", help="Required condition reason"),
        fail_on: list[str] | None = typer.Option(
            None,
            "--fail-on",
            "-f",
            help="Failure condition as Type=Status[:Reason] (repeatable)",
        ),
        timeout: TimeoutOption = None,
        poll_interval: PollIntervalOption = None,
        output: OutputOption = None,
    ) -> None:
        """Wait until a resource reports a condition.

        CertificateRequests waited on for Ready=True fail fast on Denied,
        InvalidRequest and Ready=False (Failed) unless --fail-on is given.

        Examples:
            issuance-verifier wait issuer my-issuer -n sandbox
            issuance-verifier wait clusterissuer ca-issuer --timeout 300
            issuance-verifier wait certificaterequest my-req -n sandbox -o json
            issuance-verifier wait certificaterequest my-req -c Approved --fail-on Denied
        """
        config = get_config()
        success = ConditionSpec(type=condition, status=status, reason=reason)
        if fail_on:
            failures = tuple(parse_condition(value) for value in fail_on)
        elif kind is KindChoice.CERTIFICATE_REQUEST and success == REQUEST_READY:
            failures = REQUEST_FAILURES
        else:
            failures = ()

        resource_kind = kind.kind
        if timeout is None:
            timeout = (
                config.wait.request_timeout
                if resource_kind is ResourceKind.CERTIFICATE_REQUEST
                else config.wait.issuer_timeout
            )
        if poll_interval is None:
            poll_interval = min(config.wait.poll_interval, timeout)

        ns = (namespace or config.get_active_namespace()) if resource_kind.namespaced else ""
        ref = ResourceRef(name=name, namespace=ns, kind=resource_kind)

        try:
            manager = get_manager()
            outcome = ConditionWaiter(manager).wait(
                ref,
                success,
                failures,
                timeout=timeout,
                poll_interval=poll_interval,
            )
            formatter = get_formatter(output or OutputFormat(config.output_format), console)
            formatter.format_outcome(outcome, title=str(ref))
            if not outcome.ok:
                raise typer.Exit(1)
        except KubernetesError as e:
            handle_k8s_error(e)
