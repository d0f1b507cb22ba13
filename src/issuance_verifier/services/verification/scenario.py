"""End-to-end issuance scenario.

Creates an issuer, waits for it to become ready, submits a freshly
generated CSR as a CertificateRequest, waits for it to be signed and
validates the result against the key and names that were requested.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import Field, field_validator

from issuance_verifier.integrations.kubernetes.exceptions import KubernetesError
from issuance_verifier.integrations.kubernetes.models.base import K8sValueBase
from issuance_verifier.integrations.kubernetes.models.certmanager import ResourceRef
from issuance_verifier.services.verification.exceptions import ScenarioError
from issuance_verifier.services.verification.models import ValidationResult, WaitOutcome
from issuance_verifier.services.verification.validator import IssuanceValidator
from issuance_verifier.services.verification.waiter import ConditionWaiter
from issuance_verifier.utils.pki import (
    KeyAlgorithm,
    build_csr,
    generate_private_key,
    load_certificates,
)

if TYPE_CHECKING:
    from issuance_verifier.services.kubernetes.certmanager_manager import CertManagerManager

logger = structlog.get_logger()


class ScenarioContext(K8sValueBase):
    """Everything one scenario run needs, passed explicitly.

    ``dns_names[0]`` doubles as the CSR CommonName, as cert-manager's own
    issuer tests do.
    """

    namespace: str = Field(min_length=1)
    issuer_name: str = Field(min_length=1)
    request_name: str = Field(min_length=1)
    issuer_spec: dict[str, Any]
    dns_names: tuple[str, ...] = Field(min_length=1)
    cluster_issuer: bool = False
    key_algorithm: KeyAlgorithm = KeyAlgorithm.RSA
    usages: tuple[str, ...] = ()
    duration: str | None = None
    issuer_timeout: float = Field(default=120.0, gt=0)
    request_timeout: float = Field(default=30.0, gt=0)
    poll_interval: float = Field(default=0.5, gt=0)
    trust_bundle_pem: bytes | None = None
    cleanup: bool = True

    @field_validator("issuer_spec")
    @classmethod
    def validate_issuer_spec(cls, v: dict[str, Any]) -> dict[str, Any]:
        """An issuer spec names exactly one backend (selfSigned, ca, acme, ...)."""
        if not v:
            raise ValueError("issuer_spec must not be empty")
        return v


class ScenarioReport(K8sValueBase):
    """What happened at each step; later steps are None if never reached."""

    issuer: ResourceRef
    issuer_outcome: WaitOutcome
    request: ResourceRef | None = None
    request_outcome: WaitOutcome | None = None
    validation: ValidationResult | None = None

    @property
    def ok(self) -> bool:
        return (
            self.issuer_outcome.ok
            and self.request_outcome is not None
            and self.request_outcome.ok
            and self.validation is not None
            and self.validation.ok
        )

    def raise_for_failure(self) -> None:
        """Raise ScenarioError describing the first step that failed.

        Raises:
            ScenarioError: If the scenario did not produce a valid certificate.
        """
        if not self.issuer_outcome.ok:
            raise ScenarioError("issuer did not become ready", outcome=self.issuer_outcome)
        if self.request_outcome is None or not self.request_outcome.ok:
            raise ScenarioError("certificate request was not issued", outcome=self.request_outcome)
        if self.validation is None or not self.validation.ok:
            raise ScenarioError("issued certificate failed validation", validation=self.validation)


class IssuanceScenario:
    """Runs the create → wait → request → wait → validate flow.

    Args:
        manager: Accessor for cert-manager resources.
        waiter: Condition waiter; defaults to one polling ``manager``.
        validator: Certificate validator.
    """

    def __init__(
        self,
        manager: CertManagerManager,
        *,
        waiter: ConditionWaiter | None = None,
        validator: IssuanceValidator | None = None,
    ) -> None:
        self._manager = manager
        self._waiter = waiter or ConditionWaiter(manager)
        self._validator = validator or IssuanceValidator()

    def run(
        self,
        context: ScenarioContext,
        cancel: threading.Event | None = None,
    ) -> ScenarioReport:
        """Run one scenario and report every step's outcome.

        Created resources are deleted afterwards unless ``context.cleanup``
        is False. A delete that fails is logged as ``cleanup_failed`` and
        never replaces the report or skips the remaining deletes.

        Raises:
            KubernetesError: If creating a resource or fetching the
                issued certificate fails.
        """
        log = logger.bind(namespace=context.namespace, issuer=context.issuer_name)
        created: list[ResourceRef] = []
        try:
            log.info("creating_issuer")
            issuer = self._manager.create_issuer(
                context.issuer_name,
                context.namespace,
                spec=context.issuer_spec,
                cluster_scoped=context.cluster_issuer,
            )
            created.append(issuer)

            log.info("waiting_for_issuer")
            issuer_outcome = self._waiter.wait_for_issuer_ready(
                issuer,
                timeout=context.issuer_timeout,
                poll_interval=context.poll_interval,
                cancel=cancel,
            )
            if not issuer_outcome.ok:
                return ScenarioReport(issuer=issuer, issuer_outcome=issuer_outcome)

            key = generate_private_key(context.key_algorithm)
            csr_pem = build_csr(
                key,
                common_name=context.dns_names[0],
                dns_names=context.dns_names,
            )

            log.info("creating_certificate_request", request=context.request_name)
            request = self._manager.create_certificate_request(
                context.request_name,
                context.namespace,
                csr_pem=csr_pem,
                issuer=issuer,
                usages=list(context.usages) or None,
                duration=context.duration,
            )
            created.append(request)

            request_outcome = self._waiter.wait_for_request_issued(
                request,
                timeout=context.request_timeout,
                poll_interval=context.poll_interval,
                cancel=cancel,
            )
            if not request_outcome.ok:
                return ScenarioReport(
                    issuer=issuer,
                    issuer_outcome=issuer_outcome,
                    request=request,
                    request_outcome=request_outcome,
                )

            payload = self._manager.fetch_issued_artifact(request)
            trust_bundle = (
                load_certificates(context.trust_bundle_pem) if context.trust_bundle_pem else None
            )
            validation = self._validator.validate(
                payload,
                key,
                context.dns_names,
                trust_bundle=trust_bundle,
            )
            report = ScenarioReport(
                issuer=issuer,
                issuer_outcome=issuer_outcome,
                request=request,
                request_outcome=request_outcome,
                validation=validation,
            )
            log.info("scenario_completed", ok=report.ok)
            return report
        finally:
            if context.cleanup:
                self._cleanup(created, log)

    def _cleanup(self, created: list[ResourceRef], log: Any) -> None:
        """Delete created resources newest first; a failed delete does not stop the rest."""
        for ref in reversed(created):
            try:
                self._manager.delete_resource(ref)
            except KubernetesError as e:
                log.warning("cleanup_failed", resource=str(ref), error=str(e))
