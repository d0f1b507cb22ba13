"""Cert-manager resource models.

Cert-manager CRDs are accessed via ``CustomObjectsApi`` which returns raw
``dict`` objects rather than typed SDK classes.  The ``from_k8s_object``
classmethods therefore use ``dict.get()`` instead of ``getattr()``.
"""

from __future__ import annotations

import base64
import binascii
from enum import Enum
from typing import Any

from pydantic import Field, model_validator

from issuance_verifier.integrations.kubernetes.models.base import K8sValueBase, _dig

# cert-manager.io CRD coordinates
CERT_MANAGER_GROUP = "cert-manager.io"
CERT_MANAGER_VERSION = "v1"


class ResourceKind(str, Enum):
    """Cert-manager resource kinds the verifier can observe."""

    ISSUER = "Issuer"
    CLUSTER_ISSUER = "ClusterIssuer"
    CERTIFICATE_REQUEST = "CertificateRequest"

    @property
    def plural(self) -> str:
        """The lowercase plural used in API paths."""
        return {
            ResourceKind.ISSUER: "issuers",
            ResourceKind.CLUSTER_ISSUER: "clusterissuers",
            ResourceKind.CERTIFICATE_REQUEST: "certificaterequests",
        }[self]

    @property
    def namespaced(self) -> bool:
        return self is not ResourceKind.CLUSTER_ISSUER


class ConditionStatus(str, Enum):
    """Status values of a Kubernetes condition."""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


class ResourceRef(K8sValueBase):
    """Identity of one externally owned cert-manager resource."""

    name: str = Field(min_length=1, description="Resource name")
    namespace: str = Field(default="", description="Namespace; empty for cluster-scoped kinds")
    kind: ResourceKind = Field(description="Resource kind")

    @model_validator(mode="after")
    def validate_namespace(self) -> ResourceRef:
        """Namespaced kinds need a namespace; cluster-scoped kinds must not have one."""
        if self.kind.namespaced and not self.namespace:
            raise ValueError(f"{self.kind.value} references need a namespace")
        if not self.kind.namespaced and self.namespace:
            raise ValueError(f"{self.kind.value} is cluster-scoped")
        return self

    def __str__(self) -> str:
        if self.kind.namespaced:
            return f"{self.kind.value} {self.namespace}/{self.name}"
        return f"{self.kind.value} {self.name}"


class ObservedCondition(K8sValueBase):
    """One entry of ``.status.conditions[]`` as last read."""

    type: str = Field(description="Condition type (Ready, Denied, ...)")
    status: ConditionStatus = Field(default=ConditionStatus.UNKNOWN)
    reason: str = Field(default="", description="Machine-readable reason")
    message: str | None = Field(default=None, description="Human-readable message")
    observed_generation: int | None = Field(default=None)
    last_transition_time: str | None = Field(default=None)

    @classmethod
    def from_k8s_object(cls, obj: dict[str, Any]) -> ObservedCondition:
        """Create from a condition dict."""
        raw_status = obj.get("status", ConditionStatus.UNKNOWN.value)
        try:
            status = ConditionStatus(raw_status)
        except ValueError:
            status = ConditionStatus.UNKNOWN
        return cls(
            type=obj.get("type", ""),
            status=status,
            reason=obj.get("reason") or "",
            message=obj.get("message"),
            observed_generation=obj.get("observedGeneration"),
            last_transition_time=obj.get("lastTransitionTime"),
        )

    def describe(self) -> str:
        """Render as ``Type=Status (reason): message``."""
        text = f"{self.type}={self.status.value}"
        if self.reason:
            text += f" ({self.reason})"
        if self.message:
            text += f": {self.message}"
        return text


class ConditionSpec(K8sValueBase):
    """A condition a waiter is looking for.

    ``reason`` narrows the match; None accepts any reason.
    """

    type: str = Field(min_length=1)
    status: ConditionStatus = Field(default=ConditionStatus.TRUE)
    reason: str | None = Field(default=None)

    def matches(self, condition: ObservedCondition) -> bool:
        """Return True if ``condition`` satisfies this spec."""
        if condition.type != self.type or condition.status != self.status:
            return False
        return self.reason is None or condition.reason == self.reason

    def __str__(self) -> str:
        text = f"{self.type}={self.status.value}"
        if self.reason is not None:
            text += f" ({self.reason})"
        return text


class ObservedStatus(K8sValueBase):
    """Point-in-time snapshot of a resource's status.

    A snapshot with ``exists=False`` stands for a 404 on read.
    """

    exists: bool = Field(default=True)
    conditions: tuple[ObservedCondition, ...] = Field(default=())
    revision: str | None = Field(default=None, description="metadata.resourceVersion")
    generation: int | None = Field(default=None, description="metadata.generation")

    @classmethod
    def from_k8s_object(cls, obj: dict[str, Any]) -> ObservedStatus:
        """Create from a cert-manager CRD dict."""
        raw: list[dict[str, Any]] = _dig(obj, "status", "conditions", default=[])
        return cls(
            exists=True,
            conditions=tuple(ObservedCondition.from_k8s_object(c) for c in raw),
            revision=_dig(obj, "metadata", "resourceVersion"),
            generation=_dig(obj, "metadata", "generation"),
        )

    @classmethod
    def not_found(cls) -> ObservedStatus:
        return cls(exists=False)

    def first_match(self, specs: tuple[ConditionSpec, ...] | list[ConditionSpec]) -> ObservedCondition | None:
        """Return the first condition, in the resource's own order, matching any spec."""
        for condition in self.conditions:
            if any(spec.matches(condition) for spec in specs):
                return condition
        return None

    def get(self, condition_type: str) -> ObservedCondition | None:
        """Return the condition of the given type, if present."""
        for condition in self.conditions:
            if condition.type == condition_type:
                return condition
        return None

    def describe(self) -> str:
        """Summarize the snapshot for error messages."""
        if not self.exists:
            return "resource not found"
        if not self.conditions:
            return "no conditions reported"
        return "; ".join(c.describe() for c in self.conditions)


class IssuancePayload(K8sValueBase):
    """Artifacts of a signed CertificateRequest.

    All fields hold PEM bytes, already base64-decoded from the resource.
    """

    certificate_pem: bytes = Field(description="Issued leaf (and possibly chain) PEM")
    ca_bundle_pem: bytes | None = Field(default=None, description="CA PEM from .status.ca")
    csr_pem: bytes | None = Field(default=None, description="Original CSR from .spec.request")

    @classmethod
    def from_k8s_object(cls, obj: dict[str, Any]) -> IssuancePayload:
        """Create from a CertificateRequest dict.

        Raises:
            ValueError: If a field is not valid base64.
        """
        return cls(
            certificate_pem=_b64decode(_dig(obj, "status", "certificate", default="")),
            ca_bundle_pem=_b64decode(_dig(obj, "status", "ca")) or None,
            csr_pem=_b64decode(_dig(obj, "spec", "request")) or None,
        )


def _b64decode(value: str | None) -> bytes:
    if not value:
        return b""
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as e:
        raise ValueError(f"field is not valid base64: {e}") from e


def issuer_ref_dict(ref: ResourceRef) -> dict[str, str]:
    """Render an issuer ResourceRef as a CertificateRequest ``issuerRef``."""
    return {"name": ref.name, "kind": ref.kind.value, "group": CERT_MANAGER_GROUP}
