"""Models for cert-manager resources and their observed state."""

from issuance_verifier.integrations.kubernetes.models.base import K8sValueBase
from issuance_verifier.integrations.kubernetes.models.certmanager import (
    CERT_MANAGER_GROUP,
    CERT_MANAGER_VERSION,
    ConditionSpec,
    ConditionStatus,
    IssuancePayload,
    ObservedCondition,
    ObservedStatus,
    ResourceKind,
    ResourceRef,
    issuer_ref_dict,
)

__all__ = [
    "CERT_MANAGER_GROUP",
    "CERT_MANAGER_VERSION",
    "ConditionSpec",
    "ConditionStatus",
    "IssuancePayload",
    "K8sValueBase",
    "ObservedCondition",
    "ObservedStatus",
    "ResourceKind",
    "ResourceRef",
    "issuer_ref_dict",
]
