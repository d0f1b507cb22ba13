"""Kubernetes integration - API client and configuration models."""

from issuance_verifier.integrations.kubernetes.client import KubernetesClient
from issuance_verifier.integrations.kubernetes.config import (
    ClusterConfig,
    KubernetesDefaultsConfig,
    VerifierConfig,
    WaitDefaultsConfig,
)
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

__all__ = [
    "ClusterConfig",
    "IssuanceArtifactError",
    "KubernetesAuthError",
    "KubernetesClient",
    "KubernetesConflictError",
    "KubernetesConnectionError",
    "KubernetesDefaultsConfig",
    "KubernetesError",
    "KubernetesNotFoundError",
    "KubernetesTimeoutError",
    "KubernetesValidationError",
    "VerifierConfig",
    "WaitDefaultsConfig",
]
