"""Kubernetes resource managers."""

from issuance_verifier.services.kubernetes.base import K8sBaseManager
from issuance_verifier.services.kubernetes.certmanager_manager import CertManagerManager

__all__ = ["CertManagerManager", "K8sBaseManager"]
