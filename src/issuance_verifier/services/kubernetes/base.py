"""Base manager for Kubernetes service managers.

Provides shared infrastructure for resource managers: client access,
namespace resolution, and error translation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

from issuance_verifier.logging.config import get_logger

if TYPE_CHECKING:
    from issuance_verifier.integrations.kubernetes.client import KubernetesClient


class K8sBaseManager:
    """Base class for Kubernetes service managers.

    Subclasses set ``_entity_name`` for structured log context.

    Example:
        >>> class CertManagerManager(K8sBaseManager):
        ...     _entity_name = "certmanager"
    """

    _entity_name: str = ""

    def __init__(self, client: KubernetesClient) -> None:
        """Initialize the manager.

        Args:
            client: Kubernetes API client instance.
        """
        self._client = client
        self._log = get_logger(__name__, entity=self._entity_name)

    def _resolve_namespace(self, namespace: str | None) -> str:
        """Resolve namespace, falling back to the client default."""
        return namespace or self._client.default_namespace

    def _handle_api_error(
        self,
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> NoReturn:
        """Translate a Kubernetes API exception and re-raise.

        Raises:
            KubernetesError: Always raises an appropriate subclass.
        """
        raise self._client.translate_api_exception(
            e,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )
