"""Unit tests for K8sBaseManager."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from issuance_verifier.integrations.kubernetes.exceptions import KubernetesNotFoundError
from issuance_verifier.services.kubernetes.base import K8sBaseManager


class TestK8sBaseManager:
    """Tests for K8sBaseManager base class."""

    @pytest.mark.unit
    @pytest.mark.kubernetes
    def test_init(self, mock_k8s_client: MagicMock) -> None:
        """Manager should initialize with client."""
        manager = K8sBaseManager(mock_k8s_client)

        assert manager._client == mock_k8s_client
        assert manager._log is not None

    @pytest.mark.unit
    @pytest.mark.kubernetes
    def test_resolve_namespace_with_explicit_namespace(self, mock_k8s_client: MagicMock) -> None:
        """Should return explicit namespace when provided."""
        manager = K8sBaseManager(mock_k8s_client)

        assert manager._resolve_namespace("sandbox") == "sandbox"

    @pytest.mark.unit
    @pytest.mark.kubernetes
    def test_resolve_namespace_with_none(self, mock_k8s_client: MagicMock) -> None:
        """Should return default namespace when None provided."""
        manager = K8sBaseManager(mock_k8s_client)

        assert manager._resolve_namespace(None) == "default"

    @pytest.mark.unit
    @pytest.mark.kubernetes
    def test_handle_api_error(self, mock_k8s_client: MagicMock) -> None:
        """Should translate API exception through client and raise the result."""
        from kubernetes.client import ApiException

        manager = K8sBaseManager(mock_k8s_client)

        with pytest.raises(KubernetesNotFoundError) as exc_info:
            manager._handle_api_error(ApiException(status=404), "Issuer", "ca", "sandbox")

        assert exc_info.value.resource_name == "ca"
        mock_k8s_client.translate_api_exception.assert_called_once()
        _, kwargs = mock_k8s_client.translate_api_exception.call_args
        assert kwargs == {
            "resource_type": "Issuer",
            "resource_name": "ca",
            "namespace": "sandbox",
        }
