"""Shared fixtures for Kubernetes service tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from issuance_verifier.integrations.kubernetes.client import KubernetesClient


@pytest.fixture
def mock_k8s_client() -> MagicMock:
    """Create a mock Kubernetes client.

    The retry decorator is a pass-through and exceptions are translated by
    the real ``translate_api_exception`` so managers see genuine error types.
    """
    mock_client = MagicMock()
    mock_client.default_namespace = "default"
    mock_client.request_timeout = 30
    mock_client.make_retry_decorator.return_value = lambda fn: fn
    mock_client.translate_api_exception.side_effect = KubernetesClient.translate_api_exception
    return mock_client
