"""Shared fixtures for CLI command tests."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest
import typer

from issuance_verifier.integrations.kubernetes.config import VerifierConfig
from issuance_verifier.integrations.kubernetes.models.certmanager import (
    ConditionStatus,
    ObservedCondition,
    ObservedStatus,
)

READY_STATUS = ObservedStatus(
    conditions=(ObservedCondition(type="Ready", status=ConditionStatus.TRUE, reason="Issued"),)
)


@pytest.fixture
def verifier_config() -> VerifierConfig:
    """Default configuration with short waits."""
    return VerifierConfig.model_validate(
        {"wait": {"issuer_timeout": 2.0, "request_timeout": 1.0, "poll_interval": 0.01}}
    )


@pytest.fixture
def get_config(verifier_config: VerifierConfig) -> Callable[[], VerifierConfig]:
    return lambda: verifier_config


@pytest.fixture
def mock_manager() -> MagicMock:
    """Create a mock CertManagerManager whose resources are ready."""
    manager = MagicMock()
    manager.read_status.return_value = READY_STATUS
    return manager


@pytest.fixture
def get_manager(mock_manager: MagicMock) -> Callable[[], MagicMock]:
    return lambda: mock_manager


@pytest.fixture
def base_app() -> typer.Typer:
    """An app with a root callback so single registered commands keep their name."""
    app = typer.Typer()

    @app.callback()
    def root() -> None:
        """Test root."""

    return app
