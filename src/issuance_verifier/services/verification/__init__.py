"""Issuance verification: condition waiting, certificate validation, scenarios."""

from issuance_verifier.services.verification.exceptions import (
    ScenarioError,
    VerificationError,
    WaitConfigurationError,
)
from issuance_verifier.services.verification.models import (
    REASON_CANCELLED,
    REASON_DELETED,
    REASON_READ_ERROR,
    Failed,
    OutcomeKind,
    Satisfied,
    TimedOut,
    ValidationResult,
    WaitOutcome,
)
from issuance_verifier.services.verification.scenario import (
    IssuanceScenario,
    ScenarioContext,
    ScenarioReport,
)
from issuance_verifier.services.verification.validator import (
    IssuanceValidator,
    certificate_names,
    normalize_dns_name,
)
from issuance_verifier.services.verification.waiter import (
    ISSUER_READY,
    REQUEST_FAILURES,
    REQUEST_READY,
    ConditionWaiter,
    StatusReader,
)

__all__ = [
    "ISSUER_READY",
    "REASON_CANCELLED",
    "REASON_DELETED",
    "REASON_READ_ERROR",
    "REQUEST_FAILURES",
    "REQUEST_READY",
    "ConditionWaiter",
    "Failed",
    "IssuanceScenario",
    "IssuanceValidator",
    "OutcomeKind",
    "Satisfied",
    "ScenarioContext",
    "ScenarioError",
    "ScenarioReport",
    "StatusReader",
    "TimedOut",
    "ValidationResult",
    "VerificationError",
    "WaitConfigurationError",
    "WaitOutcome",
    "certificate_names",
    "normalize_dns_name",
]
