"""Exceptions raised by the verification layer.

Expected asynchronous delay is never an exception here: the waiter reports
it as a WaitOutcome and the validator as a ValidationResult. These cover
caller mistakes and the scenario runner's final verdict.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from issuance_verifier.services.verification.models import ValidationResult, WaitOutcome


class VerificationError(Exception):
    """Base exception for the verification layer."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class WaitConfigurationError(VerificationError):
    """A wait was requested with a non-positive timeout or poll interval."""


class ScenarioError(VerificationError):
    """An issuance scenario did not end with a valid certificate.

    Attributes:
        outcome: The wait outcome that stopped the scenario, if any.
        validation: The failing validation result, if validation ran.
    """

    def __init__(
        self,
        message: str,
        outcome: WaitOutcome | None = None,
        validation: ValidationResult | None = None,
    ) -> None:
        super().__init__(message)
        self.outcome = outcome
        self.validation = validation

    def __str__(self) -> str:
        parts = [self.message]
        if self.outcome is not None:
            parts.append(self.outcome.describe())
        if self.validation is not None:
            parts.extend(self.validation.errors)
        return "\n  ".join(parts)
