"""Result types produced by the waiter and the validator.

Both are terminal value objects: produced once per call and never mutated.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import Field

from issuance_verifier.integrations.kubernetes.models.base import K8sValueBase
from issuance_verifier.integrations.kubernetes.models.certmanager import (
    ObservedCondition,
    ObservedStatus,
    ResourceRef,
)

# Failed.reason values that do not come from a resource condition
REASON_CANCELLED = "cancelled"
REASON_DELETED = "deleted"
REASON_READ_ERROR = "read_error"


class OutcomeKind(str, Enum):
    """Discriminator of a WaitOutcome."""

    SATISFIED = "satisfied"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class WaitOutcome(K8sValueBase):
    """Terminal result of one wait call.

    ``status`` is the last snapshot read, or None if no read succeeded.
    """

    kind: OutcomeKind
    ref: ResourceRef
    status: ObservedStatus | None = None
    elapsed: float = Field(ge=0, description="Seconds since the wait started")

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SATISFIED

    def describe(self) -> str:
        """One-line summary including the last observed conditions."""
        last = self.status.describe() if self.status else "never observed"
        return f"{self.ref}: {self.kind.value} after {self.elapsed:.1f}s; last status: {last}"


class Satisfied(WaitOutcome):
    """The success condition was observed."""

    kind: Literal[OutcomeKind.SATISFIED] = OutcomeKind.SATISFIED
    status: ObservedStatus
    condition: ObservedCondition


class Failed(WaitOutcome):
    """A failure condition matched, or the wait was aborted.

    ``reason`` is the matched condition type, or one of ``cancelled``,
    ``deleted`` and ``read_error``.
    """

    kind: Literal[OutcomeKind.FAILED] = OutcomeKind.FAILED
    reason: str
    message: str | None = None

    def describe(self) -> str:
        text = f"{self.ref}: failed ({self.reason}) after {self.elapsed:.1f}s"
        if self.message:
            text += f": {self.message}"
        return text


class TimedOut(WaitOutcome):
    """The deadline passed without a matching condition."""

    kind: Literal[OutcomeKind.TIMED_OUT] = OutcomeKind.TIMED_OUT
    timeout: float


class ValidationResult(K8sValueBase):
    """Every defect found in an issued certificate.

    ``chain_valid`` is None when no trust bundle was supplied and
    ``request_matches`` is None when no CSR was available.
    """

    key_matches: bool
    names_match: bool
    chain_valid: bool | None = None
    request_matches: bool | None = None
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return (
            self.key_matches
            and self.names_match
            and self.chain_valid is not False
            and self.request_matches is not False
            and not self.errors
        )
