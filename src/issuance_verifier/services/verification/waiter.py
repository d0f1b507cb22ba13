"""Condition waiter for reconciled resources.

Polls a resource's status conditions until a success condition holds, a
failure condition shows up, the caller cancels, or a hard deadline passes.
Every iteration performs a fresh read; nothing but the last snapshot is
kept between iterations.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable
from typing import Protocol

import structlog

from issuance_verifier.integrations.kubernetes.exceptions import KubernetesError
from issuance_verifier.integrations.kubernetes.models.certmanager import (
    ConditionSpec,
    ConditionStatus,
    ObservedStatus,
    ResourceRef,
)
from issuance_verifier.services.verification.exceptions import WaitConfigurationError
from issuance_verifier.services.verification.models import (
    REASON_CANCELLED,
    REASON_DELETED,
    REASON_READ_ERROR,
    Failed,
    Satisfied,
    TimedOut,
    WaitOutcome,
)

logger = structlog.get_logger()

# Readiness semantics of cert-manager resources
ISSUER_READY = ConditionSpec(type="Ready", status=ConditionStatus.TRUE)
REQUEST_READY = ConditionSpec(type="Ready", status=ConditionStatus.TRUE)
REQUEST_FAILURES: tuple[ConditionSpec, ...] = (
    ConditionSpec(type="Denied", status=ConditionStatus.TRUE),
    ConditionSpec(type="InvalidRequest", status=ConditionStatus.TRUE),
    ConditionSpec(type="Ready", status=ConditionStatus.FALSE, reason="Failed"),
)


class StatusReader(Protocol):
    """Anything that can take a point-in-time status snapshot of a resource."""

    def read_status(self, ref: ResourceRef) -> ObservedStatus: ...


class ConditionWaiter:
    """Blocks until a resource reaches a condition.

    The waiter holds no per-wait state, so one instance can serve concurrent
    waits on different resources.

    Args:
        reader: Status accessor, typically a CertManagerManager.
        clock: Monotonic clock in seconds.
        sleep: Replacement for the pause between polls. When None the
            waiter sleeps on the cancellation event (if any) so that a
            cancel interrupts the pause.
    """

    def __init__(
        self,
        reader: StatusReader,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self._reader = reader
        self._clock = clock
        self._sleep = sleep

    def _pause(self, seconds: float, cancel: threading.Event | None) -> None:
        if self._sleep is not None:
            self._sleep(seconds)
        elif cancel is not None:
            cancel.wait(seconds)
        else:
            time.sleep(seconds)

    def wait(
        self,
        ref: ResourceRef,
        success: ConditionSpec,
        failures: Iterable[ConditionSpec] = (),
        *,
        timeout: float,
        poll_interval: float,
        cancel: threading.Event | None = None,
    ) -> WaitOutcome:
        """Poll ``ref`` until ``success`` or any of ``failures`` is observed.

        A missing resource is retried until it appears, since creation may
        not have propagated yet. Once it has been seen, disappearing ends
        the wait as ``Failed(reason="deleted")``. Transient read errors are
        retried by the poll loop; any other read error ends the wait as
        ``Failed(reason="read_error")``.

        Args:
            ref: Resource to observe.
            success: Condition that ends the wait with Satisfied.
            failures: Conditions that end the wait with Failed.
            timeout: Hard deadline in seconds, measured from the call.
            poll_interval: Seconds between reads.
            cancel: Optional event; once set the wait ends as
                ``Failed(reason="cancelled")`` within one poll interval.

        Returns:
            Exactly one of Satisfied, Failed or TimedOut.

        Raises:
            WaitConfigurationError: If timeout or poll_interval is not positive.
        """
        if timeout <= 0:
            raise WaitConfigurationError(f"timeout must be positive, got {timeout}")
        if poll_interval <= 0:
            raise WaitConfigurationError(f"poll_interval must be positive, got {poll_interval}")

        failure_specs = tuple(failures)
        log = logger.bind(ref=str(ref), success=str(success))
        if poll_interval > timeout / 10:
            log.warning("poll_interval_coarse", timeout=timeout, poll_interval=poll_interval)

        start = self._clock()
        deadline = start + timeout
        last: ObservedStatus | None = None
        seen = False
        polls = 0
        log.info(
            "wait_started",
            timeout=timeout,
            poll_interval=poll_interval,
            failures=[str(spec) for spec in failure_specs],
        )

        while True:
            if cancel is not None and cancel.is_set():
                log.info("wait_cancelled", polls=polls)
                return Failed(
                    ref=ref,
                    status=last,
                    elapsed=self._clock() - start,
                    reason=REASON_CANCELLED,
                    message="wait cancelled by caller",
                )

            polls += 1
            try:
                status = self._reader.read_status(ref)
            except KubernetesError as e:
                if not e.is_transient:
                    log.warning("wait_read_error", error=str(e), polls=polls)
                    return Failed(
                        ref=ref,
                        status=last,
                        elapsed=self._clock() - start,
                        reason=REASON_READ_ERROR,
                        message=str(e),
                    )
                log.debug("poll_transient_error", error=str(e), poll=polls)
            else:
                last = status
                if not status.exists:
                    if seen:
                        log.warning("wait_resource_deleted", polls=polls)
                        return Failed(
                            ref=ref,
                            status=status,
                            elapsed=self._clock() - start,
                            reason=REASON_DELETED,
                            message=f"{ref} was deleted while waiting",
                        )
                    log.debug("poll_not_found", poll=polls)
                else:
                    seen = True
                    matched = status.first_match((success,))
                    if matched is not None:
                        elapsed = self._clock() - start
                        log.info("wait_satisfied", polls=polls, elapsed=elapsed)
                        return Satisfied(ref=ref, status=status, elapsed=elapsed, condition=matched)

                    failed = status.first_match(failure_specs)
                    if failed is not None:
                        elapsed = self._clock() - start
                        log.warning(
                            "wait_failed",
                            polls=polls,
                            elapsed=elapsed,
                            condition=failed.describe(),
                        )
                        return Failed(
                            ref=ref,
                            status=status,
                            elapsed=elapsed,
                            reason=failed.type,
                            message=failed.describe(),
                        )
                    log.debug("poll_pending", poll=polls, status=status.describe())

            remaining = deadline - self._clock()
            if remaining <= 0:
                elapsed = self._clock() - start
                log.warning(
                    "wait_timed_out",
                    polls=polls,
                    elapsed=elapsed,
                    last_status=last.describe() if last else None,
                )
                return TimedOut(ref=ref, status=last, elapsed=elapsed, timeout=timeout)

            self._pause(min(poll_interval, remaining), cancel)

    def wait_for_issuer_ready(
        self,
        ref: ResourceRef,
        *,
        timeout: float,
        poll_interval: float,
        cancel: threading.Event | None = None,
    ) -> WaitOutcome:
        """Wait for an Issuer or ClusterIssuer to report ``Ready=True``.

        Issuers have no terminal failure condition; ``Ready=False`` is
        retried because the issuer controller keeps re-checking its backend.
        """
        return self.wait(
            ref,
            ISSUER_READY,
            (),
            timeout=timeout,
            poll_interval=poll_interval,
            cancel=cancel,
        )

    def wait_for_request_issued(
        self,
        ref: ResourceRef,
        *,
        timeout: float,
        poll_interval: float,
        cancel: threading.Event | None = None,
    ) -> WaitOutcome:
        """Wait for a CertificateRequest to be signed.

        Fails fast on ``Denied``, ``InvalidRequest`` or ``Ready=False`` with
        reason ``Failed``; cert-manager never retries those requests.
        """
        return self.wait(
            ref,
            REQUEST_READY,
            REQUEST_FAILURES,
            timeout=timeout,
            poll_interval=poll_interval,
            cancel=cancel,
        )
