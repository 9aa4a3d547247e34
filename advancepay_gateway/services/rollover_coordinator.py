"""Rollover submission - eligibility check, correlated logging, and action write"""

import logging
import time
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from advancepay_gateway.config import settings
from advancepay_gateway.domain.exceptions import CompletionTimeoutError, PersistenceError
from advancepay_gateway.domain.models import (
    ErrorDetail,
    ExceptionType,
    FailureKind,
    RolloverInfo,
    RolloverRequest,
    RolloverStatus,
    RolloverSubmissionResult,
    SubmissionState,
)
from advancepay_gateway.domain.rollover import parse_identifier
from advancepay_gateway.events.bus import EventBus
from advancepay_gateway.events.completion import CompletionRegistry
from advancepay_gateway.events.events import RolloverRequestedEvent
from advancepay_gateway.infrastructure.database.repositories import RolloverRepository
from advancepay_gateway.infrastructure.observability.logging import log_rollover_submission
from advancepay_gateway.infrastructure.observability.metrics import (
    record_rollover_submission,
    rollover_completion_wait_histogram,
)
from advancepay_gateway.services.rollover_eligibility import RolloverEligibilityStore

logger = logging.getLogger("advancepay.rollover.coordinator")

UNABLE_TO_LOG_MESSAGE = "Unable to log the rollover request."
INELIGIBLE_FOR_ROLLOVER_MESSAGE = (
    "The loan for which this rollover request was made is not eligible for rollover at this time."
)
ROLLOVER_TIMEOUT_MESSAGE = "Timed out waiting for the rollover request to be logged."


class RolloverRequestCoordinator:
    """
    Drives one rollover submission end to end:

        CHECKING -> REJECTED
                 -> AWAITING -> COMMITTED | FAILED | TIMED_OUT

    The completion handle is registered before the request event is published,
    so a fast subscriber cannot complete before anyone is waiting.
    """

    def __init__(
        self,
        bus: EventBus,
        completions: CompletionRegistry,
        eligibility: RolloverEligibilityStore,
        session_factory: Callable[[], Session],
        completion_timeout: float | None = None,
    ):
        self.bus = bus
        self.completions = completions
        self.eligibility = eligibility
        self.session_factory = session_factory
        self.completion_timeout = (
            settings.rollover_completion_timeout_seconds if completion_timeout is None else completion_timeout
        )

    def read_rollovers(self, member_account_number: str) -> List[RolloverInfo]:
        """Rollover summaries for the member's listable loans"""
        return self.eligibility.list_rollovers(member_account_number)

    def submit(self, request: RolloverRequest) -> RolloverSubmissionResult:
        """
        Submit a rollover request.

        Never raises for business or storage failures; the result carries
        success, a reason, the failure kind, and any error detail.
        """
        start_time = time.monotonic()
        result = self._submit(request)

        duration_ms = (time.monotonic() - start_time) * 1000
        record_rollover_submission(result.state.value)
        log_rollover_submission(
            result.correlation_id,
            request.member_account_number,
            request.loan_suffix,
            result.state.value,
            result.success,
            duration_ms,
        )
        return result

    def _submit(self, request: RolloverRequest) -> RolloverSubmissionResult:
        # 1. Checking
        try:
            status = self.eligibility.status_for(request.member_account_number, request.loan_suffix)
        except PersistenceError as e:
            logger.error(f"Rollover eligibility check failed: {e}", extra={"step": "checking"})
            return _business_failure(SubmissionState.FAILED, str(e), FailureKind.PERSISTENCE, e)

        if status is not RolloverStatus.QUALIFIED:
            return RolloverSubmissionResult(
                success=False,
                state=SubmissionState.REJECTED,
                reason=INELIGIBLE_FOR_ROLLOVER_MESSAGE,
                failure_kind=FailureKind.INELIGIBLE,
            )

        # 2. Awaiting
        event = RolloverRequestedEvent.for_request(request)
        future = self.completions.register(event.correlation_id)
        try:
            self.bus.publish(event)
            with rollover_completion_wait_histogram.time():
                completion = self.completions.wait(event.correlation_id, future, self.completion_timeout)
        except CompletionTimeoutError as e:
            logger.warning(str(e), extra={"correlation_id": event.correlation_id, "step": "awaiting"})
            return _business_failure(
                SubmissionState.TIMED_OUT, ROLLOVER_TIMEOUT_MESSAGE, FailureKind.TIMEOUT, e, event.correlation_id
            )
        finally:
            self.completions.discard(event.correlation_id)

        # 3. Failed
        if not completion.is_successful:
            return RolloverSubmissionResult(
                success=False,
                state=SubmissionState.FAILED,
                reason=UNABLE_TO_LOG_MESSAGE,
                correlation_id=event.correlation_id,
                failure_kind=FailureKind.LOGGING_FAILED,
                error=completion.error,
                exception_type=ExceptionType.BUSINESS,
            )

        # 4. Committed
        try:
            self._write_rollover_action(request)
        except PersistenceError as e:
            logger.error(f"Rollover action write failed: {e}", extra={"correlation_id": event.correlation_id})
            return _business_failure(SubmissionState.FAILED, str(e), FailureKind.PERSISTENCE, e, event.correlation_id)

        return RolloverSubmissionResult(
            success=True,
            state=SubmissionState.COMMITTED,
            correlation_id=event.correlation_id,
        )

    def _write_rollover_action(self, request: RolloverRequest) -> None:
        """
        Insert the rollover action, copying the response code from the current rollover record.

        Raises:
            PersistenceError: record vanished, identifiers invalid, or the write failed
        """
        try:
            acct = parse_identifier(request.member_account_number)
            sfx = parse_identifier(request.loan_suffix)
        except ValueError as e:
            raise PersistenceError(f"Invalid rollover identifiers: {e}") from e

        try:
            with self.session_factory() as db:
                repo = RolloverRepository(db)
                record = repo.get_rollover(acct, sfx)
                if record is None:
                    raise PersistenceError(f"Rollover record not found for account {acct} suffix {sfx}")
                try:
                    repo.create_rollover_action(acct, sfx, record.resp_code)
                    db.commit()
                except SQLAlchemyError:
                    db.rollback()
                    raise
        except SQLAlchemyError as e:
            raise PersistenceError(f"Unable to write rollover request: {e}") from e


def _business_failure(
    state: SubmissionState,
    reason: str,
    kind: FailureKind,
    exc: Optional[BaseException] = None,
    correlation_id: Optional[str] = None,
) -> RolloverSubmissionResult:
    return RolloverSubmissionResult(
        success=False,
        state=state,
        reason=reason,
        correlation_id=correlation_id,
        failure_kind=kind,
        error=ErrorDetail.from_exception(exc) if exc is not None else None,
        exception_type=ExceptionType.BUSINESS,
    )
