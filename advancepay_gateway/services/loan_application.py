"""New-loan application - submit an inquiry, then poll until the decision engine resolves it"""

import logging
import time
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from advancepay_gateway.config import settings
from advancepay_gateway.domain.insertion_messages import (
    format_loch_message,
    format_lofe_message,
    format_lomd_message,
    format_mmch_message,
)
from advancepay_gateway.domain.loan_decision import amount_in_cents, classify_decision, provisional_payment_cents
from advancepay_gateway.domain.models import (
    DecisionOutcome,
    ErrorDetail,
    ExceptionType,
    FailureKind,
    InquiryHandle,
    InquirySubmission,
    InsertionMessages,
    LoanApplicant,
    LoanDecision,
    LoanDecisionRequest,
)
from advancepay_gateway.domain.rollover import parse_identifier
from advancepay_gateway.infrastructure.database.models import TeleTrackInquiry
from advancepay_gateway.infrastructure.database.repositories import LoanInquiryRepository
from advancepay_gateway.infrastructure.observability.logging import log_loan_decision
from advancepay_gateway.infrastructure.observability.metrics import loan_inquiry_failures_counter, record_loan_decision

logger = logging.getLogger("advancepay.loan.application")

CASE_ID = "Online Banking"
COLLATERAL = 300
BRANCH = 41
STILL_PROCESSING = "Y"
DECIDED = "N"


class LoanApplicationPoller:
    """
    Submits new-loan inquiries and waits for the external decision batch.

    The batch updates the inquiry row in place and flips new_inserted to "N";
    this class re-reads the row on a fixed cadence until that happens or the
    attempt budget runs out.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        max_attempts: int | None = None,
        poll_interval: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session_factory = session_factory
        self.max_attempts = settings.loan_decision_max_attempts if max_attempts is None else max_attempts
        self.poll_interval = settings.loan_decision_poll_interval_seconds if poll_interval is None else poll_interval
        self.sleep = sleep

    def submit_inquiry(
        self,
        member_account_number: str,
        applicant: LoanApplicant,
        loan_amount: int,
        insertion_messages: InsertionMessages,
        deposit_suffix: int,
    ) -> InquirySubmission:
        """
        Stamp a new inquiry for the requested loan.

        Any conversion or storage failure yields a submission without a handle
        and with the error detail set.
        """
        try:
            account_number = parse_identifier(member_account_number)
            inquiry = self._build_inquiry(account_number, applicant, loan_amount, insertion_messages, deposit_suffix)
            with self.session_factory() as db:
                try:
                    LoanInquiryRepository(db).create_inquiry(inquiry)
                    db.commit()
                except SQLAlchemyError:
                    db.rollback()
                    raise
                record_id = inquiry.rec_id
        except (SQLAlchemyError, ValueError, TypeError) as e:
            loan_inquiry_failures_counter.inc()
            logger.error(f"Unable to submit loan inquiry: {e}", extra={"step": "submit_inquiry"})
            return InquirySubmission(error=ErrorDetail.from_exception(e), exception_type=ExceptionType.BUSINESS)

        logger.info("Loan inquiry submitted", extra={"record_id": record_id, "step": "submit_inquiry"})
        return InquirySubmission(
            handle=InquiryHandle(record_id=record_id, account_number=account_number, deposit_suffix=deposit_suffix)
        )

    def await_decision(self, handle: InquiryHandle) -> LoanDecision:
        """
        Poll the inquiry until the decision engine marks it decided.

        Each read is preceded by a poll_interval wait. Read failures count as a
        non-terminal attempt. When the budget runs out the outcome is FAILURE
        with failure kind TIMEOUT, distinct from a decision-engine failure.
        """
        for attempt in range(1, self.max_attempts + 1):
            self.sleep(self.poll_interval)

            try:
                decision = self._read_decision(handle)
            except SQLAlchemyError as e:
                logger.warning(
                    f"Loan decision poll failed: {e}",
                    extra={"record_id": handle.record_id, "attempt": attempt},
                )
                continue

            if decision is not None:
                record_loan_decision(decision.outcome.value, attempts=attempt)
                log_loan_decision(
                    handle.record_id,
                    decision.outcome.value,
                    attempt,
                    decision.failure_kind.value if decision.failure_kind else None,
                )
                return decision

        record_loan_decision(DecisionOutcome.FAILURE.value)
        log_loan_decision(handle.record_id, DecisionOutcome.FAILURE.value, self.max_attempts, FailureKind.TIMEOUT.value)
        return LoanDecision(outcome=DecisionOutcome.FAILURE, failure_kind=FailureKind.TIMEOUT)

    def read_loan_decision(self, request: LoanDecisionRequest) -> LoanDecision:
        """Submit the inquiry and wait for its decision"""
        submission = self.submit_inquiry(
            request.member_account_number,
            request.applicant,
            request.loan_amount,
            request.insertion_messages,
            request.deposit_suffix,
        )
        if not submission.succeeded:
            record_loan_decision(DecisionOutcome.FAILURE.value)
            return LoanDecision(
                outcome=DecisionOutcome.FAILURE,
                failure_kind=FailureKind.PERSISTENCE,
                error=submission.error,
                exception_type=submission.exception_type,
            )
        return self.await_decision(submission.handle)

    def _read_decision(self, handle: InquiryHandle) -> Optional[LoanDecision]:
        with self.session_factory() as db:
            record = LoanInquiryRepository(db).get_inquiry(handle.record_id)
            if record is None or (record.new_inserted or STILL_PROCESSING).upper() != DECIDED:
                return None
            return classify_decision(record, handle.account_number, handle.deposit_suffix)

    @staticmethod
    def _build_inquiry(
        account_number: int,
        applicant: LoanApplicant,
        loan_amount: int,
        insertion_messages: InsertionMessages,
        deposit_suffix: int,
    ) -> TeleTrackInquiry:
        amount_cents = amount_in_cents(loan_amount)

        # new_inserted and tran_date take their defaults from the table
        return TeleTrackInquiry(
            f_name=applicant.first_name,
            l_name=applicant.last_name,
            bd=applicant.birthdate,
            ssn=applicant.ssn,
            add1=applicant.address_1,
            add2=applicant.address_2 or "",
            city=applicant.city,
            st=applicant.state,
            zip=int(applicant.zip_code),
            h_phone=applicant.home_phone,
            w_phone=applicant.work_phone,
            employer=applicant.employer,
            email=applicant.email,
            acct=account_number,
            amount=amount_cents,
            transfer_pymt_source=int(deposit_suffix),
            case_id=CASE_ID,
            collateral=COLLATERAL,
            pymt_amt=provisional_payment_cents(loan_amount),
            branch=BRANCH,
            loch=format_loch_message(insertion_messages.loch, account_number, amount_cents, deposit_suffix),
            lomd=format_lomd_message(insertion_messages.lomd, account_number, amount_cents, deposit_suffix),
            mmch=format_mmch_message(insertion_messages.mmch, account_number, applicant),
            lofe=format_lofe_message(insertion_messages.lofe, account_number, amount_cents),
            loch_trans_source="",
        )
