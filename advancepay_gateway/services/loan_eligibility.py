"""New-loan eligibility and loan conditions lookups"""

import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from advancepay_gateway.domain.models import AccountLoanEligibility, ErrorDetail, ExceptionType, LoanConditions
from advancepay_gateway.domain.rollover import parse_identifier
from advancepay_gateway.infrastructure.database.repositories import LoanInquiryRepository

logger = logging.getLogger("advancepay.loan.eligibility")


class LoanEligibilityService:
    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def read_eligibility_for_account(self, member_uuid: Optional[int]) -> AccountLoanEligibility:
        """
        Account id and maximum new-loan amount (whole dollars) as strings.

        Missing values are returned as empty strings. A missing member id is
        looked up as account 0. Storage failures return empty values with the
        error detail set.
        """
        try:
            with self.session_factory() as db:
                item = LoanInquiryRepository(db).get_new_loan_eligibility(member_uuid or 0)
        except SQLAlchemyError as e:
            logger.error(f"Unable to read new-loan eligibility: {e}", extra={"step": "read_eligibility"})
            return AccountLoanEligibility(error=ErrorDetail.from_exception(e), exception_type=ExceptionType.BUSINESS)

        if item is None:
            return AccountLoanEligibility()

        return AccountLoanEligibility(
            account="" if item.account is None else str(item.account),
            max_loan_amount="" if item.max_loan_amount is None else str(item.max_loan_amount),
        )

    def read_loan_conditions(self, member_account_number: str) -> LoanConditions:
        """
        Maximum loan amount in cents for the account.

        loan_terms is "success" when the lookup ran, "failure" when the account
        number is malformed or the store could not be read.
        """
        try:
            account = parse_identifier(member_account_number)
            with self.session_factory() as db:
                item = LoanInquiryRepository(db).get_new_loan_eligibility(account)
        except (SQLAlchemyError, ValueError) as e:
            logger.error(f"Unable to read loan conditions: {e}", extra={"step": "read_loan_conditions"})
            return LoanConditions(
                maximum_loan_amount=0,
                loan_terms="failure",
                error=ErrorDetail.from_exception(e),
                exception_type=ExceptionType.BUSINESS,
            )

        max_loan_amount = (item.max_loan_amount or 0) if item is not None else 0
        if max_loan_amount > 0:
            max_loan_amount *= 100  # stored in dollars

        return LoanConditions(maximum_loan_amount=max_loan_amount, loan_terms="success")
