"""Read-only rollover eligibility queries over the Advance Pay store"""

import logging
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from advancepay_gateway.domain.exceptions import PersistenceError
from advancepay_gateway.domain.models import RolloverInfo, RolloverStatus
from advancepay_gateway.domain.rollover import RolloverRecordLike, classify_rollover, parse_identifier, to_rollover_info
from advancepay_gateway.infrastructure.database.repositories import RolloverRepository

logger = logging.getLogger("advancepay.rollover.eligibility")


class RolloverEligibilityStore:
    """Eligibility and status lookups for rollover records"""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    @staticmethod
    def classify(record: RolloverRecordLike) -> Optional[RolloverStatus]:
        """QUALIFIED or PROCESSING, or None when the loan is not eligible"""
        status = classify_rollover(record)
        return None if status is RolloverStatus.INELIGIBLE else status

    def list_rollovers(self, member_account_number: str) -> List[RolloverInfo]:
        """
        Rollover summaries for every listable loan on the account.

        Ineligible loans and records missing suffix, fee, or original balance
        are skipped. A non-numeric account number yields an empty list.

        Raises:
            PersistenceError: the store could not be read
        """
        try:
            acct = parse_identifier(member_account_number)
        except ValueError:
            logger.info("Malformed member account number", extra={"step": "list_rollovers"})
            return []

        try:
            with self.session_factory() as db:
                records = RolloverRepository(db).get_rollovers_by_account(acct)
                return [info for info in (to_rollover_info(record) for record in records) if info is not None]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Unable to read rollovers: {e}") from e

    def status_for(self, member_account_number, loan_suffix) -> RolloverStatus:
        """
        Current rollover status of one loan.

        Malformed identifiers and missing records are INELIGIBLE.

        Raises:
            PersistenceError: the store could not be read
        """
        try:
            acct = parse_identifier(member_account_number)
            sfx = parse_identifier(loan_suffix)
        except ValueError:
            return RolloverStatus.INELIGIBLE

        try:
            with self.session_factory() as db:
                record = RolloverRepository(db).get_rollover(acct, sfx)
                return RolloverStatus.INELIGIBLE if record is None else classify_rollover(record)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Unable to read rollover status: {e}") from e

    def is_eligible(self, member_account_number, loan_suffix) -> bool:
        """True only when the loan is QUALIFIED for rollover right now"""
        try:
            return self.status_for(member_account_number, loan_suffix) is RolloverStatus.QUALIFIED
        except PersistenceError as e:
            logger.error(f"Eligibility check failed: {e}", extra={"step": "is_eligible"})
            return False
