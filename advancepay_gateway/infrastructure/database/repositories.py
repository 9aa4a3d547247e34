"""Data access layer for Advance Pay entities"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from advancepay_gateway.infrastructure.database.models import (
    AdvancePayNewLoanEligible,
    AdvancePayRollover,
    AdvancePayRolloverAction,
    RolloverRequestLog,
    TeleTrackInquiry,
)


class RolloverRepository:
    """Repository for rollover qualification records and rollover actions"""

    def __init__(self, db: Session):
        self.db = db

    def get_rollovers_by_account(self, acct: int) -> List[AdvancePayRollover]:
        """All rollover records for a member account"""
        return (
            self.db.query(AdvancePayRollover)
            .filter(AdvancePayRollover.acct == acct)
            .order_by(AdvancePayRollover.id)
            .all()
        )

    def get_rollover(self, acct: int, sfx: int) -> Optional[AdvancePayRollover]:
        """Rollover record for one loan; the earliest row wins if the batch wrote duplicates"""
        return (
            self.db.query(AdvancePayRollover)
            .filter(AdvancePayRollover.acct == acct, AdvancePayRollover.sfx == sfx)
            .order_by(AdvancePayRollover.id)
            .first()
        )

    def create_rollover_action(self, acct: int, sfx: int, resp_code: Optional[str]) -> AdvancePayRolloverAction:
        """Stage a new rollover action for the posting job"""
        action = AdvancePayRolloverAction(
            acct=acct,
            sfx=sfx,
            resp_code=resp_code,
            post_result="0",
            new_inserted="Y",
        )
        self.db.add(action)
        self.db.flush()
        return action

    def count_rollover_actions(self, acct: int, sfx: int) -> int:
        return (
            self.db.query(AdvancePayRolloverAction)
            .filter(AdvancePayRolloverAction.acct == acct, AdvancePayRolloverAction.sfx == sfx)
            .count()
        )


class RolloverLogRepository:
    """Repository for the rollover request audit log"""

    def __init__(self, db: Session):
        self.db = db

    def create_log(self, correlation_id: str, acct: str, sfx: int, requested_at: datetime) -> RolloverRequestLog:
        entry = RolloverRequestLog(
            correlation_id=correlation_id,
            acct=acct,
            sfx=sfx,
            requested_at=requested_at,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def get_by_correlation_id(self, correlation_id: str) -> Optional[RolloverRequestLog]:
        return (
            self.db.query(RolloverRequestLog)
            .filter(RolloverRequestLog.correlation_id == correlation_id)
            .first()
        )


class LoanInquiryRepository:
    """Repository for new-loan inquiries and new-loan eligibility"""

    def __init__(self, db: Session):
        self.db = db

    def create_inquiry(self, inquiry: TeleTrackInquiry) -> TeleTrackInquiry:
        """Insert an inquiry and populate its store-assigned rec_id"""
        self.db.add(inquiry)
        self.db.flush()
        return inquiry

    def get_inquiry(self, rec_id: int) -> Optional[TeleTrackInquiry]:
        return (
            self.db.query(TeleTrackInquiry)
            .filter(TeleTrackInquiry.rec_id == rec_id)
            .first()
        )

    def get_new_loan_eligibility(self, account: int) -> Optional[AdvancePayNewLoanEligible]:
        return (
            self.db.query(AdvancePayNewLoanEligible)
            .filter(AdvancePayNewLoanEligible.account == account)
            .order_by(AdvancePayNewLoanEligible.id)
            .first()
        )
