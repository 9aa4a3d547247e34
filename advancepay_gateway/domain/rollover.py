"""Rollover qualification rules - pure functions over rollover records"""

from typing import Optional, Protocol

from advancepay_gateway.domain.models import RolloverInfo, RolloverStatus

PROCESSING_NOTE = "rollover"


class RolloverRecordLike(Protocol):
    qualify: Optional[int]
    note: Optional[str]
    sfx: Optional[int]
    loan_fee: Optional[float]
    orig_bal: Optional[float]


def classify_rollover(record: RolloverRecordLike) -> RolloverStatus:
    """
    Derive the rollover status of a loan from its qualification flag and note.

    The upstream qualification batch only ever writes 0 or 1:
    - qualify = 1:                    QUALIFIED (note is irrelevant)
    - qualify = 0, note = "Rollover": PROCESSING (a rollover is already under way)
    - qualify = 0, any other note:    INELIGIBLE (note carries the rejection reason)
    - qualify missing:                INELIGIBLE
    """
    if record.qualify is None:
        return RolloverStatus.INELIGIBLE

    if record.qualify == 1:
        return RolloverStatus.QUALIFIED

    if record.qualify == 0 and (record.note or "").casefold() == PROCESSING_NOTE:
        return RolloverStatus.PROCESSING

    return RolloverStatus.INELIGIBLE


def to_rollover_info(record: RolloverRecordLike) -> Optional[RolloverInfo]:
    """Build the member-facing summary, or None when the loan should not be listed"""
    status = classify_rollover(record)

    # Ineligible loans and loans missing suffix, fee or balance are not listed
    if status is RolloverStatus.INELIGIBLE:
        return None
    if record.sfx is None or record.loan_fee is None or record.orig_bal is None:
        return None

    return RolloverInfo(
        loan_suffix=record.sfx,
        status=status,
        finance_charge=float(record.loan_fee),
        original_loan_amount=float(record.orig_bal),
    )


def parse_identifier(value) -> int:
    """Parse a member account number or loan suffix; raises ValueError when not an integer"""
    if isinstance(value, bool):
        raise ValueError(f"Not a numeric identifier: {value!r}")
    if isinstance(value, int):
        return value
    return int(str(value).strip())
