"""Loan decision classification - maps a decided inquiry record to an outcome"""

from datetime import datetime, timedelta
from decimal import Decimal, ROUND_DOWN
from typing import Optional, Protocol

from advancepay_gateway.domain.models import (
    DecisionOutcome,
    FailureKind,
    LoanApproval,
    LoanDecision,
    LoanDenial,
)

FINANCE_CHARGE_RATE = 0.125
PAYMENT_MULTIPLIER = Decimal("1.125")
ANNUAL_PERCENTAGE_RATE = 325.89
LOAN_TERM_DAYS = 14

# Decision engine codes: 0 = approved, 1 = denied (bureau), 2 = engine failed, 3 = input error
DECISION_APPROVED = "0"
DECISION_DENIED = "1"

FLAG_SET = "1"


class DecidedInquiry(Protocol):
    decision: Optional[str]
    new_suffix: Optional[int]
    tran_date: Optional[datetime]
    amount: Optional[int]
    pymt_amt: Optional[int]
    open_cos: Optional[str]
    skip_guard: Optional[str]
    consumer_dispute: Optional[str]
    social_guard: Optional[str]


def mask_account_number(account_number) -> str:
    """
    Mask all but the last 4 digits with '*', preserving length.

    Example:
        123456789 -> *****6789
    Numbers of 4 digits or fewer are returned unmasked.
    """
    digits = str(account_number)
    if len(digits) <= 4:
        return digits
    return digits[-4:].rjust(len(digits), "*")


def amount_in_cents(loan_amount: int) -> int:
    return loan_amount * 100


def provisional_payment_cents(loan_amount: int) -> int:
    """Loan amount plus 12.5% finance charge, in cents, truncated toward zero"""
    return int((Decimal(loan_amount) * PAYMENT_MULTIPLIER * 100).to_integral_value(rounding=ROUND_DOWN))


def build_approval(record: DecidedInquiry, account_number: int, deposit_suffix: int) -> LoanApproval:
    masked = mask_account_number(account_number)
    approval = LoanApproval(
        loan_information=f"Account No: {masked}; loan Suffix: {'' if record.new_suffix is None else record.new_suffix}",
        loan_date=record.tran_date,
        due_date=record.tran_date + timedelta(days=LOAN_TERM_DAYS) if record.tran_date else None,
        annual_percentage_rate=ANNUAL_PERCENTAGE_RATE,
        transfer_payment_suffix=f"{masked}-{deposit_suffix}",
    )

    loan_amount = record.amount or 0
    if loan_amount > 0:
        approval.loan_amount = loan_amount
        approval.finance_charge = loan_amount * FINANCE_CHARGE_RATE

    payment_amount = record.pymt_amt or 0
    if payment_amount > 0:
        approval.payment_amount = payment_amount

    return approval


def build_denial(record: DecidedInquiry) -> LoanDenial:
    return LoanDenial(
        has_charge_off=record.open_cos == FLAG_SET,
        has_skip_guard=record.skip_guard == FLAG_SET,
        has_consumer_dispute=record.consumer_dispute == FLAG_SET,
        has_social_guard=record.social_guard == FLAG_SET,
    )


def classify_decision(record: DecidedInquiry, account_number: int, deposit_suffix: int) -> LoanDecision:
    """
    Classify a record the decision engine has finished with.

    Returns:
        APPROVED with approval details for code "0",
        DENIED with denial flags for code "1",
        FAILURE (decision engine) for any other code.
    """
    code = (record.decision or "").strip()

    if code == DECISION_APPROVED:
        return LoanDecision(
            outcome=DecisionOutcome.APPROVED,
            approval=build_approval(record, account_number, deposit_suffix),
        )

    if code == DECISION_DENIED:
        return LoanDecision(outcome=DecisionOutcome.DENIED, denial=build_denial(record))

    return LoanDecision(outcome=DecisionOutcome.FAILURE, failure_kind=FailureKind.DECISION_ENGINE)
