"""Vendor disclosure ("insertion") message formatting

Templates use ``{name}`` placeholders. Known placeholders:

- ``{account}``    member account number
- ``{amount}``     loan amount in dollars, two decimals
- ``{suffix}``     deposit suffix the loan is transferred to
- ``{first_name}``, ``{last_name}`` applicant name

Placeholders without a value are left as written. Field expressions such as
``{account.x}`` or ``{first_name[0]}`` are rejected with ValueError.
"""

import re
from typing import Dict

from advancepay_gateway.domain.models import LoanApplicant

PLACEHOLDER = re.compile(r"\{([^{}]*)\}")


def _substitute(template: str, values: Dict[str, object]) -> str:
    if not template:
        return ""

    def replace(match: re.Match) -> str:
        name = match.group(1)
        if not name.isidentifier():
            raise ValueError(f"Unsupported placeholder in message template: {match.group(0)}")
        return str(values[name]) if name in values else match.group(0)

    return PLACEHOLDER.sub(replace, template)


def _dollars(amount_cents: int) -> str:
    return f"{amount_cents / 100:.2f}"


def format_loch_message(template: str, account_number: int, amount_cents: int, deposit_suffix: int) -> str:
    """Loan check (LOCH) disclosure"""
    return _substitute(template, {"account": account_number, "amount": _dollars(amount_cents), "suffix": deposit_suffix})


def format_lomd_message(template: str, account_number: int, amount_cents: int, deposit_suffix: int) -> str:
    """Loan memo (LOMD) disclosure"""
    return _substitute(template, {"account": account_number, "amount": _dollars(amount_cents), "suffix": deposit_suffix})


def format_mmch_message(template: str, account_number: int, applicant: LoanApplicant) -> str:
    """Member change (MMCH) disclosure"""
    return _substitute(
        template,
        {"account": account_number, "first_name": applicant.first_name, "last_name": applicant.last_name},
    )


def format_lofe_message(template: str, account_number: int, amount_cents: int) -> str:
    """Loan fee (LOFE) disclosure"""
    return _substitute(template, {"account": account_number, "amount": _dollars(amount_cents)})
