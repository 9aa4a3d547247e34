"""SQLAlchemy ORM models for the Advance Pay tables"""

from sqlalchemy import Column, String, BigInteger, Integer, SmallInteger, Numeric, DateTime, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

# SQLite only auto-increments INTEGER primary keys
IdentityKey = BigInteger().with_variant(Integer, "sqlite")


class AdvancePayRollover(Base):
    """Rollover qualification per loan, maintained by the upstream qualification batch"""

    __tablename__ = "pro_advancepay_rollover"

    id = Column(IdentityKey, primary_key=True, autoincrement=True)
    acct = Column(BigInteger, nullable=True, index=True)
    sfx = Column(Integer, nullable=True)
    qualify = Column(SmallInteger, nullable=True)
    note = Column(Text, nullable=True)
    resp_code = Column(String(16), nullable=True)
    loan_fee = Column(Numeric(12, 2), nullable=True)
    orig_bal = Column(Numeric(12, 2), nullable=True)


class AdvancePayRolloverAction(Base):
    """Rollover request picked up by the core posting job"""

    __tablename__ = "pro_advancepay_rollover_action"

    id = Column(IdentityKey, primary_key=True, autoincrement=True)
    acct = Column(BigInteger, nullable=False, index=True)
    sfx = Column(Integer, nullable=False)
    resp_code = Column(String(16), nullable=True)
    post_result = Column(String(8), nullable=False, default="0")
    new_inserted = Column(String(1), nullable=False, default="Y")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class RolloverRequestLog(Base):
    """Audit trail written by the rollover logging subscriber"""

    __tablename__ = "advancepay_rollover_request_log"

    id = Column(IdentityKey, primary_key=True, autoincrement=True)
    correlation_id = Column(String(36), nullable=False, unique=True)
    acct = Column(Text, nullable=False)
    sfx = Column(Integer, nullable=False)
    requested_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AdvancePayNewLoanEligible(Base):
    """Maximum new-loan amount per account, in whole dollars"""

    __tablename__ = "pro_advancepay_newloan_eligible"

    id = Column(IdentityKey, primary_key=True, autoincrement=True)
    account = Column(BigInteger, nullable=True, index=True)
    max_loan_amount = Column(Integer, nullable=True)


class TeleTrackInquiry(Base):
    """
    New-loan inquiry. Inserted once by this service, then updated in place by the
    external decision batch, which flips new_inserted from "Y" to "N" when done.
    """

    __tablename__ = "pro_teletrack_inquiry"

    rec_id = Column(IdentityKey, primary_key=True, autoincrement=True)

    # Applicant
    f_name = Column(Text, nullable=True)
    l_name = Column(Text, nullable=True)
    bd = Column(Text, nullable=True)
    ssn = Column(Text, nullable=True)
    add1 = Column(Text, nullable=True)
    add2 = Column(Text, nullable=True)
    city = Column(Text, nullable=True)
    st = Column(Text, nullable=True)
    zip = Column(BigInteger, nullable=True)
    h_phone = Column(Text, nullable=True)
    w_phone = Column(Text, nullable=True)
    employer = Column(Text, nullable=True)
    email = Column(Text, nullable=True)

    # Loan terms
    acct = Column(BigInteger, nullable=False, index=True)
    amount = Column(Integer, nullable=True)  # cents
    transfer_pymt_source = Column(SmallInteger, nullable=True)
    case_id = Column(Text, nullable=True)
    collateral = Column(Integer, nullable=True)
    pymt_amt = Column(Integer, nullable=True)  # cents
    branch = Column(Integer, nullable=True)

    # Disclosures
    loch = Column(Text, nullable=True)
    lomd = Column(Text, nullable=True)
    mmch = Column(Text, nullable=True)
    lofe = Column(Text, nullable=True)
    loch_trans_source = Column(Text, nullable=True)

    # Set by the decision batch
    new_inserted = Column(String(1), nullable=False, default="Y")
    tran_date = Column(DateTime, nullable=True, server_default=func.now())
    decision = Column(String(4), nullable=True)
    new_suffix = Column(Integer, nullable=True)
    open_cos = Column(String(1), nullable=True)
    skip_guard = Column(String(1), nullable=True)
    consumer_dispute = Column(String(1), nullable=True)
    social_guard = Column(String(1), nullable=True)
