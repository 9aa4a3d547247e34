"""Domain models - pure Python dataclasses representing business entities"""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


class RolloverStatus(str, enum.Enum):
    """Rollover qualification of a single loan, computed once from the store's flag and note"""

    QUALIFIED = "qualified"
    PROCESSING = "processing"
    INELIGIBLE = "ineligible"


class SubmissionState(str, enum.Enum):
    """Lifecycle of one rollover submission"""

    CHECKING = "checking"
    REJECTED = "rejected"
    AWAITING = "awaiting"
    COMMITTED = "committed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class DecisionOutcome(str, enum.Enum):
    APPROVED = "approved"
    DENIED = "denied"
    FAILURE = "failure"


class FailureKind(str, enum.Enum):
    """Why a public operation did not succeed"""

    INVALID_REQUEST = "invalid_request"
    INELIGIBLE = "ineligible"
    LOGGING_FAILED = "logging_failed"
    PERSISTENCE = "persistence"
    TIMEOUT = "timeout"
    DECISION_ENGINE = "decision_engine"
    VENDOR = "vendor"


class ExceptionType(str, enum.Enum):
    BUSINESS = "business"


@dataclass(frozen=True)
class ErrorDetail:
    """Structured description of a failure carried on a result"""

    type: str
    message: str

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorDetail":
        return cls(type=type(exc).__name__, message=str(exc))


@dataclass
class RolloverRequest:
    """Member request to roll over one Advance Pay loan"""

    member_account_number: str
    loan_suffix: int


@dataclass
class RolloverInfo:
    """Rollover summary for one loan on a member account"""

    loan_suffix: int
    status: RolloverStatus
    finance_charge: float
    original_loan_amount: float


@dataclass
class RolloverSubmissionResult:
    """Outcome of RolloverRequestCoordinator.submit"""

    success: bool
    state: SubmissionState
    reason: str = ""
    correlation_id: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    error: Optional[ErrorDetail] = None
    exception_type: Optional[ExceptionType] = None


@dataclass
class LoanApplicant:
    """Applicant details stamped on a new loan inquiry"""

    first_name: str
    last_name: str
    birthdate: str
    ssn: str
    address_1: str
    city: str
    state: str
    zip_code: str
    home_phone: str = ""
    work_phone: str = ""
    employer: str = ""
    email: str = ""
    address_2: str = ""


@dataclass
class InsertionMessages:
    """Vendor disclosure templates; see domain.insertion_messages for placeholders"""

    loch: str = ""
    lomd: str = ""
    mmch: str = ""
    lofe: str = ""


@dataclass
class LoanDecisionRequest:
    member_account_number: str
    applicant: LoanApplicant
    loan_amount: int  # dollars
    insertion_messages: InsertionMessages
    deposit_suffix: int


@dataclass(frozen=True)
class InquiryHandle:
    """Store-assigned identity of a submitted loan inquiry"""

    record_id: int
    account_number: int
    deposit_suffix: int


@dataclass
class InquirySubmission:
    """Outcome of LoanApplicationPoller.submit_inquiry"""

    handle: Optional[InquiryHandle] = None
    error: Optional[ErrorDetail] = None
    exception_type: Optional[ExceptionType] = None

    @property
    def succeeded(self) -> bool:
        return self.handle is not None


@dataclass
class LoanApproval:
    """Approved loan details shown to the member"""

    loan_information: str
    loan_date: Optional[datetime]
    due_date: Optional[datetime]
    loan_amount: int = 0
    finance_charge: float = 0.0
    payment_amount: int = 0
    annual_percentage_rate: float = 0.0
    transfer_payment_suffix: str = ""


@dataclass
class LoanDenial:
    """Reasons reported by the decision engine for a denied loan"""

    has_charge_off: bool = False
    has_skip_guard: bool = False
    has_consumer_dispute: bool = False
    has_social_guard: bool = False


@dataclass
class LoanDecision:
    """Classified result of a loan inquiry"""

    outcome: DecisionOutcome
    approval: Optional[LoanApproval] = None
    denial: Optional[LoanDenial] = None
    failure_kind: Optional[FailureKind] = None
    error: Optional[ErrorDetail] = None
    exception_type: Optional[ExceptionType] = None

    @property
    def decision_message(self) -> str:
        return self.outcome.value


@dataclass
class AccountLoanEligibility:
    """New-loan eligibility for a member; empty strings when unknown"""

    account: str = ""
    max_loan_amount: str = ""
    error: Optional[ErrorDetail] = None
    exception_type: Optional[ExceptionType] = None

    def as_payload(self) -> List[str]:
        return [self.account, self.max_loan_amount]


@dataclass
class LoanConditions:
    maximum_loan_amount: int  # cents
    loan_terms: str  # "success" | "failure"
    error: Optional[ErrorDetail] = None
    exception_type: Optional[ExceptionType] = None


@dataclass
class CardValetSsoResult:
    """Digital wallet SSO outcome returned to the mobile client"""

    success: bool
    status: str = ""
    status_description: str = ""
    sso_payload: Optional[str] = None
    android_store_url: str = ""
    ios_store_url: str = ""
    url_scheme: str = ""
    package_name: str = ""
    failure_kind: Optional[FailureKind] = None
    error: Optional[ErrorDetail] = None
