from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .dates import parse_smart_date
from .errors import InvalidAmountError, InvalidDateError, MissingFieldsError


class CheckKind(str, Enum):
    LOAN_EXISTENCE = "Loan Existence Check"
    EXACT_MATCH = "Exact Match Check"
    AMOUNT_MISMATCH = "Amount Mismatch Check"
    DATE_MISMATCH = "Date Mismatch Check"
    DUPLICATE_RECEIPT_NO = "Duplicate Receipt No. Check"
    DUPLICATE_RECEIPT_IN_OFFICE = "Duplicate Receipt in Office Check"
    VALIDATION = "Input Validation"


# Declared run order; the orchestrator never reorders these.
CHECK_ORDER: tuple[CheckKind, ...] = (
    CheckKind.LOAN_EXISTENCE,
    CheckKind.EXACT_MATCH,
    CheckKind.AMOUNT_MISMATCH,
    CheckKind.DATE_MISMATCH,
    CheckKind.DUPLICATE_RECEIPT_NO,
    CheckKind.DUPLICATE_RECEIPT_IN_OFFICE,
)


class StepStatus(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class CheckPriority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class OutcomeTag(str, Enum):
    ERROR = "error"
    RECEIPT_FOUND = "receipt_found"
    DUPLICATE_RECEIPT_NO = "duplicate_receipt_no"
    DUPLICATE_RECEIPT_IN_OFFICE = "duplicate_receipt_in_office"
    AMOUNT_MISMATCH_WARNING = "amount_mismatch_warning"
    DATE_WARNING = "date_warning"
    DOUBLE_ENTRY_WARNING = "double_entry_warning"
    NOT_FOUND = "not_found"
    LOAN_NOT_FOUND = "loan_not_found"


OUTCOME_MESSAGES: Dict[OutcomeTag, str] = {
    OutcomeTag.ERROR: "An error occurred while checking this receipt.",
    OutcomeTag.RECEIPT_FOUND: "An exact match for this receipt was found.",
    OutcomeTag.NOT_FOUND: "This receipt does not exist in the database.",
    OutcomeTag.LOAN_NOT_FOUND: "This loan number does not exist.",
}

AMOUNT_QUANTUM = Decimal("0.01")
# tbl_Loantrans.int_amt is NUMERIC(18, 2).
MAX_AMOUNT_INTEGER_DIGITS = 16


class ReceiptQuery(BaseModel):
    loan_no: str
    receipt_no: str
    amount: Decimal
    txn_date: date

    @field_validator("loan_no", "receipt_no")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("amount")
    @classmethod
    def _two_places(cls, value: Decimal) -> Decimal:
        try:
            return value.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)
        except InvalidOperation as exc:
            raise ValueError(f"amount out of range: {value}") from exc

    def office_prefix(self, length: int = 4) -> str:
        return self.loan_no[:length]


class ReceiptRequest(BaseModel):
    """Receipt fields as entered by an operator; nothing is guaranteed present."""

    model_config = ConfigDict(populate_by_name=True)

    loan_no: Optional[Union[str, int]] = Field(default=None, alias="loanno")
    receipt_no: Optional[Union[str, int]] = Field(default=None, alias="receiptNo")
    amount: Optional[Decimal] = Field(default=None, alias="receiptAmount")
    txn_date: Optional[Union[date, str]] = Field(default=None, alias="date")

    @field_validator("amount", mode="before")
    @classmethod
    def _blank_amount(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def missing_fields(self) -> List[str]:
        missing = []
        if self.loan_no is None or not str(self.loan_no).strip():
            missing.append("loanno")
        if self.receipt_no is None or not str(self.receipt_no).strip():
            missing.append("receiptNo")
        # A zero amount is treated as not entered.
        if self.amount is None or self.amount == 0:
            missing.append("receiptAmount")
        if self.txn_date is None or not str(self.txn_date).strip():
            missing.append("date")
        return missing

    def to_query(self) -> ReceiptQuery:
        missing = self.missing_fields()
        if missing:
            raise MissingFieldsError(missing)
        if not self.amount.is_finite() or self.amount.adjusted() >= MAX_AMOUNT_INTEGER_DIGITS:
            raise InvalidAmountError(str(self.amount))
        txn_date = parse_smart_date(self.txn_date)
        if txn_date is None:
            raise InvalidDateError(str(self.txn_date))
        return ReceiptQuery(
            loan_no=str(self.loan_no),
            receipt_no=str(self.receipt_no),
            amount=self.amount,
            txn_date=txn_date,
        )


class StepResult(BaseModel):
    kind: CheckKind
    title: str
    priority: CheckPriority = CheckPriority.HIGH
    status: StepStatus
    matched_rows: List[Dict[str, Any]] = Field(default_factory=list)
    message: str = ""
    outcome: Optional[OutcomeTag] = None

    @property
    def found(self) -> bool:
        return bool(self.matched_rows)


class ReconciliationResult(BaseModel):
    overall_status: OutcomeTag
    message: str
    steps: List[StepResult] = Field(default_factory=list)

    def step(self, kind: CheckKind) -> Optional[StepResult]:
        for res in self.steps:
            if res.kind == kind:
                return res
        return None

    def deciding_step(self) -> Optional[StepResult]:
        """Return the step whose outcome produced `overall_status`, if any."""
        for res in self.steps:
            if res.outcome is not None and res.outcome == self.overall_status:
                return res
        return None


class ReconciliationEvent(BaseModel):
    """One progress update emitted while a reconciliation runs."""

    event: Literal["step", "result"]
    index: int = 0
    total: int = 0
    step: Optional[StepResult] = None
    current_status: Optional[OutcomeTag] = None
    result: Optional[ReconciliationResult] = None


@dataclass(frozen=True)
class OutcomeOrdering:
    order: Dict[OutcomeTag, int]

    @classmethod
    def default(cls) -> "OutcomeOrdering":
        # Higher wins.
        return cls(
            order={
                OutcomeTag.ERROR: 80,
                OutcomeTag.RECEIPT_FOUND: 70,
                OutcomeTag.DUPLICATE_RECEIPT_NO: 60,
                OutcomeTag.DUPLICATE_RECEIPT_IN_OFFICE: 50,
                OutcomeTag.AMOUNT_MISMATCH_WARNING: 40,
                OutcomeTag.DATE_WARNING: 30,
                OutcomeTag.DOUBLE_ENTRY_WARNING: 20,
                OutcomeTag.NOT_FOUND: 10,
            }
        )

    def rank(self, outcome: OutcomeTag) -> int:
        return self.order.get(outcome, 0)

    def worse(self, current: OutcomeTag, candidate: Optional[OutcomeTag]) -> OutcomeTag:
        if candidate is None:
            return current
        if self.rank(candidate) > self.rank(current):
            return candidate
        return current

    def worst(self, outcomes: List[Optional[OutcomeTag]]) -> OutcomeTag:
        best = OutcomeTag.NOT_FOUND
        for outcome in outcomes:
            best = self.worse(best, outcome)
        return best
