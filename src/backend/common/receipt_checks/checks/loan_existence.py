from __future__ import annotations

from typing import List

from ..check import ReceiptCheck
from ..config import LoanExistenceCheckConfig
from ..context import CheckContext, Row
from ..models import CheckKind, CheckPriority, StepStatus
from ..registry import register_check


@register_check
class RC_LOAN_EXISTENCE(ReceiptCheck):
    check_id = "RC-LOAN-EXISTENCE"
    kind = CheckKind.LOAN_EXISTENCE
    priority = CheckPriority.HIGH
    found_status = StepStatus.SUCCESS
    description = "Loan number exists in loan application records."
    config_model = LoanExistenceCheckConfig

    def fetch(self, ctx: CheckContext) -> List[Row]:
        return ctx.store.find_loan(ctx.query.loan_no)
