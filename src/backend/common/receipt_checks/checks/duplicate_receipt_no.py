from __future__ import annotations

from ..check import TransactionCheck
from ..models import CheckKind, CheckPriority, OutcomeTag, StepStatus
from ..predicates import Match, TransactionPredicate
from ..registry import register_check


@register_check
class RC_DUPLICATE_RECEIPT_NO(TransactionCheck):
    check_id = "RC-DUPLICATE-RECEIPT-NO"
    kind = CheckKind.DUPLICATE_RECEIPT_NO
    priority = CheckPriority.HIGH
    found_status = StepStatus.WARNING
    outcome = OutcomeTag.DUPLICATE_RECEIPT_NO
    found_message = (
        "This receipt number has been used for this loan with different details, "
        "indicating a potential double entry."
    )
    description = "Same loan and receipt number with both a different amount and a different date."
    predicate = TransactionPredicate(
        loan_no=Match.EQ,
        receipt_no=Match.EQ,
        amount=Match.NE,
        txn_date=Match.NE,
    )
