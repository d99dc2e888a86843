from __future__ import annotations

from ..check import TransactionCheck
from ..models import CheckKind, CheckPriority, OutcomeTag, StepStatus
from ..predicates import Match, TransactionPredicate
from ..registry import register_check


@register_check
class RC_AMOUNT_MISMATCH(TransactionCheck):
    check_id = "RC-AMOUNT-MISMATCH"
    kind = CheckKind.AMOUNT_MISMATCH
    priority = CheckPriority.MEDIUM
    found_status = StepStatus.WARNING
    outcome = OutcomeTag.AMOUNT_MISMATCH_WARNING
    found_message = (
        "A record with the same loan, receipt number, and date was found, but the amount is different."
    )
    description = "Same loan, receipt number and date; different amount."
    predicate = TransactionPredicate(
        loan_no=Match.EQ,
        receipt_no=Match.EQ,
        txn_date=Match.EQ,
        amount=Match.NE,
    )
