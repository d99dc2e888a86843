from __future__ import annotations

from ..check import TransactionCheck
from ..models import CheckKind, CheckPriority, OutcomeTag, StepStatus
from ..predicates import Match, TransactionPredicate
from ..registry import register_check


@register_check
class RC_EXACT_MATCH(TransactionCheck):
    check_id = "RC-EXACT-MATCH"
    kind = CheckKind.EXACT_MATCH
    priority = CheckPriority.HIGH
    found_status = StepStatus.SUCCESS
    outcome = OutcomeTag.RECEIPT_FOUND
    found_message = "An exact match for this receipt was found."
    description = "Same loan, receipt number, amount and date."
    predicate = TransactionPredicate(
        loan_no=Match.EQ,
        receipt_no=Match.EQ,
        amount=Match.EQ,
        txn_date=Match.EQ,
    )
