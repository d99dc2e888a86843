from __future__ import annotations

from ..check import TransactionCheck
from ..models import CheckKind, CheckPriority, OutcomeTag, StepStatus
from ..predicates import Match, TransactionPredicate
from ..registry import register_check


@register_check
class RC_DUPLICATE_RECEIPT_IN_OFFICE(TransactionCheck):
    check_id = "RC-DUPLICATE-RECEIPT-IN-OFFICE"
    kind = CheckKind.DUPLICATE_RECEIPT_IN_OFFICE
    priority = CheckPriority.LOW
    found_status = StepStatus.WARNING
    outcome = OutcomeTag.DUPLICATE_RECEIPT_IN_OFFICE
    found_message = "This receipt number is used for another loan in the same office."
    description = "Same receipt number on a different loan from the same office."
    predicate = TransactionPredicate(
        office=Match.EQ,
        receipt_no=Match.EQ,
        loan_no=Match.NE,
    )
