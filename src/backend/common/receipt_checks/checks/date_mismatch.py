from __future__ import annotations

from ..check import TransactionCheck
from ..models import CheckKind, CheckPriority, OutcomeTag, StepStatus
from ..predicates import Match, TransactionPredicate
from ..registry import register_check


@register_check
class RC_DATE_MISMATCH(TransactionCheck):
    check_id = "RC-DATE-MISMATCH"
    kind = CheckKind.DATE_MISMATCH
    priority = CheckPriority.MEDIUM
    found_status = StepStatus.WARNING
    outcome = OutcomeTag.DATE_WARNING
    found_message = "A record with the same loan and receipt number was found, but the date is different."
    description = "Same loan and receipt number; different date."
    predicate = TransactionPredicate(
        loan_no=Match.EQ,
        receipt_no=Match.EQ,
        txn_date=Match.NE,
    )
