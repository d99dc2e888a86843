"""Corrective statements derived from a reconciliation result.

Statements are rendered for a human to review and run; nothing here executes SQL.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field
from sqlalchemy import insert, update
from sqlalchemy.sql.dml import UpdateBase

from common.receipt_checks.models import OutcomeTag, ReceiptQuery, ReconciliationResult

from .schema import loan_transactions

FixAction = Literal["insert_receipt", "update_amount", "update_date", "none"]

_NO_FIX_REASONS: Dict[OutcomeTag, str] = {
    OutcomeTag.RECEIPT_FOUND: "Receipt already recorded exactly; nothing to change.",
    OutcomeTag.DUPLICATE_RECEIPT_NO: "Receipt number already used for this loan with other details; resolve manually.",
    OutcomeTag.DUPLICATE_RECEIPT_IN_OFFICE: "Receipt number used on another loan in this office; resolve manually.",
    OutcomeTag.DOUBLE_ENTRY_WARNING: "Possible double entry; resolve manually.",
    OutcomeTag.LOAN_NOT_FOUND: "Loan does not exist; no receipt can be posted.",
    OutcomeTag.ERROR: "Reconciliation did not complete; rerun the check first.",
}


class ProposedFix(BaseModel):
    outcome: OutcomeTag
    action: FixAction
    sql: str = ""
    params: Dict[str, Any] = Field(default_factory=dict)
    reason: str = ""
    requires_review: bool = True


def propose_fix(
    result: ReconciliationResult,
    query: ReceiptQuery,
    *,
    office_prefix_length: int = 4,
) -> ProposedFix:
    outcome = result.overall_status

    if outcome == OutcomeTag.NOT_FOUND:
        stmt = insert(loan_transactions).values(
            int_loanno=query.loan_no,
            chr_rec_no=query.receipt_no,
            int_amt=query.amount,
            dt_transaction=_day_start(query.txn_date),
            vchr_offidC=query.office_prefix(office_prefix_length),
        )
        return _render(outcome, "insert_receipt", stmt, "Receipt not found; insert it.")

    row = _deciding_row(result)
    if outcome == OutcomeTag.AMOUNT_MISMATCH_WARNING and row is not None:
        t = loan_transactions
        stmt = (
            update(t)
            .where(
                t.c.int_loanno == row["int_loanno"],
                t.c.chr_rec_no == row["chr_rec_no"],
                t.c.dt_transaction == row["dt_transaction"],
                t.c.int_amt == row["int_amt"],
            )
            .values(int_amt=query.amount)
        )
        return _render(outcome, "update_amount", stmt, f"Correct amount {row['int_amt']} to {query.amount}.")

    if outcome == OutcomeTag.DATE_WARNING and row is not None:
        t = loan_transactions
        stmt = (
            update(t)
            .where(
                t.c.int_loanno == row["int_loanno"],
                t.c.chr_rec_no == row["chr_rec_no"],
                t.c.dt_transaction == row["dt_transaction"],
            )
            .values(dt_transaction=_day_start(query.txn_date))
        )
        return _render(
            outcome,
            "update_date",
            stmt,
            f"Correct transaction date to {query.txn_date.isoformat()}.",
        )

    return ProposedFix(
        outcome=outcome,
        action="none",
        reason=_NO_FIX_REASONS.get(outcome, "No corrective statement for this outcome."),
    )


def _deciding_row(result: ReconciliationResult) -> Optional[Dict[str, Any]]:
    step = result.deciding_step()
    if step is None or not step.matched_rows:
        return None
    return step.matched_rows[0]


def _day_start(value: date) -> datetime:
    return datetime.combine(value, time.min)


def _render(outcome: OutcomeTag, action: FixAction, stmt: UpdateBase, reason: str) -> ProposedFix:
    compiled = stmt.compile()
    return ProposedFix(
        outcome=outcome,
        action=action,
        sql=str(compiled),
        params=dict(compiled.params),
        reason=reason,
    )
