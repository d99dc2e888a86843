from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Protocol

from .config import ReceiptCheckConfig
from .models import ReceiptQuery
from .predicates import PredicateParams, TransactionPredicate

Row = Dict[str, Any]


class TransactionStore(Protocol):
    def find_loan(self, loan_no: str) -> List[Row]:
        """Return loan application rows for the loan number."""
        ...

    def find_transactions(
        self,
        predicate: TransactionPredicate,
        params: PredicateParams,
        *,
        limit: Optional[int] = None,
    ) -> List[Row]:
        """Return transaction rows matching the predicate. Raises StoreError on failure."""
        ...


@dataclass(frozen=True)
class CheckContext:
    query: ReceiptQuery
    store: TransactionStore
    config: ReceiptCheckConfig = field(default_factory=ReceiptCheckConfig)

    def params(self) -> PredicateParams:
        return PredicateParams(
            loan_no=self.query.loan_no,
            receipt_no=self.query.receipt_no,
            amount=quantize_amount(self.query.amount, self.config.amount_quantize),
            txn_date=self.query.txn_date,
            office=self.query.office_prefix(self.config.office_prefix_length),
        )


def quantize_amount(value: Decimal, quantize: Optional[Decimal]) -> Decimal:
    if quantize is None:
        return value
    return value.quantize(quantize, rounding=ROUND_HALF_UP)
