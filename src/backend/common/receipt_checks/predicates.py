from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class Match(str, Enum):
    ANY = "any"
    EQ = "eq"
    NE = "ne"


@dataclass(frozen=True)
class TransactionPredicate:
    """Which transaction columns must equal (or differ from) the receipt being checked.

    Every check is a projection of the same predicate space over
    (loan number, receipt number, amount, date, office).
    """

    loan_no: Match = Match.ANY
    receipt_no: Match = Match.ANY
    amount: Match = Match.ANY
    txn_date: Match = Match.ANY
    office: Match = Match.ANY

    def describe(self) -> str:
        parts = []
        for name in ("loan_no", "receipt_no", "amount", "txn_date", "office"):
            mode = getattr(self, name)
            if mode == Match.EQ:
                parts.append(f"{name} =")
            elif mode == Match.NE:
                parts.append(f"{name} !=")
        return " AND ".join(parts)


@dataclass(frozen=True)
class PredicateParams:
    loan_no: str
    receipt_no: str
    amount: Decimal
    txn_date: date
    office: str
