import os
import sys


# Ensure `src/backend` is on sys.path so imports like `import common...` work.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

import pytest

from common.receipt_checks.errors import StoreError
from common.receipt_checks.models import ReceiptRequest


@pytest.fixture
def make_request():
    def _make(
        *,
        loan_no="140102037",
        receipt_no="R100",
        amount="500.00",
        txn_date="2025-01-10",
    ) -> ReceiptRequest:
        return ReceiptRequest(
            loan_no=loan_no,
            receipt_no=receipt_no,
            amount=amount,
            txn_date=txn_date,
        )

    return _make


class RecordingStore:
    """Wraps a store, counting calls and optionally failing selected lookups."""

    def __init__(self, inner, *, fail_on=None, exc_factory=None):
        self.inner = inner
        self.calls = []
        self.fail_on = fail_on
        self.exc_factory = exc_factory or (lambda: StoreError("Query failed: timeout expired"))

    def find_loan(self, loan_no):
        self.calls.append(("find_loan", loan_no))
        if self.fail_on == "loan":
            raise self.exc_factory()
        return self.inner.find_loan(loan_no)

    def find_transactions(self, predicate, params, *, limit=None):
        self.calls.append(("find_transactions", predicate))
        if self.fail_on is not None and self.fail_on == predicate:
            raise self.exc_factory()
        return self.inner.find_transactions(predicate, params, limit=limit)


@pytest.fixture
def recording_store(store):
    def _make(*, fail_on=None, exc_factory=None) -> RecordingStore:
        return RecordingStore(store, fail_on=fail_on, exc_factory=exc_factory)

    return _make
