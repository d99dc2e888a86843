from contextlib import contextmanager
from datetime import date
from functools import partial

import pytest
from sqlalchemy import create_engine, insert

from common.receipt_checks.errors import StoreError
from common.receipt_checks.models import CHECK_ORDER, CheckKind, OutcomeTag, StepStatus
from common.receipt_checks.runner import ReconciliationRunner
from connectors.loan_db.schema import loan_applications, metadata
from connectors.loan_db.store import open_store


@pytest.fixture
def file_engine(tmp_path):
    eng = create_engine(f"sqlite:///{tmp_path / 'loans.db'}")
    metadata.create_all(eng)
    with eng.begin() as conn:
        conn.execute(
            insert(loan_applications),
            [
                {"int_loanappid": 123456, "vchr_appreceivregno": "REG-0001", "int_loanno": "140102037"},
                {"int_loanappid": 123457, "vchr_appreceivregno": "REG-0002", "int_loanno": "140109999"},
            ],
        )
    yield eng
    eng.dispose()


def test_parallel_matches_sequential(file_engine, add_transaction, make_request):
    add_transaction(receipt_no="R100", amount="450.00", txn_date=date(2025, 1, 10), target=file_engine)
    add_transaction(receipt_no="R100", amount="300.00", txn_date=date(2024, 12, 1), target=file_engine)
    add_transaction(
        receipt_no="R100",
        amount="500.00",
        txn_date=date(2025, 1, 10),
        loan_no="140109999",
        target=file_engine,
    )
    runner = ReconciliationRunner()

    parallel = runner.run_parallel(make_request(), partial(open_store, file_engine), max_workers=3)
    with open_store(file_engine) as store:
        sequential = runner.run(make_request(), store)

    assert parallel.overall_status == OutcomeTag.DUPLICATE_RECEIPT_NO
    assert parallel.overall_status == sequential.overall_status
    assert [s.kind for s in parallel.steps] == list(CHECK_ORDER)
    assert [s.status for s in parallel.steps] == [s.status for s in sequential.steps]


def test_parallel_stops_after_missing_loan(file_engine, make_request):
    res = ReconciliationRunner().run_parallel(make_request(loan_no="999999999"), partial(open_store, file_engine))
    assert res.overall_status == OutcomeTag.LOAN_NOT_FOUND
    assert [s.kind for s in res.steps] == [CheckKind.LOAN_EXISTENCE]


def test_parallel_session_failure_marks_only_that_step(file_engine, make_request):
    sessions = {"count": 0}

    @contextmanager
    def flaky_factory():
        sessions["count"] += 1
        if sessions["count"] == 2:
            raise StoreError("Could not connect to database: pool exhausted")
        with open_store(file_engine) as store:
            yield store

    res = ReconciliationRunner().run_parallel(make_request(), flaky_factory, max_workers=1)
    assert res.overall_status == OutcomeTag.ERROR
    errored = [s for s in res.steps if s.status == StepStatus.ERROR]
    assert len(errored) == 1
    assert errored[0].kind == CheckKind.EXACT_MATCH
    assert len(res.steps) == len(CHECK_ORDER)
