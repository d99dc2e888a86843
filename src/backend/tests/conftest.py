import os
import sys


# Ensure `src/backend` is on sys.path so imports like `import common...` work,
# even when pytest's rootdir is the repository root (repo-level pytest.ini).
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, insert
from sqlalchemy.pool import StaticPool

from connectors.loan_db.schema import (
    account_transactions,
    bank_details,
    loan_applications,
    loan_transactions,
    metadata,
)
from connectors.loan_db.store import open_store


LOAN_NO = "140102037"
SAME_OFFICE_LOAN_NO = "140109999"
OTHER_OFFICE_LOAN_NO = "250100001"

LOAN_APPLICATIONS = [
    {
        "int_loanappid": 123456,
        "vchr_appreceivregno": "REG-0001",
        "vchr_applname": "A. Borrower",
        "int_loanno": LOAN_NO,
    },
    {
        "int_loanappid": 123457,
        "vchr_appreceivregno": "REG-0002",
        "vchr_applname": "B. Borrower",
        "int_loanno": SAME_OFFICE_LOAN_NO,
    },
    {
        "int_loanappid": 223344,
        "vchr_appreceivregno": "REG-0003",
        "vchr_applname": "C. Borrower",
        "int_loanno": OTHER_OFFICE_LOAN_NO,
    },
]


def seed_loans(eng) -> None:
    metadata.create_all(eng)
    with eng.begin() as conn:
        conn.execute(insert(loan_applications), LOAN_APPLICATIONS)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    seed_loans(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def add_transaction(engine):
    def _add(
        *,
        receipt_no: str,
        amount: str,
        txn_date: date,
        loan_no: str = LOAN_NO,
        office: str | None = None,
        at: tuple[int, int] = (10, 30),
        target=None,
    ) -> None:
        with (target or engine).begin() as conn:
            conn.execute(
                insert(loan_transactions).values(
                    int_loanno=loan_no,
                    chr_rec_no=receipt_no,
                    int_amt=Decimal(amount),
                    dt_transaction=datetime(txn_date.year, txn_date.month, txn_date.day, *at),
                    vchr_offidC=office if office is not None else loan_no[:4],
                )
            )

    return _add


@pytest.fixture
def add_account_transaction(engine):
    def _add(*, trans_no: str, amount: str, loan_no: str = LOAN_NO) -> None:
        with engine.begin() as conn:
            conn.execute(
                insert(account_transactions).values(
                    int_loanno=loan_no,
                    vchr_TransNo=trans_no,
                    int_amt=Decimal(amount),
                    dt_transaction=datetime(2025, 1, 10),
                )
            )

    return _add


@pytest.fixture
def add_bank_details(engine):
    def _add(*, loan_app_id: int, bank: str = "State Bank", account_no: str = "000123") -> None:
        with engine.begin() as conn:
            conn.execute(
                insert(bank_details).values(
                    int_loanappid=loan_app_id,
                    vchr_bankname=bank,
                    vchr_branch="Main",
                    vchr_accno=account_no,
                    vchr_ifsc="SBIN0000001",
                )
            )

    return _add


@pytest.fixture
def store(engine):
    with open_store(engine) as s:
        yield s
