"""Table definitions for the loan database (only the columns this service reads or writes)."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, MetaData, Numeric, String, Table

metadata = MetaData()

loan_applications = Table(
    "tbl_loanapp",
    metadata,
    Column("int_loanappid", Integer),
    Column("vchr_appreceivregno", String(50)),
    Column("vchr_applname", String(200)),
    Column("int_loanno", String(20)),
)

loan_transactions = Table(
    "tbl_Loantrans",
    metadata,
    Column("int_loanno", String(20)),
    Column("chr_rec_no", String(30)),
    Column("int_amt", Numeric(18, 2)),
    Column("dt_transaction", DateTime),
    Column("vchr_offidC", String(10)),
)

account_transactions = Table(
    "tbl_Acctrans",
    metadata,
    Column("int_loanno", String(20)),
    Column("vchr_TransNo", String(30)),
    Column("int_amt", Numeric(18, 2)),
    Column("dt_transaction", DateTime),
)

bank_details = Table(
    "tbl_BankDetails",
    metadata,
    Column("int_loanappid", Integer),
    Column("vchr_bankname", String(100)),
    Column("vchr_branch", String(100)),
    Column("vchr_accno", String(30)),
    Column("vchr_ifsc", String(20)),
)
