"""Loan database connector (engines, sessions and SQL live here; decision logic lives in common/receipt_checks)."""

from .config import LoanDBConfig, get_api_key, get_loan_db_config
from .store import EngineRegistry, SqlTransactionStore, create_loan_db_engine, open_store

__all__ = [
    "LoanDBConfig",
    "get_api_key",
    "get_loan_db_config",
    "EngineRegistry",
    "SqlTransactionStore",
    "create_loan_db_engine",
    "open_store",
]
