from __future__ import annotations

import re
import threading
from contextlib import contextmanager
from datetime import datetime, time, timedelta
from typing import Any, Callable, Dict, Iterator, List, Optional

from sqlalchemy import ColumnElement, Select, and_, create_engine, func, literal, not_, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from common.logging_config import get_logger
from common.receipt_checks.errors import DatabaseNotAllowedError, InvalidSearchTermError, StoreError
from common.receipt_checks.predicates import Match, PredicateParams, TransactionPredicate

from .config import LoanDBConfig
from .schema import account_transactions, bank_details, loan_applications, loan_transactions

logger = get_logger(__name__)

Row = Dict[str, Any]

_LOAN_NO_RE = re.compile(r"^\d{9}$")
_LOAN_APP_ID_RE = re.compile(r"^\d{6}$")
_HAS_LETTER_RE = re.compile(r"[a-zA-Z]")


def build_loan_select(loan_no: str) -> Select:
    return select(loan_applications).where(loan_applications.c.int_loanno == loan_no)


def build_transaction_select(
    predicate: TransactionPredicate,
    params: PredicateParams,
    *,
    limit: Optional[int] = None,
) -> Select:
    t = loan_transactions
    day_start = datetime.combine(params.txn_date, time.min)
    # Half-open day range instead of CAST(... AS DATE) so it works on any dialect.
    same_day = and_(
        t.c.dt_transaction >= day_start,
        t.c.dt_transaction < day_start + timedelta(days=1),
    )

    clauses: List[ColumnElement[bool]] = []
    _compare(clauses, predicate.loan_no, t.c.int_loanno, params.loan_no)
    _compare(clauses, predicate.receipt_no, t.c.chr_rec_no, params.receipt_no)
    _compare(clauses, predicate.amount, t.c.int_amt, params.amount)
    _compare(clauses, predicate.office, t.c.vchr_offidC, params.office)
    if predicate.txn_date == Match.EQ:
        clauses.append(same_day)
    elif predicate.txn_date == Match.NE:
        clauses.append(not_(same_day))

    stmt = select(t).where(*clauses).order_by(t.c.dt_transaction, t.c.int_loanno)
    if limit:
        stmt = stmt.limit(limit)
    return stmt


def _compare(clauses: List[ColumnElement[bool]], mode: Match, column, value) -> None:
    if mode == Match.EQ:
        clauses.append(column == value)
    elif mode == Match.NE:
        clauses.append(column != value)


def build_loan_details_select(term: str) -> Select:
    cols = (
        loan_applications.c.int_loanappid,
        loan_applications.c.vchr_appreceivregno,
        loan_applications.c.vchr_applname,
        loan_applications.c.int_loanno,
    )
    term = term.strip()
    if _LOAN_NO_RE.match(term):
        where = loan_applications.c.int_loanno == term
    elif _LOAN_APP_ID_RE.match(term):
        where = loan_applications.c.int_loanappid == int(term)
    elif _HAS_LETTER_RE.search(term):
        where = loan_applications.c.vchr_appreceivregno == term
    else:
        raise InvalidSearchTermError(f"Invalid search term format: {term!r}")
    return select(*cols).where(where)


class SqlTransactionStore:
    """Read-only lookups over a single open connection."""

    def __init__(self, conn: Connection):
        self._conn = conn

    def find_loan(self, loan_no: str) -> List[Row]:
        return self._fetch(build_loan_select(loan_no))

    def find_transactions(
        self,
        predicate: TransactionPredicate,
        params: PredicateParams,
        *,
        limit: Optional[int] = None,
    ) -> List[Row]:
        return self._fetch(build_transaction_select(predicate, params, limit=limit))

    def find_loan_details(self, term: str) -> Optional[Row]:
        rows = self._fetch(build_loan_details_select(term))
        return rows[0] if rows else None

    def find_transaction(self, loan_no: str, trans_no: str) -> List[Row]:
        t = account_transactions
        stmt = select(t).where(t.c.int_loanno == loan_no, t.c.vchr_TransNo == trans_no)
        return self._fetch(stmt)

    def find_bank_details(self, loan_app_id: int) -> List[Row]:
        stmt = select(bank_details).where(bank_details.c.int_loanappid == loan_app_id)
        return self._fetch(stmt)

    def current_database(self) -> str:
        if self._conn.dialect.name == "mssql":
            rows = self._fetch(select(func.db_name().label("db_name")))
            return str(rows[0]["db_name"])
        return self._conn.engine.url.database or ""

    def ping(self) -> Dict[str, Any]:
        self._fetch(select(literal(1).label("ok")))
        version = self._conn.dialect.server_version_info
        return {
            "dialect": self._conn.dialect.name,
            "version": ".".join(str(p) for p in version) if version else "",
            "db_name": self.current_database(),
        }

    def _fetch(self, stmt: Select) -> List[Row]:
        try:
            result = self._conn.execute(stmt)
            return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as exc:
            raise StoreError(f"Query failed: {exc.__class__.__name__}: {exc}") from exc


@contextmanager
def open_store(engine: Engine) -> Iterator[SqlTransactionStore]:
    """Acquire one connection for the duration of a request and release it afterwards."""
    try:
        conn = engine.connect()
    except SQLAlchemyError as exc:
        raise StoreError(f"Could not connect to database: {exc}") from exc
    try:
        yield SqlTransactionStore(conn)
    finally:
        conn.close()


def create_loan_db_engine(config: LoanDBConfig, database: Optional[str] = None) -> Engine:
    url = config.url_for(database)
    kwargs: Dict[str, Any] = {"pool_pre_ping": True}
    if url.startswith("mssql+pymssql"):
        kwargs["connect_args"] = {
            "timeout": config.query_timeout_seconds,
            "login_timeout": config.query_timeout_seconds,
        }
    if not url.startswith("sqlite"):
        kwargs["pool_size"] = config.pool_size
        kwargs["pool_recycle"] = config.pool_recycle_seconds
    return create_engine(url, **kwargs)


EngineFactory = Callable[[LoanDBConfig, Optional[str]], Engine]


class EngineRegistry:
    """Holds one engine per whitelisted database and tracks which one is active."""

    def __init__(self, config: LoanDBConfig, engine_factory: EngineFactory = create_loan_db_engine):
        self._config = config
        self._engine_factory = engine_factory
        self._engines: Dict[str, Engine] = {}
        self._current = config.database
        self._lock = threading.Lock()

    @property
    def current(self) -> str:
        return self._current

    @property
    def allowed(self) -> tuple[str, ...]:
        return self._config.allowed_databases

    def engine(self) -> Engine:
        with self._lock:
            return self._engine_for(self._current)

    def switch(self, database: str) -> None:
        if database not in self._config.allowed_databases:
            raise DatabaseNotAllowedError(database)
        with self._lock:
            engine = self._engine_for(database)
            try:
                engine.connect().close()
            except SQLAlchemyError as exc:
                logger.error("Database connection to %s failed: %s", database, exc)
                raise StoreError(f"Could not connect to database {database!r}: {exc}") from exc
            self._current = database
        logger.info("Switched to database %s", database)

    def dispose(self) -> None:
        with self._lock:
            for engine in self._engines.values():
                engine.dispose()
            self._engines.clear()

    def _engine_for(self, database: str) -> Engine:
        engine = self._engines.get(database)
        if engine is None:
            engine = self._engine_factory(self._config, database)
            self._engines[database] = engine
        return engine
