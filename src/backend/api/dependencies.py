from __future__ import annotations

import secrets
from typing import Iterator

from fastapi import Depends, Header, HTTPException, Request

from common.receipt_checks.runner import ReconciliationRunner
from connectors.loan_db.config import LoanDBConfig
from connectors.loan_db.store import EngineRegistry, SqlTransactionStore, open_store


def get_engines(request: Request) -> EngineRegistry:
    return request.app.state.engines


def get_runner(request: Request) -> ReconciliationRunner:
    return request.app.state.runner


def get_db_config(request: Request) -> LoanDBConfig:
    return request.app.state.db_config


def get_store(engines: EngineRegistry = Depends(get_engines)) -> Iterator[SqlTransactionStore]:
    with open_store(engines.engine()) as store:
        yield store


def require_api_key(request: Request, x_api_key: str | None = Header(None)) -> None:
    expected = request.app.state.api_key
    if not x_api_key or not secrets.compare_digest(x_api_key, expected):
        raise HTTPException(status_code=401, detail="Unauthorized: Invalid or missing API Key")


def error_detail(config: LoanDBConfig, message: str, fallback: str) -> str:
    if config.is_production:
        return fallback
    return message
