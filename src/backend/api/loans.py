from __future__ import annotations

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder

from common.logging_config import get_logger
from common.receipt_checks.errors import DatabaseNotAllowedError, InvalidSearchTermError, StoreError
from connectors.loan_db.config import LoanDBConfig
from connectors.loan_db.store import EngineRegistry, SqlTransactionStore, open_store

from .dependencies import error_detail, get_db_config, get_engines, get_store


router = APIRouter(prefix="/api", tags=["loans"])

logger = get_logger(__name__)


@router.get("/loan-details")
def loan_details(
    searchTerm: str | None = Query(None),
    store: SqlTransactionStore = Depends(get_store),
):
    if not searchTerm or not searchTerm.strip():
        raise HTTPException(status_code=400, detail="Search term is required")
    try:
        row = store.find_loan_details(searchTerm)
    except InvalidSearchTermError as exc:
        raise HTTPException(status_code=400, detail="Invalid search term format") from exc
    if row is None:
        raise HTTPException(status_code=404, detail="Loan not found")
    return jsonable_encoder(row)


@router.get("/transaction/{loanNo}/{transNo}")
def transaction(loanNo: str, transNo: str, store: SqlTransactionStore = Depends(get_store)):
    rows = store.find_transaction(loanNo, transNo)
    if not rows:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return jsonable_encoder(rows)


@router.get("/bank-details/{loanAppId}")
def bank_details(loanAppId: int, store: SqlTransactionStore = Depends(get_store)):
    rows = store.find_bank_details(loanAppId)
    if rows:
        return {"exists": True, "details": jsonable_encoder(rows)}
    return {"exists": False}


@router.get("/current-db")
def current_db(store: SqlTransactionStore = Depends(get_store)):
    return {"dbName": store.current_database()}


@router.post("/switch-db")
def switch_db(
    dbName: str | None = Body(None, embed=True),
    engines: EngineRegistry = Depends(get_engines),
    config: LoanDBConfig = Depends(get_db_config),
):
    if not dbName:
        raise HTTPException(status_code=400, detail="dbName is required")
    try:
        engines.switch(dbName)
    except DatabaseNotAllowedError as exc:
        raise HTTPException(status_code=403, detail="Access to this database is not permitted") from exc
    except StoreError as exc:
        detail = error_detail(config, str(exc), "An unexpected error occurred while switching databases.")
        raise HTTPException(status_code=500, detail=f"Failed to switch database: {detail}") from exc
    return {"message": f"Successfully switched to database: {dbName}"}


health_router = APIRouter(prefix="/api", tags=["health"])


@health_router.get("/test")
def connection_test(
    engines: EngineRegistry = Depends(get_engines),
    config: LoanDBConfig = Depends(get_db_config),
):
    try:
        with open_store(engines.engine()) as store:
            info = store.ping()
    except StoreError as exc:
        logger.error("Database connection test failed: %s", exc)
        raise HTTPException(
            status_code=500,
            detail=error_detail(config, str(exc), "Failed to connect to the database."),
        ) from exc
    return {
        "message": "Database connection successful!",
        "version": info["version"],
        "dialect": info["dialect"],
        "dbName": info["db_name"],
    }
