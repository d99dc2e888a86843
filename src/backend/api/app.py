from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from common.logging_config import get_logger, setup_logging
from common.receipt_checks.errors import StoreError
from common.receipt_checks.runner import ReconciliationRunner
from connectors.loan_db.config import LoanDBConfig, get_api_key, get_loan_db_config
from connectors.loan_db.store import EngineRegistry

from . import loans, receipts
from .dependencies import error_detail, require_api_key

logger = get_logger(__name__)


def create_app(
    *,
    db_config: Optional[LoanDBConfig] = None,
    engines: Optional[EngineRegistry] = None,
    runner: Optional[ReconciliationRunner] = None,
    api_key: Optional[str] = None,
) -> FastAPI:
    db_config = db_config or get_loan_db_config()
    engines = engines or EngineRegistry(db_config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.engines.dispose()

    app = FastAPI(title="Receipt Reconciliation API", version="1.0.0", lifespan=lifespan)
    app.state.db_config = db_config
    app.state.engines = engines
    app.state.runner = runner or ReconciliationRunner()
    app.state.api_key = api_key or get_api_key()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StoreError)
    async def _store_error(request: Request, exc: StoreError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "message": error_detail(db_config, str(exc), "An unexpected error occurred."),
            },
        )

    app.include_router(loans.health_router)
    app.include_router(receipts.router, dependencies=[Depends(require_api_key)])
    app.include_router(loans.router, dependencies=[Depends(require_api_key)])
    return app


def main() -> None:
    setup_logging()
    config = get_loan_db_config()
    logger.info("Starting receipt API against database %s", config.database)
    uvicorn.run(create_app(db_config=config), host="0.0.0.0", port=int(os.getenv("PORT", "3001")))


if __name__ == "__main__":
    main()
