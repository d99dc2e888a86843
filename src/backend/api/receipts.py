from __future__ import annotations

import json
from typing import Any, Iterator, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, StreamingResponse

from common.logging_config import get_logger
from common.receipt_checks.errors import ReceiptValidationError, StoreError, UnknownCheckError
from common.receipt_checks.models import (
    OUTCOME_MESSAGES,
    CheckKind,
    OutcomeTag,
    ReceiptRequest,
    ReconciliationEvent,
    ReconciliationResult,
    StepResult,
    StepStatus,
)
from common.receipt_checks.registry import registry
from common.receipt_checks.runner import ReconciliationRunner
from connectors.loan_db.config import LoanDBConfig
from connectors.loan_db.fixes import propose_fix
from connectors.loan_db.store import EngineRegistry, SqlTransactionStore, open_store

from .dependencies import error_detail, get_db_config, get_engines, get_runner, get_store


router = APIRouter(prefix="/api", tags=["receipts"])

logger = get_logger(__name__)


GENERIC_ERROR = "An unexpected error occurred."


class ReceiptStepRequest(ReceiptRequest):
    step: Optional[str] = None


def step_payload(step: StepResult, config: Optional[LoanDBConfig] = None) -> dict[str, Any]:
    message = step.message
    if config is not None and step.status == StepStatus.ERROR and step.kind != CheckKind.VALIDATION:
        message = error_detail(config, step.message, GENERIC_ERROR)
    return {
        "title": step.title,
        "priority": step.priority.value,
        "status": step.status.value,
        "query": _query_description(step.kind),
        "result": jsonable_encoder(step.matched_rows),
        "message": message,
        "overallStatus": step.outcome.value if step.outcome else None,
    }


def result_payload(result: ReconciliationResult, config: Optional[LoanDBConfig] = None) -> dict[str, Any]:
    message = result.message
    if config is not None and _status_code(result) == 500:
        message = error_detail(config, result.message, OUTCOME_MESSAGES[OutcomeTag.ERROR])
    return {
        "overallStatus": result.overall_status.value,
        "message": message,
        "steps": [step_payload(s, config) for s in result.steps],
    }


def _query_description(kind: CheckKind) -> str:
    if kind not in registry.kinds():
        return ""
    predicate = getattr(registry.get(kind), "predicate", None)
    return predicate.describe() if predicate is not None else "loan_no ="


def _status_code(result: ReconciliationResult) -> int:
    if result.overall_status == OutcomeTag.LOAN_NOT_FOUND:
        return 404
    if result.overall_status == OutcomeTag.ERROR:
        first = result.steps[0] if result.steps else None
        if first is not None and first.kind == CheckKind.VALIDATION:
            return 400
        return 500
    return 200


@router.post("/check-receipt")
def check_receipt(
    body: ReceiptRequest,
    runner: ReconciliationRunner = Depends(get_runner),
    store: SqlTransactionStore = Depends(get_store),
    config: LoanDBConfig = Depends(get_db_config),
):
    result = runner.run(body, store)
    return JSONResponse(status_code=_status_code(result), content=result_payload(result, config))


@router.post("/check-receipt-step")
def check_receipt_step(
    body: ReceiptStepRequest,
    runner: ReconciliationRunner = Depends(get_runner),
    store: SqlTransactionStore = Depends(get_store),
    config: LoanDBConfig = Depends(get_db_config),
):
    if not body.step:
        raise HTTPException(status_code=400, detail="Missing required fields")
    try:
        kind = registry.resolve(body.step)
        query = body.to_query()
    except UnknownCheckError as exc:
        raise HTTPException(status_code=400, detail="Invalid step provided") from exc
    except ReceiptValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    step = runner.run_step(kind, query, store)
    if step.status == StepStatus.ERROR:
        message = error_detail(config, step.message, GENERIC_ERROR)
        return JSONResponse(
            status_code=500,
            content={"status": "error", "result": [], "message": message},
        )

    payload = step_payload(step)
    return {
        "status": payload["status"],
        "result": payload["result"],
        "message": payload["message"],
        "query": payload["query"],
        "overallStatus": payload["overallStatus"],
    }


@router.post("/check-receipt/stream")
def check_receipt_stream(
    body: ReceiptRequest,
    runner: ReconciliationRunner = Depends(get_runner),
    engines: EngineRegistry = Depends(get_engines),
    config: LoanDBConfig = Depends(get_db_config),
):
    engine = engines.engine()

    def _events() -> Iterator[str]:
        try:
            with open_store(engine) as store:
                for event in runner.iter_steps(body, store):
                    yield _ndjson(event, config)
        except StoreError as exc:
            logger.error("Receipt check stream aborted: %s", exc)
            message = error_detail(config, str(exc), GENERIC_ERROR)
            yield json.dumps({"event": "error", "message": message}) + "\n"

    return StreamingResponse(_events(), media_type="application/x-ndjson")


@router.post("/check-receipt/fix")
def check_receipt_fix(
    body: ReceiptRequest,
    runner: ReconciliationRunner = Depends(get_runner),
    store: SqlTransactionStore = Depends(get_store),
    config: LoanDBConfig = Depends(get_db_config),
):
    try:
        query = body.to_query()
    except ReceiptValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    result = runner.run(query, store)
    fix = propose_fix(result, query, office_prefix_length=runner.config.office_prefix_length)
    return {
        "overallStatus": result.overall_status.value,
        "message": result_payload(result, config)["message"],
        "fix": jsonable_encoder(fix),
    }


def _ndjson(event: ReconciliationEvent, config: Optional[LoanDBConfig] = None) -> str:
    payload: dict[str, Any] = {
        "event": event.event,
        "index": event.index,
        "total": event.total,
        "currentStatus": event.current_status.value if event.current_status else None,
    }
    if event.step is not None:
        payload["step"] = step_payload(event.step, config)
    if event.result is not None:
        payload["result"] = result_payload(event.result, config)
    return json.dumps(jsonable_encoder(payload)) + "\n"
