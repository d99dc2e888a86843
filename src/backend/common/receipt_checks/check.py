from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Type

from pydantic import BaseModel

from .config import CheckConfigBase
from .context import CheckContext, Row
from ..logging_config import get_logger
from .errors import StoreError
from .models import CheckKind, CheckPriority, OutcomeTag, StepResult, StepStatus
from .predicates import TransactionPredicate

logger = get_logger(__name__)


class ReceiptCheck(ABC):
    """One named lookup in the reconciliation sequence.

    A check is framed as "does a problematic pattern exist?": rows found carry
    `found_status`/`outcome`, an empty result is always `success`.
    """

    check_id: str
    kind: CheckKind
    description: str = ""
    priority: CheckPriority = CheckPriority.HIGH
    found_status: StepStatus = StepStatus.SUCCESS
    outcome: Optional[OutcomeTag] = None
    found_message: str = ""
    config_model: Type[BaseModel] = CheckConfigBase

    def __init__(self):
        if not getattr(self, "kind", None):
            raise ValueError("Check must define kind")

    @property
    def title(self) -> str:
        return self.kind.value

    @abstractmethod
    def fetch(self, ctx: CheckContext) -> List[Row]:  # pragma: no cover
        raise NotImplementedError

    def evaluate(self, ctx: CheckContext) -> StepResult:
        cfg = ctx.config.get_check_config(self.title, self.config_model)
        if not getattr(cfg, "enabled", True):
            return StepResult(
                kind=self.kind,
                title=self.title,
                priority=self.priority,
                status=StepStatus.SUCCESS,
                message="Check disabled by configuration.",
            )

        try:
            rows = self.fetch(ctx)
        except (StoreError, OSError) as exc:
            logger.error("%s failed for loan %s: %s", self.title, ctx.query.loan_no, exc)
            return self.error_result(str(exc) or type(exc).__name__)

        if not rows:
            return StepResult(
                kind=self.kind,
                title=self.title,
                priority=self.priority,
                status=StepStatus.SUCCESS,
            )

        return StepResult(
            kind=self.kind,
            title=self.title,
            priority=self.priority,
            status=self.found_status,
            matched_rows=rows,
            message=self.found_message,
            outcome=self.outcome,
        )

    def error_result(self, message: str) -> StepResult:
        return StepResult(
            kind=self.kind,
            title=self.title,
            priority=self.priority,
            status=StepStatus.ERROR,
            message=message,
            outcome=OutcomeTag.ERROR,
        )


class TransactionCheck(ReceiptCheck):
    """A check that is a single predicate over the transaction table."""

    predicate: TransactionPredicate

    def fetch(self, ctx: CheckContext) -> List[Row]:
        return ctx.store.find_transactions(
            self.predicate,
            ctx.params(),
            limit=ctx.config.max_rows_per_step,
        )
