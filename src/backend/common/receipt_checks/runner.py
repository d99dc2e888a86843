from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from contextlib import AbstractContextManager
from typing import Callable, Iterable, Iterator, List, Optional, Union

from ..logging_config import get_logger
from .check import ReceiptCheck
from .config import ReceiptCheckConfig
from .context import CheckContext, TransactionStore
from .errors import ReceiptValidationError, StoreError
from .models import (
    OUTCOME_MESSAGES,
    CheckKind,
    CheckPriority,
    OutcomeOrdering,
    OutcomeTag,
    ReceiptQuery,
    ReceiptRequest,
    ReconciliationEvent,
    ReconciliationResult,
    StepResult,
    StepStatus,
)
from .registry import registry

logger = get_logger(__name__)

StoreFactory = Callable[[], AbstractContextManager[TransactionStore]]


class ReconciliationRunner:
    """Runs the receipt checks in declared order and reduces them to one outcome."""

    def __init__(
        self,
        checks: Optional[Iterable[ReceiptCheck]] = None,
        *,
        config: Optional[ReceiptCheckConfig] = None,
        ordering: Optional[OutcomeOrdering] = None,
    ):
        self._checks = list(checks) if checks is not None else registry.create_all()
        self.config = config or ReceiptCheckConfig()
        self.ordering = ordering or OutcomeOrdering.default()

    @property
    def checks(self) -> List[ReceiptCheck]:
        return list(self._checks)

    def run(self, request: Union[ReceiptRequest, ReceiptQuery], store: TransactionStore) -> ReconciliationResult:
        result: Optional[ReconciliationResult] = None
        for event in self.iter_steps(request, store):
            if event.result is not None:
                result = event.result
        assert result is not None
        return result

    def iter_steps(
        self,
        request: Union[ReceiptRequest, ReceiptQuery],
        store: TransactionStore,
    ) -> Iterator[ReconciliationEvent]:
        """Yield one event per completed step, then a final event carrying the result."""
        try:
            query = _coerce_query(request)
        except ReceiptValidationError as exc:
            yield _final(self._invalid(exc))
            return

        ctx = CheckContext(query=query, store=store, config=self.config)
        total = len(self._checks)
        steps: List[StepResult] = []
        current = OutcomeTag.NOT_FOUND

        for index, check in enumerate(self._checks):
            step = check.evaluate(ctx)
            steps.append(step)
            current = self.ordering.worse(current, step.outcome)
            yield ReconciliationEvent(
                event="step",
                index=index,
                total=total,
                step=step,
                current_status=current,
            )

            if check.kind == CheckKind.LOAN_EXISTENCE:
                early = self._loan_gate(query, step)
                if early is not None:
                    yield _final(early)
                    return

        yield _final(self._aggregate(query, steps))

    def run_step(self, kind: CheckKind, query: ReceiptQuery, store: TransactionStore) -> StepResult:
        """Evaluate a single named check outside of the full sequence."""
        for check in self._checks:
            if check.kind == kind:
                return check.evaluate(CheckContext(query=query, store=store, config=self.config))
        return registry.get(kind)().evaluate(CheckContext(query=query, store=store, config=self.config))

    def run_parallel(
        self,
        request: Union[ReceiptRequest, ReceiptQuery],
        store_factory: StoreFactory,
        *,
        max_workers: Optional[int] = None,
    ) -> ReconciliationResult:
        """Run the post-existence checks concurrently, one store session per check.

        The reduction happens after every check completes, so completion order never
        affects the outcome and steps keep their declared order.
        """
        try:
            query = _coerce_query(request)
        except ReceiptValidationError as exc:
            return self._invalid(exc)

        gate = [c for c in self._checks if c.kind == CheckKind.LOAN_EXISTENCE]
        rest = [c for c in self._checks if c.kind != CheckKind.LOAN_EXISTENCE]

        steps: List[StepResult] = []
        for check in gate:
            step = self._evaluate_in_session(check, query, store_factory)
            steps.append(step)
            early = self._loan_gate(query, step)
            if early is not None:
                return early

        if rest:
            with ThreadPoolExecutor(max_workers=max_workers or len(rest)) as pool:
                steps.extend(pool.map(lambda c: self._evaluate_in_session(c, query, store_factory), rest))

        return self._aggregate(query, steps)

    def _evaluate_in_session(
        self,
        check: ReceiptCheck,
        query: ReceiptQuery,
        store_factory: StoreFactory,
    ) -> StepResult:
        try:
            with store_factory() as store:
                return check.evaluate(CheckContext(query=query, store=store, config=self.config))
        except (StoreError, OSError) as exc:
            logger.error("Could not open a store session for %s: %s", check.title, exc)
            return check.error_result(str(exc))

    def _loan_gate(self, query: ReceiptQuery, step: StepResult) -> Optional[ReconciliationResult]:
        if step.status == StepStatus.ERROR:
            logger.error("Loan lookup failed for %s; remaining checks skipped", query.loan_no)
            return ReconciliationResult(
                overall_status=OutcomeTag.ERROR,
                message=_error_message(step),
                steps=[step],
            )
        if not step.found:
            logger.info("Loan %s not found; receipt checks skipped", query.loan_no)
            return ReconciliationResult(
                overall_status=OutcomeTag.LOAN_NOT_FOUND,
                message=OUTCOME_MESSAGES[OutcomeTag.LOAN_NOT_FOUND],
                steps=[step],
            )
        return None

    def _aggregate(self, query: ReceiptQuery, steps: List[StepResult]) -> ReconciliationResult:
        overall = self.ordering.worst([s.outcome for s in steps])
        deciding = next((s for s in steps if s.outcome == overall), None)

        message = ""
        if overall == OutcomeTag.ERROR and deciding is not None:
            message = _error_message(deciding)
        elif overall in OUTCOME_MESSAGES:
            message = OUTCOME_MESSAGES[overall]
        elif deciding is not None:
            message = deciding.message

        logger.info(
            "Receipt %s on loan %s (%s, %s) classified as %s",
            query.receipt_no,
            query.loan_no,
            query.amount,
            query.txn_date.isoformat(),
            overall.value,
        )
        return ReconciliationResult(overall_status=overall, message=message, steps=steps)

    def _invalid(self, exc: ReceiptValidationError) -> ReconciliationResult:
        logger.info("Receipt check rejected: %s", exc)
        step = StepResult(
            kind=CheckKind.VALIDATION,
            title=CheckKind.VALIDATION.value,
            priority=CheckPriority.HIGH,
            status=StepStatus.ERROR,
            message=str(exc),
            outcome=OutcomeTag.ERROR,
        )
        return ReconciliationResult(overall_status=OutcomeTag.ERROR, message=str(exc), steps=[step])


def _coerce_query(request: Union[ReceiptRequest, ReceiptQuery]) -> ReceiptQuery:
    if isinstance(request, ReceiptQuery):
        return request
    return request.to_query()


def _final(result: ReconciliationResult) -> ReconciliationEvent:
    return ReconciliationEvent(
        event="result",
        index=len(result.steps),
        total=len(result.steps),
        current_status=result.overall_status,
        result=result,
    )


def _error_message(step: StepResult) -> str:
    return f"{step.title} failed: {step.message or OUTCOME_MESSAGES[OutcomeTag.ERROR]}"
