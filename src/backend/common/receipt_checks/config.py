from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T", bound=BaseModel)


class CheckConfigBase(BaseModel):
    enabled: bool = True


class ReceiptCheckConfig(BaseModel):
    """Office-level configuration for receipt reconciliation.

    Individual checks pull their typed config via `get_check_config`, keyed by check title.
    """

    # Loan numbers are prefixed by the issuing office code.
    office_prefix_length: int = Field(default=4, ge=1)
    amount_quantize: Decimal = Decimal("0.01")
    # Cap on rows fetched per step; a single row is enough to flag a check.
    max_rows_per_step: int = Field(default=50, ge=1)

    checks: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    def get_check_config(
        self,
        title: str,
        model: Type[T],
        default: Optional[T] = None,
    ) -> T:
        if title not in self.checks:
            if default is not None:
                return default
            return model()  # type: ignore[call-arg]
        raw = self.checks.get(title, {})
        return model.model_validate(raw)


class LoanExistenceCheckConfig(BaseModel):
    """The loan existence check gates the sequence and cannot be disabled."""
