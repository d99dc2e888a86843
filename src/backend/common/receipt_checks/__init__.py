"""Source-agnostic receipt reconciliation checks.

This package contains only the decision procedure:
- Check inputs are a validated receipt query + a transaction store handle + office config.
- No SQL, HTTP, or connection management lives here.
"""

from .config import ReceiptCheckConfig
from .context import CheckContext, TransactionStore
from .models import (
    CheckKind,
    OutcomeTag,
    ReceiptQuery,
    ReceiptRequest,
    ReconciliationEvent,
    ReconciliationResult,
    StepResult,
    StepStatus,
)
from .runner import ReconciliationRunner

# Import built-in checks so they self-register with the global registry.
from . import checks as _builtin_checks  # noqa: F401
