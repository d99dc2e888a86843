from __future__ import annotations

from typing import Dict, Iterable, Type

from .check import ReceiptCheck
from .errors import UnknownCheckError
from .models import CHECK_ORDER, CheckKind


class CheckRegistry:
    def __init__(self):
        self._checks: Dict[CheckKind, Type[ReceiptCheck]] = {}

    def register(self, check_cls: Type[ReceiptCheck]) -> None:
        kind = getattr(check_cls, "kind", None)
        if not kind:
            raise ValueError("Check class missing kind")
        if kind not in CHECK_ORDER:
            raise ValueError(f"Check kind is not part of the reconciliation sequence: {kind}")
        if kind in self._checks:
            raise ValueError(f"Duplicate check registered: {kind.value}")
        self._checks[kind] = check_cls

    def create_all(self) -> list[ReceiptCheck]:
        """Instantiate every registered check in the declared run order."""
        return [self._checks[kind]() for kind in CHECK_ORDER if kind in self._checks]

    def get(self, kind: CheckKind) -> Type[ReceiptCheck]:
        return self._checks[kind]

    def resolve(self, title: str) -> CheckKind:
        """Map a step title from the wire to its kind."""
        for kind in self._checks:
            if kind.value == title:
                return kind
        raise UnknownCheckError(title)

    def kinds(self) -> Iterable[CheckKind]:
        return [kind for kind in CHECK_ORDER if kind in self._checks]


registry = CheckRegistry()


def register_check(check_cls: Type[ReceiptCheck]) -> Type[ReceiptCheck]:
    registry.register(check_cls)
    return check_cls
