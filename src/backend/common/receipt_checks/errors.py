from __future__ import annotations

from typing import Iterable


class ReceiptCheckError(RuntimeError):
    """Base class for receipt reconciliation failures."""


class ReceiptValidationError(ReceiptCheckError):
    pass


class MissingFieldsError(ReceiptValidationError):
    def __init__(self, fields: Iterable[str]):
        self.fields = tuple(fields)
        super().__init__("Missing required fields")


class InvalidDateError(ReceiptValidationError):
    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"Invalid date format: {raw!r}. Try mm-dd-yyyy or yyyy-mm-dd.")


class InvalidAmountError(ReceiptValidationError):
    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"Invalid receipt amount: {raw!r}")


class UnknownCheckError(ReceiptCheckError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Invalid step provided: {name!r}")


class StoreError(ReceiptCheckError):
    """Raised by the transaction store when a lookup cannot be executed."""


class InvalidSearchTermError(ReceiptCheckError):
    pass


class DatabaseNotAllowedError(ReceiptCheckError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Access to database {name!r} is not permitted")
