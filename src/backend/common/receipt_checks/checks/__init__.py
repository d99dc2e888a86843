from .loan_existence import RC_LOAN_EXISTENCE
from .exact_match import RC_EXACT_MATCH
from .amount_mismatch import RC_AMOUNT_MISMATCH
from .date_mismatch import RC_DATE_MISMATCH
from .duplicate_receipt_no import RC_DUPLICATE_RECEIPT_NO
from .duplicate_receipt_in_office import RC_DUPLICATE_RECEIPT_IN_OFFICE

__all__ = [
    "RC_LOAN_EXISTENCE",
    "RC_EXACT_MATCH",
    "RC_AMOUNT_MISMATCH",
    "RC_DATE_MISMATCH",
    "RC_DUPLICATE_RECEIPT_NO",
    "RC_DUPLICATE_RECEIPT_IN_OFFICE",
]
