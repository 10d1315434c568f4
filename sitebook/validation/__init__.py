"""Entry validation."""

from sitebook.validation.validator import (
    InvalidAmountError,
    RecordValidationError,
    RecordValidator,
    parse_amount,
)

__all__ = [
    "InvalidAmountError",
    "RecordValidationError",
    "RecordValidator",
    "parse_amount",
]
