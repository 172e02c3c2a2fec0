"""
Common validation utilities for request payloads.

Request DTOs parse raw JSON/query values through ``BaseValidator`` so every
endpoint rejects malformed input the same way and before any store access.
"""

import logging
import re
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional, Tuple, Type

from .exceptions import InvalidAmountError, InvalidInputError

logger = logging.getLogger(__name__)

TIME_OF_DAY_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
CENTS = Decimal("0.01")
# Largest value a Numeric(10, 2) money column holds
MAX_AMOUNT = Decimal("99999999.99")


def _parse_timestamp(text: str) -> datetime:
    """ISO-8601 timestamp with an optional "Z" suffix; raises ValueError."""
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


class ValidationResult:
    """Container for validation results."""

    def __init__(self):
        self.errors: List[Tuple[Optional[str], str, Type[InvalidInputError]]] = []

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(
        self,
        message: str,
        field: Optional[str] = None,
        error_cls: Type[InvalidInputError] = InvalidInputError,
    ):
        """Add validation error."""
        self.errors.append((field, message, error_cls))
        logger.debug(
            "Validation error",
            extra={"context": {"field": field, "error": message}},
        )

    def raise_if_invalid(self) -> None:
        """Raise the first error's type carrying every collected message."""
        if not self.errors:
            return
        field, _, error_cls = self.errors[0]
        message = "; ".join(
            f"{f}: {m}" if f else m for f, m, _ in self.errors
        )
        raise error_cls(message, field)


class BaseValidator:
    """Parsing helpers shared by the request DTOs.

    Each helper returns the converted value, or None after recording an
    error on ``result``.
    """

    @staticmethod
    def validate_required_field(
        value: Any, field_name: str, result: ValidationResult
    ) -> bool:
        """Validate that a required field is present and not empty."""
        if (
            value is None
            or value == ""
            or (isinstance(value, str) and value.strip() == "")
        ):
            result.add_error("is required", field_name)
            return False
        return True

    @staticmethod
    def validate_string(
        value: Any,
        field_name: str,
        result: ValidationResult,
        required: bool = True,
        max_length: Optional[int] = None,
    ) -> Optional[str]:
        if value is None or (isinstance(value, str) and value.strip() == ""):
            if required:
                result.add_error("is required", field_name)
            return None
        if not isinstance(value, str):
            result.add_error("must be a string", field_name)
            return None
        cleaned = value.strip()
        if max_length is not None and len(cleaned) > max_length:
            result.add_error(f"must be at most {max_length} characters", field_name)
            return None
        return cleaned

    @staticmethod
    def validate_email(
        value: Any, field_name: str, result: ValidationResult, required: bool = True
    ) -> Optional[str]:
        email = BaseValidator.validate_string(value, field_name, result, required)
        if email is None:
            return None
        if not EMAIL_RE.match(email):
            result.add_error("must be a valid email address", field_name)
            return None
        return email

    @staticmethod
    def validate_date(
        value: Any, field_name: str, result: ValidationResult, required: bool = True
    ) -> Optional[date]:
        """Validate and convert a calendar date (YYYY-MM-DD)."""
        if value is None or value == "":
            if required:
                result.add_error("is required", field_name)
            return None

        # datetime is a date subclass; drop the time component
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value

        if isinstance(value, str):
            text = value.strip()
            try:
                return datetime.strptime(text, "%Y-%m-%d").date()
            except ValueError:
                pass
            # A full timestamp is accepted and its time component dropped
            try:
                return _parse_timestamp(text).date()
            except ValueError:
                result.add_error("invalid date, use YYYY-MM-DD", field_name)
                return None

        result.add_error("invalid date format", field_name)
        return None

    @staticmethod
    def validate_datetime(
        value: Any, field_name: str, result: ValidationResult, required: bool = True
    ) -> Optional[datetime]:
        """Validate an ISO-8601 timestamp ("Z" suffix accepted)."""
        if value is None or value == "":
            if required:
                result.add_error("is required", field_name)
            return None
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                return _parse_timestamp(value.strip())
            except ValueError:
                pass
        result.add_error("invalid timestamp, use ISO-8601", field_name)
        return None

    @staticmethod
    def validate_time_of_day(
        value: Any, field_name: str, result: ValidationResult
    ) -> Optional[str]:
        """Validate an HH:MM time of day and normalize it to two-digit hours."""
        if isinstance(value, time):
            return value.strftime("%H:%M")
        if not isinstance(value, str) or not TIME_OF_DAY_RE.match(value.strip()):
            result.add_error("invalid time, use HH:MM (24h)", field_name)
            return None
        hours, minutes = value.strip().split(":")
        return f"{int(hours):02d}:{minutes}"

    @staticmethod
    def validate_money(
        value: Any, field_name: str, result: ValidationResult
    ) -> Optional[Decimal]:
        """Convert to a two-decimal Decimal (half-up) that must be > 0."""
        if value is None or value == "" or isinstance(value, bool):
            result.add_error("is required", field_name, InvalidAmountError)
            return None
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, TypeError, ValueError):
            result.add_error("must be a number", field_name, InvalidAmountError)
            return None
        if not amount.is_finite():
            result.add_error("must be a finite number", field_name, InvalidAmountError)
            return None
        amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
        if amount <= 0:
            result.add_error("must be greater than 0", field_name, InvalidAmountError)
            return None
        if amount > MAX_AMOUNT:
            result.add_error(
                f"must be at most {MAX_AMOUNT}", field_name, InvalidAmountError
            )
            return None
        return amount

    @staticmethod
    def validate_integer(
        value: Any,
        field_name: str,
        result: ValidationResult,
        required: bool = True,
        min_value: Optional[int] = 1,
        max_value: Optional[int] = None,
    ) -> Optional[int]:
        """Validate and convert an integer field (ids default to >= 1)."""
        if value is None or value == "":
            if required:
                result.add_error("is required", field_name)
            return None
        if isinstance(value, bool):
            result.add_error("must be an integer", field_name)
            return None
        try:
            int_value = int(value)
        except (TypeError, ValueError, OverflowError):
            result.add_error("must be an integer", field_name)
            return None
        if isinstance(value, float) and value != int_value:
            result.add_error("must be an integer", field_name)
            return None
        if min_value is not None and int_value < min_value:
            result.add_error(f"must be at least {min_value}", field_name)
            return None
        if max_value is not None and int_value > max_value:
            result.add_error(f"must be at most {max_value}", field_name)
            return None
        return int_value

    @staticmethod
    def validate_choice(
        value: Any,
        field_name: str,
        result: ValidationResult,
        choices: Iterable[str],
        required: bool = True,
    ) -> Optional[str]:
        allowed = list(choices)
        if value is None or value == "":
            if required:
                result.add_error("is required", field_name)
            return None
        if value not in allowed:
            result.add_error(f"must be one of {', '.join(allowed)}", field_name)
            return None
        return value

    @staticmethod
    def validate_boolean(
        value: Any, field_name: str, result: ValidationResult
    ) -> Optional[bool]:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in ("true", "false"):
            return value.lower() == "true"
        result.add_error("must be true or false", field_name)
        return None
