"""
Field validation for incoming rows

Each column a caller may write is described by a FieldSpec whose parser
coerces the boundary value (JSON scalar) into the Python type stored by the
model, or raises ValidationError naming the field.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field as dc_field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, Optional

from armory.business.errors import ValidationError

MISSING = object()
ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

CENTS = Decimal('0.01')


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == '')


def parse_text(max_length: Optional[int] = None) -> Callable[[str, Any], Optional[str]]:
    def parser(name, value):
        if _blank(value):
            return None
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            raise ValidationError(name, f"{name} must be a string")
        text = str(value).strip()
        if max_length is not None and len(text) > max_length:
            raise ValidationError(name, f"{name} must be at most {max_length} characters")
        return text
    return parser


def parse_date(name, value) -> Optional[date]:
    """Accept strictly YYYY-MM-DD."""
    if _blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError(name, f"{name} must be an ISO date (YYYY-MM-DD)")
    text = value.strip()
    if not ISO_DATE.match(text):
        raise ValidationError(name, f"{name} must be an ISO date (YYYY-MM-DD), got {value!r}")
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise ValidationError(name, f"{name} must be an ISO date (YYYY-MM-DD), got {value!r}")


def parse_non_negative_int(name, value) -> Optional[int]:
    if _blank(value):
        return None
    if isinstance(value, bool):
        raise ValidationError(name, f"{name} must be a non-negative number")
    try:
        number = int(str(value).strip(), 10) if isinstance(value, str) else int(value)
    except (TypeError, ValueError):
        raise ValidationError(name, f"{name} must be a non-negative number")
    if isinstance(value, float) and value != number:
        raise ValidationError(name, f"{name} must be a whole number")
    if number < 0:
        raise ValidationError(name, f"{name} must be a non-negative number")
    return number


def parse_money(name, value) -> Optional[Decimal]:
    """Exact decimal with at most two fraction digits."""
    if _blank(value):
        return None
    if isinstance(value, bool):
        raise ValidationError(name, f"{name} must be a decimal amount")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(name, f"{name} must be a decimal amount, got {value!r}")
    if not amount.is_finite():
        raise ValidationError(name, f"{name} must be a decimal amount, got {value!r}")
    if amount != amount.quantize(CENTS):
        raise ValidationError(name, f"{name} must have at most two fraction digits")
    if amount < 0:
        raise ValidationError(name, f"{name} must not be negative")
    return amount.quantize(CENTS)


def parse_reference(name, value) -> Optional[int]:
    if _blank(value):
        return None
    if isinstance(value, bool):
        raise ValidationError(name, f"{name} must be an integer ID")
    try:
        ref = int(value)
    except (TypeError, ValueError):
        raise ValidationError(name, f"{name} must be an integer ID")
    if isinstance(value, float) and value != ref:
        raise ValidationError(name, f"{name} must be an integer ID")
    return ref


def parse_choice(choices: Iterable[str], aliases: Optional[Dict[str, str]] = None):
    allowed = tuple(choices)
    lookup = {c.lower(): c for c in allowed}
    for alias, canonical in (aliases or {}).items():
        lookup[alias.lower()] = canonical

    def parser(name, value):
        if _blank(value):
            return None
        if not isinstance(value, str):
            raise ValidationError(name, f"{name} must be one of: {', '.join(allowed)}")
        canonical = lookup.get(value.strip().lower())
        if canonical is None:
            raise ValidationError(name, f"{name} must be one of: {', '.join(allowed)}; got {value!r}")
        return canonical
    parser.choices = allowed
    return parser


@dataclass(frozen=True)
class FieldSpec:
    name: str
    parser: Callable[[str, Any], Any]
    required: bool = False


@dataclass
class RowCleaner:
    """Coerces a raw mapping into column values for one entity kind."""

    entity: str
    fields: Dict[str, FieldSpec]
    defaults: Dict[str, Any] = dc_field(default_factory=dict)

    def clean(self, data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
        """
        Coerce known fields and apply named defaults.

        Args:
            data: Raw mapping (unknown keys are ignored)
            partial: True for updates - absent fields are left out instead of defaulted

        Returns:
            dict of cleaned column values

        Raises:
            ValidationError: If a field is malformed or a required field is missing
        """
        if not isinstance(data, dict):
            raise ValidationError(None, f"{self.entity} payload must be an object")

        cleaned = {}
        for name, spec in self.fields.items():
            raw = data.get(name, MISSING)
            if raw is MISSING:
                if partial:
                    continue
                value = self.defaults.get(name)
            else:
                value = spec.parser(name, raw)
                if value is None and self.defaults.get(name) is not None:
                    if partial:
                        raise ValidationError(name, f"{name} cannot be empty")
                    value = self.defaults[name]
            if spec.required and value is None:
                raise ValidationError(name, f"{name} is required")
            cleaned[name] = value
        return cleaned


def require_order(earlier_name, earlier, later_name, later):
    """Raise when two dates are set and out of order."""
    if earlier is not None and later is not None and later < earlier:
        raise ValidationError(later_name, f"{later_name} must not be before {earlier_name}")
