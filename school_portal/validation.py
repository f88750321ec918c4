"""Form validation and input sanitising helpers."""

from __future__ import annotations

import html
import math
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[0-9\s\-\+\(\)]{7,20}$")
MASSAR_RE = re.compile(r"^[0-9]{11}$")
MOROCCAN_PHONE_RE = re.compile(r"^(\+212|0)([5-9][0-9]{8})$")
ISO_DATE_PREFIX_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}")
UNSAFE_CHARS_RE = re.compile(r"[<>\"']")

MAX_INPUT_LENGTH = 5000


def validate_email(email: Any) -> bool:
    return bool(EMAIL_RE.match(str(email if email is not None else "").strip()))


def validate_phone(phone: Any) -> bool:
    return bool(PHONE_RE.match(str(phone if phone is not None else "").strip()))


def validate_url(url: Any) -> bool:
    parsed = urlparse(str(url or ""))
    return bool(parsed.scheme and (parsed.netloc or parsed.path))


def validate_length(text: Any, min_length: int = 1, max_length: int = MAX_INPUT_LENGTH) -> bool:
    length = len(str(text).strip())
    return min_length <= length <= max_length


def validate_required(value: Any) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None and value != ""


def validate_date(value: Any) -> bool:
    text = str(value or "")
    if not ISO_DATE_PREFIX_RE.match(text):
        return False
    try:
        date.fromisoformat(text[:10])
    except ValueError:
        return False
    return True


def validate_number(value: Any, minimum: float = -math.inf, maximum: float = math.inf) -> bool:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return not math.isnan(number) and minimum <= number <= maximum


def validate_massar_number(value: Any) -> bool:
    return bool(MASSAR_RE.match(str(value if value is not None else "").strip()))


def validate_moroccan_phone(value: Any) -> bool:
    return bool(MOROCCAN_PHONE_RE.match(re.sub(r"\s", "", str(value or ""))))


def sanitize_html(text: Any) -> str:
    return html.escape(str(text if text is not None else ""), quote=True)


def sanitize_input(text: Any) -> str:
    return UNSAFE_CHARS_RE.sub("", str(text).strip())[:MAX_INPUT_LENGTH]


@dataclass(frozen=True, slots=True)
class FieldRule:
    required: bool = False
    type: Optional[str] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    minimum: float = -math.inf
    maximum: float = math.inf


@dataclass(slots=True)
class FormValidation:
    is_valid: bool = True
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return error_message(self.errors)


_TYPE_CHECKS = {
    "email": (validate_email, "Invalid email format"),
    "phone": (validate_phone, "Invalid phone format"),
    "url": (validate_url, "Invalid URL"),
    "date": (validate_date, "Invalid date format"),
    "massar": (validate_massar_number, "MASSAR number must be 11 digits"),
}


def validate_form(data: Mapping[str, Any], rules: Mapping[str, FieldRule]) -> FormValidation:
    result = FormValidation()
    for name, rule in rules.items():
        value = data.get(name)
        if rule.required and not validate_required(value):
            result.errors[name] = f"{name} is required"
            result.is_valid = False
            continue
        if not value:
            continue

        if rule.type == "number":
            if not validate_number(value, rule.minimum, rule.maximum):
                result.errors[name] = f"Number must be between {rule.minimum} and {rule.maximum}"
                result.is_valid = False
        elif rule.type in _TYPE_CHECKS:
            check, message = _TYPE_CHECKS[rule.type]
            if not check(value):
                result.errors[name] = message
                result.is_valid = False

        if rule.min_length and not validate_length(value, rule.min_length, MAX_INPUT_LENGTH):
            result.errors[name] = f"Minimum length is {rule.min_length} characters"
            result.is_valid = False
        if rule.max_length and not validate_length(value, 0, rule.max_length):
            result.errors[name] = f"Maximum length is {rule.max_length} characters"
            result.is_valid = False
    return result


def error_message(errors: Mapping[str, str]) -> str:
    return ", ".join(errors.values())
