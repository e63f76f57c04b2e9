"""Validation rules shared by the forms and the API.

A rule pairs a predicate with the message shown when the predicate fails.
Rules are composed per field as an ordered list and the first failing
rule's message wins.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
UPPERCASE_PATTERN = re.compile(r"[A-Z]")
SYMBOL_PATTERN = re.compile(r"[^\w\s]|_")

PASSWORD_MIN_LENGTH = 8


@dataclass(frozen=True)
class ValidationRule:
    validate: Callable[[Any], bool]
    message: str

    def __call__(self, value: Any) -> str | None:
        return None if self.validate(value) else self.message


@dataclass(frozen=True)
class PasswordChecks:
    is_length_valid: bool
    has_uppercase_letter: bool
    has_symbol: bool

    @property
    def all_valid(self) -> bool:
        return self.is_length_valid and self.has_uppercase_letter and self.has_symbol


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def required_field_rule(message: str) -> ValidationRule:
    return ValidationRule(lambda value: _text(value).strip() != "", message)


def min_length_rule(length: int, message: str) -> ValidationRule:
    # empty values are left to required_field_rule
    return ValidationRule(lambda value: _text(value) == "" or len(_text(value)) >= length, message)


valid_email_rule = ValidationRule(
    lambda value: bool(EMAIL_PATTERN.match(_text(value).strip())),
    "Please enter a valid email address",
)


def get_password_checks(password: str | None, min_length: int = PASSWORD_MIN_LENGTH) -> PasswordChecks:
    password = _text(password)
    return PasswordChecks(
        is_length_valid=len(password) >= min_length,
        has_uppercase_letter=bool(UPPERCASE_PATTERN.search(password)),
        has_symbol=bool(SYMBOL_PATTERN.search(password)),
    )


def password_validation_rule(
    min_length: int = PASSWORD_MIN_LENGTH,
    require_uppercase: bool = True,
    require_symbol: bool = True,
) -> ValidationRule:
    requirements = [f"be at least {min_length} characters"]
    if require_uppercase:
        requirements.append("contain at least one uppercase letter")
    if require_symbol:
        requirements.append("include at least one symbol")
    if len(requirements) > 1:
        wording = ", ".join(requirements[:-1]) + " and " + requirements[-1]
    else:
        wording = requirements[0]

    def validate(value: Any) -> bool:
        checks = get_password_checks(value, min_length)
        if not checks.is_length_valid:
            return False
        if require_uppercase and not checks.has_uppercase_letter:
            return False
        if require_symbol and not checks.has_symbol:
            return False
        return True

    return ValidationRule(validate, f"Password must {wording}.")


def first_error(value: Any, rules: Iterable[ValidationRule]) -> str | None:
    for rule in rules:
        message = rule(value)
        if message is not None:
            return message
    return None
