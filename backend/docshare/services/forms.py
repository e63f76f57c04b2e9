from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Sequence

from docshare.core.exceptions import (
    FormValidationError,
    NetworkError,
    ServerRejectionError,
    SubmissionInProgressError,
)
from docshare.utils.validators import ValidationRule, first_error

logger = logging.getLogger("docshare")

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


class ValidatedForm:
    """Field values plus an ordered rule list per field.

    Errors are only reported for touched fields, so a pristine form shows
    nothing until the user leaves a field or submits.
    """

    def __init__(
        self,
        initial_values: Mapping[str, Any],
        validation_rules: Mapping[str, Sequence[ValidationRule]] | None = None,
    ):
        self.initial_values = dict(initial_values)
        self.validation_rules = {name: list(rules) for name, rules in (validation_rules or {}).items()}
        self.values: dict[str, Any] = copy.deepcopy(self.initial_values)
        self.touched: set[str] = set()
        self.errors: dict[str, str] = {}

    def validate_field(self, name: str) -> str | None:
        message = first_error(self.values.get(name), self.validation_rules.get(name, ()))
        if message is None:
            self.errors.pop(name, None)
        else:
            self.errors[name] = message
        return message

    def handle_change(self, name: str, value: Any) -> None:
        self.values[name] = value
        if name in self.touched:
            self.validate_field(name)

    def handle_blur(self, name: str) -> None:
        self.touched.add(name)
        self.validate_field(name)

    def get_error(self, name: str) -> str | None:
        if name not in self.touched:
            return None
        return self.errors.get(name)

    def validate_all(self) -> dict[str, str]:
        for name in self.validation_rules:
            self.touched.add(name)
            self.validate_field(name)
        return {name: self.errors[name] for name in self.validation_rules if name in self.errors}

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def set_values(self, **values: Any) -> None:
        self.values.update(values)

    def reset(self) -> None:
        self.values = copy.deepcopy(self.initial_values)
        self.touched.clear()
        self.errors.clear()


@dataclass
class Toast:
    message: str
    variant: str


class Notifier:
    """Collects user-facing notifications and mirrors them to the log."""

    def __init__(self):
        self.toasts: list[Toast] = []

    def show_toast(self, message: str, variant: str = "info") -> None:
        self.toasts.append(Toast(message=message, variant=variant))
        if variant == "error":
            logger.warning("toast[%s]: %s", variant, message)
        else:
            logger.info("toast[%s]: %s", variant, message)

    @property
    def last(self) -> Toast | None:
        return self.toasts[-1] if self.toasts else None


class FormSubmission:
    """Runs one form submission at a time and reports its outcome.

    Local validation failures are left to the form's inline errors, server
    rejections and network failures are reported as error toasts. Form state
    is never touched on failure so the user can resubmit.
    """

    def __init__(
        self,
        on_submit: Callable[[], Awaitable[Any]],
        on_success: Callable[[Any], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        success_message: str | None = None,
        error_message: str = GENERIC_ERROR_MESSAGE,
        notifier: Notifier | None = None,
    ):
        self.on_submit = on_submit
        self.on_success = on_success
        self.on_error = on_error
        self.success_message = success_message
        self.error_message = error_message
        self.notifier = notifier or Notifier()
        self.loading = False
        self.error: str | None = None

    async def submit(self) -> Any:
        if self.loading:
            raise SubmissionInProgressError()
        self.loading = True
        self.error = None
        try:
            result = await self.on_submit()
        except FormValidationError as e:
            self.error = e.message
            logger.debug("form validation failed: %s", e.errors)
            raise
        except ServerRejectionError as e:
            self._fail(e.message)
            raise
        except NetworkError as e:
            logger.warning("network failure during submission: %s", e.message)
            self._fail(self.error_message)
            raise
        except Exception:
            logger.exception("unexpected failure during submission")
            self._fail(self.error_message)
            raise
        finally:
            self.loading = False

        if self.success_message:
            self.notifier.show_toast(self.success_message, "success")
        if self.on_success:
            self.on_success(result)
        return result

    def _fail(self, message: str) -> None:
        self.error = message
        if self.on_error:
            self.on_error(message)
        else:
            self.notifier.show_toast(message, "error")
