"""Link configuration: turns the "create link" form into a request payload."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from docshare.client import DocShareClient
from docshare.core.exceptions import FormValidationError
from docshare.services.forms import FormSubmission, Notifier, ValidatedForm
from docshare.utils.dates import as_utc, compute_expiration_days, parse_iso, to_iso
from docshare.utils.validators import ValidationRule, min_length_rule, required_field_rule

logger = logging.getLogger("docshare")

LINK_PASSWORD_MIN_LENGTH = 5


def initial_link_form_values() -> dict[str, Any]:
    return {
        "password": "",
        "is_public": True,
        "other_emails": "",
        "friendly_name": "",
        "expiration_time": "",
        "require_password": False,
        "expiration_enabled": False,
        "require_user_details": False,
        "required_user_details_option": 1,
        "expiration_days": "",
        "expiration_date": "",
    }


def link_validation_rules(require_password: bool) -> dict[str, list[ValidationRule]]:
    if not require_password:
        return {}
    return {
        "password": [
            required_field_rule("Please enter a password for this link."),
            min_length_rule(
                LINK_PASSWORD_MIN_LENGTH,
                f"Password must be at least {LINK_PASSWORD_MIN_LENGTH} characters long.",
            ),
        ]
    }


def apply_expiration_days(values: dict[str, Any], raw_days: Any, now: datetime | None = None) -> None:
    """Convert a day count into an absolute UTC expiration time."""
    try:
        days = int(str(raw_days).strip())
    except ValueError:
        values["expiration_days"] = ""
        return
    now = now or datetime.now(timezone.utc)
    try:
        expiration_time = now + timedelta(days=days)
    except OverflowError:
        values["expiration_days"] = ""
        return
    values["expiration_time"] = to_iso(expiration_time)
    values["expiration_days"] = str(days)


def apply_expiration_date(values: dict[str, Any], raw_date: str) -> None:
    values["expiration_time"] = to_iso(parse_iso(raw_date))
    values["expiration_date"] = raw_date


def sync_expiration_days(values: dict[str, Any], now: datetime | None = None) -> None:
    if values.get("expiration_time"):
        values["expiration_days"] = str(compute_expiration_days(values["expiration_time"], now))


def build_link_payload(document_id: str, values: dict[str, Any]) -> dict[str, Any]:
    """Only the fields of enabled options end up in the payload."""
    payload: dict[str, Any] = {
        "documentId": document_id,
        "isPublic": bool(values.get("is_public")),
    }
    if values.get("require_user_details"):
        payload["requiredUserDetailsOption"] = int(values.get("required_user_details_option", 0))
    if values.get("require_password"):
        payload["password"] = values.get("password", "")
    if values.get("expiration_enabled"):
        payload["expirationTime"] = values.get("expiration_time", "")
    friendly_name = (values.get("friendly_name") or "").strip()
    if friendly_name:
        payload["friendlyName"] = friendly_name
    return payload


class CreateLinkForm:
    def __init__(
        self,
        document_id: str,
        client: DocShareClient,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.document_id = document_id
        self.client = client
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.form = ValidatedForm(initial_link_form_values())
        self.shareable_link = ""
        self.submission = FormSubmission(
            on_submit=self._create,
            on_error=self._report_error,
            success_message="Shareable link created successfully!",
            error_message="Failed to create shareable link. Please try again later.",
            notifier=notifier,
        )

    @property
    def values(self) -> dict[str, Any]:
        return self.form.values

    @property
    def loading(self) -> bool:
        return self.submission.loading

    def handle_input_change(self, name: str, value: Any) -> None:
        if name == "expiration_days":
            apply_expiration_days(self.form.values, value, self.clock())
        elif name == "expiration_date":
            try:
                apply_expiration_date(self.form.values, value)
            except ValueError:
                self.form.values["expiration_date"] = value
                self.form.errors["expiration_date"] = "Please enter a valid date"
                return
            self.form.errors.pop("expiration_date", None)
        else:
            self.form.handle_change(name, value)
            if name == "require_password":
                self.form.validation_rules = link_validation_rules(bool(value))
            return
        sync_expiration_days(self.form.values, self.clock())

    def build_request_payload(self) -> dict[str, Any]:
        return build_link_payload(self.document_id, self.form.values)

    def validate(self) -> dict[str, str]:
        self.form.validation_rules = link_validation_rules(bool(self.form.values.get("require_password")))
        errors = self.form.validate_all()
        if self.form.values.get("expiration_enabled"):
            expiration_time = self.form.values.get("expiration_time")
            if not expiration_time:
                errors["expiration_time"] = "Please choose when the link expires."
            elif parse_iso(expiration_time) <= as_utc(self.clock()):
                errors["expiration_time"] = "Expiration time must be in the future."
        if "expiration_date" in self.form.errors:
            errors["expiration_date"] = self.form.errors["expiration_date"]
        return errors

    async def _create(self) -> str:
        errors = self.validate()
        if errors:
            raise FormValidationError(errors, "Please correct any errors before generating a link.")
        link = await self.client.create_link(self.build_request_payload())
        self.shareable_link = link["linkUrl"]
        self.form.reset()
        return self.shareable_link

    def _report_error(self, message: str) -> None:
        logger.error("Create link error: %s", message)
        self.submission.notifier.show_toast(f"Create link error: {message}", "error")

    async def submit(self) -> str:
        return await self.submission.submit()
