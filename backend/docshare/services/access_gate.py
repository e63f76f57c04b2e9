"""Access gate for shared links.

A link's password flag and visitor-detail tier fix the set of fields a
visitor has to fill in before the document can be requested. The same
resolver runs on both sides: the client refuses to submit an incomplete
form and the server rejects a submission that skipped the client.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Mapping

from docshare.client import DocShareClient
from docshare.core.exceptions import FormValidationError
from docshare.services.forms import FormSubmission, Notifier, ValidatedForm
from docshare.utils.validators import ValidationRule, required_field_rule, valid_email_rule

logger = logging.getLogger("docshare")

REQUIRED_MESSAGE = "*This field is required"
EMAIL_REQUIRED_MESSAGE = "*This field is required / Please enter a valid Email"


class UserDetailsOption(IntEnum):
    NONE = 0
    NAME = 1
    NAME_AND_EMAIL = 2


@dataclass
class FormConfig:
    initial_values: dict[str, str] = field(default_factory=dict)
    validation_rules: dict[str, list[ValidationRule]] = field(default_factory=dict)

    @property
    def required_fields(self) -> tuple[str, ...]:
        return tuple(self.validation_rules)


def get_form_config(password_required: bool, user_details_option: int) -> FormConfig:
    option = UserDetailsOption(user_details_option)
    config = FormConfig()

    if password_required:
        config.initial_values["password"] = ""
        config.validation_rules["password"] = [required_field_rule(REQUIRED_MESSAGE)]

    if option in (UserDetailsOption.NAME, UserDetailsOption.NAME_AND_EMAIL):
        config.initial_values["name"] = ""
        config.validation_rules["name"] = [required_field_rule(REQUIRED_MESSAGE)]

    if option == UserDetailsOption.NAME_AND_EMAIL:
        config.initial_values["email"] = ""
        config.validation_rules["email"] = [
            required_field_rule(EMAIL_REQUIRED_MESSAGE),
            valid_email_rule,
        ]

    return config


def validate_access_values(
    password_required: bool, user_details_option: int, values: Mapping[str, Any]
) -> dict[str, str]:
    """Field errors for ``values`` against a link's requirements; empty when valid."""
    config = get_form_config(password_required, user_details_option)
    form = ValidatedForm(config.initial_values, config.validation_rules)
    form.set_values(**{name: values.get(name) or "" for name in config.required_fields})
    return form.validate_all()


def split_name(name: str | None) -> tuple[str, str]:
    parts = (name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def join_name(first_name: str | None, last_name: str | None) -> str:
    return " ".join(part for part in ((first_name or "").strip(), (last_name or "").strip()) if part)


def build_access_payload(link_id: str, values: Mapping[str, Any]) -> dict[str, str]:
    first_name, last_name = split_name(values.get("name"))
    return {
        "linkId": link_id,
        "first_name": first_name,
        "last_name": last_name,
        "email": (values.get("email") or "").strip(),
        "password": values.get("password") or "",
    }


class AccessGate:
    """Collects the visitor fields a link requires and requests access."""

    def __init__(
        self,
        link_id: str,
        password_required: bool,
        user_details_option: int,
        client: DocShareClient,
        on_access: Callable[[dict[str, Any]], None] | None = None,
        notifier: Notifier | None = None,
    ):
        self.link_id = link_id
        self.password_required = password_required
        self.user_details_option = UserDetailsOption(user_details_option)
        self.client = client
        self.config = get_form_config(password_required, self.user_details_option)
        self.form = ValidatedForm(self.config.initial_values, self.config.validation_rules)
        self.submission = FormSubmission(
            on_submit=self._request_access,
            on_success=on_access,
            error_message="Unexpected error occurred while accessing the link.",
            notifier=notifier,
        )

    @classmethod
    async def for_link(cls, link_id: str, client: DocShareClient, **kwargs) -> "AccessGate":
        requirements = await client.get_link_requirements(link_id)
        return cls(
            link_id,
            bool(requirements.get("passwordRequired")),
            int(requirements.get("userDetailsOption", 0)),
            client,
            **kwargs,
        )

    @property
    def required_fields(self) -> tuple[str, ...]:
        return self.config.required_fields

    @property
    def requires_input(self) -> bool:
        return bool(self.required_fields)

    def handle_change(self, name: str, value: Any) -> None:
        if name not in self.config.initial_values:
            raise KeyError(f"{name!r} is not collected for this link")
        self.form.handle_change(name, value)

    def handle_blur(self, name: str) -> None:
        self.form.handle_blur(name)

    def get_error(self, name: str) -> str | None:
        return self.form.get_error(name)

    def build_payload(self) -> dict[str, str]:
        return build_access_payload(self.link_id, self.form.values)

    async def _request_access(self) -> dict[str, Any]:
        errors = self.form.validate_all()
        if errors:
            raise FormValidationError(errors)
        return await self.client.request_shared_access(self.build_payload())

    async def submit(self) -> dict[str, Any]:
        return await self.submission.submit()
