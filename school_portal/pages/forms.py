from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, ClassVar, Mapping

from school_portal.services.backend import Result, TableRepository
from school_portal.validation import FieldRule, FormValidation, sanitize_input, validate_form

from .base import Page

logger = logging.getLogger(__name__)


class FormPage(Page):
    """Validates a submitted form, creates the record, reports the outcome."""

    container_name: ClassVar[str]
    rules: ClassVar[Mapping[str, FieldRule]]
    success_text: ClassVar[str]
    failure_text: ClassVar[str]

    def repository(self) -> TableRepository[Any]:
        raise NotImplementedError

    def prepare(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return {key: sanitize_input(value) if isinstance(value, str) else value for key, value in data.items()}

    async def submit(self, data: Mapping[str, Any]) -> bool:
        target = self.container(self.container_name)
        validation: FormValidation = validate_form(data, self.rules)
        if not validation.is_valid:
            target.message(validation.message, "error")
            return False

        result = await Result.capture(self.repository().create(self.prepare(data)))
        if not result.ok:
            logger.warning("%s: %s", self.failure_text, result.message)
            target.message(f"{self.failure_text}: {result.message}", "error")
            return False
        target.message(self.success_text, "success")
        return True


class CertificateRequestPage(FormPage):
    container_name = "certificate-form"
    rules = {
        "first_name": FieldRule(required=True, max_length=100),
        "last_name": FieldRule(required=True, max_length=100),
        "massar_number": FieldRule(required=True, type="massar"),
        "birth_date": FieldRule(type="date"),
    }
    success_text = "Your certificate request was submitted"
    failure_text = "Could not submit the certificate request"

    def __init__(self, ctx, *, today: Callable[[], date] = date.today) -> None:
        super().__init__(ctx)
        self._today = today

    def repository(self) -> TableRepository[Any]:
        return self.ctx.gateways.certificates

    def prepare(self, data: Mapping[str, Any]) -> dict[str, Any]:
        fields = super().prepare(data)
        fields.setdefault("submission_date", self._today().isoformat())
        return fields


class ContactPage(FormPage):
    container_name = "contact-form"
    rules = {
        "name": FieldRule(required=True, min_length=2, max_length=100),
        "email": FieldRule(required=True, type="email"),
        "phone": FieldRule(type="phone"),
        "subject": FieldRule(required=True, max_length=255),
        "message": FieldRule(required=True, min_length=10, max_length=5000),
    }
    success_text = "Your message was sent"
    failure_text = "Could not send your message"

    def repository(self) -> TableRepository[Any]:
        return self.ctx.gateways.contacts
