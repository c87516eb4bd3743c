"""Requirement intake: validate, store, match, notify, summarize.

A submission moves through Received → Validated → Stored → Matched →
Notifying → Completed. Validation failures stop it before anything is stored
or sent. Once stored, the submission succeeds whatever the notification
outcomes are.
"""
from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Mapping

from marketplace.directory import Directory
from marketplace.models import NotificationOutcome, Requirement, RequirementCandidate, Supplier
from marketplace.pipelines.matching import match_suppliers
from marketplace.pipelines.notification import Notifier
from marketplace.store import RequirementStore, utc_now

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("product", "quantity", "deliveryDate")
MISSING_FIELDS_MESSAGE = (
    "Missing required fields: product, quantity, and deliveryDate are required"
)


class ValidationReason(str, Enum):
    """Why a submission was rejected."""
    MISSING_FIELD = "missing_field"
    INVALID_VALUE = "invalid_value"


class RequirementValidationError(Exception):
    """Raised when buyer input cannot become a requirement."""

    def __init__(self, reason: ValidationReason, field: str | None, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.field = field
        self.message = message


def _missing(field_name: str) -> RequirementValidationError:
    return RequirementValidationError(ValidationReason.MISSING_FIELD, field_name, MISSING_FIELDS_MESSAGE)


def _invalid(field_name: str, message: str) -> RequirementValidationError:
    return RequirementValidationError(ValidationReason.INVALID_VALUE, field_name, message)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_quantity(value: Any) -> float:
    """Positive, finite quantity from a number or numeric string."""
    if isinstance(value, bool):
        raise _invalid("quantity", "Quantity must be a number")
    if isinstance(value, (int, float)):
        try:
            quantity = float(value)
        except OverflowError:
            raise _invalid("quantity", "Quantity is too large") from None
    elif isinstance(value, str):
        try:
            quantity = float(value.strip())
        except ValueError:
            raise _invalid("quantity", "Quantity must be a number") from None
    else:
        raise _invalid("quantity", "Quantity must be a number")

    if not math.isfinite(quantity):
        raise _invalid("quantity", "Quantity must be a number")
    if quantity <= 0:
        raise _invalid("quantity", "Quantity must be greater than 0")
    return quantity


def parse_delivery_date(value: Any, today: date) -> date:
    """ISO date not earlier than ``today``. ISO datetimes are reduced to their date."""
    if not isinstance(value, str):
        raise _invalid("deliveryDate", "Delivery date must be a valid date (YYYY-MM-DD)")
    text = value.strip()
    try:
        parsed = date.fromisoformat(text)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(text).date()
        except ValueError:
            raise _invalid(
                "deliveryDate", "Delivery date must be a valid date (YYYY-MM-DD)"
            ) from None

    if parsed < today:
        raise _invalid("deliveryDate", "Delivery date cannot be in the past")
    return parsed


def validate_requirement(raw: Mapping[str, Any], today: date) -> RequirementCandidate:
    """Turn raw buyer input into a candidate ready to store.

    Args:
        raw: Submitted fields (``product``, ``quantity``, ``deliveryDate``, ``notes``)
        today: Current date; delivery dates before it are rejected

    Returns:
        RequirementCandidate with trimmed product and parsed values

    Raises:
        RequirementValidationError: Missing field or invalid value
    """
    for name in REQUIRED_FIELDS:
        if _is_blank(raw.get(name)):
            raise _missing(name)

    product = raw["product"]
    if not isinstance(product, str):
        raise _invalid("product", "Product must be text")

    notes = raw.get("notes")
    if notes is None:
        notes = ""
    elif not isinstance(notes, str):
        raise _invalid("notes", "Notes must be text")

    return RequirementCandidate(
        product=product.strip(),
        quantity=parse_quantity(raw["quantity"]),
        delivery_date=parse_delivery_date(raw["deliveryDate"], today),
        notes=notes,
    )


@dataclass
class RequirementSubmissionResult:
    """What the caller gets back for an accepted submission."""
    message: str
    requirement: Requirement
    notified: list[Supplier] = field(default_factory=list)
    outcomes: list[NotificationOutcome] = field(default_factory=list)


def _farmers(count: int) -> str:
    return f"{count} farmer{'s' if count != 1 else ''}"


def summarize(requirement: Requirement, outcomes: list[NotificationOutcome]) -> str:
    """Human-readable summary of a completed submission."""
    if not outcomes:
        return (
            f'No farmers found growing "{requirement.product}". Your requirement has been '
            "saved and we'll notify you when matching farmers are available."
        )

    delivered = sum(1 for o in outcomes if o.delivered)
    failed = len(outcomes) - delivered
    if delivered == 0:
        return (
            "Your requirement has been saved, but we could not notify any of the "
            f"{_farmers(failed)} growing this product. Please try again later."
        )

    message = f"Successfully notified {_farmers(delivered)} about your requirement!"
    if failed:
        message += f" {_farmers(failed).capitalize()} could not be reached."
    return message


class IntakeService:
    """Orchestrates validation, storage, matching and notification."""

    def __init__(
        self,
        store: RequirementStore,
        directory: Directory,
        notifier: Notifier,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._directory = directory
        self._notifier = notifier
        self._clock = clock

    async def submit(self, raw: Mapping[str, Any]) -> RequirementSubmissionResult:
        """Process one buyer submission end to end.

        Raises:
            RequirementValidationError: Input rejected; nothing stored or sent
        """
        try:
            candidate = validate_requirement(raw, today=self._clock().date())
        except RequirementValidationError as e:
            logger.info(f"Rejected requirement ({e.reason.value}, {e.field}): {e.message}")
            raise

        requirement = self._store.append(candidate)
        matched = match_suppliers(requirement.product, self._directory.all())

        if not matched:
            return RequirementSubmissionResult(
                message=summarize(requirement, []),
                requirement=requirement,
            )

        # All dispatches are started before any is awaited.
        outcomes = await asyncio.gather(
            *(self._notifier.dispatch(supplier, requirement) for supplier in matched)
        )
        notified = [o.supplier for o in outcomes if o.delivered]
        logger.info(
            f"Requirement {requirement.id}: notified {len(notified)} of {len(outcomes)} suppliers"
        )

        return RequirementSubmissionResult(
            message=summarize(requirement, list(outcomes)),
            requirement=requirement,
            notified=notified,
            outcomes=list(outcomes),
        )

    def requirements(self) -> list[Requirement]:
        return self._store.all()

    def suppliers(self) -> tuple[Supplier, ...]:
        return self._directory.all()
