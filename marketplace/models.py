"""Core domain records shared by the store, pipelines and API.

Plain frozen dataclasses: the API layer maps them to Pydantic DTOs, so nothing
here depends on FastAPI.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class Supplier:
    """A farmer known to the directory and the product they grow."""
    name: str
    contact_address: str
    offering: str


@dataclass(frozen=True)
class RequirementCandidate:
    """Validated buyer input waiting to be stored."""
    product: str
    quantity: float
    delivery_date: date
    notes: str = ""


@dataclass(frozen=True)
class Requirement:
    """Stored buyer requirement. Never mutated after creation."""
    id: int
    product: str
    quantity: float
    delivery_date: date
    notes: str
    created_at: datetime


@dataclass(frozen=True)
class NotificationOutcome:
    """Result of one dispatch attempt to one supplier."""
    supplier: Supplier
    delivered: bool
    error: str | None = None


@dataclass(frozen=True)
class SentNotification:
    """A rendered notification, kept for inspection in simulated mode."""
    recipient_name: str
    recipient: str
    subject: str
    body: str
