"""In-process, append-only requirement log.

Only ``append`` and the read operations are part of the contract, so a durable
backend can replace this class without touching the intake pipeline.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable

from .models import Requirement, RequirementCandidate

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RequirementStore:
    """Assigns ids and timestamps and keeps requirements in creation order."""

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock
        self._requirements: list[Requirement] = []
        self._next_id = 1
        # Id assignment and append must happen together.
        self._lock = threading.Lock()

    def append(self, candidate: RequirementCandidate) -> Requirement:
        """Store a validated candidate and return the created record."""
        with self._lock:
            requirement = Requirement(
                id=self._next_id,
                product=candidate.product,
                quantity=candidate.quantity,
                delivery_date=candidate.delivery_date,
                notes=candidate.notes,
                created_at=self._clock(),
            )
            self._requirements.append(requirement)
            self._next_id += 1

        logger.info(f"Stored requirement {requirement.id} for {requirement.product!r}")
        return requirement

    def all(self) -> list[Requirement]:
        """Snapshot of all requirements in creation order."""
        with self._lock:
            return list(self._requirements)

    def __len__(self) -> int:
        return len(self._requirements)
