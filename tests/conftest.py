"""Shared pytest fixtures for the marketplace tests."""
from __future__ import annotations

from datetime import date

import pytest

from marketplace.directory import Directory
from marketplace.pipelines.intake import IntakeService
from marketplace.pipelines.notification import Notifier
from marketplace.store import RequirementStore

from .fakes import POTATO, TOMATO_A, TOMATO_B, fixed_clock


@pytest.fixture
def directory() -> Directory:
    return Directory([TOMATO_A, POTATO, TOMATO_B])


@pytest.fixture
def store() -> RequirementStore:
    return RequirementStore(clock=fixed_clock)


@pytest.fixture
def notifier() -> Notifier:
    return Notifier(sender="market@pbf.test")


@pytest.fixture
def intake(store, directory, notifier) -> IntakeService:
    return IntakeService(store=store, directory=directory, notifier=notifier, clock=fixed_clock)


@pytest.fixture
def valid_input() -> dict:
    return {
        "product": "Fresh Tomato",
        "quantity": 100,
        "deliveryDate": date(2026, 3, 17).isoformat(),
        "notes": "",
    }
