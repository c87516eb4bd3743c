"""Tests for the append-only requirement store."""
import dataclasses
import threading
from datetime import date

import pytest

from marketplace.models import RequirementCandidate

from .fakes import NOW


def make_candidate(product: str = "Tomato") -> RequirementCandidate:
    return RequirementCandidate(product=product, quantity=5.0, delivery_date=date(2026, 4, 1))


def test_append_assigns_sequential_ids_and_timestamp(store):
    first = store.append(make_candidate("Tomato"))
    second = store.append(make_candidate("Potato"))

    assert (first.id, second.id) == (1, 2)
    assert first.created_at == NOW
    assert second.product == "Potato"


def test_all_returns_creation_order_snapshot(store):
    store.append(make_candidate("a"))
    store.append(make_candidate("b"))

    snapshot = store.all()
    snapshot.clear()

    assert [r.product for r in store.all()] == ["a", "b"]
    assert len(store) == 2


def test_requirements_are_immutable(store):
    requirement = store.append(make_candidate())
    with pytest.raises(dataclasses.FrozenInstanceError):
        requirement.product = "changed"


def test_concurrent_appends_keep_ids_unique(store):
    def worker():
        for _ in range(50):
            store.append(make_candidate())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    ids = [r.id for r in store.all()]
    assert ids == list(range(1, 401))
