"""Tests for product → supplier matching."""
from marketplace.models import Supplier
from marketplace.pipelines.matching import match_suppliers, offering_matches

from .fakes import POTATO, TOMATO_A, TOMATO_B


def test_request_containing_offering_matches():
    assert match_suppliers("Organic Fresh Potato", [POTATO]) == [POTATO]


def test_offering_containing_request_does_not_match():
    organic = Supplier(name="Ana", contact_address="ana@farms.test", offering="organic potato")
    assert match_suppliers("potato", [organic]) == []


def test_matching_ignores_case():
    assert offering_matches("FRESH TOMATO", "Tomato")
    assert offering_matches("fresh tomato", "TOMATO")


def test_directory_order_is_preserved(directory):
    matched = match_suppliers("Cherry tomato and potato mix", directory)
    assert matched == [TOMATO_A, POTATO, TOMATO_B]


def test_no_match_returns_empty_list(directory):
    assert match_suppliers("Carrot", directory) == []


def test_no_fuzzy_or_plural_handling():
    # "tomatoes" contains "tomato", but "potatos" does not contain "potatoes"
    plural = Supplier(name="Lee", contact_address="lee@farms.test", offering="potatoes")
    assert match_suppliers("tomatoes", [TOMATO_A]) == [TOMATO_A]
    assert match_suppliers("potatos", [plural]) == []
