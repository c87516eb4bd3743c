"""Supplier matching for a requested product.

A supplier matches when the lower-cased requested product contains the
supplier's lower-cased offering. The direction is fixed: "Organic Fresh Potato"
matches an offering of "potato", while "potato" does not match "organic potato".
"""
from __future__ import annotations

import logging
from typing import Iterable

from marketplace.models import Supplier

logger = logging.getLogger(__name__)


def offering_matches(product_name: str, offering: str) -> bool:
    """True when ``offering`` appears inside ``product_name``, ignoring case."""
    return offering.lower() in product_name.lower()


def match_suppliers(product_name: str, directory: Iterable[Supplier]) -> list[Supplier]:
    """Return every supplier whose offering the requested product contains.

    Args:
        product_name: Product as entered by the buyer
        directory: Full supplier directory, scanned in order

    Returns:
        Matching suppliers in directory order; empty when nothing matches
    """
    matched = [s for s in directory if offering_matches(product_name, s.offering)]
    logger.info(f"Matched {len(matched)} suppliers for {product_name!r}")
    return matched
