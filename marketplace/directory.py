"""Supplier directory: read-only lookup data loaded once at startup."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

from config.supplier_directory import DEFAULT_SUPPLIERS

from .models import Supplier

logger = logging.getLogger(__name__)


class DirectoryError(Exception):
    """Raised when the directory source cannot be loaded."""
    pass


class Directory:
    """Ordered, immutable collection of known suppliers."""

    def __init__(self, suppliers: Iterable[Supplier]) -> None:
        self._suppliers = tuple(suppliers)

    def __iter__(self) -> Iterator[Supplier]:
        return iter(self._suppliers)

    def __len__(self) -> int:
        return len(self._suppliers)

    def all(self) -> tuple[Supplier, ...]:
        """Every supplier, in declaration order."""
        return self._suppliers


def supplier_from_entry(entry: Mapping[str, Any]) -> Supplier:
    try:
        supplier = Supplier(
            name=str(entry["name"]),
            contact_address=str(entry["email"]),
            offering=str(entry["product"]),
        )
    except KeyError as e:
        raise DirectoryError(f"Directory entry is missing {e.args[0]!r}: {dict(entry)}") from e

    # An empty offering would be contained in every product name.
    if not supplier.offering.strip():
        raise DirectoryError(f"Directory entry for {supplier.name!r} has an empty product")
    return supplier


def load_directory(path: Path | None = None) -> Directory:
    """Build the directory from a JSON file, or the built-in list when no path is given.

    Args:
        path: Optional JSON file holding a list of ``{name, email, product}``

    Returns:
        Directory in file (or built-in) order

    Raises:
        DirectoryError: If the file is unreadable or malformed
    """
    if path is None:
        entries: list[Mapping[str, Any]] = DEFAULT_SUPPLIERS
        source = "built-in"
    else:
        try:
            entries = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise DirectoryError(f"Failed to load directory from {path}: {e}") from e
        if not isinstance(entries, list):
            raise DirectoryError(f"Directory file {path} must contain a JSON list")
        source = str(path)

    directory = Directory(supplier_from_entry(entry) for entry in entries)
    logger.info(f"Loaded {len(directory)} suppliers from {source} directory")
    return directory
