"""Exceptions raised by the franchise table layer and the tools built on it."""

from __future__ import annotations


class FranchiseError(Exception):
    """Base class for franchise tool failures."""


class SchemaError(FranchiseError):
    """A snapshot or a field write does not match the table schema."""


class UnsupportedGameYearError(FranchiseError):
    pass


class TableCapacityError(FranchiseError):
    def __init__(self, table_name: str, capacity: int) -> None:
        super().__init__(f"The {table_name} table has run out of space (capacity {capacity}).")
        self.table_name = table_name
        self.capacity = capacity


class LookupDataError(FranchiseError):
    """A static lookup file is missing or has the wrong shape."""
