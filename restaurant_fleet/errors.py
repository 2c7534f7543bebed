"""Exception hierarchy shared by the navigation core and its collaborators.

Expected algorithmic outcomes (no route, no idle robot) are *not* modelled
here; they are returned as values by the coordinator. Exceptions are reserved
for malformed input, unknown identifiers and storage failures.
"""

from __future__ import annotations


class FleetError(Exception):
    """Base class for all errors raised by the fleet core."""


class InvalidInputError(FleetError, ValueError):
    """Raised when a caller supplies structurally invalid data."""


class InvalidGridError(InvalidInputError):
    """Raised when a floor grid is empty or not rectangular."""


class NotFoundError(FleetError, LookupError):
    """Raised when a referenced record does not exist."""

    entity = "record"

    def __init__(self, identifier: object) -> None:
        self.identifier = identifier
        super().__init__(f"{self.entity} {identifier!r} not found")


class RobotNotFoundError(NotFoundError):
    entity = "robot"


class OrderNotFoundError(NotFoundError):
    entity = "order"


class LayoutNotFoundError(NotFoundError):
    entity = "layout"


class TableNotFoundError(NotFoundError):
    entity = "table"


class TransientStoreError(FleetError):
    """Raised when the backing store fails mid-operation; the caller may retry."""
