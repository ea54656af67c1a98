"""
Table-level access contract shared by the hosted and in-memory databases.
"""

from typing import Any, Dict, List, Mapping, Optional, Protocol

ENTREPRENEURS = "entrepreneurs"
PARTICIPANTS = "participants"
EVENTS = "events"
EVENT_ENTREPRENEURS = "event_entrepreneurs"
MEETING_BOOKINGS = "meeting_bookings"

TABLES = (ENTREPRENEURS, PARTICIPANTS, EVENTS, EVENT_ENTREPRENEURS, MEETING_BOOKINGS)

# Filter values: a scalar means equality, a list/tuple/set means membership.
Filters = Mapping[str, Any]
Row = Dict[str, Any]


class TableGateway(Protocol):
    """Protocol describing the table operations the repositories need."""

    def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        order: Optional[str] = None,
        descending: bool = False,
    ) -> List[Row]:
        """Return matching rows, optionally ordered by one column."""

    def insert(self, table: str, row: Row) -> Row:
        """Insert a row and return it as stored (with id and timestamps)."""

    def update(self, table: str, filters: Filters, changes: Row) -> List[Row]:
        """Apply changes to matching rows and return the updated rows."""

    def delete(self, table: str, filters: Filters) -> None:
        """Delete matching rows."""

    def ping(self) -> None:
        """Raise if the database cannot be reached."""


def is_membership(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))
