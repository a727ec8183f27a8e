"""
Domain events related to time entries.
Events carry the entry row itself so handlers can reach its project,
ticket system and session without reloading it.
"""

from typing import Dict, Any, Optional
from dataclasses import dataclass, field

from .base import DomainEvent


@dataclass
class EntryEvent(DomainEvent):
    """Common payload of the entry events."""

    entry: Any = None
    user_id: Optional[int] = None

    @property
    def entry_id(self) -> Optional[int]:
        return getattr(self.entry, "id", None)

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "entry_id": self.entry_id,
            "user_id": self.user_id,
            "ticket": getattr(self.entry, "ticket", None),
        }


@dataclass
class EntryCreated(EntryEvent):
    """Event fired when a new entry was booked."""


@dataclass
class EntryUpdated(EntryEvent):
    """Event fired when an existing entry was changed."""

    changes: Dict[str, Any] = field(default_factory=dict)

    def _get_event_data(self) -> Dict[str, Any]:
        data = super()._get_event_data()
        data["changes"] = {key: str(value) for key, value in self.changes.items()}
        return data


@dataclass
class EntryDeleted(EntryEvent):
    """Event fired right before an entry is removed."""


@dataclass
class EntrySynced(EntryEvent):
    """Event fired after the work log of an entry was written to JIRA."""


@dataclass
class EntrySyncFailed(EntryEvent):
    """Event fired when writing the work log of an entry failed."""

    error: str = ""

    def _get_event_data(self) -> Dict[str, Any]:
        data = super()._get_event_data()
        data["error"] = self.error
        return data
