"""
Base use case classes for the application layer.
Provides common patterns and structure for use case implementations.
"""

import logging
from abc import ABC
from datetime import datetime
from typing import Any, List, Optional

from timetracker.domain.events.base import DomainEvent, publish_event
from timetracker.domain.models.base import BusinessRuleViolation, EntityNotFoundError


logger = logging.getLogger(__name__)


class BaseUseCase(ABC):
    """
    Base class for all use cases.
    Use cases raise domain exceptions, the web layer maps them to responses.
    """

    def __init__(self):
        self.execution_start: Optional[datetime] = None
        self.execution_end: Optional[datetime] = None

    def _start(self) -> None:
        self.execution_start = datetime.now()

    def _finish(self) -> None:
        self.execution_end = datetime.now()
        if self.execution_start is not None:
            elapsed = (self.execution_end - self.execution_start).total_seconds()
            logger.debug(f"{self.__class__.__name__} finished in {elapsed:.3f}s")

    @staticmethod
    def _require(entity: Any, entity_type: str, entity_id: Any, message: str = "No entry for id.") -> Any:
        """Return the entity or raise EntityNotFoundError."""
        if entity is None:
            raise EntityNotFoundError(entity_type, entity_id, message)
        return entity


class QueryUseCase(BaseUseCase):
    """
    Base class for query use cases (read operations).
    """
    pass


class CommandUseCase(BaseUseCase):
    """
    Base class for command use cases (write operations).
    Collects domain events and publishes them once the command succeeded.
    """

    def __init__(self):
        super().__init__()
        self.events: List[DomainEvent] = []

    def record_event(self, event: DomainEvent) -> None:
        self.events.append(event)

    async def _publish_events(self) -> None:
        """Publish collected domain events."""
        events, self.events = self.events, []
        for event in events:
            await publish_event(event)


class AuthorizedUseCase(BaseUseCase):
    """
    Mixin for use cases acting on behalf of the logged in user.
    """

    def __init__(self):
        super().__init__()
        self.current_user = None

    def set_current_user(self, user) -> "AuthorizedUseCase":
        """Set the current user context."""
        self.current_user = user
        return self

    @property
    def current_user_id(self) -> Optional[int]:
        return self.current_user.id if self.current_user is not None else None

    def _require_owner(self, owner_id: Optional[int]) -> None:
        if owner_id is not None and owner_id != self.current_user_id:
            raise BusinessRuleViolation("Entry is already owned by a different user.")
