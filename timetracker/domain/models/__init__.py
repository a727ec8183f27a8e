"""
Domain models for the time tracker.
This module exports domain exceptions and enumerations.
"""

from .base import (
    DomainException,
    ValidationError,
    BusinessRuleViolation,
    EntityNotFoundError,
    DuplicateEntityError,
)
from .enums import UserType, TicketSystemType, BillingType, EntryClass, Period

__all__ = [
    "DomainException",
    "ValidationError",
    "BusinessRuleViolation",
    "EntityNotFoundError",
    "DuplicateEntityError",
    "UserType",
    "TicketSystemType",
    "BillingType",
    "EntryClass",
    "Period",
]
