"""
Enumerations used by the time tracking domain.
"""

from enum import Enum, IntEnum, IntFlag


class UserType(str, Enum):
    """Role of a user. PL (project lead) and ADMIN may use the admin panels."""
    USER = "USER"
    DEV = "DEV"
    PL = "PL"
    ADMIN = "ADMIN"

    @property
    def is_project_lead(self) -> bool:
        return self in (UserType.PL, UserType.ADMIN)


class TicketSystemType(str, Enum):
    JIRA = "JIRA"
    OTRS = "OTRS"
    FRESHDESK = "FRESHDESK"


class BillingType(IntEnum):
    NONE = 0
    TIME_AND_MATERIAL = 1
    FIXED_PRICE = 2
    MIXED = 3


class EntryClass(IntFlag):
    """Display flags of an entry, combined per day."""
    DEFAULT = 0
    PLAIN = 1
    DAYBREAK = 2
    PAUSE = 4
    OVERLAP = 8


class Period(IntEnum):
    DAY = 1
    WEEK = 2
    MONTH = 3
