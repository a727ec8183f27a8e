"""
Infrastructure repositories module.
Contains SQLAlchemy implementations of the time tracking repositories.
"""

from .entry_repository import SQLAlchemyEntryRepository
from .optimized_entry_repository import OptimizedEntryRepository
from .base_repository import SQLAlchemyRepository
from .customer_repository import SQLAlchemyCustomerRepository
from .project_repository import SQLAlchemyProjectRepository
from .activity_repository import SQLAlchemyActivityRepository
from .user_repository import SQLAlchemyUserRepository
from .team_repository import SQLAlchemyTeamRepository
from .contract_repository import SQLAlchemyContractRepository
from .preset_repository import SQLAlchemyPresetRepository
from .holiday_repository import SQLAlchemyHolidayRepository
from .ticket_system_repository import SQLAlchemyTicketSystemRepository

__all__ = [
    "SQLAlchemyEntryRepository",
    "OptimizedEntryRepository",
    "SQLAlchemyRepository",
    "SQLAlchemyCustomerRepository",
    "SQLAlchemyProjectRepository",
    "SQLAlchemyActivityRepository",
    "SQLAlchemyUserRepository",
    "SQLAlchemyTeamRepository",
    "SQLAlchemyContractRepository",
    "SQLAlchemyPresetRepository",
    "SQLAlchemyHolidayRepository",
    "SQLAlchemyTicketSystemRepository",
]
