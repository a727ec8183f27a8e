"""
Application DTOs module.
"""

from .base_dto import IdRequestDTO, SaveRequestDTO
from .entry_dto import EntrySaveRequestDTO, BulkEntryRequestDTO
from .settings_dto import SettingsSaveRequestDTO
from .admin_dto import (
    CustomerSaveRequestDTO,
    ProjectSaveRequestDTO,
    ActivitySaveRequestDTO,
    TeamSaveRequestDTO,
    UserSaveRequestDTO,
    ContractSaveRequestDTO,
    PresetSaveRequestDTO,
    TicketSystemSaveRequestDTO,
)
from .interpretation_dto import InterpretationFiltersDTO
from .controlling_dto import ControllingExportRequestDTO

__all__ = [
    "IdRequestDTO",
    "SaveRequestDTO",
    "EntrySaveRequestDTO",
    "BulkEntryRequestDTO",
    "SettingsSaveRequestDTO",
    "CustomerSaveRequestDTO",
    "ProjectSaveRequestDTO",
    "ActivitySaveRequestDTO",
    "TeamSaveRequestDTO",
    "UserSaveRequestDTO",
    "ContractSaveRequestDTO",
    "PresetSaveRequestDTO",
    "TicketSystemSaveRequestDTO",
    "InterpretationFiltersDTO",
    "ControllingExportRequestDTO",
]
