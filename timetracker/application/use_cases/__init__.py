"""
Application use cases.
"""

from .base_use_case import BaseUseCase, CommandUseCase, QueryUseCase, AuthorizedUseCase
from .entry_use_cases import (
    calculate_classes,
    SaveEntryUseCase,
    DeleteEntryUseCase,
    BulkEntryUseCase,
    GetDataUseCase,
    GetSummaryUseCase,
    GetTimeSummaryUseCase,
    GetTicketTimeSummaryUseCase,
)
from .admin_use_cases import (
    SaveCustomerUseCase,
    SaveProjectUseCase,
    SaveActivityUseCase,
    SaveTeamUseCase,
    SaveUserUseCase,
    SaveContractUseCase,
    SavePresetUseCase,
    SaveTicketSystemUseCase,
    DeleteRecordUseCase,
    SyncJiraEntriesUseCase,
)
from .interpretation_use_cases import (
    GroupEntriesUseCase,
    GetLastEntriesUseCase,
    GetAllEntriesUseCase,
)
from .settings_use_cases import SaveSettingsUseCase, ExportEntriesUseCase, CsvExport
from .controlling_use_cases import ExportControllingUseCase, XlsxExport

__all__ = [
    "BaseUseCase",
    "CommandUseCase",
    "QueryUseCase",
    "AuthorizedUseCase",
    "calculate_classes",
    "SaveEntryUseCase",
    "DeleteEntryUseCase",
    "BulkEntryUseCase",
    "GetDataUseCase",
    "GetSummaryUseCase",
    "GetTimeSummaryUseCase",
    "GetTicketTimeSummaryUseCase",
    "SaveCustomerUseCase",
    "SaveProjectUseCase",
    "SaveActivityUseCase",
    "SaveTeamUseCase",
    "SaveUserUseCase",
    "SaveContractUseCase",
    "SavePresetUseCase",
    "SaveTicketSystemUseCase",
    "DeleteRecordUseCase",
    "SyncJiraEntriesUseCase",
    "GroupEntriesUseCase",
    "GetLastEntriesUseCase",
    "GetAllEntriesUseCase",
    "SaveSettingsUseCase",
    "ExportEntriesUseCase",
    "CsvExport",
    "ExportControllingUseCase",
    "XlsxExport",
]
