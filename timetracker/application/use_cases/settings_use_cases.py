"""
Personal settings and CSV export of the current user.
"""

import csv
import io
import logging
from dataclasses import dataclass
from typing import Any, Dict

from timetracker.application.dto.settings_dto import SettingsSaveRequestDTO
from timetracker.infrastructure.db.models import UserModel
from timetracker.infrastructure.repositories import SQLAlchemyEntryRepository, SQLAlchemyUserRepository
from .base_use_case import CommandUseCase, QueryUseCase

logger = logging.getLogger(__name__)

EXPORT_DAYS = 10000
CSV_BOM = "\ufeff"
CSV_COLUMNS = (
    "Datum", "Start", "Ende", "Kunde", "Projekt", "Tätigkeit",
    "Beschreibung", "Ticket", "Dauer", "Benutzer",
)


@dataclass
class CsvExport:
    """Rendered CSV document."""
    filename: str
    content: str


def settings_to_array(user: UserModel) -> Dict[str, Any]:
    return {
        "show_empty_line": bool(user.show_empty_line),
        "suggest_time": bool(user.suggest_time),
        "show_future": bool(user.show_future),
        "user_name": user.username,
        "type": user.type.value if hasattr(user.type, "value") else user.type,
        "locale": user.locale,
    }


class SaveSettingsUseCase(CommandUseCase):
    """Store the frontend flags and locale of the current user."""

    def __init__(self, user_repository: SQLAlchemyUserRepository):
        super().__init__()
        self.user_repository = user_repository

    async def execute(self, user: UserModel, request: SettingsSaveRequestDTO) -> Dict[str, Any]:
        user.show_empty_line = request.show_empty_line
        user.suggest_time = request.suggest_time
        user.show_future = request.show_future
        user.locale = request.locale
        self.user_repository.save(user)

        logger.info(f"Settings of user {user.id} saved")
        return {
            "success": True,
            "settings": settings_to_array(user),
            "locale": user.locale,
            "message": "The configuration has been successfully saved.",
        }


class ExportEntriesUseCase(QueryUseCase):
    """Export the entries of the last working days as semicolon separated CSV."""

    def __init__(self, entry_repository: SQLAlchemyEntryRepository):
        super().__init__()
        self.entry_repository = entry_repository

    async def execute(self, user: UserModel, days: int = EXPORT_DAYS) -> CsvExport:
        entries = self.entry_repository.find_by_recent_days_of_user(user.id, days)

        buffer = io.StringIO()
        writer = csv.writer(buffer, delimiter=";", quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writerow(CSV_COLUMNS)
        for entry in entries:
            customer = entry.effective_customer
            writer.writerow((
                entry.day.strftime("%d.%m.%Y"),
                entry.start.strftime("%H:%M"),
                entry.end.strftime("%H:%M"),
                customer.name if customer else "",
                entry.project.name if entry.project else "",
                entry.activity.name if entry.activity else "",
                entry.description or "",
                entry.ticket or "",
                entry.duration or 0,
                entry.user.username if entry.user else "",
            ))

        filename = user.username.replace(" ", "-").lower() + ".csv"
        logger.info(f"Exported {len(entries)} entries of user {user.id}")
        return CsvExport(filename=filename, content=CSV_BOM + buffer.getvalue())
