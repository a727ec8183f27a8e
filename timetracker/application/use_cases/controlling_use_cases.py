"""
Controlling export.
The month report of one or all users as an Excel workbook, one sheet with the
entries and one with booked hours, holidays and sick days per user.
"""

import io
import logging
from dataclasses import dataclass
from typing import Dict, List

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.worksheet.worksheet import Worksheet

from timetracker.application.dto.controlling_dto import ControllingExportRequestDTO
from timetracker.domain.models.enums import UserType
from timetracker.infrastructure.db.models import EntryModel, UserModel
from timetracker.infrastructure.repositories import SQLAlchemyEntryRepository, SQLAlchemyUserRepository
from .base_use_case import QueryUseCase

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

ENTRY_SHEET = "ZE"
STATS_SHEET = "Statistik"
ENTRY_COLUMNS = (
    "Datum", "Start", "Ende", "Kunde", "Projekt", "Tätigkeit",
    "Beschreibung", "Ticket", "Zeit", "Kürzel",
)
STATS_COLUMNS = ("Kürzel", "Monat", "", "Stunden", "Urlaub", "Krank")
FIRST_ENTRY_ROW = 3
# Rows the SUMIF of the statistics sheet looks at
SUMIF_ROWS = 5000


@dataclass
class XlsxExport:
    """Rendered workbook."""
    filename: str
    content: bytes


def export_filename(year: int, month: int, username: str) -> str:
    return f"{year}_{month:02d}_{username.replace(' ', '-')}".lower() + ".xlsx"


class ExportControllingUseCase(QueryUseCase):
    """Build the controlling workbook for a month or a whole year."""

    def __init__(self, entry_repository: SQLAlchemyEntryRepository, user_repository: SQLAlchemyUserRepository):
        super().__init__()
        self.entry_repository = entry_repository
        self.user_repository = user_repository

    def _entries(self, request: ControllingExportRequestDTO) -> List[EntryModel]:
        entries = self.entry_repository.find_by_date(
            request.userid or None,
            request.year,
            request.month or None,
            project_id=request.project,
            customer_id=request.customer,
            sort=(("day", "DESC"), ("start", "DESC")),
        )
        # Stable, so every user's entries stay newest first
        return sorted(entries, key=lambda entry: entry.user.username if entry.user else "")

    async def execute(self, user: UserModel, request: ControllingExportRequestDTO) -> XlsxExport:
        """Developers only ever export their own entries."""
        self._start()
        if UserType(user.type) == UserType.DEV:
            request = request.model_copy(update={"userid": user.id})
        entries = self._entries(request)

        workbook = Workbook()
        entry_sheet = workbook.active
        entry_sheet.title = ENTRY_SHEET
        stats = self._write_entries(entry_sheet, request, entries)
        self._write_stats(workbook.create_sheet(STATS_SHEET), request, stats)

        buffer = io.BytesIO()
        workbook.save(buffer)

        exported = self.user_repository.find_by_id(request.userid) if request.userid else None
        filename = export_filename(request.year, request.month, exported.username if exported else "")

        self._finish()
        logger.info(f"Controlling export {filename} with {len(entries)} entries")
        return XlsxExport(filename=filename, content=buffer.getvalue())

    @staticmethod
    def _heading(sheet: Worksheet, row: int, titles) -> None:
        for column, title in enumerate(titles, start=1):
            cell = sheet.cell(row=row, column=column, value=title)
            cell.font = Font(bold=True)

    def _write_entries(
        self,
        sheet: Worksheet,
        request: ControllingExportRequestDTO,
        entries: List[EntryModel],
    ) -> Dict[str, Dict[str, int]]:
        """Fill the entry sheet, returns holidays and sick days per user abbreviation."""
        period = f"{request.year}-{request.month:02d}" if request.month else str(request.year)
        sheet.cell(row=1, column=1, value=f"Zeiterfassung {period}").font = Font(bold=True)
        self._heading(sheet, 2, ENTRY_COLUMNS)

        stats: Dict[str, Dict[str, int]] = {}
        for row, entry in enumerate(entries, start=FIRST_ENTRY_ROW):
            abbr = entry.user.abbr if entry.user else ""
            user_stats = stats.setdefault(abbr, {"holidays": 0, "sickdays": 0})
            activity = entry.activity
            if activity is not None:
                if activity.is_holiday:
                    user_stats["holidays"] += 1
                if activity.is_sick:
                    user_stats["sickdays"] += 1

            customer = entry.effective_customer
            sheet.cell(row=row, column=1, value=entry.day).number_format = "YYYY-MM-DD"
            sheet.cell(row=row, column=2, value=entry.start).number_format = "HH:MM"
            sheet.cell(row=row, column=3, value=entry.end).number_format = "HH:MM"
            sheet.cell(row=row, column=4, value=customer.name if customer else "")
            sheet.cell(row=row, column=5, value=entry.project.name if entry.project else "")
            sheet.cell(row=row, column=6, value=activity.name if activity else " ")
            sheet.cell(row=row, column=7, value=entry.description or "")
            sheet.cell(row=row, column=8, value=entry.ticket or "")
            sheet.cell(row=row, column=9, value=f"=C{row}-B{row}").number_format = "HH:MM"
            sheet.cell(row=row, column=10, value=abbr)
        return stats

    def _write_stats(
        self,
        sheet: Worksheet,
        request: ControllingExportRequestDTO,
        stats: Dict[str, Dict[str, int]],
    ) -> None:
        self._heading(sheet, 1, STATS_COLUMNS)
        for row, abbr in enumerate(sorted(stats), start=2):
            user_stats = stats[abbr]
            sheet.cell(row=row, column=1, value=abbr)
            sheet.cell(row=row, column=2, value=request.month)
            hours = sheet.cell(
                row=row,
                column=4,
                value=f"=SUMIF({ENTRY_SHEET}!$J$1:$J${SUMIF_ROWS},A{row},{ENTRY_SHEET}!$I$1:$I${SUMIF_ROWS})",
            )
            hours.number_format = "[HH]:MM"
            if user_stats["holidays"]:
                sheet.cell(row=row, column=5, value=user_stats["holidays"])
            if user_stats["sickdays"]:
                sheet.cell(row=row, column=6, value=user_stats["sickdays"])
