"""
Unit tests for the controlling export.
"""

import io
from datetime import date

import openpyxl
import pytest

from timetracker.application.dto.controlling_dto import ControllingExportRequestDTO
from timetracker.application.use_cases.controlling_use_cases import ExportControllingUseCase, export_filename
from timetracker.infrastructure.db.models import ActivityModel
from timetracker.infrastructure.repositories import SQLAlchemyEntryRepository, SQLAlchemyUserRepository


def test_export_filename():
    assert export_filename(2024, 3, "Max Muster") == "2024_03_max-muster.xlsx"
    assert export_filename(2024, 0, "") == "2024_00_.xlsx"


class TestExportControllingUseCase:
    """Test cases for the controlling workbook."""

    @pytest.fixture(autouse=True)
    def setup(self, session, seed, clock, make_entry):
        self.seed = seed
        self.use_case = ExportControllingUseCase(
            SQLAlchemyEntryRepository(session, clock), SQLAlchemyUserRepository(session)
        )
        holiday = ActivityModel(name="Urlaub")
        sick = ActivityModel(name="Krank")
        session.add_all([holiday, sick])
        session.commit()

        make_entry(day=date(2024, 3, 11), description="monday")
        make_entry(day=date(2024, 3, 12), description="tuesday")
        make_entry(day=date(2024, 3, 4), project=seed.internal, activity=holiday, description="off")
        make_entry(day=date(2024, 3, 5), project=seed.internal, activity=sick, description="ill")
        make_entry(user=seed.lead, day=date(2024, 3, 11), start="11:00", end="12:00", description="review")
        make_entry(day=date(2024, 1, 15), description="january")

    async def _export(self, user, **params):
        export = await self.use_case.execute(user, ControllingExportRequestDTO(**params))
        return export, openpyxl.load_workbook(io.BytesIO(export.content))

    @pytest.mark.asyncio
    async def test_entries_by_user_newest_first(self):
        export, workbook = await self._export(self.seed.lead, year=2024, month=3)
        sheet = workbook["ZE"]

        rows = [(sheet.cell(row=row, column=10).value, sheet.cell(row=row, column=7).value) for row in range(3, 8)]
        assert rows == [
            ("DEV", "tuesday"),
            ("DEV", "monday"),
            ("DEV", "ill"),
            ("DEV", "off"),
            ("LEA", "review"),
        ]
        assert sheet["I7"].value == "=C7-B7"
        assert sheet["A8"].value is None
        assert export.filename == "2024_03_.xlsx"

    @pytest.mark.asyncio
    async def test_holidays_and_sick_days(self):
        """Test the statistics row per user abbreviation."""
        _, workbook = await self._export(self.seed.lead, year=2024, month=3)
        stats = workbook["Statistik"]

        assert [stats.cell(row=1, column=column).value for column in (1, 2, 4, 5, 6)] == [
            "Kürzel", "Monat", "Stunden", "Urlaub", "Krank",
        ]
        assert [stats.cell(row=2, column=column).value for column in (1, 2, 5, 6)] == ["DEV", 3, 1, 1]
        assert [stats.cell(row=3, column=column).value for column in (1, 5, 6)] == ["LEA", None, None]
        assert stats["D3"].number_format == "[HH]:MM"

    @pytest.mark.asyncio
    async def test_filtered_by_user_and_project(self):
        export, workbook = await self._export(
            self.seed.lead, year=2024, month=3, userid=self.seed.developer.id, project=self.seed.internal.id
        )
        sheet = workbook["ZE"]

        assert [sheet.cell(row=row, column=7).value for row in (3, 4, 5)] == ["ill", "off", None]
        assert export.filename == "2024_03_developer.xlsx"

    @pytest.mark.asyncio
    async def test_developers_export_their_own_entries(self):
        export, workbook = await self._export(self.seed.developer, year=2024, month=3, userid=self.seed.lead.id)

        assert export.filename == "2024_03_developer.xlsx"
        assert "LEA" not in [cell.value for cell in workbook["ZE"]["J"]]

    @pytest.mark.asyncio
    async def test_whole_year(self):
        _, workbook = await self._export(self.seed.developer, year=2024)
        sheet = workbook["ZE"]

        assert sheet["A1"].value == "Zeiterfassung 2024"
        assert sheet["G7"].value == "january"
