"""
Unit tests for the personal settings and the CSV export.
"""

from datetime import date

import pytest

from timetracker.application.dto.settings_dto import SettingsSaveRequestDTO
from timetracker.application.use_cases.settings_use_cases import (
    CSV_BOM,
    ExportEntriesUseCase,
    SaveSettingsUseCase,
)
from timetracker.domain.models.enums import UserType
from timetracker.infrastructure.db.models import UserModel
from timetracker.infrastructure.repositories import SQLAlchemyEntryRepository, SQLAlchemyUserRepository

HEADER = "Datum;Start;Ende;Kunde;Projekt;Tätigkeit;Beschreibung;Ticket;Dauer;Benutzer"


class TestSaveSettingsUseCase:
    """Test cases for SaveSettingsUseCase."""

    @pytest.fixture(autouse=True)
    def setup(self, session, seed):
        self.user = seed.developer
        self.use_case = SaveSettingsUseCase(SQLAlchemyUserRepository(session))

    @pytest.mark.asyncio
    async def test_save(self):
        result = await self.use_case.execute(self.user, SettingsSaveRequestDTO(
            show_empty_line="1", suggest_time="0", show_future=False, locale="EN"
        ))

        assert result["success"] is True
        assert result["locale"] == "en"
        assert result["message"] == "The configuration has been successfully saved."
        assert result["settings"] == {
            "show_empty_line": True,
            "suggest_time": False,
            "show_future": False,
            "user_name": "developer",
            "type": "DEV",
            "locale": "en",
        }

    @pytest.mark.asyncio
    async def test_unknown_locale_falls_back_to_german(self):
        result = await self.use_case.execute(self.user, SettingsSaveRequestDTO(locale="xx"))
        assert result["locale"] == "de"


class TestExportEntriesUseCase:
    """Test cases for the CSV export."""

    @pytest.fixture(autouse=True)
    def setup(self, session, seed, clock, make_entry):
        self.session = session
        self.seed = seed
        self.make_entry = make_entry
        self.use_case = ExportEntriesUseCase(SQLAlchemyEntryRepository(session, clock))

    @pytest.mark.asyncio
    async def test_export(self):
        """Test the header and one line per entry, oldest first."""
        self.make_entry(start="08:00", end="09:00", ticket="WEB-1", description="Release")
        self.make_entry(day=date(2024, 3, 8), start="10:00", end="10:45", description="Fix; deploy")
        self.make_entry(user=self.seed.lead)

        export = await self.use_case.execute(self.seed.developer)

        assert export.filename == "developer.csv"
        assert export.content.startswith(CSV_BOM)
        assert export.content[len(CSV_BOM):].splitlines() == [
            HEADER,
            '08.03.2024;10:00;10:45;Acme;Website;Development;"Fix; deploy";;45;developer',
            "11.03.2024;08:00;09:00;Acme;Website;Development;Release;WEB-1;60;developer",
        ]

    @pytest.mark.asyncio
    async def test_filename_from_username(self):
        user = UserModel(username="Jane Doe", abbr="JDO", type=UserType.DEV)
        self.session.add(user)
        self.session.commit()

        export = await self.use_case.execute(user)

        assert export.filename == "jane-doe.csv"
        assert export.content == CSV_BOM + HEADER + "\n"
