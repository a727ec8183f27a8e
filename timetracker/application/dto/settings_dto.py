"""
User settings DTO.
"""

from pydantic import Field, validator

from timetracker.config import settings

from .base_dto import RequestDTO

SUPPORTED_LOCALES = ("de", "en", "es", "fr", "ru")


class SettingsSaveRequestDTO(RequestDTO):
    """DTO for the personal settings of the tracking frontend."""

    show_empty_line: bool = Field(default=False)
    suggest_time: bool = Field(default=False)
    show_future: bool = Field(default=False)
    locale: str = Field(default_factory=lambda: settings.default_locale)

    @validator('show_empty_line', 'suggest_time', 'show_future', pre=True)
    def validate_flag(cls, v):
        if v in (None, ""):
            return False
        if isinstance(v, str) and v.isdigit():
            return int(v) > 0
        return v

    @validator('locale', pre=True)
    def normalize_locale(cls, v):
        """Unknown locales fall back to the configured default."""
        locale = str(v or "").strip().lower()[:2]
        return locale if locale in SUPPORTED_LOCALES else settings.default_locale
