"""
Admin DTOs for the application layer.
Master data save requests of the administration frontend.
"""

from datetime import date
from typing import List, Optional

from pydantic import AliasChoices, Field, validator

from timetracker.domain.models.enums import BillingType, TicketSystemType, UserType
from .base_dto import SaveRequestDTO, parse_day


def _optional_id(v):
    if v in (None, "", 0, "0"):
        return None
    return v


def _id_list(v):
    if v in (None, ""):
        return []
    if not isinstance(v, (list, tuple)):
        v = [v]
    return [int(item) for item in v if item not in (None, "", 0, "0")]


def _flag(v):
    if v in (None, ""):
        return False
    if isinstance(v, str) and v.isdigit():
        return int(v) > 0
    if isinstance(v, str) and v.lower() in ("true", "false", "on", "off"):
        return v.lower() in ("true", "on")
    return v


class CustomerSaveRequestDTO(SaveRequestDTO):
    """DTO for customer save requests."""

    name: str = Field(default="", description="Customer name")
    active: bool = Field(default=False)
    is_global: bool = Field(default=False, validation_alias=AliasChoices("global", "is_global"))
    teams: List[int] = Field(default_factory=list, description="Team IDs")

    parse_flags = validator('active', 'is_global', pre=True, allow_reuse=True)(_flag)
    parse_teams = validator('teams', pre=True, allow_reuse=True)(_id_list)

    @validator('name', pre=True)
    def strip_name(cls, v):
        return str(v or "").strip()


class ProjectSaveRequestDTO(SaveRequestDTO):
    """DTO for project save requests."""

    name: str = Field(default="", description="Project name")
    customer: Optional[int] = Field(default=None, description="Customer ID")
    jira_id: str = Field(default="", validation_alias=AliasChoices("jiraId", "jira_id"))
    jira_ticket: str = Field(default="", validation_alias=AliasChoices("jiraTicket", "jira_ticket"))
    active: bool = Field(default=False)
    is_global: bool = Field(default=False, validation_alias=AliasChoices("global", "is_global"))
    estimation: str = Field(default="0m", description="Estimated effort, e.g. 2d 4h")
    billing: BillingType = Field(default=BillingType.NONE)
    cost_center: Optional[str] = Field(default=None, max_length=31)
    offer: Optional[str] = Field(default=None, max_length=31)
    internal_ref: Optional[str] = Field(
        default=None, max_length=31, validation_alias=AliasChoices("internalReference", "internal_ref")
    )
    external_ref: Optional[str] = Field(
        default=None, max_length=31, validation_alias=AliasChoices("externalReference", "external_ref")
    )
    invoice: Optional[str] = Field(default=None, max_length=31)
    project_lead: Optional[int] = Field(default=None)
    technical_lead: Optional[int] = Field(default=None)
    ticket_system: Optional[int] = Field(default=None)
    additional_information_from_external: bool = Field(
        default=False,
        validation_alias=AliasChoices("additionalInformationFromExternal", "additional_information_from_external"),
    )
    internal_jira_ticket_system: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("internalJiraTicketSystem", "internal_jira_ticket_system")
    )
    internal_jira_project_key: str = Field(
        default="", validation_alias=AliasChoices("internalJiraProjectKey", "internal_jira_project_key")
    )

    parse_ids = validator(
        'customer', 'project_lead', 'technical_lead', 'ticket_system', 'internal_jira_ticket_system',
        pre=True, allow_reuse=True,
    )(_optional_id)
    parse_flags = validator('active', 'is_global', 'additional_information_from_external', pre=True, allow_reuse=True)(_flag)

    @validator('name', pre=True)
    def strip_name(cls, v):
        return str(v or "").strip()

    @validator('jira_id', 'jira_ticket', 'internal_jira_project_key', pre=True)
    def uppercase_keys(cls, v):
        return str(v or "").strip().upper()

    @validator('estimation', pre=True)
    def default_estimation(cls, v):
        return str(v).strip() if v not in (None, "") else "0m"

    @validator('billing', pre=True)
    def validate_billing(cls, v):
        return 0 if v in (None, "") else int(v)


class ActivitySaveRequestDTO(SaveRequestDTO):
    """DTO for activity save requests."""

    name: str = Field(default="", description="Activity name")
    needs_ticket: bool = Field(default=False, validation_alias=AliasChoices("needsTicket", "needs_ticket"))
    factor: float = Field(default=1.0, ge=0, description="Factor applied to booked time")

    parse_flags = validator('needs_ticket', pre=True, allow_reuse=True)(_flag)

    @validator('name', pre=True)
    def strip_name(cls, v):
        return str(v or "").strip()

    @validator('factor', pre=True)
    def parse_factor(cls, v):
        if v in (None, ""):
            return 1.0
        return float(str(v).replace(",", "."))


class TeamSaveRequestDTO(SaveRequestDTO):
    """DTO for team save requests."""

    name: str = Field(default="", description="Team name")
    lead_user_id: Optional[int] = Field(default=None, description="Team lead")

    parse_ids = validator('lead_user_id', pre=True, allow_reuse=True)(_optional_id)

    @validator('name', pre=True)
    def strip_name(cls, v):
        return str(v or "").strip()


class UserSaveRequestDTO(SaveRequestDTO):
    """DTO for user save requests."""

    username: str = Field(default="", description="Login name")
    abbr: str = Field(default="", description="Three letter abbreviation")
    type: UserType = Field(default=UserType.DEV)
    locale: str = Field(default="de", max_length=2)
    teams: List[int] = Field(default_factory=list, description="Team IDs")

    parse_teams = validator('teams', pre=True, allow_reuse=True)(_id_list)

    @validator('username', 'abbr', pre=True)
    def strip_text(cls, v):
        return str(v or "").strip()

    @validator('type', pre=True)
    def default_type(cls, v):
        return v or UserType.DEV.value

    @validator('locale', pre=True)
    def default_locale(cls, v):
        return str(v or "de").strip().lower()[:2]


class ContractSaveRequestDTO(SaveRequestDTO):
    """DTO for contract save requests, hours_0 is Sunday."""

    user_id: int = Field(default=0, description="User the contract belongs to")
    start: Optional[date] = Field(default=None)
    end: Optional[date] = Field(default=None)
    hours_0: float = Field(default=0.0, ge=0)
    hours_1: float = Field(default=0.0, ge=0)
    hours_2: float = Field(default=0.0, ge=0)
    hours_3: float = Field(default=0.0, ge=0)
    hours_4: float = Field(default=0.0, ge=0)
    hours_5: float = Field(default=0.0, ge=0)
    hours_6: float = Field(default=0.0, ge=0)

    @validator('user_id', pre=True)
    def validate_user_id(cls, v):
        return 0 if v in (None, "") else v

    @validator('start', 'end', pre=True)
    def validate_day(cls, v):
        return parse_day(v)

    @validator('hours_0', 'hours_1', 'hours_2', 'hours_3', 'hours_4', 'hours_5', 'hours_6', pre=True)
    def parse_hours(cls, v):
        if v in (None, ""):
            return 0.0
        return float(str(v).replace(",", "."))

    @validator('end')
    def validate_end(cls, v, values):
        if v is not None and values.get('start') and v < values['start']:
            raise ValueError('End date has to be greater than the start date.')
        return v


class PresetSaveRequestDTO(SaveRequestDTO):
    """DTO for preset save requests."""

    name: str = Field(default="", description="Preset name")
    customer: Optional[int] = Field(default=None)
    project: Optional[int] = Field(default=None)
    activity: Optional[int] = Field(default=None)
    description: str = Field(default="", max_length=255)

    parse_ids = validator('customer', 'project', 'activity', pre=True, allow_reuse=True)(_optional_id)

    @validator('name', 'description', pre=True)
    def strip_text(cls, v):
        return str(v or "").strip()


class TicketSystemSaveRequestDTO(SaveRequestDTO):
    """DTO for ticket system save requests."""

    name: str = Field(default="", description="Ticket system name")
    type: TicketSystemType = Field(default=TicketSystemType.JIRA)
    book_time: bool = Field(default=False, validation_alias=AliasChoices("bookTime", "book_time"))
    url: str = Field(default="")
    ticket_url: str = Field(default="", validation_alias=AliasChoices("ticketUrl", "ticket_url"))
    login: str = Field(default="")
    password: str = Field(default="")
    public_key: str = Field(default="", validation_alias=AliasChoices("publicKey", "public_key"))
    private_key: str = Field(default="", validation_alias=AliasChoices("privateKey", "private_key"))
    oauth_consumer_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("oauthConsumerKey", "oauth_consumer_key")
    )
    oauth_consumer_secret: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("oauthConsumerSecret", "oauth_consumer_secret")
    )

    parse_flags = validator('book_time', pre=True, allow_reuse=True)(_flag)

    @validator('name', pre=True)
    def strip_name(cls, v):
        return str(v or "").strip()

    @validator('type', pre=True)
    def default_type(cls, v):
        return v or TicketSystemType.JIRA.value
