"""
SQLAlchemy models for the database.
Maps the time tracking tables.
"""

from sqlalchemy import (
    Column, Integer, SmallInteger, String, Text, Boolean, Float,
    Date, Time, ForeignKey, Enum as SQLEnum, Index, Table
)
from sqlalchemy.orm import relationship

from timetracker.domain.models.enums import UserType, TicketSystemType, BillingType, EntryClass

from .database import Base


# Association tables for many-to-many relationships
teams_users = Table(
    'teams_users',
    Base.metadata,
    Column('team_id', Integer, ForeignKey('teams.id', ondelete='CASCADE'), primary_key=True),
    Column('user_id', Integer, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
)

teams_customers = Table(
    'teams_customers',
    Base.metadata,
    Column('team_id', Integer, ForeignKey('teams.id', ondelete='CASCADE'), primary_key=True),
    Column('customer_id', Integer, ForeignKey('customers.id', ondelete='CASCADE'), primary_key=True),
)


class UserModel(Base):
    """User table"""
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True)
    abbr = Column(String(3), nullable=False, default='')
    type = Column(SQLEnum(UserType, native_enum=False, length=5), nullable=False, default=UserType.DEV)
    show_empty_line = Column(Boolean, nullable=False, default=False)
    suggest_time = Column(Boolean, nullable=False, default=True)
    show_future = Column(Boolean, nullable=False, default=True)
    locale = Column(String(2), nullable=False, default='de')

    # Relationships
    teams = relationship("TeamModel", secondary=teams_users, back_populates="users")
    entries = relationship("EntryModel", back_populates="user")
    contracts = relationship("ContractModel", back_populates="user")
    ticket_system_tokens = relationship(
        "UserTicketSystemModel", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def is_project_lead(self) -> bool:
        return UserType(self.type).is_project_lead


class TeamModel(Base):
    """Team table"""
    __tablename__ = 'teams'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(31), nullable=False, unique=True)
    lead_user_id = Column(Integer, ForeignKey('users.id'))

    lead_user = relationship("UserModel", foreign_keys=[lead_user_id])
    users = relationship("UserModel", secondary=teams_users, back_populates="teams")
    customers = relationship("CustomerModel", secondary=teams_customers, back_populates="teams")


class CustomerModel(Base):
    """Customer table"""
    __tablename__ = 'customers'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)
    active = Column(Boolean, nullable=False, default=True)
    is_global = Column('global', Boolean, nullable=False, default=False)

    teams = relationship("TeamModel", secondary=teams_customers, back_populates="customers")
    projects = relationship("ProjectModel", back_populates="customer")
    entries = relationship("EntryModel", back_populates="customer")


class TicketSystemModel(Base):
    """Ticket system table"""
    __tablename__ = 'ticket_systems'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(31), nullable=False, unique=True)
    type = Column(
        SQLEnum(TicketSystemType, native_enum=False, length=15),
        nullable=False,
        default=TicketSystemType.JIRA
    )
    book_time = Column(Boolean, nullable=False, default=False)
    url = Column(String(255), nullable=False, default='')
    ticketurl = Column(String(255), nullable=False, default='')
    login = Column(String(63))
    password = Column(String(63))
    public_key = Column(Text)
    private_key = Column(Text)
    oauth_consumer_key = Column(String(255))
    oauth_consumer_secret = Column(String(255))

    projects = relationship("ProjectModel", back_populates="ticket_system")

    def ticket_url_for(self, ticket: str) -> str:
        """URL of a single ticket, the ticketurl has a %s placeholder."""
        if not self.ticketurl or not ticket:
            return ''
        return self.ticketurl.replace('%s', ticket)


class ProjectModel(Base):
    """Project table"""
    __tablename__ = 'projects'

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey('customers.id'))
    name = Column(String(127), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    is_global = Column('global', Boolean, nullable=False, default=False)
    jira_id = Column(String(63))
    jira_ticket = Column(String(255))
    subtickets = Column(Text)
    ticket_system_id = Column('ticket_system', Integer, ForeignKey('ticket_systems.id'))
    estimation = Column(Integer, nullable=False, default=0)
    offer = Column(String(31))
    billing = Column(SmallInteger, nullable=False, default=int(BillingType.NONE))
    cost_center = Column(String(31))
    internal_ref = Column(String(31))
    external_ref = Column(String(31))
    project_lead_id = Column(Integer, ForeignKey('users.id'))
    technical_lead_id = Column(Integer, ForeignKey('users.id'))
    invoice = Column(String(31))
    additional_information_from_external = Column(Boolean, nullable=False, default=False)
    internal_jira_project_key = Column(String(255))
    internal_jira_ticket_system = Column(Integer)

    customer = relationship("CustomerModel", back_populates="projects")
    ticket_system = relationship("TicketSystemModel", back_populates="projects")
    project_lead = relationship("UserModel", foreign_keys=[project_lead_id])
    technical_lead = relationship("UserModel", foreign_keys=[technical_lead_id])
    entries = relationship("EntryModel", back_populates="project")

    __table_args__ = (
        Index('idx_projects_customer', 'customer_id'),
    )

    @property
    def has_internal_jira_project_key(self) -> bool:
        return bool(self.internal_jira_project_key) and bool(self.internal_jira_ticket_system)

    def jira_prefixes(self) -> list:
        """Ticket prefixes configured for this project, jira_id may hold a comma separated list."""
        if not self.jira_id:
            return []
        return [prefix.strip() for prefix in self.jira_id.replace(' ', ',').split(',') if prefix.strip()]


class ActivityModel(Base):
    """Activity table"""
    __tablename__ = 'activities'

    SICK = "Krank"
    HOLIDAY = "Urlaub"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True)
    needs_ticket = Column(Boolean, nullable=False, default=False)
    factor = Column(Float, nullable=False, default=1.0)

    entries = relationship("EntryModel", back_populates="activity")

    @property
    def is_sick(self) -> bool:
        return self.name == self.SICK

    @property
    def is_holiday(self) -> bool:
        return self.name == self.HOLIDAY


class AccountModel(Base):
    """Account table"""
    __tablename__ = 'accounts'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)


class EntryModel(Base):
    """Time entry table"""
    __tablename__ = 'entries'

    id = Column(Integer, primary_key=True, autoincrement=True)
    day = Column(Date, nullable=False)
    start = Column(Time, nullable=False)
    end = Column(Time, nullable=False)
    duration = Column(Integer, nullable=False, default=0)
    ticket = Column(String(32), nullable=False, default='')
    description = Column(String(255), nullable=False, default='')
    entry_class = Column('class', SmallInteger, nullable=False, default=int(EntryClass.PLAIN))
    worklog_id = Column(Integer)
    synced_to_ticketsystem = Column(Boolean, nullable=False, default=False)
    internal_jira_ticket_original_key = Column(String(50))

    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    customer_id = Column(Integer, ForeignKey('customers.id'))
    project_id = Column(Integer, ForeignKey('projects.id'))
    activity_id = Column(Integer, ForeignKey('activities.id'))
    account_id = Column(Integer, ForeignKey('accounts.id'))

    user = relationship("UserModel", back_populates="entries")
    customer = relationship("CustomerModel", back_populates="entries")
    project = relationship("ProjectModel", back_populates="entries")
    activity = relationship("ActivityModel", back_populates="entries")
    account = relationship("AccountModel")

    __table_args__ = (
        Index('idx_entries_user_day', 'user_id', 'day'),
        Index('idx_entries_ticket', 'ticket'),
        Index('idx_entries_customer', 'customer_id'),
        Index('idx_entries_project', 'project_id'),
    )

    def calculate_duration(self) -> int:
        """Set duration in minutes from start and end."""
        if self.start is None or self.end is None:
            self.duration = 0
        else:
            start_minutes = self.start.hour * 60 + self.start.minute
            end_minutes = self.end.hour * 60 + self.end.minute
            self.duration = max(end_minutes - start_minutes, 0)
        return self.duration

    def add_class(self, entry_class: EntryClass) -> None:
        self.entry_class = int(EntryClass(self.entry_class or 0) | entry_class)

    @property
    def effective_customer(self):
        """Customer of the entry, falling back to the project's customer."""
        if self.customer is not None:
            return self.customer
        if self.project is not None:
            return self.project.customer
        return None


class ContractModel(Base):
    """Contract table, hours_0 is Sunday"""
    __tablename__ = 'contracts'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    start = Column(Date, nullable=False)
    end = Column(Date)
    hours_0 = Column(Float, nullable=False, default=0.0)
    hours_1 = Column(Float, nullable=False, default=0.0)
    hours_2 = Column(Float, nullable=False, default=0.0)
    hours_3 = Column(Float, nullable=False, default=0.0)
    hours_4 = Column(Float, nullable=False, default=0.0)
    hours_5 = Column(Float, nullable=False, default=0.0)
    hours_6 = Column(Float, nullable=False, default=0.0)

    user = relationship("UserModel", back_populates="contracts")

    def hours_for(self, day) -> float:
        """Contract hours for the weekday of the given date."""
        return getattr(self, f"hours_{day.isoweekday() % 7}")


class PresetModel(Base):
    """Preset table"""
    __tablename__ = 'presets'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    customer_id = Column(Integer, ForeignKey('customers.id'))
    project_id = Column(Integer, ForeignKey('projects.id'))
    activity_id = Column(Integer, ForeignKey('activities.id'))
    description = Column(String(255), nullable=False, default='')

    customer = relationship("CustomerModel")
    project = relationship("ProjectModel")
    activity = relationship("ActivityModel")


class HolidayModel(Base):
    """Holiday table"""
    __tablename__ = 'holidays'

    day = Column(Date, primary_key=True)
    name = Column(String(255), nullable=False)


class UserTicketSystemModel(Base):
    """Per user credentials for a ticket system"""
    __tablename__ = 'users_ticket_systems'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    ticket_system_id = Column(Integer, ForeignKey('ticket_systems.id', ondelete='CASCADE'), nullable=False)
    accesstoken = Column(String(50))
    tokensecret = Column(String(50))
    avoidconnection = Column(Boolean, nullable=False, default=False)

    user = relationship("UserModel", back_populates="ticket_system_tokens")
    ticket_system = relationship("TicketSystemModel")


def create_all_tables(engine):
    """Create all tables in the database"""
    Base.metadata.create_all(bind=engine)


def drop_all_tables(engine):
    """Drop all tables in the database"""
    Base.metadata.drop_all(bind=engine)
