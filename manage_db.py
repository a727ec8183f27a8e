#!/usr/bin/env python3
"""
Database management script for the time tracker.
Handles table creation, seeding of a minimal data set, token issuing and
the subticket sync of JIRA projects.
"""

import sys
from pathlib import Path

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent))

from timetracker.domain.models.base import DomainException
from timetracker.domain.models.enums import UserType
from timetracker.infrastructure.auth.jwt_handler import JWTHandler
from timetracker.infrastructure.db.database import SessionLocal, engine
from timetracker.infrastructure.db.models import (
    ActivityModel,
    CustomerModel,
    ProjectModel,
    TeamModel,
    UserModel,
    create_all_tables,
    drop_all_tables,
)
from timetracker.infrastructure.integrations.jira import JiraApiException, SubticketSyncService


def create_tables():
    """Create all tables that do not exist yet."""
    print("Creating tables...")
    create_all_tables(engine)


def drop_tables():
    """Drop all tables - WARNING: This will drop all data!"""
    response = input("This will drop ALL data. Type 'yes' to continue: ")
    if response.lower() == 'yes':
        print("Dropping tables...")
        drop_all_tables(engine)
    else:
        print("Drop cancelled.")


def reset_database():
    """Reset database - WARNING: This will drop all data!"""
    response = input("This will drop ALL data. Type 'yes' to continue: ")
    if response.lower() == 'yes':
        print("Resetting database...")
        drop_all_tables(engine)
        create_all_tables(engine)
    else:
        print("Database reset cancelled.")


def seed_database(username: str = "admin"):
    """Create an admin user with a team, a global customer, a project and default activities."""
    session = SessionLocal()
    try:
        if session.query(UserModel).filter(UserModel.username == username).first():
            print(f"User {username} already exists, nothing to seed.")
            return

        admin = UserModel(username=username, abbr=username[:3].upper(), type=UserType.ADMIN)
        team = TeamModel(name="Default", lead_user=admin)
        admin.teams.append(team)

        customer = CustomerModel(name="Internal", active=True, is_global=True)
        customer.teams.append(team)
        project = ProjectModel(name="Administration", customer=customer, active=True, is_global=True)

        activities = [
            ActivityModel(name=name, needs_ticket=needs_ticket)
            for name, needs_ticket in (
                ("Development", False),
                ("Meeting", False),
                ("Support", True),
            )
        ]

        session.add_all([admin, team, customer, project, *activities])
        session.commit()
        print(f"Seeded user {username} (id {admin.id}), customer, project and {len(activities)} activities.")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def issue_token(username: str):
    """Print a bearer token for the given user."""
    session = SessionLocal()
    try:
        user = session.query(UserModel).filter(UserModel.username == username).first()
        if user is None:
            print(f"Unknown user: {username}")
            sys.exit(1)
        print(JWTHandler().create_access_token(user.id, user.username))
    finally:
        session.close()


def sync_subtickets(project_id: str = None) -> int:
    """Refresh the subtickets of one project or of every project with a ticket system."""
    session = SessionLocal()
    service = SubticketSyncService(session)
    try:
        if project_id:
            project = session.get(ProjectModel, int(project_id))
            if project is None:
                print("Project does not exist")
                return 1
            projects = [project]
        else:
            projects = session.query(ProjectModel).filter(
                ProjectModel.ticket_system_id.isnot(None)
            ).order_by(ProjectModel.id).all()
            print(f"Found {len(projects)} projects with ticket system")

        failed = 0
        for project in projects:
            try:
                subtickets = service.sync_project_subtickets(project)
            except (DomainException, JiraApiException) as e:
                print(f"{project.id} {project.name}: {e.message}")
                failed += 1
                continue
            print(f"{project.id} {project.name}: {len(subtickets)} subtickets")

        session.commit()
        return 1 if failed else 0
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def main():
    """Main CLI function."""
    if len(sys.argv) < 2:
        print("Usage: python manage_db.py [command]")
        print("Commands:")
        print("  create           - Create all tables")
        print("  drop             - Drop all tables (WARNING: drops all data)")
        print("  reset            - Drop and recreate all tables (WARNING: drops all data)")
        print("  seed [username]  - Create an admin user and default master data")
        print("  token <username> - Issue a bearer token for a user")
        print("  syncsubtickets [project] - Refresh project subtickets from JIRA")
        return

    command_name = sys.argv[1]

    if command_name == "create":
        create_tables()
    elif command_name == "drop":
        drop_tables()
    elif command_name == "reset":
        reset_database()
    elif command_name == "seed":
        create_tables()
        seed_database(sys.argv[2] if len(sys.argv) > 2 else "admin")
    elif command_name == "token":
        if len(sys.argv) < 3:
            print("Usage: python manage_db.py token <username>")
            return
        issue_token(sys.argv[2])
    elif command_name == "syncsubtickets":
        sys.exit(sync_subtickets(sys.argv[2] if len(sys.argv) > 2 else None))
    else:
        print(f"Unknown command: {command_name}")


if __name__ == "__main__":
    main()
