"""
Entry mapper for converting entry models into the structures the frontend expects.
"""

from typing import Any, Dict, Optional

from timetracker.domain.services.time_calculation_service import TimeCalculationService
from timetracker.infrastructure.db.models import EntryModel


def _id_of(related) -> Optional[int]:
    return related.id if related is not None else None


class EntryMapper:
    """Maps EntryModel rows to API dictionaries."""

    def __init__(self, time_calculation: Optional[TimeCalculationService] = None):
        self.time_calculation = time_calculation or TimeCalculationService()

    def to_array(self, entry: EntryModel) -> Dict[str, Any]:
        """Flat representation used by interpretation and export endpoints."""
        return {
            "id": entry.id,
            "date": entry.day.strftime("%d/%m/%Y") if entry.day else None,
            "start": entry.start.strftime("%H:%M") if entry.start else None,
            "end": entry.end.strftime("%H:%M") if entry.end else None,
            "user": entry.user_id,
            "customer": _id_of(entry.effective_customer),
            "project": entry.project_id,
            "activity": entry.activity_id,
            "description": entry.description or "",
            "ticket": entry.ticket or "",
            "duration": entry.duration or 0,
            "durationString": self.time_calculation.format_duration(entry.duration or 0),
            "class": int(entry.entry_class or 0),
            "worklog": entry.worklog_id,
            "extTicket": entry.internal_jira_ticket_original_key or "",
        }

    def to_grid_row(self, entry: EntryModel) -> Dict[str, Any]:
        """Row of the tracking grid, duration already formatted."""
        ext_ticket = entry.internal_jira_ticket_original_key or ""
        ticket_system = entry.project.ticket_system if entry.project is not None else None
        return {
            "id": entry.id,
            "date": entry.day.strftime("%d/%m/%Y"),
            "start": entry.start.strftime("%H:%M"),
            "end": entry.end.strftime("%H:%M"),
            "user": entry.user_id or 0,
            "customer": entry.customer_id or 0,
            "project": entry.project_id or 0,
            "activity": entry.activity_id or 0,
            "description": entry.description or "",
            "ticket": entry.ticket or "",
            "class": int(entry.entry_class or 0),
            "duration": self.time_calculation.format_duration(entry.duration or 0),
            "extTicket": ext_ticket,
            "extTicketUrl": ticket_system.ticket_url_for(ext_ticket) if ticket_system else "",
        }

    def to_save_result(self, entry: EntryModel) -> Dict[str, Any]:
        """Response body of a saved entry."""
        result = {
            "date": entry.day.strftime("%d/%m/%Y"),
            "start": entry.start.strftime("%H:%M"),
            "end": entry.end.strftime("%H:%M"),
            "user": entry.user_id,
            "customer": entry.customer_id,
            "project": entry.project_id,
            "activity": entry.activity_id,
            "duration": entry.duration,
            "durationString": self.time_calculation.format_duration(entry.duration),
            "class": int(entry.entry_class or 0),
        }
        if entry.ticket:
            result["ticket"] = entry.ticket
        if entry.description:
            result["description"] = entry.description
        return result
