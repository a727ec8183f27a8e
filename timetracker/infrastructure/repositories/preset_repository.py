"""
Preset repository implementation using SQLAlchemy.
"""

from typing import Any, Dict, List

from sqlalchemy import asc

from timetracker.infrastructure.db.models import PresetModel
from .base_repository import SQLAlchemyRepository


def preset_to_array(preset: PresetModel) -> Dict[str, Any]:
    return {
        "id": preset.id,
        "name": preset.name,
        "customer": preset.customer_id,
        "project": preset.project_id,
        "activity": preset.activity_id,
        "description": preset.description or "",
    }


class SQLAlchemyPresetRepository(SQLAlchemyRepository[PresetModel]):
    """SQLAlchemy implementation of preset repository."""

    model = PresetModel
    entity_name = "Preset"

    def get_all_presets(self) -> List[Dict[str, Any]]:
        presets = self.session.query(PresetModel).order_by(asc(PresetModel.name)).all()
        return [{"preset": preset_to_array(preset)} for preset in presets]
