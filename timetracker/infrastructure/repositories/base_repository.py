"""
Common persistence operations shared by the admin repositories.
"""

from typing import Any, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from timetracker.domain.models.base import ValidationError

T = TypeVar('T')


class SQLAlchemyRepository(Generic[T]):
    """Basic lookups and writes for one model class."""

    model: Type[T]
    entity_name = "Entity"
    # (model, foreign key column) pairs that block deletion while rows point here
    references: Sequence[Tuple[Any, Any]] = ()

    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, entity_id: Any) -> Optional[T]:
        if entity_id is None:
            return None
        return self.session.get(self.model, entity_id)

    def find_by_name(self, name: str) -> Optional[T]:
        return self.session.query(self.model).filter(self.model.name == name).first()

    def find_all(self) -> List[T]:
        return self.session.query(self.model).all()

    def save(self, entity: T) -> T:
        self.session.add(entity)
        self.session.flush()
        return entity

    def is_referenced(self, entity: T) -> bool:
        for referencing_model, column in self.references:
            count = self.session.query(func.count()).select_from(referencing_model).filter(
                column == entity.id
            ).scalar()
            if count:
                return True
        return False

    def delete(self, entity: T) -> None:
        """Delete a row that nothing references anymore."""
        if self.is_referenced(entity):
            raise ValidationError(
                "Dataset could not be removed. Other datasets refer to this one."
            )
        try:
            self.session.delete(entity)
            self.session.flush()
        except IntegrityError:
            self.session.rollback()
            raise ValidationError(
                "Dataset could not be removed. Other datasets refer to this one."
            )
