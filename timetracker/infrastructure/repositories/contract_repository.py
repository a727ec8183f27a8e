"""
Contract repository implementation using SQLAlchemy.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, asc, or_

from timetracker.infrastructure.db.models import ContractModel, UserModel
from .base_repository import SQLAlchemyRepository


def contract_to_array(contract: ContractModel) -> Dict[str, Any]:
    data = {
        "id": contract.id,
        "user_id": contract.user_id,
        "start": contract.start.isoformat() if contract.start else None,
        "end": contract.end.isoformat() if contract.end else None,
    }
    for weekday in range(7):
        data[f"hours_{weekday}"] = float(getattr(contract, f"hours_{weekday}") or 0)
    return data


class SQLAlchemyContractRepository(SQLAlchemyRepository[ContractModel]):
    """SQLAlchemy implementation of contract repository."""

    model = ContractModel
    entity_name = "Contract"

    def get_contracts(self) -> List[Dict[str, Any]]:
        contracts = self.session.query(ContractModel).join(
            UserModel, UserModel.id == ContractModel.user_id
        ).order_by(asc(UserModel.username), asc(ContractModel.start)).all()
        return [{"contract": contract_to_array(contract)} for contract in contracts]

    def find_by_user(self, user_id: int) -> List[ContractModel]:
        return self.session.query(ContractModel).filter(
            ContractModel.user_id == user_id
        ).order_by(asc(ContractModel.start)).all()

    def find_active_for_user(self, user_id: int, day: date) -> Optional[ContractModel]:
        """The contract covering the given day, open ended contracts included."""
        return self.session.query(ContractModel).filter(
            and_(
                ContractModel.user_id == user_id,
                ContractModel.start <= day,
                or_(ContractModel.end.is_(None), ContractModel.end >= day),
            )
        ).order_by(asc(ContractModel.start)).first()
