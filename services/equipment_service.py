from sqlalchemy.orm import Session, joinedload

import crud
from models import Equipment, EquipmentCategory
from schemas import EquipmentCreate, EquipmentUpdate

_WITH_RELATIONS = (joinedload(Equipment.category), joinedload(Equipment.team))


class EquipmentService:

    @staticmethod
    def get_all(db: Session):
        return crud.list_rows(db, Equipment, order_by="created_at", descending=True,
                              options=_WITH_RELATIONS)

    @staticmethod
    def get(db: Session, equipment_id: int):
        return crud.get_row(db, Equipment, equipment_id, options=_WITH_RELATIONS)

    @staticmethod
    def create(db: Session, data: EquipmentCreate, user_id: int):
        fields = data.model_dump()
        fields["created_by"] = user_id
        return crud.create_row(db, Equipment, fields)

    @staticmethod
    def update(db: Session, equipment_id: int, data: EquipmentUpdate):
        return crud.update_row(db, Equipment, equipment_id, data.model_dump(exclude_unset=True))

    @staticmethod
    def delete(db: Session, equipment_id: int):
        crud.delete_row(db, Equipment, equipment_id)

    @staticmethod
    def by_team(db: Session, team_id: int):
        return crud.list_rows(db, Equipment, {"maintenance_team_id": team_id}, options=_WITH_RELATIONS)

    @staticmethod
    def by_status(db: Session, status: str):
        return crud.list_rows(db, Equipment, {"status": status}, options=_WITH_RELATIONS)

    @staticmethod
    def categories(db: Session):
        return crud.list_rows(db, EquipmentCategory, order_by="name")

    @staticmethod
    def subscribe(on_change):
        return crud.subscribe(Equipment, on_change)

    @staticmethod
    def filter_equipment(equipment, search: str = "", category: str = "all"):
        """Search by name or location (case-insensitive) and by category name."""
        term = (search or "").strip().lower()
        result = []
        for eq in equipment:
            matches_search = (
                not term
                or term in (eq.name or "").lower()
                or term in (eq.location or "").lower()
            )
            matches_category = (
                category in (None, "", "all")
                or (eq.category is not None and eq.category.name == category)
            )
            if matches_search and matches_category:
                result.append(eq)
        return result
