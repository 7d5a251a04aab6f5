from sqlalchemy.orm import Session

import crud
from models import WorkCenter
from schemas import WorkCenterCreate, WorkCenterUpdate


class WorkCenterService:

    @staticmethod
    def get_all(db: Session):
        return crud.list_rows(db, WorkCenter, order_by="name")

    @staticmethod
    def get_active(db: Session):
        return crud.list_rows(db, WorkCenter, {"status": "Active"}, order_by="name")

    @staticmethod
    def get(db: Session, work_center_id: int):
        return crud.get_row(db, WorkCenter, work_center_id)

    @staticmethod
    def create(db: Session, data: WorkCenterCreate):
        return crud.create_row(db, WorkCenter, data.model_dump())

    @staticmethod
    def update(db: Session, work_center_id: int, data: WorkCenterUpdate):
        return crud.update_row(db, WorkCenter, work_center_id, data.model_dump(exclude_unset=True))

    @staticmethod
    def delete(db: Session, work_center_id: int):
        crud.delete_row(db, WorkCenter, work_center_id)

    @staticmethod
    def search(work_centers, query: str = ""):
        term = (query or "").strip().lower()
        if not term:
            return list(work_centers)
        return [
            wc for wc in work_centers
            if term in wc.name.lower() or term in (wc.code or "").lower()
        ]
