from sqlalchemy.orm import Session, joinedload

import crud
from models import Team, Technician
from schemas import TeamCreate, TeamUpdate


class TeamService:

    @staticmethod
    def get_all(db: Session):
        return crud.list_rows(db, Team, order_by="name")

    @staticmethod
    def get(db: Session, team_id: int):
        return crud.get_row(db, Team, team_id)

    @staticmethod
    def create(db: Session, data: TeamCreate):
        return crud.create_row(db, Team, data.model_dump())

    @staticmethod
    def update(db: Session, team_id: int, data: TeamUpdate):
        return crud.update_row(db, Team, team_id, data.model_dump(exclude_unset=True))

    @staticmethod
    def delete(db: Session, team_id: int):
        crud.delete_row(db, Team, team_id)

    @staticmethod
    def technicians(db: Session, team_id: int):
        return crud.list_rows(db, Technician, {"team_id": team_id},
                              options=(joinedload(Technician.profile),))
