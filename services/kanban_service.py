"""
Kanban board for maintenance requests.

The board keeps the current request list for one signed-in session. A move is
applied to that list first and written afterwards; when the write fails the
list goes back to the snapshot taken before the move. Moving a request with
equipment into Scrap also scraps the equipment, in the same commit.
"""

from typing import Dict, List

from sqlalchemy.orm import Session

from app_logger import get_logger
from crud import StoreError
from schemas import MoveResult, RequestCard, Toast
from services.request_service import RequestService

logger = get_logger(__name__)

COLUMNS = ("New", "In Progress", "Repaired", "Scrap")
SCRAP = "Scrap"


class KanbanBoard:

    def __init__(self):
        self.cards: List[RequestCard] = []
        self.stale = True
        self._subscription = None

    # ============================
    # Change feed
    # ============================
    def watch(self):
        if self._subscription is None or not self._subscription.active:
            self._subscription = RequestService.subscribe(self._on_change)
        return self._subscription

    def close(self):
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_change(self, payload: dict):
        self.stale = True

    # ============================
    # Reads
    # ============================
    def refresh(self, db: Session):
        self.cards = [RequestService.to_card(r) for r in RequestService.get_all(db)]
        self.stale = False

    def column(self, status: str) -> List[RequestCard]:
        return [card for card in self.cards if card.status == status]

    def columns(self, db: Session = None) -> Dict[str, List[RequestCard]]:
        if db is not None and self.stale:
            self.refresh(db)
        return {status: self.column(status) for status in COLUMNS}

    def find(self, request_id: int):
        for card in self.cards:
            if card.id == request_id:
                return card
        return None

    # ============================
    # Moves
    # ============================
    def move_request(self, db: Session, request_id: int, from_column: str, to_column: str,
                     to_index: int = 0) -> MoveResult:
        for column in (from_column, to_column):
            if column not in COLUMNS:
                raise ValueError(f"Unknown column: {column}")

        card = self.find(request_id)
        if card is None:
            raise LookupError(f"Request {request_id} is not on the board")
        if card.status != from_column:
            raise ValueError(f"Request {request_id} is not in column {from_column}")

        current_index = [c.id for c in self.column(from_column)].index(request_id)
        if to_column == from_column and to_index == current_index:
            return MoveResult(moved=False)

        snapshot = list(self.cards)
        moved = card.model_copy(update={"status": to_column})
        self.cards = _place(snapshot, moved, to_column, to_index)

        # Reordering inside a column is local only
        if to_column == from_column:
            return MoveResult(moved=True)

        toasts = []
        try:
            if to_column == SCRAP and card.equipment_id:
                RequestService.scrap(db, card.id, card.equipment_id)
                toasts.append(Toast(
                    title="Equipment Scrapped",
                    description=f'Equipment "{card.equipment_name}" has been marked as Scrap',
                    variant="destructive",
                ))
            else:
                RequestService.update_status(db, card.id, to_column)
        except StoreError as exc:
            self.cards = snapshot
            logger.warning("Reverted move of request %s to %s: %s", request_id, to_column, exc.message)
            return MoveResult(
                moved=False,
                reverted=True,
                toasts=[Toast(title="Error", description="Failed to update status", variant="destructive")],
            )

        toasts.append(Toast(title="Status Updated", description=f'"{card.subject}" moved to {to_column}'))
        return MoveResult(moved=True, toasts=toasts)


def _place(cards, moved, to_column, to_index):
    """Return a new list with ``moved`` at ``to_index`` among the cards of ``to_column``."""
    rest = [c for c in cards if c.id != moved.id]
    targets = [i for i, c in enumerate(rest) if c.status == to_column]
    if to_index < len(targets):
        position = targets[to_index]
    elif targets:
        position = targets[-1] + 1
    else:
        position = len(rest)
    rest.insert(position, moved)
    return rest
