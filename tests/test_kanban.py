import pytest

import crud
from models import Equipment, MaintenanceRequest
from services.kanban_service import COLUMNS, KanbanBoard, _place
from services.request_service import RequestService


@pytest.fixture
def board():
    b = KanbanBoard()
    b.watch()
    yield b
    b.close()


def _ids(board, status):
    return [c.id for c in board.column(status)]


def test_columns_group_cards_by_status(db, board, make_request):
    a = make_request(status="New")
    b = make_request(status="Repaired")
    c = make_request(status="Cancelled")

    columns = board.columns(db)

    assert tuple(columns) == COLUMNS
    assert [card.id for card in columns["New"]] == [a.id]
    assert [card.id for card in columns["Repaired"]] == [b.id]
    assert all(card.id != c.id for cards in columns.values() for card in cards)


def test_same_position_is_a_no_op(db, board, make_request, monkeypatch):
    req = make_request(status="New")
    board.columns(db)
    monkeypatch.setattr(RequestService, "update_status",
                        lambda *a, **k: pytest.fail("no write expected"))

    result = board.move_request(db, req.id, "New", "New", 0)

    assert result.moved is False
    assert result.toasts == []


def test_cross_column_move_writes_status(db, board, make_request):
    req = make_request(status="New", subject="Belt slipping")
    board.columns(db)

    result = board.move_request(db, req.id, "New", "In Progress", 0)

    assert result.moved and not result.reverted
    assert _ids(board, "In Progress") == [req.id]
    assert result.toasts[-1].title == "Status Updated"
    assert result.toasts[-1].description == '"Belt slipping" moved to In Progress'
    db.expire_all()
    assert db.get(MaintenanceRequest, req.id).status == "In Progress"


def test_move_marks_board_stale_through_change_feed(db, board, make_request):
    req = make_request(status="New")
    board.columns(db)
    assert board.stale is False

    RequestService.update_status(db, req.id, "Repaired")

    assert board.stale is True
    assert [c.id for c in board.columns(db)["Repaired"]] == [req.id]
    assert board.stale is False


def test_scrap_cascades_to_equipment(db, board, make_request, equipment):
    req = make_request(status="In Progress", equipment_id=equipment.id)
    board.columns(db)

    result = board.move_request(db, req.id, "In Progress", "Scrap", 0)

    assert result.moved
    titles = [t.title for t in result.toasts]
    assert titles == ["Equipment Scrapped", "Status Updated"]
    assert result.toasts[0].variant == "destructive"
    assert result.toasts[0].description == 'Equipment "Lathe" has been marked as Scrap'
    db.expire_all()
    assert db.get(MaintenanceRequest, req.id).status == "Scrap"
    assert db.get(Equipment, equipment.id).status == "Scrap"


def test_scrap_without_equipment_only_updates_request(db, board, make_request):
    req = make_request(status="New")
    board.columns(db)

    result = board.move_request(db, req.id, "New", "Scrap", 0)

    assert [t.title for t in result.toasts] == ["Status Updated"]


def test_failed_write_reverts_board(db, board, make_request, monkeypatch):
    first = make_request(status="New")
    second = make_request(status="New")
    board.columns(db)
    before = [c.model_dump() for c in board.cards]

    def fail(*args, **kwargs):
        raise crud.StoreError("permission denied for table maintenance_requests")

    monkeypatch.setattr(RequestService, "update_status", fail)
    result = board.move_request(db, second.id, "New", "Repaired", 0)

    assert result.moved is False
    assert result.reverted is True
    assert result.toasts[0].title == "Error"
    assert result.toasts[0].description == "Failed to update status"
    assert [c.model_dump() for c in board.cards] == before
    db.expire_all()
    assert db.get(MaintenanceRequest, first.id).status == "New"


def test_failed_scrap_keeps_equipment(db, board, make_request, equipment, monkeypatch):
    req = make_request(status="New", equipment_id=equipment.id)
    board.columns(db)
    original_update_row = crud.update_row

    def fail_on_equipment(session, model, row_id, fields):
        if model is Equipment:
            raise crud.StoreError("equipment is locked", "equipment")
        return original_update_row(session, model, row_id, fields)

    monkeypatch.setattr(crud, "update_row", fail_on_equipment)
    result = board.move_request(db, req.id, "New", "Scrap", 0)

    assert result.reverted
    db.expire_all()
    assert db.get(MaintenanceRequest, req.id).status == "New"
    assert db.get(Equipment, equipment.id).status == "Active"


def test_reorder_within_column_is_local(db, board, make_request, monkeypatch):
    a = make_request(status="New")
    b = make_request(status="New")
    c = make_request(status="New")
    board.columns(db)
    order = _ids(board, "New")
    monkeypatch.setattr(RequestService, "update_status",
                        lambda *a, **k: pytest.fail("no write expected"))

    result = board.move_request(db, order[-1], "New", "New", 0)

    assert result.moved is True
    assert result.toasts == []
    assert _ids(board, "New") == [order[-1]] + order[:-1]
    assert {a.id, b.id, c.id} == set(order)


def test_unknown_column_and_missing_card(db, board, make_request):
    req = make_request(status="New")
    board.columns(db)

    with pytest.raises(ValueError):
        board.move_request(db, req.id, "New", "Done", 0)
    with pytest.raises(ValueError):
        board.move_request(db, req.id, "Repaired", "Scrap", 0)
    with pytest.raises(LookupError):
        board.move_request(db, 999, "New", "Scrap", 0)


def test_place_appends_past_end():
    class Card:
        def __init__(self, id, status):
            self.id, self.status = id, status

    cards = [Card(1, "New"), Card(2, "Repaired"), Card(3, "New")]
    moved = Card(2, "New")

    assert [c.id for c in _place(cards, moved, "New", 5)] == [1, 3, 2]
    assert [c.id for c in _place(cards, moved, "New", 1)] == [1, 2, 3]
    assert [c.id for c in _place(cards, Card(9, "Scrap"), "Scrap", 0)] == [1, 2, 3, 9]


def test_cross_column_move_issues_one_status_write(db, board, make_request, equipment, monkeypatch):
    req = make_request(status="New", equipment_id=equipment.id)
    board.columns(db)
    writes = []
    original_update_row = crud.update_row

    def spy(session, model, row_id, fields):
        writes.append((model, row_id, dict(fields)))
        return original_update_row(session, model, row_id, fields)

    monkeypatch.setattr(crud, "update_row", spy)
    result = board.move_request(db, req.id, "New", "Repaired", 0)

    assert result.moved
    assert writes == [(MaintenanceRequest, req.id, {"status": "Repaired"})]
    db.expire_all()
    assert db.get(Equipment, equipment.id).status == "Active"
