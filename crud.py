"""
Generic data gateway.

Each function performs one round trip against the database and either returns
the row(s) or raises StoreError with the database's own message. Successful
writes are announced on the change feed once they are committed.
"""

from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from app_logger import get_logger
from services.realtime import change_feed

logger = get_logger(__name__)

_PENDING_KEY = "pending_changes"


class StoreError(Exception):
    """A failed read or write, carrying the store's message verbatim."""

    def __init__(self, message: str, table: str = None):
        super().__init__(message)
        self.message = message
        self.table = table


def row_to_dict(obj) -> dict:
    return {c.name: getattr(obj, c.name) for c in obj.__table__.columns}


def _table(model) -> str:
    return model.__tablename__


def to_store_error(db, exc: SQLAlchemyError, table: str) -> StoreError:
    db.rollback()
    message = str(getattr(exc, "orig", None) or exc)
    logger.warning("Store error on %s: %s", table, message)
    return StoreError(message, table)


def _announce(db, table: str, event: str, obj=None, row: dict = None):
    pending = db.info.get(_PENDING_KEY)
    if pending is not None:
        db.flush()
        pending.append((table, event, row if row is not None else row_to_dict(obj)))
        return

    db.commit()
    if obj is not None and event != "DELETE":
        db.refresh(obj)
        row = row_to_dict(obj)
    change_feed.publish(table, event, row)


@contextmanager
def transaction(db):
    """Group several gateway writes into a single commit.

    Change events are held back and published only after the commit succeeds.
    """
    pending = []
    db.info[_PENDING_KEY] = pending
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        raise to_store_error(db, exc, "transaction") from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.info.pop(_PENDING_KEY, None)

    for table, event, row in pending:
        change_feed.publish(table, event, row)


# ============================
# Reads
# ============================
def list_rows(db, model, filters: dict = None, order_by=None, descending: bool = False,
              limit: int = None, options=(), criteria=()):
    """Equality ``filters`` plus optional SQLAlchemy ``criteria`` expressions."""
    try:
        query = db.query(model)
        for opt in options:
            query = query.options(opt)
        for field, value in (filters or {}).items():
            query = query.filter(getattr(model, field) == value)
        for criterion in criteria:
            query = query.filter(criterion)
        if order_by is not None:
            column = getattr(model, order_by) if isinstance(order_by, str) else order_by
            query = query.order_by(column.desc() if descending else column.asc())
        if limit:
            query = query.limit(limit)
        return query.all()
    except SQLAlchemyError as exc:
        raise to_store_error(db, exc, _table(model)) from exc


def get_row(db, model, row_id: int, options=()):
    try:
        query = db.query(model)
        for opt in options:
            query = query.options(opt)
        obj = query.filter(model.id == row_id).first()
    except SQLAlchemyError as exc:
        raise to_store_error(db, exc, _table(model)) from exc

    if obj is None:
        raise StoreError(f"{_table(model)} row {row_id} not found", _table(model))
    return obj


def count_rows(db, model, filters: dict = None) -> int:
    try:
        query = db.query(model)
        for field, value in (filters or {}).items():
            query = query.filter(getattr(model, field) == value)
        return query.count()
    except SQLAlchemyError as exc:
        raise to_store_error(db, exc, _table(model)) from exc


# ============================
# Writes
# ============================
def create_row(db, model, fields: dict):
    try:
        obj = model(**fields)
        db.add(obj)
        _announce(db, _table(model), "INSERT", obj)
        return obj
    except SQLAlchemyError as exc:
        raise to_store_error(db, exc, _table(model)) from exc


def update_row(db, model, row_id: int, fields: dict):
    unknown = [field for field in fields if not hasattr(model, field)]
    if unknown:
        raise StoreError(f"Unknown column {_table(model)}.{unknown[0]}", _table(model))

    obj = get_row(db, model, row_id)
    try:
        for field, value in fields.items():
            setattr(obj, field, value)
        _announce(db, _table(model), "UPDATE", obj)
        return obj
    except SQLAlchemyError as exc:
        raise to_store_error(db, exc, _table(model)) from exc


def update_rows(db, model, filters: dict, fields: dict) -> int:
    """Bulk update; announces one UPDATE per affected row."""
    rows = list_rows(db, model, filters)
    try:
        for obj in rows:
            for field, value in fields.items():
                setattr(obj, field, value)
        pending = db.info.get(_PENDING_KEY)
        if pending is not None:
            db.flush()
            pending.extend((_table(model), "UPDATE", row_to_dict(obj)) for obj in rows)
        else:
            db.commit()
            for obj in rows:
                change_feed.publish(_table(model), "UPDATE", row_to_dict(obj))
        return len(rows)
    except SQLAlchemyError as exc:
        raise to_store_error(db, exc, _table(model)) from exc


def delete_row(db, model, row_id: int):
    obj = get_row(db, model, row_id)
    row = row_to_dict(obj)
    try:
        db.delete(obj)
        _announce(db, _table(model), "DELETE", row=row)
    except SQLAlchemyError as exc:
        raise to_store_error(db, exc, _table(model)) from exc


# ============================
# Change subscriptions
# ============================
def subscribe(model, on_change, event: str = "*", row_filter: dict = None):
    table = model if isinstance(model, str) else _table(model)
    return change_feed.subscribe(table, on_change, event=event, row_filter=row_filter)
