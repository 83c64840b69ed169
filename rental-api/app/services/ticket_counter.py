"""
Ticket numbering for rentals.

The counter row is locked for the duration of the caller's transaction, so
two concurrent rental creations serialize on it and the increment commits
(or rolls back) together with the rental it numbered.
"""
import logging

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from app.models.counter import Counter

logger = logging.getLogger(__name__)

RENTALS_COUNTER = "rentals"


def _ensure_counter(db: Session, counter_name: str):
    """Create the counter row at 0 unless it exists; a concurrent creator wins silently."""
    insert = pg_insert if db.get_bind().dialect.name == "postgresql" else sqlite_insert
    result = db.execute(
        insert(Counter)
        .values(name=counter_name, last_ticket_number=0)
        .on_conflict_do_nothing(index_elements=["name"])
    )
    if result.rowcount:
        logger.info(f"[Tickets] Counter '{counter_name}' initialised")


def get_next_ticket_number(db: Session, counter_name: str = RENTALS_COUNTER) -> int:
    stmt = select(Counter).where(Counter.name == counter_name).with_for_update()
    counter = db.execute(stmt).scalar_one_or_none()

    if counter is None:
        _ensure_counter(db, counter_name)
        counter = db.execute(stmt).scalar_one()

    counter.last_ticket_number = (counter.last_ticket_number or 0) + 1
    db.flush()
    return counter.last_ticket_number
