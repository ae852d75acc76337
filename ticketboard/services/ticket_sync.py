"""Persistence of tickets keyed by their Monday.com item id."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy import Row, delete, select, update
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ticketboard.models import Ticket, new_id, utcnow

logger = logging.getLogger(__name__)

_PROTECTED_COLUMNS = frozenset({"id", "monday_item_id", "created_at"})


class TicketPersistenceError(Exception):
    """Raised when a ticket row cannot be written to the store."""

    def __init__(self, action: str, details: str) -> None:
        super().__init__(f"{action}: {details}")
        self.action = action
        self.details = details


async def fetch_ticket_state(session: AsyncSession, item_id: str) -> Row | None:
    """Read the persisted status and title of a ticket without loading the entity."""

    result = await session.execute(
        select(Ticket.status, Ticket.ticket_title, Ticket.monday_board_id).where(
            Ticket.monday_item_id == item_id
        )
    )
    return result.first()


def _upsert_statement(dialect_name: str, values: dict[str, Any]):
    changes = {key: value for key, value in values.items() if key not in _PROTECTED_COLUMNS}
    if dialect_name == "sqlite":
        statement = sqlite.insert(Ticket).values(**values)
        return statement.on_conflict_do_update(
            index_elements=[Ticket.monday_item_id], set_=changes
        )
    if dialect_name == "postgresql":
        statement = postgresql.insert(Ticket).values(**values)
        return statement.on_conflict_do_update(
            index_elements=[Ticket.monday_item_id], set_=changes
        )
    if dialect_name in {"mysql", "mariadb"}:
        statement = mysql.insert(Ticket).values(**values)
        return statement.on_duplicate_key_update(**changes)
    raise TicketPersistenceError(
        "Failed to insert ticket", f"Upsert is not supported for dialect '{dialect_name}'"
    )


async def upsert_ticket(session: AsyncSession, fields: Mapping[str, Any]) -> None:
    """Insert a ticket, or overwrite the existing row with the same item id."""

    now = utcnow()
    values = {**fields, "id": new_id(), "created_at": now, "updated_at": now}
    statement = _upsert_statement(session.get_bind().dialect.name, values)
    try:
        await session.execute(statement)
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Error inserting ticket %s: %s", fields.get("monday_item_id"), exc)
        raise TicketPersistenceError("Failed to insert ticket", str(exc)) from exc


async def update_or_create_ticket(
    session: AsyncSession,
    item_id: str,
    changes: Mapping[str, Any],
    defaults: Mapping[str, Any],
) -> bool:
    """Apply ``changes`` to the ticket, inserting it from ``defaults`` when absent.

    Returns ``True`` when a new row had to be created, which happens when an
    update is delivered before the matching create event.
    """

    now = utcnow()
    values = {**changes, "updated_at": now}
    try:
        result = await session.execute(
            update(Ticket)
            .where(Ticket.monday_item_id == item_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Error updating ticket %s: %s", item_id, exc)
        raise TicketPersistenceError("Failed to update ticket", str(exc)) from exc

    if result.rowcount:
        await session.commit()
        return False

    logger.info("Ticket not found, creating new ticket for: %s", item_id)
    ticket = Ticket(
        **{
            **defaults,
            **changes,
            "monday_item_id": item_id,
            "created_at": now,
            "updated_at": now,
        }
    )
    session.add(ticket)
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Error creating ticket %s: %s", item_id, exc)
        raise TicketPersistenceError("Failed to create ticket", str(exc)) from exc
    return True


async def delete_ticket(session: AsyncSession, item_id: str) -> int:
    try:
        result = await session.execute(
            delete(Ticket)
            .where(Ticket.monday_item_id == item_id)
            .execution_options(synchronize_session=False)
        )
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Error deleting ticket %s: %s", item_id, exc)
        raise TicketPersistenceError("Failed to delete ticket", str(exc)) from exc
    return result.rowcount or 0
