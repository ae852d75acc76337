"""Processing of Monday.com board events into ticket rows."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ticketboard.core.config import Settings
from ticketboard.core.monday_events import (
    CREATE_EVENT_TYPES,
    DELETE_EVENT_TYPES,
    UNTITLED_TICKET,
    UPDATE_COLUMN_EVENT,
    UPDATE_NAME_EVENT,
    MondayEvent,
    WebhookPayloadError,
    build_ticket_fields,
    default_ticket_fields,
    extract_column_update,
    extract_new_name,
    extract_previous_name,
    normalize_event,
)
from ticketboard.models import utcnow
from ticketboard.services.notifications import (
    build_reported_payload,
    send_reported_notification,
)
from ticketboard.services.team_resolver import resolve_team
from ticketboard.services.ticket_sync import (
    TicketPersistenceError,
    delete_ticket,
    fetch_ticket_state,
    update_or_create_ticket,
    upsert_ticket,
)

logger = logging.getLogger(__name__)


class MondayWebhookProcessor:
    """Apply a single Monday.com webhook event to the ticket store.

    The reported-status guard is check-then-act: the current status is read
    before the write and no lock is held in between, so two concurrent
    deliveries for the same item can both notify.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        notification_url: str | None,
        notification_timeout: float = 10.0,
        reported_status: str = "Reported",
    ) -> None:
        self.session = session
        self.notification_url = notification_url
        self.notification_timeout = notification_timeout
        self.reported_status = reported_status

    @classmethod
    def from_settings(cls, session: AsyncSession, settings: Settings) -> "MondayWebhookProcessor":
        return cls(
            session,
            notification_url=settings.notification_url,
            notification_timeout=settings.notification_timeout,
            reported_status=settings.reported_status,
        )

    async def process(self, raw_event: Any) -> dict[str, Any]:
        event = normalize_event(raw_event)

        if event.type in CREATE_EVENT_TYPES:
            return await self._handle_create(event)
        if event.type == UPDATE_COLUMN_EVENT:
            return await self._handle_column_update(event)
        if event.type == UPDATE_NAME_EVENT:
            return await self._handle_name_update(event)
        if event.type in DELETE_EVENT_TYPES:
            return await self._handle_delete(event)

        logger.info("Received Monday.com webhook with event type: %s", event.type)
        return {"success": True, "message": "Webhook received", "event_type": event.type}

    async def _current_state(self, item_id: str):
        try:
            return await fetch_ticket_state(self.session, item_id)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise TicketPersistenceError("Failed to read ticket", str(exc)) from exc

    def _reported_transition_due(self, item_id: str, state) -> bool:
        if state is None:
            logger.debug("Ticket %s does not exist yet; reported notification is due", item_id)
            return True
        due = state.status != self.reported_status
        logger.debug(
            "Status check for ticket %s - previous: %s, new: %s, notify: %s",
            item_id,
            state.status,
            self.reported_status,
            due,
        )
        return due

    async def _notify_reported(self, payload: dict[str, Any]) -> None:
        await send_reported_notification(
            self.notification_url,
            payload,
            timeout=self.notification_timeout,
        )

    async def _handle_create(self, event: MondayEvent) -> dict[str, Any]:
        fields = build_ticket_fields(event)
        item_id = fields["monday_item_id"]

        if fields["ticket_type"]:
            fields["team_assigned"] = await resolve_team(self.session, fields["ticket_type"])

        notify = False
        if fields["status"] == self.reported_status:
            state = await self._current_state(item_id)
            notify = self._reported_transition_due(item_id, state)

        await upsert_ticket(self.session, fields)
        logger.info("Processed ticket %s from %s event", item_id, event.type)

        if notify:
            await self._notify_reported(
                build_reported_payload(
                    item_id=item_id,
                    status=self.reported_status,
                    ticket_title=fields["ticket_title"],
                    board_id=fields["monday_board_id"],
                    created=True,
                )
            )

        return {
            "success": True,
            "message": "Ticket processed successfully",
            "ticket_id": item_id,
        }

    async def _handle_column_update(self, event: MondayEvent) -> dict[str, Any]:
        item_id = event.item_id
        if not item_id:
            raise WebhookPayloadError("No item ID found in update event")

        changes = extract_column_update(event)
        if "ticket_type" in changes:
            changes["team_assigned"] = await resolve_team(self.session, changes["ticket_type"])

        notify = False
        state = None
        if changes.get("status") == self.reported_status:
            state = await self._current_state(item_id)
            notify = self._reported_transition_due(item_id, state)

        created = await update_or_create_ticket(
            self.session,
            item_id,
            changes,
            default_ticket_fields(event),
        )
        logger.info(
            "%s ticket %s from column '%s'",
            "Created" if created else "Updated",
            item_id,
            event.column_title,
        )

        if notify:
            title = event.item_name or (state.ticket_title if state else UNTITLED_TICKET)
            board_id = event.board_id or (state.monday_board_id if state else None)
            await self._notify_reported(
                build_reported_payload(
                    item_id=item_id,
                    status=self.reported_status,
                    ticket_title=title,
                    board_id=board_id,
                    updated_at=utcnow(),
                )
            )

        return {
            "success": True,
            "message": "Ticket updated successfully",
            "pulse_id": item_id,
        }

    async def _handle_name_update(self, event: MondayEvent) -> dict[str, Any]:
        item_id = event.item_id
        if not item_id:
            raise WebhookPayloadError("No item ID found in update_name event")

        new_name = extract_new_name(event)
        if not new_name:
            raise WebhookPayloadError("No new name found in update_name event")

        await update_or_create_ticket(
            self.session,
            item_id,
            {"ticket_title": new_name},
            default_ticket_fields(event, title=new_name),
        )
        logger.info(
            'Updated ticket name from "%s" to "%s" for ticket %s',
            extract_previous_name(event),
            new_name,
            item_id,
        )
        return {
            "success": True,
            "message": "Ticket name updated successfully",
            "pulse_id": item_id,
            "new_name": new_name,
        }

    async def _handle_delete(self, event: MondayEvent) -> dict[str, Any]:
        item_id = event.item_id
        if not item_id:
            raise WebhookPayloadError("No item ID found in delete event")

        deleted = await delete_ticket(self.session, item_id)
        if not deleted:
            logger.info("Delete event for unknown ticket %s ignored", item_id)
        return {
            "success": True,
            "message": "Ticket deleted successfully",
            "pulse_id": item_id,
        }
