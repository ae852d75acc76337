"""Downstream automation notifications for tickets entering the reported state."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

logger = logging.getLogger(__name__)


def _isoformat(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def build_reported_payload(
    *,
    item_id: str,
    status: str,
    ticket_title: str | None,
    board_id: str | None,
    updated_at: datetime | None = None,
    created: bool = False,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "ticket_id": item_id,
        "monday_item_id": item_id,
        "status": status,
        "ticket_title": ticket_title,
        "board_id": board_id,
    }
    if updated_at is not None:
        payload["updated_at"] = _isoformat(updated_at)
    if created:
        payload["created"] = True
    return payload


async def send_reported_notification(
    endpoint: str | None,
    payload: dict[str, Any],
    *,
    timeout: float = 10.0,
) -> bool:
    """POST ``payload`` to the downstream automation endpoint.

    Delivery is best-effort: failures are logged and reported through the
    return value, never raised, and never retried.
    """

    ticket_id = payload.get("ticket_id")
    if not endpoint:
        logger.debug(
            "Skipping reported-ticket notification for %s because no endpoint is configured.",
            ticket_id,
        )
        return False

    try:
        async with httpx.AsyncClient(timeout=httpx.Timeout(timeout, connect=5.0)) as client:
            response = await client.post(endpoint, json=payload)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.error(
            "Downstream notification for ticket %s was rejected with status %s: %s",
            ticket_id,
            exc.response.status_code,
            exc.response.text[:500],
        )
        return False
    except httpx.HTTPError as exc:
        logger.error("Error calling downstream notification for ticket %s: %s", ticket_id, exc)
        return False

    logger.info("Sent reported-ticket notification for ticket %s", ticket_id)
    return True
