from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ticketboard.core.config import get_settings
from ticketboard.core.db import get_session
from ticketboard.core.monday_events import WebhookPayloadError
from ticketboard.services import MondayWebhookProcessor
from ticketboard.services.ticket_sync import TicketPersistenceError

router = APIRouter(prefix="/api/webhooks", tags=["Webhooks"])

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def _json_response(content: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=CORS_HEADERS)


def _error_response(error: str, details: str, status_code: int) -> JSONResponse:
    return _json_response({"error": error, "details": details}, status_code=status_code)


@router.options("/monday", include_in_schema=False, name="monday_webhook_preflight")
async def monday_webhook_preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)


@router.post("/monday", name="receive_monday_webhook")
async def receive_monday_webhook(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> JSONResponse:
    try:
        payload = await request.json()
    except ValueError as exc:
        logger.warning("Rejected Monday.com webhook with invalid JSON: %s", exc)
        return _error_response(
            "Invalid JSON payload", str(exc), status.HTTP_400_BAD_REQUEST
        )

    if not isinstance(payload, dict):
        return _error_response(
            "Invalid webhook payload",
            "Webhook payload must be a JSON object",
            status.HTTP_400_BAD_REQUEST,
        )

    # Verification handshake: echo the request body untouched.
    if payload.get("challenge"):
        logger.info("Received Monday.com challenge")
        return _json_response(payload)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Monday.com webhook payload: %s",
            json.dumps(payload, ensure_ascii=False, default=str)[:4096],
        )

    event = payload.get("event")
    if not event:
        logger.info("No event field in Monday.com payload")
        return _json_response({"success": True, "message": "No event to process"})

    processor = MondayWebhookProcessor.from_settings(session, get_settings())
    try:
        result = await processor.process(event)
    except WebhookPayloadError as exc:
        logger.warning("Rejected Monday.com webhook event: %s", exc)
        return _error_response(
            "Invalid webhook event", str(exc), status.HTTP_400_BAD_REQUEST
        )
    except TicketPersistenceError as exc:
        return _error_response(
            exc.action, exc.details, status.HTTP_500_INTERNAL_SERVER_ERROR
        )
    except Exception as exc:
        logger.exception("Error processing Monday.com webhook")
        return _error_response(
            "Internal server error", str(exc), status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return _json_response(result)
