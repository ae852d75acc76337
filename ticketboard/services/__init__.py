"""Service-layer helpers for ticket ingestion and delivery."""

from __future__ import annotations

__all__ = [
    "MondayWebhookProcessor",
]

from .monday_webhook import MondayWebhookProcessor
