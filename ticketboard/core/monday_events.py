"""Normalisation of Monday.com board-change webhook events into ticket fields."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

UNTITLED_TICKET = "Untitled Ticket"
UNKNOWN_ITEM_ID = "unknown"
DEFAULT_STATUS = "Open"
DEFAULT_PRIORITY = "Medium"

CREATE_EVENT_TYPES = frozenset({"create_pulse", "create_item"})
DELETE_EVENT_TYPES = frozenset({"delete_pulse", "delete_item"})
UPDATE_COLUMN_EVENT = "update_column_value"
UPDATE_NAME_EVENT = "update_name"


class WebhookPayloadError(Exception):
    """Raised when a webhook event is missing data required to process it."""


@dataclass(frozen=True)
class MondayEvent:
    """Canonical envelope shared by the legacy ``pulse`` and newer ``item`` schemas."""

    type: str | None
    item_id: str | None
    item_name: str | None
    board_id: str | None
    user_id: str | None
    column_values: Any = None
    column_id: str | None = None
    column_title: str | None = None
    column_type: str | None = None
    value: Any = None
    previous_value: Any = None


def _clean_text(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, (str, int, float)):
        cleaned = str(value).strip()
        return cleaned or None
    return None


def _first_present(raw: Mapping[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = _clean_text(raw.get(key))
        if value is not None:
            return value
    return None


def normalize_event(raw: Any) -> MondayEvent:
    if not isinstance(raw, Mapping):
        raise WebhookPayloadError("Webhook event must be a JSON object")

    return MondayEvent(
        type=_clean_text(raw.get("type")),
        item_id=_first_present(raw, "pulseId", "itemId"),
        item_name=_first_present(raw, "pulseName", "itemName"),
        board_id=_clean_text(raw.get("boardId")),
        user_id=_clean_text(raw.get("userId")),
        column_values=raw.get("columnValues"),
        column_id=_clean_text(raw.get("columnId")),
        column_title=_clean_text(raw.get("columnTitle")),
        column_type=_clean_text(raw.get("columnType")),
        value=raw.get("value"),
        previous_value=raw.get("previousValue"),
    )


ColumnExtractor = Callable[[Any], "str | None"]


def _text_value(value: Any) -> str | None:
    if isinstance(value, Mapping):
        return _clean_text(value.get("text")) or _clean_text(value.get("value"))
    return _clean_text(value)


def _label_value(value: Any) -> str | None:
    """Return the label text of a color/choice column, else its plain text."""

    if isinstance(value, Mapping):
        label = value.get("label")
        if isinstance(label, Mapping):
            text = _clean_text(label.get("text"))
            if text is not None:
                return text
        elif label is not None:
            text = _clean_text(label)
            if text is not None:
                return text
    return _text_value(value)


def _person_value(value: Any) -> str | None:
    if isinstance(value, Mapping):
        people = value.get("personsAndTeams")
        if isinstance(people, Sequence) and not isinstance(people, (str, bytes)) and people:
            first = people[0]
            if isinstance(first, Mapping):
                person = _clean_text(first.get("name")) or _clean_text(first.get("id"))
            else:
                person = _clean_text(first)
            if person is not None:
                return person
    return _text_value(value)


_COLUMN_FIELDS: dict[str, tuple[str, ColumnExtractor]] = {
    "status": ("status", _label_value),
    "priority": ("priority", _label_value),
    "type": ("ticket_type", _text_value),
    "ticket type": ("ticket_type", _text_value),
    "description": ("description", _text_value),
    "notes": ("description", _text_value),
    "assignee": ("assignee", _person_value),
    "person": ("assignee", _person_value),
}


def extract_column_field(title: str | None, value: Any) -> tuple[str, str] | None:
    """Map a column title and raw value onto a ticket field, if the title is known."""

    if not title:
        return None
    entry = _COLUMN_FIELDS.get(" ".join(title.split()).casefold())
    if entry is None:
        return None
    field_name, extractor = entry
    extracted = extractor(value)
    if extracted is None:
        return None
    return field_name, extracted


def _iter_columns(column_values: Any) -> list[tuple[str | None, Mapping[str, Any]]]:
    if isinstance(column_values, Mapping):
        return [
            (str(column_id), column)
            for column_id, column in column_values.items()
            if isinstance(column, Mapping)
        ]
    if isinstance(column_values, Sequence) and not isinstance(column_values, (str, bytes)):
        return [
            (_clean_text(column.get("id")), column)
            for column in column_values
            if isinstance(column, Mapping)
        ]
    return []


def default_ticket_fields(event: MondayEvent, *, title: str | None = None) -> dict[str, Any]:
    return {
        "monday_item_id": event.item_id or UNKNOWN_ITEM_ID,
        "ticket_title": title or event.item_name or UNTITLED_TICKET,
        "ticket_type": None,
        "team_assigned": None,
        "status": DEFAULT_STATUS,
        "priority": DEFAULT_PRIORITY,
        "description": None,
        "reporter": event.user_id,
        "assignee": None,
        "monday_board_id": event.board_id,
    }


def build_ticket_fields(event: MondayEvent) -> dict[str, Any]:
    """Build the full ticket field set carried by a create event."""

    fields = default_ticket_fields(event)
    for column_id, column in _iter_columns(event.column_values):
        title = _clean_text(column.get("title")) or column_id
        mapped = extract_column_field(title, column)
        if mapped is None:
            continue
        field_name, value = mapped
        fields[field_name] = value
    return fields


def extract_column_update(event: MondayEvent) -> dict[str, Any]:
    """Return the ticket fields changed by an ``update_column_value`` event."""

    if not event.column_id or event.value is None:
        return {}
    mapped = extract_column_field(event.column_title, event.value)
    if mapped is None:
        return {}
    field_name, value = mapped
    return {field_name: value}


def _name_from(value: Any) -> str | None:
    if isinstance(value, Mapping):
        return _clean_text(value.get("name"))
    return _clean_text(value)


def extract_new_name(event: MondayEvent) -> str | None:
    return _name_from(event.value)


def extract_previous_name(event: MondayEvent) -> str | None:
    return _name_from(event.previous_value)
