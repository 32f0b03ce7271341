from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import ValidationError

from src.lifecycle.domain.events.status_change import EventType, StatusChangeNotification


def _as_str(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def encode_notification(notification: StatusChangeNotification) -> dict[str, str]:
    return {
        "notification_id": notification.notification_id,
        "type": notification.type.value,
        "task_id": notification.task_id,
        "status": notification.status.value,
        "changed_at": notification.changed_at.isoformat(),
    }


def decode_notification(fields: dict[str, Any]) -> StatusChangeNotification:
    try:
        data = {
            "notification_id": _as_str(fields.get("notification_id", "")),
            "type": EventType(_as_str(fields.get("type", ""))),
            "task_id": _as_str(fields.get("task_id", "")),
            "status": _as_str(fields.get("status", "")),
            "changed_at": datetime.fromisoformat(_as_str(fields.get("changed_at", ""))),
        }
    except ValueError as exc:
        raise ValueError("Invalid notification fields") from exc
    try:
        return StatusChangeNotification.model_validate(data)
    except ValidationError as exc:
        raise ValueError("Invalid notification schema") from exc
