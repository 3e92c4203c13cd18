"""
Activity repository (persistence).

Insert-only access to the `lead_activities` ledger plus the `lead_callbacks` table.
Activities are never updated or deleted here. Privacy filtering is a read-time rule
owned by the activity service, not by this module.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Mapping, Optional
from uuid import UUID

from domain.activity import Activity, ActivityType, NewActivity, payload_from_metadata, payload_to_metadata
from domain.callback import Callback, CallbackPriority, CallbackStatus
from domain.errors import StoreUnavailable
from repositories.client import get_supabase
from repositories.rows import execute, map_row, map_rows, parse_optional_datetime, parse_utc_datetime, to_iso_utc

_ACTIVITIES_TABLE: str = "lead_activities"
_CALLBACKS_TABLE: str = "lead_callbacks"


def _row_to_activity(row: Mapping[str, Any]) -> Activity:
    """Convert a Supabase row into an Activity with its typed payload."""

    activity_type = ActivityType(str(row["activity_type"]))
    return Activity(
        activity_id=UUID(str(row["id"])),
        lead_id=UUID(str(row["lead_id"])),
        activity_type=activity_type,
        created_by=str(row.get("created_by") or ""),
        created_at=parse_utc_datetime(row["created_at"]),
        payload=payload_from_metadata(activity_type, row.get("metadata") or {}),
        description=str(row.get("description") or ""),
        is_private=bool(row.get("is_private", False)),
    )


def insert_activity(entry: NewActivity) -> Activity:
    """Append one activity and return it as stored (with id and created_at)."""

    payload: dict[str, Any] = {
        "lead_id": str(entry.lead_id),
        "activity_type": entry.activity_type.value,
        "created_by": entry.created_by,
        "description": entry.description,
        "metadata": payload_to_metadata(entry.payload),
        "is_private": entry.is_private,
    }
    rows = execute(get_supabase().table(_ACTIVITIES_TABLE).insert(payload), "create activity")
    if not rows:
        raise StoreUnavailable("Failed to create activity: no row returned")
    return map_row(rows[0], _row_to_activity, "create activity")


def list_activities_by_lead(lead_id: UUID) -> List[Activity]:
    """All activities for a lead, newest first."""

    rows = execute(
        get_supabase()
        .table(_ACTIVITIES_TABLE)
        .select("*")
        .eq("lead_id", str(lead_id))
        .order("created_at", desc=True),
        "fetch activities",
    )
    return map_rows(rows, _row_to_activity, "fetch activities")


def _row_to_callback(row: Mapping[str, Any]) -> Callback:
    return Callback(
        callback_id=UUID(str(row["id"])),
        lead_id=UUID(str(row["lead_id"])),
        callback_date=parse_utc_datetime(row["callback_date"]),
        created_by=str(row.get("created_by") or ""),
        priority=CallbackPriority(str(row.get("priority") or CallbackPriority.MEDIUM.value)),
        status=CallbackStatus(str(row.get("status") or CallbackStatus.SCHEDULED.value)),
        notes=row.get("notes"),
        created_at=parse_optional_datetime(row.get("created_at")),
        completed_at=parse_optional_datetime(row.get("completed_at")),
    )


def insert_callback(
    lead_id: UUID,
    callback_date: datetime,
    created_by: str,
    priority: CallbackPriority = CallbackPriority.MEDIUM,
    notes: Optional[str] = None,
) -> Callback:
    payload: dict[str, Any] = {
        "lead_id": str(lead_id),
        "callback_date": to_iso_utc(callback_date, name="callback_date"),
        "notes": notes,
        "priority": priority.value,
        "status": CallbackStatus.SCHEDULED.value,
        "created_by": created_by,
    }
    rows = execute(get_supabase().table(_CALLBACKS_TABLE).insert(payload), "create callback")
    if not rows:
        raise StoreUnavailable("Failed to create callback: no row returned")
    return map_row(rows[0], _row_to_callback, "create callback")


def list_callbacks_by_lead(lead_id: UUID) -> List[Callback]:
    """All callbacks for a lead ordered by callback date, latest first."""

    rows = execute(
        get_supabase()
        .table(_CALLBACKS_TABLE)
        .select("*")
        .eq("lead_id", str(lead_id))
        .order("callback_date", desc=True),
        "fetch callbacks",
    )
    return map_rows(rows, _row_to_callback, "fetch callbacks")


def get_callback_by_id(callback_id: UUID) -> Optional[Callback]:
    rows = execute(
        get_supabase().table(_CALLBACKS_TABLE).select("*").eq("id", str(callback_id)).limit(1),
        "fetch callback",
    )
    if not rows:
        return None
    return map_row(rows[0], _row_to_callback, "fetch callback")


def mark_callback_completed(callback_id: UUID, completed_at: datetime) -> Optional[Callback]:
    """Set status=completed and completed_at. Returns None if no row matched."""

    rows = execute(
        get_supabase()
        .table(_CALLBACKS_TABLE)
        .update(
            {
                "status": CallbackStatus.COMPLETED.value,
                "completed_at": to_iso_utc(completed_at, name="completed_at"),
            }
        )
        .eq("id", str(callback_id)),
        "update callback",
    )
    if not rows:
        return None
    return map_row(rows[0], _row_to_callback, "update callback")


__all__ = [
    "get_callback_by_id",
    "insert_activity",
    "insert_callback",
    "list_activities_by_lead",
    "list_callbacks_by_lead",
    "mark_callback_completed",
]
