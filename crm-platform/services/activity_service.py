"""
Activity ledger service.

Handles:
- Appending ledger entries (notes, calls, emails, callbacks, generic events)
- Reading a lead's ledger newest first with the private-note rule applied
- Scheduling and completing callbacks

Visibility rule (read time only):
    an entry is returned iff  not is_private  OR  created_by == requester
Hidden entries are silently omitted; this is not an error.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from domain.activity import (
    Activity,
    ActivityPayload,
    ActivityType,
    CallbackPayload,
    CallDirection,
    CallPayload,
    EmailPayload,
    NewActivity,
    NotePayload,
)
from domain.callback import Callback, CallbackPriority
from domain.errors import NotFound
from domain.time import require_utc_timestamp
from repositories.store import RecordStore

logger = logging.getLogger(__name__)


def append(
    store: RecordStore,
    lead_id: Optional[UUID],
    activity_type: Optional[ActivityType],
    *,
    actor_id: str,
    payload: ActivityPayload,
    description: str = "",
    is_private: bool = False,
) -> Activity:
    """
    Insert one ledger entry.

    Only presence of lead_id and activity_type is validated; the store may still
    reject the insert (StoreUnavailable propagates unchanged).
    """

    if lead_id is None:
        raise ValueError("lead_id is required")
    if activity_type is None:
        raise ValueError("Activity type is required")

    entry = NewActivity(
        lead_id=lead_id,
        activity_type=ActivityType(activity_type),
        created_by=actor_id,
        payload=payload,
        description=description or "",
        is_private=is_private,
    )
    return store.append_activity(entry)


def append_after_write(store: RecordStore, entry: NewActivity, *, write_description: str) -> Activity:
    """
    Append the activity that documents a write which has already been persisted.

    There is no transaction spanning both steps. If the append fails the write stays
    in place; the gap is logged and the store error is re-raised without retry.
    """

    try:
        return store.append_activity(entry)
    except Exception:
        logger.error(
            "Activity append failed after a confirmed write; ledger entry is missing",
            extra={
                "lead_id": str(entry.lead_id),
                "activity_type": entry.activity_type.value,
                "write": write_description,
                "metadata": entry.payload,
            },
        )
        raise


def visible_entries(entries: Iterable[Activity], requester_id: Optional[str]) -> List[Activity]:
    return [entry for entry in entries if entry.is_visible_to(requester_id)]


def list_for_lead(store: RecordStore, lead_id: UUID, requester_id: Optional[str]) -> List[Activity]:
    """All entries for the lead the requester may see, newest first."""

    entries = store.list_activities(lead_id)
    ordered = sorted(entries, key=lambda entry: entry.created_at, reverse=True)
    return visible_entries(ordered, requester_id)


def add_note(
    store: RecordStore,
    lead_id: UUID,
    content: str,
    *,
    actor_id: str,
    is_private: bool = False,
    tags: Sequence[str] = (),
) -> Activity:
    text = (content or "").strip()
    if not text:
        raise ValueError("Note content is required")

    return append(
        store,
        lead_id,
        ActivityType.NOTE,
        actor_id=actor_id,
        payload=NotePayload(content=text, tags=tuple(tags)),
        description=text,
        is_private=bool(is_private),
    )


def log_call(
    store: RecordStore,
    lead_id: UUID,
    *,
    actor_id: str,
    direction: CallDirection,
    outcome: str,
    duration_seconds: int = 0,
    description: str = "",
) -> Activity:
    payload = CallPayload(direction=CallDirection(direction), outcome=outcome, duration_seconds=duration_seconds)
    return append(
        store,
        lead_id,
        ActivityType.CALL,
        actor_id=actor_id,
        payload=payload,
        description=description or f"{payload.direction.value.title()} call: {outcome}",
    )


def log_email(
    store: RecordStore,
    lead_id: UUID,
    *,
    actor_id: str,
    subject: str,
    recipient: Optional[str] = None,
    description: str = "",
) -> Activity:
    return append(
        store,
        lead_id,
        ActivityType.EMAIL,
        actor_id=actor_id,
        payload=EmailPayload(subject=subject, recipient=recipient),
        description=description or f"Email sent: {subject}",
    )


def schedule_callback(
    store: RecordStore,
    lead_id: UUID,
    callback_date: datetime,
    *,
    actor_id: str,
    priority: CallbackPriority = CallbackPriority.MEDIUM,
    notes: Optional[str] = None,
) -> tuple[Callback, Activity]:
    """Create the Callback record, then the `callback` ledger entry that announces it."""

    require_utc_timestamp("callback_date", callback_date)
    callback = store.insert_callback(lead_id, callback_date, actor_id, CallbackPriority(priority), notes)

    entry = NewActivity(
        lead_id=lead_id,
        activity_type=ActivityType.CALLBACK,
        created_by=actor_id,
        payload=CallbackPayload(
            callback_id=callback.callback_id,
            callback_date=callback.callback_date,
            priority=callback.priority.value,
        ),
        description=f"Callback scheduled for {callback.callback_date.isoformat()}",
    )
    activity = append_after_write(store, entry, write_description=f"callback {callback.callback_id} scheduled")
    return callback, activity


def list_callbacks(store: RecordStore, lead_id: UUID) -> List[Callback]:
    return sorted(store.list_callbacks(lead_id), key=lambda cb: cb.callback_date, reverse=True)


def complete_callback(
    store: RecordStore,
    callback_id: UUID,
    *,
    lead_id: Optional[UUID] = None,
    now: Optional[datetime] = None,
) -> Callback:
    """
    Mark a callback completed.

    Only the Callback record changes; the ledger entry written at scheduling time is
    immutable. When lead_id is given, a callback belonging to another lead is NotFound.
    """

    completed_at = now or datetime.now(timezone.utc)
    require_utc_timestamp("completed_at", completed_at)
    existing = store.get_callback(callback_id)
    if existing is None or (lead_id is not None and existing.lead_id != lead_id):
        raise NotFound("Callback", callback_id)
    if existing.is_completed:
        return existing

    updated = store.complete_callback(callback_id, completed_at)
    if updated is None:
        raise NotFound("Callback", callback_id)
    return updated


__all__ = [
    "add_note",
    "append",
    "append_after_write",
    "complete_callback",
    "list_callbacks",
    "list_for_lead",
    "log_call",
    "log_email",
    "schedule_callback",
    "visible_entries",
]
