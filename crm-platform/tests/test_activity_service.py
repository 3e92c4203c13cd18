"""
Tests for `services/activity_service.py`.

Covers contract rules:
- Timelines are returned newest first.
- Private notes are returned only to their author, and hiding them is not an error.
- lead_id and activity type are required.
- Scheduling a callback writes the Callback record and one `callback` entry;
  completing it changes only the Callback record.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from domain.activity import ActivityType, CallDirection, EmailPayload, NotePayload
from domain.callback import CallbackPriority, CallbackStatus
from domain.errors import NotFound, StoreUnavailable
from fakes import FIXED_NOW, make_lead
from services import activity_service


def test_private_note_hidden_from_other_users(store) -> None:
    lead = store.add_lead(make_lead())
    activity_service.add_note(store, lead.id, "Shared context", actor_id="user-a")
    activity_service.add_note(store, lead.id, "Only for me", actor_id="user-a", is_private=True)

    seen_by_author = activity_service.list_for_lead(store, lead.id, "user-a")
    seen_by_other = activity_service.list_for_lead(store, lead.id, "user-b")

    assert [a.payload.content for a in seen_by_author] == ["Only for me", "Shared context"]
    assert [a.payload.content for a in seen_by_other] == ["Shared context"]


def test_timeline_is_newest_first_across_types(store) -> None:
    lead = store.add_lead(make_lead())
    activity_service.add_note(store, lead.id, "first", actor_id="user-a")
    activity_service.log_call(
        store, lead.id, actor_id="user-a", direction=CallDirection.INBOUND, outcome="interested"
    )
    activity_service.log_email(store, lead.id, actor_id="user-a", subject="Brochure")

    timeline = activity_service.list_for_lead(store, lead.id, "user-b")

    assert [a.activity_type for a in timeline] == [ActivityType.EMAIL, ActivityType.CALL, ActivityType.NOTE]
    assert timeline == sorted(timeline, key=lambda a: a.created_at, reverse=True)


def test_note_content_is_trimmed_and_required(store) -> None:
    lead = store.add_lead(make_lead())

    note = activity_service.add_note(store, lead.id, "  call after 5pm  ", actor_id="user-a", tags=["timing"])
    assert note.payload == NotePayload(content="call after 5pm", tags=("timing",))

    with pytest.raises(ValueError):
        activity_service.add_note(store, lead.id, "   ", actor_id="user-a")


def test_call_and_email_default_descriptions(store) -> None:
    lead = store.add_lead(make_lead())

    call = activity_service.log_call(
        store, lead.id, actor_id="user-a", direction="outbound", outcome="no answer", duration_seconds=30
    )
    email = activity_service.log_email(store, lead.id, actor_id="user-a", subject="Quote", recipient="a@b.co")

    assert call.description == "Outbound call: no answer"
    assert call.metadata == {"direction": "outbound", "outcome": "no answer", "duration_seconds": 30}
    assert email.payload == EmailPayload(subject="Quote", recipient="a@b.co")
    assert email.description == "Email sent: Quote"


def test_append_requires_lead_and_type(store) -> None:
    with pytest.raises(ValueError, match="lead_id is required"):
        activity_service.append(store, None, ActivityType.NOTE, actor_id="user-a", payload=NotePayload("x"))

    with pytest.raises(ValueError, match="Activity type is required"):
        activity_service.append(store, uuid4(), None, actor_id="user-a", payload=NotePayload("x"))

    assert store.activities == []


def test_append_propagates_store_failure(store) -> None:
    store.fail_append = True

    with pytest.raises(StoreUnavailable):
        activity_service.add_note(store, uuid4(), "hello", actor_id="user-a")


def test_schedule_callback_writes_record_and_entry(store) -> None:
    lead = store.add_lead(make_lead())
    when = FIXED_NOW + timedelta(days=2)

    callback, activity = activity_service.schedule_callback(
        store, lead.id, when, actor_id="user-a", priority=CallbackPriority.HIGH, notes="Discuss pricing"
    )

    assert callback.status is CallbackStatus.SCHEDULED
    assert store.callbacks[callback.callback_id] == callback
    assert activity.activity_type is ActivityType.CALLBACK
    assert activity.metadata["callback_id"] == str(callback.callback_id)
    assert activity.metadata["priority"] == "high"


def test_schedule_callback_requires_utc_date(store) -> None:
    lead = store.add_lead(make_lead())

    with pytest.raises(ValueError):
        activity_service.schedule_callback(store, lead.id, datetime(2025, 7, 1, 9, 0), actor_id="user-a")

    assert store.callbacks == {}


def test_complete_callback_leaves_ledger_untouched(store) -> None:
    lead = store.add_lead(make_lead())
    callback, activity = activity_service.schedule_callback(
        store, lead.id, FIXED_NOW + timedelta(days=1), actor_id="user-a"
    )
    done_at = FIXED_NOW + timedelta(days=1, hours=2)

    done = activity_service.complete_callback(store, callback.callback_id, now=done_at)
    again = activity_service.complete_callback(store, callback.callback_id, now=done_at + timedelta(hours=1))

    assert done.status is CallbackStatus.COMPLETED
    assert done.completed_at == done_at
    assert again.completed_at == done_at
    assert store.activities == [activity]


def test_complete_unknown_callback_raises(store) -> None:
    with pytest.raises(NotFound):
        activity_service.complete_callback(store, uuid4(), now=datetime(2025, 1, 1, tzinfo=timezone.utc))


def test_list_callbacks_newest_date_first(store) -> None:
    lead = store.add_lead(make_lead())
    for days in (1, 3, 2):
        activity_service.schedule_callback(store, lead.id, FIXED_NOW + timedelta(days=days), actor_id="user-a")

    callbacks = activity_service.list_callbacks(store, lead.id)

    assert [cb.callback_date for cb in callbacks] == [
        FIXED_NOW + timedelta(days=3),
        FIXED_NOW + timedelta(days=2),
        FIXED_NOW + timedelta(days=1),
    ]


def test_complete_callback_of_another_lead_is_not_found(store) -> None:
    lead = store.add_lead(make_lead())
    other = store.add_lead(make_lead())
    callback, _ = activity_service.schedule_callback(store, lead.id, FIXED_NOW + timedelta(days=1), actor_id="user-a")

    with pytest.raises(NotFound):
        activity_service.complete_callback(store, callback.callback_id, lead_id=other.id, now=FIXED_NOW)

    assert store.callbacks[callback.callback_id].status is CallbackStatus.SCHEDULED


def test_complete_callback_requires_utc_time(store) -> None:
    lead = store.add_lead(make_lead())
    callback, _ = activity_service.schedule_callback(store, lead.id, FIXED_NOW + timedelta(days=1), actor_id="user-a")

    with pytest.raises(ValueError):
        activity_service.complete_callback(store, callback.callback_id, now=datetime(2025, 6, 16, 9, 0))

    assert store.callbacks[callback.callback_id].status is CallbackStatus.SCHEDULED
