"""
Tests for `services/lead_service.py`.

Covers contract rules:
- Listing is newest first and honors stage, date and text filters.
- Ratings are validated before any write; rating changes are not logged.
- Assignment changes write one assignment_change entry; re-assigning the same user
  is a no-op.
"""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest

from domain.activity import ActivityType, AssignmentChangePayload
from domain.errors import InvalidRating, NotFound
from domain.lead import LeadStage
from fakes import FIXED_NOW, make_lead
from repositories.store import LeadFilter
from services import lead_service


def test_list_leads_newest_first_with_filters(store) -> None:
    old = store.add_lead(make_lead(full_name="Old Lead", created_at=FIXED_NOW - timedelta(days=10)))
    mid = store.add_lead(
        make_lead(full_name="Mid Lead", stage=LeadStage.QUALIFIED, created_at=FIXED_NOW - timedelta(days=5))
    )
    new = store.add_lead(make_lead(full_name="New Lead", email="buyer@example.com", created_at=FIXED_NOW))

    assert [l.id for l in lead_service.list_leads(store)] == [new.id, mid.id, old.id]
    assert [l.id for l in lead_service.list_leads(store, LeadFilter(stage=LeadStage.QUALIFIED))] == [mid.id]
    assert [l.id for l in lead_service.list_leads(store, LeadFilter(search="EXAMPLE.com"))] == [new.id]
    assert [
        l.id for l in lead_service.list_leads(store, LeadFilter(date_from=FIXED_NOW - timedelta(days=6)))
    ] == [new.id, mid.id]


def test_search_matches_lead_code(store) -> None:
    lead = store.add_lead(make_lead(lead_code="LD-0777"))
    store.add_lead(make_lead(lead_code="LD-0001"))

    assert [l.id for l in lead_service.list_leads(store, LeadFilter(search="ld-0777"))] == [lead.id]


def test_list_leads_leaves_filtering_to_store(store, monkeypatch) -> None:
    lead = store.add_lead(make_lead(full_name="Unrelated"))
    received = []

    def list_leads(lead_filter=None):
        received.append(lead_filter)
        return [lead]

    monkeypatch.setattr(store, "list_leads", list_leads)
    lead_filter = LeadFilter(search="no such lead")

    assert lead_service.list_leads(store, lead_filter) == [lead]
    assert received == [lead_filter]


def test_get_lead_not_found(store) -> None:
    with pytest.raises(NotFound):
        lead_service.get_lead(store, uuid4())


def test_update_rating_sets_and_clears(store) -> None:
    lead = store.add_lead(make_lead())

    assert lead_service.update_rating(store, lead.id, 4).rating == 4
    assert lead_service.update_rating(store, lead.id, None).rating is None
    assert store.activities == []


@pytest.mark.parametrize("rating", [0, 6, 3.5, "5"])
def test_update_rating_rejects_before_write(store, rating) -> None:
    lead = store.add_lead(make_lead())

    with pytest.raises(InvalidRating):
        lead_service.update_rating(store, lead.id, rating)

    assert store.writes == []


def test_update_rating_unknown_lead(store) -> None:
    with pytest.raises(NotFound):
        lead_service.update_rating(store, uuid4(), 3)


def test_assign_lead_logs_change_once(store) -> None:
    lead = store.add_lead(make_lead(assigned_to="user-a"))

    updated = lead_service.assign_lead(store, lead.id, "user-b", actor_id="admin-1")
    lead_service.assign_lead(store, lead.id, "user-b", actor_id="admin-1")

    assert updated.assigned_to == "user-b"
    assert len(store.activities) == 1
    entry = store.activities[0]
    assert entry.activity_type is ActivityType.ASSIGNMENT_CHANGE
    assert entry.payload == AssignmentChangePayload(old_assignee="user-a", new_assignee="user-b")
    assert entry.created_by == "admin-1"


def test_unassign_lead(store) -> None:
    lead = store.add_lead(make_lead(assigned_to="user-a"))

    updated = lead_service.assign_lead(store, lead.id, None, actor_id="admin-1")

    assert updated.assigned_to is None
    assert store.activities[0].description == "Lead unassigned"
