"""
Tests for `services/stage_service.py`.

Covers contract rules:
- Requesting the current stage is a no-op (no write, no activity, no celebration).
- Every real transition produces exactly one stage_change activity.
- Invalid stages are rejected before any read or write.
- Entering won celebrates once per transition.
- When the ledger append fails after the write, the stage stays updated and the
  error propagates.
"""

from __future__ import annotations

import logging
from uuid import uuid4

import pytest

from domain.activity import ActivityType, StageChangePayload
from domain.errors import InvalidStage, NotFound, StoreUnavailable
from domain.lead import LeadStage
from fakes import make_lead
from services.stage_service import change_stage


def test_same_stage_is_a_noop(store) -> None:
    lead = store.add_lead(make_lead(stage=LeadStage.QUALIFIED))

    result = change_stage(store, lead.id, "qualified", actor_id="user-a")

    assert result.changed is False
    assert result.activity is None
    assert result.celebrated is False
    assert result.lead == lead
    assert store.writes == []
    assert store.activities == []


def test_transition_writes_stage_and_logs_one_activity(store) -> None:
    lead = store.add_lead(make_lead(stage=LeadStage.NEW))

    result = change_stage(store, lead.id, "contacted", actor_id="user-a")

    assert result.changed is True
    assert store.leads[lead.id].stage is LeadStage.CONTACTED
    assert store.writes == [("stage", lead.id, LeadStage.CONTACTED)]

    assert len(store.activities) == 1
    activity = store.activities[0]
    assert activity.activity_type is ActivityType.STAGE_CHANGE
    assert activity.payload == StageChangePayload(old_stage=LeadStage.NEW, new_stage=LeadStage.CONTACTED)
    assert activity.metadata == {"old_stage": "new", "new_stage": "contacted"}
    assert activity.created_by == "user-a"
    assert activity.description == "Stage changed from new to contacted"


def test_new_to_won_celebrates_once(store) -> None:
    lead = store.add_lead(make_lead(stage=LeadStage.NEW))
    celebrations = []

    first = change_stage(store, lead.id, LeadStage.WON, actor_id="user-a", on_won=celebrations.append)
    second = change_stage(store, lead.id, LeadStage.WON, actor_id="user-a", on_won=celebrations.append)

    assert first.celebrated is True
    assert second.celebrated is False
    assert [l.stage for l in celebrations] == [LeadStage.WON]
    assert len(store.activities) == 1
    assert store.activities[0].metadata == {"old_stage": "new", "new_stage": "won"}


def test_closed_stages_can_be_reopened(store) -> None:
    lead = store.add_lead(make_lead(stage=LeadStage.LOST))

    result = change_stage(store, lead.id, "negotiation", actor_id="user-a")

    assert result.lead.stage is LeadStage.NEGOTIATION
    assert result.celebrated is False


@pytest.mark.parametrize("stage", ["archived", "WON", "", None])
def test_invalid_stage_raises_without_touching_store(store, stage) -> None:
    lead = store.add_lead(make_lead(stage=LeadStage.NEW))

    with pytest.raises(InvalidStage):
        change_stage(store, lead.id, stage, actor_id="user-a")

    assert store.writes == []
    assert store.activities == []
    assert store.leads[lead.id].stage is LeadStage.NEW


def test_unknown_lead_raises_not_found(store) -> None:
    with pytest.raises(NotFound):
        change_stage(store, uuid4(), "won", actor_id="user-a")

    assert store.activities == []


def test_append_failure_keeps_stage_and_logs_error(store, caplog) -> None:
    """Verify the write is not rolled back and the missing ledger entry is logged."""

    lead = store.add_lead(make_lead(stage=LeadStage.PROPOSAL))
    store.fail_append = True

    with caplog.at_level(logging.ERROR, logger="services.activity_service"):
        with pytest.raises(StoreUnavailable):
            change_stage(store, lead.id, "won", actor_id="user-a")

    assert store.leads[lead.id].stage is LeadStage.WON
    assert store.activities == []
    assert any("ledger entry is missing" in r.getMessage() for r in caplog.records)


def test_sequence_of_transitions_logs_each_one(store) -> None:
    lead = store.add_lead(make_lead(stage=LeadStage.NEW))

    for stage in ("contacted", "qualified", "qualified", "proposal", "won"):
        change_stage(store, lead.id, stage, actor_id="user-a")

    assert [a.metadata["new_stage"] for a in store.activities] == ["contacted", "qualified", "proposal", "won"]
    assert [a.metadata["old_stage"] for a in store.activities] == ["new", "contacted", "qualified", "proposal"]
