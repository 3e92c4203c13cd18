"""
Stage machine for leads.

The pipeline stages form a labeled set with free transitions: any stage may move to
any other stage, including out of won/lost. Only membership in the seven values is
checked, never adjacency.

change_stage sequence:
1. Validate the target stage (InvalidStage before any read or write)
2. Load the lead (NotFound)
3. Same stage: no-op (no write, no activity, no celebration)
4. Persist the new stage
5. Only after the write is confirmed, append one stage_change activity
6. On a transition into won, fire the celebration hook once
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional
from uuid import UUID

from domain.activity import Activity, ActivityType, NewActivity, StageChangePayload
from domain.errors import NotFound
from domain.lead import Lead, LeadStage
from repositories.store import RecordStore
from services.activity_service import append_after_write

logger = logging.getLogger(__name__)

WonHook = Callable[[Lead], None]


@dataclass(frozen=True, slots=True)
class StageChangeResult:
    """
    Outcome of a stage change request.

    activity is None (and changed is False) when the lead was already in the
    requested stage.
    """

    lead: Lead
    activity: Optional[Activity]
    celebrated: bool = False

    @property
    def changed(self) -> bool:
        return self.activity is not None


def change_stage(
    store: RecordStore,
    lead_id: UUID,
    new_stage: object,
    *,
    actor_id: str,
    on_won: Optional[WonHook] = None,
) -> StageChangeResult:
    """
    Move a lead to `new_stage`.

    Args:
        store: Record store used for the read, the write and the ledger append
        lead_id: Lead to move
        new_stage: Target stage; a LeadStage or its raw string value
        actor_id: User performing the change (recorded on the activity)
        on_won: Called once with the updated lead when it enters `won`

    Returns:
        StageChangeResult with the (possibly unchanged) lead and the new activity

    Raises:
        InvalidStage: target is not one of the seven stages
        NotFound: lead does not exist (before or during the write)
        StoreUnavailable: store failure, propagated unchanged
    """

    target = LeadStage.parse(new_stage)

    lead = store.get_lead(lead_id)
    if lead is None:
        raise NotFound("Lead", lead_id)

    old_stage = lead.stage
    if target is old_stage:
        logger.debug("Stage unchanged; skipping write", extra={"lead_id": str(lead_id), "stage": target.value})
        return StageChangeResult(lead=lead, activity=None)

    updated = store.update_lead_stage(lead_id, target)
    if updated is None:
        raise NotFound("Lead", lead_id)

    entry = NewActivity(
        lead_id=lead_id,
        activity_type=ActivityType.STAGE_CHANGE,
        created_by=actor_id,
        payload=StageChangePayload(old_stage=old_stage, new_stage=target),
        description=f"Stage changed from {old_stage.value} to {target.value}",
    )
    activity = append_after_write(
        store,
        entry,
        write_description=f"stage {old_stage.value} -> {target.value}",
    )

    logger.info(
        "Lead stage changed",
        extra={
            "lead_id": str(lead_id),
            "old_stage": old_stage.value,
            "new_stage": target.value,
            "actor_id": actor_id,
        },
    )

    celebrated = False
    if target is LeadStage.WON:
        celebrated = True
        if on_won is not None:
            on_won(updated)

    return StageChangeResult(lead=updated, activity=activity, celebrated=celebrated)


__all__ = ["StageChangeResult", "WonHook", "change_stage"]
