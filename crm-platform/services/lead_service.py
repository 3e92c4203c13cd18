"""
Lead service: reads and the non-stage mutations (rating, assignment).

Rating changes are not logged to the ledger. Assignment changes are, with the same
write-then-log ordering as stage changes.
"""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from domain.activity import ActivityType, AssignmentChangePayload, NewActivity
from domain.errors import NotFound
from domain.lead import Lead, validate_rating
from repositories.store import LeadFilter, RecordStore
from services.activity_service import append_after_write

logger = logging.getLogger(__name__)


def get_lead(store: RecordStore, lead_id: UUID) -> Lead:
    lead = store.get_lead(lead_id)
    if lead is None:
        raise NotFound("Lead", lead_id)
    return lead


def list_leads(store: RecordStore, lead_filter: Optional[LeadFilter] = None) -> List[Lead]:
    """Leads newest first, filtered by stage, creation window and text search."""

    leads = store.list_leads(lead_filter or LeadFilter())
    return sorted(leads, key=lambda lead: lead.created_at, reverse=True)


def update_rating(store: RecordStore, lead_id: UUID, rating: object) -> Lead:
    """Set or clear the 1-5 star rating. InvalidRating is raised before any write."""

    value = validate_rating(rating)
    updated = store.update_lead_rating(lead_id, value)
    if updated is None:
        raise NotFound("Lead", lead_id)
    return updated


def assign_lead(store: RecordStore, lead_id: UUID, assignee_id: Optional[str], *, actor_id: str) -> Lead:
    """
    Assign (or unassign with None) a lead.

    Writes an assignment_change activity only when the assignee actually changes.
    """

    lead = get_lead(store, lead_id)
    new_assignee = assignee_id or None
    if lead.assigned_to == new_assignee:
        return lead

    updated = store.update_lead_assignment(lead_id, new_assignee)
    if updated is None:
        raise NotFound("Lead", lead_id)

    entry = NewActivity(
        lead_id=lead_id,
        activity_type=ActivityType.ASSIGNMENT_CHANGE,
        created_by=actor_id,
        payload=AssignmentChangePayload(old_assignee=lead.assigned_to, new_assignee=new_assignee),
        description=f"Lead assigned to {new_assignee}" if new_assignee else "Lead unassigned",
    )
    append_after_write(store, entry, write_description=f"assignment {lead.assigned_to} -> {new_assignee}")
    logger.info(
        "Lead assignment changed",
        extra={"lead_id": str(lead_id), "old_assignee": lead.assigned_to, "new_assignee": new_assignee},
    )
    return updated


__all__ = ["assign_lead", "get_lead", "list_leads", "update_rating"]
