"""
Lead repository (persistence).

This module provides *only* persistence operations for the Lead domain entity.
No business rules (stage validation, activity logging) belong here.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Mapping, Optional
from uuid import UUID

from domain.lead import Lead, LeadScore, LeadSource, LeadStage, LeadType
from repositories.client import get_supabase
from repositories.rows import execute, map_row, map_rows, parse_utc_datetime, to_decimal, to_iso_utc

# Supabase table name for Lead records.
# Keep this aligned with your database schema.
_LEADS_TABLE: str = "leads"


@dataclass(frozen=True, slots=True)
class LeadFilter:
    """Filter criteria for lead listings. Every field is optional."""

    stage: Optional[LeadStage] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    search: Optional[str] = None

    def matches_search(self, lead: Lead) -> bool:
        """Case-insensitive substring match on name, email, phone and lead code."""

        if not self.search:
            return True
        needle = self.search.lower()
        haystacks = (lead.full_name, lead.email, lead.phone, lead.lead_code)
        return any(needle in value.lower() for value in haystacks if value)


def _parse_sources(value: Any) -> tuple[LeadSource, ...]:
    # Older rows hold a single source string instead of an array.
    raw = value if isinstance(value, list) else [value] if value else []
    sources = tuple(LeadSource(str(s)) for s in raw if s)
    return sources or (LeadSource.OTHER,)


def _row_to_lead(row: Mapping[str, Any]) -> Lead:
    """Convert a Supabase row into a domain Lead."""

    # Helper to convert empty strings to None
    def get_optional(key: str) -> str | None:
        value = row.get(key, "")
        return value if value else None

    score = get_optional("lead_score")
    lead_type = get_optional("lead_type")
    budget = row.get("budget")

    return Lead(
        id=UUID(str(row["id"])),
        lead_code=str(row.get("lead_id") or ""),
        full_name=str(row.get("full_name") or ""),
        sources=_parse_sources(row.get("source")),
        stage=LeadStage(str(row.get("stage") or LeadStage.NEW.value)),
        created_at=parse_utc_datetime(row["created_at"]),
        email=get_optional("email"),
        phone=get_optional("phone"),
        product_inquiry=tuple(row.get("product_inquiry") or ()),
        tags=tuple(row.get("tags") or ()),
        assigned_to=get_optional("assigned_to"),
        rating=row.get("rating") or None,
        lead_score=LeadScore(score) if score else None,
        lead_type=LeadType(lead_type) if lead_type else None,
        city=get_optional("city"),
        budget=to_decimal(budget) if budget is not None else None,
        notes=get_optional("notes"),
    )


def _lead_to_row(lead: Lead) -> dict[str, Any]:
    """Convert a domain Lead to a Supabase row payload."""

    return {
        "id": str(lead.id),
        "lead_id": lead.lead_code,
        "full_name": lead.full_name,
        "email": lead.email,
        "phone": lead.phone,
        "whatsapp": lead.whatsapp,
        "whatsapp_number": lead.whatsapp_number,
        "source": [s.value for s in lead.sources],
        "product_inquiry": list(lead.product_inquiry),
        "tags": list(lead.tags),
        "stage": lead.stage.value,
        "assigned_to": lead.assigned_to,
        "rating": lead.rating,
        "lead_score": lead.lead_score.value if lead.lead_score else None,
        "lead_type": lead.lead_type.value if lead.lead_type else None,
        "city": lead.city,
        "budget": str(lead.budget) if lead.budget is not None else None,
        "notes": lead.notes,
        "created_at": to_iso_utc(lead.created_at, name="created_at"),
    }


def insert_lead(lead: Lead) -> None:
    """
    Insert a Lead into Supabase.

    Raises:
    - StoreUnavailable if Supabase returns an error response.
    - ValueError/TypeError for invalid domain values (e.g., timestamps).
    """

    payload = _lead_to_row(lead)
    execute(get_supabase().table(_LEADS_TABLE).insert(payload), "insert lead")


def get_lead_by_id(lead_id: UUID) -> Lead | None:
    """
    Fetch a Lead by ID.

    Returns:
    - Lead if found
    - None if no record exists for the given ID
    """

    rows = execute(
        get_supabase().table(_LEADS_TABLE).select("*").eq("id", str(lead_id)).limit(1),
        "fetch lead",
    )
    if not rows:
        return None
    return map_row(rows[0], _row_to_lead, "fetch lead")


def list_leads_by_filter(lead_filter: LeadFilter | None = None) -> List[Lead]:
    """
    List Leads newest first with optional stage / date filtering.

    Text search is applied after the fetch (name, email, phone, lead code).
    """

    lead_filter = lead_filter or LeadFilter()
    query = get_supabase().table(_LEADS_TABLE).select("*").order("created_at", desc=True)
    if lead_filter.stage is not None:
        query = query.eq("stage", lead_filter.stage.value)
    if lead_filter.date_from is not None:
        query = query.gte("created_at", to_iso_utc(lead_filter.date_from, name="date_from"))
    if lead_filter.date_to is not None:
        query = query.lte("created_at", to_iso_utc(lead_filter.date_to, name="date_to"))

    leads = map_rows(execute(query, "list leads"), _row_to_lead, "list leads")
    return [lead for lead in leads if lead_filter.matches_search(lead)]


def _update_lead(lead_id: UUID, payload: dict[str, Any], action: str) -> Lead | None:
    rows = execute(
        get_supabase().table(_LEADS_TABLE).update(payload).eq("id", str(lead_id)),
        action,
    )
    if not rows:
        return None
    return map_row(rows[0], _row_to_lead, action)


def update_lead_stage(lead_id: UUID, stage: LeadStage) -> Lead | None:
    """Persist a new stage. Returns the updated Lead, or None if no row matched."""

    return _update_lead(lead_id, {"stage": stage.value}, "update lead stage")


def update_lead_rating(lead_id: UUID, rating: int | None) -> Lead | None:
    return _update_lead(lead_id, {"rating": rating}, "update lead rating")


def update_lead_assignment(lead_id: UUID, assigned_to: str | None) -> Lead | None:
    return _update_lead(lead_id, {"assigned_to": assigned_to}, "update lead assignment")


__all__ = [
    "LeadFilter",
    "get_lead_by_id",
    "insert_lead",
    "list_leads_by_filter",
    "update_lead_assignment",
    "update_lead_rating",
    "update_lead_stage",
]
