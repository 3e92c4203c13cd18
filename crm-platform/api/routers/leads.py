"""
Leads API Endpoints.

Thin handlers over the lead, stage and activity services.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from api.dependencies import Identity, get_identity, get_store, to_http_exception
from api.models import (
    ActivityListResponse,
    ActivityResponse,
    AssignRequest,
    CallbackListResponse,
    CallbackRequest,
    CallbackResponse,
    CallRequest,
    EmailRequest,
    LeadListResponse,
    LeadResponse,
    NoteRequest,
    RatingRequest,
    StageChangeRequest,
    StageChangeResponse,
)
from domain.activity import CallDirection
from domain.callback import CallbackPriority
from domain.lead import LeadStage
from repositories.store import LeadFilter, RecordStore
from services import activity_service, lead_service, stage_service

router = APIRouter()


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@router.get(
    "/leads",
    response_model=LeadListResponse,
    summary="List Leads",
    description="Leads newest first, optionally filtered by stage, creation date and text search."
)
def list_leads(
    stage: Optional[str] = Query(None, description="Pipeline stage, or 'all'"),
    search: Optional[str] = Query(None, description="Matches name, email, phone or lead code"),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    identity: Identity = Depends(get_identity),
    store: RecordStore = Depends(get_store),
):
    try:
        lead_filter = LeadFilter(
            stage=LeadStage.parse(stage) if stage and stage != "all" else None,
            date_from=_utc(date_from),
            date_to=_utc(date_to),
            search=search or None,
        )
        leads = lead_service.list_leads(store, lead_filter)
    except Exception as e:
        raise to_http_exception(e)

    now = datetime.now(timezone.utc)
    return LeadListResponse(
        leads=[LeadResponse.from_domain(lead, now) for lead in leads],
        total_count=len(leads),
    )


@router.get("/leads/{lead_id}", response_model=LeadResponse, summary="Get Lead")
def get_lead(
    lead_id: UUID,
    identity: Identity = Depends(get_identity),
    store: RecordStore = Depends(get_store),
):
    try:
        lead = lead_service.get_lead(store, lead_id)
    except Exception as e:
        raise to_http_exception(e)
    return LeadResponse.from_domain(lead, datetime.now(timezone.utc))


@router.patch(
    "/leads/{lead_id}/stage",
    response_model=StageChangeResponse,
    summary="Change Lead Stage",
    description="Move a lead to any of the seven stages. Requesting the current stage is a no-op."
)
def change_lead_stage(
    lead_id: UUID,
    request: StageChangeRequest,
    identity: Identity = Depends(get_identity),
    store: RecordStore = Depends(get_store),
):
    """
    Change the pipeline stage of a lead.

    **How it works:**
    1. Rejects values outside new, contacted, qualified, proposal, negotiation, won, lost
    2. Persists the new stage
    3. Records one `stage_change` activity with `old_stage` / `new_stage`
    4. `celebrate` is true when the lead just moved into `won`
    """
    try:
        result = stage_service.change_stage(store, lead_id, request.stage, actor_id=identity.user_id)
    except Exception as e:
        raise to_http_exception(e)

    return StageChangeResponse(
        lead=LeadResponse.from_domain(result.lead, datetime.now(timezone.utc)),
        activity=ActivityResponse.from_domain(result.activity) if result.activity else None,
        changed=result.changed,
        celebrate=result.celebrated,
    )


@router.patch("/leads/{lead_id}/rating", response_model=LeadResponse, summary="Rate Lead")
def rate_lead(
    lead_id: UUID,
    request: RatingRequest,
    identity: Identity = Depends(get_identity),
    store: RecordStore = Depends(get_store),
):
    try:
        lead = lead_service.update_rating(store, lead_id, request.rating)
    except Exception as e:
        raise to_http_exception(e)
    return LeadResponse.from_domain(lead, datetime.now(timezone.utc))


@router.patch("/leads/{lead_id}/assign", response_model=LeadResponse, summary="Assign Lead")
def assign_lead(
    lead_id: UUID,
    request: AssignRequest,
    identity: Identity = Depends(get_identity),
    store: RecordStore = Depends(get_store),
):
    try:
        lead = lead_service.assign_lead(store, lead_id, request.assigned_to, actor_id=identity.user_id)
    except Exception as e:
        raise to_http_exception(e)
    return LeadResponse.from_domain(lead, datetime.now(timezone.utc))


@router.get(
    "/leads/{lead_id}/activities",
    response_model=ActivityListResponse,
    summary="Lead Activity Timeline",
    description="All activities newest first. Private notes are only returned to their author."
)
def list_activities(
    lead_id: UUID,
    identity: Identity = Depends(get_identity),
    store: RecordStore = Depends(get_store),
):
    try:
        entries = activity_service.list_for_lead(store, lead_id, identity.user_id)
    except Exception as e:
        raise to_http_exception(e)
    return ActivityListResponse(activities=[ActivityResponse.from_domain(a) for a in entries])


@router.post("/leads/{lead_id}/notes", response_model=ActivityResponse, summary="Add Note")
def add_note(
    lead_id: UUID,
    request: NoteRequest,
    identity: Identity = Depends(get_identity),
    store: RecordStore = Depends(get_store),
):
    try:
        activity = activity_service.add_note(
            store,
            lead_id,
            request.content,
            actor_id=identity.user_id,
            is_private=request.is_private,
            tags=request.tags,
        )
    except Exception as e:
        raise to_http_exception(e)
    return ActivityResponse.from_domain(activity)


@router.post("/leads/{lead_id}/calls", response_model=ActivityResponse, summary="Log Call")
def log_call(
    lead_id: UUID,
    request: CallRequest,
    identity: Identity = Depends(get_identity),
    store: RecordStore = Depends(get_store),
):
    try:
        activity = activity_service.log_call(
            store,
            lead_id,
            actor_id=identity.user_id,
            direction=CallDirection(request.direction),
            outcome=request.outcome,
            duration_seconds=request.duration_seconds,
            description=request.description,
        )
    except Exception as e:
        raise to_http_exception(e)
    return ActivityResponse.from_domain(activity)


@router.post("/leads/{lead_id}/emails", response_model=ActivityResponse, summary="Log Email")
def log_email(
    lead_id: UUID,
    request: EmailRequest,
    identity: Identity = Depends(get_identity),
    store: RecordStore = Depends(get_store),
):
    try:
        activity = activity_service.log_email(
            store,
            lead_id,
            actor_id=identity.user_id,
            subject=request.subject,
            recipient=request.recipient,
            description=request.description,
        )
    except Exception as e:
        raise to_http_exception(e)
    return ActivityResponse.from_domain(activity)


@router.get("/leads/{lead_id}/callbacks", response_model=CallbackListResponse, summary="List Callbacks")
def list_callbacks(
    lead_id: UUID,
    identity: Identity = Depends(get_identity),
    store: RecordStore = Depends(get_store),
):
    try:
        callbacks = activity_service.list_callbacks(store, lead_id)
    except Exception as e:
        raise to_http_exception(e)
    return CallbackListResponse(callbacks=[CallbackResponse.from_domain(cb) for cb in callbacks])


@router.post("/leads/{lead_id}/callbacks", response_model=CallbackResponse, summary="Schedule Callback")
def schedule_callback(
    lead_id: UUID,
    request: CallbackRequest,
    identity: Identity = Depends(get_identity),
    store: RecordStore = Depends(get_store),
):
    try:
        callback, _ = activity_service.schedule_callback(
            store,
            lead_id,
            _utc(request.callback_date),
            actor_id=identity.user_id,
            priority=CallbackPriority(request.priority),
            notes=request.notes,
        )
    except Exception as e:
        raise to_http_exception(e)
    return CallbackResponse.from_domain(callback)


@router.patch(
    "/leads/{lead_id}/callbacks/{callback_id}/complete",
    response_model=CallbackResponse,
    summary="Complete Callback"
)
def complete_callback(
    lead_id: UUID,
    callback_id: UUID,
    identity: Identity = Depends(get_identity),
    store: RecordStore = Depends(get_store),
):
    try:
        callback = activity_service.complete_callback(store, callback_id, lead_id=lead_id)
    except Exception as e:
        raise to_http_exception(e)
    return CallbackResponse.from_domain(callback)
