"""
Record store seam.

Services talk to persistence through the RecordStore protocol so that the stage
machine, ledger and analytics can run against Supabase in production and against an
in-memory store in tests.

Contract:
- get_* returns None when the record does not exist.
- update_* returns the updated record, or None when no record matched.
- Store failures raise StoreUnavailable; nothing is retried here.
- list_leads applies every LeadFilter field, text search included.
- list_activities returns newest first.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol
from uuid import UUID

from domain.activity import Activity, NewActivity
from domain.callback import Callback, CallbackPriority
from domain.lead import Lead, LeadStage
from domain.sales import Order, Product, Quotation, User
from repositories import activity_repository, lead_repository, sales_repository
from repositories.lead_repository import LeadFilter


class RecordStore(Protocol):
    def get_lead(self, lead_id: UUID) -> Optional[Lead]: ...

    def list_leads(self, lead_filter: Optional[LeadFilter] = None) -> List[Lead]: ...

    def update_lead_stage(self, lead_id: UUID, stage: LeadStage) -> Optional[Lead]: ...

    def update_lead_rating(self, lead_id: UUID, rating: Optional[int]) -> Optional[Lead]: ...

    def update_lead_assignment(self, lead_id: UUID, assigned_to: Optional[str]) -> Optional[Lead]: ...

    def list_quotations(self) -> List[Quotation]: ...

    def list_orders(self) -> List[Order]: ...

    def list_users(self) -> List[User]: ...

    def list_products(self) -> List[Product]: ...

    def append_activity(self, entry: NewActivity) -> Activity: ...

    def list_activities(self, lead_id: UUID) -> List[Activity]: ...

    def insert_callback(
        self,
        lead_id: UUID,
        callback_date: datetime,
        created_by: str,
        priority: CallbackPriority,
        notes: Optional[str],
    ) -> Callback: ...

    def list_callbacks(self, lead_id: UUID) -> List[Callback]: ...

    def get_callback(self, callback_id: UUID) -> Optional[Callback]: ...

    def complete_callback(self, callback_id: UUID, completed_at: datetime) -> Optional[Callback]: ...


class SupabaseRecordStore:
    """RecordStore backed by the Supabase repository modules."""

    def get_lead(self, lead_id: UUID) -> Optional[Lead]:
        return lead_repository.get_lead_by_id(lead_id)

    def list_leads(self, lead_filter: Optional[LeadFilter] = None) -> List[Lead]:
        return lead_repository.list_leads_by_filter(lead_filter)

    def update_lead_stage(self, lead_id: UUID, stage: LeadStage) -> Optional[Lead]:
        return lead_repository.update_lead_stage(lead_id, stage)

    def update_lead_rating(self, lead_id: UUID, rating: Optional[int]) -> Optional[Lead]:
        return lead_repository.update_lead_rating(lead_id, rating)

    def update_lead_assignment(self, lead_id: UUID, assigned_to: Optional[str]) -> Optional[Lead]:
        return lead_repository.update_lead_assignment(lead_id, assigned_to)

    def list_quotations(self) -> List[Quotation]:
        return sales_repository.list_quotations()

    def list_orders(self) -> List[Order]:
        return sales_repository.list_orders()

    def list_users(self) -> List[User]:
        return sales_repository.list_users()

    def list_products(self) -> List[Product]:
        return sales_repository.list_products()

    def append_activity(self, entry: NewActivity) -> Activity:
        return activity_repository.insert_activity(entry)

    def list_activities(self, lead_id: UUID) -> List[Activity]:
        return activity_repository.list_activities_by_lead(lead_id)

    def insert_callback(
        self,
        lead_id: UUID,
        callback_date: datetime,
        created_by: str,
        priority: CallbackPriority,
        notes: Optional[str],
    ) -> Callback:
        return activity_repository.insert_callback(lead_id, callback_date, created_by, priority, notes)

    def list_callbacks(self, lead_id: UUID) -> List[Callback]:
        return activity_repository.list_callbacks_by_lead(lead_id)

    def get_callback(self, callback_id: UUID) -> Optional[Callback]:
        return activity_repository.get_callback_by_id(callback_id)

    def complete_callback(self, callback_id: UUID, completed_at: datetime) -> Optional[Callback]:
        return activity_repository.mark_callback_completed(callback_id, completed_at)


__all__ = ["LeadFilter", "RecordStore", "SupabaseRecordStore"]
