"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.activity import Activity
from domain.callback import Callback
from domain.lead import Lead


# ============================================================================
# Lead Models
# ============================================================================

class LeadResponse(BaseModel):
    """Single lead in API responses."""
    id: UUID
    lead_id: str  # LD-0001
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    whatsapp: Optional[str] = None
    whatsapp_number: Optional[str] = None
    source: List[str]
    product_inquiry: List[str]
    tags: List[str]
    stage: str
    assigned_to: Optional[str] = None
    rating: Optional[int] = None
    lead_score: Optional[str] = None
    lead_type: Optional[str] = None
    city: Optional[str] = None
    budget: Optional[Decimal] = None
    created_at: datetime
    lead_age_days: int

    @classmethod
    def from_domain(cls, lead: Lead, as_of: datetime) -> "LeadResponse":
        return cls(
            id=lead.id,
            lead_id=lead.lead_code,
            full_name=lead.full_name,
            email=lead.email,
            phone=lead.phone,
            whatsapp=lead.whatsapp,
            whatsapp_number=lead.whatsapp_number,
            source=[s.value for s in lead.sources],
            product_inquiry=list(lead.product_inquiry),
            tags=list(lead.tags),
            stage=lead.stage.value,
            assigned_to=lead.assigned_to,
            rating=lead.rating,
            lead_score=lead.lead_score.value if lead.lead_score else None,
            lead_type=lead.lead_type.value if lead.lead_type else None,
            city=lead.city,
            budget=lead.budget,
            created_at=lead.created_at,
            lead_age_days=lead.age_days(max(as_of, lead.created_at)),
        )


class LeadListResponse(BaseModel):
    leads: List[LeadResponse]
    total_count: int


class StageChangeRequest(BaseModel):
    """Target stage. Validated by the stage machine so invalid values return 400."""
    stage: Optional[str] = None

    class Config:
        json_schema_extra = {"example": {"stage": "qualified"}}


class RatingRequest(BaseModel):
    rating: Optional[Any] = Field(..., description="Star rating 1-5, or null to clear")


class AssignRequest(BaseModel):
    assigned_to: Optional[str] = None


# ============================================================================
# Activity Models
# ============================================================================

class ActivityResponse(BaseModel):
    id: UUID
    lead_id: UUID
    activity_type: str
    created_by: str
    created_at: datetime
    description: str
    metadata: Dict[str, Any]
    is_private: bool

    @classmethod
    def from_domain(cls, activity: Activity) -> "ActivityResponse":
        return cls(
            id=activity.activity_id,
            lead_id=activity.lead_id,
            activity_type=activity.activity_type.value,
            created_by=activity.created_by,
            created_at=activity.created_at,
            description=activity.description,
            metadata=activity.metadata,
            is_private=activity.is_private,
        )


class ActivityListResponse(BaseModel):
    activities: List[ActivityResponse]


class StageChangeResponse(BaseModel):
    lead: LeadResponse
    activity: Optional[ActivityResponse] = None
    changed: bool
    celebrate: bool = Field(False, description="True exactly once per transition into 'won'")


class NoteRequest(BaseModel):
    content: str
    is_private: bool = False
    tags: List[str] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {"content": "Asked for a revised quote", "is_private": False, "tags": ["pricing"]}
        }


class CallRequest(BaseModel):
    direction: str = "outbound"
    outcome: str
    duration_seconds: int = Field(0, ge=0)
    description: str = ""


class EmailRequest(BaseModel):
    subject: str
    recipient: Optional[str] = None
    description: str = ""


class CallbackRequest(BaseModel):
    callback_date: datetime
    priority: str = "medium"
    notes: Optional[str] = None


class CallbackResponse(BaseModel):
    id: UUID
    lead_id: UUID
    callback_date: datetime
    priority: str
    status: str
    notes: Optional[str] = None
    created_by: str
    completed_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, callback: Callback) -> "CallbackResponse":
        return cls(
            id=callback.callback_id,
            lead_id=callback.lead_id,
            callback_date=callback.callback_date,
            priority=callback.priority.value,
            status=callback.status.value,
            notes=callback.notes,
            created_by=callback.created_by,
            completed_at=callback.completed_at,
        )


class CallbackListResponse(BaseModel):
    callbacks: List[CallbackResponse]


# ============================================================================
# Analytics Models
# ============================================================================

class KPIResponse(BaseModel):
    total_revenue: Decimal
    active_leads: int
    conversion_rate: float
    pending_quotations: int
    orders_this_month: int
    revenue_growth: float
    average_deal_size: Decimal
    total_leads: int
    won_leads: int


class StageCountResponse(BaseModel):
    stage: str
    label: str
    count: int


class SourceCountResponse(BaseModel):
    source: str
    label: str
    count: int


class LeadAnalyticsResponse(BaseModel):
    by_stage: List[StageCountResponse]
    by_source: List[SourceCountResponse]
    total_leads: int


class TrendPointResponse(BaseModel):
    date: date
    revenue: Decimal
    order_count: int


class QuotationStatusResponse(BaseModel):
    status: str
    count: int
    total_value: Decimal


class QuotationAnalyticsResponse(BaseModel):
    by_status: List[QuotationStatusResponse]
    total_quotations: int
    total_value: Decimal
    expired_count: int


class FunnelStageResponse(BaseModel):
    label: str
    count: int
    rate: Optional[float] = None


class ConversionFunnelResponse(BaseModel):
    stages: List[FunnelStageResponse]
    lead_to_quotation_rate: float
    quotation_to_order_rate: float
    overall_rate: float


class TeamPerformanceResponse(BaseModel):
    user_id: str
    user_name: str
    lead_count: int
    quotation_count: int
    order_count: int
    revenue: Decimal


class ActivityFeedItemResponse(BaseModel):
    type: str
    id: UUID
    title: str
    subtitle: str
    status: str
    created_at: datetime
    value: Optional[Decimal] = None


class ProductPerformanceResponse(BaseModel):
    product_id: str
    product_name: str
    lead_count: int
    quotation_count: int
    order_count: int
    revenue: Decimal


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Invalid request",
                "detail": "Invalid stage: 'archived'",
                "status_code": 400
            }
        }
