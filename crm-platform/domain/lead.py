"""
Domain: Lead entity and pipeline stage set.

Rules implemented here:
- A Lead represents a single prospective-customer inquiry, identified by an opaque
  UUID and a human-readable sequential code (LD-0001).
- stage is always one of seven values. The stage set is a labeled set, not a strict
  progression: any stage may move to any other stage. Only membership is checked.
- A Lead always has at least one inquiry source. Sources are not mutually exclusive.
- rating is an integer in [1, 5], or None when unrated.
- All timestamps are UTC.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple
from uuid import UUID

from .errors import InvalidRating, InvalidStage
from .time import require_utc_timestamp, whole_days_between

LEAD_CODE_PREFIX = "LD-"
_NON_DIGITS = re.compile(r"\D")


class LeadStage(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    PROPOSAL = "proposal"
    NEGOTIATION = "negotiation"
    WON = "won"
    LOST = "lost"

    @property
    def label(self) -> str:
        return self.value.title()

    @property
    def is_closed(self) -> bool:
        """won and lost close the pipeline for reporting; they do not block transitions."""
        return self in CLOSED_STAGES

    @staticmethod
    def parse(value: object) -> "LeadStage":
        """
        Resolve a stage from its raw value.

        Raises InvalidStage for anything outside the seven literals (including None,
        other casings and non-strings).
        """

        if isinstance(value, LeadStage):
            return value
        if not isinstance(value, str):
            raise InvalidStage(value)
        try:
            return LeadStage(value)
        except ValueError:
            raise InvalidStage(value) from None


CLOSED_STAGES = frozenset({LeadStage.WON, LeadStage.LOST})


class LeadSource(str, Enum):
    WEBSITE = "website"
    INBOUND_CALL = "inbound-call"
    REFERRAL = "referral"
    EMAIL = "email"
    SOCIAL = "social"
    TRADE_SHOW = "trade-show"
    WHATSAPP = "whatsapp"
    OTHER = "other"

    @property
    def label(self) -> str:
        return self.value.replace("-", " ").title()


class LeadScore(str, Enum):
    A = "A"
    B = "B"
    C = "C"


class LeadType(str, Enum):
    PERSONAL = "Personal"
    RESELLER = "Reseller"
    INTERIOR_DESIGNER = "Interior Designer"
    OTHER = "Other"


def format_lead_code(sequence: int) -> str:
    """LD-0001 style code for the n-th lead (1-based)."""

    if sequence < 1:
        raise ValueError("sequence must be >= 1")
    return f"{LEAD_CODE_PREFIX}{sequence:04d}"


def validate_rating(rating: object) -> Optional[int]:
    """Return the rating if it is None or an int in [1, 5]; raise InvalidRating otherwise."""

    if rating is None:
        return None
    # bool is an int subclass; True is not a star rating.
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidRating(rating)
    if not 1 <= rating <= 5:
        raise InvalidRating(rating)
    return rating


def whatsapp_handle(phone: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """
    Derive the messaging handle from a phone number.

    Returns (wa.me link, 10-digit number). Both are None when the phone has no digits.
    """

    digits = _NON_DIGITS.sub("", phone or "")
    if not digits:
        return None, None
    return f"https://wa.me/{digits}", digits[-10:]


@dataclass(frozen=True, slots=True)
class Lead:
    """
    Pure domain entity for a Lead.

    Immutability:
    - The entity is frozen. Stage, rating and assignment changes return new instances
      so that the previous value is still available for the activity ledger.
    """

    id: UUID
    lead_code: str
    full_name: str
    sources: Tuple[LeadSource, ...]
    stage: LeadStage
    created_at: datetime

    email: Optional[str] = None
    phone: Optional[str] = None
    product_inquiry: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    assigned_to: Optional[str] = None
    rating: Optional[int] = None
    lead_score: Optional[LeadScore] = None
    lead_type: Optional[LeadType] = None
    city: Optional[str] = None
    budget: Optional[Decimal] = None
    notes: Optional[str] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        if not self.sources:
            raise ValueError("Lead must have at least one source")
        if not isinstance(self.stage, LeadStage):
            raise InvalidStage(self.stage)
        validate_rating(self.rating)

    @property
    def whatsapp(self) -> Optional[str]:
        return whatsapp_handle(self.phone)[0]

    @property
    def whatsapp_number(self) -> Optional[str]:
        return whatsapp_handle(self.phone)[1]

    @property
    def is_active(self) -> bool:
        return not self.stage.is_closed

    def age_days(self, as_of: datetime) -> int:
        """Whole days since creation. `as_of` is explicit; no implicit 'now'."""

        return whole_days_between(self.created_at, as_of)

    def with_stage(self, stage: LeadStage) -> "Lead":
        return replace(self, stage=LeadStage.parse(stage))

    def with_rating(self, rating: Optional[int]) -> "Lead":
        return replace(self, rating=validate_rating(rating))

    def with_assignee(self, assigned_to: Optional[str]) -> "Lead":
        return replace(self, assigned_to=assigned_to)


__all__ = [
    "CLOSED_STAGES",
    "Lead",
    "LeadScore",
    "LeadSource",
    "LeadStage",
    "LeadType",
    "format_lead_code",
    "validate_rating",
    "whatsapp_handle",
]
