"""
Domain: Quotations, orders and team members.

These entities are owned by other parts of the CRM. The analytics engine only reads
them as aggregates: status, value, timestamps, line items and the owning user.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple
from uuid import UUID

from .time import require_utc_timestamp

# Orders in these states carry no revenue.
NON_REVENUE_ORDER_STATUSES = frozenset({"cancelled", "refunded"})


class QuotationStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class UserRole(str, Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


@dataclass(frozen=True, slots=True)
class OrderItem:
    product_id: str
    price: Decimal
    quantity: int = 1

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True, slots=True)
class Quotation:
    """
    Read model for a quotation.

    Expiry is derived from valid_until at read time; there is no stored flag.
    """

    id: UUID
    quote_number: str
    status: str
    total_amount: Decimal
    created_at: datetime
    created_by: Optional[str] = None
    lead_id: Optional[UUID] = None
    valid_until: Optional[datetime] = None
    items: Tuple[OrderItem, ...] = ()

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        if self.valid_until is not None:
            require_utc_timestamp("valid_until", self.valid_until)

    def is_expired(self, now: datetime) -> bool:
        require_utc_timestamp("now", now)
        return self.valid_until is not None and self.valid_until < now


@dataclass(frozen=True, slots=True)
class Order:
    id: UUID
    order_code: str
    status: str
    total_amount: Decimal
    created_at: datetime
    created_by: Optional[str] = None
    items: Tuple[OrderItem, ...] = ()

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)

    @property
    def counts_as_revenue(self) -> bool:
        return self.status not in NON_REVENUE_ORDER_STATUSES


@dataclass(frozen=True, slots=True)
class User:
    id: str
    full_name: Optional[str]
    role: UserRole = UserRole.EMPLOYEE


@dataclass(frozen=True, slots=True)
class Product:
    id: str
    name: Optional[str] = None


__all__ = [
    "NON_REVENUE_ORDER_STATUSES",
    "Order",
    "OrderItem",
    "Product",
    "Quotation",
    "QuotationStatus",
    "User",
    "UserRole",
]
