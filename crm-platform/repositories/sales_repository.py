"""
Sales repository (read-only).

Fetches quotations, orders, users and the product catalogue for analytics joins. The lifecycle of these
records is owned elsewhere; nothing here writes.
"""

from __future__ import annotations

from typing import Any, List, Mapping
from uuid import UUID

from domain.sales import Order, OrderItem, Product, Quotation, User, UserRole
from repositories.client import get_supabase
from repositories.rows import execute, map_rows, parse_optional_datetime, parse_utc_datetime, to_decimal

_QUOTATIONS_TABLE: str = "quotations"
_ORDERS_TABLE: str = "orders"
_USERS_TABLE: str = "users"
_PRODUCTS_TABLE: str = "products"


def _row_to_quotation(row: Mapping[str, Any]) -> Quotation:
    """
    Convert a Supabase row into a Quotation.

    Any stored `is_expired` column is ignored; expiry is derived from
    valid_until when the quotation is read.
    """

    lead_id = row.get("lead_id")
    return Quotation(
        id=UUID(str(row["id"])),
        quote_number=str(row.get("quote_number") or ""),
        status=str(row.get("status") or "draft"),
        total_amount=to_decimal(row.get("total_amount")),
        created_at=parse_utc_datetime(row["created_at"]),
        created_by=row.get("created_by"),
        lead_id=UUID(str(lead_id)) if lead_id else None,
        valid_until=parse_optional_datetime(row.get("valid_until")),
        items=_row_to_line_items(row.get("items")),
    )


def _row_to_line_items(value: Any) -> tuple[OrderItem, ...]:
    if not value:
        return ()
    # A single item is sometimes stored as an object instead of an array.
    raw_items = value if isinstance(value, list) else [value]
    return tuple(
        OrderItem(
            product_id=str(item["product_id"]),
            price=to_decimal(item.get("price")),
            quantity=int(item.get("quantity") or 1),
        )
        for item in raw_items
        if isinstance(item, Mapping) and item.get("product_id")
    )


def _row_to_order(row: Mapping[str, Any]) -> Order:
    return Order(
        id=UUID(str(row["id"])),
        order_code=str(row.get("order_id") or ""),
        status=str(row.get("status") or "pending"),
        total_amount=to_decimal(row.get("total_amount")),
        created_at=parse_utc_datetime(row["created_at"]),
        created_by=row.get("created_by"),
        items=_row_to_line_items(row.get("items")),
    )


def _row_to_user(row: Mapping[str, Any]) -> User:
    role = row.get("role") or UserRole.EMPLOYEE.value
    return User(
        id=str(row["id"]),
        full_name=row.get("full_name"),
        role=UserRole(role) if role in UserRole._value2member_map_ else UserRole.EMPLOYEE,
    )


def _row_to_product(row: Mapping[str, Any]) -> Product:
    return Product(id=str(row["id"]), name=row.get("name") or None)


def list_quotations() -> List[Quotation]:
    rows = execute(get_supabase().table(_QUOTATIONS_TABLE).select("*"), "fetch quotations")
    return map_rows(rows, _row_to_quotation, "fetch quotations")


def list_orders() -> List[Order]:
    rows = execute(get_supabase().table(_ORDERS_TABLE).select("*"), "fetch orders")
    return map_rows(rows, _row_to_order, "fetch orders")


def list_users() -> List[User]:
    rows = execute(get_supabase().table(_USERS_TABLE).select("id, full_name, role"), "fetch users")
    return map_rows(rows, _row_to_user, "fetch users")


def list_products() -> List[Product]:
    rows = execute(get_supabase().table(_PRODUCTS_TABLE).select("id, name"), "fetch products")
    return map_rows(rows, _row_to_product, "fetch products")


__all__ = ["list_orders", "list_products", "list_quotations", "list_users"]
