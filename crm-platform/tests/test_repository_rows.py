"""
Tests for the Supabase row mappers in `repositories/`.

No network: the mappers are pure and `execute` is exercised with stand-in query
objects.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from postgrest.exceptions import APIError

from domain.activity import ActivityType, StageChangePayload
from domain.errors import StoreUnavailable
from domain.lead import LeadSource, LeadStage
from domain.sales import Product
from repositories.activity_repository import _row_to_activity
from repositories.lead_repository import _row_to_lead
from repositories.rows import execute, map_rows, parse_utc_datetime
from repositories.sales_repository import _row_to_order, _row_to_product, _row_to_quotation

LEAD_ROW = {
    "id": "00000000-0000-0000-0000-000000000001",
    "lead_id": "LD-0001",
    "full_name": "Jane Doe",
    "source": "referral",
    "stage": "qualified",
    "created_at": "2025-01-01T12:00:00Z",
    "email": "",
    "phone": "+1 555 010 2030",
    "budget": "1500.50",
}


class _Query:
    def __init__(self, response=None, error: Exception | None = None) -> None:
        self._response = response
        self._error = error

    def execute(self):
        if self._error is not None:
            raise self._error
        return self._response


def test_parse_utc_datetime_accepts_z_suffix_and_naive() -> None:
    expected = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    assert parse_utc_datetime("2025-01-01T12:00:00Z") == expected
    assert parse_utc_datetime("2025-01-01T12:00:00") == expected
    assert parse_utc_datetime("2025-01-01T14:00:00+02:00") == expected


def test_row_to_lead_handles_legacy_single_source() -> None:
    lead = _row_to_lead(LEAD_ROW)

    assert lead.sources == (LeadSource.REFERRAL,)
    assert lead.stage is LeadStage.QUALIFIED
    assert lead.email is None
    assert lead.budget == Decimal("1500.50")
    assert lead.whatsapp_number == "5550102030"


def test_row_to_lead_defaults_missing_source_to_other() -> None:
    lead = _row_to_lead({**LEAD_ROW, "source": []})

    assert lead.sources == (LeadSource.OTHER,)


def test_row_to_activity_rebuilds_typed_payload() -> None:
    activity = _row_to_activity(
        {
            "id": "00000000-0000-0000-0000-0000000000aa",
            "lead_id": LEAD_ROW["id"],
            "activity_type": "stage_change",
            "created_by": "user-a",
            "created_at": "2025-01-02T08:00:00Z",
            "metadata": {"old_stage": "new", "new_stage": "won"},
            "description": "Stage changed from new to won",
        }
    )

    assert activity.activity_type is ActivityType.STAGE_CHANGE
    assert activity.payload == StageChangePayload(old_stage=LeadStage.NEW, new_stage=LeadStage.WON)
    assert activity.is_private is False


def test_quotation_expiry_ignores_stored_flag() -> None:
    quotation = _row_to_quotation(
        {
            "id": "00000000-0000-0000-0000-0000000000b1",
            "quote_number": "QT-0001",
            "status": "sent",
            "total_amount": 250,
            "created_at": "2025-01-01T00:00:00Z",
            "valid_until": "2025-02-01T00:00:00Z",
            "is_expired": False,
        }
    )

    assert quotation.is_expired(datetime(2025, 3, 1, tzinfo=timezone.utc))


def test_order_items_accept_single_object() -> None:
    order = _row_to_order(
        {
            "id": "00000000-0000-0000-0000-0000000000c1",
            "order_id": "ORD-0001",
            "status": "delivered",
            "total_amount": "80.00",
            "created_at": "2025-01-01T00:00:00Z",
            "items": {"product_id": "lamp", "price": "40.00", "quantity": 2},
        }
    )

    assert order.order_code == "ORD-0001"
    assert [item.line_total for item in order.items] == [Decimal("80.00")]


def test_execute_wraps_store_failures() -> None:
    with pytest.raises(StoreUnavailable, match="Failed to list leads"):
        execute(_Query(error=APIError({"message": "relation does not exist", "code": "42P01"})), "list leads")

    with pytest.raises(StoreUnavailable):
        execute(_Query(SimpleNamespace(data=None, error="permission denied")), "list leads")

    assert execute(_Query(SimpleNamespace(data=None)), "list leads") == []
    assert execute(_Query(SimpleNamespace(data=[{"id": 1}])), "list leads") == [{"id": 1}]


@pytest.mark.parametrize(
    "row",
    [
        {**LEAD_ROW, "source": ["instagram"]},
        {**LEAD_ROW, "stage": "archived"},
        {**LEAD_ROW, "rating": 9},
        {key: value for key, value in LEAD_ROW.items() if key != "created_at"},
        {**LEAD_ROW, "budget": "n/a"},
    ],
)
def test_unreadable_rows_are_store_failures(row) -> None:
    with pytest.raises(StoreUnavailable, match="Failed to list leads"):
        map_rows([LEAD_ROW, row], _row_to_lead, "list leads")


def test_quotation_items_and_product_rows() -> None:
    quotation = _row_to_quotation(
        {
            "id": "00000000-0000-0000-0000-0000000000b2",
            "quote_number": "QT-0002",
            "status": "draft",
            "total_amount": 900,
            "created_at": "2025-01-01T00:00:00Z",
            "items": [{"product_id": "sofa", "price": "900.00"}, {"price": "5.00"}],
        }
    )

    assert [item.product_id for item in quotation.items] == ["sofa"]
    assert _row_to_product({"id": "sofa", "name": ""}) == Product(id="sofa", name=None)
