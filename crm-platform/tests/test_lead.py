"""
Tests for `domain/lead.py`.

Covers contract rules:
- Stage is one of seven values; anything else raises InvalidStage.
- Stage transitions are free (any stage to any stage).
- A Lead has at least one source and a UTC created_at.
- Rating is None or an integer 1-5.
- Lead codes and WhatsApp handles are derived deterministically.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest

from domain.errors import InvalidRating, InvalidStage
from domain.lead import (
    Lead,
    LeadSource,
    LeadStage,
    format_lead_code,
    validate_rating,
    whatsapp_handle,
)


def _lead(**overrides) -> Lead:
    fields = dict(
        id=UUID("00000000-0000-0000-0000-000000000001"),
        lead_code="LD-0001",
        full_name="Jane Doe",
        sources=(LeadSource.WEBSITE,),
        stage=LeadStage.NEW,
        created_at=datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    return Lead(**fields)


def test_stage_parse_accepts_the_seven_values() -> None:
    """Verify every pipeline literal resolves to its enum member."""

    values = ["new", "contacted", "qualified", "proposal", "negotiation", "won", "lost"]
    assert [LeadStage.parse(v).value for v in values] == values
    assert LeadStage.parse(LeadStage.WON) is LeadStage.WON


@pytest.mark.parametrize("value", ["archived", "Won", "", None, 3])
def test_stage_parse_rejects_unknown_values(value) -> None:
    """Verify values outside the stage set raise InvalidStage (a ValueError)."""

    with pytest.raises(InvalidStage) as exc:
        LeadStage.parse(value)

    assert isinstance(exc.value, ValueError)
    assert exc.value.value == value


def test_only_won_and_lost_are_closed() -> None:
    closed = {stage for stage in LeadStage if stage.is_closed}
    assert closed == {LeadStage.WON, LeadStage.LOST}


def test_any_stage_can_move_to_any_other_stage() -> None:
    """Verify the stage set has no adjacency rules, including leaving won/lost."""

    lead = _lead(stage=LeadStage.WON)
    for stage in LeadStage:
        assert lead.with_stage(stage).stage is stage
    assert _lead(stage=LeadStage.LOST).with_stage(LeadStage.NEW).stage is LeadStage.NEW


def test_with_stage_returns_new_instance() -> None:
    lead = _lead()
    moved = lead.with_stage(LeadStage.CONTACTED)

    assert lead.stage is LeadStage.NEW
    assert moved.stage is LeadStage.CONTACTED
    assert moved.id == lead.id


def test_lead_requires_at_least_one_source() -> None:
    with pytest.raises(ValueError):
        _lead(sources=())


def test_lead_created_at_must_be_utc() -> None:
    """Verify created_at enforces a timezone-aware UTC timestamp."""

    with pytest.raises(ValueError):
        _lead(created_at=datetime(2025, 1, 1, 0, 0, 0))

    with pytest.raises(ValueError):
        _lead(created_at=datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone(timedelta(hours=-5))))


def test_lead_is_immutable() -> None:
    lead = _lead()

    with pytest.raises(FrozenInstanceError):
        lead.stage = LeadStage.WON  # type: ignore[misc]


@pytest.mark.parametrize("rating", [None, 1, 3, 5])
def test_validate_rating_accepts_one_to_five_or_none(rating) -> None:
    assert validate_rating(rating) == rating


@pytest.mark.parametrize("rating", [0, 6, -1, 2.5, "3", True])
def test_validate_rating_rejects_everything_else(rating) -> None:
    with pytest.raises(InvalidRating):
        validate_rating(rating)


def test_lead_rejects_invalid_rating_on_construction() -> None:
    with pytest.raises(InvalidRating):
        _lead(rating=7)


def test_format_lead_code_is_zero_padded() -> None:
    assert format_lead_code(1) == "LD-0001"
    assert format_lead_code(42) == "LD-0042"
    assert format_lead_code(12345) == "LD-12345"

    with pytest.raises(ValueError):
        format_lead_code(0)


def test_whatsapp_handle_from_phone() -> None:
    """Verify the wa.me link keeps all digits and the number keeps the last ten."""

    assert whatsapp_handle("+91 98765-43210") == ("https://wa.me/919876543210", "9876543210")
    assert whatsapp_handle(None) == (None, None)
    assert whatsapp_handle("n/a") == (None, None)

    lead = _lead(phone="(555) 010-2030")
    assert lead.whatsapp == "https://wa.me/5550102030"
    assert lead.whatsapp_number == "5550102030"


def test_age_days_counts_whole_days() -> None:
    lead = _lead()

    assert lead.age_days(datetime(2025, 1, 1, 23, 59, 59, tzinfo=timezone.utc)) == 0
    assert lead.age_days(datetime(2025, 1, 11, 0, 0, 0, tzinfo=timezone.utc)) == 10


def test_source_labels() -> None:
    assert LeadSource.INBOUND_CALL.label == "Inbound Call"
    assert LeadSource.TRADE_SHOW.label == "Trade Show"
    assert LeadStage.NEGOTIATION.label == "Negotiation"
