"""Unit tests for request payload validation."""

from __future__ import annotations

import uuid
from datetime import date, time
from decimal import Decimal

import pytest
from pydantic import ValidationError

from shiftpay.models.enums import PaymentMethod, PaymentStatus
from shiftpay.schemas.interval import CreateIntervalPayload, RejectIntervalPayload, UpdateIntervalPayload
from shiftpay.schemas.payment import CreatePaymentPayload, UpdatePaymentPayload

# ---------------------------------------------------------------------------
# Intervals
# ---------------------------------------------------------------------------


def test_create_interval_valid() -> None:
    payload = CreateIntervalPayload(date=date(2024, 3, 1), start=time(9, 0), end=time(11, 0))
    assert payload.note is None
    assert payload.project is None


@pytest.mark.parametrize(("start", "end"), [(time(11, 0), time(9, 0)), (time(9, 0), time(9, 0))])
def test_create_interval_end_must_follow_start(start: time, end: time) -> None:
    with pytest.raises(ValidationError, match="end must be after start"):
        CreateIntervalPayload(date=date(2024, 3, 1), start=start, end=end)


def test_create_interval_parses_seconds() -> None:
    payload = CreateIntervalPayload.model_validate({"date": "2024-03-01", "start": "09:00:30", "end": "09:45"})
    assert payload.start == time(9, 0, 30)


def test_update_interval_partial() -> None:
    payload = UpdateIntervalPayload(note="late bus")
    assert not payload.touches_bounds
    assert payload.model_fields_set == {"note"}


def test_update_interval_touches_bounds() -> None:
    assert UpdateIntervalPayload(end=time(12, 0)).touches_bounds
    assert UpdateIntervalPayload(date=date(2024, 3, 2)).touches_bounds


def test_update_interval_checks_bounds_when_both_given() -> None:
    with pytest.raises(ValidationError):
        UpdateIntervalPayload(start=time(12, 0), end=time(10, 0))
    # A lone bound is checked against the stored interval later.
    UpdateIntervalPayload(end=time(8, 0))


def test_reject_reason_required() -> None:
    with pytest.raises(ValidationError):
        RejectIntervalPayload.model_validate({})
    with pytest.raises(ValidationError):
        RejectIntervalPayload(reason="")


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


def _payment(**overrides: object) -> dict[str, object]:
    return {
        "payee_id": str(uuid.uuid4()),
        "interval_ids": [str(uuid.uuid4())],
        "payment_method": "PIX",
        "period_start": "2024-03-01",
        "period_end": "2024-03-31",
        **overrides,
    }


def test_create_payment_valid() -> None:
    payload = CreatePaymentPayload.model_validate(_payment(amount_override="150.00"))
    assert payload.payment_method == PaymentMethod.PIX
    assert payload.amount_override == Decimal("150.00")
    assert payload.issue_date is None


def test_create_payment_single_day_period() -> None:
    CreatePaymentPayload.model_validate(_payment(period_start="2024-03-01", period_end="2024-03-01"))


@pytest.mark.parametrize(
    "overrides",
    [
        {"interval_ids": []},
        {"period_start": "2024-04-01"},
        {"amount_override": "0"},
        {"amount_override": "10.001"},
        {"payment_method": "BARTER"},
    ],
)
def test_create_payment_invalid(overrides: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        CreatePaymentPayload.model_validate(_payment(**overrides))


def test_create_payment_rejects_duplicate_intervals() -> None:
    interval_id = str(uuid.uuid4())
    with pytest.raises(ValidationError, match="duplicates"):
        CreatePaymentPayload.model_validate(_payment(interval_ids=[interval_id, interval_id]))


def test_update_payment_provided_fields() -> None:
    payload = UpdatePaymentPayload.model_validate({"status": "COMPLETED"})
    assert payload.status == PaymentStatus.COMPLETED
    assert payload.provided_fields() == {"status"}
    assert UpdatePaymentPayload().provided_fields() == set()


def test_update_payment_receipt_url_must_be_url() -> None:
    with pytest.raises(ValidationError):
        UpdatePaymentPayload.model_validate({"receipt_url": "not a url"})
