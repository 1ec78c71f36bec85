"""Unit tests for billing cycle period math"""

import uuid
import pytest
from datetime import date
from card_billing.domain.cycle import (
    installment_periods,
    is_closed,
    is_overdue,
    materialize_dates,
    resolve_invoice_period,
)
from card_billing.domain.models import Invoice, InvoicePeriod, InvoiceStatus
from card_billing.utils.date_utils import add_months, shift_month


def test_purchase_before_closing_day_stays_in_month():
    """Due after closing: invoice period is the closing month"""
    period = resolve_invoice_period(date(2024, 3, 5), closing_day=10, due_day=20)
    assert period == InvoicePeriod(month=3, year=2024)


def test_purchase_on_closing_day_stays_in_month():
    period = resolve_invoice_period(date(2024, 3, 10), closing_day=10, due_day=20)
    assert period == InvoicePeriod(month=3, year=2024)


def test_purchase_after_closing_day_moves_to_next_month():
    period = resolve_invoice_period(date(2024, 3, 11), closing_day=10, due_day=20)
    assert period == InvoicePeriod(month=4, year=2024)


def test_year_rollover_after_december_closing():
    """closing_day=28, purchase on Dec 30 -> closes in January of next year"""
    period = resolve_invoice_period(date(2024, 12, 30), closing_day=28, due_day=30)
    assert period == InvoicePeriod(month=1, year=2025)


def test_year_rollover_with_due_in_following_month():
    """Dec 30 after closing 28 closes in January; due 5 bills February"""
    period = resolve_invoice_period(date(2024, 12, 30), closing_day=28, due_day=5)
    assert period == InvoicePeriod(month=2, year=2025)


def test_due_before_closing_shifts_period_one_month():
    """closing_day=10, due_day=5: invoice period is one month after closing"""
    period = resolve_invoice_period(date(2024, 3, 8), closing_day=10, due_day=5)
    assert period == InvoicePeriod(month=4, year=2024)


def test_due_equal_to_closing_shifts_period_one_month():
    period = resolve_invoice_period(date(2024, 3, 8), closing_day=10, due_day=10)
    assert period == InvoicePeriod(month=4, year=2024)


def test_materialize_dates_due_after_closing_same_month():
    dates = materialize_dates(3, 2024, closing_day=10, due_day=20)
    assert dates.closing_date == date(2024, 3, 10)
    assert dates.due_date == date(2024, 3, 20)


def test_materialize_dates_due_before_closing_closes_previous_month():
    dates = materialize_dates(4, 2024, closing_day=10, due_day=5)
    assert dates.closing_date == date(2024, 3, 10)
    assert dates.due_date == date(2024, 4, 5)


def test_materialize_dates_january_closes_in_previous_december():
    dates = materialize_dates(1, 2025, closing_day=25, due_day=3)
    assert dates.closing_date == date(2024, 12, 25)
    assert dates.due_date == date(2025, 1, 3)


def test_materialize_dates_clamps_days_to_month_length():
    dates = materialize_dates(2, 2023, closing_day=30, due_day=31)
    assert dates.closing_date == date(2023, 2, 28)
    assert dates.due_date == date(2023, 2, 28)


@pytest.mark.parametrize(
    "purchase_date, closing_day, due_day",
    [
        (date(2024, 1, 15), 10, 20),
        (date(2024, 6, 1), 25, 5),
        (date(2024, 12, 31), 28, 7),
        (date(2025, 2, 10), 10, 10),
        (date(2024, 11, 20), 3, 15),
    ],
)
def test_period_and_dates_are_consistent(purchase_date, closing_day, due_day):
    """Re-derivation is stable and dates land on the configured days"""
    period = resolve_invoice_period(purchase_date, closing_day, due_day)
    assert resolve_invoice_period(purchase_date, closing_day, due_day) == period

    dates = materialize_dates(period.month, period.year, closing_day, due_day)
    assert dates.due_date.day == due_day
    assert dates.closing_date.day == closing_day
    assert (dates.due_date.year, dates.due_date.month) == (period.year, period.month)
    # The purchase is billed in the first cycle closing on or after it
    assert purchase_date <= dates.closing_date


def test_derived_closed_and_overdue_flags():
    invoice = Invoice(
        id=uuid.uuid4(),
        credit_card_id=uuid.uuid4(),
        month=3,
        year=2024,
        closing_date=date(2024, 3, 10),
        due_date=date(2024, 3, 20),
        status=InvoiceStatus.OPEN,
    )

    assert not is_closed(invoice, date(2024, 3, 10))
    assert is_closed(invoice, date(2024, 3, 11))
    assert not is_overdue(invoice, date(2024, 3, 20))
    assert is_overdue(invoice, date(2024, 3, 21))

    invoice.status = InvoiceStatus.PAID
    assert not is_overdue(invoice, date(2024, 4, 1))


def test_shift_month_rolls_year_both_ways():
    assert shift_month(12, 2024, 1) == (1, 2025)
    assert shift_month(1, 2025, -1) == (12, 2024)
    assert shift_month(5, 2024, 14) == (7, 2025)


def test_add_months_clamps_to_month_end():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 1, 31), 2) == date(2024, 3, 31)


def test_installment_periods_step_from_resolved_purchase_period():
    """Month-end purchase: periods follow the first one, not the clamped installment dates"""
    periods = installment_periods(date(2024, 1, 31), closing_day=30, due_day=10, count=3)

    assert periods == [
        InvoicePeriod(month=3, year=2024),
        InvoicePeriod(month=4, year=2024),
        InvoicePeriod(month=5, year=2024),
    ]


def test_installment_periods_roll_over_year():
    periods = installment_periods(date(2024, 11, 25), closing_day=10, due_day=20, count=3)

    assert [(p.month, p.year) for p in periods] == [(12, 2024), (1, 2025), (2, 2025)]
