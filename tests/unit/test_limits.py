"""Unit tests for available credit calculation"""

import uuid
from datetime import date
from card_billing.domain.limits import available_limit, exceeds_limit, used_limit
from card_billing.domain.models import CreditCard, Invoice, InvoiceStatus


def make_card(limit_cents: int) -> CreditCard:
    return CreditCard(
        id=uuid.uuid4(),
        user_id="user_ana",
        name="Test Card",
        limit_cents=limit_cents,
        closing_day=10,
        due_day=20,
    )


def make_invoice(total: int, paid: int = 0, status: InvoiceStatus = InvoiceStatus.OPEN) -> Invoice:
    return Invoice(
        id=uuid.uuid4(),
        credit_card_id=uuid.uuid4(),
        month=3,
        year=2024,
        closing_date=date(2024, 3, 10),
        due_date=date(2024, 3, 20),
        status=status,
        total_cents=total,
        paid_amount_cents=paid,
    )


def test_available_limit_subtracts_unpaid_balances():
    card = make_card(100_000)
    invoices = [
        make_invoice(50_000),
        make_invoice(40_000, paid=10_000, status=InvoiceStatus.CLOSED),
    ]

    assert used_limit(invoices) == 80_000
    assert available_limit(card, invoices) == 20_000


def test_paid_invoices_contribute_nothing():
    """Paid status releases the limit even if stored amounts disagree"""
    card = make_card(100_000)
    invoices = [make_invoice(70_000, paid=0, status=InvoiceStatus.PAID)]

    assert available_limit(card, invoices) == 100_000


def test_available_limit_can_go_negative():
    card = make_card(10_000)
    assert available_limit(card, [make_invoice(15_000)]) == -5_000


def test_limit_check_boundaries():
    """limit 1000, outstanding 800: 250 rejected, 200 accepted"""
    card = make_card(100_000)
    available = available_limit(card, [make_invoice(80_000)])

    assert exceeds_limit(25_000, available) is True
    assert exceeds_limit(20_000, available) is False
    assert exceeds_limit(20_001, available) is True
