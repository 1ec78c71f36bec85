"""Credit limit evaluation"""

from typing import Iterable
from card_billing.domain.models import CreditCard, Invoice, OUTSTANDING_STATUSES


def used_limit(invoices: Iterable[Invoice]) -> int:
    """Sum of unpaid balances over open and closed invoices"""
    return sum(
        invoice.total_cents - invoice.paid_amount_cents
        for invoice in invoices
        if invoice.status in OUTSTANDING_STATUSES
    )


def available_limit(card: CreditCard, outstanding_invoices: Iterable[Invoice]) -> int:
    """
    Credit still available on a card, in cents.

    Recomputed from the invoices on every call. Can be negative when the
    limit was lowered below the amount already owed.
    """
    return card.limit_cents - used_limit(outstanding_invoices)


def exceeds_limit(value_cents: int, available_cents: int) -> bool:
    return value_cents > available_cents
