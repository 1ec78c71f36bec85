"""Installment split for card purchases billed over consecutive months"""

from datetime import date
from typing import List
from card_billing.domain.models import Installment
from card_billing.utils.date_utils import add_months


def split_installments(
    total_cents: int,
    purchase_date: date,
    num_installments: int = 1,
) -> List[Installment]:
    """
    Split a purchase into monthly installments.

    Requirements:
    - Equal installments, one per month starting at the purchase date
    - Same day-of-month each month, clamped to the month length
    - Last installment absorbs rounding remainder so the sum is exact

    Args:
        total_cents: Full purchase amount
        purchase_date: Date of the original purchase (first installment)
        num_installments: Number of monthly installments (default 1)

    Returns:
        List of Installment objects numbered from 1

    Example:
        R$100.00 in 3x -> [33.33, 33.33, 33.34]
        10000 cents / 3 = 3333 base, remainder 1
        Last installment: 3333 + 1 = 3334
    """
    if num_installments < 1:
        raise ValueError("num_installments must be at least 1")

    base_amount = total_cents // num_installments
    remainder = total_cents % num_installments

    installments = []
    for i in range(num_installments):
        # Last installment absorbs remainder to ensure exact total
        amount = base_amount + (remainder if i == num_installments - 1 else 0)

        installments.append(
            Installment(
                number=i + 1,
                date=add_months(purchase_date, i),
                value_cents=amount,
            )
        )

    return installments


def installment_description(description: str, number: int, total: int) -> str:
    """Suffix '(n/N)' for split purchases; single purchases keep their description"""
    if total <= 1:
        return description
    return f"{description} ({number}/{total})"
