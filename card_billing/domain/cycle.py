"""Billing cycle calculator - maps purchase dates to invoice periods and dates

These functions are the only place invoice period boundaries are derived.
Everything else in the engine asks them instead of re-doing the month math.
"""

from datetime import date
from card_billing.domain.models import Invoice, InvoiceDates, InvoicePeriod, InvoiceStatus
from card_billing.utils.date_utils import clamped_date, shift_month


def due_in_following_month(closing_day: int, due_day: int) -> bool:
    """Cards whose due day is not after the closing day are due the month after closing"""
    return due_day <= closing_day


def resolve_invoice_period(purchase_date: date, closing_day: int, due_day: int) -> InvoicePeriod:
    """
    Find the invoice period a purchase is billed to.

    Rules:
    - A purchase after the closing day falls into the next closing month
    - When due_day <= closing_day the invoice is billed one month after closing

    Example:
        closing_day=28, due_day=5, purchase 2024-12-30
        -> closes 2025-01-28, invoice period 2025-02
    """
    month, year = purchase_date.month, purchase_date.year

    if purchase_date.day > closing_day:
        month, year = shift_month(month, year, 1)

    if due_in_following_month(closing_day, due_day):
        month, year = shift_month(month, year, 1)

    return InvoicePeriod(month=month, year=year)


def materialize_dates(month: int, year: int, closing_day: int, due_day: int) -> InvoiceDates:
    """
    Concrete closing and due dates for an invoice period.

    Inverse of resolve_invoice_period: the due date sits in the period month,
    the closing date one month earlier when due_day <= closing_day. Days past
    the end of a month are clamped to its last day.
    """
    due_date = clamped_date(year, month, due_day)

    closing_month, closing_year = month, year
    if due_in_following_month(closing_day, due_day):
        closing_month, closing_year = shift_month(month, year, -1)

    closing_date = clamped_date(closing_year, closing_month, closing_day)
    return InvoiceDates(closing_date=closing_date, due_date=due_date)


def is_closed(invoice: Invoice, today: date) -> bool:
    """Read-time view: billing period ended, regardless of stored status"""
    return today > invoice.closing_date


def is_overdue(invoice: Invoice, today: date) -> bool:
    return invoice.status != InvoiceStatus.PAID and today > invoice.due_date


def installment_periods(purchase_date: date, closing_day: int, due_day: int, count: int) -> list[InvoicePeriod]:
    """
    Consecutive invoice periods for a purchase split into `count` installments.

    Only the purchase date is resolved; installment i is billed i periods
    later, so each installment lands on a different invoice.
    """
    first = resolve_invoice_period(purchase_date, closing_day, due_day)
    periods = []
    for offset in range(count):
        month, year = shift_month(first.month, first.year, offset)
        periods.append(InvoicePeriod(month=month, year=year))
    return periods
