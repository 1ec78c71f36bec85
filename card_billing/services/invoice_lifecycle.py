"""Invoice lifecycle - find-or-create per period, status transitions, total recalculation"""

import logging
import uuid
from card_billing.domain.cycle import materialize_dates
from card_billing.domain.exceptions import DuplicateInvoiceError, InvalidStatusTransitionError
from card_billing.domain.models import Invoice, InvoiceStatus
from card_billing.domain.ports import InvoiceStore, PurchaseStore
from card_billing.infrastructure.observability.metrics import invoice_created_counter

logger = logging.getLogger(__name__)

# open -> closed -> paid, open -> paid; paid is terminal
ALLOWED_TRANSITIONS = {
    InvoiceStatus.OPEN: {InvoiceStatus.OPEN, InvoiceStatus.CLOSED, InvoiceStatus.PAID},
    InvoiceStatus.CLOSED: {InvoiceStatus.CLOSED, InvoiceStatus.PAID},
    InvoiceStatus.PAID: {InvoiceStatus.PAID},
}


def check_transition(current: InvoiceStatus, requested: InvoiceStatus) -> None:
    """Raise InvalidStatusTransitionError unless current -> requested is allowed"""
    if requested not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransitionError(
            f"Invoice cannot move from {current.value} to {requested.value}"
        )


class InvoiceLifecycleManager:
    """Owns the single invoice per (card, month, year) and its totals"""

    def __init__(self, invoices: InvoiceStore, purchases: PurchaseStore):
        self.invoices = invoices
        self.purchases = purchases

    def find_or_create_invoice(
        self,
        card_id: uuid.UUID,
        month: int,
        year: int,
        closing_day: int,
        due_day: int,
    ) -> Invoice:
        """
        Return the invoice for a period, creating an empty open one if needed.

        A concurrent creator winning the insert race is not an error: the
        unique key rejects our insert and the existing row is read back.
        """
        invoice = self.invoices.find_by_period(card_id, month, year)
        if invoice is not None:
            return invoice

        dates = materialize_dates(month, year, closing_day, due_day)
        try:
            invoice = self.invoices.create(card_id, month, year, dates)
        except DuplicateInvoiceError:
            invoice = self.invoices.find_by_period(card_id, month, year)
            if invoice is None:
                raise
            return invoice

        invoice_created_counter.inc()
        logger.info(
            "Invoice created",
            extra={
                "card_id": str(card_id),
                "period": f"{month:02d}/{year}",
                "closing_date": dates.closing_date.isoformat(),
                "due_date": dates.due_date.isoformat(),
            },
        )
        return invoice

    def recalculate_total(self, invoice_id: uuid.UUID) -> Invoice:
        """Set total to the sum of the purchases currently linked to the invoice"""
        total = sum(p.value_cents for p in self.purchases.list_by_invoice(invoice_id))
        return self.invoices.update(invoice_id, total_cents=total)
