"""Payment and deletion reconciliation for card invoices"""

import logging
import uuid
from datetime import date
from typing import List, Optional
from card_billing.domain.exceptions import (
    ForbiddenError,
    InvalidReferenceError,
    NotFoundError,
)
from card_billing.domain.models import CreditCard, Invoice, InvoiceStatus, PaymentResult
from card_billing.domain.ports import CardStore, InvoiceStore, LedgerStore, PurchaseStore
from card_billing.infrastructure.observability.metrics import purchase_deletion_counter, record_payment
from card_billing.services.invoice_lifecycle import InvoiceLifecycleManager, check_transition

logger = logging.getLogger(__name__)


def payment_description(card: CreditCard, invoice: Invoice) -> str:
    return f"Fatura {card.name} - {invoice.month:02d}/{invoice.year}"


class PaymentReconciler:
    """Applies invoice payments and keeps totals exact after deletions"""

    def __init__(
        self,
        cards: CardStore,
        invoices: InvoiceStore,
        purchases: PurchaseStore,
        ledger: LedgerStore,
        lifecycle: InvoiceLifecycleManager,
        payment_category: str,
    ):
        self.cards = cards
        self.invoices = invoices
        self.purchases = purchases
        self.ledger = ledger
        self.lifecycle = lifecycle
        self.payment_category = payment_category

    def apply_payment(
        self,
        card_id: uuid.UUID,
        user_id: str,
        invoice_id: uuid.UUID,
        status: Optional[InvoiceStatus] = None,
        paid_amount_cents: Optional[int] = None,
        today: Optional[date] = None,
    ) -> PaymentResult:
        """
        Update invoice status and/or paid amount, registering the cash outflow.

        - status=paid pays the remaining balance (paid_amount := total)
        - a paid_amount above the current one is a partial payment of the difference
        - a positive payment writes exactly one ledger expense

        The card row is locked first, so payments, allocations and deletions
        on the same card run one at a time.

        Raises:
            NotFoundError: Card or invoice missing
            InvalidReferenceError: Invoice belongs to another card
            InvalidStatusTransitionError: Status change not allowed
        """
        card = self.cards.get(card_id, user_id, for_update=True)
        if card is None:
            raise NotFoundError("Card not found")

        invoice = self.invoices.get(invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice not found")

        if invoice.credit_card_id != card.id:
            raise InvalidReferenceError("Invoice does not belong to this card")

        new_status = None
        new_paid_amount = None
        payment_cents = 0
        full_payment = False

        if status is not None:
            new_status = InvoiceStatus(status)
            check_transition(invoice.status, new_status)

            if new_status == InvoiceStatus.PAID:
                payment_cents = invoice.total_cents - invoice.paid_amount_cents
                new_paid_amount = invoice.total_cents
                full_payment = True

        if paid_amount_cents is not None and paid_amount_cents > invoice.paid_amount_cents:
            payment_cents = paid_amount_cents - invoice.paid_amount_cents
            new_paid_amount = paid_amount_cents
            full_payment = False

        self.invoices.update(invoice.id, status=new_status, paid_amount_cents=new_paid_amount)

        if payment_cents > 0:
            self.ledger.create_expense(
                value_cents=payment_cents,
                category=self.payment_category,
                description=payment_description(card, invoice),
                expense_date=today or date.today(),
                user_id=user_id,
            )
            record_payment(payment_cents, full_payment)

        return PaymentResult(
            invoice=self.invoices.get(invoice.id, include_purchases=True),
            payment_cents=max(payment_cents, 0),
        )

    def delete_purchase(self, purchase_id: uuid.UUID, user_id: str) -> List[uuid.UUID]:
        """
        Delete a purchase (or its whole installment group) and recompute totals.

        Returns:
            Ids of every invoice whose total was recalculated

        Raises:
            NotFoundError: Purchase missing
            ForbiddenError: Purchase billed to another user's card
        """
        purchase = self.purchases.get(purchase_id)
        if purchase is None:
            raise NotFoundError("Purchase not found")

        if self.purchases.owner_of(purchase_id) != user_id:
            raise ForbiddenError("Not authorized")

        invoice = self.invoices.get(purchase.invoice_id)
        self.cards.get(invoice.credit_card_id, user_id, for_update=True)

        if purchase.parent_purchase_id is not None:
            group = self.purchases.list_by_parent(purchase.parent_purchase_id)
            invoice_ids = list(dict.fromkeys(p.invoice_id for p in group))
            self.purchases.delete_by_parent(purchase.parent_purchase_id)
            purchase_deletion_counter.labels(scope="group").inc()
        else:
            invoice_ids = [purchase.invoice_id]
            self.purchases.delete_by_id(purchase.id)
            purchase_deletion_counter.labels(scope="single").inc()

        for invoice_id in invoice_ids:
            self.lifecycle.recalculate_total(invoice_id)

        logger.info(
            "Purchase deleted",
            extra={"purchase_id": str(purchase_id), "invoices_recalculated": len(invoice_ids)},
        )
        return invoice_ids
