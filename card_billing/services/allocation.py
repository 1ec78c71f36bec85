"""Purchase allocation - split a card purchase into installments and bill each to its invoice"""

import logging
import uuid
from card_billing.domain.cycle import installment_periods
from card_billing.domain.exceptions import LimitExceededError, NotFoundError
from card_billing.domain.installments import installment_description, split_installments
from card_billing.domain.limits import available_limit, exceeds_limit
from card_billing.domain.models import CreditCard, InvoiceStatus, PurchaseRequest
from card_billing.domain.ports import CardStore, InvoiceStore, PurchaseStore
from card_billing.infrastructure.observability.metrics import limit_rejection_counter, record_allocation
from card_billing.services.invoice_lifecycle import InvoiceLifecycleManager

logger = logging.getLogger(__name__)


class PurchaseAllocationEngine:
    """Creates purchase rows and keeps the target invoices' totals current"""

    def __init__(
        self,
        cards: CardStore,
        invoices: InvoiceStore,
        purchases: PurchaseStore,
        lifecycle: InvoiceLifecycleManager,
    ):
        self.cards = cards
        self.invoices = invoices
        self.purchases = purchases
        self.lifecycle = lifecycle

    def allocate(self, card_id: uuid.UUID, user_id: str, request: PurchaseRequest) -> tuple[CreditCard, int]:
        """
        Bill a purchase to the card, one row per installment.

        Flow:
        1. Load the card (ownership checked, row locked where supported)
        2. Check the full purchase value against the available limit
        3. Resolve the purchase period once; installment i goes to the
           i-th following period: find-or-create
           invoice, create the purchase row, recalculate the invoice total

        Nothing is written when the limit check fails. The caller owns the
        transaction, so a failure in step 3 rolls back every installment.

        Returns:
            (card, number of purchase rows created)

        Raises:
            NotFoundError: Card missing or owned by another user
            LimitExceededError: Purchase value above available credit
        """
        card = self.cards.get(card_id, user_id, for_update=True)
        if card is None:
            raise NotFoundError("Card not found")

        available = available_limit(card, self.invoices.list_outstanding(card.id))
        if exceeds_limit(request.value_cents, available):
            limit_rejection_counter.inc()
            logger.warning(
                "Purchase exceeds available limit",
                extra={
                    "card_id": str(card.id),
                    "requested_cents": request.value_cents,
                    "available_cents": available,
                },
            )
            raise LimitExceededError(
                "Purchase exceeds available limit",
                requested_cents=request.value_cents,
                available_cents=available,
            )

        installments = split_installments(request.value_cents, request.date, request.installments)
        parent_purchase_id = uuid.uuid4() if len(installments) > 1 else None

        periods = installment_periods(request.date, card.closing_day, card.due_day, len(installments))

        for installment, period in zip(installments, periods):
            invoice = self.lifecycle.find_or_create_invoice(
                card.id,
                period.month,
                period.year,
                card.closing_day,
                card.due_day,
            )
            if invoice.status != InvoiceStatus.OPEN:
                logger.warning(
                    "Billing purchase to a non-open invoice",
                    extra={"invoice_id": str(invoice.id), "invoice_status": invoice.status.value},
                )

            self.purchases.create(
                invoice_id=invoice.id,
                description=installment_description(request.description, installment.number, len(installments)),
                value_cents=installment.value_cents,
                total_value_cents=request.value_cents,
                category=request.category,
                purchase_date=request.date,
                installments=len(installments),
                current_installment=installment.number,
                parent_purchase_id=parent_purchase_id,
            )
            self.lifecycle.recalculate_total(invoice.id)

        record_allocation(len(installments))
        return card, len(installments)
