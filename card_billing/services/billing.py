"""Billing service - transactional entry points used by the HTTP layer"""

import logging
import uuid
from contextlib import contextmanager
from datetime import date
from typing import List, Optional
from sqlalchemy.orm import Session
from card_billing.config import settings
from card_billing.domain.exceptions import NotFoundError
from card_billing.domain.limits import available_limit, used_limit
from card_billing.domain.models import (
    AllocationResult,
    CardsSummary,
    CardView,
    CreditCard,
    Invoice,
    InvoiceStatus,
    PaymentResult,
    PurchaseRequest,
)
from card_billing.infrastructure.database.repositories import (
    CardRepository,
    InvoiceRepository,
    LedgerRepository,
    PurchaseRepository,
)
from card_billing.services.allocation import PurchaseAllocationEngine
from card_billing.services.events import CARD_DATA, TRANSACTION_DATA, CacheInvalidation, EventPublisher
from card_billing.services.invoice_lifecycle import InvoiceLifecycleManager
from card_billing.services.reconciler import PaymentReconciler

logger = logging.getLogger(__name__)


class BillingService:
    """
    One instance per request/session.

    Every mutating call runs in a single transaction: commit on success,
    rollback on any error. Invalidation events are published only after
    the commit succeeded.
    """

    def __init__(self, db: Session, publisher: EventPublisher | None = None):
        self.db = db
        self.publisher = publisher or EventPublisher()

        self.cards = CardRepository(db)
        self.invoices = InvoiceRepository(db)
        self.purchases = PurchaseRepository(db)
        self.ledger = LedgerRepository(db)

        self.lifecycle = InvoiceLifecycleManager(self.invoices, self.purchases)
        self.allocation = PurchaseAllocationEngine(self.cards, self.invoices, self.purchases, self.lifecycle)
        self.reconciler = PaymentReconciler(
            self.cards,
            self.invoices,
            self.purchases,
            self.ledger,
            self.lifecycle,
            payment_category=settings.card_payment_category,
        )

    @contextmanager
    def _transaction(self):
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _card_changed(self, user_id: str) -> None:
        self.publisher.publish(CacheInvalidation(kind=CARD_DATA, user_id=user_id))

    # Purchases

    def allocate_purchase(self, card_id: uuid.UUID, user_id: str, request: PurchaseRequest) -> AllocationResult:
        with self._transaction():
            card, created_count = self.allocation.allocate(card_id, user_id, request)

        self._card_changed(user_id)
        return AllocationResult(card=self.get_card_view(card.id, user_id), created_count=created_count)

    def delete_purchase(self, purchase_id: uuid.UUID, user_id: str) -> None:
        with self._transaction():
            self.reconciler.delete_purchase(purchase_id, user_id)

        self._card_changed(user_id)

    # Invoices

    def apply_invoice_payment(
        self,
        card_id: uuid.UUID,
        user_id: str,
        invoice_id: uuid.UUID,
        status: Optional[InvoiceStatus] = None,
        paid_amount_cents: Optional[int] = None,
        today: Optional[date] = None,
    ) -> PaymentResult:
        with self._transaction():
            result = self.reconciler.apply_payment(
                card_id,
                user_id,
                invoice_id,
                status=status,
                paid_amount_cents=paid_amount_cents,
                today=today,
            )

        if result.payment_cents > 0:
            self.publisher.publish(CacheInvalidation(kind=TRANSACTION_DATA, user_id=user_id))
        self._card_changed(user_id)
        return result

    def list_future_invoices(self, user_id: str, today: Optional[date] = None) -> List[Invoice]:
        """Invoices of periods after the current month, across active cards"""
        today = today or date.today()
        return self.invoices.list_future_by_user(user_id, today.month, today.year)

    # Cards

    def create_card(
        self,
        user_id: str,
        name: str,
        limit_cents: int,
        closing_day: int,
        due_day: int,
        last_digits: Optional[str] = None,
    ) -> CardView:
        with self._transaction():
            card = self.cards.create(
                user_id=user_id,
                name=name,
                limit_cents=limit_cents,
                closing_day=closing_day,
                due_day=due_day,
                last_digits=last_digits,
            )

        self._card_changed(user_id)
        return self.get_card_view(card.id, user_id)

    def update_card(self, card_id: uuid.UUID, user_id: str, **fields) -> CardView:
        """Change card attributes; existing invoices keep their materialized dates"""
        with self._transaction():
            card = self.cards.update(card_id, user_id, **fields)
            if card is None:
                raise NotFoundError("Card not found")

        self._card_changed(user_id)
        return self.get_card_view(card_id, user_id)

    def delete_card(self, card_id: uuid.UUID, user_id: str) -> None:
        with self._transaction():
            if not self.cards.delete(card_id, user_id):
                raise NotFoundError("Card not found")

        self._card_changed(user_id)

    def get_card_view(self, card_id: uuid.UUID, user_id: str) -> CardView:
        card = self.cards.get(card_id, user_id)
        if card is None:
            raise NotFoundError("Card not found")
        return self._build_view(card)

    def list_cards(self, user_id: str) -> List[CardView]:
        return [self._build_view(card) for card in self.cards.list_by_user(user_id)]

    def cards_summary(self, user_id: str) -> CardsSummary:
        """Limit usage over the user's active cards"""
        cards = self.cards.list_by_user(user_id)
        total_limit = sum(card.limit_cents for card in cards)
        total_used = sum(used_limit(self.invoices.list_outstanding(card.id)) for card in cards)

        return CardsSummary(
            total_cards=len(cards),
            total_limit_cents=total_limit,
            total_used_cents=total_used,
            total_available_cents=total_limit - total_used,
            usage_percentage=round(total_used / total_limit * 100, 2) if total_limit > 0 else 0.0,
        )

    def _build_view(self, card: CreditCard) -> CardView:
        invoices = self.invoices.list_by_card(card.id, include_purchases=True)
        return CardView(
            card=card,
            invoices=invoices,
            available_limit_cents=available_limit(card, invoices),
        )
