"""Store interfaces the billing engine depends on"""

import uuid
from datetime import date
from typing import List, Optional, Protocol
from card_billing.domain.models import CreditCard, Invoice, InvoiceDates, InvoiceStatus, Purchase


class CardStore(Protocol):
    def get(self, card_id: uuid.UUID, user_id: str, for_update: bool = False) -> Optional[CreditCard]: ...

    def create(
        self,
        user_id: str,
        name: str,
        limit_cents: int,
        closing_day: int,
        due_day: int,
        last_digits: Optional[str] = None,
    ) -> CreditCard: ...

    def update(self, card_id: uuid.UUID, user_id: str, **fields) -> Optional[CreditCard]: ...

    def delete(self, card_id: uuid.UUID, user_id: str) -> bool: ...

    def list_by_user(self, user_id: str, active_only: bool = True) -> List[CreditCard]: ...


class InvoiceStore(Protocol):
    def get(self, invoice_id: uuid.UUID, include_purchases: bool = False) -> Optional[Invoice]: ...

    def find_by_period(self, card_id: uuid.UUID, month: int, year: int) -> Optional[Invoice]: ...

    def create(self, card_id: uuid.UUID, month: int, year: int, dates: InvoiceDates) -> Invoice: ...

    def update(
        self,
        invoice_id: uuid.UUID,
        status: Optional[InvoiceStatus] = None,
        total_cents: Optional[int] = None,
        paid_amount_cents: Optional[int] = None,
    ) -> Invoice: ...

    def list_outstanding(self, card_id: uuid.UUID) -> List[Invoice]: ...

    def list_by_card(self, card_id: uuid.UUID, include_purchases: bool = False) -> List[Invoice]: ...

    def list_future_by_user(self, user_id: str, month: int, year: int, limit: int = 50) -> List[Invoice]: ...


class PurchaseStore(Protocol):
    def create(
        self,
        invoice_id: uuid.UUID,
        description: str,
        value_cents: int,
        total_value_cents: int,
        category: str,
        purchase_date: date,
        installments: int,
        current_installment: int,
        parent_purchase_id: Optional[uuid.UUID] = None,
    ) -> Purchase: ...

    def get(self, purchase_id: uuid.UUID) -> Optional[Purchase]: ...

    def owner_of(self, purchase_id: uuid.UUID) -> Optional[str]: ...

    def delete_by_id(self, purchase_id: uuid.UUID) -> None: ...

    def delete_by_parent(self, parent_purchase_id: uuid.UUID) -> None: ...

    def list_by_invoice(self, invoice_id: uuid.UUID) -> List[Purchase]: ...

    def list_by_parent(self, parent_purchase_id: uuid.UUID) -> List[Purchase]: ...


class LedgerStore(Protocol):
    def create_expense(
        self,
        value_cents: int,
        category: str,
        description: str,
        expense_date: date,
        user_id: str,
    ) -> uuid.UUID: ...
