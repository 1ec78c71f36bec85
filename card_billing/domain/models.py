"""Domain models - pure Python dataclasses representing billing entities"""

import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional


class InvoiceStatus(str, Enum):
    """Invoice lifecycle states"""

    OPEN = "open"
    CLOSED = "closed"
    PAID = "paid"


# Statuses still owing money against the card limit
OUTSTANDING_STATUSES = (InvoiceStatus.OPEN, InvoiceStatus.CLOSED)


@dataclass(frozen=True)
class InvoicePeriod:
    """Billing cycle identifier for a card"""

    month: int
    year: int


@dataclass(frozen=True)
class InvoiceDates:
    """Concrete closing and due dates of one invoice period"""

    closing_date: date
    due_date: date


@dataclass
class CreditCard:
    """Credit card owned by a user"""

    id: uuid.UUID
    user_id: str
    name: str
    limit_cents: int
    closing_day: int
    due_day: int
    is_active: bool = True
    last_digits: Optional[str] = None


@dataclass
class Purchase:
    """Single installment row billed to one invoice"""

    id: uuid.UUID
    invoice_id: uuid.UUID
    description: str
    value_cents: int
    total_value_cents: int
    category: str
    date: date
    installments: int = 1
    current_installment: int = 1
    parent_purchase_id: Optional[uuid.UUID] = None


@dataclass
class Invoice:
    """Monthly invoice of a card"""

    id: uuid.UUID
    credit_card_id: uuid.UUID
    month: int
    year: int
    closing_date: date
    due_date: date
    status: InvoiceStatus = InvoiceStatus.OPEN
    total_cents: int = 0
    paid_amount_cents: int = 0
    purchases: List[Purchase] = field(default_factory=list)

    @property
    def period(self) -> InvoicePeriod:
        return InvoicePeriod(month=self.month, year=self.year)

    @property
    def outstanding_cents(self) -> int:
        """Amount still owed; paid invoices owe nothing"""
        if self.status == InvoiceStatus.PAID:
            return 0
        return self.total_cents - self.paid_amount_cents


@dataclass
class PurchaseRequest:
    """Input for allocating a new card purchase"""

    description: str
    value_cents: int
    category: str
    date: date
    installments: int = 1


@dataclass
class Installment:
    """One slice of a purchase split over consecutive months"""

    number: int
    date: date
    value_cents: int


@dataclass
class CardView:
    """Card with its invoices (newest first) and their purchases"""

    card: CreditCard
    invoices: List[Invoice]
    available_limit_cents: int


@dataclass
class AllocationResult:
    """Outcome of a purchase allocation"""

    card: CardView
    created_count: int


@dataclass
class PaymentResult:
    """Outcome of applying a payment to an invoice"""

    invoice: Invoice
    payment_cents: int


@dataclass
class CardsSummary:
    """Aggregated limit usage over a user's active cards"""

    total_cards: int
    total_limit_cents: int
    total_used_cents: int
    total_available_cents: int
    usage_percentage: float
