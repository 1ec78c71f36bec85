"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field, model_validator
import datetime
from typing import List, Literal, Optional
from card_billing.config import settings
from card_billing.domain.cycle import is_closed, is_overdue
from card_billing.domain.models import CardView, CardsSummary, Invoice, Purchase


class CreateCardRequest(BaseModel):
    """Request body for POST /v1/cards"""

    name: str = Field(..., min_length=1)
    last_digits: Optional[str] = Field(None, min_length=4, max_length=4)
    limit_cents: int = Field(..., ge=0, description="Credit limit in cents")
    closing_day: int = Field(..., ge=1, le=31)
    due_day: int = Field(..., ge=1, le=31)


class UpdateCardRequest(BaseModel):
    """Request body for PUT /v1/cards/{card_id}; omitted fields are left unchanged"""

    name: Optional[str] = Field(None, min_length=1)
    last_digits: Optional[str] = Field(None, min_length=4, max_length=4)
    limit_cents: Optional[int] = Field(None, ge=0)
    closing_day: Optional[int] = Field(None, ge=1, le=31)
    due_day: Optional[int] = Field(None, ge=1, le=31)
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        # last_digits is the only nullable card column
        nulls = [
            name
            for name in ("name", "limit_cents", "closing_day", "due_day", "is_active")
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return self


class CreatePurchaseRequest(BaseModel):
    """Request body for POST /v1/cards/{card_id}/purchases"""

    description: str = Field(..., min_length=1)
    value_cents: int = Field(..., gt=0, description="Full purchase amount in cents")
    category: str = Field(..., min_length=1)
    date: datetime.date
    installments: int = Field(1, ge=1, le=settings.max_installments)


class UpdateInvoiceRequest(BaseModel):
    """Request body for PUT/PATCH /v1/cards/{card_id}/invoices/{invoice_id}"""

    status: Optional[Literal["open", "closed", "paid"]] = None
    paid_amount_cents: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def require_change(self):
        if self.status is None and self.paid_amount_cents is None:
            raise ValueError("Provide status or paid_amount_cents")
        return self


class PurchaseSchema(BaseModel):
    """Single installment row"""

    id: str
    description: str
    value_cents: int
    total_value_cents: int
    category: str
    date: datetime.date
    installments: int
    current_installment: int
    parent_purchase_id: Optional[str] = None

    @classmethod
    def from_domain(cls, purchase: Purchase) -> "PurchaseSchema":
        return cls(
            id=str(purchase.id),
            description=purchase.description,
            value_cents=purchase.value_cents,
            total_value_cents=purchase.total_value_cents,
            category=purchase.category,
            date=purchase.date,
            installments=purchase.installments,
            current_installment=purchase.current_installment,
            parent_purchase_id=str(purchase.parent_purchase_id) if purchase.parent_purchase_id else None,
        )


class InvoiceSchema(BaseModel):
    """Invoice with its purchases"""

    id: str
    credit_card_id: str
    month: int
    year: int
    closing_date: datetime.date
    due_date: datetime.date
    status: str
    total_cents: int
    paid_amount_cents: int
    is_closed: bool
    is_overdue: bool
    purchases: List[PurchaseSchema] = []

    @classmethod
    def from_domain(cls, invoice: Invoice, today: datetime.date) -> "InvoiceSchema":
        return cls(
            id=str(invoice.id),
            credit_card_id=str(invoice.credit_card_id),
            month=invoice.month,
            year=invoice.year,
            closing_date=invoice.closing_date,
            due_date=invoice.due_date,
            status=invoice.status.value,
            total_cents=invoice.total_cents,
            paid_amount_cents=invoice.paid_amount_cents,
            is_closed=is_closed(invoice, today),
            is_overdue=is_overdue(invoice, today),
            purchases=[PurchaseSchema.from_domain(p) for p in invoice.purchases],
        )


class CardResponse(BaseModel):
    """Card with invoices and available credit"""

    id: str
    name: str
    last_digits: Optional[str] = None
    limit_cents: int
    available_limit_cents: int
    closing_day: int
    due_day: int
    is_active: bool
    invoices: List[InvoiceSchema]

    @classmethod
    def from_domain(cls, view: CardView, today: datetime.date) -> "CardResponse":
        card = view.card
        return cls(
            id=str(card.id),
            name=card.name,
            last_digits=card.last_digits,
            limit_cents=card.limit_cents,
            available_limit_cents=view.available_limit_cents,
            closing_day=card.closing_day,
            due_day=card.due_day,
            is_active=card.is_active,
            invoices=[InvoiceSchema.from_domain(inv, today) for inv in view.invoices],
        )


class PurchaseCreatedResponse(BaseModel):
    """Response for POST /v1/cards/{card_id}/purchases"""

    card: CardResponse
    created_count: int
    message: str


class CardsSummaryResponse(BaseModel):
    """Response for GET /v1/cards/summary"""

    total_cards: int
    total_limit_cents: int
    total_used_cents: int
    total_available_cents: int
    usage_percentage: float

    @classmethod
    def from_domain(cls, summary: CardsSummary) -> "CardsSummaryResponse":
        return cls(
            total_cards=summary.total_cards,
            total_limit_cents=summary.total_limit_cents,
            total_used_cents=summary.total_used_cents,
            total_available_cents=summary.total_available_cents,
            usage_percentage=summary.usage_percentage,
        )


class FutureInvoicesResponse(BaseModel):
    """Response for GET /v1/invoices/future"""

    user_id: str
    invoices: List[InvoiceSchema]


class ErrorResponse(BaseModel):
    """Error body for domain failures"""

    error: str
    code: str
