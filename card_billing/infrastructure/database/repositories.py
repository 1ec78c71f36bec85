"""Data access layer for billing entities"""

import logging
import uuid
from datetime import date
from typing import List, Optional
from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from card_billing.infrastructure.database.models import (
    CreditCardRow,
    InvoiceRow,
    PurchaseRow,
    LedgerTransactionRow,
)
from card_billing.domain.exceptions import DuplicateInvoiceError
from card_billing.domain.models import (
    CreditCard,
    Invoice,
    InvoiceDates,
    InvoiceStatus,
    Purchase,
    OUTSTANDING_STATUSES,
)

logger = logging.getLogger(__name__)

CARD_FIELDS = ("name", "last_digits", "limit_cents", "closing_day", "due_day", "is_active")


def card_to_domain(row: CreditCardRow) -> CreditCard:
    return CreditCard(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        limit_cents=row.limit_cents,
        closing_day=row.closing_day,
        due_day=row.due_day,
        is_active=row.is_active,
        last_digits=row.last_digits,
    )


def purchase_to_domain(row: PurchaseRow) -> Purchase:
    return Purchase(
        id=row.id,
        invoice_id=row.invoice_id,
        description=row.description,
        value_cents=row.value_cents,
        total_value_cents=row.total_value_cents,
        category=row.category,
        date=row.date,
        installments=row.installments,
        current_installment=row.current_installment,
        parent_purchase_id=row.parent_purchase_id,
    )


def invoice_to_domain(row: InvoiceRow, include_purchases: bool = False) -> Invoice:
    purchases = []
    if include_purchases:
        purchases = [
            purchase_to_domain(p)
            for p in sorted(row.purchases, key=lambda p: (p.date, p.current_installment), reverse=True)
        ]
    return Invoice(
        id=row.id,
        credit_card_id=row.credit_card_id,
        month=row.month,
        year=row.year,
        closing_date=row.closing_date,
        due_date=row.due_date,
        status=InvoiceStatus(row.status),
        total_cents=row.total_cents,
        paid_amount_cents=row.paid_amount_cents,
        purchases=purchases,
    )


class CardRepository:
    """Repository for credit cards, always scoped to the owning user"""

    def __init__(self, db: Session):
        self.db = db

    def _get_row(self, card_id: uuid.UUID, user_id: str, for_update: bool = False) -> Optional[CreditCardRow]:
        query = self.db.query(CreditCardRow).filter(
            CreditCardRow.id == card_id,
            CreditCardRow.user_id == user_id,
        )
        if for_update:
            # Serializes concurrent allocations on the same card (no-op on SQLite)
            query = query.with_for_update()
        return query.first()

    def get(self, card_id: uuid.UUID, user_id: str, for_update: bool = False) -> Optional[CreditCard]:
        """Fetch a card only if it belongs to user_id"""
        row = self._get_row(card_id, user_id, for_update)
        return card_to_domain(row) if row else None

    def create(
        self,
        user_id: str,
        name: str,
        limit_cents: int,
        closing_day: int,
        due_day: int,
        last_digits: Optional[str] = None,
    ) -> CreditCard:
        row = CreditCardRow(
            user_id=user_id,
            name=name,
            limit_cents=limit_cents,
            closing_day=closing_day,
            due_day=due_day,
            last_digits=last_digits,
            is_active=True,
        )
        self.db.add(row)
        self.db.flush()
        return card_to_domain(row)

    def update(self, card_id: uuid.UUID, user_id: str, **fields) -> Optional[CreditCard]:
        row = self._get_row(card_id, user_id)
        if row is None:
            return None

        for name, value in fields.items():
            if name not in CARD_FIELDS:
                raise ValueError(f"Unknown card field: {name}")
            setattr(row, name, value)

        self.db.flush()
        return card_to_domain(row)

    def delete(self, card_id: uuid.UUID, user_id: str) -> bool:
        """Remove a card with its invoices and purchases; ledger entries stay"""
        row = self._get_row(card_id, user_id)
        if row is None:
            return False

        self.db.delete(row)
        self.db.flush()
        return True

    def list_by_user(self, user_id: str, active_only: bool = True) -> List[CreditCard]:
        query = self.db.query(CreditCardRow).filter(CreditCardRow.user_id == user_id)
        if active_only:
            query = query.filter(CreditCardRow.is_active.is_(True))
        return [card_to_domain(row) for row in query.order_by(CreditCardRow.created_at.desc()).all()]


class InvoiceRepository:
    """Repository for invoices"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, invoice_id: uuid.UUID, include_purchases: bool = False) -> Optional[Invoice]:
        row = self.db.get(InvoiceRow, invoice_id)
        return invoice_to_domain(row, include_purchases) if row else None

    def find_by_period(self, card_id: uuid.UUID, month: int, year: int) -> Optional[Invoice]:
        row = (
            self.db.query(InvoiceRow)
            .filter(
                InvoiceRow.credit_card_id == card_id,
                InvoiceRow.month == month,
                InvoiceRow.year == year,
            )
            .first()
        )
        return invoice_to_domain(row) if row else None

    def create(self, card_id: uuid.UUID, month: int, year: int, dates: InvoiceDates) -> Invoice:
        """
        Insert a new open invoice inside a savepoint.

        Raises:
            DuplicateInvoiceError: Another transaction already created the period
        """
        row = InvoiceRow(
            credit_card_id=card_id,
            month=month,
            year=year,
            closing_date=dates.closing_date,
            due_date=dates.due_date,
            status=InvoiceStatus.OPEN.value,
            total_cents=0,
            paid_amount_cents=0,
        )
        try:
            # Savepoint keeps the outer transaction usable after a unique violation
            with self.db.begin_nested():
                self.db.add(row)
        except IntegrityError as e:
            logger.info(
                "Invoice period already exists for card=%s period=%02d/%d",
                card_id,
                month,
                year,
            )
            raise DuplicateInvoiceError(f"Invoice {month:02d}/{year} already exists for card {card_id}") from e

        return invoice_to_domain(row)

    def update(
        self,
        invoice_id: uuid.UUID,
        status: Optional[InvoiceStatus] = None,
        total_cents: Optional[int] = None,
        paid_amount_cents: Optional[int] = None,
    ) -> Invoice:
        row = self.db.get(InvoiceRow, invoice_id)
        if status is not None:
            row.status = InvoiceStatus(status).value
        if total_cents is not None:
            row.total_cents = total_cents
        if paid_amount_cents is not None:
            row.paid_amount_cents = paid_amount_cents

        self.db.flush()
        return invoice_to_domain(row)

    def list_outstanding(self, card_id: uuid.UUID) -> List[Invoice]:
        """Open and closed invoices of a card"""
        rows = (
            self.db.query(InvoiceRow)
            .filter(
                InvoiceRow.credit_card_id == card_id,
                InvoiceRow.status.in_([s.value for s in OUTSTANDING_STATUSES]),
            )
            .all()
        )
        return [invoice_to_domain(row) for row in rows]

    def list_by_card(self, card_id: uuid.UUID, include_purchases: bool = False) -> List[Invoice]:
        """All invoices of a card, newest period first"""
        query = self.db.query(InvoiceRow).filter(InvoiceRow.credit_card_id == card_id)
        if include_purchases:
            query = query.options(selectinload(InvoiceRow.purchases))
        rows = query.order_by(InvoiceRow.year.desc(), InvoiceRow.month.desc()).all()
        return [invoice_to_domain(row, include_purchases) for row in rows]

    def list_future_by_user(self, user_id: str, month: int, year: int, limit: int = 50) -> List[Invoice]:
        """Invoices of active cards for periods after (month, year), oldest first"""
        rows = (
            self.db.query(InvoiceRow)
            .join(CreditCardRow, InvoiceRow.credit_card_id == CreditCardRow.id)
            .filter(
                CreditCardRow.user_id == user_id,
                CreditCardRow.is_active.is_(True),
                or_(
                    and_(InvoiceRow.year == year, InvoiceRow.month > month),
                    InvoiceRow.year > year,
                ),
            )
            .order_by(InvoiceRow.year.asc(), InvoiceRow.month.asc())
            .limit(limit)
            .all()
        )
        return [invoice_to_domain(row) for row in rows]


class PurchaseRepository:
    """Repository for purchase installments"""

    def __init__(self, db: Session):
        self.db = db

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
    ) -> Purchase:
        row = PurchaseRow(
            invoice_id=invoice_id,
            description=description,
            value_cents=value_cents,
            total_value_cents=total_value_cents,
            category=category,
            date=purchase_date,
            installments=installments,
            current_installment=current_installment,
            parent_purchase_id=parent_purchase_id,
        )
        self.db.add(row)
        self.db.flush()
        return purchase_to_domain(row)

    def get(self, purchase_id: uuid.UUID) -> Optional[Purchase]:
        row = self.db.get(PurchaseRow, purchase_id)
        return purchase_to_domain(row) if row else None

    def owner_of(self, purchase_id: uuid.UUID) -> Optional[str]:
        """User id of the card the purchase was billed to"""
        result = (
            self.db.query(CreditCardRow.user_id)
            .join(InvoiceRow, InvoiceRow.credit_card_id == CreditCardRow.id)
            .join(PurchaseRow, PurchaseRow.invoice_id == InvoiceRow.id)
            .filter(PurchaseRow.id == purchase_id)
            .first()
        )
        return result[0] if result else None

    def delete_by_id(self, purchase_id: uuid.UUID) -> None:
        row = self.db.get(PurchaseRow, purchase_id)
        if row is not None:
            self.db.delete(row)
            self.db.flush()

    def delete_by_parent(self, parent_purchase_id: uuid.UUID) -> None:
        for row in self.db.query(PurchaseRow).filter(PurchaseRow.parent_purchase_id == parent_purchase_id).all():
            self.db.delete(row)
        self.db.flush()

    def list_by_invoice(self, invoice_id: uuid.UUID) -> List[Purchase]:
        rows = self.db.query(PurchaseRow).filter(PurchaseRow.invoice_id == invoice_id).all()
        return [purchase_to_domain(row) for row in rows]

    def list_by_parent(self, parent_purchase_id: uuid.UUID) -> List[Purchase]:
        rows = (
            self.db.query(PurchaseRow)
            .filter(PurchaseRow.parent_purchase_id == parent_purchase_id)
            .order_by(PurchaseRow.current_installment)
            .all()
        )
        return [purchase_to_domain(row) for row in rows]


class LedgerRepository:
    """Repository for cash ledger entries"""

    def __init__(self, db: Session):
        self.db = db

    def create_expense(
        self,
        value_cents: int,
        category: str,
        description: str,
        expense_date: date,
        user_id: str,
    ) -> uuid.UUID:
        row = LedgerTransactionRow(
            user_id=user_id,
            type="expense",
            value_cents=value_cents,
            category=category,
            description=description,
            date=expense_date,
        )
        self.db.add(row)
        self.db.flush()
        return row.id

    def list_by_user(self, user_id: str) -> List[LedgerTransactionRow]:
        return (
            self.db.query(LedgerTransactionRow)
            .filter(LedgerTransactionRow.user_id == user_id)
            .order_by(LedgerTransactionRow.created_at.desc())
            .all()
        )
