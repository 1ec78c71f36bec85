"""SQLAlchemy ORM models for cards, invoices, purchases and ledger entries"""

import uuid
from sqlalchemy import (
    Column,
    String,
    BigInteger,
    Boolean,
    DateTime,
    Date,
    Integer,
    ForeignKey,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class CreditCardRow(Base):
    """User credit card with billing cycle parameters"""

    __tablename__ = "credit_card"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    last_digits = Column(String(4), nullable=True)
    limit_cents = Column(BigInteger, nullable=False, default=0)
    closing_day = Column(Integer, nullable=False)
    due_day = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    invoices = relationship("InvoiceRow", back_populates="credit_card", cascade="all, delete-orphan")


class InvoiceRow(Base):
    """Monthly invoice; one per card and period"""

    __tablename__ = "invoice"
    __table_args__ = (
        UniqueConstraint("credit_card_id", "month", "year", name="uq_invoice_card_period"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    credit_card_id = Column(Uuid, ForeignKey("credit_card.id", ondelete="CASCADE"), nullable=False, index=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    closing_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(Text, nullable=False, default="open")
    total_cents = Column(BigInteger, nullable=False, default=0)
    paid_amount_cents = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    credit_card = relationship("CreditCardRow", back_populates="invoices")
    purchases = relationship("PurchaseRow", back_populates="invoice", cascade="all, delete-orphan")


class PurchaseRow(Base):
    """One installment of a card purchase"""

    __tablename__ = "purchase"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    invoice_id = Column(Uuid, ForeignKey("invoice.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    value_cents = Column(BigInteger, nullable=False)
    total_value_cents = Column(BigInteger, nullable=False)
    category = Column(Text, nullable=False)
    date = Column(Date, nullable=False)
    installments = Column(Integer, nullable=False, default=1)
    current_installment = Column(Integer, nullable=False, default=1)
    parent_purchase_id = Column(Uuid, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    invoice = relationship("InvoiceRow", back_populates="purchases")


class LedgerTransactionRow(Base):
    """Cash ledger entry written when an invoice payment is registered"""

    __tablename__ = "ledger_transaction"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    type = Column(Text, nullable=False, default="expense")
    value_cents = Column(BigInteger, nullable=False)
    category = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
