"""SQLAlchemy models for ledgerpost database."""

from datetime import datetime, UTC
from decimal import Decimal
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

MONEY = Numeric(14, 2)


def _now() -> datetime:
    return datetime.now(UTC)


class Account(Base):
    """Chart of accounts model.

    The version column is checked on every UPDATE, so two writers that read
    the same totals cannot both commit.
    """

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    code = Column(String, unique=True, nullable=False)
    name = Column(String, unique=True, nullable=False)
    account_type = Column(String, nullable=False)
    parent_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    is_gst_account = Column(Boolean, default=False, nullable=False)
    is_tds_account = Column(Boolean, default=False, nullable=False)
    is_system_account = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    debit_total = Column(MONEY, default=Decimal("0"), nullable=False)
    credit_total = Column(MONEY, default=Decimal("0"), nullable=False)
    balance = Column(MONEY, default=Decimal("0"), nullable=False)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    parent = relationship("Account", remote_side=[id], backref="children")
    entries = relationship("LedgerEntry", back_populates="account")


class Transaction(Base):
    """Transaction header model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    transaction_type = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    description = Column(String, nullable=True)
    reference = Column(String, nullable=True)
    status = Column(String, nullable=False)
    subtotal = Column(MONEY, default=Decimal("0"), nullable=False)
    tax_amount = Column(MONEY, default=Decimal("0"), nullable=False)
    total_amount = Column(MONEY, default=Decimal("0"), nullable=False)
    counterparty = Column(String, nullable=True)
    related_transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)
    gst_type = Column(String, nullable=True)
    cgst_amount = Column(MONEY, default=Decimal("0"), nullable=False)
    sgst_amount = Column(MONEY, default=Decimal("0"), nullable=False)
    igst_amount = Column(MONEY, default=Decimal("0"), nullable=False)
    tds_section = Column(String, nullable=True)
    tds_amount = Column(MONEY, default=Decimal("0"), nullable=False)
    void_reason = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    # Relationships
    entries = relationship(
        "LedgerEntry",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="LedgerEntry.position",
    )
    allocations = relationship(
        "PaymentAllocation",
        back_populates="payment",
        cascade="all, delete-orphan",
        foreign_keys="PaymentAllocation.payment_id",
        order_by="PaymentAllocation.id",
    )
    related_transaction = relationship("Transaction", remote_side=[id])


class LedgerEntry(Base):
    """Debit or credit line belonging to a transaction."""

    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False)
    position = Column(Integer, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    direction = Column(String, nullable=False)
    amount = Column(MONEY, nullable=False)
    memo = Column(String, nullable=True)

    # Relationships
    transaction = relationship("Transaction", back_populates="entries")
    account = relationship("Account", back_populates="entries")


class PaymentAllocation(Base):
    """Portion of a payment applied to one invoice or bill."""

    __tablename__ = "payment_allocations"

    id = Column(Integer, primary_key=True)
    payment_id = Column(Integer, ForeignKey("transactions.id"), nullable=False)
    document_id = Column(Integer, ForeignKey("transactions.id"), nullable=False)
    amount = Column(MONEY, nullable=False)

    # Relationships
    payment = relationship("Transaction", back_populates="allocations", foreign_keys=[payment_id])
    document = relationship("Transaction", foreign_keys=[document_id])


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
