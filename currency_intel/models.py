# currency_intel/models.py
import enum
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime, ForeignKey, Enum, Numeric, UniqueConstraint, Boolean, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class AccountType(str, enum.Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    INVESTMENT = "investment"
    CREDIT = "credit"
    CASH = "cash"
    OTHER = "other"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    preferred_currency: Mapped[str] = mapped_column(String(3), default="USD")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    accounts: Mapped[list["Account"]] = relationship(back_populates="owner")
    snapshots: Mapped[list["NetWorthSnapshot"]] = relationship(back_populates="owner")


class Account(Base):
    """
    A live financial holding in a single currency.

    opening_balance is the balance the account was created with. The P&L
    calculator uses balance / opening_balance as a rough acquisition rate
    when no cost-basis history exists.
    """
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    name: Mapped[str] = mapped_column(String)
    account_type: Mapped[AccountType] = mapped_column(Enum(AccountType), default=AccountType.CHECKING)
    currency: Mapped[str] = mapped_column(String(3), default="USD")

    # Numeric(18, 8) keeps enough precision for crypto-denominated holdings
    balance: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))
    opening_balance: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    include_in_net_worth: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    owner: Mapped["User"] = relationship(back_populates="accounts")


class NetWorthSnapshot(Base):
    """
    Point-in-time record of a user's net worth.

    Written by an external scheduler and never mutated afterwards. The
    revaluation engine reads consecutive snapshots to split net worth
    change into FX and non-FX components.
    """
    __tablename__ = "net_worth_snapshots"
    __table_args__ = (
        # "All snapshots for user X between A and B, oldest first"
        Index('ix_snapshot_user_date', 'user_id', 'date'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    base_currency: Mapped[str] = mapped_column(String(3), default="USD")
    total_net_worth: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    owner: Mapped["User"] = relationship(back_populates="snapshots")
    entries: Mapped[list["SnapshotAccountEntry"]] = relationship(
        back_populates="snapshot",
        cascade="all, delete-orphan",
        order_by="SnapshotAccountEntry.id",
    )


class SnapshotAccountEntry(Base):
    """
    One account's state inside a snapshot.

    exchange_rate and balance_in_base_currency are nullable for legacy rows;
    the engine treats a missing rate as 1 (already in base currency) and a
    missing base value as 0.
    """
    __tablename__ = "snapshot_account_entries"
    __table_args__ = (
        UniqueConstraint('snapshot_id', 'account_id', name='uq_snapshot_account'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    snapshot_id: Mapped[int] = mapped_column(ForeignKey("net_worth_snapshots.id"), index=True)

    # Not a foreign key: snapshots outlive deleted accounts
    account_id: Mapped[int] = mapped_column(index=True)
    account_name: Mapped[str | None] = mapped_column(String, nullable=True)

    currency: Mapped[str] = mapped_column(String(3))
    balance: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    balance_in_base_currency: Mapped[Decimal | None] = mapped_column(Numeric(18, 8), nullable=True)
    exchange_rate: Mapped[Decimal | None] = mapped_column(Numeric(18, 8), nullable=True)

    snapshot: Mapped["NetWorthSnapshot"] = relationship(back_populates="entries")
