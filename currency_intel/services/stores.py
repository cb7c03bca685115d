# currency_intel/services/stores.py
"""
SQLAlchemy-backed collaborators for the revaluation engine.

The engine never sees ORM rows: snapshots and accounts are converted to
value objects here, which is where missing optional figures get their
defaults and malformed rows are rejected.
"""

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from currency_intel.models import Account, NetWorthSnapshot, User
from currency_intel.services.revaluation.types import AccountHolding, Snapshot

logger = logging.getLogger(__name__)


class SqlSnapshotStore:
    """Reads NetWorthSnapshot rows for a user and date window."""

    def find_snapshots(
            self,
            db: Session,
            user_id: int,
            start: datetime,
            end: datetime,
    ) -> list[Snapshot]:
        query = (
            select(NetWorthSnapshot)
            .where(
                NetWorthSnapshot.user_id == user_id,
                NetWorthSnapshot.date >= start,
                NetWorthSnapshot.date <= end,
            )
            .options(selectinload(NetWorthSnapshot.entries))
            .order_by(NetWorthSnapshot.date, NetWorthSnapshot.id)
        )

        rows = db.scalars(query).all()
        logger.debug(f"Loaded {len(rows)} snapshots for user {user_id} between {start} and {end}")

        return [Snapshot.from_model(row) for row in rows]


class SqlAccountStore:
    """Reads live accounts for a user."""

    def find_active_accounts(
            self,
            db: Session,
            user_id: int,
            exclude_currency: str | None = None,
            net_worth_only: bool = False,
    ) -> list[AccountHolding]:
        query = select(Account).where(
            Account.user_id == user_id,
            Account.is_active.is_(True),
        )
        if exclude_currency is not None:
            query = query.where(func.upper(Account.currency) != exclude_currency.upper())
        if net_worth_only:
            query = query.where(Account.include_in_net_worth.is_(True))

        rows = db.scalars(query.order_by(Account.id)).all()
        return [AccountHolding.from_model(row) for row in rows]


def user_exists(db: Session, user_id: int) -> bool:
    return db.get(User, user_id) is not None
