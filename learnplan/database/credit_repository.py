"""Repository for the credit transaction audit log."""

import logging
from typing import List
from sqlalchemy.orm import Session
from sqlalchemy import desc

from learnplan.models.credit_transaction import CreditTransaction
from learnplan.database.models import CreditTransactionDB

logger = logging.getLogger(__name__)


class CreditTransactionRepository:
    """Read access to credit transactions.

    Rows are appended by the ledger inside its own balance transaction, so this
    repository only reads.
    """

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user_id: str, limit: int = 50) -> List[CreditTransaction]:
        """Get a user's transactions, newest first."""
        rows = (
            self.db.query(CreditTransactionDB)
            .filter(CreditTransactionDB.user_id == user_id)
            .order_by(desc(CreditTransactionDB.created_at))
            .limit(limit)
            .all()
        )
        return [row.to_pydantic() for row in rows]

    def list_by_reason(self, user_id: str, reason: str) -> List[CreditTransaction]:
        """Get a user's transactions for one reason, oldest first."""
        rows = (
            self.db.query(CreditTransactionDB)
            .filter(
                CreditTransactionDB.user_id == user_id,
                CreditTransactionDB.reason == reason,
            )
            .order_by(CreditTransactionDB.created_at)
            .all()
        )
        return [row.to_pydantic() for row in rows]
