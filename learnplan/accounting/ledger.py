"""Credit ledger: the only code that changes `User.credits`.

Two deduction policies exist side by side and are kept apart on purpose:

- `charge_if_affordable` gates a paid action. It rejects outright when the
  balance is short and writes nothing.
- `deduct` is an administrative adjustment. It floors the balance at zero and
  never reports insufficiency.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import uuid
from sqlalchemy.orm import Session

from learnplan.accounting.errors import AccountingError, InsufficientCreditsError, NotFoundError
from learnplan.accounting.events import emit_event
from learnplan.database.credit_repository import CreditTransactionRepository
from learnplan.database.models import CreditTransactionDB, UserDB, enum_to_value
from learnplan.models.credit_transaction import CreditReason, CreditTransaction
from learnplan.models.domain_event import CreditsChargedEvent

logger = logging.getLogger(__name__)


def _current_balance(db: Session, user_id: str) -> Optional[int]:
    row = db.query(UserDB.credits).filter(UserDB.id == user_id).first()
    return int(row[0] or 0) if row else None


def _log_transaction(
    db: Session,
    user_id: str,
    amount: int,
    reason,
    balance_after: int,
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    db.add(CreditTransactionDB(
        id=str(uuid.uuid4()),
        user_id=user_id,
        amount=amount,
        reason=enum_to_value(reason),
        balance_after=balance_after,
        details=metadata or {},
        created_at=datetime.utcnow(),
    ))


def get_balance(db: Session, user_id: str) -> int:
    """Current credit balance.

    Raises:
        NotFoundError: If the user does not exist
    """
    balance = _current_balance(db, user_id)
    if balance is None:
        raise NotFoundError(f"User {user_id} not found")
    return balance


def charge_if_affordable(
    db: Session,
    user_id: str,
    amount: int,
    reason,
    metadata: Optional[Dict[str, Any]] = None,
) -> int:
    """Charge a paid action, or refuse it without writing anything.

    The decrement is a single conditional UPDATE (`credits >= amount`), so two
    concurrent charges cannot both spend the same credits.

    Args:
        db: Database session
        user_id: User to charge
        amount: Positive number of credits
        reason: CreditReason for the audit log
        metadata: Extra details for the audit log (token counts, video counts)

    Returns:
        Remaining balance

    Raises:
        ValueError: If amount is not positive
        NotFoundError: If the user does not exist
        InsufficientCreditsError: If the balance is below amount
    """
    if amount <= 0:
        raise ValueError("Charge amount must be positive")

    try:
        updated = (
            db.query(UserDB)
            .filter(UserDB.id == user_id, UserDB.credits >= amount)
            .update(
                {UserDB.credits: UserDB.credits - amount, UserDB.updated_at: datetime.utcnow()},
                synchronize_session=False,
            )
        )
        if not updated:
            db.rollback()
            available = _current_balance(db, user_id)
            if available is None:
                raise NotFoundError(f"User {user_id} not found")
            logger.info(f"Refused {enum_to_value(reason)} charge of {amount} for user {user_id} (balance {available})")
            raise InsufficientCreditsError(required=amount, available=available)

        remaining = _current_balance(db, user_id)
        _log_transaction(db, user_id, -amount, reason, remaining, metadata)
        db.commit()
    except AccountingError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to charge user {user_id}: {type(e).__name__}: {str(e)}")
        raise

    logger.debug(f"Charged {amount} credits ({enum_to_value(reason)}) to user {user_id}, {remaining} left")
    emit_event(db, user_id, CreditsChargedEvent(
        amount=amount,
        reason=enum_to_value(reason),
        remaining=remaining,
    ))
    return remaining


def grant(
    db: Session,
    user_id: str,
    amount: int,
    reason=CreditReason.ADJUSTMENT,
    metadata: Optional[Dict[str, Any]] = None,
) -> int:
    """Add credits unconditionally. Returns the new balance.

    Raises:
        ValueError: If amount is not positive
        NotFoundError: If the user does not exist
    """
    if amount <= 0:
        raise ValueError("Grant amount must be positive")

    user_db = db.query(UserDB).filter(UserDB.id == user_id).first()
    if not user_db:
        raise NotFoundError(f"User {user_id} not found")
    try:
        user_db.credits = (user_db.credits or 0) + amount
        _log_transaction(db, user_id, amount, reason, user_db.credits, metadata)
        db.commit()
        db.refresh(user_db)
        logger.debug(f"Granted {amount} credits ({enum_to_value(reason)}) to user {user_id}")
        return user_db.credits
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to grant credits to user {user_id}: {type(e).__name__}: {str(e)}")
        raise


def grant_purchase(db: Session, user_id: str, amount: int, payment_id: str) -> Tuple[int, bool]:
    """Credit a verified payment once.

    A payment already recorded for this user is not credited again, so
    redelivered webhooks are harmless.

    Returns:
        (balance, granted) where granted is False for a repeat delivery

    Raises:
        ValueError: If amount is not positive
        NotFoundError: If the user does not exist
    """
    for transaction in CreditTransactionRepository(db).list_by_reason(user_id, CreditReason.PURCHASE.value):
        if transaction.metadata.get("payment_id") == payment_id:
            logger.info(f"Payment {payment_id} already credited to user {user_id}")
            return get_balance(db, user_id), False
    balance = grant(db, user_id, amount, CreditReason.PURCHASE, metadata={"payment_id": payment_id})
    return balance, True


def deduct(db: Session, user_id: str, amount: int) -> int:
    """Administrative deduction that floors the balance at zero.

    Never raises for insufficiency. The audit log records the amount actually
    removed. Returns the new balance.

    Raises:
        ValueError: If amount is negative
        NotFoundError: If the user does not exist
    """
    if amount < 0:
        raise ValueError("Deduction amount must not be negative")

    user_db = db.query(UserDB).filter(UserDB.id == user_id).first()
    if not user_db:
        raise NotFoundError(f"User {user_id} not found")
    try:
        before = user_db.credits or 0
        after = max(0, before - amount)
        user_db.credits = after
        removed = before - after
        if removed:
            _log_transaction(db, user_id, -removed, CreditReason.ADJUSTMENT, after, {"requested": amount})
        db.commit()
        logger.debug(f"Deducted {removed} of {amount} requested credits from user {user_id}")
        return after
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to deduct credits from user {user_id}: {type(e).__name__}: {str(e)}")
        raise


def list_transactions(db: Session, user_id: str, limit: int = 50) -> List[CreditTransaction]:
    """Recent credit transactions, newest first."""
    return CreditTransactionRepository(db).list_for_user(user_id, limit=limit)
