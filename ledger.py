"""
Payment ledger.

The transaction id from the provider is the idempotency anchor: the
`payment.transaction_id` column is UNIQUE, so however many times the
success redirect is replayed, at most one row lands.
"""
import logging
from typing import List, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from checkout import CheckoutOutcome
from errors import InvalidInput
from models import Payment

logger = logging.getLogger(__name__)


def record_payment(session: Session, outcome: CheckoutOutcome) -> bool:
    """
    Store a paid outcome once. Returns True if a payment for this
    transaction is on record afterwards, False for unpaid outcomes.
    """
    if not outcome.paid:
        return False
    if not outcome.transaction_id:
        raise InvalidInput("Paid outcome carries no transaction id")

    existing = session.exec(
        select(Payment).where(Payment.transaction_id == outcome.transaction_id)
    ).first()
    if existing is not None:
        logger.info("Payment %s already recorded", outcome.transaction_id)
        return True

    payment = Payment(
        transaction_id=outcome.transaction_id,
        amount=outcome.amount / 100,
        donor_email=outcome.payer_email,
        status="paid",
    )
    session.add(payment)
    try:
        session.commit()
    except IntegrityError:
        # a concurrent call inserted the same transaction first
        session.rollback()
        logger.info("Payment %s recorded concurrently", outcome.transaction_id)
        return True

    logger.info("Recorded payment %s: %.2f from %s",
                payment.transaction_id, payment.amount, payment.donor_email)
    return True


def page_payments(session: Session, page: int = 1, size: int = 10) -> Tuple[List[Payment], int]:
    if page < 1 or size < 1:
        raise InvalidInput("page and size must be positive")
    payments = session.exec(
        select(Payment)
        .order_by(Payment.paid_at.desc(), Payment.id.desc())
        .offset(size * (page - 1))
        .limit(size)
    ).all()
    total = session.exec(select(func.count()).select_from(Payment)).one()
    return list(payments), total


def total_funding(session: Session) -> float:
    total = session.exec(select(func.coalesce(func.sum(Payment.amount), 0))).one()
    return float(total)
