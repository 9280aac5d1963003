"""Sweep that expires unpaid payments once their payment window has passed."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from models.status import PaymentStatus
from services.actor import EXPIRY_REAPER
from services.payment_store import due_unpaid_payment_ids
from services.status_sync import lock_payment, sync_payment_status
from services.uow import UnitOfWork

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    expired: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)


def expire_payment_if_due(session, payment_id: int, now: datetime) -> bool:
    """
    Expire one payment in its own transaction. The due check is repeated under
    the order lock, so a payment paid between the sweep query and this call
    is left alone.
    """
    with UnitOfWork(session) as uow:
        payment = lock_payment(session, payment_id)
        if payment.status != PaymentStatus.UNPAID.value or payment.expires_at > now:
            return False
        return sync_payment_status(uow, payment, PaymentStatus.EXPIRED, EXPIRY_REAPER)


def sweep_expired_payments(session, now: datetime = None) -> SweepResult:
    now = now or datetime.utcnow()
    result = SweepResult()
    payment_ids = due_unpaid_payment_ids(session, now)
    # release the read transaction before handing each payment its own
    session.rollback()

    for payment_id in payment_ids:
        try:
            if expire_payment_if_due(session, payment_id, now):
                result.expired.append(payment_id)
            else:
                result.skipped.append(payment_id)
        except Exception:
            # one broken payment must not hold up the rest of the batch
            logger.error("Failed to expire payment %s", payment_id, exc_info=True)
            result.failed.append(payment_id)

    if payment_ids:
        logger.info(
            "Expiry sweep: %d expired, %d skipped, %d failed",
            len(result.expired), len(result.skipped), len(result.failed),
        )
    return result
