from datetime import datetime, timedelta
from typing import List

from models.payment import Payment
from models.status import PaymentStatus
from services.errors import PaymentNotFound
from services.status_machine import ensure_transition

DEFAULT_EXPIRY_MINUTES = 15


def create_payment(
    uow,
    order_id: int,
    channel_name: str,
    amount: int,
    tax_amount: int = 0,
    booking_fee: int = 0,
    currency: str = "IDR",
    expiry_minutes: int = DEFAULT_EXPIRY_MINUTES,
    now: datetime = None,
) -> Payment:
    now = now or datetime.utcnow()
    payment = Payment(
        order_id=order_id,
        channel_name=channel_name,
        amount=amount,
        tax_amount=tax_amount,
        booking_fee=booking_fee,
        currency=currency,
        status=PaymentStatus.UNPAID.value,
        expires_at=now + timedelta(minutes=expiry_minutes),
    )
    uow.session.add(payment)
    uow.flush()
    return payment


def get_payment(session, payment_id: int) -> Payment:
    payment = session.get(Payment, payment_id)
    if payment is None:
        raise PaymentNotFound("Payment not found", payment_id=payment_id)
    return payment


def find_by_gateway_reference(session, reference: str):
    if not reference:
        return None
    return session.query(Payment).filter_by(gateway_reference=reference).first()


def due_unpaid_payment_ids(session, now: datetime) -> List[int]:
    rows = (
        session.query(Payment.id)
        .filter(Payment.status == PaymentStatus.UNPAID.value, Payment.expires_at <= now)
        .order_by(Payment.expires_at.asc())
        .all()
    )
    return [r.id for r in rows]


def set_payment_status(uow, payment: Payment, new_status: PaymentStatus, override: bool = False) -> bool:
    kind = "payment_override" if override else "payment"
    if not ensure_transition(kind, payment.status, new_status):
        return False
    payment.status = new_status.value
    if new_status == PaymentStatus.PAID:
        payment.payment_date = datetime.utcnow()
    return True
