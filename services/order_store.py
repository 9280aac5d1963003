from typing import Iterable

from models.order import Order
from models.status import OrderStatus
from services.errors import OrderNotFound
from services.status_machine import FINISHED_BOOKING_STATUSES, ensure_transition
from utils.codes import unique_code


def _order_code_taken(session, code: str) -> bool:
    return session.query(Order.id).filter_by(order_code=code).first() is not None


def create_order(uow, user_id: int, total_amount: int, venue_ids: Iterable[int] = ()) -> Order:
    order = Order(
        order_code=unique_code("ORD", lambda c: _order_code_taken(uow.session, c)),
        user_id=user_id,
        total_amount=total_amount,
        status=OrderStatus.PENDING.value,
        venue_ids=",".join(str(v) for v in sorted(set(venue_ids))),
    )
    uow.session.add(order)
    uow.flush()
    return order


def get_order(session, order_id: int, lock: bool = False) -> Order:
    q = session.query(Order).filter(Order.id == order_id)
    if lock:
        # serialises cascades on the same order; other orders are unaffected
        q = q.with_for_update()
    order = q.first()
    if order is None:
        raise OrderNotFound("Order not found", order_id=order_id)
    return order


def orders_for_user(session, user_id: int, status: str = None, limit: int = 50):
    q = session.query(Order).filter_by(user_id=user_id)
    if status:
        q = q.filter_by(status=status)
    return q.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).all()


def set_order_status(uow, order: Order, new_status: OrderStatus) -> bool:
    if not ensure_transition("order", order.status, new_status):
        return False
    order.status = new_status.value
    return True


def all_bookings_finished(order: Order) -> bool:
    statuses = [b.status for b in order.bookings]
    return bool(statuses) and all(s in {f.value for f in FINISHED_BOOKING_STATUSES} for s in statuses)
