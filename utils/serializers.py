def _iso(value):
    return value.isoformat() if value else None


def booking_to_dict(b):
    return {
        "id": b.id,
        "booking_code": b.booking_code,
        "court_id": b.court_id,
        "order_id": b.order_id,
        "booking_date": b.booking_date.isoformat(),
        "duration": b.duration,
        "total_price": b.total_price,
        "status": b.status,
        "source": b.source,
        "time_slots": [{"open_hour": s.open_hour, "close_hour": s.close_hour} for s in b.time_slots],
        "blocking": {
            "id": b.blocking.id,
            "is_blocking": b.blocking.is_blocking,
        } if b.blocking else None,
    }


def payment_to_dict(p):
    if p is None:
        return None
    return {
        "id": p.id,
        "order_id": p.order_id,
        "channel_name": p.channel_name,
        "amount": p.amount,
        "tax_amount": p.tax_amount,
        "booking_fee": p.booking_fee,
        "currency": p.currency,
        "status": p.status,
        "expires_at": _iso(p.expires_at),
        "payment_date": _iso(p.payment_date),
        "payment_url": p.payment_url,
    }


def order_to_dict(o):
    return {
        "id": o.id,
        "order_code": o.order_code,
        "user_id": o.user_id,
        "total_amount": o.total_amount,
        "status": o.status,
        "created_at": _iso(o.created_at),
        "bookings": [booking_to_dict(b) for b in o.bookings],
        "payment": payment_to_dict(o.payment),
    }
