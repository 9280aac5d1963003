from datetime import datetime
from models.db import db
from models.status import OrderStatus

class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    order_code = db.Column(db.String(20), unique=True, nullable=False, index=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    total_amount = db.Column(db.Integer, nullable=False)  # smallest unit
    status = db.Column(db.String(20), nullable=False, default=OrderStatus.PENDING.value)

    # comma separated venue ids of the courts in this order
    venue_ids = db.Column(db.String(255), nullable=False, default="")

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = db.relationship("User")
    bookings = db.relationship("Booking", back_populates="order", order_by="Booking.id", lazy=True)
    payment = db.relationship("Payment", back_populates="order", uselist=False)
