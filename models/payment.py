from datetime import datetime
from models.db import db
from models.status import PaymentStatus

class Payment(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, unique=True, index=True)

    channel_name = db.Column(db.String(40), nullable=False)
    amount = db.Column(db.Integer, nullable=False)   # court rental, smallest unit
    tax_amount = db.Column(db.Integer, nullable=False, default=0)
    booking_fee = db.Column(db.Integer, nullable=False, default=0)
    currency = db.Column(db.String(10), nullable=False, default="IDR")

    status = db.Column(db.String(20), nullable=False, default=PaymentStatus.UNPAID.value)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)
    payment_date = db.Column(db.DateTime, nullable=True)  # set only on PAID

    # gateway references (checkout session / invoice)
    gateway_reference = db.Column(db.String(255), nullable=True, unique=True, index=True)
    payment_url = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    order = db.relationship("Order", back_populates="payment")
