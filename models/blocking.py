from datetime import datetime
from models.db import db

class Blocking(db.Model):
    """
    Slot lock for a booking. Availability only ever consults active blockings,
    never Booking.status. Released by flipping is_blocking, never deleted.
    """

    __tablename__ = "blockings"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False, unique=True, index=True)

    is_blocking = db.Column(db.Boolean, default=True, nullable=False, index=True)
    description = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    released_at = db.Column(db.DateTime, nullable=True)

    booking = db.relationship("Booking", back_populates="blocking")
