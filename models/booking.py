from datetime import datetime
from sqlalchemy.orm import validates
from models.db import db
from models.status import BookingStatus, BookingSource

class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)
    booking_code = db.Column(db.String(20), unique=True, nullable=False, index=True)

    court_id = db.Column(db.Integer, db.ForeignKey("courts.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    # null for staff/manual and externally imported bookings
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)

    booking_date = db.Column(db.Date, nullable=False, index=True)
    duration = db.Column(db.Integer, nullable=False)  # hours
    total_price = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(20), nullable=False, default=BookingStatus.PENDING.value)
    source = db.Column(db.String(20), nullable=False, default=BookingSource.CUSTOMER.value)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    court = db.relationship("Court")
    user = db.relationship("User")
    order = db.relationship("Order", back_populates="bookings")
    time_slots = db.relationship(
        "TimeSlot",
        back_populates="booking",
        order_by="TimeSlot.open_hour",
        cascade="all, delete-orphan",
        lazy=True,
    )
    blocking = db.relationship("Blocking", back_populates="booking", uselist=False)

    @validates("order_id")
    def _order_id_is_immutable(self, key, value):
        if self.order_id is not None and value != self.order_id:
            raise ValueError("Booking order reference cannot change once set")
        if self.id is not None and self.order_id is None and value is not None:
            raise ValueError("Bookings created without an order cannot join one later")
        return value


class TimeSlot(db.Model):
    __tablename__ = "time_slots"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False, index=True)

    open_hour = db.Column(db.String(5), nullable=False)   # "HH:MM"
    close_hour = db.Column(db.String(5), nullable=False)  # "00:00" means end of day

    booking = db.relationship("Booking", back_populates="time_slots")

    __table_args__ = (
        db.UniqueConstraint("booking_id", "open_hour", name="uq_time_slot_per_booking"),
    )
