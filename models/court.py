from datetime import datetime
from models.db import db
from models.archivable import ArchivableMixin

class Court(ArchivableMixin, db.Model):
    __tablename__ = "courts"

    id = db.Column(db.Integer, primary_key=True)
    venue_id = db.Column(db.Integer, db.ForeignKey("venues.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)

    price = db.Column(db.Integer, nullable=False, default=0)  # base hourly price, smallest unit
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    # bumped by every writer that must serialise on this court
    lock_version = db.Column(db.Integer, nullable=False, default=0, server_default="0")

    venue = db.relationship("Venue", back_populates="courts")
    dynamic_prices = db.relationship("CourtDynamicPrice", back_populates="court", lazy=True)

    @property
    def is_bookable(self) -> bool:
        return self.is_active and not self.is_archived and not (self.venue and self.venue.is_archived)


class CourtDynamicPrice(ArchivableMixin, db.Model):
    __tablename__ = "court_dynamic_prices"

    id = db.Column(db.Integer, primary_key=True)
    court_id = db.Column(db.Integer, db.ForeignKey("courts.id"), nullable=False, index=True)

    # either a specific date or a weekday name (MONDAY..SUNDAY)
    date = db.Column(db.Date, nullable=True)
    day_of_week = db.Column(db.String(10), nullable=True)

    start_hour = db.Column(db.String(5), nullable=False)  # "HH:MM"
    end_hour = db.Column(db.String(5), nullable=False)
    price = db.Column(db.Integer, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    court = db.relationship("Court", back_populates="dynamic_prices")
