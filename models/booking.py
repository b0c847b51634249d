from datetime import datetime
from models.db import db

ACTIVE_STATUSES = ("pending", "confirmed")
BOOKING_STATUSES = ("pending", "confirmed", "cancelled", "completed")
PAYMENT_STATUSES = ("unpaid", "pending", "paid", "failed", "refunded")


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    cafe_id = db.Column(db.Integer, db.ForeignKey("cafes.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    station_type = db.Column(db.String(10), nullable=False, default="pc")  # pc, console
    console_type = db.Column(db.String(20), nullable=True)  # only for console bookings
    station_number = db.Column(db.Integer, nullable=False)

    booking_date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)

    # Frozen at creation time, never recomputed
    duration_hours = db.Column(db.Numeric(5, 2), nullable=False)
    hourly_rate = db.Column(db.Numeric(10, 2), nullable=False)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)

    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    payment_status = db.Column(db.String(20), nullable=False, default="unpaid")
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    cancel_reason = db.Column(db.String(120), nullable=True)
    cancelled_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    __table_args__ = (
        db.CheckConstraint("station_number >= 1", name="ck_booking_station_number_positive"),
        db.CheckConstraint("start_time < end_time", name="ck_booking_time_order"),
        db.Index(
            "ix_booking_conflict_check",
            "cafe_id", "booking_date", "station_type", "console_type", "station_number",
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES
