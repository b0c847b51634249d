from models.db import db


class StationDay(db.Model):
    """
    One row per (cafe, station, date). Booking creation bumps `version`
    before reading existing bookings, which holds a write lock on the row
    until the transaction ends.
    """
    __tablename__ = "station_days"

    id = db.Column(db.Integer, primary_key=True)
    cafe_id = db.Column(db.Integer, db.ForeignKey("cafes.id"), nullable=False)
    station_key = db.Column(db.String(40), nullable=False)  # "pc" or "console:<type>"
    station_number = db.Column(db.Integer, nullable=False)
    booking_date = db.Column(db.Date, nullable=False)
    version = db.Column(db.Integer, nullable=False, default=0)

    __table_args__ = (
        db.UniqueConstraint(
            "cafe_id", "station_key", "station_number", "booking_date",
            name="uq_station_day",
        ),
    )
