from datetime import datetime, time
from models.db import db


class Cafe(db.Model):
    __tablename__ = "cafes"

    id = db.Column(db.Integer, primary_key=True)
    owner_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    address = db.Column(db.String(500), nullable=False)
    city = db.Column(db.String(100), nullable=False, index=True)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)

    # Generic rate, used when no PC/console specific rate is set
    hourly_rate = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    total_pc_stations = db.Column(db.Integer, nullable=False, default=0)
    pc_hourly_rate = db.Column(db.Numeric(10, 2), nullable=True)
    pc_games = db.Column(db.JSON, nullable=False, default=list)

    # {"ps5": {"quantity": 2, "hourly_rate": 150, "games": [...]}, ...}
    consoles = db.Column(db.JSON, nullable=False, default=dict)

    opening_time = db.Column(db.Time, nullable=False, default=time(9, 0))
    closing_time = db.Column(db.Time, nullable=False, default=time(23, 0))

    amenities = db.Column(db.JSON, nullable=False, default=list)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def total_consoles(self) -> int:
        return sum(int((c or {}).get("quantity") or 0) for c in (self.consoles or {}).values())
