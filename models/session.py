from datetime import datetime
from models.db import db

CHANNEL_COOKIE = "cookie"
CHANNEL_BEARER = "bearer"


class Session(db.Model):
    __tablename__ = "sessions"
    __table_args__ = (
        db.Index("ix_sessions_user_channel", "user_id", "channel", "revoked"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    token_hash = db.Column(db.String(64), unique=True, nullable=False)
    # cookie (web) or bearer (mobile app); a token is only accepted on its own channel
    channel = db.Column(db.String(10), nullable=False, default=CHANNEL_COOKIE)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    last_seen_at = db.Column(db.DateTime, nullable=True)
    expires_at = db.Column(db.DateTime, nullable=False)
    revoked = db.Column(db.Boolean, default=False, nullable=False)
