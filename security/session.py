"""
Server-side login sessions.

Browsers carry the token in an httponly cookie; the mobile app sends it as
`Authorization: Bearer <token>`. Each session is bound to the channel it was
issued for, and only the sha256 of the token is stored.
"""

import hashlib
import secrets
from datetime import datetime, timedelta

from flask import request, current_app

from models import db
from models.session import Session, CHANNEL_BEARER, CHANNEL_COOKIE

BEARER_PREFIX = "Bearer "


def _digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def cookie_name() -> str:
    return current_app.config.get("AUTH_COOKIE_NAME", "cafeslot_session")


def token_from_request():
    """Returns (raw_token, channel); raw_token is None when nothing was sent."""
    header = request.headers.get("Authorization") or ""
    if header.startswith(BEARER_PREFIX):
        return header[len(BEARER_PREFIX):].strip() or None, CHANNEL_BEARER
    return request.cookies.get(cookie_name()), CHANNEL_COOKIE


def open_session(user_id: int, channel: str = CHANNEL_COOKIE) -> str:
    raw_token = secrets.token_urlsafe(32)
    lifetime = timedelta(seconds=current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60))
    db.session.add(Session(
        user_id=user_id,
        token_hash=_digest(raw_token),
        channel=channel,
        expires_at=datetime.utcnow() + lifetime,
    ))
    db.session.commit()
    return raw_token


def _expired(sess: Session, now: datetime) -> bool:
    idle = timedelta(seconds=current_app.config.get("IDLE_TIMEOUT_SECONDS", 60 * 60))
    return sess.expires_at <= now or (sess.last_seen_at or sess.created_at) + idle <= now


def resolve_session():
    raw_token, channel = token_from_request()
    if not raw_token:
        return None

    sess = Session.query.filter_by(token_hash=_digest(raw_token), revoked=False).first()
    now = datetime.utcnow()
    if sess is None or sess.channel != channel or _expired(sess, now):
        return None

    sess.last_seen_at = now
    db.session.commit()
    return sess


def end_session(sess: Session) -> None:
    sess.revoked = True
    db.session.commit()


def end_user_sessions(user_id: int, channel: str) -> int:
    """Revoke the user's live sessions on one channel; returns how many."""
    count = (
        Session.query
        .filter_by(user_id=user_id, channel=channel, revoked=False)
        .update({Session.revoked: True}, synchronize_session=False)
    )
    db.session.commit()
    return count
