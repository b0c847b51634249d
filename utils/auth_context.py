from flask import g

from models import db
from models.user import User
from security.rbac import require_roles
from security.session import resolve_session

login_required = require_roles()


def load_current_user():
    """Populate g.user, g.session and g.auth_channel for this request."""
    sess = resolve_session()
    g.session = sess
    g.auth_channel = sess.channel if sess else None
    g.user = db.session.get(User, sess.user_id) if sess else None
