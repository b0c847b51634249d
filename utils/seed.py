import logging

from models import db
from models.user import Role, User
from security.rbac import ROLES

logger = logging.getLogger(__name__)


def ensure_roles() -> list:
    """Create any missing role rows; returns the names that were added."""
    existing = {name for (name,) in db.session.query(Role.name)}
    added = [name for name in ROLES if name not in existing]
    for name in added:
        db.session.add(Role(name=name))
    if added:
        db.session.commit()
        logger.info("created roles: %s", ", ".join(added))
    return added


def grant_role(user: User, role_name: str) -> bool:
    """Attach a role to the user (role row is created on demand). Caller commits."""
    role = Role.query.filter_by(name=role_name).first()
    if role is None:
        role = Role(name=role_name)
        db.session.add(role)
    if role in user.roles:
        return False
    user.roles.append(role)
    return True
