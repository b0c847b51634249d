from datetime import datetime
from models.db import db

user_roles = db.Table(
    "user_roles",
    db.Column("user_id", db.Integer, db.ForeignKey("users.id"), primary_key=True),
    db.Column("role_id", db.Integer, db.ForeignKey("roles.id"), primary_key=True),
)


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    # shown to cafe owners on their booking lists
    full_name = db.Column(db.String(120), nullable=True)
    phone_number = db.Column(db.String(30), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    roles = db.relationship("Role", secondary=user_roles, back_populates="users", lazy="selectin")

    @property
    def role_names(self) -> frozenset:
        return frozenset(r.name for r in self.roles)

    @property
    def is_admin(self) -> bool:
        return "ADMIN" in self.role_names

    def manages(self, cafe) -> bool:
        """Owner of the cafe, or an admin."""
        return self.is_admin or (cafe is not None and cafe.owner_user_id == self.id)

    def __repr__(self):
        return f"<User {self.id} {self.email}>"


class Role(db.Model):
    __tablename__ = "roles"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(20), unique=True, nullable=False)

    users = db.relationship("User", secondary=user_roles, back_populates="roles")
