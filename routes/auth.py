from flask import Blueprint, request, jsonify, current_app, g

from models import db
from models.session import CHANNEL_BEARER, CHANNEL_COOKIE
from models.user import User
from security.csrf import issue_csrf_token
from security.password import hash_password, verify_password, validate_password
from security.rbac import CLIENT, OWNER
from security.session import cookie_name, end_session, end_user_sessions, open_session
from utils.audit import log_event
from utils.auth_context import login_required
from utils.seed import grant_role


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

# roles a user may pick at sign-up; ADMIN is granted from the CLI only
SIGNUP_ROLES = {"client": CLIENT, "owner": OWNER}

# the mobile app asks for a bearer token instead of cookies
MOBILE_CLIENTS = {"mobile", "app"}


def _is_valid_email(email: str) -> bool:
    local, _, domain = email.partition("@")
    return bool(local) and "." in domain and len(email) <= 255


def _profile_field(data: dict, snake: str, camel: str, limit: int):
    value = data.get(snake, data.get(camel))
    if value is None:
        return None
    if not isinstance(value, str) or len(value.strip()) > limit:
        raise ValueError(f"Invalid {snake}")
    return value.strip()


def _user_json(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "fullName": user.full_name,
        "phoneNumber": user.phone_number,
        "roles": sorted(user.role_names),
    }


@auth_bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    role_key = (data.get("role") or "client").strip().lower()

    if not _is_valid_email(email):
        return jsonify(error="Invalid email"), 400
    if role_key not in SIGNUP_ROLES:
        return jsonify(error="role must be 'client' or 'owner'"), 400
    errors = validate_password(password)
    if errors:
        return jsonify(error="Password does not meet policy", details=errors), 400
    try:
        full_name = _profile_field(data, "full_name", "fullName", 120)
        phone_number = _profile_field(data, "phone_number", "phoneNumber", 30)
    except ValueError as exc:
        return jsonify(error=str(exc)), 400

    if User.query.filter_by(email=email).first():
        log_event("REGISTER_FAIL_EMAIL_EXISTS", metadata={"email": email})
        return jsonify(error="Email already registered"), 409

    user = User(
        email=email,
        password_hash=hash_password(password, rounds=current_app.config.get("BCRYPT_ROUNDS", 12)),
        full_name=full_name or None,
        phone_number=phone_number or None,
    )
    grant_role(user, SIGNUP_ROLES[role_key])
    db.session.add(user)
    db.session.commit()

    log_event("REGISTER_SUCCESS", user_id=user.id, metadata={"role": role_key})
    return jsonify(message="Registered successfully", user=_user_json(user)), 201


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    channel = CHANNEL_BEARER if (data.get("client") or "").lower() in MOBILE_CLIENTS else CHANNEL_COOKIE

    user = User.query.filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        log_event("LOGIN_FAIL", user_id=user.id if user else None, metadata={"email": email})
        return jsonify(error="Invalid credentials"), 401

    # one live session per user and channel
    revoked = end_user_sessions(user.id, channel)
    raw_token = open_session(user.id, channel)
    log_event("LOGIN_SUCCESS", user_id=user.id, metadata={"channel": channel, "revoked_sessions": revoked})

    if channel == CHANNEL_BEARER:
        return jsonify(message="Login OK", user=_user_json(user), token=raw_token, tokenType="Bearer"), 200

    resp = jsonify(message="Login OK", user=_user_json(user))
    resp.set_cookie(
        cookie_name(),
        raw_token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60),
        path="/",
    )
    return issue_csrf_token(resp), 200


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(_user_json(g.user)), 200


@auth_bp.post("/profile")
@login_required
def update_profile():
    data = request.get_json(silent=True) or {}
    try:
        full_name = _profile_field(data, "full_name", "fullName", 120)
        phone_number = _profile_field(data, "phone_number", "phoneNumber", 30)
    except ValueError as exc:
        return jsonify(error=str(exc)), 400

    if full_name is not None:
        g.user.full_name = full_name or None
    if phone_number is not None:
        g.user.phone_number = phone_number or None
    db.session.commit()

    log_event("PROFILE_UPDATE", user_id=g.user.id)
    return jsonify(message="Profile updated", user=_user_json(g.user)), 200


@auth_bp.post("/logout")
@login_required
def logout():
    end_session(g.session)
    log_event("LOGOUT", user_id=g.user.id, metadata={"channel": g.auth_channel})

    resp = jsonify(message="Logged out")
    if g.auth_channel == CHANNEL_COOKIE:
        resp.delete_cookie(cookie_name(), path="/")
    return resp, 200
