from decimal import Decimal, InvalidOperation

from flask import Blueprint, request, jsonify, g

from models import db
from models.cafe import Cafe
from scheduling import service
from scheduling.errors import ForbiddenError, NotFoundError, ValidationError
from scheduling.rates import to_money
from scheduling.stations import CONSOLE_TYPES
from scheduling.windows import parse_time
from security.rbac import require_roles, OWNER
from utils.audit import log_event
from utils.auth_context import login_required
from utils.geo import haversine_km
from utils.serializers import cafe_json

cafes_bp = Blueprint("cafes", __name__, url_prefix="/cafes")

def _text(limit):
    def parse(value):
        if value is None:
            return None
        if not isinstance(value, str) or len(value.strip()) > limit:
            raise ValidationError(f"must be text of at most {limit} characters")
        return value.strip() or None
    return parse


def _rate(value):
    if value is None:
        return None
    try:
        amount = to_money(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError("rates must be numbers")
    if amount < 0:
        raise ValidationError("rates cannot be negative")
    return amount


def _count(value):
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValidationError("station counts must be non-negative integers")
    try:
        n = int(value)
    except ValueError:
        raise ValidationError("station counts must be non-negative integers")
    if n < 0:
        raise ValidationError("station counts must be non-negative integers")
    return n


def _coord(limit):
    def parse(value):
        if value is None:
            return None
        try:
            v = float(value)
        except (TypeError, ValueError):
            raise ValidationError("coordinates must be numbers")
        if not -limit <= v <= limit:
            raise ValidationError(f"coordinate out of range (+/-{limit})")
        return v
    return parse


def _str_list(value):
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError("expected a list of strings")
    return [v.strip() for v in value if v.strip()]


def _consoles(value):
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError("consoles must be an object keyed by console type")
    out = {}
    for console_type, cfg in value.items():
        if console_type not in CONSOLE_TYPES:
            raise ValidationError(f"Invalid console type. Valid types: {', '.join(CONSOLE_TYPES)}")
        cfg = cfg or {}
        if not isinstance(cfg, dict):
            raise ValidationError(f"consoles.{console_type} must be an object")
        rate = _rate(cfg.get("hourly_rate", cfg.get("hourlyRate"))) or Decimal("0")
        out[console_type] = {
            "quantity": _count(cfg.get("quantity") or 0),
            "hourly_rate": str(rate),
            "games": _str_list(cfg.get("games")),
        }
    return out


# request key -> (model attribute, parser)
CAFE_FIELDS = {
    "name": ("name", _text(200)),
    "description": ("description", _text(5000)),
    "address": ("address", _text(500)),
    "city": ("city", _text(100)),
    "latitude": ("latitude", _coord(90)),
    "longitude": ("longitude", _coord(180)),
    "hourlyRate": ("hourly_rate", _rate),
    "pcHourlyRate": ("pc_hourly_rate", _rate),
    "totalPcStations": ("total_pc_stations", _count),
    "pcGames": ("pc_games", _str_list),
    "consoles": ("consoles", _consoles),
    "openingTime": ("opening_time", lambda v: parse_time(v, "openingTime")),
    "closingTime": ("closing_time", lambda v: parse_time(v, "closingTime")),
    "amenities": ("amenities", _str_list),
}

SNAKE_ALIASES = {attr: key for key, (attr, _) in CAFE_FIELDS.items()}


def _apply_fields(cafe: Cafe, data: dict) -> None:
    for key, value in data.items():
        key = SNAKE_ALIASES.get(key, key)
        if key not in CAFE_FIELDS:
            continue
        attr, parse = CAFE_FIELDS[key]
        try:
            setattr(cafe, attr, parse(value))
        except ValidationError as exc:
            raise ValidationError(f"{key}: {exc.message}")

    for required in ("name", "address", "city"):
        if not getattr(cafe, required):
            raise ValidationError(f"{required} is required")
    if cafe.hourly_rate is None:
        raise ValidationError("hourlyRate is required")
    if cafe.opening_time and cafe.closing_time and cafe.opening_time >= cafe.closing_time:
        raise ValidationError("closingTime must be after openingTime")


def _managed_cafe(cafe_id: int) -> Cafe:
    cafe = db.session.get(Cafe, cafe_id)
    if not cafe:
        raise NotFoundError("Cafe not found")
    if not g.user.manages(cafe):
        raise ForbiddenError("Not authorized to manage this cafe")
    return cafe


# ---------- OWNERS: manage listings ----------
@cafes_bp.post("")
@require_roles(OWNER)
def create_cafe():
    data = request.get_json(silent=True) or {}
    cafe = Cafe(owner_user_id=g.user.id, pc_games=[], consoles={}, amenities=[])
    _apply_fields(cafe, data)

    db.session.add(cafe)
    db.session.commit()

    log_event("CAFE_CREATE", user_id=g.user.id, entity="cafe", entity_id=cafe.id)
    return jsonify(cafe_json(cafe)), 201


@cafes_bp.patch("/<int:cafe_id>")
@require_roles(OWNER)
def update_cafe(cafe_id: int):
    data = request.get_json(silent=True) or {}
    cafe = _managed_cafe(cafe_id)
    _apply_fields(cafe, data)
    db.session.commit()

    log_event("CAFE_UPDATE", user_id=g.user.id, entity="cafe", entity_id=cafe.id, metadata={"fields": sorted(data)})
    return jsonify(cafe_json(cafe)), 200


@cafes_bp.post("/<int:cafe_id>/deactivate")
@require_roles(OWNER)
def deactivate_cafe(cafe_id: int):
    cafe = _managed_cafe(cafe_id)
    cafe.is_active = False
    db.session.commit()

    log_event("CAFE_DEACTIVATE", user_id=g.user.id, entity="cafe", entity_id=cafe.id)
    return jsonify(message="Cafe deactivated"), 200


@cafes_bp.get("/me")
@require_roles(OWNER)
def my_cafes():
    cafes = (
        Cafe.query
        .filter_by(owner_user_id=g.user.id)
        .order_by(Cafe.created_at.desc())
        .all()
    )
    return jsonify([cafe_json(c) for c in cafes]), 200


# ---------- PUBLIC: discovery ----------
@cafes_bp.get("")
def list_cafes():
    city = (request.args.get("city") or "").strip()
    name = (request.args.get("name") or "").strip()
    lat = request.args.get("lat", type=float)
    lng = request.args.get("lng", type=float)
    radius_km = request.args.get("radius_km", default=10.0, type=float)

    q = Cafe.query.filter(Cafe.is_active.is_(True))
    if city:
        q = q.filter(Cafe.city.ilike(city))
    if name:
        q = q.filter(Cafe.name.ilike(f"%{name}%"))
    rows = q.order_by(Cafe.created_at.desc()).limit(200).all()

    if lat is None or lng is None:
        return jsonify([cafe_json(c) for c in rows]), 200

    nearby = []
    for c in rows:
        if c.latitude is None or c.longitude is None:
            continue
        distance = haversine_km(lat, lng, c.latitude, c.longitude)
        if distance <= radius_km:
            nearby.append((distance, c))
    nearby.sort(key=lambda pair: pair[0])
    return jsonify([cafe_json(c, distance_km=d) for d, c in nearby]), 200


@cafes_bp.get("/<int:cafe_id>")
def get_cafe(cafe_id: int):
    cafe = db.session.get(Cafe, cafe_id)
    if not cafe or not cafe.is_active:
        return jsonify(error="Cafe not found"), 404
    return jsonify(cafe_json(cafe)), 200


@cafes_bp.get("/<int:cafe_id>/schedule")
@login_required
def cafe_schedule(cafe_id: int):
    date_str = request.args.get("date")
    if not date_str:
        return jsonify(error="date is required (YYYY-MM-DD)"), 400
    return jsonify(service.day_schedule(cafe_id, date_str)), 200
