from datetime import date

from flask import Blueprint, request, jsonify, g

from models import db
from models.booking import ACTIVE_STATUSES, BOOKING_STATUSES, Booking
from models.cafe import Cafe
from scheduling import service
from scheduling.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from scheduling.windows import parse_date
from security.rbac import require_roles, OWNER
from utils.audit import log_event
from utils.auth_context import login_required
from utils.serializers import booking_json

bookings_bp = Blueprint("bookings", __name__, url_prefix="/bookings")

SLOT_FIELDS = (
    ("cafeId", "cafe_id"),
    ("stationType", "station_type"),
    ("consoleType", "console_type"),
    ("stationNumber", "station_number"),
    ("bookingDate", "booking_date"),
    ("startTime", "start_time"),
    ("endTime", "end_time"),
)


def _slot_args(data) -> dict:
    # Accept both the mobile client's camelCase and snake_case keys
    out = {}
    for camel, snake in SLOT_FIELDS:
        value = data.get(camel)
        out[snake] = value if value is not None else data.get(snake)
    if not out["station_type"]:
        out["station_type"] = "pc"
    return out


def _page_args(default_limit: int):
    page = max(request.args.get("page", default=1, type=int) or 1, 1)
    limit = request.args.get("limit", default=default_limit, type=int) or default_limit
    return page, max(1, min(limit, 100))


def _status_filter(q):
    status = (request.args.get("status") or "").strip().lower()
    if status:
        if status not in BOOKING_STATUSES:
            raise ValidationError(f"Invalid status. Valid: {', '.join(BOOKING_STATUSES)}")
        q = q.filter(Booking.status == status)
    return q


def _paginate(q, page: int, limit: int) -> tuple:
    total = q.order_by(None).count()
    rows = q.offset((page - 1) * limit).limit(limit).all()
    pages = (total + limit - 1) // limit
    return rows, {"total": total, "page": page, "pages": pages, "limit": limit}


# ---------- PUBLIC: availability ----------
@bookings_bp.post("/check-availability")
def check_availability():
    data = request.get_json(silent=True) or {}
    result = service.check_availability(**_slot_args(data))
    return jsonify(result.as_dict()), 200


@bookings_bp.get("/available-stations")
def available_stations():
    args = _slot_args(request.args)
    out = service.available_stations(
        args["cafe_id"],
        args["station_type"],
        args["console_type"],
        args["booking_date"] or request.args.get("date"),
        args["start_time"],
        args["end_time"],
    )
    return jsonify(out), 200


# ---------- CLIENTS: book / cancel (DOUBLE-BOOKING SAFE) ----------
@bookings_bp.post("")
@login_required
def create_booking():
    data = request.get_json(silent=True) or {}
    args = _slot_args(data)
    try:
        booking, result = service.create_booking(g.user.id, notes=data.get("notes"), **args)
    except ConflictError:
        log_event(
            "BOOKING_FAIL_CONFLICT",
            user_id=g.user.id,
            entity="cafe",
            entity_id=args["cafe_id"],
            metadata={k: args[k] for k in ("station_type", "console_type", "station_number", "booking_date", "start_time", "end_time")},
        )
        raise

    log_event("BOOKING_CREATE", user_id=g.user.id, entity="booking", entity_id=booking.id,
              metadata={"cafe_id": booking.cafe_id, "total_amount": booking.total_amount})
    return jsonify(
        message="Booking created",
        booking=booking_json(booking),
        billing=result.billing.as_dict(result.station),
    ), 201


@bookings_bp.get("/me")
@login_required
def my_bookings():
    page, limit = _page_args(10)
    q = _status_filter(Booking.query.filter(Booking.user_id == g.user.id))
    q = q.order_by(Booking.booking_date.desc(), Booking.start_time.desc())
    rows, pagination = _paginate(q, page, limit)

    today = date.today()
    upcoming = [b.id for b in rows if b.booking_date >= today and b.status in ACTIVE_STATUSES]
    out = [booking_json(b) for b in rows]
    return jsonify(bookings=out, upcomingIds=upcoming, pagination=pagination), 200


@bookings_bp.get("/<int:booking_id>")
@login_required
def get_booking(booking_id: int):
    booking = service.get_booking_for(g.user, booking_id)
    return jsonify(booking_json(booking)), 200


@bookings_bp.post("/<int:booking_id>/cancel")
@login_required
def cancel_booking(booking_id: int):
    data = request.get_json(silent=True) or {}
    reason = (data.get("reason") or "").strip() or None

    booking, changed = service.cancel_booking(g.user, booking_id, reason)
    if changed:
        log_event("BOOKING_CANCEL", user_id=g.user.id, entity="booking", entity_id=booking.id, metadata={"reason": reason})
    return jsonify(
        message="Booking cancelled" if changed else "Booking already cancelled",
        booking=booking_json(booking),
    ), 200


# ---------- OWNERS: cafe bookings ----------
@bookings_bp.get("/cafe/<int:cafe_id>")
@require_roles(OWNER)
def cafe_bookings(cafe_id: int):
    cafe = db.session.get(Cafe, cafe_id)
    if not cafe:
        raise NotFoundError("Cafe not found")
    if not g.user.manages(cafe):
        raise ForbiddenError("Not authorized to view these bookings")

    page, limit = _page_args(20)
    q = _status_filter(Booking.query.filter(Booking.cafe_id == cafe.id))
    date_str = request.args.get("date")
    if date_str:
        q = q.filter(Booking.booking_date == parse_date(date_str))
    q = q.order_by(Booking.booking_date.asc(), Booking.start_time.asc())
    rows, pagination = _paginate(q, page, limit)
    return jsonify(bookings=[booking_json(b) for b in rows], pagination=pagination), 200


@bookings_bp.post("/<int:booking_id>/status")
@require_roles(OWNER)
def update_booking_status(booking_id: int):
    data = request.get_json(silent=True) or {}
    new_status = (data.get("status") or "").strip().lower()
    reason = (data.get("reason") or "").strip() or None

    booking = service.update_booking_status(g.user, booking_id, new_status, reason)
    log_event("BOOKING_STATUS_UPDATE", user_id=g.user.id, entity="booking", entity_id=booking.id, metadata={"status": new_status})
    return jsonify(message=f"Booking status is {booking.status}", booking=booking_json(booking)), 200
