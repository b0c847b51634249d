"""
Store-backed booking operations.

The decisions themselves live in `scheduling.availability`; this module loads
the inputs for them from the database and, for booking creation, runs the
read-decide-insert sequence inside one transaction that holds the
station-day lock row.
"""

import logging
from datetime import datetime

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, OperationalError

from models import db
from models.booking import ACTIVE_STATUSES, BOOKING_STATUSES, PAYMENT_STATUSES, Booking
from models.cafe import Cafe
from models.station_day import StationDay
from scheduling.availability import AvailabilityResult, evaluate, free_station_numbers
from scheduling.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from scheduling.rates import CafeRateConfig, compute_billing
from scheduling.stations import ConsoleStation, StationRef, parse_station, station_kind
from scheduling.windows import parse_date, parse_window

logger = logging.getLogger(__name__)

# owner/admin status moves; cancellation goes through cancel_booking
STATUS_TRANSITIONS = {
    "pending": {"confirmed", "completed"},
    "confirmed": {"completed"},
    "cancelled": set(),
    "completed": set(),
}

PAYMENT_TRANSITIONS = {
    "unpaid": {"pending"},
    "pending": {"paid", "failed"},
    "failed": {"pending"},
    "paid": {"refunded"},
    "refunded": set(),
}


def load_cafe(cafe_id) -> Cafe:
    try:
        cafe_id = int(cafe_id)
    except (TypeError, ValueError):
        raise ValidationError("cafeId is required")
    cafe = db.session.get(Cafe, cafe_id)
    if not cafe or not cafe.is_active:
        raise NotFoundError("Cafe not found")
    return cafe


def _active_bookings(cafe_id: int, station: StationRef, booking_date, number=None):
    q = Booking.query.filter(
        Booking.cafe_id == cafe_id,
        Booking.station_type == station.station_type,
        Booking.booking_date == booking_date,
        Booking.status.in_(ACTIVE_STATUSES),
    )
    if isinstance(station, ConsoleStation):
        q = q.filter(Booking.console_type == station.console_type)
    if number is not None:
        q = q.filter(Booking.station_number == number)
    return q.all()


def check_availability(cafe_id, station_type, console_type, station_number,
                       booking_date, start_time, end_time) -> AvailabilityResult:
    station = parse_station(station_type, console_type, station_number)
    window = parse_window(booking_date, start_time, end_time)

    cafe = load_cafe(cafe_id)
    rates = CafeRateConfig.from_cafe(cafe)
    existing = _active_bookings(cafe.id, station, window.booking_date, station.number)
    return evaluate(station, window, rates, existing)


def _station_day_key(cafe_id: int, station: StationRef, booking_date) -> dict:
    return {
        "cafe_id": cafe_id,
        "station_key": station.key,
        "station_number": station.number,
        "booking_date": booking_date,
    }


def _ensure_station_day(key: dict) -> None:
    if StationDay.query.filter_by(**key).first() is not None:
        return
    db.session.add(StationDay(version=0, **key))
    try:
        db.session.commit()
    except IntegrityError:
        # created concurrently by another request
        db.session.rollback()


def _lock_station_day(key: dict) -> None:
    stmt = (
        update(StationDay)
        .where(
            StationDay.cafe_id == key["cafe_id"],
            StationDay.station_key == key["station_key"],
            StationDay.station_number == key["station_number"],
            StationDay.booking_date == key["booking_date"],
        )
        .values(version=StationDay.version + 1)
        .execution_options(synchronize_session=False)
    )
    if db.session.execute(stmt).rowcount != 1:
        # bookings are only inserted while holding the lock row
        db.session.rollback()
        raise StorageError("Booking store is busy, please retry")


def _create_booking_once(user_id: int, cafe_id, station: StationRef, window, notes):
    cafe = load_cafe(cafe_id)
    rates = CafeRateConfig.from_cafe(cafe)
    rates.check_capacity(station)
    rates.check_within_hours(window)

    key = _station_day_key(rates.cafe_id, station, window.booking_date)
    _ensure_station_day(key)

    # First write of the transaction: everything below runs under the row lock
    _lock_station_day(key)
    existing = _active_bookings(rates.cafe_id, station, window.booking_date)
    result = evaluate(
        station, window, rates,
        [b for b in existing if b.station_number == station.number],
    )
    if not result.available:
        free = free_station_numbers(window, result.max_stations, existing)
        db.session.rollback()
        raise ConflictError(
            f"This {station.label} #{station.number} is already booked for the selected time slot",
            availableStations=free,
        )

    booking = Booking(
        cafe_id=rates.cafe_id,
        user_id=user_id,
        station_type=station.station_type,
        console_type=station.console_type,
        station_number=station.number,
        booking_date=window.booking_date,
        start_time=window.start,
        end_time=window.end,
        duration_hours=result.billing.duration_hours,
        hourly_rate=result.billing.hourly_rate,
        total_amount=result.billing.total_amount,
        status="pending",
        payment_status="unpaid",
        notes=notes,
    )
    db.session.add(booking)
    db.session.commit()
    return booking, result


def create_booking(user_id: int, cafe_id, station_type, console_type, station_number,
                   booking_date, start_time, end_time, notes=None):
    """
    Re-run the availability check and insert the booking atomically.

    Returns (booking, AvailabilityResult). Raises ConflictError when the
    station is taken for any part of the window. Transient database errors
    roll back and the whole check-and-insert is retried from scratch.
    """
    station = parse_station(station_type, console_type, station_number)
    window = parse_window(booking_date, start_time, end_time)
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("notes must be a string")

    retries = max(1, int(current_app.config.get("BOOKING_TX_RETRIES", 3)))
    for attempt in range(1, retries + 1):
        try:
            return _create_booking_once(user_id, cafe_id, station, window, notes)
        except OperationalError as exc:
            db.session.rollback()
            logger.warning(
                "booking transaction failed (attempt %d/%d) cafe=%s station=%s date=%s: %s",
                attempt, retries, cafe_id, station.key, window.booking_date, exc.orig,
            )
    raise StorageError("Booking store is busy, please retry")


def get_booking_for(actor, booking_id: int) -> Booking:
    booking = db.session.get(Booking, booking_id)
    if not booking:
        raise NotFoundError("Booking not found")
    if booking.user_id != actor.id and not actor.manages(db.session.get(Cafe, booking.cafe_id)):
        raise ForbiddenError("Not authorized to view this booking")
    return booking


def cancel_booking(actor, booking_id: int, reason=None):
    """Returns (booking, changed). Cancelling twice is a successful no-op."""
    booking = db.session.get(Booking, booking_id)
    if not booking:
        raise NotFoundError("Booking not found")

    cafe = db.session.get(Cafe, booking.cafe_id)
    if booking.user_id != actor.id and not actor.manages(cafe):
        raise ForbiddenError("Not authorized to cancel this booking")

    if booking.status == "cancelled":
        return booking, False
    if booking.status == "completed":
        raise ValidationError("Cannot cancel a completed booking")

    booking.status = "cancelled"
    booking.cancelled_at = datetime.utcnow()
    booking.cancel_reason = (reason or "")[:120] or None
    booking.cancelled_by = actor.id
    db.session.commit()

    logger.info("booking %s cancelled by user %s", booking.id, actor.id)
    return booking, True


def update_booking_status(actor, booking_id: int, new_status, reason=None):
    if new_status not in BOOKING_STATUSES:
        raise ValidationError(f"Invalid status. Valid: {', '.join(BOOKING_STATUSES)}")

    booking = db.session.get(Booking, booking_id)
    if not booking:
        raise NotFoundError("Booking not found")
    if not actor.manages(db.session.get(Cafe, booking.cafe_id)):
        raise ForbiddenError("Not authorized to update this booking")

    if new_status == "cancelled":
        booking, _ = cancel_booking(actor, booking_id, reason)
        return booking
    if new_status == booking.status:
        return booking
    if new_status not in STATUS_TRANSITIONS[booking.status]:
        raise ValidationError(f"Cannot move a {booking.status} booking to {new_status}")

    booking.status = new_status
    db.session.commit()
    return booking


def transition_payment_status(booking: Booking, new_status) -> Booking:
    """
    Apply a payment-status change coming from the payments collaborator.
    A successful payment confirms a pending booking. The caller commits.
    """
    if new_status not in PAYMENT_STATUSES:
        raise ValidationError(f"Invalid payment status. Valid: {', '.join(PAYMENT_STATUSES)}")
    if new_status == booking.payment_status:
        return booking
    if new_status not in PAYMENT_TRANSITIONS[booking.payment_status]:
        raise ValidationError(f"Cannot move payment from {booking.payment_status} to {new_status}")

    booking.payment_status = new_status
    if new_status == "paid" and booking.status == "pending":
        booking.status = "confirmed"
    return booking


def available_stations(cafe_id, station_type, console_type, booking_date, start_time, end_time) -> dict:
    kind = station_kind(station_type, console_type)
    window = parse_window(booking_date, start_time, end_time)

    cafe = load_cafe(cafe_id)
    rates = CafeRateConfig.from_cafe(cafe)
    max_stations = rates.check_capacity(kind)
    rates.check_within_hours(window)
    billing = compute_billing(window, kind, rates)

    existing = _active_bookings(cafe.id, kind, window.booking_date)
    free = free_station_numbers(window, max_stations, existing)
    return {
        "availableStations": free,
        "totalStations": max_stations,
        "availableCount": len(free),
        "firstAvailable": free[0] if free else None,
        "pricing": {
            "durationHours": float(billing.duration_hours),
            "hourlyRate": float(billing.hourly_rate),
            "estimatedTotal": float(billing.total_amount),
        },
    }


def _station_grid(total: int, bookings) -> list:
    grid = []
    for number in range(1, total + 1):
        slots = sorted(
            (b for b in bookings if b.station_number == number),
            key=lambda b: b.start_time,
        )
        grid.append({
            "station": number,
            "bookedSlots": [
                {"startTime": b.start_time.strftime("%H:%M"), "endTime": b.end_time.strftime("%H:%M")}
                for b in slots
            ],
        })
    return grid


def day_schedule(cafe_id, booking_date) -> dict:
    day = parse_date(booking_date)
    cafe = load_cafe(cafe_id)
    rates = CafeRateConfig.from_cafe(cafe)

    bookings = Booking.query.filter(
        Booking.cafe_id == cafe.id,
        Booking.booking_date == day,
        Booking.status.in_(ACTIVE_STATUSES),
    ).all()

    pc_rate = rates.hourly_rate_for(parse_station("pc", None, 1))
    consoles = {}
    for console_type, cfg in sorted(rates.consoles.items()):
        if cfg.quantity <= 0:
            continue
        consoles[console_type] = {
            "totalUnits": cfg.quantity,
            "hourlyRate": float(rates.hourly_rate_for(parse_station("console", console_type, 1))),
            "availability": _station_grid(
                cfg.quantity,
                [b for b in bookings if b.station_type == "console" and b.console_type == console_type],
            ),
        }

    return {
        "cafeId": cafe.id,
        "date": day.isoformat(),
        "openingTime": rates.opening_time.strftime("%H:%M"),
        "closingTime": rates.closing_time.strftime("%H:%M"),
        "pc": {
            "totalStations": rates.total_pc_stations,
            "hourlyRate": float(pc_rate),
            "availability": _station_grid(
                rates.total_pc_stations,
                [b for b in bookings if b.station_type == "pc"],
            ),
        },
        "consoles": consoles,
    }
