import hashlib
import hmac
from datetime import datetime
from decimal import InvalidOperation

from flask import Blueprint, request, jsonify, g, current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking
from models.payment import Payment
from scheduling.errors import NotFoundError, ValidationError
from scheduling.rates import to_money
from scheduling.service import transition_payment_status
from utils.audit import log_event
from utils.auth_context import login_required
from utils.serializers import booking_json, payment_json

payments_bp = Blueprint("payments", __name__, url_prefix="/payments")

SIGNATURE_HEADER = "X-Payment-Signature"

# gateway outcome -> booking payment_status
CALLBACK_STATUSES = {
    "PAID": "paid",
    "FAILED": "failed",
    "REFUNDED": "refunded",
}


def _valid_signature(payload: bytes, signature: str, secret: str) -> bool:
    expected = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature or "")


@payments_bp.post("/start")
@login_required
def start_payment():
    data = request.get_json(silent=True) or {}
    try:
        booking_id = int(data.get("booking_id", data.get("bookingId")))
    except (TypeError, ValueError):
        return jsonify(error="booking_id required"), 400

    booking = db.session.get(Booking, booking_id)
    if not booking or booking.user_id != g.user.id:
        raise NotFoundError("Booking not found")
    if not booking.is_active:
        raise ValidationError(f"Cannot pay for a {booking.status} booking")

    transition_payment_status(booking, "pending")
    payment = Payment(
        booking_id=booking.id,
        provider=(data.get("provider") or "GATEWAY").strip().upper()[:20],
        amount=booking.total_amount,
        currency=current_app.config.get("DEFAULT_CURRENCY", "INR"),
        status="INIT",
    )
    db.session.add(payment)
    db.session.commit()

    log_event("PAYMENT_INIT", user_id=g.user.id, entity="payment", entity_id=payment.id, metadata={"booking_id": booking.id})
    return jsonify(payment=payment_json(payment), booking=booking_json(booking)), 201


@payments_bp.post("/callback")
def payment_callback():
    secret = current_app.config.get("PAYMENT_WEBHOOK_SECRET")
    if not secret:
        return jsonify(error="Payment callback secret not configured"), 500

    payload = request.get_data()
    if not _valid_signature(payload, request.headers.get(SIGNATURE_HEADER), secret):
        return jsonify(error="Invalid payment signature"), 400

    data = request.get_json(silent=True) or {}
    outcome = (data.get("status") or "").strip().upper()
    if outcome not in CALLBACK_STATUSES:
        return jsonify(error=f"status must be one of {', '.join(CALLBACK_STATUSES)}"), 400

    try:
        payment_id = int(data.get("payment_id"))
    except (TypeError, ValueError):
        return jsonify(error="payment_id required"), 400

    payment = db.session.get(Payment, payment_id)
    if not payment:
        return jsonify(error="Payment not found"), 404

    if data.get("amount") is not None:
        try:
            mismatch = to_money(data["amount"]) != to_money(payment.amount)
        except (InvalidOperation, TypeError, ValueError):
            return jsonify(error="Invalid amount"), 400
    else:
        mismatch = False
    if mismatch:
        log_event("PAYMENT_AMOUNT_MISMATCH", entity="payment", entity_id=payment.id,
                  metadata={"expected": payment.amount, "received": data["amount"]})
        return jsonify(error="Amount mismatch"), 400

    if payment.status == outcome:
        return jsonify(received=True, duplicate=True), 200

    booking = db.session.get(Booking, payment.booking_id)
    transition_payment_status(booking, CALLBACK_STATUSES[outcome])

    payment.status = outcome
    payment.provider_ref = data.get("provider_ref") or payment.provider_ref
    if outcome == "PAID":
        payment.paid_at = datetime.utcnow()
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="provider_ref already recorded for another payment"), 409

    log_event(f"PAYMENT_{outcome}", entity="payment", entity_id=payment.id,
              metadata={"booking_id": booking.id, "provider_ref": payment.provider_ref})
    return jsonify(received=True, booking=booking_json(booking)), 200


@payments_bp.get("/<int:payment_id>")
@login_required
def get_payment(payment_id: int):
    payment = db.session.get(Payment, payment_id)
    booking = db.session.get(Booking, payment.booking_id) if payment else None
    if not payment or booking.user_id != g.user.id:
        return jsonify(error="Payment not found"), 404
    return jsonify(payment_json(payment)), 200
