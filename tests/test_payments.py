import hashlib
import hmac
import json

import pytest

from models import db
from models.booking import Booking
from tests.conftest import BOOKING_DATE

SECRET = b"test-webhook-secret"


def signed_callback(client, body, secret=SECRET):
    raw = json.dumps(body).encode("utf-8")
    signature = hmac.new(secret, raw, hashlib.sha256).hexdigest()
    return client.post(
        "/payments/callback",
        data=raw,
        content_type="application/json",
        headers={"X-Payment-Signature": signature},
    )


@pytest.fixture
def started(login, gamer, cafe):
    api = login(gamer)
    booking = api.post("/bookings", json={
        "cafeId": cafe.id, "stationType": "console", "consoleType": "ps5", "stationNumber": 1,
        "bookingDate": BOOKING_DATE, "startTime": "14:00", "endTime": "17:00",
    }).get_json()["booking"]
    resp = api.post("/payments/start", json={"bookingId": booking["id"]})
    assert resp.status_code == 201
    return api, resp.get_json()


def test_start_payment_marks_booking_pending(started):
    _, data = started
    assert data["payment"]["status"] == "INIT"
    assert data["payment"]["amount"] == 450.0
    assert data["payment"]["currency"] == "INR"
    assert data["booking"]["paymentStatus"] == "pending"


def test_paid_callback_confirms_booking(client, started):
    api, data = started
    payment_id = data["payment"]["id"]

    resp = signed_callback(client, {"payment_id": payment_id, "status": "PAID", "amount": "450.00", "provider_ref": "pi_1"})
    assert resp.status_code == 200
    assert resp.get_json()["booking"]["status"] == "confirmed"
    assert resp.get_json()["booking"]["paymentStatus"] == "paid"

    resp = signed_callback(client, {"payment_id": payment_id, "status": "PAID"})
    assert resp.get_json() == {"received": True, "duplicate": True}

    payment = api.get(f"/payments/{payment_id}").get_json()
    assert payment["status"] == "PAID"
    assert payment["providerRef"] == "pi_1"
    assert payment["paidAt"] is not None


def test_failed_payment_can_be_retried(client, started):
    api, data = started
    signed_callback(client, {"payment_id": data["payment"]["id"], "status": "FAILED"})

    db.session.expire_all()
    booking = db.session.get(Booking, data["booking"]["id"])
    assert booking.payment_status == "failed"
    assert booking.status == "pending"

    resp = api.post("/payments/start", json={"bookingId": booking.id})
    assert resp.status_code == 201
    assert resp.get_json()["booking"]["paymentStatus"] == "pending"


def test_callback_rejects_bad_signature_and_amount(client, started):
    _, data = started
    payment_id = data["payment"]["id"]

    resp = signed_callback(client, {"payment_id": payment_id, "status": "PAID"}, secret=b"wrong")
    assert resp.status_code == 400

    resp = signed_callback(client, {"payment_id": payment_id, "status": "PAID", "amount": "1.00"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Amount mismatch"

    assert signed_callback(client, {"payment_id": payment_id, "status": "MAYBE"}).status_code == 400
    assert signed_callback(client, {"payment_id": 999, "status": "PAID"}).status_code == 404


def test_refund_before_payment_is_rejected(client, started):
    _, data = started
    resp = signed_callback(client, {"payment_id": data["payment"]["id"], "status": "REFUNDED"})
    assert resp.status_code == 400


def test_cannot_pay_for_cancelled_or_foreign_booking(login, gamer, other_gamer, cafe):
    api = login(gamer)
    booking_id = api.post("/bookings", json={
        "cafeId": cafe.id, "stationNumber": 3, "bookingDate": BOOKING_DATE,
        "startTime": "10:00", "endTime": "11:00",
    }).get_json()["booking"]["id"]

    assert login(other_gamer).post("/payments/start", json={"bookingId": booking_id}).status_code == 404

    api.post(f"/bookings/{booking_id}/cancel")
    assert api.post("/payments/start", json={"bookingId": booking_id}).status_code == 400
    assert api.post("/payments/start", json={}).status_code == 400


def test_reused_provider_ref_is_conflict(client, started, cafe):
    api, data = started
    signed_callback(client, {"payment_id": data["payment"]["id"], "status": "PAID", "provider_ref": "pi_dup"})

    other = api.post("/bookings", json={
        "cafeId": cafe.id, "stationNumber": 2, "bookingDate": BOOKING_DATE,
        "startTime": "10:00", "endTime": "11:00",
    }).get_json()["booking"]
    payment = api.post("/payments/start", json={"bookingId": other["id"]}).get_json()["payment"]

    resp = signed_callback(client, {"payment_id": payment["id"], "status": "PAID", "provider_ref": "pi_dup"})
    assert resp.status_code == 409

    db.session.expire_all()
    booking = db.session.get(Booking, other["id"])
    assert booking.payment_status == "pending"
    assert booking.status == "pending"
    assert api.get(f"/payments/{payment['id']}").get_json()["status"] == "INIT"
