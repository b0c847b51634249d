from decimal import Decimal


def _money(value):
    return float(value) if isinstance(value, Decimal) else value


def _hhmm(value):
    return value.strftime("%H:%M") if value else None


def _iso(value):
    return value.isoformat() if value else None


def booking_json(b) -> dict:
    return {
        "id": b.id,
        "cafeId": b.cafe_id,
        "userId": b.user_id,
        "stationType": b.station_type,
        "consoleType": b.console_type,
        "stationNumber": b.station_number,
        "bookingDate": _iso(b.booking_date),
        "startTime": _hhmm(b.start_time),
        "endTime": _hhmm(b.end_time),
        "durationHours": _money(b.duration_hours),
        "hourlyRate": _money(b.hourly_rate),
        "totalAmount": _money(b.total_amount),
        "status": b.status,
        "paymentStatus": b.payment_status,
        "notes": b.notes,
        "createdAt": _iso(b.created_at),
        "updatedAt": _iso(b.updated_at),
        "cancelledAt": _iso(b.cancelled_at),
        "cancelReason": b.cancel_reason,
    }


def cafe_json(c, distance_km=None) -> dict:
    out = {
        "id": c.id,
        "ownerId": c.owner_user_id,
        "name": c.name,
        "description": c.description,
        "address": c.address,
        "city": c.city,
        "latitude": c.latitude,
        "longitude": c.longitude,
        "hourlyRate": _money(c.hourly_rate),
        "pcHourlyRate": _money(c.pc_hourly_rate),
        "totalPcStations": c.total_pc_stations,
        "pcGames": c.pc_games or [],
        "consoles": c.consoles or {},
        "totalConsoles": c.total_consoles,
        "openingTime": _hhmm(c.opening_time),
        "closingTime": _hhmm(c.closing_time),
        "amenities": c.amenities or [],
        "isActive": c.is_active,
        "createdAt": _iso(c.created_at),
    }
    if distance_km is not None:
        out["distanceKm"] = round(distance_km, 2)
    return out


def payment_json(p) -> dict:
    return {
        "id": p.id,
        "bookingId": p.booking_id,
        "provider": p.provider,
        "amount": _money(p.amount),
        "currency": p.currency,
        "status": p.status,
        "providerRef": p.provider_ref,
        "createdAt": _iso(p.created_at),
        "paidAt": _iso(p.paid_at),
    }
