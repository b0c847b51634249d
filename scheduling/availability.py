"""Pure availability decisions over a snapshot of existing bookings."""

from dataclasses import dataclass
from typing import Iterable

from scheduling.rates import Billing, CafeRateConfig, compute_billing
from scheduling.stations import StationRef
from scheduling.windows import TimeWindow

ACTIVE_STATUSES = ("pending", "confirmed")


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    station: StationRef
    window: TimeWindow
    max_stations: int
    billing: Billing
    conflicts: tuple = ()

    def as_dict(self) -> dict:
        return {
            "available": self.available,
            "stationType": self.station.station_type,
            "consoleType": self.station.console_type,
            "stationNumber": self.station.number,
            "maxStations": self.max_stations,
            "estimatedCost": float(self.billing.total_amount),
            "durationHours": float(self.billing.duration_hours),
            "hourlyRate": float(self.billing.hourly_rate),
        }


def _is_active(booking) -> bool:
    return getattr(booking, "status", "pending") in ACTIVE_STATUSES


def find_conflicts(window: TimeWindow, existing: Iterable) -> list:
    return [
        b for b in existing
        if _is_active(b) and window.overlaps(b.start_time, b.end_time)
    ]


def evaluate(station: StationRef, window: TimeWindow, rates: CafeRateConfig, existing: Iterable) -> AvailabilityResult:
    """
    Decide whether `station` is free for `window`.

    `existing` must already be narrowed to the same cafe, station and date.
    Capacity and opening hours are checked first and raise ValidationError;
    an overlap is not an error here, it only flips `available`.
    """
    max_stations = rates.check_capacity(station)
    rates.check_within_hours(window)
    billing = compute_billing(window, station, rates)
    conflicts = find_conflicts(window, existing)
    return AvailabilityResult(
        available=not conflicts,
        station=station,
        window=window,
        max_stations=max_stations,
        billing=billing,
        conflicts=tuple(conflicts),
    )


def free_station_numbers(window: TimeWindow, max_stations: int, existing: Iterable) -> list:
    busy = {b.station_number for b in find_conflicts(window, existing)}
    return [n for n in range(1, max_stations + 1) if n not in busy]
