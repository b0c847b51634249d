from dataclasses import dataclass, field
from datetime import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Optional

from scheduling.errors import ValidationError
from scheduling.stations import PcStation, StationRef
from scheduling.windows import TimeWindow, minutes_of

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ConsoleRate:
    quantity: int
    hourly_rate: Decimal


@dataclass(frozen=True)
class CafeRateConfig:
    """
    Read-only snapshot of a cafe's inventory, rates and hours.

    Built once per request and handed to the engine so billing never
    reaches back into the store mid-algorithm.
    """
    cafe_id: int
    hourly_rate: Decimal
    pc_hourly_rate: Optional[Decimal]
    total_pc_stations: int
    opening_time: time
    closing_time: time
    consoles: Mapping[str, ConsoleRate] = field(default_factory=dict)

    @classmethod
    def from_cafe(cls, cafe) -> "CafeRateConfig":
        consoles = {}
        for console_type, cfg in (cafe.consoles or {}).items():
            cfg = cfg or {}
            consoles[console_type] = ConsoleRate(
                quantity=int(cfg.get("quantity") or 0),
                hourly_rate=to_money(cfg.get("hourly_rate", cfg.get("hourlyRate"))),
            )
        return cls(
            cafe_id=cafe.id,
            hourly_rate=to_money(cafe.hourly_rate),
            pc_hourly_rate=to_money(cafe.pc_hourly_rate) if cafe.pc_hourly_rate is not None else None,
            total_pc_stations=int(cafe.total_pc_stations or 0),
            opening_time=cafe.opening_time,
            closing_time=cafe.closing_time,
            consoles=consoles,
        )

    def capacity_for(self, station: StationRef) -> int:
        if isinstance(station, PcStation):
            return self.total_pc_stations
        cfg = self.consoles.get(station.console_type)
        return cfg.quantity if cfg else 0

    def hourly_rate_for(self, station: StationRef) -> Decimal:
        if isinstance(station, PcStation):
            return self.pc_hourly_rate if self.pc_hourly_rate else self.hourly_rate

        cfg = self.consoles.get(station.console_type)
        if not cfg or cfg.quantity <= 0:
            raise ValidationError(f"This cafe does not have any {station.console_type} consoles")
        # a configured console without its own rate bills at the cafe default
        return cfg.hourly_rate if cfg.hourly_rate > 0 else self.hourly_rate

    def check_capacity(self, station: StationRef) -> int:
        max_stations = self.capacity_for(station)
        if max_stations <= 0:
            kind = "PC stations" if isinstance(station, PcStation) else f"{station.console_type} consoles"
            raise ValidationError(f"This cafe does not have any {kind} available")
        if station.number > max_stations:
            kind = "PC station" if isinstance(station, PcStation) else f"{station.console_type} unit"
            raise ValidationError(
                f"Invalid {kind} number. Available: 1-{max_stations}",
                maxStations=max_stations,
            )
        return max_stations

    def check_within_hours(self, window: TimeWindow) -> None:
        opens, closes = minutes_of(self.opening_time), minutes_of(self.closing_time)
        if window.start_minutes < opens or window.end_minutes > closes:
            raise ValidationError(
                "Booking time must be within cafe hours: "
                f"{self.opening_time.strftime('%H:%M')} - {self.closing_time.strftime('%H:%M')}"
            )


@dataclass(frozen=True)
class Billing:
    duration_hours: Decimal
    hourly_rate: Decimal
    total_amount: Decimal

    def as_dict(self, station: StationRef = None) -> dict:
        out = {
            "durationHours": float(self.duration_hours),
            "hourlyRate": float(self.hourly_rate),
            "totalAmount": float(self.total_amount),
        }
        if station is not None:
            out["stationType"] = station.station_type
            out["consoleType"] = station.console_type
        return out


def compute_billing(window: TimeWindow, station: StationRef, rates: CafeRateConfig) -> Billing:
    minutes = Decimal(window.duration_minutes)
    if minutes <= 0:
        raise ValidationError("End time must be after start time")
    hourly_rate = rates.hourly_rate_for(station)
    return Billing(
        duration_hours=(minutes / 60).quantize(CENTS, rounding=ROUND_HALF_UP),
        hourly_rate=hourly_rate,
        total_amount=(minutes * hourly_rate / 60).quantize(CENTS, rounding=ROUND_HALF_UP),
    )
