from dataclasses import dataclass
from typing import Union

from scheduling.errors import ValidationError

CONSOLE_TYPES = (
    "ps5",
    "ps4",
    "xbox_series_x",
    "xbox_series_s",
    "xbox_one",
    "nintendo_switch",
)


@dataclass(frozen=True)
class PcStation:
    number: int

    station_type = "pc"
    console_type = None

    @property
    def key(self) -> str:
        return "pc"

    @property
    def label(self) -> str:
        return "PC station"


@dataclass(frozen=True)
class ConsoleStation:
    console_type: str
    number: int

    station_type = "console"

    @property
    def key(self) -> str:
        return f"console:{self.console_type}"

    @property
    def label(self) -> str:
        return f"{self.console_type} console"


StationRef = Union[PcStation, ConsoleStation]


def _parse_number(value) -> int:
    if isinstance(value, bool):
        raise ValidationError("stationNumber must be a positive integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError("stationNumber must be a positive integer")
    if isinstance(value, float) and value != number:
        raise ValidationError("stationNumber must be a positive integer")
    if number < 1:
        raise ValidationError("stationNumber must be a positive integer")
    return number


def parse_console_type(value) -> str:
    console_type = (value or "").strip().lower() if isinstance(value, str) else None
    if not console_type:
        raise ValidationError("consoleType is required for console bookings")
    if console_type not in CONSOLE_TYPES:
        raise ValidationError(
            f"Invalid console type. Valid types: {', '.join(CONSOLE_TYPES)}"
        )
    return console_type


def parse_station(station_type, console_type, station_number) -> StationRef:
    kind = station_type or "pc"
    if isinstance(kind, str):
        kind = kind.strip().lower()
    if kind == "pc":
        return PcStation(number=_parse_number(station_number))
    if kind == "console":
        return ConsoleStation(
            console_type=parse_console_type(console_type),
            number=_parse_number(station_number),
        )
    raise ValidationError("stationType must be 'pc' or 'console'")


def station_kind(station_type, console_type) -> StationRef:
    """Station with a placeholder number, for lookups that cover every unit of a kind."""
    return parse_station(station_type, console_type, 1)
