from .errors import (
    BookingError,
    ValidationError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    StorageError,
)
from .stations import CONSOLE_TYPES, PcStation, ConsoleStation, parse_station
from .windows import TimeWindow, parse_window, overlaps
from .rates import CafeRateConfig, Billing, compute_billing
from .availability import AvailabilityResult, find_conflicts, evaluate, free_station_numbers
