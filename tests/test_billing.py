from datetime import time
from decimal import Decimal

import pytest

from scheduling.errors import ValidationError
from scheduling.rates import CafeRateConfig, ConsoleRate, compute_billing
from scheduling.stations import ConsoleStation, PcStation
from scheduling.windows import parse_window


def rates(**overrides):
    fields = dict(
        cafe_id=1,
        hourly_rate=Decimal("80.00"),
        pc_hourly_rate=Decimal("100.00"),
        total_pc_stations=20,
        opening_time=time(9, 0),
        closing_time=time(23, 0),
        consoles={
            "ps5": ConsoleRate(quantity=2, hourly_rate=Decimal("150.00")),
            "xbox_one": ConsoleRate(quantity=1, hourly_rate=Decimal("0.00")),
            "ps4": ConsoleRate(quantity=0, hourly_rate=Decimal("70.00")),
        },
    )
    fields.update(overrides)
    return CafeRateConfig(**fields)


def test_console_rate_by_type():
    bill = compute_billing(parse_window("2030-01-15", "14:00", "17:00"), ConsoleStation("ps5", 1), rates())
    assert bill.duration_hours == Decimal("3.00")
    assert bill.hourly_rate == Decimal("150.00")
    assert bill.total_amount == Decimal("450.00")


def test_pc_rate_uses_override():
    bill = compute_billing(parse_window("2030-01-15", "10:00", "12:00"), PcStation(4), rates())
    assert bill.hourly_rate == Decimal("100.00")
    assert bill.total_amount == Decimal("200.00")


def test_pc_rate_falls_back_to_generic_rate():
    bill = compute_billing(parse_window("2030-01-15", "10:00", "11:30"), PcStation(4), rates(pc_hourly_rate=None))
    assert bill.hourly_rate == Decimal("80.00")
    assert bill.duration_hours == Decimal("1.50")
    assert bill.total_amount == Decimal("120.00")


def test_zero_pc_rate_falls_back_to_generic_rate():
    bill = compute_billing(
        parse_window("2030-01-15", "10:00", "12:00"), PcStation(1), rates(pc_hourly_rate=Decimal("0.00"))
    )
    assert bill.hourly_rate == Decimal("80.00")
    assert bill.total_amount == Decimal("160.00")


def test_console_without_own_rate_bills_at_cafe_default():
    bill = compute_billing(parse_window("2030-01-15", "10:00", "11:00"), ConsoleStation("xbox_one", 1), rates())
    assert bill.hourly_rate == Decimal("80.00")


@pytest.mark.parametrize("console_type", ["ps4", "nintendo_switch"])
def test_unconfigured_console_type_is_rejected(console_type):
    with pytest.raises(ValidationError):
        compute_billing(parse_window("2030-01-15", "10:00", "11:00"), ConsoleStation(console_type, 1), rates())


def test_fractional_hours_round_half_up_to_cents():
    # 20 minutes at 100.00/h = 33.333... -> 33.33; 50 minutes at 99.99/h = 83.325 -> 83.33
    bill = compute_billing(parse_window("2030-01-15", "10:00", "10:20"), PcStation(1), rates())
    assert bill.duration_hours == Decimal("0.33")
    assert bill.total_amount == Decimal("33.33")

    bill = compute_billing(
        parse_window("2030-01-15", "10:00", "10:50"), PcStation(1), rates(pc_hourly_rate=Decimal("99.99"))
    )
    assert bill.total_amount == Decimal("83.33")


def test_capacity_boundary():
    cfg = rates()
    assert cfg.check_capacity(PcStation(20)) == 20
    with pytest.raises(ValidationError):
        cfg.check_capacity(PcStation(21))
    with pytest.raises(ValidationError):
        cfg.check_capacity(ConsoleStation("ps5", 3))
    with pytest.raises(ValidationError):
        rates(total_pc_stations=0).check_capacity(PcStation(1))


def test_operating_hours_are_enforced():
    cfg = rates()
    cfg.check_within_hours(parse_window("2030-01-15", "09:00", "23:00"))
    with pytest.raises(ValidationError):
        cfg.check_within_hours(parse_window("2030-01-15", "08:30", "10:00"))
    with pytest.raises(ValidationError):
        cfg.check_within_hours(parse_window("2030-01-15", "22:00", "23:30"))
