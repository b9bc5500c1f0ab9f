"""Tests for BookingConfig."""

import pytest

from agentsalud.services.availability import BookingConfig, get_booking_config


class TestBookingConfig:
    """Defaults, bounds and mapping."""

    def test_defaults(self):
        config = get_booking_config()
        assert config.min_advance_hours == 4
        assert config.max_advance_booking_days == 90
        assert config.timezone == "America/Bogota"
        assert config.duration_in_bounds(config.default_duration_minutes)

    def test_singleton(self):
        assert get_booking_config() is get_booking_config()

    @pytest.mark.parametrize("kwargs", [
        {"min_advance_hours": -1},
        {"min_advance_hours": 73},
        {"max_advance_booking_days": 0},
        {"max_advance_booking_days": 366},
        {"min_duration_minutes": 0},
        {"min_duration_minutes": 60, "max_duration_minutes": 30},
        {"default_duration_minutes": 300},
        {"timezone": "Mars/Olympus"},
        {"booking_window_start": "8am"},
        {"booking_window_end": "24:00"},
        {"booking_window_start": "08:00:00"},
        {"booking_window_start": "18:00", "booking_window_end": "08:00"},
        {"booking_window_start": "12:00", "booking_window_end": "12:00"},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            BookingConfig(**kwargs)

    def test_bounds_inclusive(self):
        config = BookingConfig(min_advance_hours=72, max_advance_booking_days=365)
        assert config.duration_in_bounds(15)
        assert config.duration_in_bounds(240)
        assert not config.duration_in_bounds(14)

    def test_from_mapping_uses_settings_keys(self):
        config = BookingConfig.from_mapping({
            "advance_booking_hours": 2,
            "max_advance_booking_days": 30,
            "weekend_booking_enabled": False,
            "timezone": "America/Mexico_City",
        })
        assert config.min_advance_hours == 2
        assert config.max_advance_booking_days == 30
        assert config.weekend_booking_enabled is False
        assert config.timezone == "America/Mexico_City"

    def test_booking_window(self):
        config = BookingConfig.from_mapping({"booking_window_start": "7:30", "booking_window_end": "19:00"})
        assert config.booking_window == (450, 1140)
        assert BookingConfig().booking_window == (480, 1080)

    def test_from_mapping_keeps_base_for_missing_keys(self):
        base = BookingConfig(min_advance_hours=8)
        config = BookingConfig.from_mapping({"unknown": 1, "max_advance_booking_days": None}, base=base)
        assert config == base

    def test_from_mapping_rejects_invalid(self):
        with pytest.raises(ValueError):
            BookingConfig.from_mapping({"advance_booking_hours": 100})

    def test_to_mapping_round_trip(self):
        config = BookingConfig(min_advance_hours=6, weekend_booking_enabled=False)
        assert BookingConfig.from_mapping(config.to_mapping()) == config
