"""Tests for pollen risk scoring."""

import math
from datetime import date

import pytest

from pollen_nav.services.risk_engine import (
    ADVICE,
    LOADING_TIP,
    DailyOutlook,
    RiskLevel,
    WeatherSnapshot,
    build_forecast,
    clamp,
    estimate_risk,
    month_distance,
    parse_number,
    risk_level,
    risk_tip,
    round_half_up,
    seasonal_base,
)

MARCH = date(2026, 3, 10)


def _risk(day=MARCH, temperature=12.0, humidity=48.0, wind=2.0,
          precipitation=0.0, pm10=30.0, pm25=15.0):
    """Defaults give every weather term a zero contribution."""
    return estimate_risk(day, temperature, humidity, wind, precipitation, pm10, pm25)


class TestScalarHelpers:
    def test_clamp(self):
        assert clamp(5, 0, 10) == 5
        assert clamp(-1, 0, 10) == 0
        assert clamp(11, 0, 10) == 10

    def test_parse_number_accepts_numbers_and_numeric_strings(self):
        assert parse_number(7) == 7.0
        assert parse_number("3.5") == 3.5

    @pytest.mark.parametrize("bad", [None, "abc", float("nan"), float("inf"), True, [], {}])
    def test_parse_number_falls_back(self, bad):
        assert parse_number(bad, 12) == 12

    def test_month_distance_wraps(self):
        assert month_distance(12, 1) == 1
        assert month_distance(1, 11) == 2
        assert month_distance(3, 9) == 6
        assert month_distance(5, 5) == 0

    def test_round_half_up(self):
        assert round_half_up(10.5) == 11
        assert round_half_up(2.5) == 3
        assert round_half_up(1.75, 1) == 1.8
        assert round_half_up(-2.6667, 1) == -2.7


class TestSeasonalBase:
    @pytest.mark.parametrize("month,expected", [
        (1, 10), (2, 48), (3, 48), (4, 48), (5, 36), (6, 16),
        (9, 16), (10, 10), (11, 10), (12, 10),
    ])
    def test_months(self, month, expected):
        assert seasonal_base(month) == expected


class TestRiskLevel:
    def test_boundaries_belong_to_higher_level(self):
        assert risk_level(75) == RiskLevel.VERY_HIGH
        assert risk_level(74) == RiskLevel.HIGH
        assert risk_level(55) == RiskLevel.HIGH
        assert risk_level(54) == RiskLevel.ELEVATED
        assert risk_level(35) == RiskLevel.ELEVATED
        assert risk_level(34) == RiskLevel.LOW
        assert risk_level(0) == RiskLevel.LOW

    def test_four_distinct_advice_messages(self):
        assert len(set(ADVICE.values())) == 4
        assert set(ADVICE) == set(RiskLevel)

    def test_tip_before_data(self):
        assert risk_tip(None) == LOADING_TIP
        assert risk_tip(RiskLevel.LOW) != LOADING_TIP


class TestEstimateRisk:
    def test_dry_windy_march_day(self):
        """48 + 14.4 + 8.7 + 4.8 = 75.9 -> 76."""
        result = _risk(temperature=20, humidity=40, wind=5)
        assert result.score == 76
        assert result.level == RiskLevel.VERY_HIGH
        assert result.advice == ADVICE[RiskLevel.VERY_HIGH]

    def test_same_day_with_rain(self):
        """75.9 - 16 = 59.9 -> 60."""
        result = _risk(temperature=20, humidity=40, wind=5, precipitation=2)
        assert result.score == 60
        assert result.level == RiskLevel.HIGH

    def test_neutral_weather_gives_seasonal_base(self):
        assert _risk().score == 48

    def test_rain_subtracts_exactly_16(self):
        assert _risk().score - _risk(precipitation=0.1).score == 16

    def test_humid_penalty_starts_at_70(self):
        assert _risk(humidity=69).score == 48
        assert _risk(humidity=70).score == 42

    def test_cold_only_mildly_suppresses(self):
        # temperature term floors at -6
        assert _risk(temperature=-30).score == 42

    def test_negative_and_zero_readings_do_not_raise(self):
        result = _risk(day=date(2026, 1, 5), temperature=-30, wind=0, pm10=-5, pm25=-5)
        assert result.score == 4

    def test_ties_round_up(self):
        # 10 + (32 - 30) * 0.25 = 10.5
        assert _risk(day=date(2026, 1, 5), pm10=32).score == 11

    def test_upper_clamp(self):
        result = _risk(temperature=40, humidity=0, wind=30, pm10=500, pm25=500)
        assert result.score == 100

    def test_lower_clamp(self):
        result = _risk(day=date(2026, 12, 1), temperature=-20, humidity=100,
                       wind=0, precipitation=5)
        assert result.score == 0
        assert result.level == RiskLevel.LOW

    def test_wind_never_decreases_score(self):
        scores = [_risk(wind=w / 2).score for w in range(0, 30)]
        assert scores == sorted(scores)

    def test_score_always_in_range_and_level_consistent(self):
        for month in range(1, 13):
            for temperature in (-15, 0, 12, 25, 38):
                for humidity in (0, 35, 70, 100):
                    result = _risk(day=date(2026, month, 1), temperature=temperature,
                                   humidity=humidity, wind=6, pm10=80, pm25=40)
                    assert 0 <= result.score <= 100
                    assert isinstance(result.score, int)
                    assert result.level == risk_level(result.score)

    def test_pure(self):
        assert _risk(temperature=17.3, wind=4.4) == _risk(temperature=17.3, wind=4.4)


class TestBuildForecast:
    SNAPSHOT = WeatherSnapshot(temperature=15, humidity=40, wind=3, precipitation=0, pm10=30, pm25=15)

    def test_daily_values_override_current(self):
        days = build_forecast(self.SNAPSHOT, [
            DailyOutlook("2026-03-01", temperature_max=20, wind_max=5, precipitation_probability=10),
        ])
        assert days[0].date == "2026-03-01"
        assert days[0].score == 76

    def test_missing_daily_values_fall_back_to_current(self):
        """15 deg C and 3 m/s from the snapshot, 40% rain chance counts as rain: 45.1 -> 45."""
        days = build_forecast(self.SNAPSHOT, [
            DailyOutlook("2026-03-02", precipitation_probability=40),
        ])
        assert days[0].score == 45
        assert days[0].level == RiskLevel.ELEVATED

    def test_month_comes_from_forecast_date(self):
        days = build_forecast(self.SNAPSHOT, [
            DailyOutlook("2026-06-03", temperature_max=20, wind_max=5),
        ])
        # 16 + 14.4 + 8.7 + 4.8 = 43.9
        assert days[0].score == 44

    def test_length_follows_daily_entries(self):
        daily = [DailyOutlook(f"2026-04-0{i}") for i in range(1, 6)]
        assert len(build_forecast(self.SNAPSHOT, daily)) == 5
        assert build_forecast(self.SNAPSHOT, []) == []

    def test_nonfinite_probability_treated_as_dry(self):
        wet = build_forecast(self.SNAPSHOT, [DailyOutlook("2026-03-02", precipitation_probability=math.nan)])
        dry = build_forecast(self.SNAPSHOT, [DailyOutlook("2026-03-02", precipitation_probability=0)])
        assert wet == dry
