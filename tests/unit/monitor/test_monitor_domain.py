"""Unit tests for the monitor domain layer.

Covers:
- A-weighting gain curve (scalar and vectorised)
- Loudness percentage from byte snapshots and the sensitivity mapping
- Rolling-window peak tracking
- Weekday / time-of-day window matching for limits
- LimitDefinition parsing and MonitorState observers
"""

from __future__ import annotations

import math
from datetime import datetime

import numpy as np
import pytest

from waytooloud.monitor.domain import (
    LimitDefinition,
    MonitorState,
    PeakTracker,
    SensitivityRange,
    a_weight,
    a_weight_curve,
    db_to_level,
    is_limit_active,
    is_time_active,
    level_from_bins,
    parse_minute_of_day,
    weekday_name,
)
from waytooloud.monitor.domain.loudness import rms_to_db, weighted_rms
from waytooloud.monitor.domain.weighting import bin_frequencies


ALL_DAYS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

# 2024-01-01 was a Monday
MONDAY_NOON = datetime(2024, 1, 1, 12, 0)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def default_sensitivity() -> SensitivityRange:
    return SensitivityRange(-60.0, 0.0)


@pytest.fixture
def monitor_state() -> MonitorState:
    return MonitorState()


def make_limit(**overrides) -> LimitDefinition:
    values = dict(
        id="limit-1",
        name="Quiet hours",
        timeframe_from="09:00",
        timeframe_to="17:00",
        weekdays=ALL_DAYS,
        sound_file="beep.wav",
        db_threshold=50.0,
    )
    values.update(overrides)
    return LimitDefinition.create(**values)


# =============================================================================
# Test A-weighting
# =============================================================================

class TestAWeight:
    """Tests for the perceptual weighting curve."""

    def test_zero_hz_is_zero(self):
        assert a_weight(0.0) == 0.0

    def test_unity_near_one_kilohertz(self):
        assert a_weight(1000.0) == pytest.approx(1.0, rel=1e-2)

    def test_low_frequencies_are_attenuated(self):
        assert a_weight(50.0) < a_weight(200.0) < a_weight(1000.0)

    def test_high_frequencies_are_attenuated(self):
        assert a_weight(20_000.0) < a_weight(5_000.0)

    @pytest.mark.parametrize(
        "frequency",
        [0.0, 1e-9, 1.0, 20.0, 1000.0, 20_000.0, 1e6, 1e40, 1e80, 1e200, 1e300],
    )
    def test_non_negative_and_finite(self, frequency):
        value = a_weight(frequency)
        assert value >= 0.0
        assert math.isfinite(value)

    def test_curve_matches_scalar(self):
        freqs = np.array([0.0, 31.5, 187.5, 1000.0, 8000.0, 23_812.5])
        curve = a_weight_curve(freqs)
        expected = [a_weight(f) for f in freqs]
        np.testing.assert_allclose(curve, expected, rtol=1e-12)

    def test_curve_handles_overflowing_input(self):
        curve = a_weight_curve(np.array([1e80, 1e300]))
        assert np.all(curve == 0.0)

    def test_bin_frequencies(self):
        freqs = bin_frequencies(128, 48_000, 256)
        assert freqs.shape == (128,)
        assert freqs[0] == 0.0
        assert freqs[1] == pytest.approx(187.5)
        assert freqs[-1] == pytest.approx(127 * 187.5)


# =============================================================================
# Test Loudness Mapping
# =============================================================================

class TestLoudness:
    """Tests for weighted RMS and the 0-100 level mapping."""

    def test_all_zero_snapshot_is_zero(self, default_sensitivity):
        level = level_from_bins(np.zeros(128, dtype=np.uint8), 48_000, 256, default_sensitivity)
        assert level == 0.0

    def test_all_max_snapshot_stays_in_range(self, default_sensitivity):
        level = level_from_bins(np.full(128, 255, dtype=np.uint8), 48_000, 256, default_sensitivity)
        assert 50.0 < level <= 100.0

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_random_snapshots_stay_in_range(self, seed, default_sensitivity):
        rng = np.random.default_rng(seed)
        snapshot = rng.integers(0, 256, size=128, dtype=np.uint8)
        level = level_from_bins(snapshot, 44_100, 256, default_sensitivity)
        assert 0.0 <= level <= 100.0

    def test_precomputed_weights_match(self, default_sensitivity):
        snapshot = np.arange(128, dtype=np.uint8)
        weights = a_weight_curve(bin_frequencies(128, 48_000, 256))
        assert level_from_bins(snapshot, 48_000, 256, default_sensitivity, weights=weights) == pytest.approx(
            level_from_bins(snapshot, 48_000, 256, default_sensitivity)
        )

    def test_weighted_rms_empty_is_zero(self):
        assert weighted_rms(np.array([], dtype=np.uint8), np.array([])) == 0.0

    def test_rms_floor_avoids_log_of_zero(self):
        assert rms_to_db(0.0) == pytest.approx(-120.0)

    def test_db_to_level_linear(self, default_sensitivity):
        assert db_to_level(-60.0, default_sensitivity) == 0.0
        assert db_to_level(-30.0, default_sensitivity) == pytest.approx(50.0)
        assert db_to_level(0.0, default_sensitivity) == 100.0

    def test_db_to_level_clamps(self, default_sensitivity):
        assert db_to_level(-200.0, default_sensitivity) == 0.0
        assert db_to_level(25.0, default_sensitivity) == 100.0

    def test_db_to_level_zero_span(self):
        flat = SensitivityRange(-20.0, -20.0)
        assert db_to_level(-20.0, flat) == 100.0
        assert db_to_level(-21.0, flat) == 0.0

    def test_db_to_level_nan_is_zero(self, default_sensitivity):
        assert db_to_level(math.nan, default_sensitivity) == 0.0

    def test_inverted_sensitivity_still_in_range(self):
        inverted = SensitivityRange(0.0, -60.0)
        level = db_to_level(-15.0, inverted)
        assert 0.0 <= level <= 100.0


# =============================================================================
# Test Peak Tracker
# =============================================================================

class TestPeakTracker:
    """Tests for the rolling peak window."""

    def test_single_value_within_window(self):
        tracker = PeakTracker(window=20.0)
        tracker.update(40.0, timestamp=0.0)
        assert tracker.update(0.0, timestamp=19.9) == 40.0

    def test_single_value_after_window(self):
        tracker = PeakTracker(window=20.0)
        tracker.update(40.0, timestamp=0.0)
        assert tracker.update(0.0, timestamp=20.5) == 0.0
        assert tracker.history == ()

    def test_max_of_values_in_window(self):
        tracker = PeakTracker(window=20.0)
        tracker.update(10.0, timestamp=0.0)
        tracker.update(50.0, timestamp=1.0)
        assert tracker.update(30.0, timestamp=2.0) == 50.0

    def test_zero_values_are_not_recorded(self):
        tracker = PeakTracker()
        tracker.update(0.0, timestamp=0.0)
        tracker.update(-5.0, timestamp=1.0)
        assert tracker.history == ()
        assert tracker.peak == 0.0

    def test_older_peak_expires_first(self):
        tracker = PeakTracker(window=20.0)
        tracker.update(80.0, timestamp=0.0)
        tracker.update(30.0, timestamp=10.0)
        assert tracker.update(0.0, timestamp=25.0) == 30.0

    def test_displayed_peak_ignores_small_changes(self):
        tracker = PeakTracker(window=20.0, change_threshold=0.5)
        tracker.update(10.0, timestamp=0.0)
        assert tracker.displayed_peak == 10.0
        assert tracker.dirty
        tracker.clear_dirty()

        tracker.update(10.3, timestamp=1.0)
        assert tracker.peak == pytest.approx(10.3)
        assert tracker.displayed_peak == 10.0
        assert not tracker.dirty

        tracker.update(11.0, timestamp=2.0)
        assert tracker.displayed_peak == 11.0
        assert tracker.dirty

    def test_displayed_peak_drops_to_zero_when_empty(self):
        tracker = PeakTracker(window=1.0)
        tracker.update(5.0, timestamp=0.0)
        tracker.clear_dirty()
        tracker.update(0.0, timestamp=5.0)
        assert tracker.displayed_peak == 0.0
        assert tracker.dirty

    def test_reset(self):
        tracker = PeakTracker()
        tracker.update(60.0, timestamp=0.0)
        tracker.reset()
        assert tracker.peak == 0.0
        assert tracker.displayed_peak == 0.0
        assert tracker.history == ()


# =============================================================================
# Test Limit Window
# =============================================================================

class TestLimitWindow:
    """Tests for time string parsing and window matching."""

    def test_parse_minute_of_day(self):
        assert parse_minute_of_day("09:00") == 540
        assert parse_minute_of_day("23:59") == 1439
        assert parse_minute_of_day("0:5") == 5

    def test_seconds_field_is_ignored(self):
        assert parse_minute_of_day("09:00:00") == 540
        assert parse_minute_of_day("22:30:59") == 1350

    @pytest.mark.parametrize("text", ["", "9", "ab:cd", ":30", "inf:00", "12:nan"])
    def test_malformed_time_is_nan(self, text):
        assert math.isnan(parse_minute_of_day(text))

    @pytest.mark.parametrize(
        "current, expected",
        [(540, True), (1020, True), (539, False), (1021, False), (800, True)],
    )
    def test_same_day_window(self, current, expected):
        assert is_time_active(540, 1020, current) is expected

    @pytest.mark.parametrize(
        "current, expected",
        [(1380, True), (0, True), (120, True), (121, False), (1379, False), (1439, True)],
    )
    def test_midnight_crossing_window(self, current, expected):
        assert is_time_active(1380, 120, current) is expected

    def test_nan_bounds_never_active(self):
        assert not is_time_active(math.nan, 1020, 600)
        assert not is_time_active(540, math.nan, 600)

    @pytest.mark.parametrize("current", [0, 600, 1020, 1439])
    def test_nan_start_never_wraps_past_midnight(self, current):
        assert not is_time_active(math.nan, 1020, current)
        assert not is_time_active(math.nan, math.nan, current)

    @pytest.mark.parametrize(
        "moment, expected",
        [
            (datetime(2024, 1, 7), "Sun"),
            (datetime(2024, 1, 1), "Mon"),
            (datetime(2024, 1, 3), "Wed"),
            (datetime(2024, 1, 6), "Sat"),
        ],
    )
    def test_weekday_name(self, moment, expected):
        assert weekday_name(moment) == expected

    def test_limit_active_inside_window(self):
        assert is_limit_active(make_limit(), MONDAY_NOON)

    def test_limit_inactive_on_other_weekday(self):
        assert not is_limit_active(make_limit(weekdays=("Tue",)), MONDAY_NOON)

    def test_limit_inactive_outside_time(self):
        assert not is_limit_active(make_limit(timeframe_from="13:00"), MONDAY_NOON)

    def test_limit_with_malformed_time_is_never_active(self):
        assert not is_limit_active(make_limit(timeframe_from="noon"), MONDAY_NOON)
        assert not is_limit_active(make_limit(timeframe_from="noon"), datetime(2024, 1, 1, 0, 30))

    def test_limit_with_no_weekdays_is_never_active(self):
        assert not is_limit_active(make_limit(weekdays=()), MONDAY_NOON)


# =============================================================================
# Test LimitDefinition
# =============================================================================

class TestLimitDefinition:
    """Tests for mapping limits.json entries."""

    def test_from_dict(self):
        limit = LimitDefinition.from_dict(
            {
                "id": "abc",
                "name": "Night",
                "timeframeFrom": "22:00",
                "timeframeTo": "06:00",
                "weekdays": ["Mon", "Tue"],
                "soundFile": "alarm.wav",
                "dbThreshold": 70,
            }
        )
        assert limit.id == "abc"
        assert limit.weekdays == frozenset({"Mon", "Tue"})
        assert limit.db_threshold == 70.0
        assert limit.sound_file == "alarm.wav"

    def test_from_dict_missing_id(self):
        with pytest.raises(ValueError):
            LimitDefinition.from_dict({"name": "nameless"})

    def test_from_dict_single_weekday_string(self):
        limit = LimitDefinition.from_dict({"id": "x", "weekdays": "Fri"})
        assert limit.weekdays == frozenset({"Fri"})

    def test_to_dict_roundtrips_keys(self):
        data = make_limit(weekdays=("Wed", "Mon")).to_dict()
        assert data["weekdays"] == ["Mon", "Wed"]
        assert data["timeframeFrom"] == "09:00"
        assert LimitDefinition.from_dict(data) == make_limit(weekdays=("Wed", "Mon"))


# =============================================================================
# Test MonitorState
# =============================================================================

class TestMonitorState:
    """Tests for the observable monitor state."""

    def test_subscribe_sends_initial_snapshot(self, monitor_state):
        received = []
        monitor_state.subscribe(received.append)
        assert len(received) == 1
        assert received[0].active is False
        assert received[0].status_text == "Monitoring stopped"

    def test_notifies_only_on_change(self, monitor_state):
        received = []
        monitor_state.subscribe(received.append)
        monitor_state.set_level(12.0)
        monitor_state.set_level(12.0)
        monitor_state.set_peak(20.0)
        monitor_state.set_peak(20.0)
        assert len(received) == 3

    def test_inactive_resets_level(self, monitor_state):
        monitor_state.set_active(True)
        monitor_state.set_level(55.0)
        monitor_state.set_active(False)
        assert monitor_state.level == 0.0
        assert monitor_state.status_text == "Monitoring stopped"

    def test_custom_status_text(self, monitor_state):
        monitor_state.set_active(False, "Microphone unavailable: denied")
        assert monitor_state.status_text == "Microphone unavailable: denied"

    def test_failing_observer_is_ignored(self, monitor_state):
        calls = []

        def broken(snapshot):
            raise RuntimeError("boom")

        monitor_state.subscribe(calls.append)
        monitor_state._observers.insert(0, broken)
        monitor_state.set_level(3.0)
        assert calls[-1].level == 3.0

    def test_unsubscribe(self, monitor_state):
        received = []
        monitor_state.subscribe(received.append)
        monitor_state.unsubscribe(received.append)
        monitor_state.set_level(9.0)
        assert len(received) == 1
