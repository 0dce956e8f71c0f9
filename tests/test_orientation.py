"""Tests for the orientation estimator: source arbitration, smoothing, permission gating."""

import pytest

from skyar.orientation import (
    AbsoluteCompass,
    EstimatorState,
    ManualOrientation,
    OrientationEstimator,
    OrientationSample,
    PermissionState,
    RawOrientationEvent,
    RelativeGyro,
    classify_event,
    normalize_event,
)


def absolute(heading, pitch=90.0, roll=0.0):
    return RawOrientationEvent(heading=heading, pitch=pitch, roll=roll, absolute=True)


def relative(heading, pitch=90.0, roll=0.0):
    return RawOrientationEvent(heading=heading, pitch=pitch, roll=roll, absolute=False)


class TestNormalization:
    def test_classify(self):
        assert isinstance(classify_event(absolute(10)), AbsoluteCompass)
        assert isinstance(classify_event(relative(10)), RelativeGyro)
        assert isinstance(classify_event(RawOrientationEvent(heading=1, pitch=1, roll=1)), RelativeGyro)
        assert isinstance(classify_event(RawOrientationEvent(compass_heading=5, pitch=1, roll=1)),
                          AbsoluteCompass)

    def test_compass_heading_overrides_generic_heading(self):
        event = RawOrientationEvent(heading=10.0, pitch=80.0, roll=2.0, compass_heading=200.0)
        sample = normalize_event(event)
        assert sample == OrientationSample(heading=200.0, pitch=80.0, roll=2.0, is_absolute=True)

    def test_compass_heading_ignores_counter_clockwise_flag(self):
        event = RawOrientationEvent(heading=10.0, pitch=80.0, roll=0.0, compass_heading=200.0,
                                    counter_clockwise=True)
        assert normalize_event(event).heading == 200.0

    @pytest.mark.parametrize("raw, expected", [(90.0, 270.0), (0.0, 0.0), (270.0, 90.0), (359.0, 1.0)])
    def test_counter_clockwise_heading_converted(self, raw, expected):
        event = RawOrientationEvent(heading=raw, pitch=90.0, roll=0.0, absolute=True,
                                    counter_clockwise=True)
        assert normalize_event(event).heading == pytest.approx(expected)

    def test_heading_wrapped(self):
        assert normalize_event(relative(370.0)).heading == pytest.approx(10.0)

    @pytest.mark.parametrize("event", [
        RawOrientationEvent(heading=None, pitch=90.0, roll=0.0, absolute=True),
        RawOrientationEvent(heading=10.0, pitch=None, roll=0.0),
        RawOrientationEvent(heading=10.0, pitch=90.0, roll=None),
        RawOrientationEvent(heading=float("nan"), pitch=90.0, roll=0.0),
        RawOrientationEvent(compass_heading=float("inf"), pitch=90.0, roll=0.0),
    ])
    def test_malformed_events(self, event):
        assert normalize_event(event) is None


class TestStateMachine:
    def test_starts_uninitialized(self):
        est = OrientationEstimator()
        assert est.state is EstimatorState.UNINITIALIZED
        assert est.reading is None
        assert est.heading_pitch() == (0.0, 90.0)

    def test_relative_then_absolute(self):
        est = OrientationEstimator()
        assert est.submit(relative(100.0))
        assert est.state is EstimatorState.RELATIVE_ACTIVE
        assert est.is_absolute is False

        assert est.submit(absolute(250.0))
        assert est.state is EstimatorState.ABSOLUTE_ACTIVE
        assert est.is_absolute is True

    def test_direct_to_absolute(self):
        est = OrientationEstimator()
        est.submit(RawOrientationEvent(compass_heading=45.0, pitch=90.0, roll=0.0))
        assert est.state is EstimatorState.ABSOLUTE_ACTIVE

    def test_absolute_lock_ignores_relative_events(self):
        est = OrientationEstimator()
        est.submit(absolute(120.0, pitch=95.0, roll=1.0))
        first = est.reading

        for i in range(10):
            assert est.submit(relative(10.0 * i, pitch=40.0, roll=-20.0)) is False

        assert est.is_absolute is True
        assert est.state is EstimatorState.ABSOLUTE_ACTIVE
        assert est.reading == first
        assert est.stats == (1, 10)

    def test_absolute_reseeds_after_relative(self):
        est = OrientationEstimator()
        est.submit(relative(10.0))
        est.submit(relative(20.0))
        est.submit(absolute(200.0, pitch=100.0))
        reading = est.reading
        assert reading.heading == 200.0
        assert reading.pitch == 100.0
        assert reading.is_absolute is True

    def test_malformed_event_keeps_prior_state(self):
        est = OrientationEstimator()
        est.submit(absolute(42.0))
        before = est.reading
        assert est.submit(RawOrientationEvent(heading=None, pitch=90.0, roll=0.0, absolute=True)) is False
        assert est.reading == before
        assert est.stats == (1, 1)

    def test_reset(self):
        est = OrientationEstimator()
        est.submit(absolute(42.0))
        est.reset()
        assert est.state is EstimatorState.UNINITIALIZED
        assert est.reading is None
        assert est.submit(relative(5.0))


class TestSmoothing:
    def test_first_sample_seeds_state(self):
        est = OrientationEstimator()
        est.submit(absolute(123.0, pitch=80.0, roll=4.0))
        assert est.reading == OrientationSample(123.0, 80.0, 4.0, True)

    def test_per_axis_smoothing(self):
        est = OrientationEstimator(smoothing_factor=0.3)
        est.submit(absolute(0.0, pitch=90.0, roll=0.0))
        est.submit(absolute(10.0, pitch=100.0, roll=10.0))
        reading = est.reading
        assert reading.heading == pytest.approx(3.0)
        assert reading.pitch == pytest.approx(93.0)
        assert reading.roll == pytest.approx(3.0)

    def test_heading_wraps_through_north(self):
        est = OrientationEstimator(smoothing_factor=0.3)
        est.submit(absolute(350.0))
        est.submit(absolute(10.0))
        assert est.reading.heading == pytest.approx(356.0)
        est.submit(absolute(10.0))
        assert est.reading.heading == pytest.approx(0.2)

    def test_same_sample_is_fixed_point(self):
        est = OrientationEstimator()
        est.submit(absolute(271.5, pitch=85.0, roll=-3.0))
        before = est.reading
        est.submit(absolute(271.5, pitch=85.0, roll=-3.0))
        assert est.reading == before

    @pytest.mark.parametrize("factor", [0.0, -0.1, 1.5])
    def test_invalid_factor(self, factor):
        with pytest.raises(ValueError):
            OrientationEstimator(smoothing_factor=factor)


class TestPermission:
    def test_pending_ignores_events(self):
        est = OrientationEstimator(requires_permission=True)
        assert est.permission is PermissionState.PENDING
        assert est.is_supported is False
        assert est.submit(absolute(90.0)) is False
        assert est.reading is None
        assert est.heading_pitch() == (0.0, 90.0)

    def test_granted(self):
        est = OrientationEstimator(requires_permission=True)
        assert est.request_permission(lambda: True) is True
        assert est.permission is PermissionState.GRANTED
        assert est.is_supported is True
        assert est.submit(absolute(90.0, pitch=100.0))
        assert est.heading_pitch() == (90.0, 100.0)

    def test_refused(self):
        est = OrientationEstimator(requires_permission=True)
        assert est.request_permission(lambda: False) is False
        assert est.permission is PermissionState.DENIED
        assert est.submit(absolute(90.0)) is False

    def test_requester_failure_is_not_fatal(self):
        def boom():
            raise RuntimeError("user dismissed dialog")

        est = OrientationEstimator(requires_permission=True)
        assert est.request_permission(boom) is False
        assert est.permission is PermissionState.DENIED
        assert est.heading_pitch() == (0.0, 90.0)

    def test_not_required_skips_request(self):
        est = OrientationEstimator()
        called = []
        assert est.request_permission(lambda: called.append(1) or False) is True
        assert called == []
        assert est.permission is PermissionState.NOT_REQUIRED


class TestManualOrientation:
    def test_defaults(self):
        manual = ManualOrientation()
        assert manual.heading_pitch() == (0.0, 90.0)

    def test_drag_turns_opposite_to_pointer(self):
        manual = ManualOrientation()
        manual.drag(10, 0)
        assert manual.heading == pytest.approx(358.0)
        manual.drag(-20, 0)
        assert manual.heading == pytest.approx(2.0)

    def test_pitch_clamped(self):
        manual = ManualOrientation()
        manual.drag(0, 10000)
        assert manual.pitch == 170.0
        manual.drag(0, -10000)
        assert manual.pitch == 10.0

    def test_set_clamps(self):
        manual = ManualOrientation()
        manual.set(-90.0, 0.0)
        assert manual.heading_pitch() == (270.0, 10.0)
