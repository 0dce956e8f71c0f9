"""Tests for the tangent projection engine and frustum culling."""

import math

import pytest

from skyar.projection import (
    OFFSCREEN_NDC,
    CameraFacing,
    CameraParameters,
    ProjectionEngine,
    ScreenPoint,
    alt_az_to_screen,
    effective_heading,
    is_in_view,
    look_altitude,
)

W, H = 1000, 1000


@pytest.fixture
def engine():
    return ProjectionEngine()


def test_look_altitude():
    assert look_altitude(90.0) == 0.0
    assert look_altitude(135.0) == 45.0
    assert look_altitude(0.0) == -90.0


def test_effective_heading():
    assert effective_heading(10.0, CameraFacing.ENVIRONMENT) == 10.0
    assert effective_heading(10.0, CameraFacing.USER) == 190.0
    assert effective_heading(270.0, CameraFacing.USER) == 90.0


@pytest.mark.parametrize("heading, pitch", [(0.0, 90.0), (123.4, 60.0), (359.0, 150.0)])
def test_target_on_axis_lands_at_center(engine, heading, pitch):
    point = engine.project(pitch - 90.0, heading, heading, pitch, 1280, 720)
    assert point.x == pytest.approx(640.0)
    assert point.y == pytest.approx(360.0)
    assert point.visible


def test_end_to_end_above_center(engine):
    point = engine.project(45.0, 90.0, 90.0, 90.0, W, H)
    assert point.x == pytest.approx(500.0)
    assert point.y == pytest.approx(-366.03, abs=0.01)


def test_edge_of_fov_hits_viewport_edge(engine):
    right = engine.project(0.0, 30.0, 0.0, 90.0, W, H)
    left = engine.project(0.0, 330.0, 0.0, 90.0, W, H)
    assert right.x == pytest.approx(W)
    assert left.x == pytest.approx(0.0, abs=1e-9)
    assert right.y == pytest.approx(H / 2)


def test_higher_altitude_is_higher_on_screen(engine):
    low = engine.project(5.0, 0.0, 0.0, 90.0, W, H)
    high = engine.project(20.0, 0.0, 0.0, 90.0, W, H)
    assert high.y < low.y < H / 2


def test_azimuth_wraps_across_north(engine):
    point = engine.project(0.0, 350.0, 10.0, 90.0, W, H)
    expected = (1 - math.tan(math.radians(20)) / math.tan(math.radians(30))) * W / 2
    assert point.x == pytest.approx(expected)
    assert point.visible


class TestFrustum:
    @pytest.mark.parametrize("delta", [29.0, -29.0, 44.9, -44.9])
    def test_inside_margin(self, engine, delta):
        assert engine.is_in_view(0.0, delta % 360, 0.0, 90.0)
        assert engine.is_in_view(delta, 0.0, 0.0, 90.0)

    @pytest.mark.parametrize("delta", [46.0, -46.0, 45.0, 120.0])
    def test_outside_margin(self, engine, delta):
        assert not engine.is_in_view(0.0, delta % 360, 0.0, 90.0)
        assert not engine.is_in_view(delta, 0.0, 0.0, 90.0)

    def test_visible_flag_matches_frustum(self, engine):
        assert engine.project(0.0, 29.0, 0.0, 90.0, W, H).visible
        assert not engine.project(0.0, 46.0, 0.0, 90.0, W, H).visible

    def test_view_limit(self):
        assert ProjectionEngine(hfov=60.0, margin=15.0).view_limit == 45.0
        assert ProjectionEngine(hfov=90.0, margin=0.0).view_limit == 45.0

    def test_module_level_helpers(self):
        assert is_in_view(0.0, 29.0, 0.0, 90.0)
        assert not is_in_view(0.0, 46.0, 0.0, 90.0)
        assert alt_az_to_screen(0.0, 0.0, 0.0, 90.0, W, H) == ScreenPoint(500.0, 500.0, True)


class TestOffscreen:
    @pytest.mark.parametrize("azimuth", [90.0, 135.0, 180.0, 225.0, 270.0])
    def test_behind_viewer_never_on_screen(self, engine, azimuth):
        point = engine.project(0.0, azimuth, 0.0, 90.0, W, H)
        assert not point.is_on_screen(W, H)
        assert not point.visible

    def test_behind_viewer_sentinel(self, engine):
        point = engine.project(0.0, 180.0, 0.0, 90.0, W, H)
        assert point.x == (OFFSCREEN_NDC + 1) * W / 2

    def test_behind_viewer_keeps_side(self, engine):
        assert engine.project(0.0, 100.0, 0.0, 90.0, W, H).x > W
        assert engine.project(0.0, 260.0, 0.0, 90.0, W, H).x < 0

    def test_large_altitude_delta_off_screen(self, engine):
        point = engine.project(90.0, 0.0, 0.0, 0.0, W, H)
        assert point.y == (1 - OFFSCREEN_NDC) * H / 2
        assert not point.is_on_screen(W, H)

    def test_near_edge_clamped(self, engine):
        point = engine.project(0.0, 89.999, 0.0, 90.0, W, H)
        assert point.x == (OFFSCREEN_NDC + 1) * W / 2

    def test_non_finite_input_gives_finite_output(self, engine):
        point = engine.project(float("nan"), 0.0, 0.0, 90.0, W, H)
        assert math.isfinite(point.x) and math.isfinite(point.y)
        assert not point.visible
        point = engine.project(0.0, float("inf"), 0.0, 90.0, W, H)
        assert math.isfinite(point.x) and math.isfinite(point.y)


def test_missing_orientation_defaults_to_north_horizon(engine):
    assert engine.project(10.0, 20.0, None, None, W, H) == engine.project(10.0, 20.0, 0.0, 90.0, W, H)


@pytest.mark.parametrize("heading", [0.0, 45.0, 200.0, 350.0])
@pytest.mark.parametrize("azimuth", [0.0, 15.0, 60.0, 210.0, 340.0])
def test_front_camera_mirrors_rear(engine, heading, azimuth):
    rear = engine.project(10.0, azimuth, heading, 95.0, W, H)
    front = engine.project(10.0, azimuth, (heading + 180.0) % 360, 95.0, W, H,
                           CameraFacing.USER)
    assert front.x == pytest.approx(W - rear.x)
    assert front.y == pytest.approx(rear.y)
    assert front.visible == rear.visible


def test_front_camera_looks_backwards(engine):
    point = engine.project(0.0, 180.0, 0.0, 90.0, W, H, CameraFacing.USER)
    assert point.x == pytest.approx(500.0)
    assert point.visible


def test_camera_parameters(engine):
    camera = CameraParameters(width=1280, height=720)
    assert camera.cx == 640
    assert camera.cy == 360
    assert camera.tan_half_fov == pytest.approx(math.tan(math.radians(30)))
    point = engine.project_camera(0.0, 0.0, 0.0, 90.0, camera)
    assert point.as_int() == (640, 360)


@pytest.mark.parametrize("hfov", [0.0, -10.0, 180.0, 200.0])
def test_invalid_fov(hfov):
    with pytest.raises(ValueError):
        ProjectionEngine(hfov=hfov)
