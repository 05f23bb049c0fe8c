"""
Tests for the Motion Preset System.
Each scenario is checked for its expected physical outcome, and run=False
calls are checked to only place the ball and start motion.
"""

import sys
import os
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from presets import MotionPreset


class TestScenario1SlideRight:
    """Slide right: stops inside the panel without touching the far wall."""

    def test_stops_inside_panel(self):
        result = MotionPreset.scenario_1_slide_right()
        ball = result["ball"]
        x = float(ball.pos[0])
        assert 150.0 < x < 200.0, f"final x={x:.2f} should be just short of v^2/2a = 200"
        assert x < ball.pos_x_max()
        assert ball.horizontal.bounces == 0

    def test_peak_is_final_position(self):
        result = MotionPreset.scenario_1_slide_right()
        assert result["peak_x"] == pytest.approx(float(result["ball"].pos[0]))

    def test_simulation_completes(self):
        result = MotionPreset.scenario_1_slide_right()
        assert result["elapsed"] < 3.0
        assert not result["ball"].is_moving()


class TestScenario2SlideLeft:

    def test_moves_left_from_wall(self):
        result = MotionPreset.scenario_2_slide_left()
        x = float(result["ball"].pos[0])
        assert result["start_x"] == pytest.approx(540.0)
        assert result["start_x"] - 200.0 < x < result["start_x"] - 150.0
        assert result["ball"].horizontal.bounces == 0


class TestScenario3WallBounce:
    """Fast slide in a narrow panel: several reflections, ends inside."""

    def test_reflects_off_walls(self):
        result = MotionPreset.scenario_3_wall_bounce()
        assert result["bounces"] >= 3, f"only {result['bounces']} reflections"

    def test_ends_inside_panel(self):
        result = MotionPreset.scenario_3_wall_bounce()
        ball = result["ball"]
        assert 0.0 <= float(ball.pos[0]) <= ball.pos_x_max()
        assert not ball.is_moving()


class TestScenario4Drop:
    """Drop: each bounce loses speed until the ball settles on the floor."""

    def test_settles_on_floor(self):
        result = MotionPreset.scenario_4_drop()
        ball = result["ball"]
        assert not ball.is_moving()
        assert float(ball.pos[1]) <= 0.5
        assert result["elapsed"] < 30.0

    def test_rebound_lower_than_start(self):
        result = MotionPreset.scenario_4_drop()
        assert 0.0 < result["rebound_peak_y"] < result["start_y"]

    def test_bounces_several_times(self):
        result = MotionPreset.scenario_4_drop()
        assert result["bounces"] >= 3


class TestScenario5DropAndSlide:

    def test_both_axes_finish(self):
        result = MotionPreset.scenario_5_drop_and_slide()
        ball = result["ball"]
        assert not ball.horizontal.is_moving()
        assert not ball.vertical.is_moving()
        assert float(ball.pos[0]) > 100.0
        assert float(ball.pos[1]) <= 0.5


class TestSetupOnly:
    """run=False places the ball and starts motion without stepping frames."""

    SCENARIOS = [
        MotionPreset.scenario_1_slide_right,
        MotionPreset.scenario_2_slide_left,
        MotionPreset.scenario_3_wall_bounce,
        MotionPreset.scenario_4_drop,
        MotionPreset.scenario_5_drop_and_slide,
    ]

    @pytest.mark.parametrize("scenario_fn", SCENARIOS)
    def test_elapsed_is_zero(self, scenario_fn):
        assert scenario_fn(run=False)["elapsed"] == 0.0

    @pytest.mark.parametrize("scenario_fn", SCENARIOS)
    def test_ball_is_moving(self, scenario_fn):
        result = scenario_fn(run=False)
        assert result["ball"].is_moving()
        assert result["ctrl"].mode == "running"

    @pytest.mark.parametrize("scenario_fn", SCENARIOS)
    def test_ball_within_panel(self, scenario_fn):
        ball = scenario_fn(run=False)["ball"]
        x, y = float(ball.pos[0]), float(ball.pos[1])
        assert 0.0 <= x <= ball.pos_x_max()
        assert 0.0 <= y <= ball.pos_y_max()
