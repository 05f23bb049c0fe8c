"""
Motion Preset System
Deterministic demo scenarios (slides, wall bounces, drops) run headless on a
manual time source at a fixed frame rate.
"""

from clock import ManualTimeSource
from controller import GLBBController

# Frame length for preset runs (60 fps)
_DT = 1 / 60
_MAX_TIME = 30.0


def _make_controller(width: float, height: float, pos) -> GLBBController:
    ctrl = GLBBController(time_source=ManualTimeSource(), size=(width, height))
    ctrl.reset(pos=pos)
    return ctrl


def _run(ctrl: GLBBController, track=None) -> float:
    """Step frames until the ball is still; ``track(ctrl)`` is called after each frame."""
    t = 0.0
    while t < _MAX_TIME and ctrl.ball.is_moving():
        ctrl.time_source.advance(_DT)
        ctrl.step()
        t += _DT
        if track is not None:
            track(ctrl)
    return t


class MotionPreset:
    """Each preset places the ball → starts motion → runs frames → returns a result dict."""

    @staticmethod
    def scenario_1_slide_right(run=True) -> dict:
        """Slide right from the left wall; decelerates to a stop inside the panel."""
        ctrl = _make_controller(600.0, 400.0, pos=[0.0, 0.0])
        ctrl.set_velocity(200.0)
        ctrl.set_deceleration(100.0)
        ctrl.play_right()

        elapsed = 0.0
        peak = {"x": float(ctrl.ball.pos[0])}

        def track(c):
            peak["x"] = max(peak["x"], float(c.ball.pos[0]))

        if run:
            elapsed = _run(ctrl, track)
        return {"ctrl": ctrl, "ball": ctrl.ball, "elapsed": elapsed,
                "start_x": 0.0, "peak_x": peak["x"]}

    @staticmethod
    def scenario_2_slide_left(run=True) -> dict:
        """Mirror of scenario 1: slide left from the right wall."""
        ctrl = _make_controller(600.0, 400.0, pos=[600.0, 0.0])
        start_x = float(ctrl.ball.pos[0])   # clamped to pos_x_max
        ctrl.set_velocity(200.0)
        ctrl.set_deceleration(100.0)
        ctrl.play_left()

        elapsed = 0.0
        if run:
            elapsed = _run(ctrl)
        return {"ctrl": ctrl, "ball": ctrl.ball, "elapsed": elapsed, "start_x": start_x}

    @staticmethod
    def scenario_3_wall_bounce(run=True) -> dict:
        """Fast slide in a narrow panel: reflects off both walls several times."""
        ctrl = _make_controller(160.0, 400.0, pos=[50.0, 0.0])
        ctrl.set_velocity(600.0)
        ctrl.set_deceleration(100.0)
        ctrl.play_right()

        elapsed = 0.0
        if run:
            elapsed = _run(ctrl)
        return {"ctrl": ctrl, "ball": ctrl.ball, "elapsed": elapsed,
                "bounces": ctrl.ball.horizontal.bounces}

    @staticmethod
    def scenario_4_drop(height: float = 300.0, run=True) -> dict:
        """Drop from ``height``; bounces lose speed until the ball settles on the floor."""
        ctrl = _make_controller(600.0, 400.0, pos=[100.0, height])
        start_y = float(ctrl.ball.pos[1])
        ctrl.fall()

        elapsed = 0.0
        rebound = {"peak_y": 0.0}

        def track(c):
            if c.ball.vertical.bounces >= 1:
                rebound["peak_y"] = max(rebound["peak_y"], float(c.ball.pos[1]))

        if run:
            elapsed = _run(ctrl, track)
        return {"ctrl": ctrl, "ball": ctrl.ball, "elapsed": elapsed,
                "start_y": start_y, "rebound_peak_y": rebound["peak_y"],
                "bounces": ctrl.ball.vertical.bounces}

    @staticmethod
    def scenario_5_drop_and_slide(run=True) -> dict:
        """Both axes at once: slide right while dropping."""
        ctrl = _make_controller(600.0, 400.0, pos=[0.0, 250.0])
        ctrl.set_velocity(150.0)
        ctrl.set_deceleration(50.0)
        ctrl.play_right()
        ctrl.fall()

        elapsed = 0.0
        if run:
            elapsed = _run(ctrl)
        return {"ctrl": ctrl, "ball": ctrl.ball, "elapsed": elapsed}
