"""
GLBBController — Frame Loop + Panel Actions

Owns one Ball and drives both of its motions once per frame, in the order the
panel widget uses: clamp → horizontal advance → vertical advance → clamp.

The UI layer calls:
  ctrl.resize(w, h)             — panel size, recomputed every frame
  ctrl.step()                   — advance one frame; True while a redraw is needed
  ctrl.pending_events           — list of dicts (bounce, stopped) to consume
  ctrl.play_left() / fall() / … — button actions
  ctrl.execute_command(text)    — JSON command interface
"""

import json
import math
import time
import numpy as np

from clock import Clock
from physics import Ball, HorizontalMotion, VerticalMotion, BALL_RADIUS


# ── Input validation (JSON accepts NaN / Infinity) ────────────────────────────
def _finite(value, name: str) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"{name} must be finite, got {value!r}")
    return number


class GLBBController:
    """Frame stepping + panel state for a single ball."""

    # ── Class-level constants ─────────────────────────────────────────────────
    NUDGE_STEP       = 100.0
    MIN_VELOCITY     = 0.0
    MIN_DECELERATION = 1.0
    DEFAULT_SIZE     = (600.0, 400.0)

    # Tuning constants settable via {"cmd": "set", "params": {...}}
    # name → [(motion attribute on Ball, field name), ...]
    PARAMS = {
        "STEP_SIZE":       [("horizontal", "step_size"), ("vertical", "step_size")],
        "FALL_ACCEL":      [("vertical", "fall_accel")],
        "RESTITUTION":     [("vertical", "restitution")],
        "SETTLE_DISTANCE": [("vertical", "settle_distance")],
        "SETTLE_POSITION": [("vertical", "settle_position")],
    }

    # ── Constructor ───────────────────────────────────────────────────────────

    def __init__(self, time_source=None, size=DEFAULT_SIZE, radius: float = BALL_RADIUS):
        self.time_source = time_source or time.perf_counter
        self.ball = self._make_ball(size, radius)

        self.mode = "idle"              # "idle" | "running"
        self._drag_secondary = False

        self.status_msg = ""
        self.pending_events: list[dict] = []

    def _make_ball(self, size, radius: float) -> Ball:
        return Ball(
            original_radius=radius,
            size=size,
            horizontal=HorizontalMotion(clock=Clock(self.time_source)),
            vertical=VerticalMotion(clock=Clock(self.time_source)),
        )

    def reset(self, pos=None) -> None:
        """Fresh ball (same panel size and radius) at ``pos`` or the origin."""
        self.ball = self._make_ball(self.ball.size.copy(), self.ball.original_radius)
        if pos is not None:
            self.ball.pos = np.array(pos, dtype=np.float32)
            self.ball.clamp()
        self.mode = "idle"
        self._drag_secondary = False
        self.pending_events.clear()
        self.status_msg = "Reset."

    def resize(self, width: float, height: float) -> None:
        self.ball.size = np.array([width, height], dtype=np.float32)

    # ──────────────────────────────────────────────────────────────────────────
    # Main loop
    # ──────────────────────────────────────────────────────────────────────────

    def step(self) -> bool:
        """Advance both motions by the time elapsed since their last update.

        Returns:
            True while the ball is still moving (the UI should redraw again).
        """
        ball = self.ball
        motions = (("x", ball.horizontal), ("y", ball.vertical))
        was_moving = {axis: m.is_moving() for axis, m in motions}
        bounces = {axis: m.bounces for axis, m in motions}

        ball.clamp()
        max_x, max_y = ball.pos_max()
        ball.pos[0] = ball.horizontal.advance(float(ball.pos[0]), (0.0, float(max_x)))
        ball.pos[1] = ball.vertical.advance(float(ball.pos[1]), float(max_y))
        ball.clamp()

        for axis, motion in motions:
            hits = motion.bounces - bounces[axis]
            if hits:
                self.pending_events.append({"type": "bounce", "axis": axis, "count": hits})
            if was_moving[axis] and not motion.is_moving():
                self.pending_events.append({"type": "stopped", "axis": axis})

        if ball.is_moving():
            self.mode = "running"
            return True
        if self.mode == "running":
            self.status_msg = "Stopped."
        self.mode = "idle"
        return False

    def simulate(self, dt: float = 1 / 60, max_time: float = 30.0) -> float:
        """
        Step frames of ``dt`` seconds until the ball is still or max_time is reached.

        Requires a manually steppable time source (e.g. ``ManualTimeSource``).

        Returns:
            Simulated time in seconds.
        """
        advance = getattr(self.time_source, "advance", None)
        if advance is None:
            raise ValueError("simulate: time source cannot be stepped manually")

        t = 0.0
        while t < max_time and self.ball.is_moving():
            advance(dt)
            self.step()
            t += dt
        x, y = (float(v) for v in self.ball.pos)
        print(f"[SIM] {t:.3f}s simulated  pos=({x:.2f}, {y:.2f})  moving={self.ball.is_moving()}")
        return t

    # ──────────────────────────────────────────────────────────────────────────
    # Panel actions
    # ──────────────────────────────────────────────────────────────────────────

    def play_left(self) -> None:
        self._play(-1)

    def play_right(self) -> None:
        self._play(1)

    def _play(self, direction: int) -> None:
        h = self.ball.horizontal
        if h.is_moving():
            self.status_msg = "Already moving."
            return
        try:
            if direction < 0:
                h.play_left()
            else:
                h.play_right()
        except ValueError as exc:
            self.status_msg = f"Config error: {exc}"
            return
        self.mode = "running"
        side = "left" if direction < 0 else "right"
        self.status_msg = f"Moving {side} at {h.velocity:.4g} px/s."

    def fall(self) -> None:
        self.ball.vertical.fall()
        self.mode = "running"
        self.status_msg = "Dropping."

    def stop(self) -> None:
        """Pause button: stops both axes immediately."""
        self.ball.horizontal.stop()
        self.ball.vertical.stop()
        self.mode = "idle"
        self.status_msg = "Stopped."

    def nudge(self, dx: float = 0.0, dy: float = 0.0) -> None:
        self.ball.pos = self.ball.pos + np.array([dx, dy], dtype=np.float32)
        self.ball.clamp()

    def set_velocity(self, velocity: float) -> bool:
        """Initial horizontal speed; locked while the ball slides.

        Raises:
            ValueError: ``velocity`` is not a finite number.
        """
        velocity = _finite(velocity, "velocity")
        if self.ball.horizontal.is_moving():
            self.status_msg = "velocity: locked while moving."
            return False
        self.ball.horizontal.velocity = max(self.MIN_VELOCITY, velocity)
        return True

    def set_deceleration(self, deceleration: float) -> bool:
        """Horizontal deceleration; locked while the ball slides.

        Raises:
            ValueError: ``deceleration`` is not a finite number.
        """
        deceleration = _finite(deceleration, "deceleration")
        if self.ball.horizontal.is_moving():
            self.status_msg = "deceleration: locked while moving."
            return False
        self.ball.horizontal.deceleration = max(self.MIN_DECELERATION, deceleration)
        return True

    def drag_to(self, rect, point, secondary: bool = False) -> bool:
        """Move the ball under the pointer; ignored while it moves.

        A drag with the secondary button drops the ball on ``release()``.
        """
        if self.ball.is_moving():
            return False
        x, y = self.ball.from_screen(rect, point)
        self.ball.pos = np.array([x, y], dtype=np.float32)
        self.ball.clamp()
        self._drag_secondary = secondary
        return True

    def release(self) -> None:
        if self._drag_secondary and not self.ball.is_moving():
            self.fall()
        self._drag_secondary = False

    # ──────────────────────────────────────────────────────────────────────────
    # JSON command interface
    # ──────────────────────────────────────────────────────────────────────────

    def get_state_json(self) -> str:
        """Return current state as a compact single-line set-command JSON (no clocks)."""
        h, v = self.ball.horizontal, self.ball.vertical
        return json.dumps({
            "cmd": "set",
            "pos": [round(float(self.ball.pos[0]), 3), round(float(self.ball.pos[1]), 3)],
            "velocity": round(h.velocity, 4),
            "deceleration": round(h.deceleration, 4),
            "moving": {"x": h.is_moving(), "y": v.is_moving()},
        }, separators=(',', ':'))

    def get_obs(self) -> np.ndarray:
        """Flat float32 vector: [x, y, signed horizontal velocity, vertical velocity]."""
        h, v = self.ball.horizontal, self.ball.vertical
        return np.array([
            float(self.ball.pos[0]),
            float(self.ball.pos[1]),
            h.velocity * (h.direction or 0),
            v.velocity,
        ], dtype=np.float32)

    def execute_command(self, text: str) -> None:
        """Parse a JSON command string and dispatch to handlers."""
        if not text:
            print("[CMD] execute_command: empty text")
            return
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            print(f"[CMD] JSON parse error: {exc}")
            self.status_msg = f"JSON error: {exc}"
            return
        if not isinstance(data, dict):
            self.status_msg = "Command must be a JSON object."
            return
        cmd = str(data.get("cmd", "")).lower().strip()
        print(f"[CMD] cmd={cmd}")
        if cmd == "play":
            self._cmd_play(data)
        elif cmd == "stop":
            self.stop()
        elif cmd == "fall":
            self.fall()
        elif cmd == "set":
            self._cmd_set(data)
        else:
            self.status_msg = f"Unknown cmd '{cmd}'. Use play/stop/fall/set."

    def _cmd_play(self, data: dict) -> None:
        side = str(data.get("direction", "")).lower()
        if side == "left":
            self.play_left()
        elif side == "right":
            self.play_right()
        else:
            self.status_msg = "play: 'direction' must be 'left' or 'right'."

    def _cmd_set(self, data: dict) -> None:
        """set: update position / horizontal inputs OR tuning params."""
        params_data = data.get("params")
        if params_data is not None:
            self._cmd_params(params_data)
            return

        # Validate every field before touching any state
        try:
            pos = data.get("pos")
            if pos is not None:
                pos = [_finite(pos[0], "pos"), _finite(pos[1], "pos")]
            velocity = _finite(data["velocity"], "velocity") if "velocity" in data else None
            deceleration = (_finite(data["deceleration"], "deceleration")
                            if "deceleration" in data else None)
        except (TypeError, ValueError, IndexError, KeyError) as exc:
            self.status_msg = f"set error: {exc}"
            return

        updated = []
        self.status_msg = ""
        if pos is not None:
            self.ball.pos = np.array(pos, dtype=np.float32)
            self.ball.clamp()
            updated.append("pos")
        if velocity is not None and self.set_velocity(velocity):
            updated.append("velocity")
        if deceleration is not None and self.set_deceleration(deceleration):
            updated.append("deceleration")
        if not updated:
            if not self.status_msg:
                self.status_msg = "set: nothing to update."
            return
        self.status_msg = f"set: {updated}"

    def _cmd_params(self, params: dict) -> None:
        """set params: update tuning fields on the ball's motions by constant name."""
        if not isinstance(params, dict):
            self.status_msg = "set: 'params' must be an object."
            return
        updated, skipped = [], []
        for k, v in params.items():
            targets = self.PARAMS.get(k)
            try:
                value = _finite(v, k)
            except (TypeError, ValueError):
                targets = None
            # All params are non-negative; a zero step would never consume distance
            if not targets or value < 0 or (k == "STEP_SIZE" and value == 0):
                skipped.append(k)
                continue
            for motion_name, attr in targets:
                setattr(getattr(self.ball, motion_name), attr, value)
            updated.append(f"{k}={value:.4g}")

        msg = f"params: set {updated}"
        if skipped:
            msg += f"  (rejected: {skipped})"
        print(f"[CMD] {msg}")
        self.status_msg = msg
