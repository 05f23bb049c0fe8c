"""
GLBB Motion Core
Closed-form constant-acceleration kinematics, per-axis motion state machines,
and the ball container that the frame loop drives.
"""

import math
import numpy as np
from dataclasses import dataclass, field
from typing import Optional, Tuple

from clock import Clock

# ──────────────────────────────────────────────
# Constants (screen units)
# ──────────────────────────────────────────────
BALL_RADIUS: float = 30.0        # px, radius at floor level
RADIUS_SHRINK_RATE: float = 0.5  # radius lost per unit of relative height
MAX_RADIUS_SHRINK: float = 0.9   # never shrink below 10% of original radius

# ── Tuning constants ──────────────────────────────────────────────────────────
# Seed the dataclass defaults below; per-instance values can be changed live
# through GLBBController's "set params" command.
STEP_SIZE: float = 5.0           # max displacement consumed per sub-step
FALL_ACCEL: float = 800.0        # gravity scaled to screen units (px/s^2)
RESTITUTION: float = 0.8         # fraction of speed kept after a floor bounce
SETTLE_DISTANCE: float = 0.5     # frame displacement below which a drop may settle
SETTLE_POSITION: float = 0.5     # height below which a drop may settle


# ──────────────────────────────────────────────
# Kinematics
# ──────────────────────────────────────────────
def calculate_distance(velocity: float, acceleration: float, time: float) -> float:
    """Displacement after ``time`` seconds: v*t + a*t^2/2."""
    return velocity * time + 0.5 * acceleration * (time * time)


def calculate_velocity(velocity: float, acceleration: float, time: float) -> float:
    """Velocity after ``time`` seconds: v + a*t."""
    return velocity + acceleration * time


# ──────────────────────────────────────────────
# Horizontal axis
# ──────────────────────────────────────────────
@dataclass
class HorizontalMotion:
    """Decelerating travel that reflects off both ends of a bounded range.

    The state is always evaluated in closed form from the last (re)start:
    each ``advance`` computes velocity and displacement at the elapsed time,
    then restarts from the updated velocity while time remains.
    """
    velocity: float = 0.0
    deceleration: float = 1.0
    step_size: float = STEP_SIZE
    direction: Optional[int] = None   # None = stopped, +1 / -1 = moving
    planned_duration: float = 0.0     # s until velocity decays to zero
    bounces: int = 0
    clock: Clock = field(default_factory=Clock, repr=False, compare=False)

    def is_moving(self) -> bool:
        return self.direction is not None

    def stop(self) -> None:
        self.direction = None

    def play_left(self) -> None:
        self._start(-1)

    def play_right(self) -> None:
        self._start(1)

    def _start(self, direction: int) -> None:
        if self.deceleration == 0:
            raise ValueError("HorizontalMotion: deceleration must be non-zero to start")
        self.clock.reset()
        self.direction = direction
        self.planned_duration = abs(self.velocity) / abs(self.deceleration)

    def distance_at(self, time: float) -> float:
        return calculate_distance(self.velocity, -self.deceleration, time)

    def velocity_at(self, time: float) -> float:
        return calculate_velocity(self.velocity, -self.deceleration, time)

    def advance(self, position: float, bound: Tuple[float, float]) -> float:
        """Move ``position`` by the displacement due since the last restart.

        Args:
            position: Current x position.
            bound: Inclusive ``(low, high)`` travel range; leaving it flips
                   the direction. Several reflections may occur in one call.

        Returns:
            The new position (unchanged when not moving).
        """
        if self.direction is None:
            return position

        low, high = bound
        direction = self.direction
        elapsed = self.clock.elapsed()
        # Clamp so a slow frame never overruns the stopping point
        t = min(elapsed, self.planned_duration)
        self.velocity = self.velocity_at(t)
        distance = self.distance_at(t)

        while distance > 0.0:
            step = min(distance, self.step_size)
            distance -= step
            position += step * direction
            if not low <= position <= high:
                direction = -direction
                self.bounces += 1

        if elapsed < self.planned_duration:
            self._start(direction)
        else:
            self.stop()
        return position


# ──────────────────────────────────────────────
# Vertical axis
# ──────────────────────────────────────────────
@dataclass
class VerticalMotion:
    """Drop and bounce with speed loss, settling once motion is negligible.

    A frame-incremental integrator: velocity and displacement are evaluated
    over the time since the previous ``advance`` and the clock is re-based
    every call. ``accel`` stays constant; only ``velocity`` is scaled on a
    bounce.

    Position is the height above the floor (0). ``direction`` is -1.0 from
    ``fall()`` and flips on every floor contact.

    The caller must clamp the returned position to ``>= 0`` after every
    ``advance`` (GLBBController.step does). Without the clamp a bounce can
    leave the ball below the floor, and the settle test never passes.
    """
    playing: bool = False
    direction: float = 0.0
    accel: float = 0.0
    velocity: float = 0.0
    bounces: int = 0
    fall_accel: float = FALL_ACCEL
    restitution: float = RESTITUTION
    step_size: float = STEP_SIZE
    settle_distance: float = SETTLE_DISTANCE
    settle_position: float = SETTLE_POSITION
    clock: Clock = field(default_factory=Clock, repr=False, compare=False)

    def is_moving(self) -> bool:
        return self.playing

    def is_dropping(self) -> bool:
        return math.copysign(1.0, self.direction) < 0

    def fall(self) -> None:
        self.accel = self.fall_accel
        self.velocity = 0.0
        self.direction = -1.0
        self.playing = True
        self.clock.reset()

    def stop(self) -> None:
        self.playing = False

    def advance(self, position: float, ceiling: Optional[float] = None) -> float:
        """Integrate one frame. ``ceiling`` is accepted for call symmetry and ignored."""
        if not self.playing:
            return position

        t = self.clock.elapsed()
        accel = self.accel * self.direction
        self.velocity = calculate_velocity(self.velocity, accel, t)
        distance = calculate_distance(self.velocity, accel, t)

        # A negative distance is consumed in a single step
        remaining = distance
        while remaining != 0.0:
            step = min(remaining, self.step_size)
            remaining -= step
            position -= step * self.direction
            if position <= 0.0:
                # Floor hit: the rest of this frame's distance is dropped
                self.direction = -self.direction
                self.velocity *= self.restitution
                self.bounces += 1
                break

        self.clock.reset()

        if abs(distance) <= self.settle_distance and abs(position) <= self.settle_position:
            self.playing = False
        return position


# ──────────────────────────────────────────────
# Ball container
# ──────────────────────────────────────────────
@dataclass
class Ball:
    """Ball inside a panel: x/y position (y up from the floor) plus both motions."""
    pos: np.ndarray = field(default_factory=lambda: np.zeros(2, dtype=np.float32))
    original_radius: float = BALL_RADIUS
    size: np.ndarray = field(default_factory=lambda: np.zeros(2, dtype=np.float32))
    horizontal: HorizontalMotion = field(default_factory=HorizontalMotion)
    vertical: VerticalMotion = field(default_factory=VerticalMotion)

    def __post_init__(self):
        self.pos = np.array(self.pos, dtype=np.float32)
        self.size = np.array(self.size, dtype=np.float32)

    def is_moving(self) -> bool:
        return self.horizontal.is_moving() or self.vertical.is_moving()

    def radius(self) -> float:
        """Radius shrunk with height, so a higher ball looks further away."""
        height = float(self.size[1])
        if height <= 0.0:
            return self.original_radius
        y = max(float(self.pos[1]), 0.0) / height
        scale = 1.0 - min(RADIUS_SHRINK_RATE * y, MAX_RADIUS_SHRINK)
        return self.original_radius * scale

    def pos_x_max(self) -> float:
        return float(self.size[0]) - self.radius() * 2.0

    def pos_y_max(self) -> float:
        return float(self.size[1]) - self.radius() * 2.0

    def pos_max(self) -> np.ndarray:
        """Largest in-panel position per axis, never below 1."""
        span = self.size - np.float32(self.radius() * 2.0)
        return np.maximum(span, 1.0).astype(np.float32)

    def clamp(self) -> None:
        self.pos = np.clip(self.pos, 0.0, self.pos_max()).astype(np.float32)

    def to_screen(self, rect) -> Tuple[float, float]:
        """Ball position → screen point; ``rect`` is (min_x, min_y, max_x, max_y), y down."""
        min_x, _, _, max_y = rect
        r = self.radius()
        x = float(self.pos[0]) + min_x + r
        y = max_y - r - float(self.pos[1]) - 2.0
        return x, y

    def from_screen(self, rect, point) -> Tuple[float, float]:
        """Screen point → ball position inside ``rect``."""
        min_x, _, _, max_y = rect
        r = self.radius()
        x = point[0] - min_x - r
        y = max_y - point[1] - r
        return x, y
