"""
Procedural joint range-of-motion animation.

Sweeps a joint through its full range: current value -> lower limit ->
upper limit -> 0, with cubic ease-in-out inside each phase. Used to check a
freshly loaded hand model visually.
"""

import math
from dataclasses import dataclass
from typing import Optional

from handmimic.core import get_logger
from .hand_state import RobotHandState, get_joint, set_joint
from .metadata import JointLimit


ANIMATION_DURATION = 3.0  # seconds
PHASE_1_END = 0.25  # go to lower limit
PHASE_2_END = 0.75  # go to upper limit, then back to zero

# Sweep range for joints without limits
UNLIMITED_RANGE = math.pi / 4


@dataclass
class AnimationSample:
    angle: float
    completed: bool
    phase: int


def ease_in_out_cubic(t: float) -> float:
    """Smooth cubic ease-in-out over [0, 1]."""
    if t < 0.5:
        return 4 * t * t * t
    return 1 - math.pow(-2 * t + 2, 3) / 2


def animation_limits(limits: Optional[JointLimit]) -> JointLimit:
    """Limits to animate between; unconstrained joints sweep +/-45 degrees."""
    if limits is None:
        return JointLimit(lower=-UNLIMITED_RANGE, upper=UNLIMITED_RANGE)
    return limits


def joint_angle_at(
    elapsed: float,
    initial: float,
    lower: float,
    upper: float,
    duration: float = ANIMATION_DURATION,
) -> AnimationSample:
    """
    Angle of the sweep at a given time.

    Args:
        elapsed: Seconds since the animation started
        initial: Joint value when the animation started
        lower: Lower limit
        upper: Upper limit
        duration: Total animation length in seconds
    """
    progress = min(max(elapsed / duration, 0.0), 1.0) if duration > 0 else 1.0

    if progress < PHASE_1_END:
        phase = 1
        phase_progress = progress / PHASE_1_END
        start, end = initial, lower
    elif progress < PHASE_2_END:
        phase = 2
        phase_progress = (progress - PHASE_1_END) / (PHASE_2_END - PHASE_1_END)
        start, end = lower, upper
    else:
        phase = 3
        phase_progress = (progress - PHASE_2_END) / (1.0 - PHASE_2_END)
        start, end = upper, 0.0

    eased = ease_in_out_cubic(phase_progress)
    return AnimationSample(
        angle=start + (end - start) * eased,
        completed=progress >= 1.0,
        phase=phase,
    )


class JointAnimator:
    """Drives one joint of a hand state through its range of motion."""

    def __init__(self, state: RobotHandState, joint_name: str,
                 duration: float = ANIMATION_DURATION):
        self.logger = get_logger("kinematics.animation")
        self.state = state
        self.joint_name = joint_name
        self.duration = duration

        # Fails early with UnknownJointError for a bad name
        self._initial = get_joint(state, joint_name)
        self._limits = animation_limits(state.joints[joint_name].limits)
        self._elapsed = 0.0
        self._completed = False

    @property
    def completed(self) -> bool:
        return self._completed

    def update(self, dt: float) -> AnimationSample:
        """Advance by dt seconds and write the new angle into the state."""
        self._elapsed += dt
        sample = joint_angle_at(
            self._elapsed,
            self._initial,
            self._limits.lower,
            self._limits.upper,
            self.duration,
        )
        set_joint(self.state, self.joint_name, sample.angle)
        if sample.completed and not self._completed:
            self._completed = True
            self.logger.debug(f"Animation of '{self.joint_name}' completed")
        return sample
