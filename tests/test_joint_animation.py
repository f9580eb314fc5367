"""Tests for the range-of-motion joint animation."""

import math

import pytest

from handmimic.core.errors import UnknownJointError
from handmimic.kinematics.hand_state import create_hand_state, get_joint, set_joint
from handmimic.kinematics.joint_animation import (
    UNLIMITED_RANGE,
    JointAnimator,
    animation_limits,
    ease_in_out_cubic,
    joint_angle_at,
)


def test_easing_endpoints_and_midpoint():
    assert ease_in_out_cubic(0.0) == 0.0
    assert ease_in_out_cubic(0.5) == pytest.approx(0.5)
    assert ease_in_out_cubic(1.0) == pytest.approx(1.0)


def test_phase_boundaries():
    start = joint_angle_at(0.0, initial=0.2, lower=-1.0, upper=1.0, duration=4.0)
    assert start.phase == 1
    assert start.angle == pytest.approx(0.2)

    at_lower = joint_angle_at(1.0, initial=0.2, lower=-1.0, upper=1.0, duration=4.0)
    assert at_lower.phase == 2
    assert at_lower.angle == pytest.approx(-1.0)

    at_upper = joint_angle_at(3.0, initial=0.2, lower=-1.0, upper=1.0, duration=4.0)
    assert at_upper.phase == 3
    assert at_upper.angle == pytest.approx(1.0)

    done = joint_angle_at(4.0, initial=0.2, lower=-1.0, upper=1.0, duration=4.0)
    assert done.completed
    assert done.angle == pytest.approx(0.0)


def test_unlimited_joint_sweeps_quarter_pi():
    limits = animation_limits(None)
    assert limits.lower == -UNLIMITED_RANGE
    assert limits.upper == pytest.approx(math.pi / 4)


def test_animator_writes_clamped_values(l10):
    state = create_hand_state(l10)
    animator = JointAnimator(state, "index_pip", duration=1.0)

    seen = []
    while not animator.completed:
        animator.update(0.05)
        seen.append(get_joint(state, "index_pip"))

    assert max(seen) == pytest.approx(1.8317)
    assert min(seen) >= 0.0
    assert get_joint(state, "index_pip") == pytest.approx(0.0)


def test_animator_starts_from_current_value(l10):
    state = create_hand_state(l10)
    set_joint(state, "middle_pip", 1.0)
    animator = JointAnimator(state, "middle_pip", duration=1.0)

    sample = animator.update(0.0)

    assert sample.angle == pytest.approx(1.0)


def test_animator_unknown_joint(l10):
    with pytest.raises(UnknownJointError):
        JointAnimator(create_hand_state(l10), "elbow")
