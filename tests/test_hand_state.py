"""Tests for robot hand runtime state."""

import pytest

from handmimic.core.errors import UnknownJointError
from handmimic.kinematics.hand_state import (
    create_hand_state,
    get_joint,
    get_joint_count,
    get_joint_names,
    get_joint_values,
    reset_hand_state,
    set_joint,
    set_joints,
)
from handmimic.kinematics.models import LINKER_L10_RIGHT


LIMITED_L10_JOINTS = [j.name for j in LINKER_L10_RIGHT.all_joints() if j.is_limited]


def test_create_registers_every_joint_at_zero(l10):
    state = create_hand_state(l10)

    assert get_joint_count(state) == 20
    assert get_joint_names(state) == l10.joint_names
    assert all(v == 0.0 for v in get_joint_values(state).values())


def test_states_are_independent(l10):
    a = create_hand_state(l10)
    b = create_hand_state(l10)

    set_joint(a, "index_pip", 1.0)

    assert get_joint(a, "index_pip") == 1.0
    assert get_joint(b, "index_pip") == 0.0


def test_set_joint_clamps_to_limits(l10):
    state = create_hand_state(l10)

    assert set_joint(state, "thumb_cmc_roll", 5.0) == pytest.approx(1.1339)
    assert get_joint(state, "thumb_cmc_roll") == pytest.approx(1.1339)

    assert set_joint(state, "thumb_cmc_roll", -1.0) == 0.0
    assert get_joint(state, "thumb_cmc_roll") == 0.0


def test_set_joint_within_limits_is_stored_as_is(l10):
    state = create_hand_state(l10)
    assert set_joint(state, "middle_pip", 0.7) == pytest.approx(0.7)


def test_set_joint_unlimited_joint_is_not_clamped(metadata_factory, joint_factory):
    metadata = metadata_factory({
        "index": [joint_factory("free", "base", "link", lower=None)],
    })
    state = create_hand_state(metadata)

    assert set_joint(state, "free", 42.0) == 42.0


def test_set_joint_unknown_name_raises(l10):
    state = create_hand_state(l10)

    with pytest.raises(UnknownJointError) as exc_info:
        set_joint(state, "wrist_twist", 0.1)

    assert exc_info.value.joint_name == "wrist_twist"
    assert "linker-l10-right" in str(exc_info.value)
    # Still a KeyError for callers that catch lookups generically
    assert isinstance(exc_info.value, KeyError)


def test_set_joints_skips_unknown_names(l10):
    state = create_hand_state(l10)

    applied = set_joints(state, {
        "index_pip": 0.5,
        "ring_dip": 9.0,
        "not_a_joint": 1.0,
    })

    assert set(applied) == {"index_pip", "ring_dip"}
    assert applied["ring_dip"] == pytest.approx(0.628)
    assert "not_a_joint" not in get_joint_values(state)


def test_reset_returns_all_joints_to_zero(l10):
    state = create_hand_state(l10)
    set_joints(state, {name: 0.3 for name in l10.joint_names})

    reset_hand_state(state)

    assert all(v == 0.0 for v in get_joint_values(state).values())


def test_thumb_sequence_end_to_end(l10):
    state = create_hand_state(l10)

    set_joint(state, "thumb_cmc_roll", 5.0)
    set_joint(state, "thumb_ip", 0.4)
    values = get_joint_values(state)
    assert values["thumb_cmc_roll"] == pytest.approx(1.1339)
    assert values["thumb_ip"] == pytest.approx(0.4)

    reset_hand_state(state)
    assert get_joint(state, "thumb_cmc_roll") == 0.0
    assert get_joint(state, "thumb_ip") == 0.0


def test_set_joints_leaves_untouched_joints_at_zero(l10):
    state = create_hand_state(l10)

    applied = set_joints(state, {"thumb_cmc_roll": 0.8, "thumb_cmc_pitch": 0.3})

    assert applied == pytest.approx({"thumb_cmc_roll": 0.8, "thumb_cmc_pitch": 0.3})
    values = get_joint_values(state)
    for name, value in values.items():
        if name not in applied:
            assert value == 0.0, name


def test_set_joints_unknown_name_with_known_name(l10):
    state = create_hand_state(l10)

    applied = set_joints(state, {"nonexistent_joint": 1.0, "thumb_cmc_roll": 0.5})

    assert applied == pytest.approx({"thumb_cmc_roll": 0.5})
    assert get_joint(state, "thumb_cmc_roll") == pytest.approx(0.5)


@pytest.mark.parametrize("value", [float("inf"), -float("inf"), 1e6, -1e6])
@pytest.mark.parametrize("name", LIMITED_L10_JOINTS)
def test_set_joint_stays_within_limits(l10, name, value):
    state = create_hand_state(l10)
    limits = l10.joint_lookup()[name].limits

    stored = set_joint(state, name, value)

    assert limits.lower <= stored <= limits.upper
    assert get_joint(state, name) == stored
