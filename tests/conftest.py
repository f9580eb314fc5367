"""Shared fixtures for the handmimic test suite."""

import numpy as np
import pytest

from handmimic.core import Config
from handmimic.kinematics.metadata import (
    FingerMetadata,
    JointLimit,
    JointMetadata,
    JointType,
    RobotHandMetadata,
)
from handmimic.kinematics.models import LINKER_L10_RIGHT
from handmimic.tracking.landmarks import (
    NUM_HAND_LANDMARKS,
    HandLandmarkIndex,
    HandTrackingResult,
    landmarks_from_array,
)


def make_hand(wrist=(0.5, 0.5, 0.0), middle_root=(0.5, 0.3, 0.0),
              handedness="Right", score=0.9, count=NUM_HAND_LANDMARKS):
    """
    Synthetic tracked hand.

    Landmarks are spread between the wrist and the middle finger root so the
    two points that matter for retargeting are exact.
    """
    wrist = np.asarray(wrist, dtype=np.float64)
    middle_root = np.asarray(middle_root, dtype=np.float64)
    points = np.array([
        wrist + (middle_root - wrist) * (i / 9.0) + np.array([0.001 * i, 0.0, 0.0])
        for i in range(count)
    ])
    points[HandLandmarkIndex.WRIST] = wrist
    if count > HandLandmarkIndex.MIDDLE_MCP:
        points[HandLandmarkIndex.MIDDLE_MCP] = middle_root
    return HandTrackingResult(
        handedness=handedness,
        score=score,
        landmarks=landmarks_from_array(points),
    )


def make_joint(name, parent, child, position=(0.0, 0.0, 0.01), axis=(0.0, 1.0, 0.0),
               lower=-1.0, upper=1.0, joint_type=JointType.REVOLUTE):
    limits = JointLimit(lower=lower, upper=upper) if lower is not None else None
    return JointMetadata(
        name=name,
        type=joint_type,
        position=position,
        axis=axis,
        limits=limits,
        parent_link=parent,
        child_link=child,
    )


def make_hand_metadata(fingers, hand_id="test-hand", base_link="base"):
    """Build metadata from {finger_name: [JointMetadata, ...]}."""
    return RobotHandMetadata(
        id=hand_id,
        name=hand_id,
        brand="Test",
        model="T1",
        handedness="right",
        base_link=base_link,
        fingers={
            name: FingerMetadata(name=name, joints=tuple(joints))
            for name, joints in fingers.items()
        },
    )


@pytest.fixture
def l10():
    return LINKER_L10_RIGHT


@pytest.fixture
def hand_factory():
    return make_hand


@pytest.fixture
def hand():
    return make_hand()


@pytest.fixture
def two_joint_finger():
    """Index finger with two joints hanging from the base."""
    return make_hand_metadata({
        "index": [
            make_joint("index_a", "base", "link_a", position=(0.0, 0.0, 0.1)),
            make_joint("index_b", "link_a", "link_b", position=(0.0, 0.0, 0.05)),
        ],
    })


@pytest.fixture
def cyclic_metadata():
    """Two joints whose parent links point at each other."""
    return make_hand_metadata({
        "index": [
            make_joint("loop_a", "link_b", "link_a"),
            make_joint("loop_b", "link_a", "link_b"),
        ],
    }, hand_id="cyclic-hand")


@pytest.fixture
def default_config():
    return Config.from_dict({})


@pytest.fixture
def metadata_factory():
    return make_hand_metadata


@pytest.fixture
def joint_factory():
    return make_joint
