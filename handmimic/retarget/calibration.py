"""
Palm-length calibration between a tracked hand and a robot hand.

The tracked palm length is the wrist (landmark 0) to middle finger root
(landmark 9) distance in landmark units. The robot palm length is the
distance from the hand origin (the base link) to the world position of the
middle finger's base joint. Their ratio scales tracked offsets onto the robot.

Calibration never raises: when any input is missing or degenerate the
result is None and callers fall back to a default scale for that tick.
"""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from handmimic.core import get_logger
from handmimic.core.errors import GraphError
from handmimic.kinematics.metadata import FingerName, RobotHandMetadata
from handmimic.kinematics.skeleton import world_position
from handmimic.tracking.landmarks import HandLandmarkIndex, HandTrackingResult, landmarks_to_array


logger = get_logger("retarget.calibration")


@dataclass(frozen=True)
class PalmCalibration:
    """Result of one calibration pass."""
    tracked_palm_length: float
    robot_palm_length: float
    scale_factor: float

    def to_dict(self) -> dict:
        return {
            "tracked_palm_length": self.tracked_palm_length,
            "robot_palm_length": self.robot_palm_length,
            "scale_factor": self.scale_factor,
        }


def tracked_palm_length(result: Optional[HandTrackingResult]) -> Optional[float]:
    """Wrist to middle-root distance of a tracked hand, None if landmarks are missing."""
    if result is None:
        return None
    wrist = result.landmark(HandLandmarkIndex.WRIST)
    middle_root = result.landmark(HandLandmarkIndex.MIDDLE_MCP)
    if wrist is None or middle_root is None:
        return None
    length = float(np.linalg.norm(middle_root.as_array() - wrist.as_array()))
    return length if math.isfinite(length) else None


def robot_palm_length(metadata: Optional[RobotHandMetadata]) -> Optional[float]:
    """Base link to middle finger base distance, None if the hand lacks the data."""
    if metadata is None:
        return None
    middle = metadata.finger(FingerName.MIDDLE)
    if middle is None or middle.base_joint is None:
        return None
    try:
        position = world_position(metadata, middle.base_joint)
    except GraphError as e:
        logger.warning(f"Cannot resolve middle finger base of '{metadata.id}': {e}")
        return None
    return float(np.linalg.norm(position))


def calibrate_palm(
    result: Optional[HandTrackingResult],
    metadata: Optional[RobotHandMetadata],
) -> Optional[PalmCalibration]:
    """
    Scale factor mapping tracked-hand units onto robot-hand units.

    Returns:
        PalmCalibration, or None when calibration is unavailable this tick
    """
    tracked = tracked_palm_length(result)
    if tracked is None or tracked <= 0.0:
        return None

    robot = robot_palm_length(metadata)
    if robot is None or robot <= 0.0:
        return None

    scale = robot / tracked
    if not math.isfinite(scale):
        return None

    return PalmCalibration(
        tracked_palm_length=tracked,
        robot_palm_length=robot,
        scale_factor=scale,
    )


def resolve_scale(calibration: Optional[PalmCalibration], default: float) -> float:
    """Calibrated scale if available, otherwise the caller's default."""
    if calibration is None:
        return default
    return calibration.scale_factor


def scale_landmarks(
    result: HandTrackingResult,
    scale: float,
    origin_index: int = HandLandmarkIndex.WRIST,
) -> Optional[np.ndarray]:
    """
    Landmark offsets from the origin landmark, multiplied by scale.

    Returns:
        (N, 3) array in robot units, or None if the origin landmark is missing
    """
    origin = result.landmark(origin_index)
    if origin is None:
        return None
    points = landmarks_to_array(result.landmarks)
    return (points - origin.as_array()) * scale
