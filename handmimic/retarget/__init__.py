"""Tracking-to-robot retargeting - calibration, wrist solver, pipeline"""

from .calibration import (
    PalmCalibration,
    tracked_palm_length,
    robot_palm_length,
    calibrate_palm,
    resolve_scale,
    scale_landmarks,
)
from .wrist import (
    TrackingHand,
    RetargetingSettings,
    WristRetargeter,
    select_hand,
    wrist_rotation,
    rotation_from_hand,
    apply_smoothed_rotation,
)
from .pipeline import HandRetargetingPipeline, RetargetFrame, load_pipeline

__all__ = [
    "PalmCalibration", "tracked_palm_length", "robot_palm_length",
    "calibrate_palm", "resolve_scale", "scale_landmarks",
    "TrackingHand", "RetargetingSettings", "WristRetargeter",
    "select_hand", "wrist_rotation", "rotation_from_hand", "apply_smoothed_rotation",
    "HandRetargetingPipeline", "RetargetFrame", "load_pipeline",
]
