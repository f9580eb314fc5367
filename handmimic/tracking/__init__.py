"""Hand landmark input - result types and smoothing.

The MediaPipe front-end lives in handmimic.tracking.hand_tracker and is
imported explicitly by callers that run a camera.
"""

from .landmarks import (
    NUM_HAND_LANDMARKS,
    HandLandmarkIndex,
    HAND_LANDMARK_NAMES,
    HAND_CONNECTIONS,
    FINGER_LANDMARKS,
    Landmark,
    HandTrackingResult,
    landmarks_from_array,
    landmarks_to_array,
)
from .smoother import LandmarkSmoother, SmootherSettings

__all__ = [
    "NUM_HAND_LANDMARKS", "HandLandmarkIndex", "HAND_LANDMARK_NAMES",
    "HAND_CONNECTIONS", "FINGER_LANDMARKS",
    "Landmark", "HandTrackingResult",
    "landmarks_from_array", "landmarks_to_array",
    "LandmarkSmoother", "SmootherSettings",
]
