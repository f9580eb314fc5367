"""Hand landmark types following the MediaPipe Hands 21-point layout"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np


NUM_HAND_LANDMARKS = 21


class HandLandmarkIndex(IntEnum):
    """MediaPipe Hand landmark indices (21 per hand)."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


HAND_LANDMARK_NAMES = {idx: idx.name.lower() for idx in HandLandmarkIndex}

FINGER_LANDMARKS: Dict[str, Tuple[HandLandmarkIndex, ...]] = {
    "thumb": (HandLandmarkIndex.THUMB_CMC, HandLandmarkIndex.THUMB_MCP,
              HandLandmarkIndex.THUMB_IP, HandLandmarkIndex.THUMB_TIP),
    "index": (HandLandmarkIndex.INDEX_MCP, HandLandmarkIndex.INDEX_PIP,
              HandLandmarkIndex.INDEX_DIP, HandLandmarkIndex.INDEX_TIP),
    "middle": (HandLandmarkIndex.MIDDLE_MCP, HandLandmarkIndex.MIDDLE_PIP,
               HandLandmarkIndex.MIDDLE_DIP, HandLandmarkIndex.MIDDLE_TIP),
    "ring": (HandLandmarkIndex.RING_MCP, HandLandmarkIndex.RING_PIP,
             HandLandmarkIndex.RING_DIP, HandLandmarkIndex.RING_TIP),
    "pinky": (HandLandmarkIndex.PINKY_MCP, HandLandmarkIndex.PINKY_PIP,
              HandLandmarkIndex.PINKY_DIP, HandLandmarkIndex.PINKY_TIP),
}

HAND_CONNECTIONS: List[Tuple[HandLandmarkIndex, HandLandmarkIndex]] = [
    conn
    for chain in FINGER_LANDMARKS.values()
    for conn in zip((HandLandmarkIndex.WRIST,) + chain[:-1], chain)
] + [
    (HandLandmarkIndex.INDEX_MCP, HandLandmarkIndex.MIDDLE_MCP),
    (HandLandmarkIndex.MIDDLE_MCP, HandLandmarkIndex.RING_MCP),
    (HandLandmarkIndex.RING_MCP, HandLandmarkIndex.PINKY_MCP),
]


@dataclass(frozen=True)
class Landmark:
    """One detected keypoint: normalized x/y in [0, 1], z relative depth."""
    x: float
    y: float
    z: float
    visibility: Optional[float] = None

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def pixel_coords(self, width: int, height: int) -> Tuple[int, int]:
        return (int(self.x * width), int(self.y * height))


def landmarks_from_array(points: np.ndarray,
                         visibility: Optional[Sequence[Optional[float]]] = None) -> Tuple[Landmark, ...]:
    """Build landmarks from an (N, 3) array."""
    points = np.asarray(points, dtype=np.float64)
    if visibility is None:
        visibility = [None] * len(points)
    return tuple(
        Landmark(float(p[0]), float(p[1]), float(p[2]), v)
        for p, v in zip(points, visibility)
    )


def landmarks_to_array(landmarks: Sequence[Landmark]) -> np.ndarray:
    if not landmarks:
        return np.zeros((0, 3), dtype=np.float64)
    return np.array([[lm.x, lm.y, lm.z] for lm in landmarks], dtype=np.float64)


@dataclass(frozen=True)
class HandTrackingResult:
    """
    One detected hand for one frame.

    Attributes:
        handedness: "Left" or "Right" as labelled by the detector
        score: Detection confidence in [0, 1]
        landmarks: Normalized landmarks in MediaPipe order
        world_landmarks: Optional metric landmarks from the detector
    """
    handedness: str
    score: float
    landmarks: Tuple[Landmark, ...]
    world_landmarks: Optional[Tuple[Landmark, ...]] = None

    def __post_init__(self):
        object.__setattr__(self, "landmarks", tuple(self.landmarks))
        if self.world_landmarks is not None:
            object.__setattr__(self, "world_landmarks", tuple(self.world_landmarks))

    def landmark(self, index: int) -> Optional[Landmark]:
        if 0 <= index < len(self.landmarks):
            return self.landmarks[index]
        return None

    @property
    def wrist(self) -> Optional[Landmark]:
        return self.landmark(HandLandmarkIndex.WRIST)

    @property
    def middle_root(self) -> Optional[Landmark]:
        return self.landmark(HandLandmarkIndex.MIDDLE_MCP)

    @property
    def is_complete(self) -> bool:
        return len(self.landmarks) >= NUM_HAND_LANDMARKS

    def with_landmarks(self, landmarks: Sequence[Landmark]) -> "HandTrackingResult":
        return HandTrackingResult(
            handedness=self.handedness,
            score=self.score,
            landmarks=tuple(landmarks),
            world_landmarks=self.world_landmarks,
        )
