"""Wrist orientation from tracked hand landmarks.

The robot hand's rest orientation points along +Y. The tracked palm
direction is wrist -> middle finger root; the root rotation is the shortest
arc taking +Y onto that direction, optionally followed by a fixed base
rotation (final = computed * base).

Per-tick failures (no matching hand, missing landmarks, wrist and middle
root coincident) never raise. The solver returns None and the caller keeps
the previous orientation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from handmimic.core import Config, get_logger
from handmimic.core.errors import ConfigError
from handmimic.core.quaternion import (
    quat_from_euler,
    quat_from_two_vectors,
    quat_identity,
    quat_multiply,
    quat_normalize,
    quat_slerp,
)
from handmimic.tracking.landmarks import HandLandmarkIndex, HandTrackingResult, Landmark


UP_VECTOR = np.array([0.0, 1.0, 0.0])

# Below this palm length the direction is treated as undefined
MIN_DIRECTION_LENGTH = 1e-9

PointLike = Union[Landmark, Sequence[float], np.ndarray]


class TrackingHand(Enum):
    """Which detected hand drives the robot."""
    LEFT = "Left"
    RIGHT = "Right"
    AUTO = "auto"

    @classmethod
    def parse(cls, value: Union[str, "TrackingHand"]) -> "TrackingHand":
        if isinstance(value, cls):
            return value
        for member in cls:
            if str(value).lower() == member.value.lower():
                return member
        raise ConfigError(f"Tracking hand must be Left, Right or auto, got {value!r}")


def _as_point(p: PointLike) -> np.ndarray:
    if isinstance(p, Landmark):
        return p.as_array()
    return np.asarray(p, dtype=np.float64)[:3]


def _as_rotation(rotation: Optional[Sequence[float]]) -> Optional[np.ndarray]:
    """Accept a quaternion [w, x, y, z] or XYZ Euler angles."""
    if rotation is None:
        return None
    rotation = np.asarray(rotation, dtype=np.float64)
    if rotation.shape == (4,):
        return quat_normalize(rotation)
    if rotation.shape == (3,):
        return quat_from_euler(rotation)
    raise ConfigError(f"Base rotation must be a quaternion or Euler triple, got shape {rotation.shape}")


def select_hand(
    results: Sequence[HandTrackingResult],
    which: Union[str, TrackingHand] = TrackingHand.AUTO,
) -> Optional[HandTrackingResult]:
    """
    Pick the tracked hand that drives the robot.

    auto takes the first detection regardless of score; Left/Right take the
    first detection with that handedness label.
    """
    if not results:
        return None

    which = TrackingHand.parse(which)
    if which is TrackingHand.AUTO:
        return results[0]

    for result in results:
        if result.handedness == which.value:
            return result
    return None


def wrist_rotation(
    wrist: PointLike,
    middle_root: PointLike,
    base_rotation: Optional[Sequence[float]] = None,
) -> Optional[np.ndarray]:
    """
    Orientation that points the robot's +Y axis along wrist -> middle root.

    Args:
        wrist: Wrist landmark or point
        middle_root: Middle finger MCP landmark or point
        base_rotation: Optional rotation applied on the right of the result

    Returns:
        Quaternion [w, x, y, z], or None if the two points coincide
    """
    direction = _as_point(middle_root) - _as_point(wrist)
    length = float(np.linalg.norm(direction))
    if not np.isfinite(length) or length < MIN_DIRECTION_LENGTH:
        return None

    rotation = quat_from_two_vectors(UP_VECTOR, direction / length)

    base = _as_rotation(base_rotation)
    if base is not None:
        rotation = quat_normalize(quat_multiply(rotation, base))

    return rotation


def rotation_from_hand(
    hand: Optional[HandTrackingResult],
    base_rotation: Optional[Sequence[float]] = None,
) -> Optional[np.ndarray]:
    """wrist_rotation() fed from a tracking result's landmarks 0 and 9."""
    if hand is None:
        return None
    wrist = hand.landmark(HandLandmarkIndex.WRIST)
    middle_root = hand.landmark(HandLandmarkIndex.MIDDLE_MCP)
    if wrist is None or middle_root is None:
        return None
    return wrist_rotation(wrist, middle_root, base_rotation)


def _validate_smoothing(smoothing: float) -> float:
    smoothing = float(smoothing)
    if not 0.0 <= smoothing <= 1.0:
        raise ConfigError(f"Rotation smoothing must be in [0, 1], got {smoothing}")
    return smoothing


def apply_smoothed_rotation(
    current: np.ndarray,
    target: np.ndarray,
    smoothing: float,
    dt: Optional[float] = None,
    reference_fps: float = 60.0,
) -> np.ndarray:
    """
    Move current toward target.

    smoothing 0 snaps to the target. Otherwise the result is a slerp by
    (1 - smoothing) per call. Called once per frame, that ties convergence to
    the frame rate; passing dt rescales the step to
    1 - smoothing ** (dt * reference_fps), so smoothing describes one frame at
    reference_fps regardless of the actual rate.

    Returns:
        New quaternion; inputs are not modified
    """
    smoothing = _validate_smoothing(smoothing)
    target = np.asarray(target, dtype=np.float64)

    if smoothing == 0.0:
        return target.copy()

    if dt is not None and dt > 0:
        fraction = 1.0 - smoothing ** (dt * reference_fps)
    else:
        fraction = 1.0 - smoothing

    return quat_normalize(quat_slerp(np.asarray(current, dtype=np.float64), target, fraction))


@dataclass
class RetargetingSettings:
    """Parameters for wrist retargeting."""
    tracking_hand: TrackingHand = TrackingHand.AUTO
    smoothing: float = 0.8
    base_rotation: Optional[Tuple[float, ...]] = None
    default_scale: float = 1.0
    reference_fps: float = 60.0

    def __post_init__(self):
        self.tracking_hand = TrackingHand.parse(self.tracking_hand)
        self.smoothing = _validate_smoothing(self.smoothing)
        if self.base_rotation is not None:
            _as_rotation(self.base_rotation)
            self.base_rotation = tuple(float(v) for v in self.base_rotation)
        if self.reference_fps <= 0:
            raise ConfigError(f"reference_fps must be positive, got {self.reference_fps}")

    @classmethod
    def from_config(cls, config: Config) -> "RetargetingSettings":
        retargeting = config.retargeting
        base = retargeting.get("base_rotation")
        if base is not None and not any(base):
            base = None
        return cls(
            tracking_hand=config.get("tracking.hand", "auto"),
            smoothing=retargeting.get("smoothing", 0.8),
            base_rotation=base,
            default_scale=float(retargeting.get("default_scale", 1.0)),
            reference_fps=float(retargeting.get("reference_fps", 60.0)),
        )


class WristRetargeter:
    """
    Holds the robot root orientation and steers it toward the tracked wrist.

    One instance per visualized hand; update() is called once per tick.
    """

    def __init__(self, settings: Optional[RetargetingSettings] = None):
        self.logger = get_logger("retarget.wrist")
        self.settings = settings or RetargetingSettings()
        self._rotation = quat_identity()
        self._target: Optional[np.ndarray] = None
        self._last_updated = False

    @property
    def rotation(self) -> np.ndarray:
        return self._rotation.copy()

    @property
    def target(self) -> Optional[np.ndarray]:
        return None if self._target is None else self._target.copy()

    @property
    def last_updated(self) -> bool:
        return self._last_updated

    @property
    def smoothing(self) -> float:
        return self.settings.smoothing

    @smoothing.setter
    def smoothing(self, value: float):
        self.settings.smoothing = _validate_smoothing(value)

    @property
    def tracking_hand(self) -> TrackingHand:
        return self.settings.tracking_hand

    @tracking_hand.setter
    def tracking_hand(self, value: Union[str, TrackingHand]):
        self.settings.tracking_hand = TrackingHand.parse(value)

    def update_from_hand(
        self,
        hand: Optional[HandTrackingResult],
        dt: Optional[float] = None,
    ) -> np.ndarray:
        """Steer toward an already selected hand; keeps the orientation on failure."""
        target = rotation_from_hand(hand, self.settings.base_rotation)
        if target is None:
            self._last_updated = False
            if hand is None:
                self.logger.debug("No tracked hand this tick, holding orientation")
            else:
                self.logger.debug("Degenerate wrist geometry, holding orientation")
            return self.rotation

        self._target = target
        self._rotation = apply_smoothed_rotation(
            self._rotation,
            target,
            self.settings.smoothing,
            dt=dt,
            reference_fps=self.settings.reference_fps,
        )
        self._last_updated = True
        return self.rotation

    def update(
        self,
        results: Sequence[HandTrackingResult],
        dt: Optional[float] = None,
    ) -> np.ndarray:
        """Select the configured hand from this tick's results and steer toward it."""
        hand = select_hand(results, self.settings.tracking_hand)
        return self.update_from_hand(hand, dt)

    def reset(self) -> None:
        self._rotation = quat_identity()
        self._target = None
        self._last_updated = False
