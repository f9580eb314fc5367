"""
Per-tick retargeting pipeline for one robot hand model.

Data flow for each tick:

    detector results -> LandmarkSmoother -> hand selection
        -> WristRetargeter (root orientation)
        -> palm calibration (scale, scaled landmark offsets)
        -> RobotHandState / SkeletonGraph -> RetargetFrame for the renderer

The pipeline owns every piece of mutable state it uses and is driven by a
single caller once per tick. A tick without detections holds the last state.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from handmimic.core import Config, get_logger
from handmimic.core.errors import GraphError, MetadataError
from handmimic.kinematics.hand_state import (
    RobotHandState,
    create_hand_state,
    get_joint_values,
    reset_hand_state,
    set_joint,
    set_joints,
)
from handmimic.kinematics.metadata import RobotHandMetadata
from handmimic.kinematics.models import get_hand_model
from handmimic.kinematics.palm import PalmDimensions, calculate_palm_dimensions
from handmimic.kinematics.skeleton import SkeletonGraph
from handmimic.tracking.landmarks import HandLandmarkIndex, HandTrackingResult
from handmimic.tracking.smoother import LandmarkSmoother, SmootherSettings
from .calibration import PalmCalibration, calibrate_palm, resolve_scale, scale_landmarks
from .wrist import RetargetingSettings, WristRetargeter, select_hand


@dataclass
class RetargetFrame:
    """Everything the renderer needs for one tick."""
    frame_number: int
    root_rotation: np.ndarray
    root_position: np.ndarray
    scale: float
    updated: bool
    calibration: Optional[PalmCalibration] = None
    tracked_hand: Optional[HandTrackingResult] = None
    scaled_landmarks: Optional[np.ndarray] = None
    palm_dimensions: Optional[PalmDimensions] = None
    joint_values: Dict[str, float] = field(default_factory=dict)
    local_transforms: Dict[str, Tuple[np.ndarray, np.ndarray]] = field(default_factory=dict)

    @property
    def has_calibration(self) -> bool:
        return self.calibration is not None


class HandRetargetingPipeline:
    """
    Drives one visualized robot hand from hand-tracking results.

    Args:
        metadata: Hand design to drive
        config: Settings source, defaults when omitted
        handles: Optional renderer objects per joint name, held weakly
    """

    def __init__(
        self,
        metadata: RobotHandMetadata,
        config: Optional[Config] = None,
        handles: Optional[Mapping[str, Any]] = None,
    ):
        self.logger = get_logger("retarget.pipeline")
        self.config = config or Config()
        self.metadata = metadata

        self.settings = RetargetingSettings.from_config(self.config)
        self.smoother = LandmarkSmoother.from_settings(SmootherSettings.from_config(self.config))
        self.wrist = WristRetargeter(self.settings)

        self.state: Optional[RobotHandState] = create_hand_state(metadata)
        self.skeleton: Optional[SkeletonGraph] = SkeletonGraph(
            metadata,
            handles=handles,
            max_depth=self.config.get("skeleton.max_depth"),
        )
        self.palm_dimensions = calculate_palm_dimensions(metadata, self.skeleton.world_positions())

        self._root_position = np.zeros(3, dtype=np.float64)
        self._scale = self.settings.default_scale
        self._calibration: Optional[PalmCalibration] = None
        self._scaled_landmarks: Optional[np.ndarray] = None
        self._tracked_hand: Optional[HandTrackingResult] = None
        self._frame_number = 0

        self.logger.info(
            f"Loaded '{metadata.name}' ({metadata.joint_count} joints, "
            f"palm {self.palm_dimensions.width:.4f} x {self.palm_dimensions.length:.4f})"
        )

    @property
    def is_loaded(self) -> bool:
        return self.state is not None

    @property
    def calibration(self) -> Optional[PalmCalibration]:
        return self._calibration

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def root_rotation(self) -> np.ndarray:
        return self.wrist.rotation

    def _require_loaded(self) -> None:
        if self.state is None or self.skeleton is None:
            raise RuntimeError(f"Hand model '{self.metadata.id}' has been unloaded")

    def process(
        self,
        results: Sequence[HandTrackingResult],
        dt: Optional[float] = None,
    ) -> RetargetFrame:
        """
        Run one tick.

        Args:
            results: This tick's detector output (may be empty)
            dt: Seconds since the previous tick, for frame-rate independent smoothing

        Returns:
            RetargetFrame describing the hand after this tick
        """
        self._require_loaded()

        filtered = self.smoother.filter_results(results, dt=dt)
        hand = select_hand(filtered, self.settings.tracking_hand)

        self.wrist.update_from_hand(hand, dt=dt)
        updated = self.wrist.last_updated

        if hand is not None:
            self._tracked_hand = hand
            calibration = calibrate_palm(hand, self.metadata)
            if calibration is None:
                self.logger.debug("Palm calibration unavailable this tick")
            else:
                self._calibration = calibration
            self._scale = resolve_scale(self._calibration, self.settings.default_scale)

            scaled = scale_landmarks(hand, self._scale)
            if scaled is not None:
                self._scaled_landmarks = scaled
                wrist = hand.landmark(HandLandmarkIndex.WRIST)
                self._root_position = wrist.as_array() * self._scale

        frame = RetargetFrame(
            frame_number=self._frame_number,
            root_rotation=self.wrist.rotation,
            root_position=self._root_position.copy(),
            scale=self._scale,
            updated=updated,
            calibration=self._calibration,
            tracked_hand=self._tracked_hand,
            scaled_landmarks=None if self._scaled_landmarks is None else self._scaled_landmarks.copy(),
            palm_dimensions=self.palm_dimensions,
            joint_values=get_joint_values(self.state),
            local_transforms=self.skeleton.local_transforms(),
        )
        self._frame_number += 1
        return frame

    def set_joint(self, joint_name: str, value: float) -> float:
        """Set one joint (clamped). Raises UnknownJointError for unknown names."""
        self._require_loaded()
        stored = set_joint(self.state, joint_name, value)
        self.skeleton.apply_joint_values({joint_name: stored})
        return stored

    def set_joints(self, values: Mapping[str, float]) -> Dict[str, float]:
        """Set several joints, ignoring unknown names."""
        self._require_loaded()
        applied = set_joints(self.state, values)
        self.skeleton.apply_joint_values(applied)
        return applied

    def joint_values(self) -> Dict[str, float]:
        self._require_loaded()
        return get_joint_values(self.state)

    def reset(self) -> None:
        """Zero every joint and forget tracking history."""
        self._require_loaded()
        reset_hand_state(self.state)
        self.skeleton.reset_pose()
        self.smoother.reset()
        self.wrist.reset()
        self._root_position = np.zeros(3, dtype=np.float64)
        self._scale = self.settings.default_scale
        self._calibration = None
        self._scaled_landmarks = None
        self._tracked_hand = None

    def unload(self) -> None:
        """Drop all state for this model, including render handle references."""
        if self.skeleton is not None:
            self.skeleton.detach_handles()
        self.smoother.reset()
        self.wrist.reset()
        self.state = None
        self.skeleton = None
        self._calibration = None
        self._scaled_landmarks = None
        self._tracked_hand = None
        self.logger.info(f"Unloaded '{self.metadata.id}'")


def load_pipeline(
    model: Any,
    config: Optional[Config] = None,
    handles: Optional[Mapping[str, Any]] = None,
) -> HandRetargetingPipeline:
    """
    Build a pipeline for a registered model id or a metadata value.

    Structural errors are logged and re-raised so the caller can show a
    load-failure indicator for that model.
    """
    logger = get_logger("retarget.pipeline")
    try:
        metadata = get_hand_model(model) if isinstance(model, str) else model
        return HandRetargetingPipeline(metadata, config=config, handles=handles)
    except (GraphError, MetadataError, KeyError) as e:
        logger.error(f"Failed to load hand model {model if isinstance(model, str) else model.id}: {e}")
        raise
