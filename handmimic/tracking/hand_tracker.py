"""Hand tracking using MediaPipe HandLandmarker"""

from pathlib import Path
from typing import List, Optional, Sequence, Tuple
import urllib.request

import cv2
import numpy as np
import mediapipe as mp
from mediapipe.tasks import python as mp_tasks
from mediapipe.tasks.python import vision as mp_vision

from handmimic.core import get_logger, Config
from .landmarks import HAND_CONNECTIONS, HandTrackingResult, Landmark


HAND_MODEL_URL = "https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/1/hand_landmarker.task"
HAND_MODEL_PATH = Path(__file__).parent.parent.parent / "models" / "hand_landmarker.task"


def download_hand_model_if_needed(path: Path = HAND_MODEL_PATH) -> Path:
    """Download the hand landmarker model if not present."""
    logger = get_logger("tracking.hands")
    path.parent.mkdir(parents=True, exist_ok=True)

    if not path.exists():
        logger.info(f"Downloading hand model to {path}...")
        urllib.request.urlretrieve(HAND_MODEL_URL, path)
        logger.info("Download complete.")

    return path


def _convert_landmarks(landmarks) -> Tuple[Landmark, ...]:
    return tuple(
        Landmark(
            x=lm.x,
            y=lm.y,
            z=lm.z,
            visibility=getattr(lm, "visibility", None),
        )
        for lm in landmarks
    )


class HandTracker:
    """
    Landmark detector front-end.

    Runs MediaPipe HandLandmarker on RGB frames and returns one
    HandTrackingResult per detected hand. Confidence thresholds are passed
    through to MediaPipe untouched.
    """

    def __init__(self, config: Optional[Config] = None, model_path: Optional[str] = None):
        self.logger = get_logger("tracking.hands")
        self.config = config or Config()

        tracking = self.config.tracking

        self._min_detection_confidence = tracking.get("min_detection_confidence", 0.5)
        self._min_tracking_confidence = tracking.get("min_tracking_confidence", 0.5)
        self._max_hands = int(tracking.get("max_hands", 2))
        if self._max_hands < 1:
            raise ValueError(f"tracking.max_hands must be >= 1, got {self._max_hands}")

        path = Path(model_path) if model_path else download_hand_model_if_needed()

        base_options = mp_tasks.BaseOptions(model_asset_path=str(path))
        options = mp_vision.HandLandmarkerOptions(
            base_options=base_options,
            running_mode=mp_vision.RunningMode.VIDEO,
            num_hands=self._max_hands,
            min_hand_detection_confidence=self._min_detection_confidence,
            min_tracking_confidence=self._min_tracking_confidence,
        )

        self._hand_landmarker = mp_vision.HandLandmarker.create_from_options(options)
        self._frame_count = 0
        self._last_timestamp_ms = -1

        self.logger.info(
            f"Initialized HandTracker (max_hands={self._max_hands}, "
            f"detection={self._min_detection_confidence})"
        )

    def process(self, frame: np.ndarray, timestamp: float = 0.0) -> List[HandTrackingResult]:
        """
        Detect hands in a frame.

        Args:
            frame: RGB image (H, W, 3)
            timestamp: Frame timestamp in seconds

        Returns:
            Detected hands, possibly empty
        """
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame)

        timestamp_ms = int(timestamp * 1000)
        if timestamp_ms <= self._last_timestamp_ms:
            # VIDEO mode requires strictly increasing timestamps
            timestamp_ms = self._last_timestamp_ms + 1
        self._last_timestamp_ms = timestamp_ms
        self._frame_count += 1

        detection = self._hand_landmarker.detect_for_video(mp_image, timestamp_ms)

        results: List[HandTrackingResult] = []
        if not detection.hand_landmarks or not detection.handedness:
            return results

        world = detection.hand_world_landmarks or [None] * len(detection.hand_landmarks)
        for landmarks, handedness_list, world_landmarks in zip(
            detection.hand_landmarks, detection.handedness, world
        ):
            category = handedness_list[0]
            results.append(HandTrackingResult(
                handedness=category.category_name,
                score=float(category.score),
                landmarks=_convert_landmarks(landmarks),
                world_landmarks=_convert_landmarks(world_landmarks) if world_landmarks else None,
            ))

        return results[:self._max_hands]

    def draw_results(
        self,
        frame: np.ndarray,
        results: Sequence[HandTrackingResult],
        color_left: Tuple[int, int, int] = (255, 128, 0),
        color_right: Tuple[int, int, int] = (0, 128, 255),
        thickness: int = 2,
        radius: int = 4
    ) -> np.ndarray:
        """Draw hand landmarks on a copy of frame."""
        output = frame.copy()
        h, w = output.shape[:2]

        for result in results:
            color = color_left if result.handedness == "Left" else color_right

            for start_idx, end_idx in HAND_CONNECTIONS:
                start = result.landmark(start_idx)
                end = result.landmark(end_idx)
                if start and end:
                    cv2.line(output, start.pixel_coords(w, h), end.pixel_coords(w, h),
                             color, thickness)

            for lm in result.landmarks:
                pt = lm.pixel_coords(w, h)
                cv2.circle(output, pt, radius, color, -1)
                cv2.circle(output, pt, radius + 1, (255, 255, 255), 1)

        return output

    def close(self) -> None:
        """Release resources."""
        if self._hand_landmarker:
            self._hand_landmarker.close()
            self._hand_landmarker = None
        self.logger.info("Hand tracker closed")
