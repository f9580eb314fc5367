"""
Landmark smoothing with an exponential moving average.

Each tracked hand (keyed by its handedness label) keeps the last filtered
landmark set. A new frame is blended as

    filtered = alpha * raw + (1 - alpha) * previous

per coordinate. Smaller alpha means heavier smoothing. The first frame of a
hand passes through unchanged, and a hand that has not been seen for
evict_after_frames ticks is forgotten so it does not glide in from a stale
position when it comes back.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from handmimic.core import Config, get_logger
from handmimic.core.errors import ConfigError
from .landmarks import HandTrackingResult, Landmark


def _validate_alpha(alpha: float) -> float:
    alpha = float(alpha)
    if not 0.0 < alpha <= 1.0:
        raise ConfigError(f"Filter alpha must be in (0, 1], got {alpha}")
    return alpha


@dataclass
class SmootherSettings:
    """Parameters for LandmarkSmoother."""
    alpha: float = 0.5
    enabled: bool = True
    evict_after_frames: int = 30
    reference_fps: Optional[float] = None

    def __post_init__(self):
        self.alpha = _validate_alpha(self.alpha)
        if int(self.evict_after_frames) < 1:
            raise ConfigError(
                f"evict_after_frames must be >= 1, got {self.evict_after_frames}"
            )
        self.evict_after_frames = int(self.evict_after_frames)
        if self.reference_fps is not None and self.reference_fps <= 0:
            raise ConfigError(f"reference_fps must be positive, got {self.reference_fps}")

    @classmethod
    def from_config(cls, config: Config) -> "SmootherSettings":
        tracking = config.tracking
        return cls(
            alpha=tracking.get("filter_alpha", 0.5),
            enabled=tracking.get("filter_enabled", True),
            evict_after_frames=tracking.get("evict_after_frames", 30),
            reference_fps=config.get("retargeting.reference_fps"),
        )


class LandmarkSmoother:
    """
    EMA filter over per-hand landmark sets.

    Not thread-safe: one owner feeds it once per tick.
    """

    def __init__(
        self,
        alpha: float = 0.5,
        enabled: bool = True,
        evict_after_frames: int = 30,
        reference_fps: Optional[float] = None,
    ):
        self.logger = get_logger("tracking.smoother")
        settings = SmootherSettings(alpha, enabled, evict_after_frames, reference_fps)
        self._alpha = settings.alpha
        self._enabled = settings.enabled
        self.evict_after_frames = settings.evict_after_frames
        self.reference_fps = settings.reference_fps

        self._previous: Dict[str, List[Landmark]] = {}
        self._missed_frames: Dict[str, int] = {}

    @classmethod
    def from_settings(cls, settings: SmootherSettings) -> "LandmarkSmoother":
        return cls(
            alpha=settings.alpha,
            enabled=settings.enabled,
            evict_after_frames=settings.evict_after_frames,
            reference_fps=settings.reference_fps,
        )

    @property
    def alpha(self) -> float:
        return self._alpha

    @alpha.setter
    def alpha(self, value: float):
        self._alpha = _validate_alpha(value)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool):
        self._enabled = bool(value)

    @property
    def tracked_keys(self) -> List[str]:
        return list(self._previous)

    def has_history(self, hand_key: str) -> bool:
        return hand_key in self._previous

    def effective_alpha(self, alpha: float, dt: Optional[float]) -> float:
        """
        Alpha adjusted for the elapsed time of this tick.

        With a reference frame rate, the blend is rescaled so that one tick
        of 1/reference_fps seconds uses alpha unchanged and longer gaps pull
        harder toward the new sample.
        """
        if dt is None or self.reference_fps is None or dt <= 0:
            return alpha
        frames = dt * self.reference_fps
        return 1.0 - (1.0 - alpha) ** frames

    def filter(
        self,
        hand_key: str,
        landmarks: Sequence[Landmark],
        alpha: Optional[float] = None,
        dt: Optional[float] = None,
    ) -> List[Landmark]:
        """
        Smooth one hand's landmarks.

        Args:
            hand_key: Handedness label identifying the hand
            landmarks: Raw landmarks for this frame
            alpha: Blend factor override for this call, in (0, 1]
            dt: Seconds since the previous frame, for frame-rate independence

        Returns:
            Filtered landmarks (raw landmarks on first sighting)
        """
        raw = list(landmarks)
        self._missed_frames[hand_key] = 0

        previous = self._previous.get(hand_key)
        if not self._enabled or previous is None or len(previous) != len(raw):
            self._previous[hand_key] = raw
            return list(raw)

        a = self.effective_alpha(self._alpha if alpha is None else _validate_alpha(alpha), dt)
        b = 1.0 - a

        filtered = [
            Landmark(
                x=a * lm.x + b * prev.x,
                y=a * lm.y + b * prev.y,
                z=a * lm.z + b * prev.z,
                visibility=lm.visibility,
            )
            for lm, prev in zip(raw, previous)
        ]

        self._previous[hand_key] = filtered
        return list(filtered)

    def filter_results(
        self,
        results: Sequence[HandTrackingResult],
        dt: Optional[float] = None,
    ) -> List[HandTrackingResult]:
        """Smooth every hand of one tick, then age out hands not seen."""
        filtered = [
            result.with_landmarks(self.filter(result.handedness, result.landmarks, dt=dt))
            for result in results
        ]
        self.end_frame(result.handedness for result in results)
        return filtered

    def end_frame(self, seen_keys: Iterable[str]) -> List[str]:
        """
        Close a tick. Hands not in seen_keys accumulate a missed frame and are
        evicted once they reach evict_after_frames.

        Returns:
            Keys evicted on this tick
        """
        seen = set(seen_keys)
        evicted = []
        for key in list(self._previous):
            if key in seen:
                self._missed_frames[key] = 0
                continue
            missed = self._missed_frames.get(key, 0) + 1
            if missed >= self.evict_after_frames:
                self.reset(key)
                evicted.append(key)
                self.logger.debug(f"Evicted landmark history for '{key}' after {missed} missed frames")
            else:
                self._missed_frames[key] = missed
        return evicted

    def reset(self, hand_key: Optional[str] = None) -> None:
        """Forget one hand's history, or all of it."""
        if hand_key is None:
            self._previous.clear()
            self._missed_frames.clear()
            return
        self._previous.pop(hand_key, None)
        self._missed_frames.pop(hand_key, None)
