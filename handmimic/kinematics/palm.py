"""Palm dimensions of a robot hand model.

Width is measured between the index and pinky base joints, length from the
wrist (the base link origin) to the middle finger base. Hands missing those
fingers fall back to the other finger bases, then to the joint bounding box.
"""

from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, Mapping, Optional

import numpy as np

from .metadata import FingerName, RobotHandMetadata
from .skeleton import world_position


@dataclass
class PalmDimensions:
    """Palm size and landmark positions in the hand's base frame."""
    width: float
    length: float
    wrist_position: np.ndarray
    base_joints: Dict[FingerName, np.ndarray] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "length": self.length,
            "wrist_position": self.wrist_position.tolist(),
            "base_joints": {k.value: v.tolist() for k, v in self.base_joints.items()},
        }


def _distance(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.linalg.norm(a - b))


def calculate_palm_dimensions(
    metadata: RobotHandMetadata,
    world_positions: Optional[Mapping[str, np.ndarray]] = None,
) -> PalmDimensions:
    """
    Compute palm width, length and finger base positions.

    Args:
        metadata: Hand metadata
        world_positions: Precomputed joint world positions by name; computed
            from metadata when omitted

    Returns:
        PalmDimensions (all zeros for a hand without joints)
    """
    def position_of(joint) -> np.ndarray:
        if world_positions is not None and joint.name in world_positions:
            return np.asarray(world_positions[joint.name], dtype=np.float64)
        return world_position(metadata, joint)

    wrist = np.zeros(3, dtype=np.float64)

    bases: Dict[FingerName, np.ndarray] = {}
    for finger_name, finger in metadata.fingers.items():
        if finger.base_joint is not None:
            bases[finger_name] = position_of(finger.base_joint)

    width = 0.0
    if FingerName.INDEX in bases and FingerName.PINKY in bases:
        width = _distance(bases[FingerName.INDEX], bases[FingerName.PINKY])
    elif len(bases) >= 2:
        width = max(_distance(a, b) for a, b in combinations(bases.values(), 2))

    length = 0.0
    if FingerName.MIDDLE in bases:
        length = _distance(wrist, bases[FingerName.MIDDLE])
    elif bases:
        length = float(np.mean([_distance(wrist, p) for p in bases.values()]))

    if width == 0.0 or length == 0.0:
        points = [position_of(j) for j in metadata.all_joints()]
        if points:
            size = np.ptp(np.stack(points), axis=0)
            if width == 0.0:
                width = float(max(size[0], size[2]) * 0.4)
            if length == 0.0:
                length = float(max(size[1], size[0], size[2]) * 0.5)

    return PalmDimensions(
        width=width,
        length=length,
        wrist_position=wrist,
        base_joints=bases,
    )
