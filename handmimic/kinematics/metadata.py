"""Robot hand kinematic metadata.

Immutable description of a hand design: joints grouped by finger, each with
its local origin, rotation axis and limits, plus the parent/child link names
that define the chain. Metadata is built once per hand design and shared
read-only by every runtime instance of that hand.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np
import yaml

from handmimic.core.errors import MetadataError


Vector3 = Tuple[float, float, float]


class JointType(Enum):
    """Joint type as named in URDF."""
    REVOLUTE = "revolute"
    CONTINUOUS = "continuous"
    PRISMATIC = "prismatic"
    FIXED = "fixed"
    FLOATING = "floating"
    PLANAR = "planar"

    @property
    def is_rotational(self) -> bool:
        return self in (JointType.REVOLUTE, JointType.CONTINUOUS)

    @property
    def is_movable(self) -> bool:
        return self is not JointType.FIXED

    @classmethod
    def parse(cls, value: Union[str, "JointType"]) -> "JointType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise MetadataError(f"Unknown joint type: {value!r}") from None


class Handedness(Enum):
    LEFT = "left"
    RIGHT = "right"

    @classmethod
    def parse(cls, value: Union[str, "Handedness"]) -> "Handedness":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise MetadataError(f"Unknown handedness: {value!r}") from None


class FingerName(Enum):
    """Fingers in anatomical order."""
    THUMB = "thumb"
    INDEX = "index"
    MIDDLE = "middle"
    RING = "ring"
    PINKY = "pinky"

    @classmethod
    def parse(cls, value: Union[str, "FingerName"]) -> "FingerName":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise MetadataError(f"Unknown finger name: {value!r}") from None


def _vector3(value: Any, what: str) -> Vector3:
    try:
        values = tuple(float(v) for v in value)
    except (TypeError, ValueError):
        raise MetadataError(f"{what} must be a sequence of 3 numbers, got {value!r}") from None
    if len(values) != 3:
        raise MetadataError(f"{what} must have 3 components, got {len(values)}")
    return values


@dataclass(frozen=True)
class JointLimit:
    """Motion limits of a joint (radians or meters)."""
    lower: float
    upper: float
    effort: float = 0.0
    velocity: float = 0.0

    def __post_init__(self):
        if self.lower > self.upper:
            raise MetadataError(
                f"Joint limit lower ({self.lower}) exceeds upper ({self.upper})"
            )

    def clamp(self, value: float) -> float:
        return max(self.lower, min(self.upper, value))

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper

    @property
    def span(self) -> float:
        return self.upper - self.lower

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "JointLimit":
        try:
            return cls(
                lower=float(data["lower"]),
                upper=float(data["upper"]),
                effort=float(data.get("effort", 0.0)),
                velocity=float(data.get("velocity", 0.0)),
            )
        except KeyError as e:
            raise MetadataError(f"Joint limit missing {e.args[0]!r}") from None

    def to_dict(self) -> Dict[str, float]:
        return {
            "lower": self.lower,
            "upper": self.upper,
            "effort": self.effort,
            "velocity": self.velocity,
        }


@dataclass(frozen=True)
class JointMetadata:
    """
    Immutable joint description.

    Attributes:
        name: Unique joint name within a hand (e.g. "thumb_cmc_roll")
        type: Joint type
        position: Local origin relative to the parent link frame
        axis: Unit rotation/translation axis in the parent frame
        limits: Motion limits, None for unconstrained joints
        parent_link: Link this joint hangs from
        child_link: Link this joint moves
    """
    name: str
    type: JointType
    position: Vector3
    axis: Vector3
    limits: Optional[JointLimit]
    parent_link: str
    child_link: str

    def __post_init__(self):
        if not self.name:
            raise MetadataError("Joint name must not be empty")
        object.__setattr__(self, "type", JointType.parse(self.type))
        object.__setattr__(self, "position", _vector3(self.position, f"{self.name}.position"))

        axis = np.array(_vector3(self.axis, f"{self.name}.axis"))
        norm = float(np.linalg.norm(axis))
        if norm < 1e-12:
            if self.type.is_movable:
                raise MetadataError(f"Joint '{self.name}' has a zero-length axis")
        else:
            axis = axis / norm
        object.__setattr__(self, "axis", tuple(float(a) for a in axis))

        if isinstance(self.limits, Mapping):
            object.__setattr__(self, "limits", JointLimit.from_dict(self.limits))

    @property
    def position_array(self) -> np.ndarray:
        return np.array(self.position, dtype=np.float64)

    @property
    def axis_array(self) -> np.ndarray:
        return np.array(self.axis, dtype=np.float64)

    @property
    def is_limited(self) -> bool:
        return self.limits is not None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "JointMetadata":
        try:
            return cls(
                name=data["name"],
                type=data.get("type", "revolute"),
                position=data.get("position", (0.0, 0.0, 0.0)),
                axis=data.get("axis", (1.0, 0.0, 0.0)),
                limits=data.get("limits"),
                parent_link=data["parent_link"],
                child_link=data["child_link"],
            )
        except KeyError as e:
            raise MetadataError(
                f"Joint {data.get('name', '?')!r} missing field {e.args[0]!r}"
            ) from None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "position": list(self.position),
            "axis": list(self.axis),
            "limits": self.limits.to_dict() if self.limits else None,
            "parent_link": self.parent_link,
            "child_link": self.child_link,
        }


@dataclass(frozen=True)
class FingerMetadata:
    """One finger: its joints ordered from base to tip. Arity varies per finger."""
    name: FingerName
    joints: Tuple[JointMetadata, ...]

    def __post_init__(self):
        object.__setattr__(self, "name", FingerName.parse(self.name))
        object.__setattr__(self, "joints", tuple(self.joints))

    def __len__(self) -> int:
        return len(self.joints)

    @property
    def base_joint(self) -> Optional[JointMetadata]:
        return self.joints[0] if self.joints else None

    @property
    def tip_joint(self) -> Optional[JointMetadata]:
        return self.joints[-1] if self.joints else None

    @property
    def joint_names(self) -> List[str]:
        return [j.name for j in self.joints]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FingerMetadata":
        return cls(
            name=data["name"],
            joints=tuple(JointMetadata.from_dict(j) for j in data.get("joints", [])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name.value, "joints": [j.to_dict() for j in self.joints]}


@dataclass(frozen=True)
class RobotHandMetadata:
    """
    Complete hand description. Not every hand populates every finger.

    Validated on construction: joint names must be unique across the hand, no
    two joints may move the same child link, and every finger entry must be
    keyed by its own name.
    """
    id: str
    name: str
    brand: str
    model: str
    handedness: Handedness
    base_link: str
    # Mapping proxies are unhashable; the other fields hash the hand
    fingers: Mapping[FingerName, FingerMetadata] = field(default_factory=dict, hash=False)
    urdf_path: Optional[str] = None
    preview_image: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "handedness", Handedness.parse(self.handedness))

        fingers: Dict[FingerName, FingerMetadata] = {}
        for key, finger in self.fingers.items():
            if finger is None:
                continue
            finger_name = FingerName.parse(key)
            if finger.name is not finger_name:
                raise MetadataError(
                    f"Finger keyed as '{finger_name.value}' is named '{finger.name.value}'"
                )
            fingers[finger_name] = finger
        # Anatomical order regardless of input order
        ordered = {name: fingers[name] for name in FingerName if name in fingers}
        object.__setattr__(self, "fingers", MappingProxyType(ordered))

        seen = set()
        moved_links: Dict[str, str] = {}
        for joint in self.all_joints():
            if joint.name in seen:
                raise MetadataError(f"Duplicate joint name '{joint.name}' in hand '{self.id}'")
            seen.add(joint.name)
            # Parent resolution goes through child links, so each link has one mover
            owner = moved_links.get(joint.child_link)
            if owner is not None:
                raise MetadataError(
                    f"Joints '{owner}' and '{joint.name}' both move link "
                    f"'{joint.child_link}' in hand '{self.id}'"
                )
            moved_links[joint.child_link] = joint.name

    def finger(self, name: Union[str, FingerName]) -> Optional[FingerMetadata]:
        return self.fingers.get(FingerName.parse(name))

    def all_joints(self) -> List[JointMetadata]:
        """Flat list of every joint, finger by finger, base to tip."""
        joints = []
        for finger in self.fingers.values():
            joints.extend(finger.joints)
        return joints

    def joint_lookup(self) -> Dict[str, JointMetadata]:
        return {j.name: j for j in self.all_joints()}

    def child_link_lookup(self) -> Dict[str, JointMetadata]:
        """Map child link name to the joint that moves it."""
        return {j.child_link: j for j in self.all_joints()}

    @property
    def joint_count(self) -> int:
        return sum(len(f) for f in self.fingers.values())

    @property
    def joint_names(self) -> List[str]:
        return [j.name for j in self.all_joints()]

    @property
    def max_finger_depth(self) -> int:
        return max((len(f) for f in self.fingers.values()), default=0)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RobotHandMetadata":
        try:
            fingers = {
                key: FingerMetadata.from_dict({"name": key, **finger})
                for key, finger in (data.get("fingers") or {}).items()
                if finger is not None
            }
            return cls(
                id=data["id"],
                name=data.get("name", data["id"]),
                brand=data.get("brand", ""),
                model=data.get("model", ""),
                handedness=data["handedness"],
                base_link=data["base_link"],
                fingers=fingers,
                urdf_path=data.get("urdf_path"),
                preview_image=data.get("preview_image"),
            )
        except KeyError as e:
            raise MetadataError(f"Hand metadata missing field {e.args[0]!r}") from None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "model": self.model,
            "handedness": self.handedness.value,
            "base_link": self.base_link,
            "urdf_path": self.urdf_path,
            "preview_image": self.preview_image,
            "fingers": {
                name.value: {"joints": [j.to_dict() for j in finger.joints]}
                for name, finger in self.fingers.items()
            },
        }


def load_hand_metadata(path: Union[str, Path]) -> RobotHandMetadata:
    """
    Load a pre-parsed hand description from a YAML file.

    The file mirrors RobotHandMetadata.to_dict().
    """
    with open(path, "r") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, Mapping):
        raise MetadataError(f"Hand description {path} is not a mapping")
    return RobotHandMetadata.from_dict(data)
