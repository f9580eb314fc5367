"""Skeleton graph - flattened joint hierarchy with local transforms.

Local position and rotation of each joint (relative to its parent) are the
single source of truth. World positions are computed on demand by walking the
parent chain back to the hand's base link and accumulating translations.

Rotation is not accumulated along the chain: world_rotation() is identity and
world_axis() is the local axis, so axis directions drawn for debugging are
approximate once joints move away from zero.
"""

import weakref
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import numpy as np

from handmimic.core import get_logger
from handmimic.core.errors import GraphError
from handmimic.core.quaternion import (
    quat_from_axis_angle,
    quat_identity,
    quat_rotate_vector,
)
from .hand_state import RobotHandState, get_joint_values
from .metadata import JointMetadata, JointType, RobotHandMetadata


def default_max_depth(metadata: RobotHandMetadata) -> int:
    """Traversal cap: twice the longest finger, never less than 2."""
    return max(2, 2 * metadata.max_finger_depth)


def parent_chain(
    metadata: RobotHandMetadata,
    joint: JointMetadata,
    max_depth: Optional[int] = None,
    child_lookup: Optional[Mapping[str, JointMetadata]] = None,
) -> List[JointMetadata]:
    """
    Chain of joints from the base link down to (and including) joint.

    Walks upward through the joint whose child link is the current joint's
    parent link, stopping at the base link or when no parent exists.

    Raises:
        GraphError: If the walk exceeds max_depth (cyclic parent links)
    """
    if max_depth is None:
        max_depth = default_max_depth(metadata)
    if child_lookup is None:
        child_lookup = metadata.child_link_lookup()

    chain: List[JointMetadata] = []
    current: Optional[JointMetadata] = joint

    while current is not None:
        if len(chain) >= max_depth:
            raise GraphError(
                f"Parent chain of joint '{joint.name}' in hand '{metadata.id}' "
                f"exceeds depth {max_depth}; parent links are cyclic"
            )
        chain.append(current)

        if current.parent_link == metadata.base_link:
            break

        current = child_lookup.get(current.parent_link)

    chain.reverse()
    return chain


def world_position(
    metadata: RobotHandMetadata,
    joint: JointMetadata,
    max_depth: Optional[int] = None,
) -> np.ndarray:
    """World position of joint: sum of local positions along its parent chain."""
    chain = parent_chain(metadata, joint, max_depth)
    position = np.zeros(3, dtype=np.float64)
    for link_joint in chain:
        position += link_joint.position_array
    return position


@dataclass
class SkeletonJoint:
    """
    One joint of the skeleton.

    position and rotation are LOCAL (relative to the parent joint). handle is
    a weak reference to the renderer's object for this joint, if any.
    """
    name: str
    position: np.ndarray
    rotation: np.ndarray
    parent_name: Optional[str]
    type: JointType
    axis: np.ndarray = field(default_factory=lambda: np.array([1.0, 0.0, 0.0]))
    handle: Optional[weakref.ReferenceType] = None

    @property
    def is_root(self) -> bool:
        return self.parent_name is None

    def resolve_handle(self) -> Optional[Any]:
        """The external render object, or None if absent or already collected."""
        return self.handle() if self.handle is not None else None


@dataclass
class RobotSkeletonData:
    """Skeleton snapshot handed to the renderer."""
    joints: List[SkeletonJoint]
    palm_dimensions: Any  # PalmDimensions
    root_position: np.ndarray
    root_rotation: np.ndarray


class SkeletonGraph:
    """
    Parent/child joint graph derived from hand metadata.

    Construction validates every parent chain, so cyclic metadata fails here
    with GraphError instead of producing wrong world transforms later.
    """

    def __init__(
        self,
        metadata: RobotHandMetadata,
        handles: Optional[Mapping[str, Any]] = None,
        max_depth: Optional[int] = None,
    ):
        self.logger = get_logger("kinematics.skeleton")
        self.metadata = metadata
        self.max_depth = max_depth if max_depth is not None else default_max_depth(metadata)

        self._joint_meta: Dict[str, JointMetadata] = metadata.joint_lookup()
        child_lookup = metadata.child_link_lookup()

        self._joints: Dict[str, SkeletonJoint] = {}
        self._chains: Dict[str, List[str]] = {}

        for meta in metadata.all_joints():
            if meta.parent_link == metadata.base_link:
                parent_name = None
            else:
                parent = child_lookup.get(meta.parent_link)
                # Unresolvable parent links attach to the base link
                parent_name = parent.name if parent is not None else None

            self._joints[meta.name] = SkeletonJoint(
                name=meta.name,
                position=meta.position_array,
                rotation=quat_identity(),
                parent_name=parent_name,
                type=meta.type,
                axis=meta.axis_array,
            )

        for meta in metadata.all_joints():
            chain = parent_chain(metadata, meta, self.max_depth, child_lookup)
            self._chains[meta.name] = [j.name for j in chain]

        if handles:
            self.attach_handles(handles)

        self.logger.debug(
            f"Built skeleton for '{metadata.id}' ({len(self._joints)} joints, "
            f"{len(self.roots())} roots)"
        )

    @classmethod
    def build(
        cls,
        metadata: RobotHandMetadata,
        handles: Optional[Mapping[str, Any]] = None,
        max_depth: Optional[int] = None,
    ) -> "SkeletonGraph":
        return cls(metadata, handles=handles, max_depth=max_depth)

    # ------------------------------------------------------------------
    # Structure queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._joints)

    def __contains__(self, name: str) -> bool:
        return name in self._joints

    @property
    def joint_names(self) -> List[str]:
        return list(self._joints)

    @property
    def joints(self) -> List[SkeletonJoint]:
        return list(self._joints.values())

    def joint(self, name: str) -> SkeletonJoint:
        try:
            return self._joints[name]
        except KeyError:
            raise KeyError(f"Joint '{name}' is not part of skeleton '{self.metadata.id}'") from None

    def roots(self) -> List[SkeletonJoint]:
        return [j for j in self._joints.values() if j.parent_name is None]

    def hierarchy(self) -> Dict[Optional[str], List[SkeletonJoint]]:
        """Parent name (None for the base) to its direct children."""
        tree: Dict[Optional[str], List[SkeletonJoint]] = {}
        for joint in self._joints.values():
            tree.setdefault(joint.parent_name, []).append(joint)
        return tree

    def children(self, name: str) -> List[SkeletonJoint]:
        return [j for j in self._joints.values() if j.parent_name == name]

    def descendants(self, name: str) -> List[SkeletonJoint]:
        """All joints below name, depth first."""
        tree = self.hierarchy()
        result: List[SkeletonJoint] = []
        stack = list(reversed(tree.get(name, [])))
        while stack:
            joint = stack.pop()
            result.append(joint)
            stack.extend(reversed(tree.get(joint.name, [])))
        return result

    def parent_chain(self, name: str) -> List[SkeletonJoint]:
        """Joints from the base down to name (inclusive)."""
        self.joint(name)
        return [self._joints[n] for n in self._chains[name]]

    # ------------------------------------------------------------------
    # World transforms
    # ------------------------------------------------------------------

    def world_position(self, name: str) -> np.ndarray:
        position = np.zeros(3, dtype=np.float64)
        for joint in self.parent_chain(name):
            position += joint.position
        return position

    def world_positions(self) -> Dict[str, np.ndarray]:
        return {name: self.world_position(name) for name in self._joints}

    def world_rotation(self, name: str) -> np.ndarray:
        """Accumulated rotation of name. Always identity, see module docstring."""
        self.joint(name)
        return quat_identity()

    def world_axis(self, name: str) -> np.ndarray:
        joint = self.joint(name)
        return quat_rotate_vector(self.world_rotation(name), joint.axis)

    # ------------------------------------------------------------------
    # Joint values and renderer sync
    # ------------------------------------------------------------------

    def apply_joint_values(self, values: Mapping[str, float]) -> int:
        """
        Pose the skeleton from joint values.

        Rotational joints rotate about their axis; prismatic joints slide
        their origin along it. Unknown names are ignored.

        Returns:
            Number of joints updated
        """
        updated = 0
        for name, value in values.items():
            joint = self._joints.get(name)
            if joint is None:
                continue
            rest = self._joint_meta[name].position_array
            if joint.type.is_rotational:
                joint.rotation = quat_from_axis_angle(joint.axis, float(value))
                joint.position = rest
            elif joint.type is JointType.PRISMATIC:
                joint.rotation = quat_identity()
                joint.position = rest + joint.axis * float(value)
            else:
                continue
            updated += 1
        return updated

    def sync_from_state(self, state: RobotHandState) -> int:
        return self.apply_joint_values(get_joint_values(state))

    def local_transforms(self) -> Dict[str, Tuple[np.ndarray, np.ndarray]]:
        """Local (position, rotation) per joint, copied for the renderer."""
        return {
            name: (joint.position.copy(), joint.rotation.copy())
            for name, joint in self._joints.items()
        }

    def attach_handles(self, handles: Mapping[str, Any]) -> None:
        """Reference renderer objects weakly, keyed by joint name."""
        for name, handle in handles.items():
            joint = self._joints.get(name)
            if joint is None:
                self.logger.debug(f"Ignoring handle for unknown joint '{name}'")
                continue
            joint.handle = weakref.ref(handle) if handle is not None else None

    def detach_handles(self) -> None:
        for joint in self._joints.values():
            joint.handle = None

    def push_transforms(self, apply: Callable[[Any, np.ndarray, np.ndarray], None]) -> int:
        """
        Call apply(handle, local_position, local_rotation) for every joint
        whose render handle is still alive.

        Returns:
            Number of handles updated
        """
        pushed = 0
        for joint in self._joints.values():
            handle = joint.resolve_handle()
            if handle is None:
                continue
            apply(handle, joint.position.copy(), joint.rotation.copy())
            pushed += 1
        return pushed

    def reset_pose(self) -> None:
        for name, joint in self._joints.items():
            joint.position = self._joint_meta[name].position_array
            joint.rotation = quat_identity()

    def to_skeleton_data(
        self,
        root_position: Optional[np.ndarray] = None,
        root_rotation: Optional[np.ndarray] = None,
    ) -> RobotSkeletonData:
        from .palm import calculate_palm_dimensions

        return RobotSkeletonData(
            joints=self.joints,
            palm_dimensions=calculate_palm_dimensions(self.metadata, self.world_positions()),
            root_position=np.zeros(3) if root_position is None else np.asarray(root_position, dtype=np.float64),
            root_rotation=quat_identity() if root_rotation is None else np.asarray(root_rotation, dtype=np.float64),
        )
