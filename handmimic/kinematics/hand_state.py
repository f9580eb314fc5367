"""Robot hand runtime state.

Metadata is immutable and shared; each visualized hand owns a RobotHandState
holding the current value of every joint. All functions here operate on a
state passed in explicitly by its owner.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from handmimic.core.errors import UnknownJointError
from .metadata import JointLimit, JointMetadata, RobotHandMetadata


@dataclass
class JointState:
    """Current value of one joint (radians for rotational, meters for prismatic)."""
    metadata: JointMetadata
    current_value: float = 0.0

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def limits(self) -> Optional[JointLimit]:
        return self.metadata.limits


@dataclass
class RobotHandState:
    """Per-instance joint values for one hand model."""
    metadata: RobotHandMetadata
    joints: Dict[str, JointState] = field(default_factory=dict)

    def __contains__(self, joint_name: str) -> bool:
        return joint_name in self.joints

    def __len__(self) -> int:
        return len(self.joints)


def create_hand_state(metadata: RobotHandMetadata) -> RobotHandState:
    """
    Create a fresh runtime state from metadata.

    Every joint of every finger is registered with a value of 0.

    Args:
        metadata: Immutable hand metadata

    Returns:
        New runtime state instance
    """
    joints = {
        joint_meta.name: JointState(metadata=joint_meta, current_value=0.0)
        for joint_meta in metadata.all_joints()
    }
    return RobotHandState(metadata=metadata, joints=joints)


def _lookup(state: RobotHandState, joint_name: str) -> JointState:
    joint = state.joints.get(joint_name)
    if joint is None:
        raise UnknownJointError(joint_name, state.metadata.id)
    return joint


def set_joint(state: RobotHandState, joint_name: str, value: float) -> float:
    """
    Update a single joint's value, clamped to its limits when it has any.

    Args:
        state: Runtime state
        joint_name: Name of joint to update
        value: New angle (radians) or position (meters)

    Returns:
        The value actually stored

    Raises:
        UnknownJointError: If the joint is not part of this hand
    """
    joint = _lookup(state, joint_name)
    value = float(value)

    if joint.limits is not None:
        value = joint.limits.clamp(value)

    joint.current_value = value
    return value


def set_joints(state: RobotHandState, values: Mapping[str, float]) -> Dict[str, float]:
    """
    Update several joints at once.

    Unknown joint names are skipped so partial or newer payloads from external
    systems can be applied as-is.

    Returns:
        Mapping of the joints that were updated to their stored values
    """
    applied = {}
    for name, value in values.items():
        if name in state.joints:
            applied[name] = set_joint(state, name, value)
    return applied


def get_joint(state: RobotHandState, joint_name: str) -> float:
    """Current value of one joint. Raises UnknownJointError if absent."""
    return _lookup(state, joint_name).current_value


def get_joint_values(state: RobotHandState) -> Dict[str, float]:
    """Snapshot of every joint value, for serialization or rendering."""
    return {name: joint.current_value for name, joint in state.joints.items()}


def reset_hand_state(state: RobotHandState) -> None:
    """Return every joint to its neutral value (0)."""
    for joint in state.joints.values():
        joint.current_value = 0.0


def get_joint_names(state: RobotHandState) -> List[str]:
    return list(state.joints)


def get_joint_count(state: RobotHandState) -> int:
    return len(state.joints)
