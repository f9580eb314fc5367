"""Kinematic model - hand metadata, runtime joint state, skeleton graph"""

from .metadata import (
    JointType,
    Handedness,
    FingerName,
    JointLimit,
    JointMetadata,
    FingerMetadata,
    RobotHandMetadata,
    load_hand_metadata,
)
from .hand_state import (
    JointState,
    RobotHandState,
    create_hand_state,
    set_joint,
    set_joints,
    get_joint,
    get_joint_values,
    reset_hand_state,
    get_joint_names,
    get_joint_count,
)
from .skeleton import (
    SkeletonJoint,
    SkeletonGraph,
    RobotSkeletonData,
    parent_chain,
    world_position,
)
from .palm import PalmDimensions, calculate_palm_dimensions
from .models import LINKER_L10_RIGHT, get_hand_model, list_hand_models, register_hand_model
from .joint_animation import JointAnimator, joint_angle_at, ease_in_out_cubic

__all__ = [
    "JointType", "Handedness", "FingerName", "JointLimit",
    "JointMetadata", "FingerMetadata", "RobotHandMetadata", "load_hand_metadata",
    "JointState", "RobotHandState", "create_hand_state",
    "set_joint", "set_joints", "get_joint", "get_joint_values",
    "reset_hand_state", "get_joint_names", "get_joint_count",
    "SkeletonJoint", "SkeletonGraph", "RobotSkeletonData",
    "parent_chain", "world_position",
    "PalmDimensions", "calculate_palm_dimensions",
    "LINKER_L10_RIGHT", "get_hand_model", "list_hand_models", "register_hand_model",
    "JointAnimator", "joint_angle_at", "ease_in_out_cubic",
]
