"""Exception types shared across the kinematics, tracking and retargeting layers.

Only structural problems are exceptions. Per-tick data-quality problems
(missing landmarks, zero-length vectors, absent calibration inputs) are
reported by returning ``None`` so the caller keeps its previous state.
"""


class HandMimicError(Exception):
    """Base class for all handmimic errors."""


class UnknownJointError(HandMimicError, KeyError):
    """A joint update referenced a name that the hand state does not contain."""

    def __init__(self, joint_name: str, model_id: str = ""):
        self.joint_name = joint_name
        self.model_id = model_id
        where = f" in hand model '{model_id}'" if model_id else ""
        super().__init__(f"Joint '{joint_name}' not found{where}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class GraphError(HandMimicError):
    """Cyclic or unresolvable parent chain in hand metadata."""


class MetadataError(HandMimicError, ValueError):
    """Hand metadata is malformed and cannot be used to build a model."""


class ConfigError(HandMimicError, ValueError):
    """A configuration value is outside its accepted range."""
