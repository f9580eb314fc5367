"""Built-in robot hand designs.

Joint origins, axes and limits are taken from each manufacturer's URDF so no
URDF parsing is needed at runtime.
"""

from typing import Dict, List, Optional, Tuple

from .metadata import (
    FingerMetadata,
    FingerName,
    Handedness,
    JointLimit,
    JointMetadata,
    JointType,
    RobotHandMetadata,
)


def _revolute(
    name: str,
    position: Tuple[float, float, float],
    axis: Tuple[float, float, float],
    upper: float,
    parent: str,
    child: str,
    lower: float = 0.0,
    effort: float = 100.0,
    velocity: float = 1.0,
) -> JointMetadata:
    return JointMetadata(
        name=name,
        type=JointType.REVOLUTE,
        position=position,
        axis=axis,
        limits=JointLimit(lower=lower, upper=upper, effort=effort, velocity=velocity),
        parent_link=parent,
        child_link=child,
    )


_L10_BASE = "hand_base_link"

# Index, ring and pinky share the same phalanx geometry past the metacarpal
_L10_PITCH = (0.0020763, 0.0, 0.015294)
_L10_PIP = (-0.0013807, 0.0, 0.035624)
_L10_DIP = (-0.0054686, 0.0, 0.025665)
_Y = (0.0, 1.0, 0.0)


def _l10_four_dof_finger(
    finger: str,
    roll_position: Tuple[float, float, float],
    roll_axis: Tuple[float, float, float],
    roll_upper: float,
    dip_upper: float,
) -> FingerMetadata:
    return FingerMetadata(
        name=FingerName(finger),
        joints=(
            _revolute(f"{finger}_mcp_roll", roll_position, roll_axis, roll_upper,
                      _L10_BASE, f"{finger}_metacarpals"),
            _revolute(f"{finger}_mcp_pitch", _L10_PITCH, _Y, 1.3607,
                      f"{finger}_metacarpals", f"{finger}_proximal"),
            _revolute(f"{finger}_pip", _L10_PIP, _Y, 1.8317,
                      f"{finger}_proximal", f"{finger}_middle"),
            _revolute(f"{finger}_dip", _L10_DIP, _Y, dip_upper,
                      f"{finger}_middle", f"{finger}_distal"),
        ),
    )


LINKER_L10_RIGHT = RobotHandMetadata(
    id="linker-l10-right",
    name="Linker L10 Right Hand",
    brand="Linker",
    model="L10",
    handedness=Handedness.RIGHT,
    base_link=_L10_BASE,
    urdf_path="assets/robots/hands/linker_l10/right/linkerhand_l10_right.urdf",
    fingers={
        # Thumb: 5 DOF (cmc_roll, cmc_yaw, cmc_pitch, mcp, ip)
        FingerName.THUMB: FingerMetadata(
            name=FingerName.THUMB,
            joints=(
                _revolute("thumb_cmc_roll", (-0.013419, 0.012551, 0.060602),
                          (0.99996, 0.0, -0.0087265), 1.1339,
                          _L10_BASE, "thumb_metacarpals_base1"),
                _revolute("thumb_cmc_yaw", (0.035797, -0.00065879, 0.00045944),
                          (0.008517, -0.21782, -0.97595), 1.9189,
                          "thumb_metacarpals_base1", "thumb_metacarpals_base2",
                          velocity=0.0),
                _revolute("thumb_cmc_pitch", (0.0046051, 0.014383, -0.0051478),
                          _Y, 0.5146,
                          "thumb_metacarpals_base2", "thumb_metacarpals"),
                _revolute("thumb_mcp", (0.0061722, 0.0, 0.047968), _Y, 0.7152,
                          "thumb_metacarpals", "thumb_proximal"),
                _revolute("thumb_ip", (-0.00017064, 0.0, 0.038665), _Y, 0.7763,
                          "thumb_proximal", "thumb_distal"),
            ),
        ),
        # Index: 4 DOF (mcp_roll, mcp_pitch, pip, dip)
        FingerName.INDEX: _l10_four_dof_finger(
            "index", (-0.0021643, 0.026654, 0.13253), (-0.99996, 0.0, 0.0087265),
            roll_upper=0.2181, dip_upper=1.8317,
        ),
        # Middle: 3 DOF, no roll joint
        FingerName.MIDDLE: FingerMetadata(
            name=FingerName.MIDDLE,
            joints=(
                _revolute("middle_mcp_pitch", (-0.0021316, 0.0076542, 0.15281), _Y, 1.3607,
                          _L10_BASE, "middle_proximal"),
                _revolute("middle_pip", (-0.001397, 0.0, 0.035623), _Y, 1.8317,
                          "middle_proximal", "middle_middle"),
                _revolute("middle_dip", (-0.0055098, 0.0, 0.025656), _Y, 0.628,
                          "middle_middle", "middle_distal"),
            ),
        ),
        FingerName.RING: _l10_four_dof_finger(
            "ring", (-0.0021643, -0.011346, 0.13253), (0.99996, 0.0, 0.0087265),
            roll_upper=0.2181, dip_upper=0.628,
        ),
        FingerName.PINKY: _l10_four_dof_finger(
            "pinky", (-0.00012074, -0.030346, 0.12755), (0.99996, 0.0, 0.0087265),
            roll_upper=0.3489, dip_upper=0.628,
        ),
    },
)


HAND_MODELS: Dict[str, RobotHandMetadata] = {
    LINKER_L10_RIGHT.id: LINKER_L10_RIGHT,
}


def get_hand_model(model_id: str) -> RobotHandMetadata:
    """Look up a built-in hand design by id."""
    try:
        return HAND_MODELS[model_id]
    except KeyError:
        known = ", ".join(sorted(HAND_MODELS))
        raise KeyError(f"Unknown hand model '{model_id}' (known: {known})") from None


def list_hand_models() -> List[str]:
    return sorted(HAND_MODELS)


def register_hand_model(metadata: RobotHandMetadata, replace: bool = False) -> None:
    """Add a hand design to the registry, e.g. one loaded from YAML."""
    if metadata.id in HAND_MODELS and not replace:
        raise ValueError(f"Hand model '{metadata.id}' is already registered")
    HAND_MODELS[metadata.id] = metadata


def find_hand_model(brand: str, model: str, handedness: str) -> Optional[RobotHandMetadata]:
    for meta in HAND_MODELS.values():
        if (meta.brand.lower() == brand.lower()
                and meta.model.lower() == model.lower()
                and meta.handedness.value == handedness.lower()):
            return meta
    return None
