"""Cyclic Coordinate Descent IK for serial link chains"""

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from handmimic.core import get_logger, Config
from handmimic.core.quaternion import (
    normalize,
    quat_conjugate,
    quat_from_axis_angle,
    quat_identity,
    quat_multiply,
    quat_normalize,
    quat_rotate_vector,
)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp value between min and max."""
    return max(min_val, min(max_val, value))


class CCDChain:
    """
    Serial chain of rigid links.

    Each link extends `length` along `direction` in its own frame and carries
    a local rotation relative to its parent link. The first link is rooted
    at `base`.
    """

    def __init__(
        self,
        lengths: Sequence[float],
        base: Sequence[float] = (0.0, 0.0, 0.0),
        direction: Sequence[float] = (0.0, 1.0, 0.0),
    ):
        if len(lengths) == 0:
            raise ValueError("CCD chain needs at least one link")
        if any(length <= 0 for length in lengths):
            raise ValueError(f"Link lengths must be positive, got {list(lengths)}")

        self.lengths = [float(length) for length in lengths]
        self.base = np.asarray(base, dtype=np.float64)
        self.direction = normalize(direction)
        if not np.any(self.direction):
            raise ValueError("Chain direction must be non-zero")

        self.rotations: List[np.ndarray] = [quat_identity() for _ in self.lengths]

    def __len__(self) -> int:
        return len(self.lengths)

    @property
    def reach(self) -> float:
        return float(sum(self.lengths))

    def world_rotations(self) -> List[np.ndarray]:
        """Accumulated rotation of every link."""
        world = []
        current = quat_identity()
        for local in self.rotations:
            current = quat_multiply(current, local)
            world.append(current)
        return world

    def positions(self) -> np.ndarray:
        """
        Joint positions from base to effector.

        Returns:
            (len + 1, 3) array; the last row is the effector
        """
        points = [self.base.copy()]
        for length, rotation in zip(self.lengths, self.world_rotations()):
            offset = quat_rotate_vector(rotation, self.direction * length)
            points.append(points[-1] + offset)
        return np.array(points)

    def effector(self) -> np.ndarray:
        return self.positions()[-1]

    def reset(self) -> None:
        self.rotations = [quat_identity() for _ in self.lengths]


@dataclass
class CCDResult:
    """Outcome of one solve."""
    positions: np.ndarray
    rotations: List[np.ndarray] = field(default_factory=list)
    error: float = 0.0
    iterations: int = 0
    converged: bool = False


class CCDSolver:
    """
    CCD solver.

    Each iteration walks the links from tip to base and turns each one so
    the effector swings toward the target. The per-step angle is clamped
    into [min_angle, max_angle] radians.
    """

    # Steps smaller than this are treated as already aligned
    ANGLE_EPSILON = 1e-5

    def __init__(
        self,
        iterations: int = 10,
        min_angle: float = 0.0,
        max_angle: float = 1.0,
        tolerance: float = 1e-4,
    ):
        if iterations < 1:
            raise ValueError(f"iterations must be at least 1, got {iterations}")
        if min_angle < 0 or min_angle > max_angle:
            raise ValueError(f"Invalid angle range [{min_angle}, {max_angle}]")

        self.logger = get_logger("ik.ccd")
        self.iterations = int(iterations)
        self.min_angle = float(min_angle)
        self.max_angle = float(max_angle)
        self.tolerance = float(tolerance)

    @classmethod
    def from_config(cls, config: Config) -> "CCDSolver":
        ik = config.ik
        return cls(
            iterations=int(ik.get("iterations", 10)),
            min_angle=float(ik.get("min_angle", 0.0)),
            max_angle=float(ik.get("max_angle", 1.0)),
            tolerance=float(ik.get("tolerance", 1e-4)),
        )

    def _step_link(self, chain: CCDChain, index: int, target: np.ndarray) -> bool:
        positions = chain.positions()
        joint = positions[index]
        to_effector = normalize(positions[-1] - joint)
        to_target = normalize(target - joint)
        if not np.any(to_effector) or not np.any(to_target):
            return False

        angle = float(np.arccos(clamp(float(np.dot(to_effector, to_target)), -1.0, 1.0)))
        if angle < self.ANGLE_EPSILON:
            return False
        angle = clamp(angle, self.min_angle, self.max_angle)

        axis = np.cross(to_effector, to_target)
        if np.linalg.norm(axis) < 1e-12:
            # Effector points straight away from the target; any perpendicular works
            helper = np.array([1.0, 0.0, 0.0]) if abs(to_effector[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
            axis = np.cross(to_effector, helper)

        # Express the world-space axis in the parent link's frame
        parent = quat_identity() if index == 0 else chain.world_rotations()[index - 1]
        local_axis = quat_rotate_vector(quat_conjugate(parent), normalize(axis))

        step = quat_from_axis_angle(local_axis, angle)
        chain.rotations[index] = quat_normalize(quat_multiply(step, chain.rotations[index]))
        return True

    def solve(self, chain: CCDChain, target: Sequence[float]) -> CCDResult:
        """
        Move the chain's effector toward target, modifying the chain in place.

        Args:
            chain: Chain to solve; its rotations are updated
            target: World-space goal for the effector

        Returns:
            CCDResult with final positions, local rotations and distance error
        """
        target = np.asarray(target, dtype=np.float64)

        error = float(np.linalg.norm(chain.effector() - target))
        iterations = 0

        while iterations < self.iterations and error > self.tolerance:
            moved = False
            for index in reversed(range(len(chain))):
                moved |= self._step_link(chain, index, target)
            iterations += 1
            error = float(np.linalg.norm(chain.effector() - target))
            if not moved:
                break

        converged = error <= self.tolerance
        self.logger.debug(
            f"CCD finished after {iterations} iterations (error={error:.6f}, converged={converged})"
        )

        return CCDResult(
            positions=chain.positions(),
            rotations=[r.copy() for r in chain.rotations],
            error=error,
            iterations=iterations,
            converged=converged,
        )
