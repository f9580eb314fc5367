"""Tests for the CCD chain solver."""

import numpy as np
import pytest

from handmimic.core import Config
from handmimic.core.quaternion import quat_angle, quat_identity
from handmimic.ik import CCDChain, CCDSolver


def test_rest_pose_is_straight_along_direction():
    chain = CCDChain([1.0, 0.5, 0.25])

    np.testing.assert_allclose(chain.effector(), [0.0, 1.75, 0.0])
    assert chain.reach == pytest.approx(1.75)
    assert chain.positions().shape == (4, 3)


def test_reachable_target_converges():
    chain = CCDChain([1.0, 1.0, 1.0])
    solver = CCDSolver(iterations=50, tolerance=1e-3)

    result = solver.solve(chain, (1.5, 1.5, 0.0))

    assert result.converged
    assert result.error <= 1e-3
    np.testing.assert_allclose(result.positions[-1], [1.5, 1.5, 0.0], atol=1e-3)


def test_link_lengths_are_preserved():
    chain = CCDChain([1.0, 0.7, 0.4])
    CCDSolver(iterations=20).solve(chain, (0.8, 0.9, 0.5))

    positions = chain.positions()
    lengths = np.linalg.norm(np.diff(positions, axis=0), axis=1)
    np.testing.assert_allclose(lengths, [1.0, 0.7, 0.4])


def test_unreachable_target_stretches_toward_it():
    chain = CCDChain([1.0, 1.0])
    result = CCDSolver(iterations=30).solve(chain, (10.0, 0.0, 0.0))

    assert not result.converged
    assert result.error == pytest.approx(8.0, abs=1e-2)
    np.testing.assert_allclose(result.positions[-1], [2.0, 0.0, 0.0], atol=1e-2)


def test_already_at_target_does_nothing():
    chain = CCDChain([1.0, 1.0])
    result = CCDSolver().solve(chain, (0.0, 2.0, 0.0))

    assert result.converged
    assert result.iterations == 0
    for rotation in result.rotations:
        assert quat_angle(rotation, quat_identity()) == pytest.approx(0.0)


def test_step_angle_is_capped():
    chain = CCDChain([1.0])
    result = CCDSolver(iterations=1, max_angle=0.1).solve(chain, (1.0, 0.0, 0.0))

    assert quat_angle(result.rotations[0], quat_identity()) == pytest.approx(0.1)
    assert result.iterations == 1


def test_invalid_arguments():
    with pytest.raises(ValueError):
        CCDChain([])
    with pytest.raises(ValueError):
        CCDChain([1.0, 0.0])
    with pytest.raises(ValueError):
        CCDSolver(iterations=0)
    with pytest.raises(ValueError):
        CCDSolver(min_angle=0.5, max_angle=0.1)


def test_from_config():
    config = Config.from_dict({"ik": {"iterations": 25, "max_angle": 0.5}})

    solver = CCDSolver.from_config(config)

    assert solver.iterations == 25
    assert solver.max_angle == 0.5
    assert solver.min_angle == 0.0
