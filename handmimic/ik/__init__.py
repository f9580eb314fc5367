"""Inverse kinematics module"""

from .ccd import CCDChain, CCDSolver, CCDResult

__all__ = ["CCDChain", "CCDSolver", "CCDResult"]
