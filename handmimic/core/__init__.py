"""Core systems - config, logging, timing, errors, quaternion math"""

from .config import Config, DEFAULT_CONFIG
from .logging import setup_logging, get_logger
from .timing import FrameTimer, FrameClock, FrameData
from .errors import (
    HandMimicError,
    UnknownJointError,
    GraphError,
    MetadataError,
    ConfigError,
)

__all__ = [
    "Config", "DEFAULT_CONFIG",
    "setup_logging", "get_logger",
    "FrameTimer", "FrameClock", "FrameData",
    "HandMimicError", "UnknownJointError", "GraphError",
    "MetadataError", "ConfigError",
]
