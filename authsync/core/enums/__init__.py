"""Core enums package.

Usage:
    from authsync.core.enums import ErrorCode, Environment
"""

from authsync.core.enums.environment import Environment
from authsync.core.enums.error_code import ErrorCode

__all__ = ["ErrorCode", "Environment"]
