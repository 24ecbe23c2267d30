"""
Core module for slotsat.
Provides error handling, logging and configuration.
"""
from slotsat.core.errors import (
    SlotSatError, NameCollisionError, GroupNotFoundError, VariableNotFoundError,
    MissingRequiredArgumentError, InvalidGroupError, MalformedCnfError, SolverInvocationError
)
from slotsat.core.logging import get_logger
from slotsat.core.config import SolverConfig

__all__ = [
    "SlotSatError", "NameCollisionError", "GroupNotFoundError", "VariableNotFoundError",
    "MissingRequiredArgumentError", "InvalidGroupError", "MalformedCnfError", "SolverInvocationError",
    "get_logger",
    "SolverConfig",
]
