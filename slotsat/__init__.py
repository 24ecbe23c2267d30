"""
slotsat: compile slot/set assignment problems to CNF and enumerate their solutions.
"""
from slotsat.core import (
    SlotSatError, NameCollisionError, GroupNotFoundError, VariableNotFoundError,
    MissingRequiredArgumentError, InvalidGroupError, MalformedCnfError, SolverInvocationError,
    SolverConfig, get_logger
)
from slotsat.model import ConstraintModel, ConstraintGroup, FailureRecorder, VariableRegistry
from slotsat.solve import SolutionEnumerator

__all__ = [
    "ConstraintModel", "ConstraintGroup", "FailureRecorder", "VariableRegistry",
    "SolutionEnumerator", "SolverConfig", "get_logger",
    "SlotSatError", "NameCollisionError", "GroupNotFoundError", "VariableNotFoundError",
    "MissingRequiredArgumentError", "InvalidGroupError", "MalformedCnfError", "SolverInvocationError",
]
