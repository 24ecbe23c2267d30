from slotsat.solve.types import SatResult, SatStatus
from slotsat.solve.solvers import (
    SolverBackend, PySatBackend, ProcessBackend, make_backend, parse_solver_output
)
from slotsat.solve.enumerator import SolutionEnumerator

__all__ = [
    "SatResult", "SatStatus",
    "SolverBackend", "PySatBackend", "ProcessBackend", "make_backend", "parse_solver_output",
    "SolutionEnumerator"
]
