import random
from typing import Callable, Generic, Iterator, List, Optional, TypeVar, Union

from slotsat.cnf.cnf_io import read_dimacs_from_string, to_dimacs_string
from slotsat.cnf.cnf_types import CnfDocument, negate_clause
from slotsat.core.config import SolverConfig
from slotsat.core.errors import SolverInvocationError
from slotsat.core.logging import get_logger
from slotsat.solve.solvers import SolverBackend, make_backend

logger = get_logger(__name__)

T = TypeVar("T")

_SEED_MAX = 2**31 - 1

class SolutionEnumerator(Generic[T]):
    """
    Lazily enumerates every satisfying assignment of a CNF document.

    Each step solves the current document, hands the full assignment to
    `interpreter` and appends its blocking clause, so no assignment is
    returned twice. Iteration stops when the solver answers UNSAT. A solver
    failure raises SolverInvocationError instead of ending the iteration.
    The enumerator is consumed by iteration and cannot be restarted.
    """
    def __init__(self,
                 interpreter: Callable[[List[int]], T],
                 document: Union[str, CnfDocument] = "",
                 config: Optional[SolverConfig] = None,
                 backend: Optional[SolverBackend] = None):
        self.interpreter = interpreter
        self.config = config or SolverConfig()
        self.backend = backend or make_backend(self.config)
        if isinstance(document, CnfDocument):
            self._doc = document
        else:
            self._doc = read_dimacs_from_string(document)
        self._exhausted = False
        self._error: Optional[SolverInvocationError] = None
        self._rng = random.SystemRandom()
        self.calls = 0
        self.solutions_found = 0

    @property
    def document(self) -> str:
        """Current DIMACS text, including blocking clauses added so far."""
        return to_dimacs_string(self._doc)

    @property
    def cnf(self) -> CnfDocument:
        return self._doc

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def _next_seed(self) -> int:
        if self.config.seed is not None:
            return self.config.seed + self.calls
        return self._rng.randint(1, _SEED_MAX)

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        if self._error is not None:
            raise self._error
        if self._exhausted:
            raise StopIteration
        if self.config.max_solutions is not None and self.solutions_found >= self.config.max_solutions:
            logger.debug(f"Reached max_solutions={self.config.max_solutions}")
            self._exhausted = True
            raise StopIteration

        seed = self._next_seed()
        self.calls += 1
        try:
            result = self.backend.solve(self._doc, seed)
        except SolverInvocationError as e:
            logger.error(f"Solver call {self.calls} failed: {e}")
            self._error = e
            raise

        if not result.is_sat:
            logger.debug(f"Enumeration finished with {self.solutions_found} solutions after {self.calls} solver calls")
            self._exhausted = True
            raise StopIteration

        model = result.model
        logger.debug(f"Solution {self.solutions_found + 1} (seed={seed}, {result.time_taken:.3f}s): {model}")
        if model:
            self._doc = self._doc.with_clause(negate_clause(model))
        else:
            # A document without variables has exactly one (empty) assignment
            self._exhausted = True

        self.solutions_found += 1
        return self.interpreter(model)

    def first(self) -> Optional[T]:
        """The next solution, or None when there is none."""
        return next(self, None)
