import itertools
from typing import Any, Callable, Dict, Hashable, List, NamedTuple, Optional, Sequence, Tuple

from slotsat.cnf.cnf_io import comment_lines, format_clause
from slotsat.cnf.cnf_types import ClauseLits, CnfDocument
from slotsat.core.config import SolverConfig
from slotsat.core.errors import InvalidGroupError, MissingRequiredArgumentError
from slotsat.core.logging import get_logger
from slotsat.model.registry import Variable, VariableRegistry
from slotsat.solve.enumerator import SolutionEnumerator

logger = get_logger(__name__)

Assignment = Dict[Hashable, Any]

class Possibility(NamedTuple):
    """A locally satisfying partial assignment and the literals that produce it."""
    assignment: Assignment
    literals: ClauseLits

def freeze_assignment(assignment: Assignment) -> Tuple:
    """Hashable form of a decoded assignment, used to deduplicate possibilities."""
    return tuple(
        (k, tuple(v) if isinstance(v, list) else v) for k, v in assignment.items()
    )

def merge_payload(variable: Optional[Variable], target: Optional[Assignment], collect: bool) -> Assignment:
    """
    Merges one true variable into a decoded assignment.
    Slots keep a single value (last one wins); sets (collect=True) append
    to a list in declaration order.
    """
    if variable is None or target is None:
        missing = [n for n, v in (("variable", variable), ("target", target)) if v is None]
        raise MissingRequiredArgumentError(f"merge_payload called without {', '.join(missing)}")

    if collect:
        target.setdefault(variable.name, []).append(variable.value)
    else:
        target[variable.name] = variable.value
    return target

class ConstraintGroup:
    """
    Cardinality constraint "between min_on and max_on of these variables are true".

    Variables are given as ids or selected from the registry with `where`,
    a predicate over each variable's payload. Clauses use the plain
    combinatorial encoding, so the clause count is
    C(n, n - min_on + 1) + C(n, max_on + 1): fine for a few dozen variables,
    not beyond.
    """
    def __init__(self,
                 registry: VariableRegistry,
                 variable_ids: Optional[Sequence[int]] = None,
                 min_on: int = 1,
                 max_on: int = 1,
                 where: Optional[Callable[[Assignment], bool]] = None,
                 collect: Optional[bool] = None,
                 label: str = "",
                 config: Optional[SolverConfig] = None):
        self.registry = registry
        self.label = label
        if where is not None:
            ids = registry.select(where)
        elif variable_ids is not None:
            ids = list(variable_ids)
        else:
            raise MissingRequiredArgumentError("ConstraintGroup needs variable_ids or where")

        self.variables: List[Variable] = [registry.get(vid) for vid in ids]
        n = len(self.variables)
        if n == 0:
            raise InvalidGroupError(f"Group {label!r} has no variables")
        if len({v.id for v in self.variables}) != n:
            raise InvalidGroupError(f"Group {label!r} lists a variable twice")
        if min_on < 0 or min_on > max_on:
            raise InvalidGroupError(f"Invalid window [{min_on}, {max_on}] for group {label!r}")
        if min_on > n:
            raise InvalidGroupError(f"min_on={min_on} exceeds {n} variables in group {label!r}")

        # Sets decode to lists even when clamped to a single variable
        self.collect = max_on > 1 if collect is None else collect
        self.min_on = min_on
        self.max_on = min(max_on, n)

        # Solver settings for enumerating possibilities; never capped
        base = config or SolverConfig()
        self.config = base.model_copy(update={"max_solutions": None})
        self._possibilities: Optional[List[Possibility]] = None

    @property
    def variable_ids(self) -> List[int]:
        return [v.id for v in self.variables]

    def clauses(self) -> List[ClauseLits]:
        ids = self.variable_ids
        n = len(ids)
        out: List[ClauseLits] = []
        if self.min_on > 0:
            # at least one of every (n - min_on + 1)-subset is true
            for combo in itertools.combinations(ids, n - (self.min_on - 1)):
                out.append(tuple(combo))
        if self.max_on < n:
            # at least one of every (max_on + 1)-subset is false
            for combo in itertools.combinations(ids, self.max_on + 1):
                out.append(tuple(-vid for vid in combo))
        return out

    @property
    def is_constrained(self) -> bool:
        return self.min_on > 0 or self.max_on < len(self.variables)

    def dimacs(self) -> str:
        lines = ["c Variables:"]
        for v in self.variables:
            lines.extend(comment_lines(f"{v.id}: {v.payload!r}", indent="  "))
        lines.extend(format_clause(c) for c in self.clauses())
        return "\n".join(lines) + "\n\n"

    def decode(self, literals: Sequence[int]) -> Assignment:
        out: Assignment = {}
        for lit in literals:
            if lit > 0:
                merge_payload(self.registry.get(lit), out, self.collect)
        return out

    def possibilities(self) -> List[Possibility]:
        """Every locally satisfying assignment, computed once."""
        if self._possibilities is None:
            if self.is_constrained:
                self._possibilities = self._solve_possibilities()
            else:
                self._possibilities = self._product_possibilities()
            logger.debug(f"Group {self.label!r}: {len(self._possibilities)} possibilities")
        return self._possibilities

    def _product_possibilities(self) -> List[Possibility]:
        found: Dict[Tuple, Possibility] = {}
        choices = [(vid, -vid) for vid in self.variable_ids]
        for literals in itertools.product(*choices):
            assignment = self.decode(literals)
            found[freeze_assignment(assignment)] = Possibility(assignment, tuple(literals))
        return list(found.values())

    def _solve_possibilities(self) -> List[Possibility]:
        # Local numbering 1..n so the solver sees exactly this group's variables
        ids = self.variable_ids
        to_local = {vid: i + 1 for i, vid in enumerate(ids)}
        local_clauses = [
            [to_local[lit] if lit > 0 else -to_local[-lit] for lit in clause]
            for clause in self.clauses()
        ]
        doc = CnfDocument(num_vars=len(ids), clauses=local_clauses)

        def interpret(model: List[int]) -> Possibility:
            literals = tuple(ids[lit - 1] if lit > 0 else -ids[-lit - 1] for lit in model)
            return Possibility(self.decode(literals), literals)

        found: Dict[Tuple, Possibility] = {}
        for possibility in SolutionEnumerator(interpret, doc, config=self.config):
            found[freeze_assignment(possibility.assignment)] = possibility
        return list(found.values())
