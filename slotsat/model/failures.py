from typing import Iterable, List, Sequence, Union

from slotsat.cnf.cnf_io import format_clause, parse_literals
from slotsat.cnf.cnf_types import ClauseLits, negate_clause
from slotsat.core.errors import MalformedCnfError

class FailureRecorder:
    """
    Assignments rejected by a constraint predicate.

    Each recorded entry lists every literal of one failing assignment; it is
    emitted negated, which excludes exactly that assignment.
    """
    def __init__(self, failed_solutions: Iterable[Union[str, Sequence[int]]] = ()):
        self.failed_solutions: List[ClauseLits] = []
        self.extend(failed_solutions)

    def record(self, literals: Union[str, Sequence[int]]) -> None:
        if isinstance(literals, str):
            literals = parse_literals(literals)
        if not literals:
            raise MalformedCnfError("Cannot record an empty assignment")
        self.failed_solutions.append(tuple(literals))

    def extend(self, failed_solutions: Iterable[Union[str, Sequence[int]]]) -> None:
        for literals in failed_solutions:
            self.record(literals)

    def clauses(self) -> List[ClauseLits]:
        return [negate_clause(f) for f in self.failed_solutions]

    def dimacs(self) -> str:
        lines = [format_clause(c) for c in self.clauses()]
        return "\n".join(lines) + "\n\n" if lines else "\n"

    def __len__(self) -> int:
        return len(self.failed_solutions)
