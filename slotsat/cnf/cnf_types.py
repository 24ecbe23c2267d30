from typing import List, Sequence, Tuple
from pydantic import BaseModel, Field, field_validator

# Clause as stored by groups and recorders: literals without the DIMACS terminator
ClauseLits = Tuple[int, ...]

def negate_clause(literals: Sequence[int]) -> ClauseLits:
    """Flips the sign of every literal (the blocking clause of a full assignment)."""
    return tuple(-lit for lit in literals)

def max_var(clauses: Sequence[Sequence[int]]) -> int:
    """Returns the highest variable id used in the clauses, or 0."""
    return max((abs(lit) for clause in clauses for lit in clause), default=0)

class CnfDocument(BaseModel):
    """CNF document model with validation."""
    num_vars: int = Field(ge=0)
    clauses: List[List[int]]
    comments: List[str] = Field(default_factory=list)

    @field_validator('clauses')
    @classmethod
    def validate_clauses(cls, v: List[List[int]], info) -> List[List[int]]:
        num_vars = info.data.get('num_vars')
        for i, clause in enumerate(v):
            if not clause:
                raise ValueError(f"Clause {i} is empty")
            for lit in clause:
                if lit == 0:
                    raise ValueError(f"Literal 0 is invalid in clause {i}")
                if num_vars is not None and abs(lit) > num_vars:
                    raise ValueError(f"Literal {lit} exceeds num_vars {num_vars} in clause {i}")
        return v

    def with_clause(self, clause: Sequence[int]) -> "CnfDocument":
        """Returns a copy with one more clause; num_vars grows if needed."""
        clause = list(clause)
        return CnfDocument(
            num_vars=max(self.num_vars, max_var([clause])),
            clauses=self.clauses + [clause],
            comments=list(self.comments),
        )
