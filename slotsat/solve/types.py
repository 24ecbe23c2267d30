from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional

class SatStatus(str, Enum):
    SAT = "SAT"
    UNSAT = "UNSAT"

@dataclass
class SatResult:
    """
    Raw result of one solver call.
    """
    status: SatStatus
    # Full assignment: one signed literal per variable, no trailing 0
    model: List[int] = field(default_factory=list)
    seed: Optional[int] = None
    time_taken: float = 0.0

    @property
    def is_sat(self) -> bool:
        return self.status == SatStatus.SAT
