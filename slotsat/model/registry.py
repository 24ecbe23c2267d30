from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List

from slotsat.core.errors import VariableNotFoundError
from slotsat.core.logging import get_logger

logger = get_logger(__name__)

@dataclass(frozen=True)
class Variable:
    """One boolean unknown meaning "name has value"."""
    id: int
    name: Hashable
    value: Any

    @property
    def payload(self) -> Dict[Hashable, Any]:
        return {self.name: self.value}

class VariableRegistry:
    """
    Per-session table of variables.
    Ids start at 1, grow by one per registration and are never reused
    until the registry is reset.
    """
    def __init__(self):
        self._variables: Dict[int, Variable] = {}
        self._next_id: int = 1

    @classmethod
    def new_session(cls) -> "VariableRegistry":
        return cls()

    @property
    def next_var_id(self) -> int:
        return self._next_id

    @property
    def max_id(self) -> int:
        return self._next_id - 1

    def register(self, name: Hashable, value: Any) -> int:
        """
        Register the (name, value) pair and return its new id.
        Registering the same pair twice yields two distinct variables.
        """
        vid = self._next_id
        self._variables[vid] = Variable(vid, name, value)
        self._next_id += 1
        return vid

    def get(self, vid: int) -> Variable:
        try:
            return self._variables[vid]
        except KeyError:
            raise VariableNotFoundError(f"No variable with id {vid}")

    def lookup(self, vid: int) -> Dict[Hashable, Any]:
        """Returns the payload mapping of a variable."""
        return self.get(vid).payload

    def select(self, where: Callable[[Dict[Hashable, Any]], bool]) -> List[int]:
        """Ids of every variable whose payload `where` accepts, in registration order."""
        return [v.id for v in self._variables.values() if where(v.payload)]

    def reset(self) -> None:
        if self._variables:
            logger.debug(f"Resetting registry with {len(self._variables)} variables")
        self._variables = {}
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._variables)

    def __contains__(self, vid: int) -> bool:
        return vid in self._variables
