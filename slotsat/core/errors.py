class SlotSatError(Exception):
    """Base exception for all slotsat related errors."""
    pass

class NameCollisionError(SlotSatError):
    """Raised when a slot or set name is already taken."""

    def __init__(self, name):
        super().__init__(f"Already using name {name!r}")
        self.name = name

class GroupNotFoundError(SlotSatError):
    """Raised when a constraint references a group that was never declared."""

    def __init__(self, name):
        super().__init__(f"Can't find group {name!r}")
        self.name = name

class VariableNotFoundError(SlotSatError):
    """Raised when a variable id is not present in the registry."""
    pass

class MissingRequiredArgumentError(SlotSatError):
    """Raised when an internal helper is called without a required argument."""
    pass

class InvalidGroupError(SlotSatError):
    """Raised when a cardinality window is out of range for its group."""
    pass

class MalformedCnfError(SlotSatError):
    """Raised when DIMACS text cannot be parsed."""
    pass

class SolverInvocationError(SlotSatError):
    """Raised when the SAT solver fails to run or produces unusable output."""
    pass
