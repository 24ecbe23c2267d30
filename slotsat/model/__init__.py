from slotsat.model.registry import Variable, VariableRegistry
from slotsat.model.group import ConstraintGroup, Possibility, merge_payload, freeze_assignment
from slotsat.model.failures import FailureRecorder
from slotsat.model.constraint_model import ConstraintModel

__all__ = [
    "Variable", "VariableRegistry",
    "ConstraintGroup", "Possibility", "merge_payload", "freeze_assignment",
    "FailureRecorder",
    "ConstraintModel"
]
