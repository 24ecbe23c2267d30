import itertools
from types import MappingProxyType
from typing import (
    Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Union
)

from slotsat.cnf.cnf_io import comment_lines, parse_literals
from slotsat.core.config import SolverConfig
from slotsat.core.errors import (
    GroupNotFoundError, MissingRequiredArgumentError, NameCollisionError
)
from slotsat.core.logging import get_logger
from slotsat.model.failures import FailureRecorder
from slotsat.model.group import Assignment, ConstraintGroup, Possibility, merge_payload
from slotsat.model.registry import VariableRegistry
from slotsat.solve.enumerator import SolutionEnumerator

logger = get_logger(__name__)

Predicate = Callable[[Mapping[Hashable, Any]], bool]

SECTION_RULE = "c ---------------------------"

class ConstraintModel:
    """
    Main entry point: declare slots and sets, add constraints, then solve.

    A slot is a name holding one value of its domain (or none when empty is
    allowed). A set is a name holding several values, up to max_values.
    Constraints are predicates over the values of a few named groups; every
    combination they reject becomes a clause excluding it.

    Usage:

        model = ConstraintModel()
        model.declare_set("A", [3, 4, 5], allow_empty=True, max_values=2)
        model.declare_slot("B", [1, 2], allow_empty=False)
        model.add_constraint(["A", "B"], lambda s: "A" not in s or s["B"] == 1)
        for solution in model.enumerator():
            ...

    Models are built first and solved afterwards; declarations made after
    solving started only reach enumerators created later.
    """
    def __init__(self, registry: Optional[VariableRegistry] = None, config: Optional[SolverConfig] = None):
        """An injected registry is reset; it must not be shared with a live model."""
        if registry is None:
            registry = VariableRegistry.new_session()
        else:
            # a model always starts numbering at 1
            registry.reset()
        self.registry = registry
        self.config = config or SolverConfig()
        self.slot_groups: Dict[Hashable, ConstraintGroup] = {}
        self.set_groups: Dict[Hashable, ConstraintGroup] = {}
        self.non_interpreted_groups: Dict[Hashable, Union[ConstraintGroup, FailureRecorder]] = {}
        self._constraint_count = 0
        self._solving_started = False

    @property
    def interpreted_groups(self) -> Dict[Hashable, ConstraintGroup]:
        groups = {}
        groups.update(self.slot_groups)
        groups.update(self.set_groups)
        return groups

    def _check_building(self, action: str) -> None:
        if self._solving_started:
            logger.warning(f"{action} after solving started; existing enumerators will not see it")

    def _register_domain(self, name: Hashable, domain: Iterable[Any]) -> List[int]:
        return [self.registry.register(name, value) for value in domain]

    def declare_slot(self, name: Hashable, domain: Iterable[Any], allow_empty: bool = True) -> ConstraintGroup:
        """Declare a name that takes exactly one (or, with allow_empty, at most one) value."""
        if name in self.interpreted_groups:
            raise NameCollisionError(name)
        self._check_building(f"Declaring slot {name!r}")

        ids = self._register_domain(name, domain)
        group = ConstraintGroup(
            self.registry, ids,
            min_on=0 if allow_empty else 1, max_on=1,
            collect=False, label=str(name), config=self.config,
        )
        self.slot_groups[name] = group
        logger.debug(f"Declared slot {name!r} with {len(ids)} values")
        return group

    def declare_set(self, name: Hashable, domain: Iterable[Any], allow_empty: bool = True,
                    max_values: int = 2) -> ConstraintGroup:
        """Declare a name that takes up to max_values values at once."""
        if name in self.interpreted_groups:
            raise NameCollisionError(name)
        self._check_building(f"Declaring set {name!r}")

        ids = self._register_domain(name, domain)
        group = ConstraintGroup(
            self.registry, ids,
            min_on=0 if allow_empty else 1, max_on=max_values,
            collect=True, label=str(name), config=self.config,
        )
        self.set_groups[name] = group
        logger.debug(f"Declared set {name!r} with {len(ids)} values, max {max_values}")
        return group

    def _unique_key(self, key: str) -> str:
        if key not in self.non_interpreted_groups:
            return key
        for n in itertools.count(2):
            candidate = f"{key} #{n}"
            if candidate not in self.non_interpreted_groups:
                return candidate

    def _add_value_exclusion(self, kind: str, names: Sequence[Hashable], value: Any, min_on: int) -> Optional[str]:
        name_set = set(names)

        def carries_value(payload: Assignment) -> bool:
            payload_name, payload_value = next(iter(payload.items()))
            return payload_name in name_set and payload_value == value

        if not self.registry.select(carries_value):
            logger.debug(f"No variable carries value {value!r} for {list(names)}; skipping exclusion")
            return None

        label = f"{kind} [{', '.join(map(str, names))}] mutually exclusive, value: {value!r}"
        key = self._unique_key(label)
        self.non_interpreted_groups[key] = ConstraintGroup(
            self.registry, where=carries_value,
            min_on=min_on, max_on=1, collect=False, label=key, config=self.config,
        )
        return key

    def declare_mutually_exclusive_slots(self, names: Sequence[Hashable], domain: Sequence[Any],
                                         allow_empty: bool = False) -> List[str]:
        """
        Declare one slot per name (names already declared are reused) and
        allow each value in at most one of them. Returns the exclusion group keys.
        """
        domain = list(domain)
        for name in names:
            try:
                self.declare_slot(name, domain, allow_empty=allow_empty)
            except NameCollisionError:
                logger.debug(f"Reusing existing group {name!r}")

        keys = []
        for value in domain:
            key = self._add_value_exclusion("Slots", names, value, min_on=0)
            if key is not None:
                keys.append(key)
        return keys

    def declare_mutually_exclusive_sets(self, names: Sequence[Hashable], domain: Sequence[Any],
                                        allow_empty: bool = True, require_complete: bool = True,
                                        max_values: int = 2) -> List[str]:
        """
        Declare one set per name and place each value in at most one of them;
        with require_complete, in exactly one.
        """
        domain = list(domain)
        for name in names:
            try:
                self.declare_set(name, domain, allow_empty=allow_empty, max_values=max_values)
            except NameCollisionError:
                logger.debug(f"Reusing existing group {name!r}")

        keys = []
        for value in domain:
            key = self._add_value_exclusion("Sets", names, value, min_on=1 if require_complete else 0)
            if key is not None:
                keys.append(key)
        return keys

    def group(self, name: Hashable) -> ConstraintGroup:
        """Resolve a slot, set or anonymous group by name."""
        group = self.interpreted_groups.get(name)
        if group is None:
            group = self.non_interpreted_groups.get(name)
        if not isinstance(group, ConstraintGroup):
            raise GroupNotFoundError(name)
        return group

    @staticmethod
    def _combine(left: Possibility, right: Possibility) -> Optional[Possibility]:
        """Joins two partial assignments; None if they disagree on a shared variable."""
        signs = {abs(lit): lit for lit in left.literals}
        extra = []
        for lit in right.literals:
            seen = signs.get(abs(lit))
            if seen is None:
                extra.append(lit)
            elif seen != lit:
                return None
        merged = dict(left.assignment)
        merged.update(right.assignment)
        return Possibility(merged, left.literals + tuple(extra))

    def _candidates(self, names: Sequence[Hashable]) -> List[Possibility]:
        combined = [Possibility({}, ())]
        for name in names:
            group = self.group(name)
            step = []
            for left in combined:
                for right in group.possibilities():
                    joined = self._combine(left, right)
                    if joined is not None:
                        step.append(joined)
            combined = step
        return combined

    @staticmethod
    def _frozen_view(assignment: Assignment) -> Mapping[Hashable, Any]:
        return MappingProxyType({
            k: tuple(v) if isinstance(v, list) else v for k, v in assignment.items()
        })

    def add_constraint(self, names: Union[Hashable, List[Hashable]], predicate: Predicate,
                       key: Optional[Hashable] = None) -> Hashable:
        """
        Rule out every combination of values of the named groups that
        `predicate` rejects.

        `names` is a list of group names, or a single name (a tuple counts as
        one name). The predicate sees a read-only mapping holding only the
        named groups (set values as tuples, empty slots and sets absent) and is
        called once per combination, so it must be pure. Calls sharing a `key`
        accumulate into one set of exclusions. Returns the key used. If the
        predicate raises, the model is left unchanged.
        """
        if not isinstance(names, list):
            names = [names]
        names = list(dict.fromkeys(names))
        if not names:
            raise MissingRequiredArgumentError("add_constraint needs at least one group name")
        if predicate is None:
            raise MissingRequiredArgumentError("add_constraint needs a predicate")
        self._check_building("Adding a constraint")

        candidates = self._candidates(names)

        if key is None:
            key = self._unique_key(f"constraint-{self._constraint_count + 1}")
        recorder = self.non_interpreted_groups.get(key)
        if recorder is not None and not isinstance(recorder, FailureRecorder):
            raise NameCollisionError(key)

        rejected = [
            candidate.literals for candidate in candidates
            if not predicate(self._frozen_view(candidate.assignment))
        ]

        self._constraint_count += 1
        if recorder is None:
            recorder = FailureRecorder()
            self.non_interpreted_groups[key] = recorder
        recorder.extend(rejected)

        logger.debug(f"Constraint {key!r} on {names}: rejected {len(rejected)} of {len(candidates)} combinations")
        return key

    def add_pairwise_constraints(self, names: Sequence[Hashable], predicate: Predicate,
                                 key: Optional[Hashable] = None) -> Hashable:
        """Apply a two-group constraint to every pair of `names`, under one key."""
        if key is None:
            key = self._unique_key(f"pairwise-{self._constraint_count + 1}")
        for first, second in itertools.combinations(names, 2):
            self.add_constraint([first, second], predicate, key=key)
        return key

    def _all_clause_count(self) -> int:
        total = 0
        for group in self.interpreted_groups.values():
            total += len(group.clauses())
        for group in self.non_interpreted_groups.values():
            total += len(group.clauses())
        return total

    def dimacs(self) -> str:
        """The full CNF document in global variable numbering."""
        parts = [
            "c slotsat ConstraintModel\n",
            f"p cnf {self.registry.max_id} {self._all_clause_count()}\n",
            "\n",
        ]
        for banner, groups in (("INTERPRETED", self.interpreted_groups),
                               ("NON-INTERPRETED", self.non_interpreted_groups)):
            for key, group in groups.items():
                parts.append(f"{SECTION_RULE}\n")
                parts.append(f"c {banner}\n")
                parts.append(f"c {type(group).__name__} => \n")
                parts.extend(f"{line}\n" for line in comment_lines(key, indent="  "))
                parts.append("c \n")
                parts.append(group.dimacs())
        return "".join(parts)

    def decode(self, solution: Union[str, Sequence[int]]) -> Dict[Hashable, Any]:
        """Fold the true literals of a solver assignment into {name: value or [values]}."""
        if isinstance(solution, str):
            solution = parse_literals(solution)
        out: Dict[Hashable, Any] = {}
        for lit in solution:
            if lit > 0:
                variable = self.registry.get(lit)
                merge_payload(variable, out, variable.name in self.set_groups)
        return out

    # Interpreter alias, matching SolutionEnumerator's naming
    interpret = decode

    def enumerator(self, config: Optional[SolverConfig] = None) -> SolutionEnumerator:
        self._solving_started = True
        document = self.dimacs()
        logger.info(f"Enumerating model with {self.registry.max_id} variables and {self._all_clause_count()} clauses")
        return SolutionEnumerator(self.decode, document, config=config or self.config)
