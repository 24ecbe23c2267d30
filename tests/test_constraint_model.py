import itertools

import pytest

from slotsat import ConstraintModel, SolverConfig, VariableRegistry
from slotsat.core.errors import GroupNotFoundError, MissingRequiredArgumentError, NameCollisionError
from slotsat.cnf.cnf_io import read_dimacs_from_string
from slotsat.model.failures import FailureRecorder
from slotsat.model.group import ConstraintGroup

def canon(solution):
    return tuple(sorted((k, tuple(v) if isinstance(v, list) else v) for k, v in solution.items()))

def solution_set(model, **config):
    solutions = list(model.enumerator(SolverConfig(**config)))
    keys = [canon(s) for s in solutions]
    assert len(keys) == len(set(keys)), "enumeration returned a solution twice"
    return set(keys)

def test_set_slot_and_constraint():
    model = ConstraintModel()
    model.declare_set("A", [3, 4, 5], allow_empty=True, max_values=2)
    model.declare_slot("B", [1, 2], allow_empty=False)
    model.add_constraint(["A", "B"], lambda s: "A" not in s or s["B"] == 1)

    expected = [
        {"B": 2}, {"B": 1}, {"A": [3], "B": 1}, {"A": [5], "B": 1}, {"A": [4], "B": 1},
        {"A": [3, 4], "B": 1}, {"A": [4, 5], "B": 1}, {"A": [3, 5], "B": 1},
    ]
    assert solution_set(model) == {canon(s) for s in expected}

def test_mutually_exclusive_slots():
    model = ConstraintModel()
    model.declare_mutually_exclusive_slots(["A", "B"], [3, 4, 5], allow_empty=True)
    solutions = solution_set(model)

    assert len(solutions) == 13
    for solution in solutions:
        values = dict(solution)
        if "A" in values and "B" in values:
            assert values["A"] != values["B"]
    assert () in solutions

def test_mutually_exclusive_sets():
    model = ConstraintModel()
    model.declare_mutually_exclusive_sets(["A", "B"], [3, 4, 5], allow_empty=True, max_values=3)

    expected = [
        {"B": [3, 4, 5]}, {"A": [3], "B": [4, 5]}, {"A": [4], "B": [3, 5]}, {"A": [3, 4, 5]},
        {"A": [5], "B": [3, 4]}, {"A": [3, 4], "B": [5]}, {"A": [3, 5], "B": [4]}, {"A": [4, 5], "B": [3]},
    ]
    assert solution_set(model) == {canon(s) for s in expected}

def test_mutually_exclusive_sets_not_complete():
    model = ConstraintModel()
    model.declare_mutually_exclusive_sets(["A", "B"], [3, 4], require_complete=False, max_values=2)
    # each value: in A, in B, or nowhere
    assert len(solution_set(model)) == 9

def test_mutually_exclusive_permutations():
    model = ConstraintModel()
    model.declare_mutually_exclusive_slots(["A", "B", "C"], ["foo", "bar", "baz"], allow_empty=False)
    solutions = solution_set(model)
    assert solutions == {
        tuple(sorted(zip("ABC", perm))) for perm in itertools.permutations(["foo", "bar", "baz"])
    }

def test_name_collision():
    model = ConstraintModel()
    model.declare_slot("A", [1, 2])
    with pytest.raises(NameCollisionError, match="A"):
        model.declare_slot("A", [3])
    with pytest.raises(NameCollisionError):
        model.declare_set("A", [3])
    model.declare_set("S", [1])
    with pytest.raises(NameCollisionError):
        model.declare_slot("S", [1])

def test_exclusion_groups_never_collide():
    model = ConstraintModel()
    first = model.declare_mutually_exclusive_slots(["A", "B"], [1, 2])
    second = model.declare_mutually_exclusive_slots(["A", "B"], [1, 2])
    assert len(set(first + second)) == 4
    assert set(model.slot_groups) == {"A", "B"}

def test_exclusion_reuses_existing_declarations():
    model = ConstraintModel()
    model.declare_slot("B", [1, 2], allow_empty=False)
    model.declare_mutually_exclusive_slots(["A", "B"], [1, 2], allow_empty=False)
    assert set(model.slot_groups) == {"A", "B"}
    assert solution_set(model) == {(("A", 1), ("B", 2)), (("A", 2), ("B", 1))}

def test_unknown_group():
    model = ConstraintModel()
    model.declare_slot("A", [1, 2])
    with pytest.raises(GroupNotFoundError, match="Z"):
        model.add_constraint(["A", "Z"], lambda s: True)

def test_constraint_key_cannot_be_used_as_group():
    model = ConstraintModel()
    model.declare_slot("A", [1, 2])
    key = model.add_constraint("A", lambda s: True)
    with pytest.raises(GroupNotFoundError):
        model.add_constraint([key], lambda s: True)

def test_constraint_needs_names():
    with pytest.raises(MissingRequiredArgumentError):
        ConstraintModel().add_constraint([], lambda s: True)

def test_constraint_keys_and_accumulation():
    model = ConstraintModel()
    model.declare_slot("A", [1, 2, 3], allow_empty=False)
    k1 = model.add_constraint("A", lambda s: s["A"] != 1)
    k2 = model.add_constraint("A", lambda s: s["A"] != 2)
    assert k1 != k2

    shared = model.add_constraint("A", lambda s: s["A"] != 1, key="no-low")
    assert model.add_constraint("A", lambda s: s["A"] != 2, key="no-low") == shared
    recorder = model.non_interpreted_groups["no-low"]
    assert isinstance(recorder, FailureRecorder)
    assert len(recorder) == 2
    assert solution_set(model) == {(("A", 3),)}

def test_constraint_key_collides_with_exclusion_group():
    model = ConstraintModel()
    keys = model.declare_mutually_exclusive_slots(["A", "B"], [1])
    with pytest.raises(NameCollisionError):
        model.add_constraint("A", lambda s: True, key=keys[0])

def test_constraint_on_exclusion_group():
    model = ConstraintModel()
    keys = model.declare_mutually_exclusive_slots(["A", "B"], [1, 2], allow_empty=True)
    # value 1 must be used by someone
    model.add_constraint([keys[0]], lambda s: len(s) > 0)
    for solution in solution_set(model):
        assert 1 in dict(solution).values()

def test_predicate_sees_read_only_partial_view():
    model = ConstraintModel()
    model.declare_set("A", [1, 2], max_values=2)
    model.declare_slot("B", [1, 2])
    model.declare_slot("C", [1, 2])
    seen = []

    def predicate(solution):
        seen.append(dict(solution))
        assert "C" not in solution
        with pytest.raises(TypeError):
            solution["B"] = 5
        return True

    model.add_constraint(["A", "B"], predicate)
    # 4 set possibilities x 3 slot possibilities
    assert len(seen) == 12
    assert {"A": (1, 2), "B": 2} in seen

def test_shared_variables_never_contradict():
    model = ConstraintModel()
    keys = model.declare_mutually_exclusive_slots(["A", "B"], [1, 2], allow_empty=True)
    seen = []
    model.add_constraint(["A", keys[0]], lambda s: seen.append(dict(s)) or True)
    # A=1 forces the exclusion group for value 1 to pick A
    assert {"A": 1} in seen
    assert {"A": 2} in seen and {"A": 2, "B": 1} in seen
    assert {"A": 1, "B": 1} not in seen

def test_pairwise_constraints():
    model = ConstraintModel()
    names = ["A", "B", "C"]
    for name in names:
        model.declare_slot(name, [1, 2, 3], allow_empty=False)
    key = model.add_pairwise_constraints(names, lambda s: len(set(s.values())) == len(s))
    assert isinstance(model.non_interpreted_groups[key], FailureRecorder)
    assert len(solution_set(model)) == 6

def test_dimacs_document():
    model = ConstraintModel()
    model.declare_slot("A", [1, 2], allow_empty=False)
    model.declare_set("S", [1, 2, 3])
    model.add_constraint(["A", "S"], lambda s: s["A"] not in s.get("S", ()))
    text = model.dimacs()

    assert text.startswith("c slotsat ConstraintModel\n")
    assert "c INTERPRETED\n" in text
    assert "c NON-INTERPRETED\n" in text
    assert "c   1: {'A': 1}" in text

    doc = read_dimacs_from_string(text)
    assert doc.num_vars == 5
    assert f"p cnf 5 {len(doc.clauses)}" in text

def test_decode():
    model = ConstraintModel()
    model.declare_slot("A", [3, 4])
    model.declare_set("S", ["x", "y", "z"], max_values=3)
    assert model.decode([-1, 2, 3, -4, 5]) == {"A": 4, "S": ["x", "z"]}
    assert model.decode("1 -2 -3 -4 -5 0") == {"A": 3}
    assert model.interpret([-1, -2, -3, -4, -5]) == {}

def test_sessions_restart_numbering():
    first = ConstraintModel()
    first.declare_slot("A", [1, 2])
    second = ConstraintModel()
    second.declare_slot("A", [1, 2])
    assert second.slot_groups["A"].variable_ids == [1, 2]
    assert first.registry is not second.registry

def test_first_solution_of_small_sudoku():
    puzzle = {"A1": 1, "B3": 4, "C2": 3, "D4": 2}
    rows = "ABCD"
    model = ConstraintModel()
    for letter in rows:
        model.declare_mutually_exclusive_slots([f"{letter}{n}" for n in range(1, 5)], [1, 2, 3, 4])

    def different(solution):
        return len(set(solution.values())) == len(solution)

    for n in range(1, 5):
        model.add_pairwise_constraints([f"{letter}{n}" for letter in rows], different)
    for square in (("A1", "A2", "B1", "B2"), ("A3", "A4", "B3", "B4"),
                   ("C1", "C2", "D1", "D2"), ("C3", "C4", "D3", "D4")):
        model.add_pairwise_constraints(list(square), different)
    for slot, value in puzzle.items():
        model.add_constraint(slot, lambda s, slot=slot, value=value: s[slot] == value)

    solution = model.enumerator().first()
    assert solution is not None
    for slot, value in puzzle.items():
        assert solution[slot] == value
    for letter in rows:
        assert sorted(solution[f"{letter}{n}"] for n in range(1, 5)) == [1, 2, 3, 4]
    for n in range(1, 5):
        assert sorted(solution[f"{letter}{n}"] for letter in rows) == [1, 2, 3, 4]

def test_injected_registry_is_reset():
    registry = VariableRegistry()
    first = ConstraintModel(registry=registry)
    first.declare_slot("X", [1, 2, 3], allow_empty=False)
    second = ConstraintModel(registry=registry)
    second.declare_slot("A", [1, 2], allow_empty=False)

    assert second.slot_groups["A"].variable_ids == [1, 2]
    assert "p cnf 2 " in second.dimacs()
    assert solution_set(second) == {canon({"A": 1}), canon({"A": 2})}

class Room:
    def __repr__(self):
        return "Room(\n  12 0)"

def test_multiline_value_repr_stays_comment():
    model = ConstraintModel()
    model.declare_slot(("east", "wing"), [Room(), "b"], allow_empty=False)
    text = model.dimacs()

    for line in text.splitlines():
        assert not line or line.startswith(("c", "p")) or line.endswith(" 0")
    doc = read_dimacs_from_string(text)
    assert doc.num_vars == 2
    solutions = list(model.enumerator())
    assert len(solutions) == 2
    assert sorted(type(s[("east", "wing")]).__name__ for s in solutions) == ["Room", "str"]

def test_failed_predicate_leaves_model_unchanged():
    model = ConstraintModel()
    model.declare_slot("A", [1, 2, 3], allow_empty=False)

    def predicate(s):
        if s["A"] == 3:
            raise ValueError("boom")
        return True

    with pytest.raises(ValueError):
        model.add_constraint("A", predicate)
    assert model.non_interpreted_groups == {}
    assert model.add_constraint("A", lambda s: s["A"] != 3) == "constraint-1"
    assert len(model.non_interpreted_groups["constraint-1"]) == 1

def test_tuple_is_single_group_name():
    model = ConstraintModel()
    model.declare_slot(("row", 1), [1, 2], allow_empty=False)
    model.declare_slot("B", [1, 2], allow_empty=False)
    model.add_constraint(("row", 1), lambda s: s[("row", 1)] == 2)
    model.add_constraint([("row", 1), "B"], lambda s: s[("row", 1)] != s["B"])
    assert list(model.enumerator()) == [{("row", 1): 2, "B": 1}]
