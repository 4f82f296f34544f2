import pytest

from app.services.errors import (
    DuplicateSimulationError,
    SimulationFetchError,
    SimulationValidationError,
    SimulationWriteError,
)
from app.services.simulations import create_simulation, find_duplicate_groups_in_store, find_existing_duplicate


FULL = list(range(1, 42))


def test_identical_set_is_found(memory_store):
    store = memory_store({1: list(reversed(FULL))})
    assert find_existing_duplicate(store, FULL) == 1


def test_one_replaced_id_is_not_a_duplicate(memory_store):
    store = memory_store({1: FULL})
    new_ids = FULL[:-1] + [500]
    assert find_existing_duplicate(store, new_ids) is None


def test_superset_simulation_is_not_a_duplicate(memory_store):
    store = memory_store({1: FULL + [77]})
    assert find_existing_duplicate(store, FULL) is None


def test_subset_simulation_is_not_a_duplicate(memory_store):
    store = memory_store({1: FULL[:30]})
    assert find_existing_duplicate(store, FULL) is None
    # no candidate survived the first step, so the second read never happens
    assert [name for name, _ in store.calls] == ["pairs_for_questions"]


def test_only_candidates_are_loaded_in_full(memory_store):
    store = memory_store({1: FULL + [77], 2: FULL[:20] + list(range(300, 321)), 3: FULL})

    assert find_existing_duplicate(store, FULL) == 3

    second = [args for name, args in store.calls if name == "pairs_for_simulations"]
    assert second == [((1, 3),)]


def test_repeated_rows_in_stored_simulation_still_match(memory_store):
    store = memory_store({4: FULL + FULL[:5]})
    assert find_existing_duplicate(store, FULL) == 4


@pytest.mark.parametrize(
    "ids",
    [
        list(range(1, 41)),
        list(range(1, 43)),
        FULL[:-1] + [1],
        [],
    ],
)
def test_invalid_shape_rejected_before_lookup(memory_store, ids):
    store = memory_store({1: FULL})
    with pytest.raises(SimulationValidationError):
        find_existing_duplicate(store, ids)
    assert store.calls == []


def test_non_integer_ids_rejected(memory_store):
    store = memory_store()
    with pytest.raises(SimulationValidationError):
        find_existing_duplicate(store, [str(i) for i in FULL])


def test_fetch_failure_is_terminal(memory_store):
    store = memory_store({1: FULL}, fail_on=("pairs_for_simulations",))
    with pytest.raises(SimulationFetchError):
        find_existing_duplicate(store, FULL)


def test_group_scan_fetch_failure_has_no_partial_result(memory_store):
    store = memory_store({1: FULL, 2: FULL}, fail_on=("all_pairs",))
    with pytest.raises(SimulationFetchError):
        find_duplicate_groups_in_store(store)


def test_group_scan_reports_simulations_without_questions(memory_store):
    store = memory_store({1: FULL, 2: FULL, 3: []})
    report = find_duplicate_groups_in_store(store)
    assert report.groups == [[1, 2]]
    assert report.skipped == [3]


def test_create_rejects_duplicate_and_writes_nothing(memory_store):
    store = memory_store({1: FULL})
    with pytest.raises(DuplicateSimulationError) as exc:
        create_simulation(store, title="Serija A-1", question_ids=list(reversed(FULL)))
    assert exc.value.existing_id == 1
    assert not any(name == "insert_simulation" for name, _ in store.calls)


def test_create_keeps_submitted_order(memory_store):
    points = {q: 2 if q <= 18 else 3 for q in range(1, 60)}
    store = memory_store({1: FULL}, question_points=points)
    ordered = list(range(42, 1, -1))

    created = create_simulation(store, title="  ", question_ids=ordered)

    assert store.sims[created.id] == ordered
    assert store.titles[created.id] is None
    assert created.total_points == sum(points[q] for q in ordered)


def test_create_rejects_unknown_questions(memory_store):
    store = memory_store(question_points={q: 1 for q in range(1, 41)})
    with pytest.raises(SimulationValidationError, match="41"):
        create_simulation(store, title=None, question_ids=FULL)


def test_create_points_failure_writes_nothing(memory_store):
    store = memory_store(fail_on=("question_points",))
    with pytest.raises(SimulationFetchError):
        create_simulation(store, title="x", question_ids=FULL)
    assert store.sims == {}
    assert not any(name == "insert_simulation" for name, _ in store.calls)


def test_create_insert_failure_is_a_write_error(memory_store):
    store = memory_store(fail_on=("insert_simulation",))
    with pytest.raises(SimulationWriteError):
        create_simulation(store, title="x", question_ids=FULL)
    assert store.sims == {}
