from datetime import date

import pytest

from app.services.errors import SimulationFetchError
from app.services.simulation_store import CandidateExamRecord, CandidateRecord
from app.services.simulations import find_covering_simulation, find_exam_coverage, find_exam_coverage_for


def _exam(exam_id, missed, *, candidate=True):
    return CandidateExamRecord(
        id=exam_id,
        candidate_id=10 + exam_id,
        exam_date=date(2025, 3, exam_id),
        candidate=CandidateRecord(id=10 + exam_id, first_name="Ana", last_name="Ilic", id_number="123")
        if candidate
        else None,
        missed_question_ids=tuple(missed),
    )


def test_first_simulation_containing_all_misses_wins():
    sims = {7: {1, 5, 9, 12}, 8: {1, 5, 30}}
    assert find_covering_simulation({5, 9}, sims) == 7


def test_skips_partial_coverage():
    sims = {8: {1, 5, 30}, 7: {1, 5, 9, 12}}
    assert find_covering_simulation({5, 9}, sims) == 7


def test_first_match_by_ascending_id_not_tightest():
    sims = {9: {5, 9}, 3: set(range(1, 42))}
    assert find_covering_simulation({5, 9}, sims) == 3


def test_accepts_pairs_in_any_order():
    sims = [(12, [5, 9]), (4, [5, 9, 11])]
    assert find_covering_simulation([9, 5, 5], sims) == 4


def test_no_covering_simulation():
    assert find_covering_simulation({5, 9}, {1: {5}, 2: {9}}) is None


def test_empty_miss_set_never_matches():
    assert find_covering_simulation(set(), {1: set(), 2: {1, 2}}) is None


def test_match_iff_subset():
    sims = {1: {1, 2, 3}, 2: {3, 4}, 3: {5}}
    for missed in [{1}, {3}, {3, 4}, {1, 5}, {2, 3}, {6}]:
        found = find_covering_simulation(missed, sims)
        containing = sorted(sid for sid, s in sims.items() if missed <= s)
        assert found == (containing[0] if containing else None)


def test_exam_coverage_report(memory_store):
    store = memory_store(
        {7: [1, 5, 9, 12], 8: [1, 5]},
        titles={7: "Serija B"},
        exams=[_exam(1, [5, 9]), _exam(2, []), _exam(3, [5], candidate=False), _exam(4, [99])],
    )

    matches = find_exam_coverage(store)

    assert [m.exam_id for m in matches] == [1]
    assert matches[0].simulation.id == 7
    assert matches[0].simulation.title == "Serija B"
    assert matches[0].wrong_count == 2
    assert matches[0].candidate.last_name == "Ilic"


def test_single_exam_without_misses_skips_scan(memory_store):
    store = memory_store({1: [1, 2]}, exams=[_exam(2, [])])
    assert find_exam_coverage_for(store, 2) is None
    assert [name for name, _ in store.calls] == ["candidate_exam"]


def test_single_exam_unknown(memory_store):
    with pytest.raises(LookupError):
        find_exam_coverage_for(memory_store(), 99)


def test_coverage_fetch_failure(memory_store):
    store = memory_store({1: [1]}, exams=[_exam(1, [1])], fail_on=("candidate_exams",))
    with pytest.raises(SimulationFetchError):
        find_exam_coverage(store)
