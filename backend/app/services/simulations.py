"""Simulation set matching.

A simulation is identified by the set of its question IDs, never by the order
the questions are shown in. Everything here works on identifier sets that were
already read from a :class:`~app.services.simulation_store.SimulationStore`;
reads happen only at the start of each operation and nothing is written except
by :func:`create_simulation`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date

from app.services.errors import (
    DuplicateSimulationError,
    SimulationFetchError,
    SimulationValidationError,
    SimulationWriteError,
)
from app.services.simulation_store import (
    CandidateRecord,
    SimulationQuestionRow,
    SimulationRecord,
    SimulationStore,
)


log = logging.getLogger(__name__)

# Fixed length of a theory exam.
SIMULATION_SIZE = 41


@dataclass(frozen=True)
class DuplicateReport:
    groups: list[list[int]]
    skipped: list[int]
    total: int


@dataclass(frozen=True)
class CoverageMatch:
    exam_id: int
    exam_date: date
    wrong_count: int
    candidate: CandidateRecord
    simulation: SimulationRecord


@dataclass(frozen=True)
class CreatedSimulation:
    id: int
    total_points: int


def _fetch(what: str, fn, *args):
    try:
        return fn(*args)
    except SimulationFetchError:
        raise
    except Exception as e:
        log.warning("fetch of %s failed: %s", what, e)
        raise SimulationFetchError(f"failed to fetch {what}") from e


def build_fingerprint(ids: Iterable[int]) -> tuple[int, ...]:
    return tuple(sorted({int(i) for i in ids}))


def fingerprint_key(fingerprint: Sequence[int]) -> str:
    return ",".join(str(i) for i in fingerprint)


def _members(pairs: Iterable[SimulationQuestionRow] | Mapping[int, Iterable[int]]) -> dict[int, list[int]]:
    if isinstance(pairs, Mapping):
        return {int(sid): [int(q) for q in qids] for sid, qids in pairs.items()}
    out: dict[int, list[int]] = {}
    for row in pairs:
        out.setdefault(int(row.simulation_id), []).append(int(row.question_id))
    return out


def build_simulation_sets(
    pairs: Iterable[SimulationQuestionRow] | Mapping[int, Iterable[int]],
) -> dict[int, frozenset[int]]:
    return {sid: frozenset(qids) for sid, qids in sorted(_members(pairs).items())}


def find_duplicate_groups(
    pairs: Iterable[SimulationQuestionRow] | Mapping[int, Iterable[int]],
    *,
    simulation_ids: Iterable[int] | None = None,
    size: int = SIMULATION_SIZE,
) -> DuplicateReport:
    """Group complete simulations that share an identical question set.

    ``simulation_ids`` lists simulations known to exist; any of them without a
    single question row is reported as skipped.
    """
    members = _members(pairs)
    if simulation_ids is not None:
        for sid in simulation_ids:
            members.setdefault(int(sid), [])

    by_key: dict[tuple[int, ...], list[int]] = {}
    skipped: list[int] = []
    for sid in sorted(members):
        fp = build_fingerprint(members[sid])
        if len(fp) != size:
            skipped.append(sid)
            continue
        by_key.setdefault(fp, []).append(sid)

    groups = [sorted(sims) for sims in by_key.values() if len(sims) > 1]
    groups.sort(key=lambda g: g[0])
    return DuplicateReport(groups=groups, skipped=skipped, total=len(members))


def find_duplicate_groups_in_store(store: SimulationStore, *, size: int = SIMULATION_SIZE) -> DuplicateReport:
    sims = _fetch("simulations", store.simulations)
    pairs = _fetch("simulation questions", store.all_pairs)
    report = find_duplicate_groups(pairs, simulation_ids=[s.id for s in sims], size=size)
    log.info(
        "duplicate scan: total=%s groups=%s skipped=%s",
        report.total,
        len(report.groups),
        len(report.skipped),
    )
    return report


def _validate_new_ids(new_ids: Sequence[int], size: int) -> list[int]:
    ids: list[int] = []
    for raw in new_ids:
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise SimulationValidationError(f"question id must be an integer, got {raw!r}")
        ids.append(raw)
    distinct = set(ids)
    if len(distinct) != len(ids):
        raise SimulationValidationError("question ids must not repeat")
    if len(distinct) != size:
        raise SimulationValidationError(f"simulation must have exactly {size} questions, got {len(distinct)}")
    return sorted(distinct)


def find_existing_duplicate(
    store: SimulationStore,
    new_ids: Sequence[int],
    *,
    size: int = SIMULATION_SIZE,
) -> int | None:
    """Return the ID of a stored simulation with exactly ``new_ids`` as its question set.

    Two reads, so that only plausible candidates are loaded in full:

    1. every (simulation, question) row whose question is in ``new_ids``; a
       simulation that matched ``size`` distinct questions holds the whole new
       set, but may still hold extra questions;
    2. every row of those candidates; a candidate whose total distinct count is
       also ``size`` has nothing extra, so its set equals ``new_ids``.
    """
    ids = _validate_new_ids(new_ids, size)

    matched: dict[int, set[int]] = {}
    for row in _fetch("simulation questions by question", store.pairs_for_questions, ids):
        matched.setdefault(row.simulation_id, set()).add(row.question_id)
    candidates = sorted(sid for sid, qids in matched.items() if len(qids) == size)
    if not candidates:
        return None

    totals: dict[int, set[int]] = {}
    for row in _fetch("simulation questions by simulation", store.pairs_for_simulations, candidates):
        totals.setdefault(row.simulation_id, set()).add(row.question_id)

    for sid in candidates:
        if len(totals.get(sid, ())) == size:
            return sid
    return None


def find_covering_simulation(
    missed_ids: Iterable[int],
    simulations: Mapping[int, Iterable[int]] | Iterable[tuple[int, Iterable[int]]],
) -> int | None:
    """First simulation (ascending ID) containing every missed question, else None.

    First match, not best match. An empty miss set never matches.
    """
    missed = {int(i) for i in missed_ids}
    if not missed:
        return None

    items = simulations.items() if isinstance(simulations, Mapping) else simulations
    for sid, fingerprint in sorted(((int(s), f) for s, f in items), key=lambda x: x[0]):
        fp = fingerprint if isinstance(fingerprint, (set, frozenset)) else set(fingerprint)
        if missed <= fp:
            return sid
    return None


def _load_coverage_inputs(store: SimulationStore) -> tuple[dict[int, SimulationRecord], dict[int, frozenset[int]]]:
    sims = _fetch("simulations", store.simulations)
    pairs = _fetch("simulation questions", store.all_pairs)
    by_id = {s.id: s for s in sims}
    # Link rows for a simulation that no longer exists cannot be reported.
    sets = {sid: fp for sid, fp in build_simulation_sets(pairs).items() if sid in by_id}
    return by_id, sets


def _match_exam(exam, by_id, sets) -> CoverageMatch | None:
    missed = set(exam.missed_question_ids)
    if not missed:
        return None
    found = find_covering_simulation(missed, sets)
    if found is None or exam.candidate is None:
        return None
    return CoverageMatch(
        exam_id=exam.id,
        exam_date=exam.exam_date,
        wrong_count=len(exam.missed_question_ids),
        candidate=exam.candidate,
        simulation=by_id[found],
    )


def find_exam_coverage(store: SimulationStore) -> list[CoverageMatch]:
    by_id, sets = _load_coverage_inputs(store)
    exams = _fetch("candidate exams", store.candidate_exams)

    out: list[CoverageMatch] = []
    for exam in exams:
        m = _match_exam(exam, by_id, sets)
        if m is not None:
            out.append(m)
    log.info("coverage scan: exams=%s matches=%s", len(exams), len(out))
    return out


def find_exam_coverage_for(store: SimulationStore, exam_id: int) -> CoverageMatch | None:
    exam = _fetch("candidate exam", store.candidate_exam, int(exam_id))
    if exam is None:
        raise LookupError(f"exam {exam_id} not found")
    if not exam.missed_question_ids:
        return None
    by_id, sets = _load_coverage_inputs(store)
    return _match_exam(exam, by_id, sets)


def create_simulation(
    store: SimulationStore,
    *,
    title: str | None,
    question_ids: Sequence[int],
    size: int = SIMULATION_SIZE,
) -> CreatedSimulation:
    ordered = list(question_ids)
    sorted_ids = _validate_new_ids(ordered, size)

    existing = _fetch("questions", store.existing_question_ids, sorted_ids)
    missing = [qid for qid in sorted_ids if qid not in existing]
    if missing:
        raise SimulationValidationError(f"unknown question ids: {', '.join(str(i) for i in missing)}")

    dup = find_existing_duplicate(store, sorted_ids, size=size)
    if dup is not None:
        log.info("simulation rejected, duplicate of %s", dup)
        raise DuplicateSimulationError(dup)

    total_points = _fetch("question points", store.question_points, sorted_ids)
    clean_title = (title or "").strip() or None
    try:
        new_id = store.insert_simulation(clean_title, ordered)
    except SimulationWriteError:
        raise
    except Exception as e:
        log.warning("simulation insert failed: %s", e)
        raise SimulationWriteError("failed to save simulation") from e
    log.info("simulation %s created (points=%s)", new_id, total_points)
    return CreatedSimulation(id=new_id, total_points=int(total_points))
