from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.security import get_current_admin
from app.db.session import get_db
from app.models.question import Question
from app.models.simulation import Simulation, SimulationQuestion
from app.schemas.simulation import (
    CoverageListResponse,
    DuplicateCheckRequest,
    DuplicateCheckResponse,
    DuplicateGroupsResponse,
    ExamCoverageResponse,
    SimulationCreateRequest,
    SimulationCreateResponse,
    SimulationDetail,
    SimulationListItem,
)
from app.services.errors import (
    DuplicateSimulationError,
    SimulationFetchError,
    SimulationValidationError,
    SimulationWriteError,
)
from app.services.simulation_store import SqlSimulationStore
from app.services.simulations import (
    CoverageMatch,
    create_simulation,
    find_duplicate_groups_in_store,
    find_exam_coverage,
    find_exam_coverage_for,
    find_existing_duplicate,
)

router = APIRouter(prefix="/simulations", tags=["simulations"])


def _error(status_code: int, error_code: str, error_message: str, **extra) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"error_code": error_code, "error_message": error_message, **extra},
    )


def _fetch_failed(e: SimulationFetchError) -> HTTPException:
    return _error(503, "fetch_failed", str(e))


def _match_payload(m: CoverageMatch) -> dict:
    return {
        "exam_id": m.exam_id,
        "exam_date": m.exam_date,
        "wrong_count": m.wrong_count,
        "candidate": {
            "id": m.candidate.id,
            "first_name": m.candidate.first_name,
            "last_name": m.candidate.last_name,
            "id_number": m.candidate.id_number,
        },
        "simulation": {"id": m.simulation.id, "title": m.simulation.title},
    }


@router.get("", response_model=list[SimulationListItem])
def list_simulations(db: Session = Depends(get_db), _: str = Depends(get_current_admin)):
    rows = db.execute(
        select(Simulation.id, Simulation.title, func.count(func.distinct(SimulationQuestion.question_id)))
        .outerjoin(SimulationQuestion, SimulationQuestion.simulation_id == Simulation.id)
        .group_by(Simulation.id, Simulation.title)
        .order_by(Simulation.id)
    ).all()
    return [{"id": sid, "title": title, "question_count": int(cnt or 0)} for sid, title, cnt in rows]


@router.get("/duplicates", response_model=DuplicateGroupsResponse)
def duplicate_groups(db: Session = Depends(get_db), _: str = Depends(get_current_admin)):
    try:
        report = find_duplicate_groups_in_store(SqlSimulationStore(db))
    except SimulationFetchError as e:
        raise _fetch_failed(e) from e
    return {"total": report.total, "groups": report.groups, "skipped": report.skipped}


@router.post("/duplicate-check", response_model=DuplicateCheckResponse)
def duplicate_check(
    body: DuplicateCheckRequest,
    db: Session = Depends(get_db),
    _: str = Depends(get_current_admin),
):
    try:
        dup = find_existing_duplicate(SqlSimulationStore(db), body.question_ids)
    except SimulationValidationError as e:
        raise _error(400, "validation_error", str(e)) from e
    except SimulationFetchError as e:
        raise _fetch_failed(e) from e
    return {"duplicate_of": dup}


@router.get("/coverage", response_model=CoverageListResponse)
def coverage(db: Session = Depends(get_db), _: str = Depends(get_current_admin)):
    try:
        matches = find_exam_coverage(SqlSimulationStore(db))
    except SimulationFetchError as e:
        raise _fetch_failed(e) from e
    return {"matches": [_match_payload(m) for m in matches]}


@router.get("/coverage/exams/{exam_id}", response_model=ExamCoverageResponse)
def exam_coverage(exam_id: int, db: Session = Depends(get_db), _: str = Depends(get_current_admin)):
    try:
        m = find_exam_coverage_for(SqlSimulationStore(db), exam_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail="exam not found") from e
    except SimulationFetchError as e:
        raise _fetch_failed(e) from e
    return {"exam_id": exam_id, "match": _match_payload(m) if m is not None else None}


@router.post("", response_model=SimulationCreateResponse)
def create(
    body: SimulationCreateRequest,
    db: Session = Depends(get_db),
    _: str = Depends(get_current_admin),
):
    try:
        created = create_simulation(SqlSimulationStore(db), title=body.title, question_ids=body.question_ids)
    except SimulationValidationError as e:
        raise _error(400, "validation_error", str(e)) from e
    except DuplicateSimulationError as e:
        raise _error(409, "duplicate_simulation", str(e), existing_simulation_id=e.existing_id) from e
    except SimulationFetchError as e:
        raise _fetch_failed(e) from e
    except SimulationWriteError as e:
        raise _error(503, "write_failed", str(e)) from e
    return {"id": created.id, "total_points": created.total_points}


@router.get("/{simulation_id}", response_model=SimulationDetail)
def get_simulation(simulation_id: int, db: Session = Depends(get_db), _: str = Depends(get_current_admin)):
    sim = db.scalar(select(Simulation).where(Simulation.id == simulation_id))
    if sim is None:
        raise HTTPException(status_code=404, detail="simulation not found")

    rows = db.execute(
        select(SimulationQuestion.question_id, SimulationQuestion.order_index, Question.text, Question.points, Question.image_url)
        .join(Question, Question.id == SimulationQuestion.question_id)
        .where(SimulationQuestion.simulation_id == sim.id)
        .order_by(SimulationQuestion.order_index, SimulationQuestion.id)
    ).all()
    questions = [
        {
            "question_id": qid,
            "order_index": idx,
            "text": text,
            "points": int(points or 0),
            "image_url": image_url,
        }
        for qid, idx, text, points, image_url in rows
    ]
    return {
        "id": sim.id,
        "title": sim.title,
        "total_points": sum(q["points"] for q in questions),
        "questions": questions,
    }
