from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.security import get_current_admin
from app.db.session import get_db
from app.models.schedule import Schedule
from app.schemas.schedule import (
    ScheduleCreateRequest,
    SchedulePreviewRequest,
    SchedulePreviewResponse,
    ScheduleResponse,
)
from app.services.errors import ScheduleValidationError
from app.services.schedules import PlannedRow, ScheduleService

router = APIRouter(prefix="/schedules", tags=["schedules"])


def _rows(rows: list[PlannedRow]) -> list[dict]:
    return [
        {
            "slot": i + 1,
            "label": r.label,
            "codes": r.codes,
            "lesson_ids": r.lesson_ids,
            "start": r.start,
            "end": r.end,
        }
        for i, r in enumerate(rows)
    ]


def _schedule_payload(sched: Schedule, rows: list[PlannedRow]) -> dict:
    return {
        "id": sched.id,
        "school_id": sched.school_id,
        "starts_at": sched.starts_at,
        "description": sched.description,
        "rows": _rows(rows),
    }


@router.post("/preview", response_model=SchedulePreviewResponse)
def preview(body: SchedulePreviewRequest, db: Session = Depends(get_db), _: str = Depends(get_current_admin)):
    try:
        rows = ScheduleService(db).preview(starts_at=body.starts_at, lesson_codes=body.lesson_codes)
    except ScheduleValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return {"rows": _rows(rows)}


@router.post("", response_model=ScheduleResponse)
def create_schedule(body: ScheduleCreateRequest, db: Session = Depends(get_db), _: str = Depends(get_current_admin)):
    try:
        sched, rows = ScheduleService(db).create(
            school_id=body.school_id,
            starts_at=body.starts_at,
            description=body.description,
            lesson_codes=body.lesson_codes,
        )
    except ScheduleValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return _schedule_payload(sched, rows)


@router.get("/{schedule_id}", response_model=ScheduleResponse)
def get_schedule(schedule_id: int, db: Session = Depends(get_db), _: str = Depends(get_current_admin)):
    found = ScheduleService(db).get(schedule_id)
    if found is None:
        raise HTTPException(status_code=404, detail="schedule not found")
    sched, rows = found
    return _schedule_payload(sched, rows)
