from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.security import get_current_admin
from app.db.session import get_db
from app.schemas.question import WrongQuestionsResponse
from app.services.wrong_questions import WrongQuestionReport

router = APIRouter(prefix="/questions", tags=["questions"])


@router.get("/wrong", response_model=WrongQuestionsResponse)
def wrong_questions(
    area_id: int | None = Query(default=None),
    subarea_id: int | None = Query(default=None),
    freq: int = Query(default=1, ge=1),
    db: Session = Depends(get_db),
    _: str = Depends(get_current_admin),
):
    return WrongQuestionReport(db).build(area_id=area_id, subarea_id=subarea_id, freq=freq)
