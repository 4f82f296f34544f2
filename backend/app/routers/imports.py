from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.core.security import get_current_admin
from app.db.session import get_db
from app.schemas.imports import QuestionImportRequest, QuestionImportResponse
from app.services.question_import import QuestionImporter

router = APIRouter(prefix="/import", tags=["import"])


@router.post("/questions", response_model=QuestionImportResponse)
def import_questions(
    body: QuestionImportRequest,
    db: Session = Depends(get_db),
    _: str = Depends(get_current_admin),
    __: object = rate_limit(
        key_prefix="import_questions",
        limit=lambda: int(settings.import_rate_limit_per_minute),
        window_seconds=60,
    ),
):
    if not body.items:
        raise HTTPException(status_code=400, detail="empty payload")
    if len(body.items) > int(settings.import_max_items):
        raise HTTPException(status_code=400, detail=f"too many items (max {settings.import_max_items})")

    result = QuestionImporter(db).run(body.items)
    payload = QuestionImportResponse(ok=result.ok, errors=result.errors).model_dump()
    # Every item failed: report the batch as rejected.
    status_code = 400 if result.errors and result.ok == 0 else 200
    return JSONResponse(status_code=status_code, content=payload)
