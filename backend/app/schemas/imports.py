from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class QuestionImportRequest(BaseModel):
    # Items stay loosely typed so a malformed one fails alone instead of the whole batch.
    items: list[dict[str, Any]] = Field(default_factory=list)


class QuestionImportError(BaseModel):
    index: int
    message: str
    text: str | None = None


class QuestionImportResponse(BaseModel):
    ok: int
    errors: list[QuestionImportError]
