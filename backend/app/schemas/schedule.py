from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class SchedulePreviewRequest(BaseModel):
    starts_at: datetime
    lesson_codes: list[str] = Field(default_factory=list)


class ScheduleCreateRequest(SchedulePreviewRequest):
    school_id: int
    description: str | None = None


class ScheduleRowPublic(BaseModel):
    slot: int
    label: str
    codes: list[str]
    lesson_ids: list[int]
    start: str
    end: str


class SchedulePreviewResponse(BaseModel):
    rows: list[ScheduleRowPublic]


class ScheduleResponse(BaseModel):
    id: int
    school_id: int
    starts_at: datetime
    description: str | None
    rows: list[ScheduleRowPublic]
