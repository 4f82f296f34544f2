from __future__ import annotations

from pydantic import BaseModel


class AnswerPublic(BaseModel):
    id: int
    text: str
    is_correct: bool


class WrongQuestionItem(BaseModel):
    id: int
    text: str
    image_url: str | None
    points: int
    multi_correct: bool
    subarea_id: int | None
    frequency: int
    answers: list[AnswerPublic]


class WrongQuestionsResponse(BaseModel):
    total_rows: int
    freq: int
    area_counts: dict[int, int]
    subarea_counts: dict[int, int]
    items: list[WrongQuestionItem]
