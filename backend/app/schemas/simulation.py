from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field


class SimulationListItem(BaseModel):
    id: int
    title: str | None
    question_count: int


class SimulationQuestionPublic(BaseModel):
    question_id: int
    order_index: int
    text: str
    points: int
    image_url: str | None = None


class SimulationDetail(BaseModel):
    id: int
    title: str | None
    total_points: int
    questions: list[SimulationQuestionPublic]


class SimulationCreateRequest(BaseModel):
    title: str | None = None
    question_ids: list[int] = Field(default_factory=list)


class SimulationCreateResponse(BaseModel):
    id: int
    total_points: int


class DuplicateCheckRequest(BaseModel):
    question_ids: list[int]


class DuplicateCheckResponse(BaseModel):
    duplicate_of: int | None


class DuplicateGroupsResponse(BaseModel):
    total: int
    groups: list[list[int]]
    skipped: list[int]


class CandidatePublic(BaseModel):
    id: int
    first_name: str
    last_name: str
    id_number: str


class SimulationRef(BaseModel):
    id: int
    title: str | None


class CoverageMatchPublic(BaseModel):
    exam_id: int
    exam_date: date
    wrong_count: int
    candidate: CandidatePublic
    simulation: SimulationRef


class CoverageListResponse(BaseModel):
    matches: list[CoverageMatchPublic]


class ExamCoverageResponse(BaseModel):
    exam_id: int
    match: CoverageMatchPublic | None
