from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.candidate import Candidate, CandidateExam, CandidateExamWrongQuestion
from app.models.question import Question
from app.models.simulation import Simulation, SimulationQuestion
from app.services.errors import SimulationFetchError, SimulationWriteError


log = logging.getLogger(__name__)


def _require_int(name: str, value) -> int:
    # bool is an int subclass but never a valid identifier here
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be int, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class SimulationQuestionRow:
    simulation_id: int
    question_id: int

    def __post_init__(self) -> None:
        _require_int("simulation_id", self.simulation_id)
        _require_int("question_id", self.question_id)


@dataclass(frozen=True)
class SimulationRecord:
    id: int
    title: str | None = None

    def __post_init__(self) -> None:
        _require_int("id", self.id)


@dataclass(frozen=True)
class CandidateRecord:
    id: int
    first_name: str
    last_name: str
    id_number: str

    def __post_init__(self) -> None:
        _require_int("id", self.id)


@dataclass(frozen=True)
class CandidateExamRecord:
    id: int
    candidate_id: int
    exam_date: date
    candidate: CandidateRecord | None = None
    missed_question_ids: tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        _require_int("id", self.id)
        _require_int("candidate_id", self.candidate_id)
        for qid in self.missed_question_ids:
            _require_int("missed_question_id", qid)


class SimulationStore(Protocol):
    """Data-access capability the simulation matching functions are given."""

    def all_pairs(self) -> list[SimulationQuestionRow]: ...

    def pairs_for_questions(self, question_ids: Sequence[int]) -> list[SimulationQuestionRow]: ...

    def pairs_for_simulations(self, simulation_ids: Sequence[int]) -> list[SimulationQuestionRow]: ...

    def simulations(self) -> list[SimulationRecord]: ...

    def candidate_exams(self) -> list[CandidateExamRecord]: ...

    def candidate_exam(self, exam_id: int) -> CandidateExamRecord | None: ...

    def existing_question_ids(self, question_ids: Sequence[int]) -> set[int]: ...

    def question_points(self, question_ids: Sequence[int]) -> int: ...

    def insert_simulation(self, title: str | None, question_ids: Sequence[int]) -> int: ...


class SqlSimulationStore:
    def __init__(self, db: Session):
        self.db = db

    def _rows(self, what: str, stmt) -> list:
        try:
            return list(self.db.execute(stmt).all())
        except SQLAlchemyError as e:
            log.warning("simulation store read failed: %s", what)
            raise SimulationFetchError(f"failed to fetch {what}") from e

    @staticmethod
    def _pairs(rows: Iterable) -> list[SimulationQuestionRow]:
        return [SimulationQuestionRow(simulation_id=int(sid), question_id=int(qid)) for sid, qid in rows]

    def all_pairs(self) -> list[SimulationQuestionRow]:
        rows = self._rows(
            "simulation questions",
            select(SimulationQuestion.simulation_id, SimulationQuestion.question_id).order_by(
                SimulationQuestion.simulation_id, SimulationQuestion.order_index
            ),
        )
        return self._pairs(rows)

    def pairs_for_questions(self, question_ids: Sequence[int]) -> list[SimulationQuestionRow]:
        if not question_ids:
            return []
        rows = self._rows(
            "simulation questions by question",
            select(SimulationQuestion.simulation_id, SimulationQuestion.question_id).where(
                SimulationQuestion.question_id.in_(list(question_ids))
            ),
        )
        return self._pairs(rows)

    def pairs_for_simulations(self, simulation_ids: Sequence[int]) -> list[SimulationQuestionRow]:
        if not simulation_ids:
            return []
        rows = self._rows(
            "simulation questions by simulation",
            select(SimulationQuestion.simulation_id, SimulationQuestion.question_id).where(
                SimulationQuestion.simulation_id.in_(list(simulation_ids))
            ),
        )
        return self._pairs(rows)

    def simulations(self) -> list[SimulationRecord]:
        rows = self._rows("simulations", select(Simulation.id, Simulation.title).order_by(Simulation.id))
        return [SimulationRecord(id=int(sid), title=title) for sid, title in rows]

    def _exam_records(self, exam_rows: list) -> list[CandidateExamRecord]:
        exam_ids = [int(r[0]) for r in exam_rows]
        missed: dict[int, list[int]] = {}
        if exam_ids:
            wrong_rows = self._rows(
                "exam wrong questions",
                select(CandidateExamWrongQuestion.exam_id, CandidateExamWrongQuestion.question_id)
                .where(CandidateExamWrongQuestion.exam_id.in_(exam_ids))
                .order_by(CandidateExamWrongQuestion.id),
            )
            for exam_id, qid in wrong_rows:
                missed.setdefault(int(exam_id), []).append(int(qid))

        out: list[CandidateExamRecord] = []
        for exam_id, candidate_id, exam_date, c_id, first_name, last_name, id_number in exam_rows:
            candidate = None
            if c_id is not None:
                candidate = CandidateRecord(
                    id=int(c_id),
                    first_name=str(first_name or ""),
                    last_name=str(last_name or ""),
                    id_number=str(id_number or ""),
                )
            out.append(
                CandidateExamRecord(
                    id=int(exam_id),
                    candidate_id=int(candidate_id),
                    exam_date=exam_date,
                    candidate=candidate,
                    missed_question_ids=tuple(missed.get(int(exam_id), [])),
                )
            )
        return out

    def _exam_select(self):
        return select(
            CandidateExam.id,
            CandidateExam.candidate_id,
            CandidateExam.exam_date,
            Candidate.id,
            Candidate.first_name,
            Candidate.last_name,
            Candidate.id_number,
        ).outerjoin(Candidate, Candidate.id == CandidateExam.candidate_id)

    def candidate_exams(self) -> list[CandidateExamRecord]:
        rows = self._rows(
            "candidate exams",
            self._exam_select().order_by(CandidateExam.created_at, CandidateExam.id),
        )
        return self._exam_records(rows)

    def candidate_exam(self, exam_id: int) -> CandidateExamRecord | None:
        rows = self._rows("candidate exam", self._exam_select().where(CandidateExam.id == int(exam_id)))
        records = self._exam_records(rows)
        return records[0] if records else None

    def existing_question_ids(self, question_ids: Sequence[int]) -> set[int]:
        if not question_ids:
            return set()
        rows = self._rows("questions", select(Question.id).where(Question.id.in_(list(question_ids))))
        return {int(r[0]) for r in rows}

    def question_points(self, question_ids: Sequence[int]) -> int:
        if not question_ids:
            return 0
        rows = self._rows(
            "question points",
            select(func.coalesce(func.sum(Question.points), 0)).where(Question.id.in_(list(question_ids))),
        )
        return int(rows[0][0] or 0) if rows else 0

    def insert_simulation(self, title: str | None, question_ids: Sequence[int]) -> int:
        sim = Simulation(title=title)
        try:
            self.db.add(sim)
            self.db.flush()
            for i, qid in enumerate(question_ids):
                self.db.add(SimulationQuestion(simulation_id=sim.id, question_id=int(qid), order_index=i))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            log.warning("simulation insert failed, rolled back")
            raise SimulationWriteError("failed to save simulation") from e
        return int(sim.id)
