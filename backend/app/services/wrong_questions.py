from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.candidate import CandidateExamWrongQuestion
from app.models.question import Answer, Question, Subarea


def normalize_freq(n: int | None) -> int:
    """1 = any (>=1), 2 = exactly two, 3 = three or more."""
    v = int(n or 1)
    if v <= 1:
        return 1
    if v == 2:
        return 2
    return 3


def _freq_ok(freq: int, nf: int) -> bool:
    if nf == 1:
        return freq >= 1
    if nf == 2:
        return freq == 2
    return freq >= 3


class WrongQuestionReport:
    def __init__(self, db: Session):
        self.db = db

    def build(
        self,
        *,
        area_id: int | None = None,
        subarea_id: int | None = None,
        freq: int | None = 1,
    ) -> dict[str, Any]:
        rows = self.db.execute(
            select(CandidateExamWrongQuestion.question_id, Question)
            .join(Question, Question.id == CandidateExamWrongQuestion.question_id)
            .order_by(CandidateExamWrongQuestion.created_at, CandidateExamWrongQuestion.id)
        ).all()

        sub_to_area = {int(sid): int(aid) for sid, aid in self.db.execute(select(Subarea.id, Subarea.area_id)).all()}

        # Counts include repeats: the same question missed twice counts twice.
        area_count: dict[int, int] = {}
        subarea_count: dict[int, int] = {}
        question_freq: dict[int, int] = {}
        distinct: list[Question] = []
        seen: set[int] = set()
        for qid, q in rows:
            question_freq[int(qid)] = question_freq.get(int(qid), 0) + 1
            if q.subarea_id:
                aid = sub_to_area.get(int(q.subarea_id))
                if aid:
                    area_count[aid] = area_count.get(aid, 0) + 1
                subarea_count[int(q.subarea_id)] = subarea_count.get(int(q.subarea_id), 0) + 1
            if q.id not in seen:
                seen.add(q.id)
                distinct.append(q)

        nf = normalize_freq(freq)
        filtered: list[Question] = []
        for q in distinct:
            aid = sub_to_area.get(int(q.subarea_id)) if q.subarea_id else None
            if area_id and aid != area_id:
                continue
            if subarea_id and q.subarea_id != subarea_id:
                continue
            if not _freq_ok(question_freq.get(q.id, 0), nf):
                continue
            filtered.append(q)

        # stable: equal frequencies keep first-seen order
        filtered.sort(key=lambda q: -question_freq.get(q.id, 0))

        answers_by_q: dict[int, list[dict[str, Any]]] = {}
        if filtered:
            for a in self.db.scalars(
                select(Answer).where(Answer.question_id.in_([q.id for q in filtered])).order_by(Answer.id)
            ):
                answers_by_q.setdefault(a.question_id, []).append(
                    {"id": a.id, "text": a.text, "is_correct": bool(a.is_correct)}
                )

        return {
            "total_rows": len(rows),
            "freq": nf,
            "area_counts": area_count,
            "subarea_counts": subarea_count,
            "items": [
                {
                    "id": q.id,
                    "text": q.text,
                    "image_url": q.image_url,
                    "points": q.points,
                    "multi_correct": bool(q.multi_correct),
                    "subarea_id": q.subarea_id,
                    "frequency": question_freq.get(q.id, 0),
                    "answers": answers_by_q.get(q.id, []),
                }
                for q in filtered
            ],
        }
