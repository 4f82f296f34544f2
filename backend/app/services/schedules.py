from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.candidate import School
from app.models.schedule import Schedule, ScheduleLesson, TheoryLesson
from app.services.errors import ScheduleValidationError


log = logging.getLogger(__name__)

# Lessons taught together in one slot.
LESSON_PAIRS: list[tuple[str, str]] = [
    ("T6-1", "T8-1"),
    ("T10-1", "T11-1"),
    ("P-T2-1", "P-T9-1"),
]
MAX_GROUPS = 3
SLOT_STEP_MINUTES = 55
SLOT_LENGTH_MINUTES = 45

_PEERS: dict[str, str] = {}
for _a, _b in LESSON_PAIRS:
    _PEERS[_a] = _b
    _PEERS[_b] = _a


@dataclass(frozen=True)
class PlannedRow:
    key: str
    lesson_ids: list[int]
    codes: list[str]
    start: str
    end: str

    @property
    def label(self) -> str:
        return " + ".join(self.codes)


def peer_of(code: str) -> str | None:
    return _PEERS.get(code)


def group_key(code: str) -> str:
    peer = peer_of(code)
    return "+".join(sorted([code, peer])) if peer else code


def expand_pairs(codes: list[str]) -> list[str]:
    """Selecting one lesson of a pair selects its peer right after it."""
    out: list[str] = []
    for code in codes:
        for c in (code, peer_of(code)):
            if c and c not in out:
                out.append(c)
    return out


def slot_times(starts_at: datetime, index: int) -> tuple[str, str]:
    start = starts_at + timedelta(minutes=index * SLOT_STEP_MINUTES)
    end = start + timedelta(minutes=SLOT_LENGTH_MINUTES)
    return start.strftime("%H:%M"), end.strftime("%H:%M")


def plan_rows(lessons: list[tuple[int, str]], starts_at: datetime) -> list[PlannedRow]:
    """Group (lesson_id, code) pairs, in selection order, into numbered time slots."""
    groups: dict[str, tuple[list[int], list[str]]] = {}
    for lesson_id, code in lessons:
        ids, codes = groups.setdefault(group_key(code), ([], []))
        if lesson_id not in ids:
            ids.append(lesson_id)
        if code not in codes:
            codes.append(code)

    if len(groups) > MAX_GROUPS:
        raise ScheduleValidationError(f"at most {MAX_GROUPS} lessons per schedule")

    rows: list[PlannedRow] = []
    # dicts keep first-insertion order
    for i, (key, (ids, codes)) in enumerate(groups.items()):
        start, end = slot_times(starts_at, i)
        rows.append(PlannedRow(key=key, lesson_ids=ids, codes=sorted(codes), start=start, end=end))
    return rows


class ScheduleService:
    def __init__(self, db: Session):
        self.db = db

    def _resolve_lessons(self, codes: list[str]) -> list[tuple[int, str]]:
        wanted = expand_pairs([c.strip() for c in codes if c and c.strip()])
        if not wanted:
            raise ScheduleValidationError("select at least one lesson")
        found = {
            lesson.code: lesson
            for lesson in self.db.scalars(select(TheoryLesson).where(TheoryLesson.code.in_(wanted)))
        }
        # A pair peer missing from the catalogue is simply not scheduled.
        missing = [c for c in codes if c.strip() and c.strip() not in found]
        if missing:
            raise ScheduleValidationError(f"unknown lesson codes: {', '.join(missing)}")
        return [(found[c].id, c) for c in wanted if c in found]

    def preview(self, *, starts_at: datetime, lesson_codes: list[str]) -> list[PlannedRow]:
        return plan_rows(self._resolve_lessons(lesson_codes), starts_at)

    def create(
        self,
        *,
        school_id: int,
        starts_at: datetime,
        description: str | None,
        lesson_codes: list[str],
    ) -> tuple[Schedule, list[PlannedRow]]:
        if self.db.scalar(select(School.id).where(School.id == school_id)) is None:
            raise ScheduleValidationError("school not found")

        lessons = self._resolve_lessons(lesson_codes)
        rows = plan_rows(lessons, starts_at)

        sched = Schedule(
            school_id=school_id,
            starts_at=starts_at,
            description=(description or "").strip() or None,
        )
        self.db.add(sched)
        self.db.flush()
        for pos, (lesson_id, _code) in enumerate(lessons):
            self.db.add(ScheduleLesson(schedule_id=sched.id, lesson_id=lesson_id, position=pos))
        self.db.commit()
        log.info("schedule %s created: school=%s groups=%s", sched.id, school_id, len(rows))
        return sched, rows

    def get(self, schedule_id: int) -> tuple[Schedule, list[PlannedRow]] | None:
        sched = self.db.scalar(select(Schedule).where(Schedule.id == schedule_id))
        if sched is None:
            return None
        lessons = self.db.execute(
            select(TheoryLesson.id, TheoryLesson.code)
            .join(ScheduleLesson, ScheduleLesson.lesson_id == TheoryLesson.id)
            .where(ScheduleLesson.schedule_id == sched.id)
            .order_by(ScheduleLesson.position)
        ).all()
        return sched, plan_rows([(int(i), str(c)) for i, c in lessons], sched.starts_at)
