from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class TheoryLesson(Base):
    __tablename__ = "theory_lessons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    is_special: Mapped[bool] = mapped_column(Boolean, default=False)


class Schedule(Base):
    __tablename__ = "schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    school_id: Mapped[int] = mapped_column(Integer, ForeignKey("schools.id"), index=True)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=False))
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class ScheduleLesson(Base):
    __tablename__ = "schedule_lessons"

    schedule_id: Mapped[int] = mapped_column(Integer, ForeignKey("schedules.id"), primary_key=True)
    lesson_id: Mapped[int] = mapped_column(Integer, ForeignKey("theory_lessons.id"), primary_key=True)
    # Selection order, drives slot numbering.
    position: Mapped[int] = mapped_column(Integer, default=0)
