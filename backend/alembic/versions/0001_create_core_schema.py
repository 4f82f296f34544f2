"""create core schema

Revision ID: 0001
Revises: 
Create Date: 2026-10-18

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "areas",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=300), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_areas_name", "areas", ["name"], unique=True)

    op.create_table(
        "subareas",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("area_id", sa.Integer(), sa.ForeignKey("areas.id"), nullable=False),
        sa.Column("name", sa.String(length=300), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("area_id", "name", name="uq_subarea_area_name"),
    )
    op.create_index("ix_subareas_area_id", "subareas", ["area_id"], unique=False)

    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("area_id", sa.Integer(), sa.ForeignKey("areas.id"), nullable=True),
        sa.Column("subarea_id", sa.Integer(), sa.ForeignKey("subareas.id"), nullable=True),
        sa.Column("text", sa.String(), nullable=False, server_default=""),
        sa.Column("image_url", sa.String(length=1000), nullable=True),
        sa.Column("points", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("multi_correct", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_questions_area_id", "questions", ["area_id"], unique=False)
    op.create_index("ix_questions_subarea_id", "questions", ["subarea_id"], unique=False)

    op.create_table(
        "answers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("question_id", sa.Integer(), sa.ForeignKey("questions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("text", sa.String(), nullable=False, server_default=""),
        sa.Column("is_correct", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    op.create_index("ix_answers_question_id", "answers", ["question_id"], unique=False)

    op.create_table(
        "simulations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(length=300), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )

    op.create_table(
        "simulation_questions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("simulation_id", sa.Integer(), sa.ForeignKey("simulations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("question_id", sa.Integer(), sa.ForeignKey("questions.id"), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_simulation_questions_simulation_id", "simulation_questions", ["simulation_id"], unique=False)
    op.create_index("ix_simulation_questions_question_id", "simulation_questions", ["question_id"], unique=False)

    op.create_table(
        "schools",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=300), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )

    op.create_table(
        "candidates",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("school_id", sa.Integer(), sa.ForeignKey("schools.id"), nullable=True),
        sa.Column("first_name", sa.String(length=200), nullable=False),
        sa.Column("last_name", sa.String(length=200), nullable=False),
        sa.Column("id_number", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_candidates_school_id", "candidates", ["school_id"], unique=False)

    op.create_table(
        "candidate_exams",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("candidate_id", sa.Integer(), sa.ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False),
        sa.Column("exam_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_candidate_exams_candidate_id", "candidate_exams", ["candidate_id"], unique=False)

    op.create_table(
        "candidate_exam_wrong_questions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("exam_id", sa.Integer(), sa.ForeignKey("candidate_exams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("question_id", sa.Integer(), sa.ForeignKey("questions.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_candidate_exam_wrong_questions_exam_id", "candidate_exam_wrong_questions", ["exam_id"], unique=False)
    op.create_index(
        "ix_candidate_exam_wrong_questions_question_id", "candidate_exam_wrong_questions", ["question_id"], unique=False
    )

    op.create_table(
        "theory_lessons",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("is_special", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    op.create_index("ix_theory_lessons_code", "theory_lessons", ["code"], unique=True)

    op.create_table(
        "schedules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("school_id", sa.Integer(), sa.ForeignKey("schools.id"), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=False), nullable=False),
        sa.Column("description", sa.String(length=2000), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_schedules_school_id", "schedules", ["school_id"], unique=False)

    op.create_table(
        "schedule_lessons",
        sa.Column("schedule_id", sa.Integer(), sa.ForeignKey("schedules.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("lesson_id", sa.Integer(), sa.ForeignKey("theory_lessons.id"), primary_key=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )


def downgrade() -> None:
    op.drop_table("schedule_lessons")
    op.drop_index("ix_schedules_school_id", table_name="schedules")
    op.drop_table("schedules")
    op.drop_index("ix_theory_lessons_code", table_name="theory_lessons")
    op.drop_table("theory_lessons")
    op.drop_index("ix_candidate_exam_wrong_questions_question_id", table_name="candidate_exam_wrong_questions")
    op.drop_index("ix_candidate_exam_wrong_questions_exam_id", table_name="candidate_exam_wrong_questions")
    op.drop_table("candidate_exam_wrong_questions")
    op.drop_index("ix_candidate_exams_candidate_id", table_name="candidate_exams")
    op.drop_table("candidate_exams")
    op.drop_index("ix_candidates_school_id", table_name="candidates")
    op.drop_table("candidates")
    op.drop_table("schools")
    op.drop_index("ix_simulation_questions_question_id", table_name="simulation_questions")
    op.drop_index("ix_simulation_questions_simulation_id", table_name="simulation_questions")
    op.drop_table("simulation_questions")
    op.drop_table("simulations")
    op.drop_index("ix_answers_question_id", table_name="answers")
    op.drop_table("answers")
    op.drop_index("ix_questions_subarea_id", table_name="questions")
    op.drop_index("ix_questions_area_id", table_name="questions")
    op.drop_table("questions")
    op.drop_index("ix_subareas_area_id", table_name="subareas")
    op.drop_table("subareas")
    op.drop_index("ix_areas_name", table_name="areas")
    op.drop_table("areas")
