from app.models.candidate import Candidate, CandidateExam, CandidateExamWrongQuestion, School
from app.models.question import Answer, Area, Question, Subarea
from app.models.schedule import Schedule, ScheduleLesson, TheoryLesson
from app.models.simulation import Simulation, SimulationQuestion

__all__ = [
    "Answer",
    "Area",
    "Candidate",
    "CandidateExam",
    "CandidateExamWrongQuestion",
    "Question",
    "Schedule",
    "ScheduleLesson",
    "School",
    "Simulation",
    "SimulationQuestion",
    "Subarea",
    "TheoryLesson",
]
