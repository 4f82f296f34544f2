from app.routers import health, imports, questions, schedules, simulations

__all__ = [
    "health",
    "imports",
    "questions",
    "schedules",
    "simulations",
]
