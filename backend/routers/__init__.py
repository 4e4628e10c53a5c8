"""API routers."""
from backend.routers import feedback, health, surveys

__all__ = [
    "feedback",
    "health",
    "surveys",
]
