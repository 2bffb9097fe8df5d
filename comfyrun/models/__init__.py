"""SQLAlchemy ORM models."""

from comfyrun.models.run import Run

__all__ = [
    "Run",
]
