"""Модели входных метаданных журнала."""

from ici_export.models.metadata import (
    Author,
    Galley,
    Issue,
    Journal,
    Publication,
    Submission,
)

__all__ = ["Author", "Galley", "Issue", "Journal", "Publication", "Submission"]
