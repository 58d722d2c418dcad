"""Schema package exports."""

from .materials import AIGenerationLog, Course, Question, SourceMaterial, Topic

__all__ = ["AIGenerationLog", "Course", "Question", "SourceMaterial", "Topic"]
