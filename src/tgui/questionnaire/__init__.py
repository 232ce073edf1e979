"""Multi-step questionnaires and their per-chat session manager."""

from .manager import Manager
from .questionnaire import Question, QuestionFormat, Questionnaire

__all__ = ["Manager", "Question", "QuestionFormat", "Questionnaire"]
