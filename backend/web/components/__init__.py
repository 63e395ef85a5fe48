# Tessera Component System
# Pure Python Components for HTML generation

from .base import Component
from .layout import Layout
from .navigation import Navigation
from .question import QuestionPage, SubmissionPanel
from .assessment import AssessmentInstancePage
from .file_editor import FileEditorPage, FileEditorAccessDenied
from .job_sequence import JobSequencePanel
from .errors import ErrorPanel
from .login import LoginPage

__all__ = [
    "Component",
    "Layout",
    "Navigation",
    "QuestionPage",
    "SubmissionPanel",
    "AssessmentInstancePage",
    "FileEditorPage",
    "FileEditorAccessDenied",
    "JobSequencePanel",
    "ErrorPanel",
    "LoginPage",
]
