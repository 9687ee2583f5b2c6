"""Failure kinds of an analysis run.

Every error carries a ``cause`` code so callers (routers, metrics) can tell
generation problems from storage problems without isinstance chains.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.analysis.types import AnalysisRecord


class AnalysisError(Exception):
    cause = "analysis_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class AuthRequired(AnalysisError):
    """No authenticated identity when the run started."""

    cause = "auth_required"


class EmptyDocument(AnalysisError):
    cause = "empty_document"


class DocumentTooLarge(AnalysisError):
    cause = "document_too_large"

    def __init__(self, length: int, limit: int):
        super().__init__(f"Document has {length} characters, limit is {limit}")
        self.length = length
        self.limit = limit


class GenerationFailure(AnalysisError):
    """One of the generation requests rejected; nothing was persisted."""

    cause = "generation_failure"


class GenerationTimeout(GenerationFailure):
    cause = "timeout"


class PersistenceFailure(AnalysisError):
    """Storage rejected a record that was generated successfully.

    The record is kept on the exception so it can be saved again without
    repeating the generation step.
    """

    cause = "persistence_failure"

    def __init__(self, record: AnalysisRecord, message: str = ""):
        super().__init__(message or "Failed to persist analysis record")
        self.record = record
