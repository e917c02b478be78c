"""Error taxonomy.

Only InvalidLocator and MissingTranscript reach callers. The rest are raised
inside the pipelines and absorbed at their boundaries.
"""

from __future__ import annotations

from typing import Any


class VidBriefError(Exception):
    """Base class for vidbrief errors."""


class InvalidLocator(VidBriefError, ValueError):
    """The input URL carries no usable video identifier."""


class MissingTranscript(VidBriefError, ValueError):
    """A brief was requested without transcript text."""


class ExtractionFailure(VidBriefError):
    """Every caption strategy failed."""

    def __init__(self, message: str, diagnostics: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.diagnostics = diagnostics or {}


class GenerationFailure(VidBriefError):
    """The completion service errored, timed out or returned nothing."""


class ContractViolation(VidBriefError):
    """A candidate brief failed the format contract."""
