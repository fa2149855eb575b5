"""Error taxonomy for the skelkit installer."""

from __future__ import annotations

from typing import Any, Optional


class InstallerError(Exception):
    """Base class for every error raised by the installer core.

    ``recoverable`` errors leave the session untouched and the caller may retry
    with another answer. Non-recoverable errors mean the project tree may be
    inconsistent and must be discarded.
    """

    recoverable: bool = True

    def __init__(self, message: str, *, question: Optional[str] = None, code: Any = None):
        super().__init__(message)
        self.question = question
        self.code = code


class UnknownQuestion(InstallerError):
    """The question id is not registered in the catalog."""


class InvalidOption(InstallerError):
    """The answer is not a legal option for the question."""


class IncompatibleSelection(InstallerError):
    """The answer conflicts with an answer given to another question."""


class OrderViolation(InstallerError):
    """The answer was given out of the allowed order."""


class MissingAnswer(InstallerError):
    """A required question has not been answered yet."""


class IOFailure(InstallerError):
    """A project file could not be read or written."""

    recoverable = False


class MarkerNotFound(IOFailure):
    """The config aggregator file does not contain its opening marker."""


class DuplicateInsertion(InstallerError):
    """A tracked provider reference is missing or would be inserted twice."""

    recoverable = False


class SessionBroken(InstallerError):
    """The session hit a fatal error earlier and must not be reused."""

    recoverable = False
