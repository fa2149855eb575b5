"""Install session: drives validation and mutation for one project root."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from .catalog import Code, OptionCatalog, QuestionId
from .config import InstallerConfig
from .errors import InstallerError, IOFailure, OrderViolation, SessionBroken
from .fileio import path_lock
from .manifest import ComposerManifest
from .mutator import MANIFEST_FILE, ConfigMutator
from .skeleton import SKELKIT_EXTRA_KEY
from .state import AnswerRecord, SessionPhase, SessionState
from .validator import AnswerValidator

logger = logging.getLogger("skelkit.session")


class InstallSession:
    """Ordered, resumable sequence of answers for one project.

    All calls for the same project root are serialised through a process-wide
    lock; sessions on different roots are independent.
    """

    def __init__(
        self,
        project_root: Path,
        catalog: Optional[OptionCatalog] = None,
        config: Optional[InstallerConfig] = None,
    ):
        self.config = config or InstallerConfig()
        self.project_root = Path(project_root)
        self.catalog = catalog or self.config.load_catalog()
        self.validator = AnswerValidator(self.catalog)
        self.mutator = ConfigMutator(self.catalog)
        self.state = SessionState.load(self.project_root, filename=self.config.state_filename)
        self.last_error: Optional[InstallerError] = None
        self._lock = path_lock(self.project_root)
        self._broken: Optional[InstallerError] = None

    @classmethod
    def open(cls, project_root: Path, config: Optional[InstallerConfig] = None) -> "InstallSession":
        """Resume (or start) the session stored in *project_root*."""
        return cls(project_root, config=config)

    @property
    def phase(self) -> SessionPhase:
        return self.state.phase

    @property
    def layout(self) -> Optional[str]:
        return self.state.layout

    @property
    def answers(self) -> dict[str, Code]:
        return self.state.codes()

    @property
    def broken(self) -> bool:
        return self._broken is not None or self.state.broken is not None

    def process_answer(self, question_id: str, answer: Any) -> bool:
        """Apply an answer; return False (and set ``last_error``) if it is rejected.

        Fatal errors (IOFailure, DuplicateInsertion) are raised: the tree may be
        inconsistent and the session can no longer be used.
        """
        try:
            self.answer(question_id, answer)
        except InstallerError as e:
            if not e.recoverable:
                raise
            logger.warning("Rejected %s=%r: %s", question_id, answer, e)
            return False
        return True

    def answer(self, question_id: str, answer: Any) -> Optional[AnswerRecord]:
        """Apply an answer, raising the specific InstallerError on rejection.

        Returns the new record, or None when an optional question was declined.
        """
        question_id = question_id.value if isinstance(question_id, QuestionId) else str(question_id)
        with self._lock:
            self.last_error = None
            try:
                self._ensure_usable()
                return self._answer(question_id, answer)
            except InstallerError as e:
                self.last_error = e
                if not e.recoverable:
                    self._poison(e)
                raise

    def _ensure_usable(self) -> None:
        if self._broken is not None:
            raise SessionBroken(
                f"Session for {self.project_root} failed earlier ({self._broken}); "
                "discard the project and start again"
            )
        self._reload()
        if self.state.broken is not None:
            raise SessionBroken(
                f"Session for {self.project_root} was left inconsistent ({self.state.broken}); "
                "discard the project and start again"
            )

    def _poison(self, error: InstallerError) -> None:
        if self._broken is not None:
            return
        self._broken = error
        logger.error("Session for %s is broken: %s", self.project_root, error)
        if isinstance(error, SessionBroken):
            return
        self.state.broken = str(error)
        try:
            self.state.save()
        except IOFailure as e:
            logger.error("Could not record the broken session in %s: %s", self.state.path, e)

    def _reload(self) -> None:
        # Another session object (or process) may have answered since we loaded.
        self.state = SessionState.load(self.project_root, filename=self.config.state_filename)

    def _answer(self, question_id: str, answer: Any) -> Optional[AnswerRecord]:
        if self.state.finalized:
            raise OrderViolation("The installation is already finalized", question=question_id, code=answer)

        is_layout = question_id == QuestionId.INSTALL_TYPE.value
        if not is_layout and self.state.layout is None:
            # Validate first so an unknown question is reported as such.
            self.catalog.question(question_id)
            raise OrderViolation(
                f"Choose an install layout before answering '{question_id}'",
                question=question_id,
                code=answer,
            )

        prior = self.state.codes()
        option = self.validator.validate(question_id, answer, prior)
        previous = self.state.answers.get(question_id)
        others = self.state.others(question_id)

        if option is None:
            if previous is not None:
                self.mutator.revert(self.project_root, previous, self.state.layout, others)
            self.state.forget(question_id)
            self.state.save()
            logger.info("Declined %s", question_id)
            return None

        if is_layout and others:
            raise OrderViolation(
                "The install layout must be chosen before any other question",
                question=question_id,
                code=option.code,
            )
        if is_layout:
            self.catalog.layout(str(option.code))

        record = self.mutator.apply(
            self.project_root,
            question_id,
            option,
            self.state.layout,
            previous=previous,
            others=others,
        )
        self.state.record(record)
        self.state.save()
        logger.info("Recorded %s=%s", question_id, option.code)
        return record

    def finalize(self) -> None:
        """Check the complete answer set and strip installer metadata from the project."""
        with self._lock:
            self.last_error = None
            try:
                self._ensure_usable()
                if self.state.finalized:
                    return
                self.validator.validate_final(self.state.codes())

                path = self.project_root / MANIFEST_FILE
                manifest = ComposerManifest.load(path)
                if manifest.remove_extra(SKELKIT_EXTRA_KEY):
                    manifest.save()

                self.state.finalized = True
                self.state.save()
                logger.info("Finalized installation in %s", self.project_root)
            except InstallerError as e:
                self.last_error = e
                if not e.recoverable:
                    self._poison(e)
                raise
