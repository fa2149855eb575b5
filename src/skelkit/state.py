"""Persisted install-session state, so a session can be resumed across processes."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from .catalog import Code, QuestionId
from .errors import IOFailure
from .fileio import atomic_write, read_text

STATE_FILENAME = ".skelkit-session.json"


class SessionPhase(str, Enum):
    UNINITIALIZED = "uninitialized"
    LAYOUT_CHOSEN = "layout-chosen"
    ANSWERING = "answering"
    FINALIZED = "finalized"


@dataclass
class AnswerRecord:
    """What one accepted answer did to the project tree."""
    question: str
    code: Code
    packages: dict[str, str] = field(default_factory=dict)
    dev_packages: dict[str, str] = field(default_factory=dict)
    provider_line: Optional[str] = None
    files: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "question": self.question,
            "code": self.code,
            "packages": self.packages,
            "dev_packages": self.dev_packages,
            "provider_line": self.provider_line,
            "files": self.files,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AnswerRecord":
        return cls(
            question=data["question"],
            code=data["code"],
            packages=dict(data.get("packages", {})),
            dev_packages=dict(data.get("dev_packages", {})),
            provider_line=data.get("provider_line"),
            files=list(data.get("files", [])),
        )


@dataclass
class SessionState:
    """Ordered answers of one scaffolding run."""
    project_root: Path
    answers: dict[str, AnswerRecord] = field(default_factory=dict)
    finalized: bool = False
    filename: str = STATE_FILENAME
    # Reason the tree was left inconsistent; a broken session is never resumed.
    broken: Optional[str] = None

    @property
    def path(self) -> Path:
        return self.project_root / self.filename

    @property
    def layout(self) -> Optional[str]:
        record = self.answers.get(QuestionId.INSTALL_TYPE.value)
        return str(record.code) if record else None

    @property
    def phase(self) -> SessionPhase:
        if self.finalized:
            return SessionPhase.FINALIZED
        if self.layout is None:
            return SessionPhase.UNINITIALIZED
        if len(self.answers) > 1:
            return SessionPhase.ANSWERING
        return SessionPhase.LAYOUT_CHOSEN

    def codes(self) -> dict[str, Code]:
        return {q: r.code for q, r in self.answers.items()}

    def others(self, question: str) -> list[AnswerRecord]:
        return [r for q, r in self.answers.items() if q != question]

    def record(self, record: AnswerRecord) -> None:
        """Store *record*, moving it to the end of the answer order."""
        self.answers.pop(record.question, None)
        self.answers[record.question] = record

    def forget(self, question: str) -> Optional[AnswerRecord]:
        return self.answers.pop(question, None)

    def to_dict(self) -> dict:
        return {
            "layout": self.layout,
            "finalized": self.finalized,
            "broken": self.broken,
            "answers": [r.to_dict() for r in self.answers.values()],
        }

    def save(self) -> None:
        atomic_write(self.path, json.dumps(self.to_dict(), indent=2) + "\n")

    @classmethod
    def load(cls, project_root: Path, filename: str = STATE_FILENAME) -> "SessionState":
        """Load state from *project_root*, or return a fresh state if none was saved."""
        project_root = Path(project_root)
        state = cls(project_root=project_root, filename=filename)
        if not state.path.exists():
            return state
        try:
            data = json.loads(read_text(state.path))
            if not isinstance(data, dict):
                raise TypeError(f"expected an object, got {type(data).__name__}")
            for item in data.get("answers", []):
                record = AnswerRecord.from_dict(item)
                state.answers[record.question] = record
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            raise IOFailure(f"Corrupt session state in {state.path}: {e}") from e
        state.finalized = bool(data.get("finalized", False))
        state.broken = data.get("broken")
        return state
