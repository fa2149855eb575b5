"""Answer validation: legality of an answer and cross-question constraints."""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from .catalog import (
    DECLINE_ANSWER,
    Code,
    ConstraintStage,
    Option,
    OptionCatalog,
    Question,
    default_catalog,
    normalize_code,
)
from .errors import IncompatibleSelection, InvalidOption, MissingAnswer

# vendor/package[:constraint]
CUSTOM_PACKAGE_RE = re.compile(
    r"^(?P<name>[a-z0-9]([_.-]?[a-z0-9]+)*/[a-z0-9](([_.]|-{1,2})?[a-z0-9]+)*)(:(?P<version>\S+))?$"
)


def parse_custom_package(answer: str) -> Optional[tuple[str, str]]:
    """Split ``vendor/package:^1.0`` into ``(name, constraint)``; None if malformed."""
    match = CUSTOM_PACKAGE_RE.match(answer)
    if not match:
        return None
    return match.group("name"), match.group("version") or "*"


class AnswerValidator:
    """Checks answers against the catalog. Holds no state and does no I/O."""

    def __init__(self, catalog: Optional[OptionCatalog] = None):
        self.catalog = catalog or default_catalog()

    def validate(self, question_id: str, answer: Any, prior_answers: Mapping[str, Code]) -> Optional[Option]:
        """Return the Option for *answer*, or None when an optional question is declined."""
        question = self.catalog.question(question_id)
        code = normalize_code(answer)

        if isinstance(code, str) and code.lower() == DECLINE_ANSWER:
            if question.required:
                raise InvalidOption(
                    f"Question '{question.id}' is required and cannot be skipped",
                    question=question.id,
                    code=code,
                )
            self._check_dependents(question, None, prior_answers)
            return None

        option = question.find(code)
        if option is None:
            option = self._custom_option(question, code)
        if option is None:
            raise InvalidOption(
                f"Invalid answer {code!r} for '{question.id}'; expected one of {question.codes}",
                question=question.id,
                code=code,
            )

        for constraint in option.constraints_for(ConstraintStage.ANSWER):
            if not constraint.satisfied_by(prior_answers.get(constraint.question)):
                raise IncompatibleSelection(
                    f"{option.name} requires {constraint.question} in {list(constraint.codes)}"
                    + (f": {constraint.reason}" if constraint.reason else ""),
                    question=question.id,
                    code=code,
                )

        self._check_dependents(question, option.code, prior_answers)
        return option

    def _custom_option(self, question: Question, code: Code) -> Optional[Option]:
        if not question.custom_package or not isinstance(code, str):
            return None
        parsed = parse_custom_package(code)
        if parsed is None:
            return None
        name, version = parsed
        return Option(code=code, name=name, packages={name: version}, custom=True)

    def _check_dependents(self, question: Question, code: Optional[Code], prior_answers: Mapping[str, Code]) -> None:
        """Reject *code* if an already accepted answer constrains this question."""
        for other_id, other_code in prior_answers.items():
            if other_id == question.id:
                continue
            other = self.catalog.question(other_id).find(other_code)
            if other is None:
                continue
            for constraint in other.constraints_for(ConstraintStage.ANSWER):
                if constraint.question == question.id and not constraint.satisfied_by(code):
                    raise IncompatibleSelection(
                        f"{other.name} ({other_id}) requires {question.id} in {list(constraint.codes)}"
                        + (f": {constraint.reason}" if constraint.reason else ""),
                        question=question.id,
                        code=code,
                    )

    def validate_final(self, answers: Mapping[str, Code]) -> None:
        """Check that the full answer set can be finalized."""
        for question_id in self.catalog.question_ids:
            question = self.catalog.question(question_id)
            if question.required and question_id not in answers:
                raise MissingAnswer(f"Question '{question_id}' has not been answered", question=question_id)

        for question_id, code in answers.items():
            option = self.catalog.question(question_id).find(code)
            if option is None:
                continue
            for constraint in option.constraints_for(ConstraintStage.FINALIZE):
                if not constraint.satisfied_by(answers.get(constraint.question)):
                    raise IncompatibleSelection(
                        f"{option.name} ({question_id}) requires {constraint.question} in "
                        f"{list(constraint.codes)}" + (f": {constraint.reason}" if constraint.reason else ""),
                        question=question_id,
                        code=code,
                    )
