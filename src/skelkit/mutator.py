"""Config mutator: applies accepted answers to the project tree."""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from typing import Optional, Sequence

from . import skeleton
from .aggregator import DEFAULT_INDENT, ConfigAggregatorFile, provider_line
from .catalog import LayoutSpec, Option, OptionCatalog, QuestionId, default_catalog
from .errors import OrderViolation
from .fileio import atomic_write, locked, prune_empty_dirs, read_text, remove_file
from .manifest import ComposerManifest
from .state import AnswerRecord

logger = logging.getLogger("skelkit.mutator")

MANIFEST_FILE = "composer.json"
APP_NAMESPACE = "App\\"


class ConfigMutator:
    """Rewrites composer.json, the config aggregator and copied files for one answer.

    Every file is updated with a whole-file read-transform-write under an
    exclusive per-path lock, and written atomically.
    """

    def __init__(self, catalog: Optional[OptionCatalog] = None, indent: str = DEFAULT_INDENT):
        self.catalog = catalog or default_catalog()
        self.indent = indent

    def apply(
        self,
        project_root: Path,
        question_id: str,
        option: Option,
        layout: Optional[str],
        previous: Optional[AnswerRecord] = None,
        others: Sequence[AnswerRecord] = (),
    ) -> AnswerRecord:
        """Apply *option* as the answer to *question_id* and return what was done.

        *previous* is the record of an earlier answer to the same question; its
        changes are undone first. *others* are the records of every other
        answered question, in answer order.
        """
        question_id = _question_key(question_id)
        if question_id == QuestionId.INSTALL_TYPE.value:
            if others:
                raise OrderViolation(
                    "The install layout must be chosen before any other question",
                    question=question_id,
                    code=option.code,
                )
            spec = self.catalog.layout(str(option.code))
        else:
            spec = self._require_layout(question_id, layout, option.code)

        root = Path(project_root)
        record = AnswerRecord(
            question=question_id,
            code=option.code,
            provider_line=provider_line(option.provider, self.indent) if option.provider else None,
            files=[spec.resolve(pattern) for pattern in option.files],
        )

        logger.info("Applying %s=%s (%s) in %s", question_id, option.code, option.name, root)
        self._update_manifest(root, spec, question_id, option, previous, record, others)
        if question_id != QuestionId.INSTALL_TYPE.value:
            self._update_aggregator(root, spec, previous, record, others)
        self._update_files(root, spec, option, previous, record, others)
        return record

    def revert(
        self,
        project_root: Path,
        record: AnswerRecord,
        layout: Optional[str],
        others: Sequence[AnswerRecord] = (),
    ) -> None:
        """Undo everything *record* did, leaving other answers intact."""
        spec = self._require_layout(record.question, layout, record.code)
        root = Path(project_root)
        logger.info("Reverting %s=%s in %s", record.question, record.code, root)
        self._update_manifest(root, spec, record.question, None, record, None, others)
        self._update_aggregator(root, spec, record, None, others)
        self._update_files(root, spec, None, record, None, others)

    def _require_layout(self, question_id: str, layout: Optional[str], code) -> LayoutSpec:
        if layout is None:
            raise OrderViolation(
                f"Choose an install layout before answering '{question_id}'",
                question=question_id,
                code=code,
            )
        return self.catalog.layout(layout)

    def _update_manifest(
        self,
        root: Path,
        spec: LayoutSpec,
        question_id: str,
        option: Optional[Option],
        previous: Optional[AnswerRecord],
        record: Optional[AnswerRecord],
        others: Sequence[AnswerRecord],
    ) -> None:
        path = root / MANIFEST_FILE
        with locked(path):
            manifest = ComposerManifest.load(path)
            before = manifest.to_text()

            for dev in (False, True):
                retained: set[str] = set()
                for other in others:
                    retained.update(other.dev_packages if dev else other.packages)

                owned = set(retained)
                if previous is not None:
                    old = previous.dev_packages if dev else previous.packages
                    owned.update(old)
                    wanted = (option.dev_packages if dev else option.packages) if option else {}
                    for name in old:
                        if name not in retained and name not in wanted:
                            manifest.remove(name, dev=dev)

                if option is None or record is None:
                    continue
                added = record.dev_packages if dev else record.packages
                base = _base_packages(dev)
                for name, constraint in (option.dev_packages if dev else option.packages).items():
                    # Packages the base skeleton already requires are left alone.
                    if name in base and manifest.has(name, dev=dev) and name not in owned:
                        continue
                    manifest.require(name, constraint, dev=dev)
                    added[name] = constraint

            if question_id == QuestionId.INSTALL_TYPE.value and record is not None:
                manifest.set_autoload(APP_NAMESPACE, spec.autoload)

            if manifest.to_text() != before:
                manifest.save()

    def _update_aggregator(
        self,
        root: Path,
        spec: LayoutSpec,
        previous: Optional[AnswerRecord],
        record: Optional[AnswerRecord],
        others: Sequence[AnswerRecord],
    ) -> None:
        old_line = previous.provider_line if previous else None
        new_line = record.provider_line if record else None
        if old_line is None and new_line is None:
            return

        path = root / spec.aggregator
        with locked(path):
            aggregator = ConfigAggregatorFile.parse(read_text(path))
            managed = [o.provider_line for o in others if o.provider_line]
            if old_line is not None:
                # An interrupted re-answer already swapped the old line for the new one.
                replaced = new_line not in (None, old_line) and aggregator.count(new_line)
                if aggregator.count(old_line) or not replaced:
                    aggregator.remove(old_line)
            if new_line is not None:
                if aggregator.count(new_line) and new_line not in managed:
                    logger.warning("Provider already registered in %s, adopting it: %s", path, new_line.strip())
                else:
                    aggregator.insert(new_line, after=managed)
            atomic_write(path, aggregator.to_text())
        logger.debug("Aggregator %s: -%s +%s", path, old_line, new_line)

    def _update_files(
        self,
        root: Path,
        spec: LayoutSpec,
        option: Optional[Option],
        previous: Optional[AnswerRecord],
        record: Optional[AnswerRecord],
        others: Sequence[AnswerRecord],
    ) -> None:
        keep = set(record.files if record else [])
        for other in others:
            keep.update(other.files)

        if previous is not None:
            for rel in previous.files:
                if rel in keep:
                    continue
                path = root / rel
                with locked(path):
                    remove_file(path)
                prune_empty_dirs(path.parent, root)

        if option is None:
            return

        context = _render_context(spec, self.catalog)
        for pattern, key in option.files.items():
            path = root / spec.resolve(pattern)
            with locked(path):
                atomic_write(path, skeleton.render(key, context))


def _base_packages(dev: bool) -> set[str]:
    return set(skeleton.base_manifest()["require-dev" if dev else "require"])


def _question_key(question_id) -> str:
    return question_id.value if isinstance(question_id, QuestionId) else str(question_id)


def _class_map(catalog: OptionCatalog, question_id: str) -> str:
    if question_id not in catalog.question_ids:
        return ""
    return skeleton.class_map(catalog.options_for(question_id))


def _render_context(spec: LayoutSpec, catalog: OptionCatalog) -> dict[str, str]:
    return {
        "container_map": _class_map(catalog, QuestionId.CONTAINER.value),
        "router_map": _class_map(catalog, QuestionId.ROUTER.value),
        "template_map": _class_map(catalog, QuestionId.TEMPLATE_ENGINE.value),
        "aggregator": spec.aggregator,
        "aggregator_include": posixpath.relpath(spec.aggregator, "config"),
        "source_dir": spec.source_dir,
        "template_dir": spec.template_dir,
    }
