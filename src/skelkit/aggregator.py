"""Config aggregator file: locate the opening marker and manage provider lines.

The aggregator is a PHP file whose provider list opens with::

    $aggregator = new ConfigAggregator([

Lines inserted by the installer form a managed block directly after the
marker, in the order their answers were accepted. Only lines the caller tracks
are treated as managed; everything else in the file is left byte-for-byte.
"""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from .errors import DuplicateInsertion, MarkerNotFound

MARKER_RE = re.compile(r"new\s+ConfigAggregator\(\s*\[")

DEFAULT_INDENT = "    "


def provider_line(provider: str, indent: str = DEFAULT_INDENT) -> str:
    """Return the aggregator entry for a provider class reference."""
    ref = provider.lstrip("\\")
    return f"{indent}\\{ref}::class,"


class ConfigAggregatorFile:
    """Line-oriented view of an aggregator file."""

    def __init__(self, text: str):
        self._lines = text.splitlines(keepends=True)
        self._marker_index = self._find_marker()
        self._newline = self._detect_newline()

    @classmethod
    def parse(cls, text: str) -> "ConfigAggregatorFile":
        return cls(text)

    def _find_marker(self) -> int:
        for i, line in enumerate(self._lines):
            if MARKER_RE.search(line):
                if line.rstrip("\r\n").rstrip().endswith("["):
                    return i
                raise MarkerNotFound(
                    "ConfigAggregator provider list must start on its own line"
                )
        raise MarkerNotFound("No 'new ConfigAggregator([' marker found in aggregator file")

    def _detect_newline(self) -> str:
        marker = self._lines[self._marker_index]
        return "\r\n" if marker.endswith("\r\n") else "\n"

    @staticmethod
    def _bare(line: str) -> str:
        return line.rstrip("\r\n")

    @property
    def entries(self) -> list[str]:
        """All lines after the marker, without line endings."""
        return [self._bare(line) for line in self._lines[self._marker_index + 1:]]

    def managed_block(self, managed: Iterable[str]) -> list[str]:
        """Contiguous run of tracked lines directly after the marker."""
        tracked = set(managed)
        block = []
        for line in self.entries:
            if line not in tracked:
                break
            block.append(line)
        return block

    def count(self, line: str) -> int:
        return sum(1 for entry in self.entries if entry == line)

    def insert(self, line: str, after: Sequence[str] = ()) -> None:
        """Insert *line* after the marker and after the tracked lines in *after*.

        Raises DuplicateInsertion if the line is already present.
        """
        if self.count(line):
            raise DuplicateInsertion(f"Provider reference already present: {line.strip()}")

        if not self._lines[self._marker_index].endswith(("\n", "\r")):
            self._lines[self._marker_index] += self._newline

        position = self._marker_index + 1 + len(self.managed_block(after))
        self._lines.insert(position, line + self._newline)

    def remove(self, line: str) -> None:
        """Remove exactly one tracked *line*.

        Raises DuplicateInsertion if the tracked line cannot be found: the file
        no longer matches what the session recorded.
        """
        for i in range(self._marker_index + 1, len(self._lines)):
            if self._bare(self._lines[i]) == line:
                del self._lines[i]
                return
        raise DuplicateInsertion(f"Tracked provider reference not found: {line.strip()}")

    def to_text(self) -> str:
        return "".join(self._lines)

    def __str__(self) -> str:
        return self.to_text()


def provider_references(text: str) -> list[str]:
    """Class references (``Foo\\Bar::class``) listed after the aggregator marker."""
    agg = ConfigAggregatorFile.parse(text)
    refs = []
    for entry in agg.entries:
        match = re.match(r"\s*\\?([A-Za-z_][\w\\]*)::class,", entry)
        if match:
            refs.append(match.group(1))
    return refs
