"""Structural summary of a unified diff.

Only file headers, binary markers and +/- line counts are recognised.
Anything else is ignored, so malformed input yields sparser metadata rather
than an error.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field

_GIT_HEADER_RE = re.compile(r"^diff --git a/(.+) b/(.+)$")
_BINARY_RE = re.compile(r"^Binary files (.+) and (.+) differ$")


@dataclass(frozen=True)
class DiffMetadata:
    files: frozenset[str] = field(default_factory=frozenset)
    binary_files: frozenset[str] = field(default_factory=frozenset)
    lines_added: int = 0
    lines_removed: int = 0

    @property
    def files_changed(self) -> int:
        return len(self.files)

    @property
    def is_binary_only(self) -> bool:
        """True when every changed file is binary (and at least one changed)."""
        return bool(self.files) and self.files == self.binary_files

    def to_dict(self) -> dict:
        """Canonical, order-stable rendering used in prompts and JSON reports."""
        return {
            "files_changed": self.files_changed,
            "files": sorted(self.files),
            "binary_files": sorted(self.binary_files),
            "lines_added": self.lines_added,
            "lines_removed": self.lines_removed,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def extract_diff_metadata(diff_text: str) -> DiffMetadata:
    files: set[str] = set()
    binary_files: set[str] = set()
    added = 0
    removed = 0

    for line in diff_text.split("\n"):
        if line.startswith("diff --git "):
            match = _GIT_HEADER_RE.match(line)
            if match:
                files.add(match.group(2))
            continue

        if line.startswith("Binary files "):
            match = _BINARY_RE.match(line)
            if match and match.group(2).startswith("b/"):
                path = match.group(2)[2:]
                files.add(path)
                binary_files.add(path)
            continue

        if line.startswith("+") and not line.startswith("+++"):
            added += 1
        elif line.startswith("-") and not line.startswith("---"):
            removed += 1

    return DiffMetadata(
        files=frozenset(files),
        binary_files=frozenset(binary_files),
        lines_added=added,
        lines_removed=removed,
    )
