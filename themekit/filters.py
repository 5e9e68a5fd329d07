"""Filtering of file paths against ignore patterns."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

from .paths import path_in_project

DEFAULT_REGEXES = [
    re.compile(pattern)
    for pattern in (
        r"\.git",
        r"\.hg",
        r"\.bzr",
        r"\.svn",
        r"_darcs",
        r"CVS",
        r"\.sublime-(project|workspace)",
        r"\.DS_Store",
        r"\.sass-cache",
        r"Thumbs\.db",
        r"desktop\.ini",
        r"config.yml",
        r"node_modules",
    )
]

DEFAULT_GLOBS: list[str] = []


def glob_match(pattern: str, subject: str) -> bool:
    """Match a subject against a pattern where '*' stands for any run of characters."""
    if pattern == "":
        return subject == ""
    if pattern == "*":
        return True
    parts = pattern.split("*")
    if len(parts) == 1:
        return subject == pattern
    leading = pattern.startswith("*")
    trailing = pattern.endswith("*")
    *inner, last = parts
    for position, part in enumerate(inner):
        index = subject.find(part)
        if position == 0 and not leading and index != 0:
            return False
        if index < 0:
            return False
        subject = subject[index + len(part):]
    return trailing or subject.endswith(last)


@dataclass
class Filter:
    """Matches file paths against regular expressions and glob patterns."""

    root_dir: str
    regexps: list[re.Pattern] = field(default_factory=list)
    globs: list[str] = field(default_factory=list)

    def match(self, path: str) -> bool:
        """Return True if the path should be ignored."""
        if not path or not path_in_project(self.root_dir, path):
            return True
        if any(regexp.search(path) for regexp in self.regexps):
            return True
        return any(glob_match(pattern, path) for pattern in self.globs)


def new_filter(root_dir: str, patterns: Iterable[str], files: Iterable[str]) -> Filter:
    """Build a filter from patterns and from pattern files; raises OSError for unreadable files."""
    file_patterns = files_to_patterns(files)
    if not root_dir.endswith("/"):
        root_dir += "/"
    regexps, globs = patterns_to_regexps_and_globs([*patterns, *file_patterns])
    return Filter(root_dir=root_dir, regexps=regexps, globs=globs)


def files_to_patterns(files: Iterable[str]) -> list[str]:
    """Read ignore patterns from files, skipping blank lines and comments."""
    patterns: list[str] = []
    for name in files:
        with open(name, encoding="utf-8", newline="") as handle:
            data = handle.read()
        for line in data.split("\n"):
            line = line.removesuffix("\r")
            if line and not line.startswith("#"):
                patterns.append(line)
    return patterns


def patterns_to_regexps_and_globs(patterns: Iterable[str]) -> tuple[list[re.Pattern], list[str]]:
    """Split patterns into compiled regular expressions (/.../) and globs."""
    regexps = list(DEFAULT_REGEXES)
    globs = list(DEFAULT_GLOBS)
    for pattern in patterns:
        pattern = pattern.strip()
        if len(pattern) >= 2 and pattern.startswith("/") and pattern.endswith("/"):
            regexps.append(re.compile(pattern[1:-1]))
            continue
        if pattern.endswith("/"):
            pattern += "*"
        if not pattern.startswith("*"):
            pattern = "*" + pattern
        globs.append(pattern)
    return regexps, globs