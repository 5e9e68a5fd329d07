"""MD5 checksums of project files."""

from __future__ import annotations

import hashlib
import os

from .paths import path_to_project


def file_checksum(directory: str, src: str) -> str:
    """Return the hex MD5 digest of a file; raises OSError if it cannot be read."""
    with open(os.path.join(directory, src), "rb") as handle:
        return hashlib.md5(handle.read()).hexdigest()


def dir_sums(src: str) -> dict[str, str]:
    """Map the theme key of every regular file under src to its checksum."""
    if not os.path.isdir(src):
        raise FileNotFoundError(f"no such directory: {src}")
    sums: dict[str, str] = {}
    for dirpath, _, filenames in os.walk(src):
        for name in filenames:
            path = os.path.join(dirpath, name)
            if os.path.isfile(path) and not os.path.islink(path):
                sums[path_to_project(src, path)] = file_checksum("", path)
    return sums