"""Mapping of local file paths onto theme project paths."""

from __future__ import annotations

import os
import posixpath

ASSET_LOCATIONS = (
    "assets",
    "config",
    "content",
    "frame",
    "layout",
    "locales",
    "pages",
    "sections",
    "snippets",
    "templates",
    "templates/customers",
)


def _to_slash(path: str) -> str:
    return path.replace(os.sep, "/") if os.sep != "/" else path


def _clean(path: str) -> str:
    return _to_slash(os.path.normpath(path)) if path else "."


def _relative(root: str, filename: str) -> str:
    prefix = _clean(root) + "/"
    cleaned = _clean(filename)
    return cleaned[len(prefix):] if cleaned.startswith(prefix) else cleaned


def path_in_project(root: str, filename: str) -> bool:
    """Return True if the file or directory belongs to the theme project."""
    return path_to_project(root, filename) != "" or is_project_directory(root, filename)


def is_project_directory(root: str, filename: str) -> bool:
    """Return True if the path is one of the theme's asset directories."""
    return _relative(root, filename) in ASSET_LOCATIONS


def path_to_project(root: str, filename: str) -> str:
    """Return the theme key for a file path, or an empty string if it is outside the theme."""
    relative = _relative(root, filename)
    for directory in ASSET_LOCATIONS:
        prefix = directory + "/"
        if relative.startswith(prefix):
            return posixpath.normpath(posixpath.join(directory, relative[len(prefix):]))
    return ""