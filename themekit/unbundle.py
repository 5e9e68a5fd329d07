"""Unpacking of the bundled theme template into a project directory."""

from __future__ import annotations

import io
import os
import posixpath
import zipfile
from typing import Callable, Optional, Union

_zip_data: bytes = b""


def register(data: Union[bytes, str]) -> None:
    """Set the zip archive that unbundle extracts."""
    global _zip_data
    _zip_data = data.encode("latin-1") if isinstance(data, str) else bytes(data)


def get_zip_contents(data: Union[bytes, str]) -> dict[str, dict[str, bytes]]:
    """Group the archive's files by directory, mapping each name to its contents."""
    if isinstance(data, str):
        data = data.encode("latin-1")
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as err:
        raise zipfile.BadZipFile("zip: not a valid zip file") from err
    files: dict[str, dict[str, bytes]] = {}
    with archive:
        for info in archive.infolist():
            if info.is_dir():
                files.setdefault(info.filename.rstrip("/") or ".", {})
                continue
            directory = posixpath.dirname(info.filename) or "."
            files.setdefault(directory, {})[info.filename] = archive.read(info)
    return files


def unbundle(directory: str, log: Optional[Callable[[str], object]] = None) -> None:
    """Extract the registered archive under directory without overwriting existing files."""
    emit = log or print
    for name, files in sorted(get_zip_contents(_zip_data).items()):
        target_dir = os.path.normpath(os.path.join(directory, name))
        if os.path.exists(target_dir):
            emit(f"Exists {target_dir}.")
        else:
            os.makedirs(target_dir, 0o755, exist_ok=True)
            emit(f"Created {target_dir}.")
        for path, contents in sorted(files.items()):
            _write_file(os.path.normpath(os.path.join(directory, path)), contents, emit)


def _write_file(path: str, contents: bytes, emit: Callable[[str], object]) -> None:
    if os.path.exists(path):
        emit(f"\tExists {path}.")
        return
    with open(path, "wb") as handle:
        handle.write(contents)
        handle.flush()
        os.fsync(handle.fileno())
    emit(f"\tCreated {path}.")