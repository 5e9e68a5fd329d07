"""Packing of a theme template directory into an importable data module."""

from __future__ import annotations

import io
import os
import zipfile
from typing import Iterator

TEMPLATE = '"""Bundled theme template."""\n\nfrom themekit.unbundle import register\n\nregister(b"{data}")\n'

_DATE_TIME = (1980, 1, 1, 0, 0, 0)


def _escape(byte: int) -> str:
    if byte == 0x0A:
        return "\\n"
    if byte == 0x5C:
        return "\\\\"
    if byte == 0x22:
        return '\\"'
    if 32 <= byte <= 126 or byte == 0x09:
        return chr(byte)
    return f"\\x{byte:02x}"


_ESCAPES = tuple(_escape(byte) for byte in range(256))


def bundle(src: str, dst: str) -> None:
    """Compress every file under src and write a module registering the data to dst."""
    write_out_template(dst, compress_data(src))


def _walk(directory: str) -> Iterator[str]:
    for name in sorted(os.listdir(directory)):
        path = os.path.join(directory, name)
        if os.path.isdir(path) and not os.path.islink(path):
            yield from _walk(path)
        else:
            yield path


def compress_data(src: str) -> str:
    """Zip the files under src and return the archive as an escaped literal body."""
    if not os.path.isdir(src):
        raise FileNotFoundError(f"no such directory: {src}")
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for path in _walk(src):
            name = os.path.relpath(path, src).replace(os.sep, "/")
            info = zipfile.ZipInfo(name, date_time=_DATE_TIME)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            with open(path, "rb") as handle:
                archive.writestr(info, handle.read())
    return sanitize_data(buffer.getvalue())


def sanitize_data(data: bytes) -> str:
    """Escape bytes so they can be placed inside a double-quoted bytes literal."""
    return "".join(_ESCAPES[byte] for byte in data)


def write_out_template(dst: str, data: str) -> None:
    """Write the data module to dst; raises OSError if it cannot be created."""
    with open(dst, "w", encoding="ascii", newline="\n") as handle:
        handle.write(TEMPLATE.format(data=data))