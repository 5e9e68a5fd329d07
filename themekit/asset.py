"""Theme assets on disk: reading, finding and writing them."""

from __future__ import annotations

import base64
import binascii
import json
import os
import stat
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator

from .filters import new_filter

_BINARY_BYTES = frozenset(
    [*range(0x00, 0x09), 0x0B, *range(0x0E, 0x1B), *range(0x1C, 0x20)]
)
_HTML_TAGS = (
    b"<!DOCTYPE HTML", b"<HTML", b"<HEAD", b"<SCRIPT", b"<IFRAME", b"<H1", b"<DIV",
    b"<FONT", b"<TABLE", b"<A", b"<STYLE", b"<TITLE", b"<B", b"<BODY", b"<BR", b"<P", b"<!--",
)
_BINARY_SIGNATURES = (
    b"%PDF-", b"%!PS-Adobe-", b"GIF87a", b"GIF89a", b"BM", b"ID3", b".snd",
    b"wOFF", b"wOF2", b"ttcf",
)
_TEXT_BOMS = (b"\xfe\xff", b"\xff\xfe", b"\xef\xbb\xbf")
_JSON_WHITESPACE = " \t\n\r"


class AssetIsDirError(Exception):
    """Raised when a directory is read as if it were a single asset."""

    def __init__(self, message: str = "requested asset is a directory"):
        super().__init__(message)


def _is_text(data: bytes) -> bool:
    head = data[:512]
    stripped = head.lstrip(b"\t\n\x0c\r ")
    upper = stripped.upper()
    for tag in _HTML_TAGS:
        if upper.startswith(tag) and upper[len(tag):len(tag) + 1] in (b" ", b">"):
            return True
    if stripped.startswith(b"<?xml"):
        return True
    if head.startswith(_BINARY_SIGNATURES):
        return False
    if head.startswith(_TEXT_BOMS):
        return True
    if head[:4] == b"RIFF" and (head[8:12] in (b"WAVE", b"AVI ") or head[8:14] == b"WEBPVP"):
        return False
    if head[:4] == b"FORM" and head[8:12] == b"AIFF":
        return False
    return not any(byte in _BINARY_BYTES for byte in head)


def _extension(key: str) -> str:
    name = key.rsplit("/", 1)[-1]
    index = name.rfind(".")
    return name[index:] if index >= 0 else ""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def _indent_json(data: bytes) -> bytes:
    """Re-indent a JSON document with two spaces, keeping its tokens as written."""
    text = data.decode("utf-8", "surrogateescape")
    try:
        json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return b""
    out: list[str] = []
    depth = 0
    in_string = escaped = need_indent = False
    for char in text:
        if in_string:
            out.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char in _JSON_WHITESPACE:
            continue
        if need_indent:
            need_indent = False
            if char in "]}":
                depth -= 1
                out.append(char)
                continue
            out.append("\n" + "  " * depth)
        if char == '"':
            in_string = True
            out.append(char)
        elif char in "{[":
            depth += 1
            need_indent = True
            out.append(char)
        elif char in "}]":
            depth -= 1
            out.append("\n" + "  " * depth + char)
        elif char == ",":
            out.append(",\n" + "  " * depth)
        elif char == ":":
            out.append(": ")
        else:
            out.append(char)
    return "".join(out).encode("utf-8", "surrogateescape")


def _to_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


@dataclass
class Asset:
    """A single theme file as exchanged with the store."""

    key: str = ""
    value: str = ""
    attachment: str = ""
    content_type: str = ""
    theme_id: int = 0
    updated_at: str = ""

    def write(self, directory: str) -> None:
        """Write the asset below directory, creating parent directories as needed."""
        perms = os.stat(directory)
        filename = os.path.join(directory, self.key)
        os.makedirs(os.path.dirname(filename), stat.S_IMODE(perms.st_mode), exist_ok=True)
        with open(filename, "wb") as handle:
            handle.write(self.contents())
            handle.flush()
            os.fsync(handle.fileno())

    def contents(self) -> bytes:
        """Return the asset's bytes; JSON values are re-indented, attachments decoded."""
        if self.value:
            data = self.value.encode("utf-8", "surrogateescape")
            if _extension(self.key) == ".json":
                data = _indent_json(data)
            return data
        if self.attachment:
            try:
                return base64.b64decode(self.attachment, validate=True)
            except (binascii.Error, ValueError) as err:
                raise ValueError(f"Could not decode {self.key}. error: {err}") from err
        return b""

    def to_json(self) -> dict[str, Any]:
        """Return the API representation, leaving out empty fields other than the key."""
        data: dict[str, Any] = {"key": self.key}
        optional = {
            "value": self.value,
            "attachment": self.attachment,
            "content_type": self.content_type,
            "theme_id": self.theme_id,
            "updated_at": self.updated_at,
        }
        data.update({name: value for name, value in optional.items() if value})
        return data

    @classmethod
    def from_json(cls, data: Any) -> "Asset":
        """Build an asset from its API representation."""
        if not isinstance(data, dict):
            return cls()
        return cls(
            key=str(data.get("key") or ""),
            value=str(data.get("value") or ""),
            attachment=str(data.get("attachment") or ""),
            content_type=str(data.get("content_type") or ""),
            theme_id=_to_int(data.get("theme_id")),
            updated_at=str(data.get("updated_at") or ""),
        )


def _to_slash(path: str) -> str:
    return path.replace(os.sep, "/")


def read_asset(directory: str, filename: str) -> Asset:
    """Read one file below directory as an asset; text becomes a value, binary an attachment."""
    root = directory or os.curdir
    path = os.path.join(directory, filename)
    asset = Asset(key=_to_slash(os.path.relpath(path, root)))
    try:
        info = os.stat(path)
    except OSError as err:
        raise OSError(f"readAsset: {err}") from err
    if stat.S_ISDIR(info.st_mode):
        raise AssetIsDirError()
    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except OSError as err:
        raise OSError(f"readAsset: {err}") from err
    if _is_text(data):
        asset.value = data.decode("utf-8", "replace")
    else:
        asset.attachment = base64.b64encode(data).decode("ascii")
    return asset


def _walk(path: str) -> Iterator[str]:
    if os.path.isdir(path) and not os.path.islink(path):
        for name in sorted(os.listdir(path)):
            yield from _walk(os.path.join(path, name))
    else:
        yield path


def load_assets_from_directory(root: str, directory: str, ignore: Callable[[str], bool]) -> list[str]:
    """Return the keys of all files below root/directory that are not ignored."""
    start = os.path.join(root, directory)
    os.lstat(start)
    base = root or os.curdir
    keys = (_to_slash(os.path.relpath(path, base)) for path in _walk(start))
    return [key for key in keys if not ignore(key)]


def find_assets(
    directory: str,
    paths: Iterable[str] = (),
    ignored_files: Iterable[str] = (),
    ignores: Iterable[str] = (),
) -> list[str]:
    """Return asset keys for the given paths, walking directories; the whole project if none given."""
    flt = new_filter(directory, ignored_files, ignores)
    paths = list(paths)
    if not paths:
        return load_assets_from_directory(directory, "", flt.match)
    assets: list[str] = []
    for path in paths:
        try:
            asset = read_asset(directory, path)
        except AssetIsDirError:
            assets.extend(load_assets_from_directory(directory, path, flt.match))
            continue
        if not flt.match(asset.key):
            assets.append(asset.key)
    return assets