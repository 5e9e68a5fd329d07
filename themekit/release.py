"""Release feed handling: checking, installing and publishing versions."""

from __future__ import annotations

import functools
import hashlib
import os
import platform as _platform_mod
import re
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

import requests

from .uploader import BUCKET, new_s3_uploader

BUILDS = {
    "darwin-amd64": "theme",
    "darwin-386": "theme",
    "linux-386": "theme",
    "linux-amd64": "theme",
    "freebsd-386": "theme",
    "freebsd-amd64": "theme",
    "windows-386": "theme.exe",
    "windows-amd64": "theme.exe",
}

RELEASES_URL = f"https://{BUCKET}.s3.amazonaws.com/releases/all.json"
LATEST_URL = f"https://{BUCKET}.s3.amazonaws.com/releases/latest.json"

_TIMEOUT = 60
_IDENT = r"[0-9A-Za-z\-~]+(?:\.[0-9A-Za-z\-~]+)*"
_VERSION_RE = re.compile(
    rf"v?(?P<seg>[0-9]+(?:\.[0-9]+)*?)(?:-?(?P<pre>{_IDENT}))?(?:\+(?P<meta>{_IDENT}))?"
)


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """A version number with optional prerelease and build metadata."""

    segments: tuple[int, ...]
    prerelease: str = ""
    metadata: str = ""

    @classmethod
    def parse(cls, text: str) -> "Version":
        """Parse a version string; raises ValueError if it is malformed."""
        match = _VERSION_RE.fullmatch(text)
        if not match:
            raise ValueError(f"Malformed version: {text}")
        segments = tuple(int(part) for part in match["seg"].split("."))
        return cls(segments + (0,) * (3 - len(segments)), match["pre"] or "", match["meta"] or "")

    def _key(self) -> tuple:
        segments = list(self.segments)
        while segments and segments[-1] == 0:
            segments.pop()
        pre = [(0, int(p), "") if p.isdigit() else (1, 0, p) for p in self.prerelease.split(".")]
        return (tuple(segments), not self.prerelease, pre)

    def compare(self, other: "Version") -> int:
        """Return -1, 0 or 1 as this version is older than, equal to or newer than other."""
        return (self._key() > other._key()) - (self._key() < other._key())

    def __eq__(self, other: object) -> bool:
        return self._key() == other._key() if isinstance(other, Version) else NotImplemented

    def __lt__(self, other: "Version") -> bool:
        return self._key() < other._key() if isinstance(other, Version) else NotImplemented

    def __hash__(self) -> int:
        return hash(repr(self._key()))

    def __str__(self) -> str:
        text = ".".join(map(str, self.segments))
        text += f"-{self.prerelease}" if self.prerelease else ""
        return text + (f"+{self.metadata}" if self.metadata else "")


THEMEKIT_VERSION = Version.parse("1.0.1")

_ARCHES = {"x86_64": "amd64", "amd64": "amd64", "i386": "386", "i686": "386", "x86": "386",
           "aarch64": "arm64", "arm64": "arm64"}


def _platform_key() -> str:
    os_name = next(
        (name for prefix, name in (("linux", "linux"), ("win", "windows"), ("cygwin", "windows"),
                                   ("freebsd", "freebsd")) if sys.platform.startswith(prefix)),
        sys.platform,
    )
    machine = _platform_mod.machine().lower()
    return f"{os_name}-{_ARCHES.get(machine, machine)}"


@dataclass
class Platform:
    """A built binary for one platform within a release."""

    name: str = ""
    url: str = ""
    digest: str = ""

    def to_json(self) -> dict[str, str]:
        return {"name": self.name, "url": self.url, "digest": self.digest}

    @classmethod
    def from_json(cls, data: Any) -> "Platform":
        if not isinstance(data, dict):
            raise ValueError("platform entry must be an object")
        return cls(*(str(data.get(k) or "") for k in ("name", "url", "digest")))


@dataclass
class Release:
    """A published version and its platform binaries."""

    version: str = ""
    platforms: list[Platform] = field(default_factory=list)

    def is_valid(self) -> bool:
        """Return True if the release has any platform binaries."""
        return bool(self.platforms)

    def is_applicable(self) -> bool:
        """Return True if this is a stable release newer than the running version."""
        version = self.get_version()
        return version is not None and THEMEKIT_VERSION < version and not version.metadata and not version.prerelease

    def get_version(self) -> Version | None:
        """Return the parsed version, or None if it is malformed."""
        try:
            return Version.parse(self.version)
        except ValueError:
            return None

    def for_current_platform(self) -> Platform:
        """Return the binary for the running platform, or an empty Platform."""
        key = _platform_key()
        return next((p for p in self.platforms if p.name == key), Platform())

    def to_json(self) -> dict[str, Any]:
        return {"version": self.version, "platforms": [p.to_json() for p in self.platforms]}

    @classmethod
    def from_json(cls, data: Any) -> "Release":
        if not isinstance(data, dict):
            raise ValueError("release entry must be an object")
        return cls(str(data.get("version") or ""), [Platform.from_json(p) for p in data.get("platforms") or []])


def _sort_key(release: Release) -> tuple[bool, Version]:
    version = release.get_version()
    return (version is not None, version or Version((0, 0, 0)))


@dataclass
class ReleaseList:
    """The list of all published releases."""

    releases: list[Release] = field(default_factory=list)

    def __iter__(self) -> Iterator[Release]:
        return iter(self.releases)

    def __len__(self) -> int:
        return len(self.releases)

    def add(self, release: Release) -> "ReleaseList":
        """Return a list with release added, replacing any release of the same version."""
        return ReleaseList(self.remove(release.version).releases + [release])

    def get(self, ver: str) -> Release:
        """Return the release for ver, or the newest stable one for 'latest'; empty if absent."""
        ordered = sorted(self.releases, key=_sort_key, reverse=True)
        if ver == "latest":
            stable = (r for r in ordered
                      if (v := r.get_version()) is not None and not v.metadata and not v.prerelease)
            return next(stable, Release())
        requested = Version.parse(ver)
        return next((r for r in ordered if r.get_version() == requested), Release())

    def remove(self, ver: str) -> "ReleaseList":
        """Return a list without the first release matching ver."""
        requested = Version.parse(ver)
        remaining = list(self.releases)
        index = next((i for i, r in enumerate(remaining) if r.get_version() == requested), None)
        if index is not None:
            del remaining[index]
        return ReleaseList(remaining)

    def to_json(self) -> list[dict[str, Any]]:
        return [release.to_json() for release in self.releases]

    @classmethod
    def from_json(cls, data: Any) -> "ReleaseList":
        if not isinstance(data, list):
            raise ValueError("release feed must be a list")
        return cls([Release.from_json(item) for item in data])


Installer = Callable[[Platform], None]


def is_update_available() -> bool:
    """Return True if a newer stable release has been published."""
    return check_update_available(LATEST_URL)


def install(ver: str) -> None:
    """Install the given version, or the newest one for 'latest', over the running program."""
    installer = lambda platform: apply_update(platform, "")  # noqa: E731
    if ver == "latest":
        install_latest(LATEST_URL, installer)
    else:
        install_version(ver, RELEASES_URL, installer)


def update(key: str, secret: str, ver: str, force: bool) -> None:
    """Publish the built binaries as release ver."""
    update_release(ver, RELEASES_URL, os.path.join("build", "dist"), force, new_s3_uploader(key, secret))


def remove(key: str, secret: str, ver: str) -> None:
    """Withdraw release ver from the published feed."""
    remove_version(ver, RELEASES_URL, new_s3_uploader(key, secret))


def check_update_available(latest_url: str) -> bool:
    """Return True if the release at latest_url is applicable; False on any fetch error."""
    try:
        return fetch_latest(latest_url).is_applicable()
    except (requests.RequestException, ValueError):
        return False


def install_latest(latest_url: str, installer: Installer) -> None:
    """Install the latest release if it is newer; raises RuntimeError otherwise."""
    release = fetch_latest(latest_url)
    if not release.is_applicable():
        raise RuntimeError("no applicable update available")
    installer(release.for_current_platform())


def install_version(ver: str, releases_url: str, installer: Installer) -> None:
    """Install a specific version; raises LookupError if it was never published."""
    Version.parse(ver)
    requested = fetch_releases(releases_url).get(ver)
    if not requested.is_valid():
        raise LookupError(f"version {ver} not found")
    installer(requested.for_current_platform())


def apply_update(platform: Platform, target_path: str = "") -> None:
    """Download a platform binary, verify its MD5 digest and replace target_path with it."""
    checksum = bytes.fromhex(platform.digest)
    content = requests.get(platform.url, timeout=_TIMEOUT).content
    target = os.path.abspath(target_path or os.path.realpath(sys.argv[0]))
    actual = hashlib.md5(content).digest()
    if actual != checksum:
        raise RuntimeError(
            f"Could not update and had to roll back. Updated file has wrong checksum. "
            f"Expected: {checksum.hex()}, got: {actual.hex()}"
        )
    directory, name = os.path.split(target)
    new_path, old_path = os.path.join(directory, f".{name}.new"), os.path.join(directory, f".{name}.old")
    try:
        with open(new_path, "wb") as handle:
            handle.write(content)
        os.chmod(new_path, 0o755)
        os.replace(target, old_path)
    except OSError as err:
        raise RuntimeError(f"Could not update and had to roll back. {err}") from err
    try:
        os.replace(new_path, target)
    except OSError as err:
        try:
            os.replace(old_path, target)
        except OSError as rollback:
            raise RuntimeError(f"Failed to rollback from bad update: {rollback}") from rollback
        raise RuntimeError(f"Could not update and had to roll back. {err}") from err
    os.remove(old_path)


def update_release(ver: str, releases_url: str, dist_dir: str, force: bool, uploader: Any) -> None:
    """Build release ver from dist_dir, upload it and update the feed."""
    if Version.parse(ver) != THEMEKIT_VERSION and not force:
        raise ValueError("deploy version does not match themekit version")
    if not os.path.exists(dist_dir):
        raise FileNotFoundError("Dist folder does not exist. Run 'make dist' before attempting to create a new release")
    releases = fetch_releases(releases_url)
    if not force and releases.get(ver).is_valid():
        raise ValueError("version has already been deployed")
    update_deploy(releases.add(build_release(ver, dist_dir, uploader)), uploader)


def remove_version(ver: str, releases_url: str, uploader: Any) -> None:
    """Remove ver from the feed; raises LookupError if it is not published."""
    Version.parse(ver)
    releases = fetch_releases(releases_url)
    if not releases.get(ver).is_valid():
        raise LookupError("version has not be deployed")
    update_deploy(releases.remove(ver), uploader)


def update_deploy(releases: ReleaseList, uploader: Any) -> None:
    """Upload the full feed and the latest release document."""
    print("Updating releases")
    uploader.json("releases/all.json", releases)
    uploader.json("releases/latest.json", releases.get("latest"))


def fetch_latest(url: str) -> Release:
    """Download the latest-release document; raises on network or JSON errors."""
    return Release.from_json(requests.get(url, timeout=_TIMEOUT).json())


def fetch_releases(url: str) -> ReleaseList:
    """Download the list of all releases; raises on network or JSON errors."""
    return ReleaseList.from_json(requests.get(url, timeout=_TIMEOUT).json())


def build_release(ver: str, dist_dir: str, uploader: Any) -> Release:
    """Upload every platform binary in dist_dir and describe them as a release."""
    print(f"Building {ver}")
    return Release(ver, [build_platform(ver, name, dist_dir, binary, uploader) for name, binary in BUILDS.items()])


def build_platform(ver: str, platform_name: str, dist_dir: str, bin_name: str, uploader: Any) -> Platform:
    """Upload one platform binary and return its description."""
    with open(os.path.join(dist_dir, platform_name, bin_name), "rb") as handle:
        data = handle.read()
        handle.seek(0)
        url = uploader.file("/".join((ver, platform_name, bin_name)), handle)
    return Platform(platform_name, url, hashlib.md5(data).hexdigest())