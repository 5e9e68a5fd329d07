"""Polling watcher that reports changes to theme files."""

from __future__ import annotations

import contextlib
import enum
import os
import queue
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterable

from .checksum import dir_sums, file_checksum
from .filters import new_filter
from .paths import path_to_project

FILEPATH_SPLIT = " -> "


class Op(enum.IntEnum):
    """Kind of change reported to consumers."""

    UPDATE = 0
    REMOVE = 1


class FsOp(enum.Enum):
    """Kind of change seen on the file system."""

    CREATE = "create"
    WRITE = "write"
    REMOVE = "remove"
    RENAME = "rename"
    CHMOD = "chmod"
    MOVE = "move"


@dataclass(frozen=True)
class FsEvent:
    """Raw file system change; renames and moves carry 'old -> new' as path."""

    op: FsOp
    path: str


@dataclass(frozen=True)
class Event:
    """A change to a theme file."""

    op: Op
    path: str
    checksum: str = ""


def is_event_type(current_op: FsOp, *args: FsOp) -> bool:
    """Return True if current_op is one of the given operations."""
    return current_op in args


def filter_hook(
    directory: str,
    ignored_files: Iterable[str] = (),
    ignores: Iterable[str] = (),
    config_path: str = "",
) -> Callable[[str], bool]:
    """Return a predicate telling whether a path should be skipped by the watcher."""
    flt = new_filter(directory, ignored_files, ignores)
    return lambda full_path: os.path.isdir(full_path) or (config_path != full_path and flt.match(full_path))


class Watcher:
    """Watches a theme directory and puts debounced Events on the events queue."""

    drain_timeout = 1.0
    poll_interval = 0.5
    idle_timeout = 1.0

    def __init__(
        self,
        directory: str,
        ignored_files: Iterable[str] = (),
        ignores: Iterable[str] = (),
        notify: str = "",
        config_path: str = "",
    ):
        self._skip = filter_hook(directory, ignored_files, ignores, config_path)
        if not os.path.isdir(directory):
            raise FileNotFoundError(f"Could not watch directory: {directory}")
        self.directory = directory
        self.notify = notify
        self.checksums = dir_sums(directory)
        self.events: queue.Queue[Event] = queue.Queue()
        self.fs_events: queue.Queue[FsEvent] = queue.Queue()
        self._snapshot = self._scan()
        self._stopped = threading.Event()
        self._threads: list[threading.Thread] = []

    def watch(self) -> None:
        """Start polling the directory and emitting events in the background."""
        for target in (self._consume, self._poll):
            thread = threading.Thread(target=target, daemon=True)
            thread.start()
            self._threads.append(thread)

    def stop(self) -> None:
        """Stop watching and discard any pending events."""
        self._stopped.set()
        for thread in self._threads:
            if thread is not threading.current_thread():
                thread.join(timeout=2)
        with contextlib.suppress(queue.Empty):
            while True:
                self.events.get_nowait()

    def parse_path(self, path: str) -> tuple[str, str]:
        """Split an event path into (old, current) theme paths."""
        parts = [path_to_project(self.directory, part) or part for part in path.split(FILEPATH_SPLIT)]
        return (parts[0], parts[1]) if len(parts) > 1 else ("", parts[0])

    def translate_event(self, event: FsEvent) -> list[Event]:
        """Turn a file system event into theme events, dropping unchanged files."""
        old_path, current_path = self.parse_path(event.path)
        try:
            checksum = file_checksum(self.directory, current_path)
            if checksum == self.checksums.get(current_path):
                return []
        except OSError:
            checksum = ""
        if is_event_type(event.op, FsOp.RENAME, FsOp.MOVE):
            return [Event(Op.REMOVE, old_path), Event(Op.UPDATE, current_path, checksum)]
        if is_event_type(event.op, FsOp.REMOVE):
            return [Event(Op.REMOVE, current_path)]
        if is_event_type(event.op, FsOp.CREATE, FsOp.WRITE):
            return [Event(Op.UPDATE, current_path, checksum)]
        return []

    def on_event(self, event: FsEvent) -> bool:
        """Collect this and following events until quiet, then emit them; True if any were emitted."""
        pending = {e.path: e for e in self.translate_event(event)}
        with contextlib.suppress(queue.Empty):
            while True:
                following = self.fs_events.get(timeout=self.drain_timeout)
                pending.update((e.path, e) for e in self.translate_event(following))
        for item in pending.values():
            if item.op is Op.REMOVE:
                self.checksums.pop(item.path, None)
            else:
                self.checksums[item.path] = item.checksum
            self.events.put(item)
        return bool(pending)

    def on_idle(self) -> None:
        """Touch the notify file, if one is configured."""
        if self.notify:
            with contextlib.suppress(OSError):
                open(self.notify, "w").close()
                os.utime(self.notify, None)

    def _consume(self) -> None:
        deadline: float | None = time.monotonic() + self.idle_timeout
        while not self._stopped.is_set():
            try:
                event = self.fs_events.get(timeout=0.05)
            except queue.Empty:
                if deadline is not None and time.monotonic() >= deadline:
                    self.on_idle()
                    deadline = None
                continue
            if self.on_event(event):
                deadline = time.monotonic() + self.idle_timeout

    def _poll(self) -> None:
        while not self._stopped.wait(self.poll_interval):
            current = self._scan()
            for event in self._diff(self._snapshot, current):
                self.fs_events.put(event)
            self._snapshot = current

    def _scan(self) -> dict[str, os.stat_result]:
        files: dict[str, os.stat_result] = {}
        for dirpath, dirnames, filenames in os.walk(self.directory):
            dirnames[:] = [d for d in dirnames if not d.startswith(".")]
            for name in filenames:
                path = os.path.join(dirpath, name)
                if not name.startswith(".") and not self._skip(path):
                    with contextlib.suppress(OSError):
                        files[path] = os.stat(path)
        return files

    @staticmethod
    def _diff(old: dict[str, os.stat_result], new: dict[str, os.stat_result]) -> list[FsEvent]:
        created = {p: i for p, i in new.items() if p not in old}
        removed = {p: i for p, i in old.items() if p not in new}
        events = []
        for old_path, old_info in list(removed.items()):
            new_path = next((p for p, i in created.items() if (i.st_ino, i.st_dev) == (old_info.st_ino, old_info.st_dev)), None)
            if new_path is not None:
                op = FsOp.RENAME if os.path.dirname(old_path) == os.path.dirname(new_path) else FsOp.MOVE
                events.append(FsEvent(op, f"{old_path}{FILEPATH_SPLIT}{new_path}"))
                del removed[old_path], created[new_path]
        events += [FsEvent(FsOp.CREATE, p) for p in created]
        events += [FsEvent(FsOp.REMOVE, p) for p in removed]
        events += [
            FsEvent(FsOp.WRITE, p)
            for p, i in new.items()
            if p in old and (old[p].st_mtime_ns, old[p].st_size) != (i.st_mtime_ns, i.st_size)
        ]
        return events