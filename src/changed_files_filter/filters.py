from __future__ import annotations

import os
import re
from typing import Iterable, Protocol, Sequence

# "/path/to/file.py:123:in handler" -> "/path/to/file.py"
_FRAME_PATH = re.compile(r"^(.+?):\d+")


class Notification(Protocol):
    """
    Anything carrying a call stack.

    ``backtrace`` is an ordered sequence of frame strings shaped like
    ``"path:line:in method"``. ``None`` is treated as an empty stack.
    """
    backtrace: Sequence[str] | None


def normalize_path(path: str | os.PathLike) -> str:
    return os.path.abspath(os.path.expanduser(os.fspath(path)))


def extract_file_path(frame: object) -> str | None:
    """
    Return the file path part of a stack frame, or None if the frame has no
    ``path:<digits>`` prefix.
    """
    if not isinstance(frame, str):
        return None
    match = _FRAME_PATH.match(frame)
    return match.group(1) if match else None


def _frames(notification: object) -> Iterable[object]:
    backtrace = getattr(notification, "backtrace", None)
    if not backtrace:
        return ()
    if isinstance(backtrace, str):
        return (backtrace,)
    try:
        return iter(backtrace)
    except TypeError:
        return ()


class ChangedFilesFilter:
    """
    Decide whether a notification's call stack touches a changed file.

    Matching is a symmetric substring check between the normalized frame
    path and every changed path, so relative entries such as
    "app/models.py" still match absolute frames. It is loose on purpose and
    can report false positives (``/lib/foo.py`` matches
    ``/app/lib/foo.py``).
    """

    def __init__(self, changed_files: Iterable[str] | str | None = ()) -> None:
        # A single path is one entry, not a sequence of characters.
        if isinstance(changed_files, (str, os.PathLike)):
            changed_files = (changed_files,)
        # A blank entry normalizes to the working directory.
        paths = (normalize_path(f) for f in (changed_files or ()) if f is not None)
        self._changed_files: tuple[str, ...] = tuple(dict.fromkeys(paths))

    @property
    def changed_files(self) -> tuple[str, ...]:
        return self._changed_files

    def matches(self, notification: Notification) -> bool:
        if not self._changed_files:
            return False

        for frame in _frames(notification):
            file_path = extract_file_path(frame)
            if not file_path:
                continue

            full_path = normalize_path(file_path)
            if any(
                full_path in changed or changed in full_path
                for changed in self._changed_files
            ):
                return True

        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._changed_files)!r})"
