"""
Where the changed-file list comes from.

In CI the list is usually the output of a git diff against the target
branch; locally it is often passed through an environment variable. All
loaders return plain lists of path strings; normalization happens in
`ChangedFilesFilter`.
"""
from __future__ import annotations

import logging
import os
import re
from typing import Any, Iterable, Mapping

from git import Repo
from git.exc import CommandError, InvalidGitRepositoryError, NoSuchPathError

from .exceptions import ChangedFilesSourceError

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[,\s]+")


def parse_changed_files(value: str | Iterable[str] | None) -> list[str]:
    """
    Turn "a.py, b.py\\nc.py" (or a list of such entries) into a list of
    paths. Blank entries are dropped.
    """
    if not value:
        return []
    if isinstance(value, str):
        return [part for part in _SEPARATORS.split(value) if part]
    return [str(part).strip() for part in value if part and str(part).strip()]


def changed_files_from_env(name: str = "CHANGED_FILES") -> list[str]:
    return parse_changed_files(os.environ.get(name))


def changed_files_from_git(
    base: str = "origin/main", repo_path: str | os.PathLike = "."
) -> list[str]:
    """
    Files that differ between ``base`` and the working tree, plus untracked
    files, as absolute paths.

    Raises
    ------
    ChangedFilesSourceError
        If ``repo_path`` is not inside a git repository, the repository is
        bare, git is not installed, or the diff fails (e.g. unknown ``base``).
    """
    try:
        repo = Repo(repo_path, search_parent_directories=True)
        if repo.bare:
            raise ChangedFilesSourceError(
                f"changed_files_filter: {os.fspath(repo_path)!r} is a bare repository"
            )
        output = repo.git.diff("--name-only", base)
        untracked = repo.untracked_files
    except (InvalidGitRepositoryError, NoSuchPathError) as e:
        raise ChangedFilesSourceError(
            f"changed_files_filter: {os.fspath(repo_path)!r} is not a git repository"
        ) from e
    except CommandError as e:
        # Also covers GitCommandNotFound when git is not installed.
        raise ChangedFilesSourceError(
            f"changed_files_filter: git diff against {base!r} failed: {e}"
        ) from e

    root = repo.working_tree_dir
    names = [line.strip() for line in output.splitlines() if line.strip()]
    names.extend(untracked)
    files = list(dict.fromkeys(os.path.join(root, name) for name in names))
    logger.info("%d changed file(s) against %s", len(files), base)
    return files


def resolve_changed_files(config: Mapping[str, Any]) -> list[str]:
    """
    Collect changed files from a settings mapping.

    Recognized keys
    ---------------
    CHANGED_FILES : list[str] | str
        Explicit entries.
    CHANGED_FILES_ENV : str
        Name of an environment variable holding more entries.
    GIT_BASE : str
        Diff base; adds the files changed against it.
    GIT_REPO_PATH : str, default="."
        Repository used with GIT_BASE.
    """
    files = parse_changed_files(config.get("CHANGED_FILES"))

    env_name = config.get("CHANGED_FILES_ENV")
    if env_name:
        files.extend(changed_files_from_env(env_name))

    base = config.get("GIT_BASE")
    if base:
        files.extend(
            changed_files_from_git(base, repo_path=config.get("GIT_REPO_PATH", "."))
        )

    return list(dict.fromkeys(files))
