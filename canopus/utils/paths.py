"""Project path providers.

Paths are POSIX strings relative to the project root, which is what
CODEOWNERS patterns are matched against.
"""

import logging
import os
import subprocess
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from canopus.exceptions import PathWalkingError

VCS_DIRECTORIES = {".git", ".hg", ".svn"}


class PathWalker(Protocol):
    def walk(self) -> set[str]: ...


def is_git_work_tree(path: Path) -> bool:
    cmd = ["git", "rev-parse", "--is-inside-work-tree"]
    try:
        result = subprocess.run(cmd, cwd=path, capture_output=True, check=False)
    except FileNotFoundError:
        # no git binary available
        return False
    return result.returncode == 0


def ls_files(path: Path) -> set[str]:
    cmd = ["git", "ls-files", "--cached", "--others", "--exclude-standard", "-z"]
    result = subprocess.run(cmd, cwd=path, capture_output=True, text=True, check=False)
    if result.returncode != 0:
        raise PathWalkingError(f"git ls-files failed: {result.stderr}")
    return {entry for entry in result.stdout.split("\0") if entry}


def walk_filesystem(path: Path) -> set[str]:
    paths = set()
    for current, dirs, files in os.walk(path):
        dirs[:] = [d for d in dirs if d not in VCS_DIRECTORIES]
        relative = Path(current).relative_to(path)
        for name in files:
            paths.add((relative / name).as_posix())
    return paths


class GitAwarePathWalker:
    """Lists project files, honoring .gitignore when the root is a git work tree."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def walk(self) -> set[str]:
        if is_git_work_tree(self.root):
            paths = ls_files(self.root)
        else:
            logging.info(f"{self.root} is not a git work tree, walking filesystem")
            paths = walk_filesystem(self.root)
        logging.debug(f"found {len(paths)} project paths")
        return paths


class StaticPathWalker:
    def __init__(self, paths: Iterable[str]) -> None:
        self.paths = set(paths)

    def walk(self) -> set[str]:
        return set(self.paths)
