"""Small file-system helpers."""

from __future__ import annotations

import logging
import os
import shutil

_log = logging.getLogger(__name__)


def exists(path) -> bool:
    """Return True unless ``path`` is known not to exist."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    except OSError:
        return True
    return True


def copy_file(source, target) -> None:
    """Copy the content of a regular file into ``target``."""
    _copy_file_mode(source, target, 0o644)


def copy_exe_file(source, target) -> None:
    """Copy the content of an executable file into ``target``."""
    _copy_file_mode(source, target, 0o755)


def ensure_sub_dir(parent, name) -> str:
    """Make sure directory ``name`` exists inside ``parent`` and return its path."""
    path = os.path.join(parent, name)
    if not exists(path):
        try:
            os.mkdir(path, 0o777)
        except OSError as err:
            _log.error("Failed to create directory: %s", err)
    return path


def ensure_abs_path(path) -> str:
    """Return ``path`` made absolute if it is not already."""
    if os.path.isabs(path):
        return path
    try:
        return os.path.abspath(path)
    except OSError as err:
        _log.error("Failed to find absolute path: %s", err)
        return path


def make_path_relative_to(root, path) -> str:
    """Join ``root`` with a relative ``path`` when the result exists."""
    if os.path.isabs(path):
        return path
    joined = os.path.join(root, path)
    if not exists(joined):
        return path
    return joined


def _copy_file_mode(source, target, mode: int) -> None:
    os.stat(source)
    with open(source, "rb") as src:
        fd = os.open(target, os.O_RDWR | os.O_CREAT | os.O_TRUNC, mode)
        with os.fdopen(fd, "wb") as dst:
            shutil.copyfileobj(src, dst)