"""Target platform checks and Android SDK lookup."""

from __future__ import annotations

import os


class AndroidSDKError(RuntimeError):
    """Raised when no Android SDK installation can be found."""


def android_build_tools_path() -> str:
    """Return the Android SDK ``build-tools`` directory, with its version subdirectory if any.

    This relies on ``ANDROID_HOME``; call :func:`require_android_sdk` first.
    """
    directory = os.path.join(os.environ.get("ANDROID_HOME", ""), "build-tools")
    try:
        entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
    except OSError:
        return directory

    child = ""
    for entry in entries:
        if entry.name == "zipalign":  # no version subdirectory
            return directory
        if not child and entry.is_dir():
            child = entry.name

    if not child:
        return directory
    return os.path.join(directory, child)


def is_android(os_name: str) -> bool:
    """Return True if ``os_name`` is one of the Android targets."""
    return os_name.startswith("android")


def is_ios(os_name: str) -> bool:
    """Return True if ``os_name`` is one of the iOS targets."""
    return os_name.startswith("ios")


def is_mobile(os_name: str) -> bool:
    """Return True if ``os_name`` is a mobile target."""
    return is_ios(os_name) or is_android(os_name)


def require_android_sdk() -> None:
    """Raise :class:`AndroidSDKError` unless ``ANDROID_HOME`` is set."""
    if not os.environ.get("ANDROID_HOME"):
        raise AndroidSDKError("could not find android tools, missing ANDROID_HOME")