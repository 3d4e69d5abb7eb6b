"""Run commands inside the environment that the user's login shell sets up."""

from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path

_UNIX_PLATFORMS = ("linux", "freebsd", "netbsd", "openbsd", "dragonfly")


@dataclass
class ShellCommand:
    """A prepared command line, with the environment it should run in.

    An ``env`` of ``None`` means the command inherits the current environment.
    """

    argv: list[str]
    env: dict[str, str] | None = field(default=None)

    def run(self, **kwargs) -> subprocess.CompletedProcess:
        """Run the command; keyword arguments go to :func:`subprocess.run`."""
        options = {"env": self.env, **kwargs}
        return subprocess.run(self.argv, **options)


def command_in_shell(cmd: str, *args: str) -> ShellCommand:
    """Prepare ``cmd`` with ``args`` to run in the user's shell environment.

    On macOS the executable is first looked up through the user's shell,
    since applications there do not inherit the shell's ``PATH``.
    """
    path = cmd
    if sys.platform == "darwin":
        try:
            result = _run_in_shell("which", [path]).run(capture_output=True, check=True)
        except (OSError, subprocess.CalledProcessError):
            pass
        else:
            # the shell may print a header, so only the last line counts
            lines = result.stdout.decode(errors="replace").split("\n")
            path = lines[-1]
            if path == "" and len(lines) > 1:
                path = lines[-2]
    return _run_in_shell(path, list(args))


def _run_in_shell(cmd: str, args: list[str]) -> ShellCommand:
    env = None
    if sys.platform == "darwin":
        args = quote_args(args)
        env = _shell_environment(darwin_shell())
    elif sys.platform.startswith(_UNIX_PLATFORMS):
        args = quote_args(args)
        env = _shell_environment(unix_shell())
    return ShellCommand([cmd, *args], env)


def _shell_environment(shell: str) -> dict[str, str] | None:
    try:
        result = subprocess.run(
            [shell, "-i", "-c", "env"],
            capture_output=True,
            stdin=subprocess.DEVNULL,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    env: dict[str, str] = {}
    for line in result.stdout.decode(errors="replace").split("\n"):
        key, sep, value = line.partition("=")
        if sep and key:
            env[key] = value
    return env


def quote_args(args) -> list[str]:
    """Quote every argument that contains a space."""
    return [quote_string(arg) if " " in arg else arg for arg in args]


def quote_string(s: str) -> str:
    """Wrap ``s`` in double quotes, escaping the double quotes inside it."""
    return '"' + s.replace('"', '\\"') + '"'


def darwin_shell() -> str:
    """Return the login shell of the current macOS user, or ``zsh``."""
    try:
        home = str(Path.home())
    except RuntimeError:
        return "zsh"
    try:
        result = subprocess.run(
            ["dscl", ".", "-read", home, "UserShell"],
            capture_output=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return "zsh"
    items = result.stdout.decode(errors="replace").split(":")
    if len(items) < 2:
        return "zsh"
    return items[1].strip()


def unix_shell() -> str:
    """Return the shell named by ``$SHELL``, or ``/bin/sh``."""
    import os

    return os.environ.get("SHELL") or "/bin/sh"