import subprocess
import sys

from fynetools.shell import (
    ShellCommand,
    command_in_shell,
    quote_args,
    quote_string,
    unix_shell,
)


def test_quote_args():
    assert quote_args(["a", "b c"]) == ["a", '"b c"']


def test_quote_string():
    assert quote_string("cat") == '"cat"'
    assert quote_string("my-file.txt") == '"my-file.txt"'
    assert quote_string('"quoted".svg') == '"\\"quoted\\".svg"'


def test_quote_args_empty():
    assert quote_args([]) == []


def test_unix_shell_from_environment(monkeypatch):
    monkeypatch.setenv("SHELL", "/usr/bin/fish")
    assert unix_shell() == "/usr/bin/fish"


def test_unix_shell_default_when_unset(monkeypatch):
    monkeypatch.delenv("SHELL", raising=False)
    assert unix_shell() == "/bin/sh"


def test_unix_shell_default_when_empty(monkeypatch):
    monkeypatch.setenv("SHELL", "")
    assert unix_shell() == "/bin/sh"


def test_command_in_shell_unknown_platform_keeps_args(monkeypatch):
    monkeypatch.setattr(sys, "platform", "win32")
    command = command_in_shell("echo", "a b", "c")
    assert command.argv == ["echo", "a b", "c"]
    assert command.env is None


def test_command_in_shell_unix_quotes_args(monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setenv("SHELL", "/nonexistent/shell/for/test")
    command = command_in_shell("echo", "a b", "c")
    assert command.argv == ["echo", '"a b"', "c"]
    assert command.env is None


def test_shell_command_run_captures_output():
    command = ShellCommand([sys.executable, "-c", "print('hi')"])
    result = command.run(capture_output=True, text=True)
    assert result.returncode == 0
    assert result.stdout.strip() == "hi"


def test_shell_command_run_uses_env():
    env = {"FYNE_TEST_VALUE": "xyz"}
    command = ShellCommand(
        [sys.executable, "-c", "import os; print(os.environ.get('FYNE_TEST_VALUE', ''))"],
        env,
    )
    result = command.run(capture_output=True, text=True)
    assert result.stdout.strip() == "xyz"


def test_shell_command_run_check_raises():
    command = ShellCommand([sys.executable, "-c", "raise SystemExit(3)"])
    try:
        command.run(check=True)
    except subprocess.CalledProcessError as err:
        assert err.returncode == 3
    else:
        raise AssertionError("expected CalledProcessError")