"""Cross-compilation environment for mobile builds and the helpers that run its commands."""

from __future__ import annotations

import logging
import os
import platform
import re
import shutil
import stat
import subprocess
import sys
import tempfile
from dataclasses import dataclass, field
from typing import Callable, Iterable, TextIO

from .files import exists
from .platforms import is_ios

_log = logging.getLogger(__name__)


class ToolchainError(RuntimeError):
    """Raised when the build toolchain is missing or a build command fails."""


def _host_goos() -> str:
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "darwin"
    if sys.platform.startswith("linux"):
        return "linux"
    return sys.platform.rstrip("0123456789")


def _host_goarch() -> str:
    machine = platform.machine().lower()
    if machine in ("x86_64", "amd64"):
        return "amd64"
    if machine in ("arm64", "aarch64"):
        return "arm64"
    if machine in ("i386", "i686", "x86"):
        return "386"
    return machine


@dataclass
class BuildSettings:
    """Options that control how build commands are run and printed."""

    dry_run: bool = False
    print_commands: bool = False
    verbose: bool = False
    keep_work: bool = False
    target: str = "android"
    android_api: int = 15
    min_android_api: int = 15
    ios_version: str = "13.0"
    work_dir: str = ""
    output: TextIO = field(default_factory=lambda: sys.stderr)


def _print_cmd(settings: BuildSettings, line: str) -> None:
    settings.output.write(line + "\n")


@dataclass(frozen=True)
class NdkToolchain:
    """Names of the Android NDK tools for one target architecture."""

    arch: str
    abi: str
    min_api: int
    tool_prefix: str
    clang_triple: str

    def clang_prefix(self, api: int) -> str:
        """Return the clang tool prefix for ``api``, raised to the minimum API level."""
        return f"{self.clang_triple}{max(api, self.min_api)}"

    def path(self, ndk_root: str, tool_name: str, android_api: int) -> str:
        """Return the path of ``tool_name`` inside the NDK, or ``""`` if none is found."""
        windows = _host_goos() == "windows"
        for api in range(android_api, 99):
            if tool_name in ("clang", "clang++"):
                prefix = self.clang_prefix(api)
            elif tool_name == "nm":
                prefix = "llvm"
            else:
                prefix = self.tool_prefix
            tool_path = os.path.join(
                ndk_root,
                "toolchains",
                "llvm",
                "prebuilt",
                arch_ndk(_host_goos(), _host_goarch()),
                "bin",
                f"{prefix}-{tool_name}",
            )
            if exists(tool_path):
                return tool_path
            # some NDK executables on Windows carry an .exe extension
            if windows and exists(tool_path + ".exe"):
                return tool_path + ".exe"
        return ""


NDK: dict[str, NdkToolchain] = {
    "arm": NdkToolchain("arm", "armeabi-v7a", 16, "arm-linux-androideabi", "armv7a-linux-androideabi"),
    "arm64": NdkToolchain("arm64", "arm64-v8a", 21, "aarch64-linux-android", "aarch64-linux-android"),
    "386": NdkToolchain("x86", "x86", 16, "i686-linux-android", "i686-linux-android"),
    "amd64": NdkToolchain("x86_64", "x86_64", 21, "x86_64-linux-android", "x86_64-linux-android"),
}


def ndk_toolchain(arch: str) -> NdkToolchain:
    """Return the NDK toolchain for a Go architecture name."""
    try:
        return NDK[arch]
    except KeyError:
        raise ValueError(f"unsupported architecture: {arch}") from None


def parse_go_version(output: str) -> str | None:
    """Extract the version number from the output of ``go version``."""
    fields = output.split(" ")
    if len(fields) < 3:
        return None
    version = fields[2].removeprefix("go")
    # development builds carry the version in the fourth field
    if version == "devel" and len(fields) >= 4:
        version = fields[3].split("-")[0].removeprefix("go")
    return version


_SEMVER = re.compile(
    r"^v(0|[1-9]\d*)(?:\.(0|[1-9]\d*)(?:\.(0|[1-9]\d*)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?)?)?$"
)


def _before(version: str, major: int, minor: int) -> bool:
    """True if ``version`` sorts before vMAJOR.MINOR.0; invalid versions always do."""
    match = _SEMVER.match("v" + version)
    if match is None:
        return True
    key = tuple(int(part or 0) for part in match.group(1, 2, 3))
    if key != (major, minor, 0):
        return key < (major, minor, 0)
    return match.group(4) is not None


def arch_clang(goarch: str) -> str:
    """Return the clang ``-arch`` name for a Go architecture."""
    names = {"arm": "armv7", "arm64": "arm64", "386": "i386", "amd64": "x86_64"}
    try:
        return names[goarch]
    except KeyError:
        raise ValueError(f'unknown GOARCH: "{goarch}"') from None


def arch_ndk(goos: str, goarch: str) -> str:
    """Return the NDK prebuilt host directory name for a host OS and architecture."""
    if goos == "windows" and goarch == "386":
        return "windows"
    if goarch == "386":
        arch = "x86"
    elif goarch == "amd64":
        arch = "x86_64"
    elif goarch == "arm64" and goos == "darwin":
        arch = "x86_64"
    elif goarch == "arm64" and goos == "android":  # termux
        return "linux-aarch64"
    else:
        raise ToolchainError(f"unsupported GOARCH: {goarch}")
    return f"{goos}-{arch}"


def environ(kv: Iterable[str], base: Iterable[str] | None = None, goos: str | None = None) -> list[str]:
    """Merge ``base`` (the process environment by default) with ``key=value`` pairs.

    Keys in ``kv`` take precedence. On Windows keys are compared upper-cased.
    """
    if base is None:
        base = [f"{key}={value}" for key, value in os.environ.items()]
    if goos is None:
        goos = _host_goos()
    merged: list[str] = []
    envs: dict[str, str] = {}
    for entry in base:
        key, sep, value = entry.partition("=")
        if not sep or not key:
            # pass entries of unusual form through untouched
            merged.append(entry)
            continue
        envs[key.upper() if goos == "windows" else key] = value
    for entry in kv:
        key, sep, value = entry.partition("=")
        if not sep or not key:
            raise ValueError(f'malformed env var "{entry}" from input')
        envs[key.upper() if goos == "windows" else key] = value
    merged.extend(f"{key}={value}" for key, value in envs.items())
    return merged


def ndk_root(settings: BuildSettings) -> str:
    """Locate the Android NDK from ``ANDROID_NDK_HOME`` or ``ANDROID_HOME``."""
    if settings.dry_run:
        return "$NDK_PATH"
    root = os.environ.get("ANDROID_NDK_HOME", "")
    if root and os.path.exists(root):
        return root
    android_home = os.environ.get("ANDROID_HOME", "")
    if android_home:
        root = os.path.join(android_home, "ndk-bundle")
        if os.path.exists(root):
            return root
    raise ToolchainError(
        "no Android NDK found in $ANDROID_HOME/ndk-bundle nor in $ANDROID_NDK_HOME"
    )


def _xcrun(args: list[str], label: str) -> str:
    try:
        result = subprocess.run(
            ["xcrun", *args], stdout=subprocess.PIPE, stderr=subprocess.STDOUT
        )
    except OSError as err:
        raise ToolchainError(f"xcrun {label}: {err}\n") from err
    out = result.stdout.decode(errors="replace")
    if result.returncode != 0:
        raise ToolchainError(f"xcrun {label}: exit status {result.returncode}\n{out}")
    return out.strip()


def env_clang(sdk_name: str, settings: BuildSettings) -> tuple[str, str]:
    """Return the clang path and base C flags for an Xcode SDK."""
    if settings.dry_run:
        return f"{sdk_name}-clang", f"-isysroot={sdk_name}"
    clang = _xcrun(["--sdk", sdk_name, "--find", "clang"], "--find")
    sdk = _xcrun(["--sdk", sdk_name, "--show-sdk-path"], "--show-sdk-path")
    return clang, f"-isysroot {sdk}"


def xcode_available() -> bool:
    """Return True if Xcode's command line tools can be run."""
    try:
        result = subprocess.run(
            ["xcrun", "xcodebuild", "-version"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError:
        return False
    return result.returncode == 0


def go_env(name: str) -> str:
    """Return a Go environment value, from the process environment or ``go env``."""
    value = os.environ.get(name, "")
    if value:
        return value
    try:
        result = subprocess.run(["go", "env", name], capture_output=True, check=True)
    except (OSError, subprocess.CalledProcessError) as err:
        raise ToolchainError(f"go env {name}: {err}") from err
    return result.stdout.decode(errors="replace").strip()


def mkdir(path: str, settings: BuildSettings) -> None:
    """Create ``path`` and its parents, or only print the command on a dry run."""
    if settings.print_commands or settings.dry_run:
        _print_cmd(settings, f"mkdir -p {path}")
    if settings.dry_run:
        return
    os.makedirs(path, 0o750, exist_ok=True)


def _reset_read_only(path: str) -> None:
    info = os.stat(path)
    if not stat.S_ISDIR(info.st_mode):
        os.chmod(path, 0o600)
        return
    for name in os.listdir(path):
        _reset_read_only(os.path.join(path, name))


def remove_all(path: str, settings: BuildSettings) -> None:
    """Remove ``path`` and everything below it; a missing path is not an error."""
    if settings.print_commands or settings.dry_run:
        _print_cmd(settings, f'rm -r -f "{path}"')
    if settings.dry_run:
        return
    if _host_goos() == "windows":
        _reset_read_only(path)
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    elif os.path.lexists(path):
        os.remove(path)


def run_cmd(
    argv: list[str],
    settings: BuildSettings,
    cwd: str | None = None,
    env: list[str] | None = None,
) -> None:
    """Run a build command, printing it first when asked to.

    ``env`` holds extra ``key=value`` entries laid over the process environment.
    """
    env = list(env or [])
    if settings.print_commands or settings.dry_run:
        prefix = f"PWD={cwd} " if cwd else ""
        env_text = " ".join(env)
        if env_text:
            env_text += " "
        _print_cmd(settings, f"{prefix}{env_text}{' '.join(argv)}")

    if settings.keep_work:
        if _host_goos() == "windows":
            env += [f"TEMP={settings.work_dir}", f"TMP={settings.work_dir}"]
        else:
            env.append(f"TMPDIR={settings.work_dir}")

    if settings.dry_run:
        return

    merged: dict[str, str] = {}
    for entry in environ(env):
        key, sep, value = entry.partition("=")
        if sep and key:
            merged[key] = value

    capture = not settings.verbose
    try:
        result = subprocess.run(
            argv,
            cwd=cwd or None,
            env=merged,
            stdout=subprocess.PIPE if capture else None,
            stderr=subprocess.STDOUT if capture else None,
        )
    except OSError as err:
        raise ToolchainError(f"{' '.join(argv)} failed: {err}\n") from err
    if result.returncode != 0:
        output = result.stdout.decode(errors="replace") if capture else ""
        raise ToolchainError(
            f"{' '.join(argv)} failed: exit status {result.returncode}\n{output}"
        )


def _default_archs() -> dict[str, list[str]]:
    return {
        "android": ["arm", "arm64", "386", "amd64"],
        "ios": ["arm64"],
        "iossimulator": ["arm64", "amd64"],
    }


@dataclass
class BuildEnvironment:
    """The cross-compiler environments for a mobile build."""

    settings: BuildSettings = field(default_factory=BuildSettings)
    gomobile_path: str = ""
    android_env: dict[str, list[str]] = field(default_factory=dict)
    darwin_env: dict[str, list[str]] = field(default_factory=dict)
    darwin_arm_nm: str = ""
    all_archs: dict[str, list[str]] = field(default_factory=_default_archs)
    bitcode_enabled: bool = False
    before115: bool = False
    before116: bool = False

    def init_build(self) -> Callable[[], None]:
        """Find the toolchain, pick a work directory and set up the environments.

        Returns a function that cleans up the work directory.
        """
        settings = self.settings
        gopath = go_env("GOPATH")
        for entry in gopath.split(os.pathsep) if gopath else []:
            self.gomobile_path = os.path.join(entry, "pkg", "gomobile")
            if settings.dry_run or os.path.exists(self.gomobile_path):
                break

        if settings.print_commands:
            settings.output.write(f"GOMOBILE={self.gomobile_path}\n")

        if not self.gomobile_path:
            raise ToolchainError("toolchain not installed, run `gomobile init`")

        def cleanup() -> None:
            if settings.keep_work:
                print(f"WORK={settings.work_dir}")
                return
            try:
                remove_all(settings.work_dir, settings)
            except OSError as err:
                _log.error("Failed to remove all in cleanup function: %s", err)

        if settings.dry_run:
            settings.work_dir = "$WORK"

            def cleanup() -> None:
                return None

        else:
            settings.work_dir = tempfile.mkdtemp(prefix="fyne-work-")
        if settings.print_commands:
            settings.output.write(f"WORK={settings.work_dir}\n")

        self.init_env()
        return cleanup

    def _detect_go_version(self) -> None:
        try:
            result = subprocess.run(["go", "version"], capture_output=True, check=True)
        except (OSError, subprocess.CalledProcessError):
            return
        output = result.stdout.decode(errors="replace")
        if not output:
            return
        version = parse_go_version(output)
        if version is None:
            return
        self.before115 = _before(version, 1, 15)
        self.before116 = _before(version, 1, 16)

    def init_env(self) -> None:
        """Set up the Android and iOS cross-compiler environments."""
        settings = self.settings
        self._detect_go_version()
        if self.before115:
            self.all_archs["ios"] = ["arm64", "amd64", "arm"]

        try:
            root = ndk_root(settings)
        except ToolchainError:
            root = None
        if root is not None:
            self.android_env = {}
            if settings.android_api < settings.min_android_api:
                raise ToolchainError(
                    f"gomobile requires Android API level >= {settings.min_android_api}"
                )
            for arch, toolchain in NDK.items():
                clang = toolchain.path(root, "clang", settings.android_api)
                clangpp = toolchain.path(root, "clang++", settings.android_api)
                if not settings.dry_run:
                    tools = [clang, clangpp]
                    if _host_goos() == "windows":
                        tools.append(clangpp + ".cmd")
                    for tool in tools:
                        if not tool or not os.path.exists(tool):
                            raise ToolchainError(
                                f"no compiler for {arch} was found in the NDK (tried {tool}). "
                                "Make sure your NDK version is >= r19c. "
                                "Use `sdkmanager --update` to update it"
                            )
                env = [
                    "GOOS=android",
                    f"GOARCH={arch}",
                    f"CC={clang}",
                    f"CXX={clangpp}",
                    "CGO_ENABLED=1",
                ]
                if arch == "arm":
                    env.append("GOARM=7")
                self.android_env[arch] = env

        if not is_ios(settings.target) or not xcode_available():
            return

        self.darwin_arm_nm = "nm"
        self.darwin_env = {}
        for arch in self.all_archs.get(settings.target, []):
            env: list[str] = []
            if arch in ("arm", "arm64"):
                if arch == "arm":
                    env.append("GOARM=7")
                if settings.target == "ios":
                    clang, cflags = env_clang("iphoneos", settings)
                    cflags += f" -miphoneos-version-min={settings.ios_version}"
                else:
                    clang, cflags = env_clang("iphonesimulator", settings)
                    cflags += f" -mios-simulator-version-min={settings.ios_version}"
            elif arch in ("386", "amd64"):
                clang, cflags = env_clang("iphonesimulator", settings)
                cflags += f" -mios-simulator-version-min={settings.ios_version}"
            else:
                raise ValueError(f'unknown GOARCH: "{arch}"')

            if self.bitcode_enabled:
                cflags += " -fembed-bitcode"

            target_os = "darwin" if self.before116 else "ios"
            flags = f"{cflags} -arch {arch_clang(arch)}"
            env += [
                f"GOOS={target_os}",
                f"GOARCH={arch}",
                f"CC={clang}",
                f"CXX={clang}++",
                f"CGO_CFLAGS={flags}",
                f"CGO_CXXFLAGS={flags}",
                f"CGO_LDFLAGS={flags}",
                "CGO_ENABLED=1",
            ]
            self.darwin_env[arch] = env