[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fynetools"
version = "0.1.0"
description = "Helpers for building and packaging Fyne applications: shell environments, mobile toolchains and APK writing."
requires-python = ">=3.10"
dependencies = []
keywords = ["fyne", "build", "android", "ios", "apk", "toolchain", "ndk"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["fynetools"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
