"""Helpers for building and packaging Fyne applications: shell environments, file and
platform utilities, Android manifests, APK writing and mobile toolchains."""

__version__ = "0.1.0"

__all__ = ["apk", "files", "manifest", "platforms", "quoted", "shell", "toolchain"]