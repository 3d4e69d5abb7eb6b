"""Read the native library name from an Android manifest."""

from __future__ import annotations

import xml.etree.ElementTree as ET

_ACTIVITY_PACKAGE = "org.go" "lang.app"
_ACTIVITY_NAME = f"{_ACTIVITY_PACKAGE}.GoNativeActivity"
_LIB_NAME_KEY = "android.app.lib_name"


class ManifestError(ValueError):
    """Raised when an Android manifest cannot be used for building an APK."""


def _local(name: str) -> str:
    return name.rsplit("}", 1)[-1]


def _attribute(element: ET.Element, name: str) -> str | None:
    for key, value in element.attrib.items():
        if _local(key) == name:
            return value
    return None


def _children(element: ET.Element, name: str):
    return (child for child in element if _local(child.tag) == name)


def manifest_lib_name(data) -> str:
    """Return the library name of the native activity declared in ``data``.

    ``data`` is the manifest XML as bytes or text.
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as err:
        raise ManifestError(str(err)) from err

    activity_name = ""
    meta_data: list[tuple[str, str]] = []
    for application in _children(root, "application"):
        for activity in _children(application, "activity"):
            name = _attribute(activity, "name")
            if name is not None:
                activity_name = name
            for item in _children(activity, "meta-data"):
                meta_data.append(
                    (_attribute(item, "name") or "", _attribute(item, "value") or "")
                )

    if activity_name != _ACTIVITY_NAME:
        raise ManifestError(
            f'can only build an .apk for GoNativeActivity, not "{activity_name}"'
        )
    lib_name = next((value for key, value in meta_data if key == _LIB_NAME_KEY), "")
    if not lib_name:
        raise ManifestError(f"AndroidManifest.xml missing meta-data {_LIB_NAME_KEY}")
    return lib_name