"""Write signed, uncompressed APK archives.

An APK is a ZIP archive with three extra entries::

    META-INF/MANIFEST.MF   SHA1 digest of every entry
    META-INF/CERT.SF       digest of the manifest and of each manifest section
    META-INF/CERT.RSA      signature block over CERT.SF

Entries are stored uncompressed, with padding in the local header's extra
field so that Android can map their contents directly.

The signature block is produced by the ``sign`` callable given to
:class:`ApkWriter`. It receives the CERT.SF bytes and returns the bytes
stored as META-INF/CERT.RSA.
"""

from __future__ import annotations

import base64
import hashlib
import zipfile
from typing import BinaryIO, Callable

MANIFEST_HEADER = "Manifest-Version: 1.0\nCreated-By: 1.0 (Go)\n\n"
MANIFEST_DEX_HEADER = (
    "Manifest-Version: 1.0\nDex-Location: classes.dex\nCreated-By: 1.0 (Go)\n\n"
)
CERT_HEADER = "Signature-Version: 1.0\nCreated-By: 1.0 (Go)\n"

_FILE_HEADER_LEN = 30  # fixed part of a ZIP local file header


class ApkError(Exception):
    """Raised when an APK archive cannot be written."""


class _CountingStream:
    """Pass writes through to a stream while counting the bytes written."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self.offset = 0

    def write(self, data) -> int:
        written = self._stream.write(data)
        count = len(data) if written is None else written
        self.offset += count
        return count

    def tell(self) -> int:
        return self.offset

    def flush(self) -> None:
        flush = getattr(self._stream, "flush", None)
        if flush is not None:
            flush()


class _FileWriter:
    """Writable handle for one archive entry that tracks its SHA1 digest."""

    def __init__(self, name: str, dst) -> None:
        self.name = name
        self._dst = dst
        self.sha1 = hashlib.sha1()
        self.closed = False

    def write(self, data) -> int:
        if self.closed:
            raise ApkError(f'apk: write to closed file "{self.name}"')
        self.sha1.update(data)
        try:
            return self._dst.write(data)
        except (OSError, ValueError) as err:
            raise ApkError(f"apk: {err}") from err

    def _finish(self) -> None:
        self.closed = True
        self._dst.close()


def _b64(digest: bytes) -> str:
    return base64.b64encode(digest).decode("ascii")


class ApkWriter:
    """Write an APK archive to a binary stream and sign it on close.

    Each entry's contents must be written to the handle returned by
    :meth:`create` before the next call to :meth:`create` or :meth:`close`.
    The underlying stream is not closed.
    """

    def __init__(self, stream: BinaryIO, sign: Callable[[bytes], bytes]) -> None:
        self._out = _CountingStream(stream)
        self._zip = zipfile.ZipFile(self._out, mode="w", compression=zipfile.ZIP_STORED)
        self._sign = sign
        self._entries: list[tuple[str, "hashlib._Hash"]] = []
        self._current: _FileWriter | None = None
        self._closed = False

    def create(self, name: str) -> _FileWriter:
        """Add an entry called ``name`` and return a handle to write its contents."""
        try:
            self._clear_current()
            return self._create(name)
        except (OSError, ValueError, RuntimeError) as err:
            raise ApkError(f"apk: Create({name}): {err}") from err

    def _create(self, name: str) -> _FileWriter:
        if self._closed:
            raise ValueError("writer is closed")
        start = self._out.offset + _FILE_HEADER_LEN + len(name.encode("utf-8"))
        info = zipfile.ZipInfo(name)
        info.compress_type = zipfile.ZIP_STORED
        info.extra = bytes(start % 4)
        handle = self._zip.open(info, mode="w")
        self._current = _FileWriter(name, handle)
        return self._current

    def _clear_current(self) -> None:
        if self._current is None:
            return
        self._entries.append((self._current.name, self._current.sha1))
        self._current._finish()
        self._current = None

    def close(self) -> None:
        """Write the manifest, the signature files and the ZIP central directory."""
        if self._closed:
            raise ApkError("apk: writer is closed")
        try:
            self._clear_current()
        except (OSError, ValueError) as err:
            raise ApkError(f"apk: {err}") from err

        has_dex = any(name == "classes.dex" for name, _ in self._entries)
        manifest = [MANIFEST_DEX_HEADER if has_dex else MANIFEST_HEADER]
        cert_body = []
        for name, digest in self._entries:
            entry_hash = _b64(digest.digest())
            manifest.append(f"Name: {name}\nSHA1-Digest: {entry_hash}\n\n")
            section = f"Name: {name}\r\nSHA1-Digest: {entry_hash}\r\n\r\n"
            section_hash = _b64(hashlib.sha1(section.encode("utf-8")).digest())
            cert_body.append(f"Name: {name}\nSHA1-Digest: {section_hash}\n\n")

        manifest_bytes = "".join(manifest).encode("utf-8")
        manifest_hash = _b64(hashlib.sha1(manifest_bytes).digest())
        cert_bytes = (
            CERT_HEADER
            + f"SHA1-Digest-Manifest: {manifest_hash}\n\n"
            + "".join(cert_body)
        ).encode("utf-8")

        self.create("META-INF/MANIFEST.MF").write(manifest_bytes)
        self.create("META-INF/CERT.SF").write(cert_bytes)

        try:
            signature = self._sign(cert_bytes)
        except Exception as err:
            raise ApkError(f"apk: {err}") from err
        self.create("META-INF/CERT.RSA").write(signature)

        try:
            self._clear_current()
            self._zip.close()
        except (OSError, ValueError) as err:
            raise ApkError(f"apk: {err}") from err
        self._closed = True

    def __enter__(self) -> "ApkWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None and not self._closed:
            self.close()