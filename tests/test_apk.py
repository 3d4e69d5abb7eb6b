import base64
import hashlib
import io
import zipfile

import pytest

from fynetools.apk import ApkError, ApkWriter


def _signer(log):
    def sign(data):
        log.append(data)
        return b"SIGNED:" + hashlib.sha1(data).digest()

    return sign


def _build(files):
    out = io.BytesIO()
    signed = []
    writer = ApkWriter(out, _signer(signed))
    for name, data in files:
        handle = writer.create(name)
        handle.write(data)
    writer.close()
    return out.getvalue(), signed


def _digest(data):
    return base64.b64encode(hashlib.sha1(data).digest()).decode()


def test_entries_and_contents_round_trip():
    files = [("lib/arm64-v8a/libapp.so", b"native"), ("AndroidManifest.xml", b"<x/>")]
    raw, _ = _build(files)
    with zipfile.ZipFile(io.BytesIO(raw)) as archive:
        assert archive.namelist() == [
            "lib/arm64-v8a/libapp.so",
            "AndroidManifest.xml",
            "META-INF/MANIFEST.MF",
            "META-INF/CERT.SF",
            "META-INF/CERT.RSA",
        ]
        assert archive.read("lib/arm64-v8a/libapp.so") == b"native"
        assert archive.read("AndroidManifest.xml") == b"<x/>"
        assert all(i.compress_type == zipfile.ZIP_STORED for i in archive.infolist())


def test_manifest_lists_entry_digests():
    raw, _ = _build([("a.txt", b"hello")])
    with zipfile.ZipFile(io.BytesIO(raw)) as archive:
        manifest = archive.read("META-INF/MANIFEST.MF").decode()
    assert manifest.startswith("Manifest-Version: 1.0\nCreated-By: 1.0 (Go)\n\n")
    assert f"Name: a.txt\nSHA1-Digest: {_digest(b'hello')}\n\n" in manifest


def test_dex_header_when_classes_dex_present():
    raw, _ = _build([("classes.dex", b"dex")])
    with zipfile.ZipFile(io.BytesIO(raw)) as archive:
        manifest = archive.read("META-INF/MANIFEST.MF").decode()
    assert manifest.startswith(
        "Manifest-Version: 1.0\nDex-Location: classes.dex\nCreated-By: 1.0 (Go)\n\n"
    )


def test_cert_digests_manifest_and_is_signed():
    raw, signed = _build([("a.txt", b"hello")])
    with zipfile.ZipFile(io.BytesIO(raw)) as archive:
        manifest = archive.read("META-INF/MANIFEST.MF")
        cert = archive.read("META-INF/CERT.SF")
        rsa = archive.read("META-INF/CERT.RSA")
    assert cert.startswith(b"Signature-Version: 1.0\nCreated-By: 1.0 (Go)\n")
    assert f"SHA1-Digest-Manifest: {_digest(manifest)}\n\n".encode() in cert
    assert signed == [cert]
    assert rsa == b"SIGNED:" + hashlib.sha1(cert).digest()


def test_cert_section_digest_uses_crlf_section():
    raw, _ = _build([("a.txt", b"hello")])
    with zipfile.ZipFile(io.BytesIO(raw)) as archive:
        cert = archive.read("META-INF/CERT.SF").decode()
    section = f"Name: a.txt\r\nSHA1-Digest: {_digest(b'hello')}\r\n\r\n".encode()
    assert f"Name: a.txt\nSHA1-Digest: {_digest(section)}\n\n" in cert


def test_write_to_closed_entry_raises():
    writer = ApkWriter(io.BytesIO(), _signer([]))
    first = writer.create("one")
    writer.create("two")
    with pytest.raises(ApkError, match='write to closed file "one"'):
        first.write(b"late")


def test_signer_failure_is_wrapped():
    def sign(data):
        raise RuntimeError("no key")

    writer = ApkWriter(io.BytesIO(), sign)
    writer.create("a").write(b"x")
    with pytest.raises(ApkError, match="apk: no key"):
        writer.close()


def test_create_after_close_raises():
    writer = ApkWriter(io.BytesIO(), _signer([]))
    writer.close()
    with pytest.raises(ApkError, match=r"Create\(late\)"):
        writer.create("late")


def test_context_manager_closes_archive():
    out = io.BytesIO()
    with ApkWriter(out, _signer([])) as writer:
        writer.create("data.bin").write(b"\x00\x01")
    with zipfile.ZipFile(io.BytesIO(out.getvalue())) as archive:
        assert archive.read("data.bin") == b"\x00\x01"
        assert "META-INF/CERT.RSA" in archive.namelist()


def test_underlying_stream_left_open():
    out = io.BytesIO()
    _ = ApkWriter(out, _signer([]))
    with ApkWriter(out, _signer([])) as writer:
        writer.create("x").write(b"y")
    assert out.closed is False