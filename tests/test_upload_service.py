"""
Tests for the upload ingestion pipeline (no HTTP server involved).

Requests are built directly from an ASGI scope with a multipart body encoded
by httpx, so the parsing, size limit and per-part persistence all run for real.
"""

import asyncio
import io
from pathlib import Path

import httpx
import pytest
from starlette.datastructures import UploadFile
from starlette.requests import Request

from webtoolkit.core.config import UploadConfig
from webtoolkit.core.errors import (
    FileTypeNotAllowedError,
    FormParseError,
    InvalidFileNameError,
    NoFilesAttachedError,
    SizeExceededError,
    UploadIOError,
)
from webtoolkit.core.fs import ensure_dir
from webtoolkit.services.random_token import RANDOM_STRING_SOURCE
from webtoolkit.services.upload_service import ingest_parts, upload_files, upload_one_file

PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n"
    b"\x00\x00\x00\rIHDR\x00\x00\x00\x10\x00\x00\x00\x10\x08\x06\x00\x00\x00\x1f\xf3\xffa"
    + bytes(range(256)) * 4
)
TEXT_BYTES = b"just some notes\n"


def _request(body: bytes, content_type: str, content_length: bool = True) -> Request:
    headers = [(b"content-type", content_type.encode("latin-1"))]
    if content_length:
        headers.append((b"content-length", str(len(body)).encode("latin-1")))
    scope = {"type": "http", "method": "POST", "path": "/", "query_string": b"", "headers": headers}
    sent = False

    async def receive() -> dict:
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


def _multipart_request(files: list[tuple[str, bytes]], content_length: bool = True) -> Request:
    encoded = httpx.Request(
        "POST",
        "http://testserver/",
        files=[("file", (name, data, "application/octet-stream")) for name, data in files],
    )
    body = encoded.read()
    return _request(body, encoded.headers["content-type"], content_length=content_length)


def _part(name: str, data: bytes) -> UploadFile:
    return UploadFile(file=io.BytesIO(data), filename=name)


class TestEnsureDir:
    def test_creates_and_is_idempotent(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b"
        assert ensure_dir(target) == target
        assert target.is_dir()
        ensure_dir(target)
        assert target.is_dir()

    def test_existing_file_raises(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_bytes(b"x")
        with pytest.raises(FileExistsError):
            ensure_dir(blocker)


class TestIngestParts:
    """Tests for ingest_parts()."""

    def test_rename_keeps_extension_and_size(self, tmp_path: Path) -> None:
        [f] = ingest_parts([_part("img.png", PNG_BYTES)], tmp_path)
        assert f.original_file_name == "img.png"
        assert f.new_file_name.endswith(".png")
        stem = f.new_file_name[: -len(".png")]
        assert len(stem) == 25
        assert set(stem) <= set(RANDOM_STRING_SOURCE)
        assert f.file_size == len(PNG_BYTES)
        assert (tmp_path / f.new_file_name).read_bytes() == PNG_BYTES

    def test_no_rename_uses_original_name(self, tmp_path: Path) -> None:
        [f] = ingest_parts([_part("img.png", PNG_BYTES)], tmp_path, rename=False)
        assert f.new_file_name == f.original_file_name == "img.png"
        assert (tmp_path / "img.png").read_bytes() == PNG_BYTES

    def test_client_path_is_reduced_to_basename(self, tmp_path: Path) -> None:
        [f] = ingest_parts([_part("./testdata/img.png", PNG_BYTES)], tmp_path, rename=False)
        assert f.original_file_name == "img.png"
        assert (tmp_path / "img.png").is_file()

    def test_name_without_extension(self, tmp_path: Path) -> None:
        [f] = ingest_parts([_part("README", TEXT_BYTES)], tmp_path)
        assert len(f.new_file_name) == 25

    def test_extension_case_is_kept(self, tmp_path: Path) -> None:
        [f] = ingest_parts([_part("photo.tar.PNG", PNG_BYTES)], tmp_path)
        assert f.new_file_name.endswith(".PNG")
        assert not f.new_file_name.endswith(".tar.PNG")

    def test_allowed_type_is_case_insensitive(self, tmp_path: Path) -> None:
        config = UploadConfig(allowed_file_types=("IMAGE/PNG",))
        [f] = ingest_parts([_part("img.png", PNG_BYTES)], tmp_path, config=config)
        assert f.file_size == len(PNG_BYTES)

    def test_disallowed_type_writes_nothing(self, tmp_path: Path) -> None:
        config = UploadConfig(allowed_file_types=("image/jpeg",))
        with pytest.raises(FileTypeNotAllowedError) as exc_info:
            ingest_parts([_part("img.png", PNG_BYTES)], tmp_path, config=config)
        assert exc_info.value.content_type == "image/png"
        assert exc_info.value.uploaded == []
        assert list(tmp_path.iterdir()) == []

    def test_fail_fast_reports_partial_result(self, tmp_path: Path) -> None:
        config = UploadConfig(allowed_file_types=("image/png",))
        parts = [_part("a.png", PNG_BYTES), _part("notes.txt", TEXT_BYTES), _part("b.png", PNG_BYTES)]
        with pytest.raises(FileTypeNotAllowedError) as exc_info:
            ingest_parts(parts, tmp_path, config=config)
        uploaded = exc_info.value.uploaded
        assert [f.original_file_name for f in uploaded] == ["a.png"]
        assert [p.name for p in tmp_path.iterdir()] == [uploaded[0].new_file_name]

    def test_part_streams_are_closed(self, tmp_path: Path) -> None:
        config = UploadConfig(allowed_file_types=("image/png",))
        good, bad = _part("a.png", PNG_BYTES), _part("notes.txt", TEXT_BYTES)
        with pytest.raises(FileTypeNotAllowedError):
            ingest_parts([good, bad], tmp_path, config=config)
        assert good.file.closed
        assert bad.file.closed

    def test_short_file_is_sniffed_and_fully_copied(self, tmp_path: Path) -> None:
        [f] = ingest_parts([_part("tiny.txt", b"hi")], tmp_path)
        assert f.file_size == 2
        assert (tmp_path / f.new_file_name).read_bytes() == b"hi"

    def test_empty_file(self, tmp_path: Path) -> None:
        [f] = ingest_parts([_part("empty.txt", b"")], tmp_path)
        assert f.file_size == 0

    def test_create_failure_raises_io_error_with_partial(self, tmp_path: Path) -> None:
        # "sub/" reduces to an empty name, so the destination is the directory itself
        parts = [_part("ok.txt", TEXT_BYTES), _part("sub/", TEXT_BYTES)]
        with pytest.raises(UploadIOError) as exc_info:
            ingest_parts(parts, tmp_path, rename=False)
        assert isinstance(exc_info.value.__cause__, OSError)
        assert [f.new_file_name for f in exc_info.value.uploaded] == ["ok.txt"]

    def test_nul_in_name_raises_typed_error_with_partial(self, tmp_path: Path) -> None:
        parts = [_part("ok.txt", TEXT_BYTES), _part("a\x00b.txt", TEXT_BYTES)]
        with pytest.raises(InvalidFileNameError) as exc_info:
            ingest_parts(parts, tmp_path, rename=False)
        assert exc_info.value.file_name == "a\x00b.txt"
        assert [f.new_file_name for f in exc_info.value.uploaded] == ["ok.txt"]
        assert [p.name for p in tmp_path.iterdir()] == ["ok.txt"]

    def test_nul_in_extension_when_renaming(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidFileNameError) as exc_info:
            ingest_parts([_part("photo.pn\x00g", PNG_BYTES)], tmp_path)
        assert exc_info.value.uploaded == []
        assert list(tmp_path.iterdir()) == []


class TestUploadFiles:
    """Tests for upload_files() and upload_one_file() against real multipart bodies."""

    def test_multiple_files_in_form_order(self, tmp_path: Path) -> None:
        request = _multipart_request([("one.png", PNG_BYTES), ("two.txt", TEXT_BYTES)])
        files = asyncio.run(upload_files(request, tmp_path / "uploads"))
        assert [f.original_file_name for f in files] == ["one.png", "two.txt"]
        assert [f.file_size for f in files] == [len(PNG_BYTES), len(TEXT_BYTES)]
        for f in files:
            assert (tmp_path / "uploads" / f.new_file_name).is_file()

    def test_no_rename(self, tmp_path: Path) -> None:
        request = _multipart_request([("img.png", PNG_BYTES)])
        files = asyncio.run(upload_files(request, tmp_path, rename=False))
        assert files[0].new_file_name == "img.png"

    def test_declared_length_over_limit(self, tmp_path: Path) -> None:
        request = _multipart_request([("img.png", PNG_BYTES)])
        config = UploadConfig(max_file_size=100)
        with pytest.raises(SizeExceededError) as exc_info:
            asyncio.run(upload_files(request, tmp_path, config=config))
        assert exc_info.value.uploaded == []
        assert list(tmp_path.iterdir()) == []

    def test_streamed_length_over_limit(self, tmp_path: Path) -> None:
        request = _multipart_request([("img.png", PNG_BYTES)], content_length=False)
        config = UploadConfig(max_file_size=100)
        with pytest.raises(SizeExceededError):
            asyncio.run(upload_files(request, tmp_path, config=config))
        assert list(tmp_path.iterdir()) == []

    def test_zero_max_size_means_default(self) -> None:
        assert UploadConfig(max_file_size=0).max_bytes == 1024 * 1024 * 1024

    def test_non_multipart_body(self, tmp_path: Path) -> None:
        request = _request(b'{"a": 1}', "application/json")
        with pytest.raises(FormParseError):
            asyncio.run(upload_files(request, tmp_path))

    def test_directory_is_created_before_parsing(self, tmp_path: Path) -> None:
        target = tmp_path / "new"
        request = _request(b"x", "text/plain")
        with pytest.raises(FormParseError):
            asyncio.run(upload_files(request, target))
        assert target.is_dir()

    def test_directory_failure_raises_io_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_bytes(b"x")
        request = _multipart_request([("img.png", PNG_BYTES)])
        with pytest.raises(UploadIOError) as exc_info:
            asyncio.run(upload_files(request, blocker))
        assert exc_info.value.uploaded == []

    def test_type_not_allowed(self, tmp_path: Path) -> None:
        request = _multipart_request([("one.png", PNG_BYTES), ("two.txt", TEXT_BYTES)])
        config = UploadConfig(allowed_file_types=("image/png",))
        with pytest.raises(FileTypeNotAllowedError) as exc_info:
            asyncio.run(upload_files(request, tmp_path, config=config))
        assert [f.original_file_name for f in exc_info.value.uploaded] == ["one.png"]

    def test_upload_one_file(self, tmp_path: Path) -> None:
        request = _multipart_request([("./testdata/img.png", PNG_BYTES)])
        f = asyncio.run(upload_one_file(request, tmp_path))
        assert f.original_file_name == "img.png"
        assert (tmp_path / f.new_file_name).read_bytes() == PNG_BYTES

    def test_upload_one_file_without_files(self, tmp_path: Path) -> None:
        body = (
            b"--BOUNDARY\r\n"
            b'Content-Disposition: form-data; name="note"\r\n\r\n'
            b"hello\r\n"
            b"--BOUNDARY--\r\n"
        )
        request = _request(body, "multipart/form-data; boundary=BOUNDARY")
        with pytest.raises(NoFilesAttachedError):
            asyncio.run(upload_one_file(request, tmp_path))
