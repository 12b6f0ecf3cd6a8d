"""Unit tests for pingqueue.storage — scanner and codec."""
from __future__ import annotations

from pathlib import Path

import pytest

from conftest import PING_NAME
from pingqueue.schema.errors import CorruptPingError, PingStorageError
from pingqueue.storage.codec import (
    PingPayload,
    decode_ping_file,
    encode_ping_file,
    read_ping_file,
    write_ping_file,
)
from pingqueue.storage.scanner import (
    get_or_create_ping_directory,
    get_or_create_quarantine_directory,
    is_valid_ping_file_name,
    list_ping_files,
)


# ---------------------------------------------------------------------------
# is_valid_ping_file_name
# ---------------------------------------------------------------------------


class TestIsValidPingFileName:
    @pytest.mark.parametrize(
        "name",
        [
            PING_NAME,
            PING_NAME.upper(),
            "00000000-0000-0000-0000-000000000000",
            "aBcDeF01-2345-6789-abcd-EF0123456789",
        ],
    )
    def test_accepts_uuids(self, name: str) -> None:
        assert is_valid_ping_file_name(name) is True

    @pytest.mark.parametrize(
        "name",
        [
            "not-a-uuid.txt",
            f"{PING_NAME}.json",
            f"x{PING_NAME}",
            PING_NAME.replace("-", ""),
            "123e4567-e89b-12d3-a456-42661417400g",
            ".tmp-abc.ping",
            "",
        ],
    )
    def test_rejects_everything_else(self, name: str) -> None:
        assert is_valid_ping_file_name(name) is False


# ---------------------------------------------------------------------------
# Directories
# ---------------------------------------------------------------------------


class TestDirectories:
    def test_creates_nested_pending_directory(self, tmp_path: Path) -> None:
        directory = get_or_create_ping_directory(tmp_path / "a" / "b")
        assert directory == tmp_path / "a" / "b" / "pending_pings"
        assert directory.is_dir()

    def test_is_idempotent(self, tmp_path: Path) -> None:
        first = get_or_create_ping_directory(tmp_path)
        (first / PING_NAME).write_text("x\ny", encoding="utf-8")
        second = get_or_create_ping_directory(tmp_path)
        assert first == second
        assert (second / PING_NAME).exists()

    def test_creation_failure_is_logged_not_raised(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("", encoding="utf-8")
        directory = get_or_create_ping_directory(blocker)
        assert not directory.exists()
        assert any("Could not create directory" in r.getMessage() for r in caplog.records)

    def test_quarantine_directory(self, tmp_path: Path) -> None:
        directory = get_or_create_quarantine_directory(tmp_path)
        assert directory == tmp_path / "quarantined_pings"
        assert directory.is_dir()


# ---------------------------------------------------------------------------
# list_ping_files
# ---------------------------------------------------------------------------


class TestListPingFiles:
    def test_lists_files_sorted(self, tmp_path: Path) -> None:
        for name in ["c", "a", "b"]:
            (tmp_path / name).write_text("", encoding="utf-8")
        assert list_ping_files(tmp_path) == ["a", "b", "c"]

    def test_skips_subdirectories(self, tmp_path: Path) -> None:
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "inner").write_text("", encoding="utf-8")
        (tmp_path / "file").write_text("", encoding="utf-8")
        assert list_ping_files(tmp_path) == ["file"]

    def test_empty_directory(self, tmp_path: Path) -> None:
        assert list_ping_files(tmp_path) == []

    def test_missing_directory_raises(self, tmp_path: Path) -> None:
        with pytest.raises(PingStorageError, match="enumerating"):
            list_ping_files(tmp_path / "missing")


# ---------------------------------------------------------------------------
# decode_ping_file / encode_ping_file
# ---------------------------------------------------------------------------


class TestDecodePingFile:
    def test_two_lines(self) -> None:
        payload = decode_ping_file('/submit/app/metric/1\n{"ping":true}')
        assert payload == PingPayload(path="/submit/app/metric/1", body='{"ping":true}')

    def test_trailing_newline(self) -> None:
        assert decode_ping_file("/p\n{}\n") == PingPayload("/p", "{}")

    def test_crlf_line_endings(self) -> None:
        assert decode_ping_file("/p\r\n{}\r\n") == PingPayload("/p", "{}")

    def test_extra_lines_ignored(self) -> None:
        assert decode_ping_file("/p\n{}\nmore\nstuff") == PingPayload("/p", "{}")

    def test_extra_lines_rejected_when_strict(self) -> None:
        with pytest.raises(CorruptPingError, match="exactly 2"):
            decode_ping_file("/p\n{}\nmore", strict=True)

    def test_strict_accepts_two_lines(self) -> None:
        assert decode_ping_file("/p\n{}\n", strict=True) == PingPayload("/p", "{}")

    @pytest.mark.parametrize("content", ["", "onlyoneline"])
    def test_fewer_than_two_lines_is_corrupt(self, content: str) -> None:
        with pytest.raises(CorruptPingError) as exc_info:
            decode_ping_file(content)
        assert "line_count" in exc_info.value.context

    def test_path_with_trailing_newline_has_empty_body(self) -> None:
        assert decode_ping_file("/submit/x\n") == PingPayload("/submit/x", "")

    def test_empty_body_line_is_kept(self) -> None:
        assert decode_ping_file("/p\n\n") == PingPayload("/p", "")

    def test_strict_accepts_one_trailing_break_only(self) -> None:
        assert decode_ping_file("/p\n\n", strict=True) == PingPayload("/p", "")
        with pytest.raises(CorruptPingError):
            decode_ping_file("/p\n{}\n\n", strict=True)

    def test_unicode_line_separator_stays_in_body(self) -> None:
        body = '{"text":"a\u2028b"}'
        assert decode_ping_file(f"/p\n{body}").body == body


class TestEncodePingFile:
    def test_encode_then_decode(self) -> None:
        text = encode_ping_file("/submit/app/events/1", '{"events":[1,2]}')
        assert decode_ping_file(text) == PingPayload("/submit/app/events/1", '{"events":[1,2]}')

    @pytest.mark.parametrize(
        ("path", "body"),
        [("/p\n", "{}"), ("/p", "{\n}"), ("/p", "{}\r")],
    )
    def test_rejects_line_breaks(self, path: str, body: str) -> None:
        with pytest.raises(ValueError, match="line breaks"):
            encode_ping_file(path, body)


# ---------------------------------------------------------------------------
# read_ping_file / write_ping_file
# ---------------------------------------------------------------------------


class TestReadPingFile:
    def test_reads_and_decodes(self, tmp_path: Path) -> None:
        file_path = tmp_path / PING_NAME
        file_path.write_text("/p\n{}", encoding="utf-8")
        assert read_ping_file(file_path) == PingPayload("/p", "{}")

    def test_missing_file_raises_file_not_found(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            read_ping_file(tmp_path / PING_NAME)

    def test_invalid_utf8_is_corrupt(self, tmp_path: Path) -> None:
        file_path = tmp_path / PING_NAME
        file_path.write_bytes(b"/p\n\xff\xfe")
        with pytest.raises(CorruptPingError, match="UTF-8") as exc_info:
            read_ping_file(file_path)
        assert exc_info.value.context["offset"] == 3

    def test_os_error_is_storage_error_not_corrupt(self, tmp_path: Path) -> None:
        with pytest.raises(PingStorageError) as exc_info:
            read_ping_file(tmp_path)
        assert not isinstance(exc_info.value, CorruptPingError)


class TestWritePingFile:
    def test_writes_under_uuid_name(self, tmp_path: Path) -> None:
        written = write_ping_file(tmp_path, "/submit/a/b/1", '{"x":1}')
        assert is_valid_ping_file_name(written.name)
        assert read_ping_file(written) == PingPayload("/submit/a/b/1", '{"x":1}')
        assert list_ping_files(tmp_path) == [written.name]

    def test_explicit_document_id(self, tmp_path: Path) -> None:
        written = write_ping_file(tmp_path, "/p", "{}", document_id=PING_NAME)
        assert written == tmp_path / PING_NAME

    def test_rejects_multiline_body_without_leaving_files(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            write_ping_file(tmp_path, "/p", "{\n}")
        assert list(tmp_path.iterdir()) == []

    def test_missing_directory_raises_storage_error(self, tmp_path: Path) -> None:
        with pytest.raises(PingStorageError):
            write_ping_file(tmp_path / "missing", "/p", "{}")
