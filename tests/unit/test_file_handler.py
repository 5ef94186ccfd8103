"""Unit tests for the file store routes and sandbox resolution."""

import gzip
from pathlib import Path

import pytest

from minihttp.domain.sandbox import ForbiddenPath, resolve_sandbox_path
from minihttp.pipeline.router import route_request
from tests.utils.factories import make_context


def test_post_then_get_round_trips_bytes(tmp_path: Path) -> None:
    """Stored bytes come back verbatim as octet-stream."""
    post = route_request(
        make_context("/files/a.txt", method="POST", body=b"abc", directory=tmp_path)
    )
    assert post.status_code == 201
    assert post.body is None
    assert (tmp_path / "a.txt").read_bytes() == b"abc"

    get = route_request(make_context("/files/a.txt", directory=tmp_path))
    assert get.status_code == 200
    assert get.body == b"abc"
    assert get.get_header_value("Content-Type") == "application/octet-stream"
    assert get.get_header_value("Content-Length") == "3"


def test_get_missing_file_is_not_found(tmp_path: Path) -> None:
    """Absent files answer 404."""
    response = route_request(make_context("/files/missing.txt", directory=tmp_path))
    assert response.status_code == 404


def test_get_directory_is_not_found(tmp_path: Path) -> None:
    """Only regular files are served."""
    (tmp_path / "sub").mkdir()
    assert route_request(make_context("/files/sub", directory=tmp_path)).status_code == 404


def test_post_overwrites_existing_file(tmp_path: Path) -> None:
    """A second POST replaces the previous content entirely."""
    (tmp_path / "data.bin").write_bytes(b"much longer old content")
    response = route_request(
        make_context("/files/data.bin", method="POST", body=b"new", directory=tmp_path)
    )
    assert response.status_code == 201
    assert (tmp_path / "data.bin").read_bytes() == b"new"


def test_post_without_body_creates_empty_file(tmp_path: Path) -> None:
    """No body truncates to an empty file."""
    (tmp_path / "empty.txt").write_bytes(b"old")
    response = route_request(
        make_context("/files/empty.txt", method="POST", directory=tmp_path)
    )
    assert response.status_code == 201
    assert (tmp_path / "empty.txt").read_bytes() == b""


def test_get_file_is_gzipped_when_accepted(tmp_path: Path) -> None:
    """File bodies go through the same content negotiation."""
    (tmp_path / "big.txt").write_bytes(b"x" * 1000)
    response = route_request(
        make_context(
            "/files/big.txt", headers={"Accept-Encoding": "gzip"}, directory=tmp_path
        )
    )
    assert response.get_header_value("Content-Encoding") == "gzip"
    assert gzip.decompress(response.body) == b"x" * 1000


@pytest.mark.parametrize("name", ["../outside.txt", "a/../../outside.txt", ""])
def test_names_escaping_storage_root_are_not_found(tmp_path: Path, name: str) -> None:
    """Traversal attempts never touch files outside the root."""
    root = tmp_path / "root"
    root.mkdir()
    (tmp_path / "outside.txt").write_bytes(b"secret")

    get = route_request(make_context(f"/files/{name}", directory=root))
    post = route_request(
        make_context(f"/files/{name}", method="POST", body=b"x", directory=root)
    )

    assert get.status_code == 404
    assert post.status_code == 404
    assert (tmp_path / "outside.txt").read_bytes() == b"secret"


def test_resolve_sandbox_path_rejects_null_byte(tmp_path: Path) -> None:
    """Embedded NUL bytes are refused."""
    with pytest.raises(ForbiddenPath):
        resolve_sandbox_path(tmp_path, "a\x00b")


def test_resolve_sandbox_path_allows_nested_names(tmp_path: Path) -> None:
    """Nested names resolve under the root."""
    resolved = resolve_sandbox_path(tmp_path, "nested/file.txt")
    assert resolved == tmp_path.resolve() / "nested" / "file.txt"


@pytest.mark.parametrize("name", ["", "/", ".", "../outside.txt", "a/../../b"])
def test_resolve_sandbox_path_rejects_escapes_and_root(tmp_path: Path, name: str) -> None:
    """Names that resolve to the root itself or above it are refused."""
    with pytest.raises(ForbiddenPath):
        resolve_sandbox_path(tmp_path, name)


def test_resolve_sandbox_path_rejects_symlink_escape(tmp_path: Path) -> None:
    """A link inside the root pointing outside it is not followed."""
    root = tmp_path / "root"
    root.mkdir()
    outside = tmp_path / "outside"
    outside.mkdir()
    (root / "link").symlink_to(outside, target_is_directory=True)
    with pytest.raises(ForbiddenPath):
        resolve_sandbox_path(root, "link/secret.txt")
