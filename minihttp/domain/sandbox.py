"""Mapping of ``/files/{name}`` suffixes onto the storage root."""

from pathlib import Path, PurePosixPath
from typing import Union


class ForbiddenPath(Exception):
    """Raised when a file name would resolve outside the storage root."""


def resolve_sandbox_path(directory: Union[str, Path], user_path: str) -> Path:
    """Return the absolute path for ``user_path`` strictly inside ``directory``.

    Empty names, NUL bytes and ``..`` segments are refused before touching
    the filesystem; the resolved target is then checked again so symlinks
    cannot point outside the root.
    """
    if not user_path or "\x00" in user_path:
        raise ForbiddenPath(user_path)

    segments = PurePosixPath(user_path.lstrip("/")).parts
    if not segments or ".." in segments:
        raise ForbiddenPath(user_path)

    root = Path(directory).resolve()
    target = root.joinpath(*segments).resolve()
    if target == root or not target.is_relative_to(root):
        raise ForbiddenPath(user_path)
    return target
