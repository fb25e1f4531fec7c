import os
import sys
from pathlib import Path

from loguru import logger


class SymlinkCreationError(Exception):
    """Exception related to creating a symlink/junction."""

    def __init__(
        self, message: str, src_path: str | Path, dst_path: str | Path
    ) -> None:
        super().__init__(message)
        self.src_path = Path(src_path)
        self.dst_path = Path(dst_path)


class SymlinkDstOccupiedError(SymlinkCreationError):
    """Raised when the destination is an existing file or non-empty directory."""


class SymlinkSrcNotDirError(SymlinkCreationError):
    """Raised when the source is missing or not a directory (junctions need a directory)."""


def is_junction_or_link(path: str | Path) -> bool:
    """
    Check if a path is a symlink, or a junction on Windows.

    Missing paths and regular files/directories give False.
    """
    try:
        return bool(os.readlink(path))
    except OSError:
        return False


def create_symlink(src_path: str, dst_path: str) -> None:
    """
    Link dst_path to the directory src_path.

    Symlinks are used on Unix systems and junctions on Windows. An existing
    link or empty directory at dst_path is replaced. Anything else at
    dst_path is left alone and SymlinkDstOccupiedError is raised.

    :param src_path: existing directory to link to
    :param dst_path: where the link is created, its parent must exist
    """
    if not os.path.isdir(src_path):
        msg = f"Provided source path {src_path} is not a directory, abandoning symlink creation."
        logger.warning(msg)
        raise SymlinkSrcNotDirError(msg, src_path, dst_path)

    if os.path.lexists(dst_path):
        logger.debug(
            f"Potential existing link at {dst_path}. Will attempt to recreate to source: {src_path}"
        )
        if is_junction_or_link(dst_path):
            os.unlink(dst_path)
        elif os.path.isdir(dst_path) and not os.listdir(dst_path):
            os.rmdir(dst_path)
        else:
            msg = f"Symlink destination path {dst_path} is occupied."
            logger.warning(msg)
            raise SymlinkDstOccupiedError(msg, src_path, dst_path)

    if sys.platform == "win32":
        from _winapi import CreateJunction

        CreateJunction(src_path, dst_path)
    else:
        os.symlink(src_path, dst_path, target_is_directory=True)
