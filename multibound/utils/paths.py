"""
Resolution of the placeholder prefixes used in instance configurations.

    inst:/storage/    -> <instance path>/storage/
    game:/assets/     -> <game root>/assets/
    workshop:/12345/  -> <workshop content folder>/12345/

Anything without a known prefix is returned unchanged.
"""

from pathlib import Path
from re import sub
from typing import TYPE_CHECKING

from multibound.utils.constants import GAME_PREFIX, INSTANCE_PREFIX, WORKSHOP_PREFIX
from multibound.utils.steam.steamcmd.wrapper import SteamcmdDownloader

if TYPE_CHECKING:
    from multibound.models.config import Config


def sanitize_filename(filename: str) -> str:
    # Remove forbidden characters for all platforms
    forbidden_chars = r'[<>:"/\\|?*\0]'
    sanitized_filename = sub(forbidden_chars, "", filename)

    # Windows filenames shouldn't end with a space or period
    sanitized_filename = sanitized_filename.strip().rstrip(". ")

    return sanitized_filename


def splice_path(root: str | Path, name: str) -> str:
    """
    Join a single directory name onto a root folder.

    The name is sanitized first so it can never escape the root.

    :param root: the parent folder
    :param name: a directory name supplied by the user
    :return: the joined path, or an empty string if nothing usable remains of the name
    """
    safe_name = sanitize_filename(name)
    if not safe_name or safe_name in (".", ".."):
        return ""
    return str(Path(root) / safe_name)


def _join(base: str | Path, rest: str) -> str:
    joined = str(Path(base) / rest.lstrip("/\\"))
    if rest.endswith(("/", "\\")) and not joined.endswith(("/", "\\")):
        joined += "/"
    return joined


def resolve_placeholder(
    value: str,
    instance_path: str | Path = "",
    game_root: str | Path = "",
    workshop_root: str | Path = "",
) -> str:
    """
    Expand a placeholder path from an instance configuration.

    A trailing slash on the input is kept on the output.
    """
    if value.startswith(INSTANCE_PREFIX):
        return _join(instance_path, value[len(INSTANCE_PREFIX) :])
    if value.startswith(GAME_PREFIX):
        return _join(game_root, value[len(GAME_PREFIX) :])
    if value.startswith(WORKSHOP_PREFIX):
        return _join(workshop_root, value[len(WORKSHOP_PREFIX) :])
    return value


def game_root_from_executable(executable_path: str | Path) -> Path:
    """
    The game ships its binaries one level below the install root
    (linux/, win64/, osx/), so the root is the executable's grandparent.
    """
    return Path(executable_path).resolve().parent.parent


def workshop_content_folder(config: "Config") -> Path:
    """Folder holding one sub folder per downloaded Workshop item."""
    if config.workshop_content_folder:
        return Path(config.workshop_content_folder)
    return Path(SteamcmdDownloader.content_path_for_prefix(config.steamcmd_prefix))
