"""
Launching an instance.

The game reads its asset folders and storage folder from a boot config file.
Each instance gets its own boot config, written next to instance.json, and
the game executable is started with -bootconfig pointing at it.
"""

from pathlib import Path
from typing import Any

import msgspec
from loguru import logger

from multibound.models.config import Config
from multibound.models.instance import InstanceRecord
from multibound.utils.constants import BOOT_CONFIG_FILE, WORKSHOP_SOURCE_TYPE
from multibound.utils.exception import LaunchError
from multibound.utils.files import atomic_write_bytes
from multibound.utils.generic import is_executable_file, launch_process
from multibound.utils.paths import (
    game_root_from_executable,
    resolve_placeholder,
    workshop_content_folder,
)


def validate_executable(config: Config) -> None:
    """
    :raises LaunchError: if the configured game executable is missing or not runnable
    """
    if not is_executable_file(config.executable_path):
        raise LaunchError(
            f"Game executable is missing or not executable: {config.executable_path!r}"
        )


def resolve_asset_source(
    source: Any, record: InstanceRecord, game_root: Path, workshop_root: Path
) -> str | None:
    if isinstance(source, str):
        return resolve_placeholder(source, record.path, game_root, workshop_root)
    if isinstance(source, dict) and source.get("type") == WORKSHOP_SOURCE_TYPE:
        item_id = str(source.get("id", ""))
        if item_id:
            return str(workshop_root / item_id) + "/"
    logger.warning(f"Ignoring unrecognised asset source in {record.path}: {source!r}")
    return None


def build_boot_config(record: InstanceRecord, config: Config) -> dict[str, Any]:
    """
    Build the boot config for an instance.

    The game's own assets come first, followed by the instance's asset
    sources in configuration order.
    """
    game_root = game_root_from_executable(config.executable_path)
    workshop_root = workshop_content_folder(config)
    asset_directories = [str(game_root / "assets") + "/"]
    for source in record.asset_sources:
        resolved = resolve_asset_source(source, record, game_root, workshop_root)
        if resolved:
            asset_directories.append(resolved)
    return {
        "assetDirectories": asset_directories,
        "storageDirectory": record.resolve_path(record.save_path, config),
    }


def write_boot_config(record: InstanceRecord, config: Config) -> Path:
    boot_config_path = Path(record.path) / BOOT_CONFIG_FILE
    boot_config = build_boot_config(record, config)
    try:
        atomic_write_bytes(
            boot_config_path,
            msgspec.json.format(msgspec.json.encode(boot_config), indent=4),
        )
    except OSError as e:
        raise LaunchError(f"Unable to write boot config {boot_config_path}: {e}") from e
    logger.debug(f"Wrote boot config {boot_config_path}: {boot_config}")
    return boot_config_path


def launch_instance(record: InstanceRecord, config: Config) -> int:
    """
    Start the game for an instance. The process is not supervised.

    The executable's folder is used as the working directory.

    :return: the PID of the started process
    :raises LaunchError: if the executable is invalid or the process cannot be started
    """
    if record.is_draft:
        raise LaunchError("Cannot launch an instance that has not been saved")
    validate_executable(config)

    boot_config_path = write_boot_config(record, config)
    executable_path = str(Path(config.executable_path).resolve())
    args = ["-bootconfig", str(boot_config_path)]
    logger.info(
        f"Launching instance {record.display_name!r} with `{executable_path}` and args: {args}"
    )
    try:
        pid, popen_args = launch_process(
            executable_path, args, str(Path(executable_path).parent)
        )
    except OSError as e:
        logger.error(f"Unable to launch {executable_path}: {e}")
        raise LaunchError(f"Unable to launch {executable_path}: {e}") from e
    logger.info(f"Launched independent game process with PID {pid} using args {popen_args}")
    return pid
