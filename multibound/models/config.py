from pathlib import Path

import msgspec
from loguru import logger

from multibound.utils.app_info import AppInfo
from multibound.utils.files import atomic_write_bytes


def _default_instance_root() -> str:
    return str(AppInfo().default_instance_root)


def _default_steamcmd_prefix() -> str:
    return str(AppInfo().default_steamcmd_prefix)


class Config(msgspec.Struct, kw_only=True):
    """
    Global launcher configuration.

    Built once at startup and handed to the registry, the store and the
    workshop sync. Nothing in the core reads configuration from anywhere else.
    """

    instance_root: str = msgspec.field(default_factory=_default_instance_root)
    executable_path: str = ""
    steamcmd_prefix: str = msgspec.field(default_factory=_default_steamcmd_prefix)
    # Empty means SteamCMD's own workshop content folder
    workshop_content_folder: str = ""
    steamcmd_validate_downloads: bool = True
    webapi_max_retries: int = 3
    webapi_backoff_factor: float = 1.0
    webapi_timeout: float = 30.0


def load_config(path: str | Path | None = None) -> Config:
    """
    Load the configuration from a JSON file.

    A missing or unreadable file gives the defaults. Unknown keys are ignored.

    :param path: settings file, defaults to settings.json in the app storage folder
    :return: the loaded Config
    """
    settings_file = Path(path) if path else AppInfo().app_settings_file
    if not settings_file.is_file():
        logger.info(f"No settings file at {settings_file}, using defaults")
        return Config()
    try:
        return msgspec.json.decode(settings_file.read_bytes(), type=Config)
    except (OSError, msgspec.DecodeError, msgspec.ValidationError) as e:
        logger.error(f"Unable to load settings from {settings_file}: {e}")
        return Config()


def save_config(config: Config, path: str | Path | None = None) -> None:
    settings_file = Path(path) if path else AppInfo().app_settings_file
    settings_file.parent.mkdir(parents=True, exist_ok=True)
    atomic_write_bytes(
        settings_file, msgspec.json.format(msgspec.json.encode(config), indent=4)
    )
    logger.debug(f"Saved settings to {settings_file}")
