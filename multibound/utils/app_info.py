import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from platformdirs import PlatformDirs


class AppInfo:
    """
    Singleton class that provides information about the application and its related directories.

    The directories are determined using the `platformdirs` package, ensuring
    platform-specific conventions are adhered to.

    Examples:
        >>> print(AppInfo().app_name)
        >>> print(AppInfo().app_storage_folder)
    """

    _instance: "None | AppInfo" = None

    def __new__(cls) -> "AppInfo":
        if not cls._instance:
            cls._instance = super(AppInfo, cls).__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_is_initialized") and self._is_initialized:
            return

        main_module = sys.modules.get("__main__")
        main_file = getattr(main_module, "__file__", None)
        self._application_folder = (
            Path(main_file).resolve().parent if main_file else Path.cwd()
        )

        self._app_name = "MultiBound"

        try:
            self._app_version = version("multibound")
        except PackageNotFoundError:
            self._app_version = "Unknown version"

        platform_dirs = PlatformDirs(appname=self._app_name, appauthor=False)
        self._app_storage_folder: Path = Path(platform_dirs.user_data_dir)
        self._user_log_folder: Path = Path(platform_dirs.user_log_dir)

        self._settings_file: Path = self._app_storage_folder / "settings.json"
        self._default_instance_root: Path = self._app_storage_folder / "instances"
        self._default_steamcmd_prefix: Path = self._app_storage_folder / "steamcmd"

        self._is_initialized: bool = True

    def ensure_folders(self) -> None:
        """Create the storage and log folders. Called once by the entry point."""
        self._app_storage_folder.mkdir(parents=True, exist_ok=True)
        self._user_log_folder.mkdir(parents=True, exist_ok=True)

    @property
    def app_name(self) -> str:
        return self._app_name

    @property
    def app_version(self) -> str:
        return self._app_version

    @property
    def application_folder(self) -> Path:
        """
        Get the path to the folder where the main application file resides.

        Returns:
            Path: The path to the application's main folder.
        """
        return self._application_folder

    @property
    def app_storage_folder(self) -> Path:
        """
        Get the path to the folder where user-specific data for the application is stored.

        This directory is determined using platform-specific conventions.

        Returns:
            Path: The path to the user-specific data folder.
        """
        return self._app_storage_folder

    @property
    def app_settings_file(self) -> Path:
        return self._settings_file

    @property
    def user_log_folder(self) -> Path:
        """
        Get the path to the folder where application logs are stored for the user.

        Returns:
            Path: The path to the user-specific log folder.
        """
        return self._user_log_folder

    @property
    def default_instance_root(self) -> Path:
        return self._default_instance_root

    @property
    def default_steamcmd_prefix(self) -> Path:
        return self._default_steamcmd_prefix
