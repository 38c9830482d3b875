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
        >>> print(AppInfo().catalogs_folder)
    """

    _instance: "None | AppInfo" = None

    def __new__(cls) -> "AppInfo":
        """
        Create a new instance or return the existing singleton instance of the `AppInfo` class.
        """
        if not cls._instance:
            cls._instance = super(AppInfo, cls).__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_is_initialized") and self._is_initialized:
            return

        self._app_name = "ModCatalog"

        try:
            self._app_version = version("modcatalog")
        except PackageNotFoundError:
            self._app_version = "Unknown version"

        platform_dirs = PlatformDirs(appname=self._app_name, appauthor=False)
        self._app_storage_folder: Path = Path(platform_dirs.user_data_dir)
        self._user_log_folder: Path = Path(platform_dirs.user_log_dir)

        self._catalogs_folder: Path = self._app_storage_folder / "catalogs"
        self._settings_file: Path = self._app_storage_folder / "settings.json"

        self._app_storage_folder.mkdir(parents=True, exist_ok=True)
        self._user_log_folder.mkdir(parents=True, exist_ok=True)

        self._is_initialized: bool = True

    @property
    def app_name(self) -> str:
        return self._app_name

    @property
    def app_version(self) -> str:
        return self._app_version

    @property
    def app_storage_folder(self) -> Path:
        """
        Get the path to the folder where user-specific data for the application is stored.

        Returns:
            Path: The path to the user-specific data folder.
        """
        return self._app_storage_folder

    @property
    def user_log_folder(self) -> Path:
        return self._user_log_folder

    @property
    def catalogs_folder(self) -> Path:
        """
        Get the default folder for catalog snapshots and change notes.

        Returns:
            Path: The path to the catalogs folder.
        """
        return self._catalogs_folder

    @property
    def app_settings_file(self) -> Path:
        return self._settings_file
