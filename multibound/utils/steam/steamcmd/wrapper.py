import os
import platform
import shutil
import subprocess
import tarfile
from io import BytesIO
from pathlib import Path
from tempfile import NamedTemporaryFile
from zipfile import ZipFile

import requests
from loguru import logger

import multibound.utils.symlink as symlink
from multibound.utils.constants import STARBOUND_APPID

STEAMCMD_URLS = {
    "Darwin": "https://steamcdn-a.akamaihd.net/client/installer/steamcmd_osx.tar.gz",
    "Linux": "https://steamcdn-a.akamaihd.net/client/installer/steamcmd_linux.tar.gz",
    "Windows": "https://steamcdn-a.akamaihd.net/client/installer/steamcmd.zip",
}


class SteamcmdDownloader:
    """
    Downloads Workshop items with SteamCMD.

    Items land in SteamCMD's own workshop content folder. When a different
    destination folder is requested the downloaded item folders are linked
    into it, so an item is either fully present there or not at all.
    """

    def __init__(self, steamcmd_prefix: str, validate: bool = True) -> None:
        self.steamcmd_prefix = steamcmd_prefix
        self.steamcmd_install_path = str(Path(steamcmd_prefix) / "steamcmd")
        self.steamcmd_steam_path = str(Path(steamcmd_prefix) / "steam")
        self.content_path = self.content_path_for_prefix(steamcmd_prefix)
        self.validate_downloads = validate
        self.system = platform.system()
        self.steamcmd_url = STEAMCMD_URLS.get(self.system, "")
        executable_name = "steamcmd.exe" if self.system == "Windows" else "steamcmd.sh"
        self.steamcmd = str(Path(self.steamcmd_install_path) / executable_name)

    @staticmethod
    def content_path_for_prefix(steamcmd_prefix: str) -> str:
        return str(
            Path(steamcmd_prefix)
            / "steam"
            / "steamapps"
            / "workshop"
            / "content"
            / STARBOUND_APPID
        )

    def is_installed(self) -> bool:
        return os.path.isfile(self.steamcmd)

    def build_script(self, publishedfileids: list[str]) -> list[str]:
        """
        Compile the SteamCMD runscript for a list of publishedfileids

        https://developer.valvesoftware.com/wiki/SteamCMD
        """
        script = [
            f'force_install_dir "{self.steamcmd_steam_path}"',
            "login anonymous",
        ]
        download_cmd = f"workshop_download_item {STARBOUND_APPID}"
        for publishedfileid in publishedfileids:
            if self.validate_downloads:
                script.append(f"{download_cmd} {publishedfileid} validate")
            else:
                script.append(f"{download_cmd} {publishedfileid}")
        script.append("quit\n")
        return script

    def _run_script(self, script: list[str]) -> None:
        with NamedTemporaryFile(
            "w", encoding="utf-8", suffix="_steamcmd_script.txt", delete=False
        ) as script_output:
            script_output.write("\n".join(script))
            script_path = script_output.name
        logger.debug(f"Compiled & using script: {script_path}")
        try:
            result = subprocess.run(
                [self.steamcmd, "+runscript", script_path],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                check=False,
            )
            for line in result.stdout.splitlines():
                if line.strip():
                    logger.debug(f"steamcmd: {line}")
            if result.returncode != 0:
                logger.warning(f"SteamCMD exited with code {result.returncode}")
        except OSError as e:
            logger.error(f"Unable to run SteamCMD {self.steamcmd}: {e}")
        finally:
            os.unlink(script_path)

    def download(
        self, publishedfileids: list[str], destination: str | Path | None = None
    ) -> list[str]:
        """
        Download a list of Workshop items.

        A missing SteamCMD installation is logged and nothing is downloaded;
        items already present still count as available.

        :param publishedfileids: ids of the items to download
        :param destination: folder to expose the items in, defaults to SteamCMD's content folder
        :return: the ids that are available in the destination afterwards
        """
        if publishedfileids:
            if self.is_installed():
                logger.info(
                    f"Downloading list of {len(publishedfileids)} publishedfileids "
                    f"to: {self.steamcmd_steam_path}"
                )
                self._run_script(self.build_script(publishedfileids))
            else:
                logger.warning(
                    f"SteamCMD was not found at {self.steamcmd}. Please setup SteamCMD first!"
                )

        target = Path(destination) if destination else Path(self.content_path)
        available: list[str] = []
        for publishedfileid in publishedfileids:
            downloaded = Path(self.content_path) / publishedfileid
            exposed = target / publishedfileid
            if exposed.resolve() != downloaded.resolve() and downloaded.is_dir():
                try:
                    target.mkdir(parents=True, exist_ok=True)
                    symlink.create_symlink(str(downloaded), str(exposed))
                except (symlink.SymlinkCreationError, OSError) as e:
                    logger.warning(f"Unable to link {publishedfileid} into {target}: {e}")
            if exposed.is_dir():
                available.append(publishedfileid)
            else:
                logger.warning(f"Workshop item {publishedfileid} is not available")
        return available

    def install(self, reinstall: bool = False) -> None:
        """
        Download and extract SteamCMD into the prefix.

        :raises OSError: if the platform is unsupported or the download/extraction fails
        """
        if not self.steamcmd_url:
            raise OSError(f"SteamCMD is not supported on platform {self.system}")
        if reinstall and os.path.exists(self.steamcmd_install_path):
            logger.info(
                f"Deleting existing installation from: {self.steamcmd_install_path}"
            )
            shutil.rmtree(self.steamcmd_install_path)
        if self.is_installed():
            logger.info(f"SteamCMD already installed at {self.steamcmd}")
            return

        os.makedirs(self.steamcmd_install_path, exist_ok=True)
        os.makedirs(self.steamcmd_steam_path, exist_ok=True)
        logger.info(f"Downloading & extracting steamcmd release from: {self.steamcmd_url}")
        try:
            response = requests.get(self.steamcmd_url, timeout=60)
            response.raise_for_status()
        except requests.RequestException as e:
            raise OSError(f"Failed to download steamcmd for {self.system}: {e}") from e
        if self.steamcmd_url.endswith(".zip"):
            with ZipFile(BytesIO(response.content)) as zipobj:
                zipobj.extractall(self.steamcmd_install_path)
        else:
            with tarfile.open(fileobj=BytesIO(response.content), mode="r:gz") as tarobj:
                tarobj.extractall(self.steamcmd_install_path, filter="data")
        logger.info("SteamCMD installation completed")
