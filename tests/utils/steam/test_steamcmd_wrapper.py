import os
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from multibound.utils.steam.steamcmd.wrapper import SteamcmdDownloader


@pytest.fixture
def downloader(tmp_path: Path) -> SteamcmdDownloader:
    return SteamcmdDownloader(str(tmp_path / "steamcmd"), validate=True)


def fake_download(downloader: SteamcmdDownloader, *ids: str) -> None:
    for publishedfileid in ids:
        item = Path(downloader.content_path) / publishedfileid
        item.mkdir(parents=True, exist_ok=True)
        (item / "contents.pak").write_bytes(b"pak")


def test_content_path_for_prefix(tmp_path: Path) -> None:
    assert SteamcmdDownloader.content_path_for_prefix(str(tmp_path)) == str(
        tmp_path / "steam" / "steamapps" / "workshop" / "content" / "211820"
    )


def test_build_script(downloader: SteamcmdDownloader) -> None:
    script = downloader.build_script(["1", "2"])

    assert script == [
        f'force_install_dir "{downloader.steamcmd_steam_path}"',
        "login anonymous",
        "workshop_download_item 211820 1 validate",
        "workshop_download_item 211820 2 validate",
        "quit\n",
    ]


def test_build_script_without_validation(tmp_path: Path) -> None:
    downloader = SteamcmdDownloader(str(tmp_path), validate=False)

    assert "workshop_download_item 211820 7" in downloader.build_script(["7"])


def test_download_without_steamcmd_reports_missing(
    downloader: SteamcmdDownloader,
) -> None:
    with patch.object(downloader, "_run_script") as mock_run:
        assert downloader.download(["1", "2"]) == []

    mock_run.assert_not_called()


def test_download_counts_items_already_present(
    downloader: SteamcmdDownloader, tmp_path: Path
) -> None:
    fake_download(downloader, "1")
    destination = tmp_path / "workshop"

    available = downloader.download(["1", "2"], destination=destination)

    assert available == ["1"]
    assert (destination / "1").is_dir()
    assert (destination / "1" / "contents.pak").read_bytes() == b"pak"
    assert not (destination / "2").exists()


def test_download_runs_script_and_links(
    downloader: SteamcmdDownloader, tmp_path: Path
) -> None:
    destination = tmp_path / "workshop"

    def run_script(script: list[str]) -> None:
        assert "workshop_download_item 211820 1 validate" in script
        fake_download(downloader, "1", "2")

    with patch.object(downloader, "is_installed", return_value=True), patch.object(
        downloader, "_run_script", side_effect=run_script
    ) as mock_run:
        available = downloader.download(["1", "2"], destination=destination)

    mock_run.assert_called_once()
    assert available == ["1", "2"]
    assert os.path.islink(destination / "1")


def test_download_into_own_content_folder(downloader: SteamcmdDownloader) -> None:
    fake_download(downloader, "1")

    assert downloader.download(["1"]) == ["1"]
    assert not os.path.islink(Path(downloader.content_path) / "1")


def test_occupied_destination_is_not_available(
    downloader: SteamcmdDownloader, tmp_path: Path
) -> None:
    fake_download(downloader, "1")
    destination = tmp_path / "workshop"
    (destination / "1").parent.mkdir(parents=True)
    (destination / "1").write_text("not a folder")

    assert downloader.download(["1"], destination=destination) == []


def test_run_script_removes_script(downloader: SteamcmdDownloader) -> None:
    result = Mock(returncode=0, stdout="Success.\n")

    with patch(
        "multibound.utils.steam.steamcmd.wrapper.subprocess.run", return_value=result
    ) as mock_run:
        downloader._run_script(["login anonymous", "quit\n"])

    args = mock_run.call_args.args[0]
    assert args[:2] == [downloader.steamcmd, "+runscript"]
    assert not os.path.exists(args[2])


def test_install_unsupported_platform(downloader: SteamcmdDownloader) -> None:
    downloader.steamcmd_url = ""

    with pytest.raises(OSError):
        downloader.install()
