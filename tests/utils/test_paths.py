from pathlib import Path

from multibound.utils.paths import (
    game_root_from_executable,
    resolve_placeholder,
    sanitize_filename,
    splice_path,
)


def test_resolve_instance_placeholder(tmp_path: Path) -> None:
    instance = tmp_path / "foo"
    assert resolve_placeholder("inst:/storage/", instance) == str(instance / "storage") + "/"
    assert resolve_placeholder("inst:/mods", instance) == str(instance / "mods")


def test_resolve_game_and_workshop_placeholders(tmp_path: Path) -> None:
    game = tmp_path / "Starbound"
    workshop = tmp_path / "content"
    assert resolve_placeholder("game:/assets/", game_root=game) == str(game / "assets") + "/"
    assert resolve_placeholder("workshop:/42/", workshop_root=workshop) == str(
        workshop / "42"
    ) + "/"


def test_resolve_leaves_plain_paths_alone() -> None:
    assert resolve_placeholder("/opt/mods/") == "/opt/mods/"
    assert resolve_placeholder("relative/mods") == "relative/mods"


def test_sanitize_filename() -> None:
    assert sanitize_filename('My: "Modpack"?') == "My Modpack"
    assert sanitize_filename("trailing. ") == "trailing"
    assert sanitize_filename("../escape") == "..escape"


def test_splice_path(tmp_path: Path) -> None:
    assert splice_path(tmp_path, "Frackin Pack") == str(tmp_path / "Frackin Pack")
    assert splice_path(tmp_path, "a/b") == str(tmp_path / "ab")


def test_splice_path_rejects_empty_names(tmp_path: Path) -> None:
    assert splice_path(tmp_path, "") == ""
    assert splice_path(tmp_path, "...") == ""
    assert splice_path(tmp_path, "???") == ""


def test_game_root_from_executable(tmp_path: Path) -> None:
    executable = tmp_path / "Starbound" / "linux" / "starbound"
    assert game_root_from_executable(executable) == (tmp_path / "Starbound").resolve()
