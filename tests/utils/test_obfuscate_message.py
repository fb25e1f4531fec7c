import pytest

from multibound.utils.obfuscate_message import _anonymize_path, obfuscate_message


@pytest.mark.parametrize(
    "message, expected",
    [
        (r"C:\Users\user\Saved Games\sbinit.config", r"C:\Users\...\Saved Games\sbinit.config"),
        (r"D:\Users\abc\instances\foo", r"D:\Users\...\instances\foo"),
        ("/home/user/.local/share/MultiBound", "/home/.../.local/share/MultiBound"),
        ("/Users/someone/Library/Application Support", "/Users/.../Library/Application Support"),
    ],
)
def test__anonymize_path(message: str, expected: str) -> None:
    assert _anonymize_path(message) == expected


def test__anonymize_path_mixed_message() -> None:
    message = "Unable to write /home/user/instances/foo/instance.json: disk full"
    expected = "Unable to write /home/.../instances/foo/instance.json: disk full"
    assert _anonymize_path(message) == expected

    message = "Launching C:\\Users\\user\\Starbound\\win64\\starbound.exe now"
    expected = "Launching C:\\Users\\...\\Starbound\\win64\\starbound.exe now"
    assert _anonymize_path(message) == expected


def test__anonymize_path_without_path() -> None:
    assert _anonymize_path("Refreshed registry: 3 instance(s)") == (
        "Refreshed registry: 3 instance(s)"
    )


def test_obfuscate_message_strips_api_key() -> None:
    message = "GET https://api.steampowered.com/x/?key=ABCDEF123&format=json"
    assert obfuscate_message(message) == (
        "GET https://api.steampowered.com/x/?key=...&format=json"
    )


def test_obfuscate_message_keeps_path_when_disabled() -> None:
    message = "/home/user/instances"
    assert obfuscate_message(message, anonymize_path=False) == message
