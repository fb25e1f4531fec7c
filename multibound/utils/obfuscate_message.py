"""
This module is to be used with loguru to remove potentially sensitive information
such as the user's name or a Steam WebAPI key.
"""

import re


def obfuscate_message(message: str, anonymize_path: bool = True) -> str:
    """
    Obfuscate the message such that it does not reveal user information.

    Args:
        message: The message to obfuscate.
        anonymize_path: Whether to anonymize paths in the message.

    Returns:
        The obfuscated message.
    """
    if anonymize_path:
        message = _anonymize_path(message)

    return _strip_api_key(message)


def _anonymize_path(message: str) -> str:
    """
    Replace the user name in home directory paths. OS agnostic.

    The input message may or may not contain a path at all.
    """
    # Windows - Only remove the username, keep the drive letter
    message = re.sub(r"([A-Z]:\\Users\\)[^\\]+\\", r"\1...\\", message)
    # Linux - Only remove the username
    message = re.sub(r"/home/[^/]+/", r"/home/.../", message)
    # macOS
    message = re.sub(r"/Users/[^/]+/", r"/Users/.../", message)

    return message


def _strip_api_key(message: str) -> str:
    return re.sub(r"([?&]key=)[^&\s]+", r"\1...", message)
