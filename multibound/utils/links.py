"""
Mapping between Steam Workshop ids and shareable links.

Absence of an id is always signalled with an empty string, never an exception.
"""

import re
from typing import Any
from urllib.parse import parse_qs, urlsplit

BASE_URL_STEAMFILES = "https://steamcommunity.com/sharedfiles/filedetails/?id="

_LINK_HOSTS = {"steamcommunity.com", "www.steamcommunity.com"}
_LINK_PATHS = {"/sharedfiles/filedetails", "/workshop/filedetails"}
_ID_PATTERN = re.compile(r"[0-9]+")


def is_workshop_id(value: Any) -> bool:
    return isinstance(value, str) and bool(_ID_PATTERN.fullmatch(value))


def workshop_link_from_id(workshop_id: str) -> str:
    """
    Build the canonical link for a Workshop item or collection.

    :param workshop_id: numeric Workshop id, may be empty
    :return: the link, e.g. https://steamcommunity.com/sharedfiles/filedetails/?id=123
    """
    return f"{BASE_URL_STEAMFILES}{workshop_id}"


def workshop_id_from_link(link: Any) -> str:
    """
    Extract the Workshop id from a steamcommunity.com filedetails link.

    Accepts both the sharedfiles and workshop forms, http or https,
    with or without www. and with extra query parameters in any order.

    :param link: the link to parse
    :return: the numeric id, or an empty string if the link does not match
    """
    if not isinstance(link, str):
        return ""
    try:
        parts = urlsplit(link.strip())
    except ValueError:
        return ""
    if parts.scheme not in ("http", "https"):
        return ""
    if (parts.hostname or "") not in _LINK_HOSTS:
        return ""
    if parts.path.rstrip("/") not in _LINK_PATHS:
        return ""
    ids = parse_qs(parts.query).get("id", [])
    if len(ids) != 1 or not is_workshop_id(ids[0]):
        return ""
    return ids[0]
