from logging import WARNING, getLogger
from typing import Any

import requests
from loguru import logger

from multibound.models.collection import WorkshopCollection, WorkshopItem
from multibound.utils.constants import (
    WORKSHOP_FILETYPE_COLLECTION,
    WORKSHOP_FILETYPE_ITEM,
)
from multibound.utils.exception import NetworkError, NotFoundError
from multibound.utils.generic import chunks
from multibound.utils.steam.webapi.retry import (
    SteamWebAPIRetryConfig,
    steam_api_post_with_retry,
)

# Uncomment this if you want to see the full urllib3 request
getLogger("urllib3").setLevel(WARNING)

BASE_URL_WEBAPI = "https://api.steampowered.com/ISteamRemoteStorage"
GET_COLLECTION_DETAILS_URL = f"{BASE_URL_WEBAPI}/GetCollectionDetails/v1/"
GET_PUBLISHED_FILE_DETAILS_URL = f"{BASE_URL_WEBAPI}/GetPublishedFileDetails/v1/"

# Steam EResult value for success
STEAM_RESULT_OK = 1


def _find_value_in_dict(coll: dict[str, Any], key: str) -> Any:
    key = key.strip().lower()
    key_found = next((_ for _ in coll.keys() if _.strip().lower() == key), None)
    if not key_found:
        return None
    return coll.get(key_found)


class SteamWebAPIClient:
    """
    Minimal client for the anonymous ISteamRemoteStorage endpoints.

    No API key is needed for GetCollectionDetails and GetPublishedFileDetails.
    """

    def __init__(
        self,
        retry_config: SteamWebAPIRetryConfig | None = None,
        timeout: float | None = 30.0,
        chunk_size: int = 100,
    ) -> None:
        self.retry_config = retry_config or SteamWebAPIRetryConfig()
        self.timeout = timeout
        self.chunk_size = chunk_size

    def _post(self, url: str, data: dict[str, str]) -> dict[str, Any]:
        try:
            response = steam_api_post_with_retry(
                url, data=data, config=self.retry_config, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.warning(
                f"Unable to complete request! Are you connected to the internet? "
                f"Received exception: {e.__class__.__name__}"
            )
            raise NetworkError(f"Steam WebAPI request failed: {e}") from e
        try:
            json_response = response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON response: {e}")
            raise NetworkError(f"Invalid JSON response from Steam WebAPI: {e}") from e
        finally:
            logger.debug(f"Received WebAPI response {response.status_code} from query")
        if not isinstance(json_response, dict) or not isinstance(
            json_response.get("response"), dict
        ):
            raise NetworkError("Unexpected response shape from Steam WebAPI")
        return json_response["response"]

    def get_collection_details(
        self, publishedfileids: list[str]
    ) -> dict[str, dict[str, Any]]:
        """
        Query ISteamRemoteStorage/GetCollectionDetails.

        https://steamapi.xpaw.me/#ISteamRemoteStorage/GetCollectionDetails

        :param publishedfileids: collection ids to look up
        :return: the collectiondetails entries keyed by publishedfileid
        """
        details: dict[str, dict[str, Any]] = {}
        for chunk in chunks(_list=publishedfileids, limit=self.chunk_size):
            logger.debug(
                f"Querying details for {len(chunk)} collection(s) via Steam WebAPI"
            )
            data = {"collectioncount": str(len(chunk))}
            for count, publishedfileid in enumerate(chunk):
                data[f"publishedfileids[{count}]"] = publishedfileid
            response = self._post(GET_COLLECTION_DETAILS_URL, data)
            for entry in response.get("collectiondetails", []) or []:
                pfid = _find_value_in_dict(entry, "publishedfileid")
                if pfid is not None:
                    details[str(pfid)] = entry
        return details

    def get_published_file_details(
        self, publishedfileids: list[str]
    ) -> dict[str, dict[str, Any]]:
        """
        Query ISteamRemoteStorage/GetPublishedFileDetails.

        https://steamapi.xpaw.me/#ISteamRemoteStorage/GetPublishedFileDetails

        :param publishedfileids: item or collection ids to look up
        :return: the publishedfiledetails entries keyed by publishedfileid
        """
        details: dict[str, dict[str, Any]] = {}
        for chunk in chunks(_list=publishedfileids, limit=self.chunk_size):
            logger.debug(f"Querying details for {len(chunk)} item(s) via Steam WebAPI")
            data = {"itemcount": str(len(chunk))}
            for count, publishedfileid in enumerate(chunk):
                data[f"publishedfileids[{count}]"] = publishedfileid
            response = self._post(GET_PUBLISHED_FILE_DETAILS_URL, data)
            for entry in response.get("publishedfiledetails", []) or []:
                pfid = _find_value_in_dict(entry, "publishedfileid")
                if pfid is not None:
                    details[str(pfid)] = entry
        return details

    def fetch_collection(self, collection_id: str) -> WorkshopCollection:
        """
        Fetch the title and the flattened item list of a Workshop collection.

        Nested collections are walked depth first in sort order. Each item is
        listed once, at its first occurrence, and collection cycles are ignored.

        :raises NotFoundError: if the id is not a published collection
        :raises NetworkError: on transport failures or malformed responses
        """
        if not collection_id:
            raise NotFoundError(collection_id)

        root = self.get_published_file_details([collection_id]).get(collection_id)
        if not root or _find_value_in_dict(root, "result") != STEAM_RESULT_OK:
            logger.warning(f"Workshop collection {collection_id} could not be found")
            raise NotFoundError(collection_id)

        root_details = self.get_collection_details([collection_id]).get(collection_id)
        if (
            not root_details
            or _find_value_in_dict(root_details, "result") != STEAM_RESULT_OK
        ):
            logger.warning(f"Workshop file {collection_id} is not a collection")
            raise NotFoundError(collection_id)

        item_ids: list[str] = []
        seen_items: set[str] = set()
        visited = {collection_id}

        def walk(details: dict[str, Any]) -> None:
            children = _find_value_in_dict(details, "children") or []
            children = sorted(
                children, key=lambda c: _find_value_in_dict(c, "sortorder") or 0
            )
            for child in children:
                pfid = _find_value_in_dict(child, "publishedfileid")
                if pfid is None:
                    continue
                pfid = str(pfid)
                filetype = _find_value_in_dict(child, "filetype")
                if filetype == WORKSHOP_FILETYPE_ITEM:
                    if pfid not in seen_items:
                        seen_items.add(pfid)
                        item_ids.append(pfid)
                elif filetype == WORKSHOP_FILETYPE_COLLECTION:
                    if pfid in visited:
                        continue
                    visited.add(pfid)
                    nested = self.get_collection_details([pfid]).get(pfid)
                    if (
                        not nested
                        or _find_value_in_dict(nested, "result") != STEAM_RESULT_OK
                    ):
                        logger.warning(
                            f"Skipping nested collection {pfid}: could not be resolved"
                        )
                        continue
                    walk(nested)

        walk(root_details)

        titles = self.get_published_file_details(item_ids) if item_ids else {}
        items = [
            WorkshopItem(
                id=pfid,
                title=str(_find_value_in_dict(titles.get(pfid, {}), "title") or ""),
            )
            for pfid in item_ids
        ]
        title = str(_find_value_in_dict(root, "title") or "")
        logger.info(
            f"Fetched Workshop collection {collection_id} ({title!r}) with {len(items)} item(s)"
        )
        return WorkshopCollection(id=collection_id, title=title, items=items)
