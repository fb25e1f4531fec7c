from typing import Any

from loguru import logger

from multibound.models.collection import WorkshopCollection
from multibound.models.config import Config
from multibound.models.instance import InstanceRecord
from multibound.utils.constants import WORKSHOP_SOURCE_TYPE
from multibound.utils.exception import PartialContentError
from multibound.utils.paths import workshop_content_folder
from multibound.utils.steam.steamcmd.wrapper import SteamcmdDownloader
from multibound.utils.steam.webapi.retry import SteamWebAPIRetryConfig
from multibound.utils.steam.webapi.wrapper import SteamWebAPIClient


def is_workshop_source(source: Any) -> bool:
    return isinstance(source, dict) and source.get("type") == WORKSHOP_SOURCE_TYPE


class WorkshopSync:
    """Reconciles an instance's configuration with a Workshop collection."""

    def __init__(
        self,
        config: Config,
        client: SteamWebAPIClient | None = None,
        downloader: SteamcmdDownloader | None = None,
    ) -> None:
        self.config = config
        self.client = client or SteamWebAPIClient(
            retry_config=SteamWebAPIRetryConfig(
                max_retries=config.webapi_max_retries,
                backoff_factor=config.webapi_backoff_factor,
            ),
            timeout=config.webapi_timeout,
        )
        self.downloader = downloader or SteamcmdDownloader(
            config.steamcmd_prefix, validate=config.steamcmd_validate_downloads
        )

    def resolve(
        self, record: InstanceRecord, collection_id: str, apply_content: bool
    ) -> WorkshopCollection:
        """
        Fetch a collection and merge it into the record's configuration.

        The collection title becomes info.name and info.workshopId is set if
        the record was not linked yet. With apply_content the collection's
        items are downloaded and the workshop entries of assetSources are
        replaced by the items that are available; other entries are kept in
        place. Without it only the metadata is applied.

        The configuration is replaced in one step once everything has been
        fetched, so NotFoundError and NetworkError leave the record as it was.

        :param record: the record to update, may be a draft
        :param collection_id: Workshop id of the collection
        :param apply_content: download items and rewrite assetSources
        :return: the fetched collection
        :raises NotFoundError: if the collection does not exist
        :raises NetworkError: if the Steam WebAPI could not be reached
        :raises PartialContentError: after applying, if some items are unavailable
        """
        logger.info(
            f"Resolving Workshop collection {collection_id} for "
            f"{record.path or 'new instance'} (apply_content={apply_content})"
        )
        collection = self.client.fetch_collection(collection_id)

        configuration = record.copy_configuration()
        info = configuration.get("info")
        if not isinstance(info, dict):
            info = {}
            configuration["info"] = info
        if not info.get("workshopId"):
            info["workshopId"] = collection_id
        info["name"] = collection.title

        failed: list[str] = []
        if apply_content:
            item_ids = collection.item_ids
            available = set(
                self.downloader.download(
                    item_ids, destination=workshop_content_folder(self.config)
                )
            )
            failed = [item_id for item_id in item_ids if item_id not in available]

            sources = configuration.get("assetSources")
            if not isinstance(sources, list):
                sources = []
            kept = [source for source in sources if not is_workshop_source(source)]
            configuration["assetSources"] = kept + [
                {"type": WORKSHOP_SOURCE_TYPE, "id": item_id}
                for item_id in item_ids
                if item_id in available
            ]

        record.configuration = configuration

        if failed:
            logger.warning(
                f"{len(failed)} of {len(collection.items)} item(s) from collection "
                f"{collection_id} could not be downloaded: {failed}"
            )
            raise PartialContentError(failed, collection)
        logger.info(
            f"Collection {collection_id} ({collection.title!r}) applied to "
            f"{record.path or 'new instance'}"
        )
        return collection
