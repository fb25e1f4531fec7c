from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from multibound.models.collection import WorkshopCollection


class MultiBoundError(Exception):
    """Base class for every error raised by the instance registry"""

    pass


class ParseError(MultiBoundError):
    """
    Raised when an instance.json cannot be decoded
    into a configuration object
    """

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path = path


class InstanceIOError(MultiBoundError, OSError):
    """
    Raised when an instance directory cannot be created
    or its configuration cannot be written
    """

    pass


class CollisionError(MultiBoundError):
    """Raised when the target directory of a new instance already exists."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Directory already exists: {path}")
        self.path = path


class LaunchError(MultiBoundError):
    pass


class RegistryBusyError(MultiBoundError):
    """Raised when a mutating registry operation is requested while another is in flight."""

    pass


class WorkshopSyncError(MultiBoundError):
    pass


class NotFoundError(WorkshopSyncError):
    """Raised when an id does not resolve to a Workshop collection."""

    def __init__(self, collection_id: str) -> None:
        super().__init__(f"Workshop collection not found: {collection_id!r}")
        self.collection_id = collection_id


class NetworkError(WorkshopSyncError):
    pass


class PartialContentError(WorkshopSyncError):
    """
    Raised after a sync when some collection items could not be
    materialized. The items that did succeed have already been applied.
    """

    def __init__(
        self, failed_ids: list[str], collection: "WorkshopCollection | None" = None
    ) -> None:
        super().__init__(
            f"{len(failed_ids)} Workshop item(s) failed to download: "
            + ", ".join(failed_ids)
        )
        self.failed_ids = failed_ids
        self.collection = collection
