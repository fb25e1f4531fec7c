import copy
from pathlib import Path
from typing import TYPE_CHECKING, Any, Self

import msgspec

from multibound.utils.constants import (
    DEFAULT_ASSET_SOURCES,
    DEFAULT_SAVE_PATH,
)
from multibound.utils.paths import (
    game_root_from_executable,
    resolve_placeholder,
    workshop_content_folder,
)

if TYPE_CHECKING:
    from multibound.models.config import Config


class InstanceRecord(msgspec.Struct):
    """
    Data model for one game instance.

    `path` is the instance directory and the record's key. It is empty for
    a draft that has not been saved yet. `configuration` is the decoded
    instance.json, kept as a plain JSON object so fields this application
    does not know about survive a save.

    Pure data class, persistence is handled by InstanceStore.
    """

    path: str = ""
    configuration: dict[str, Any] = msgspec.field(default_factory=dict)

    @classmethod
    def draft(cls, workshop_id: str) -> Self:
        """Build an unsaved record from the minimal template for a new instance."""
        return cls(
            configuration={
                "info": {"workshopId": workshop_id},
                "savePath": DEFAULT_SAVE_PATH,
                "assetSources": list(DEFAULT_ASSET_SOURCES),
            }
        )

    @property
    def is_draft(self) -> bool:
        return not self.path

    @property
    def info(self) -> dict[str, Any]:
        info = self.configuration.get("info")
        return info if isinstance(info, dict) else {}

    @property
    def workshop_id(self) -> str:
        value = self.info.get("workshopId", "")
        return value if isinstance(value, str) else str(value)

    @property
    def display_name(self) -> str:
        """`info.name` if set, otherwise the directory name."""
        name = self.info.get("name", "")
        if isinstance(name, str) and name:
            return name
        if self.path:
            return Path(self.path).name
        return ""

    @property
    def save_path(self) -> str:
        value = self.configuration.get("savePath", DEFAULT_SAVE_PATH)
        return value if isinstance(value, str) else DEFAULT_SAVE_PATH

    @property
    def asset_sources(self) -> list[Any]:
        value = self.configuration.get("assetSources", [])
        return list(value) if isinstance(value, list) else []

    def copy_configuration(self) -> dict[str, Any]:
        return copy.deepcopy(self.configuration)

    def resolve_path(self, value: str, config: "Config") -> str:
        """Expand an inst:, game: or workshop: placeholder for this instance."""
        return resolve_placeholder(
            value,
            self.path,
            game_root_from_executable(config.executable_path),
            workshop_content_folder(config),
        )
