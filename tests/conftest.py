import json
from pathlib import Path
from typing import Any, Callable, Generator

import pytest
from PySide6.QtCore import QCoreApplication

from multibound.models.collection import WorkshopCollection, WorkshopItem
from multibound.models.config import Config
from multibound.utils.exception import NotFoundError


@pytest.fixture(scope="session")
def qapp() -> Generator[QCoreApplication, None, None]:
    """Create a QCoreApplication instance for Qt tests."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture
def instance_root(tmp_path: Path) -> Path:
    root = tmp_path / "instances"
    root.mkdir()
    return root


@pytest.fixture
def config(tmp_path: Path, instance_root: Path) -> Config:
    game_dir = tmp_path / "Starbound" / "linux"
    game_dir.mkdir(parents=True)
    executable = game_dir / "starbound"
    executable.write_text("#!/bin/sh\n")
    executable.chmod(0o755)
    return Config(
        instance_root=str(instance_root),
        executable_path=str(executable),
        steamcmd_prefix=str(tmp_path / "steamcmd"),
        workshop_content_folder=str(tmp_path / "workshop"),
    )


@pytest.fixture
def write_instance() -> Callable[[Path, str, dict[str, Any]], Path]:
    """Write an instance.json into root/name and return the instance folder."""

    def _write(root: Path, name: str, configuration: dict[str, Any]) -> Path:
        folder = root / name
        folder.mkdir(parents=True, exist_ok=True)
        (folder / "instance.json").write_text(json.dumps(configuration))
        return folder

    return _write


class FakeWorkshopClient:
    """Stands in for SteamWebAPIClient with canned collections."""

    def __init__(self, collections: dict[str, WorkshopCollection]) -> None:
        self.collections = collections
        self.calls: list[str] = []
        self.error: Exception | None = None

    def fetch_collection(self, collection_id: str) -> WorkshopCollection:
        self.calls.append(collection_id)
        if self.error is not None:
            raise self.error
        if collection_id not in self.collections:
            raise NotFoundError(collection_id)
        return self.collections[collection_id]


class FakeDownloader:
    """Stands in for SteamcmdDownloader; only ids in `available` succeed."""

    def __init__(self, available: set[str] | None = None) -> None:
        self.available = available
        self.calls: list[tuple[list[str], Any]] = []

    def download(self, publishedfileids: list[str], destination: Any = None) -> list[str]:
        self.calls.append((list(publishedfileids), destination))
        if self.available is None:
            return list(publishedfileids)
        return [i for i in publishedfileids if i in self.available]


@pytest.fixture
def collection() -> WorkshopCollection:
    return WorkshopCollection(
        id="123",
        title="Frackin Pack",
        items=[WorkshopItem(id="1001", title="Frackin"), WorkshopItem(id="1002", title="Tech")],
    )


@pytest.fixture
def workshop_client(collection: WorkshopCollection) -> FakeWorkshopClient:
    return FakeWorkshopClient({collection.id: collection})


@pytest.fixture
def downloader() -> FakeDownloader:
    return FakeDownloader()


@pytest.fixture
def partial_downloader() -> FakeDownloader:
    """Only item 1001 of the test collection can be downloaded."""
    return FakeDownloader(available={"1001"})
