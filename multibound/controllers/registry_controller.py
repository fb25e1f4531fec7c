import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator

from loguru import logger
from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal

from multibound.controllers.instance_store import InstanceStore
from multibound.controllers.workshop_sync import WorkshopSync
from multibound.models.config import Config
from multibound.models.instance import InstanceRecord
from multibound.utils.exception import (
    CollisionError,
    InstanceIOError,
    NotFoundError,
    PartialContentError,
    RegistryBusyError,
)
from multibound.utils.launcher import launch_instance, validate_executable
from multibound.utils.paths import sanitize_filename, splice_path


class RegistryTask(QRunnable):
    """
    QRunnable running one registry operation off the calling thread.

    The registry is marked busy when the task is submitted and released when
    it finishes, so other mutating calls are rejected in between.
    """

    class Signals(QObject):
        """Signal container for RegistryTask."""

        finished = Signal(object)  # operation result
        failed = Signal(object)  # exception raised by the operation

    def __init__(
        self,
        registry: "InstanceRegistry",
        token: object,
        operation: Callable[..., Any],
        *args: Any,
    ) -> None:
        super().__init__()
        self.registry = registry
        self.token = token
        self.operation = operation
        self.args = args
        self.signals = self.Signals()
        self.setAutoDelete(False)

    def run(self) -> None:
        self.registry._adopt(self.token)
        try:
            result = self.operation(*self.args)
        except Exception as e:
            logger.error(f"Registry task {self.operation.__name__} failed: {e}")
            self.registry._release(self.token)
            self.signals.failed.emit(e)
            return
        self.registry._release(self.token)
        self.signals.finished.emit(result)


class InstanceRegistry(QObject):
    """
    Owns the loaded instances and runs the create / update / launch flows.

    Instances are identified by their path. The whole set is rebuilt from
    disk on every refresh. Only one mutating operation runs at a time; while
    one is in flight the others raise RegistryBusyError, lookups keep
    answering from the last loaded snapshot.
    """

    busy_changed = Signal(bool)
    instances_refreshed = Signal(str)  # selected path, "" for none

    def __init__(
        self,
        config: Config,
        store: InstanceStore | None = None,
        sync: WorkshopSync | None = None,
    ) -> None:
        super().__init__()
        self.config = config
        self.store = store or InstanceStore()
        self.sync = sync or WorkshopSync(config)

        self._instances: tuple[InstanceRecord, ...] = ()
        self._selected_path: str = ""

        self._lock = threading.Lock()
        self._owner: object | None = None
        self._local = threading.local()

    # Busy state

    @property
    def is_busy(self) -> bool:
        return self._owner is not None

    def _acquire(self, operation: str) -> object | None:
        """Return a new token if this call became the owner, None if nested."""
        current = getattr(self._local, "token", None)
        with self._lock:
            if self._owner is not None:
                if self._owner is current:
                    return None
                raise RegistryBusyError(
                    f"Cannot {operation}: another registry operation is in progress"
                )
            token = object()
            self._owner = token
        self._local.token = token
        self.busy_changed.emit(True)
        return token

    def _adopt(self, token: object) -> None:
        self._local.token = token

    def _release(self, token: object) -> None:
        with self._lock:
            if self._owner is not token:
                return
            self._owner = None
        self._local.token = None
        self.busy_changed.emit(False)

    @contextmanager
    def _operation(self, operation: str) -> Iterator[None]:
        token = self._acquire(operation)
        try:
            yield
        finally:
            if token is not None:
                self._release(token)

    def submit(self, operation: Callable[..., Any], *args: Any) -> RegistryTask:
        """
        Run a registry operation on the global thread pool.

        Example:
            task = registry.submit(registry.update_from_workshop, record)
            task.signals.finished.connect(on_done)
            task.signals.failed.connect(on_error)

        :raises RegistryBusyError: if an operation is already in flight
        """
        name = getattr(operation, "__name__", "run task")
        token = self._acquire(name)
        if token is None:
            raise RegistryBusyError(
                f"Cannot {name}: tasks cannot be submitted from a running operation"
            )
        # The submitting thread does not own the operation, the worker does
        self._local.token = None
        task = RegistryTask(self, token, operation, *args)
        QThreadPool.globalInstance().start(task)
        return task

    # Lookups

    @property
    def instances(self) -> tuple[InstanceRecord, ...]:
        return self._instances

    def find_by_path(self, path: str | Path) -> InstanceRecord | None:
        key = str(Path(path))
        return next((i for i in self._instances if i.path == key), None)

    def find_by_collection_id(self, collection_id: str) -> InstanceRecord | None:
        """
        First instance linked to a collection, by sorted path.

        Several instances may reference the same collection, sorting keeps
        the answer independent of directory enumeration order.
        """
        if not collection_id:
            return None
        matches = sorted(
            (i for i in self._instances if i.workshop_id == collection_id),
            key=lambda i: i.path,
        )
        return matches[0] if matches else None

    def find_by_name(self, name: str) -> InstanceRecord | None:
        """Instance whose directory name or display name matches, by sorted path."""
        for record in sorted(self._instances, key=lambda i: i.path):
            if Path(record.path).name == name or record.display_name == name:
                return record
        return None

    def selected_instance(self) -> InstanceRecord | None:
        if not self._selected_path:
            return None
        return self.find_by_path(self._selected_path)

    def select(self, path: str | Path | None) -> InstanceRecord | None:
        record = self.find_by_path(path) if path else None
        self._selected_path = record.path if record else ""
        return record

    # Operations

    def validate_executable(self) -> None:
        validate_executable(self.config)

    def refresh(self, focus_path: str | Path | None = None) -> InstanceRecord | None:
        """
        Reload every instance from the instance root.

        :param focus_path: path to select afterwards, defaults to the current selection
        :return: the selected record, if it was loaded again
        """
        with self._operation("refresh"):
            sel_path = str(focus_path) if focus_path else self._selected_path
            self._instances = tuple(self.store.load_all(self.config.instance_root))
            selected = self.select(sel_path)
            logger.info(
                f"Refreshed registry: {len(self._instances)} instance(s), "
                f"selected {selected.path if selected else None}"
            )
            self.instances_refreshed.emit(selected.path if selected else "")
            return selected

    def launch(self, record: InstanceRecord | None = None) -> int | None:
        """
        Launch an instance, the selected one by default.

        :return: PID of the game process, None if nothing was selected
        :raises LaunchError: if the executable is invalid or the game cannot be started
        """
        with self._operation("launch"):
            record = record or self.selected_instance()
            if record is None:
                logger.debug("Launch requested without an instance")
                return None
            return launch_instance(record, self.config)

    def update_from_workshop(
        self, record: InstanceRecord | None = None
    ) -> InstanceRecord | None:
        """
        Re-sync an instance with its Workshop collection, save it and refresh.

        On PartialContentError the items that did download are saved before
        the error is re-raised. Any other error leaves the instance on disk as it was.

        :return: the reloaded record
        :raises NotFoundError: if the instance is not linked to a collection
        """
        with self._operation("update from Workshop"):
            record = record or self.selected_instance()
            if record is None:
                return None
            if not record.workshop_id:
                raise NotFoundError(record.workshop_id)

            # Work on a copy so a failed sync never touches the snapshot
            working = InstanceRecord(
                path=record.path, configuration=record.copy_configuration()
            )
            try:
                self.sync.resolve(working, working.workshop_id, True)
            except PartialContentError:
                self.store.save(working)
                self.refresh(working.path)
                raise
            self.store.save(working)
            return self.refresh(working.path)

    def create_from_workshop(
        self,
        collection_id: str,
        choose_name: Callable[[str], str | None] | None = None,
    ) -> InstanceRecord | None:
        """
        Create a new instance from a Workshop collection.

        If an instance for the collection already exists it is updated instead.
        Otherwise the collection's title is fetched and offered to
        choose_name, which returns the directory name for the new instance
        (None or "" cancels). Without choose_name the title is used.

        :return: the new or updated record, None if cancelled or unresolved
        :raises CollisionError: if the chosen directory already exists
        """
        if not collection_id:
            return None
        with self._operation("create from Workshop"):
            existing = self.find_by_collection_id(collection_id)
            if existing is not None:
                logger.info(
                    f"Collection {collection_id} already has instance {existing.path}, updating it"
                )
                return self.update_from_workshop(existing)

            draft = InstanceRecord.draft(collection_id)
            self.sync.resolve(draft, collection_id, False)
            if not draft.display_name:
                logger.warning(f"Collection {collection_id} did not resolve to a name")
                return None

            name = choose_name(draft.display_name) if choose_name else None
            if choose_name is not None and not name:
                logger.info("Instance creation cancelled")
                return None
            name = sanitize_filename(name or draft.display_name)
            path = splice_path(self.config.instance_root, name)
            if not path:
                raise InstanceIOError(f"Invalid instance directory name: {name!r}")
            if Path(path).exists():
                logger.warning(f"Cannot create instance, directory already exists: {path}")
                raise CollisionError(path)

            draft.path = path
            try:
                self.store.save(draft)
            except InstanceIOError:
                # Remove the directory save() created
                instance_dir = Path(path)
                if instance_dir.is_dir() and not any(instance_dir.iterdir()):
                    instance_dir.rmdir()
                raise
            logger.info(f"Created instance {path} from collection {collection_id}")
            return self.refresh(path)
