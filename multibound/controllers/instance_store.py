import os
from pathlib import Path
from typing import Any

import msgspec
from loguru import logger

from multibound.models.instance import InstanceRecord
from multibound.utils.constants import INSTANCE_CONFIG_FILE
from multibound.utils.exception import InstanceIOError, ParseError
from multibound.utils.files import atomic_write_bytes


class InstanceStore:
    """Translates between instance directories on disk and InstanceRecords."""

    def __init__(self, config_file_name: str = INSTANCE_CONFIG_FILE) -> None:
        self.config_file_name = config_file_name

    def load_all(self, root_dir: str | Path) -> list[InstanceRecord]:
        """
        Load every instance found directly below root_dir.

        Entries that are not directories are ignored. Directories without a
        readable, well-formed configuration file are skipped and logged, so a
        single broken instance never prevents the others from loading.

        :param root_dir: the instance root folder
        :return: the loaded records in directory enumeration order
        """
        records: list[InstanceRecord] = []
        try:
            entries = list(os.scandir(root_dir))
        except FileNotFoundError:
            logger.info(f"Instance root does not exist yet: {root_dir}")
            return records
        except OSError as e:
            logger.error(f"Unable to list instance root {root_dir}: {e}")
            return records

        for entry in entries:
            try:
                if not entry.is_dir():
                    continue
            except OSError:
                continue
            record = self.load_one(Path(root_dir) / entry.name)
            if record is not None:
                records.append(record)

        logger.debug(f"Loaded {len(records)} instance(s) from {root_dir}")
        return records

    def load_one(self, dir_path: str | Path) -> InstanceRecord | None:
        """Load a single instance, or None if its configuration is missing or malformed."""
        config_file = Path(dir_path) / self.config_file_name
        if not config_file.is_file():
            logger.debug(f"Skipping {dir_path}: no {self.config_file_name}")
            return None
        try:
            configuration = self.decode(config_file.read_bytes(), str(config_file))
        except OSError as e:
            logger.warning(f"Skipping {dir_path}: unable to read {config_file}: {e}")
            return None
        except ParseError as e:
            logger.warning(f"Skipping {dir_path}: {e}")
            return None
        return InstanceRecord(path=str(dir_path), configuration=configuration)

    @staticmethod
    def decode(data: bytes, source: str = "") -> dict[str, Any]:
        try:
            configuration = msgspec.json.decode(data)
        except msgspec.DecodeError as e:
            raise ParseError(f"Malformed configuration {source}: {e}", source) from e
        if not isinstance(configuration, dict):
            raise ParseError(
                f"Configuration {source} is not an object "
                f"(got {type(configuration).__name__})",
                source,
            )
        return configuration

    @staticmethod
    def encode(configuration: dict[str, Any]) -> bytes:
        return msgspec.json.format(msgspec.json.encode(configuration), indent=4)

    def save(self, record: InstanceRecord) -> None:
        """
        Write the record's configuration into its directory.

        The write is atomic: on failure the previous file (if any) is left untouched.

        :raises InstanceIOError: if the record has no path, the directory cannot
            be created or the file cannot be written
        """
        if not record.path:
            raise InstanceIOError("Cannot save an instance without a path")

        instance_dir = Path(record.path)
        try:
            data = self.encode(record.configuration)
        except (TypeError, msgspec.EncodeError) as e:
            raise InstanceIOError(
                f"Unable to encode configuration for {instance_dir}: {e}"
            ) from e
        try:
            instance_dir.mkdir(parents=True, exist_ok=True)
            atomic_write_bytes(instance_dir / self.config_file_name, data)
        except OSError as e:
            logger.error(f"Unable to save instance {instance_dir}: {e}")
            raise InstanceIOError(f"Unable to save instance {instance_dir}: {e}") from e
        logger.info(f"Saved instance {instance_dir}")
