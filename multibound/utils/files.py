import os
from pathlib import Path
from tempfile import NamedTemporaryFile

from loguru import logger


def atomic_write_bytes(path: str | Path, data: bytes) -> None:
    """
    Write data to path so that readers only ever see the old or the new file.

    The data goes to a temporary file in the destination folder which is then
    moved over the target with os.replace. The temporary file is removed if
    anything fails.

    :param path: the file to write
    :param data: the full contents of the file
    :raises OSError: if the temporary file cannot be written or moved into place
    """
    target = Path(path)
    tmp_name = ""
    try:
        with NamedTemporaryFile(
            "wb",
            dir=target.parent,
            prefix=f".{target.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, target)
    except OSError:
        if tmp_name and os.path.exists(tmp_name):
            try:
                os.unlink(tmp_name)
            except OSError as e:
                logger.warning(f"Could not remove temporary file {tmp_name}: {e}")
        raise
