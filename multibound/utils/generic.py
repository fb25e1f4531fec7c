import os
import platform
import subprocess
import sys
from pathlib import Path
from typing import Any, Generator, Tuple

from loguru import logger


def chunks(_list: list[Any], limit: int) -> Generator[list[Any], None, None]:
    """
    Split list into chunks no larger than the configured limit

    :param list: a list to break into chunks
    :param limit: maximum size of the returned list
    """
    for i in range(0, len(_list), limit):
        yield _list[i : i + limit]


def is_executable_file(executable_path: str | Path) -> bool:
    """
    Check that a path points to something the OS can run.

    On macOS an .app bundle directory is accepted as well.

    :param executable_path: the path to check
    :return: True if the path exists and is runnable
    """
    if not executable_path or not str(executable_path).strip():
        logger.info("Executable path is empty")
        return False

    path = Path(executable_path)
    if platform.system() == "Darwin" and path.suffix == ".app" and path.is_dir():
        return True
    if not path.is_file():
        logger.info(f"Executable does not exist or is not a file: {path}")
        return False
    if sys.platform != "win32" and not os.access(path, os.X_OK):
        logger.info(f"Executable is not marked as executable: {path}")
        return False
    return True


def launch_process(
    executable_path: str, args: list[str], cwd: str
) -> Tuple[int, list[str]]:
    pid = -1
    # https://stackoverflow.com/a/21805723
    if platform.system() == "Darwin" and executable_path.endswith(".app"):
        popen_args = ["open", executable_path, "--args"]
        popen_args.extend(args)
        p = subprocess.Popen(popen_args, cwd=cwd)
        pid = p.pid
    else:
        popen_args = [executable_path]
        popen_args.extend(args)

        if sys.platform == "win32":
            p = subprocess.Popen(
                popen_args,
                creationflags=subprocess.CREATE_NEW_PROCESS_GROUP,
                cwd=cwd,
            )
            pid = p.pid
        else:
            # not Windows, so assume POSIX; if not, we'll get a usable exception
            p = subprocess.Popen(popen_args, start_new_session=True, cwd=cwd)
            pid = p.pid
    return pid, popen_args
