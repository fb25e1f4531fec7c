#!/usr/bin/env python3
import sys
import traceback
from logging import WARNING, getLogger
from types import TracebackType
from typing import Type

import loguru
from loguru import logger

from multibound.utils.app_info import AppInfo
from multibound.utils.obfuscate_message import obfuscate_message

DEBUG_FLAG = "--debug"


def handle_exception(
    exc_type: Type[BaseException],
    exc_value: BaseException,
    exc_traceback: TracebackType | None,
) -> None:
    """
    Called through sys.excepthook for any exception nothing else handled.
    The error is logged to the log file before the process exits.
    """
    # Ignore KeyboardInterrupt exceptions, for when running through the terminal
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
    else:
        logger.opt(exception=(exc_type, exc_value, exc_traceback)).error(
            "MultiBound has failed with an uncaught exception"
        )
        sys.stderr.write(
            "".join(traceback.format_exception(exc_type, exc_value, exc_traceback))
        )
    sys.exit(1)


def formatter(record: "loguru.Record") -> str:
    """Custom formatter for loguru logger"""
    format_string = (
        "[{level}]"
        "[{time:YYYY-MM-DD HH:mm:ss}]"
        "[{process.id}]"
        "[{thread.name}]"
        "[{module}]"
        "[{function}][{line}]"
        " : "
    )

    record["extra"]["obfuscated_message"] = obfuscate_message(record["message"])
    return format_string + "{extra[obfuscated_message]}\n{exception}"


def setup_logging(debug_mode: bool) -> None:
    """
    Log to MultiBound.log in the user log folder and WARNING or higher to stderr.

    The previous run's log is kept as MultiBound.old.log.
    """
    app_info = AppInfo()
    app_info.ensure_folders()

    log_file = app_info.user_log_folder / (app_info.app_name + ".log")
    old_log_file = app_info.user_log_folder / (app_info.app_name + ".old.log")
    if old_log_file.exists() and old_log_file.is_file():
        old_log_file.unlink()
    if log_file.exists() and log_file.is_file():
        log_file.rename(old_log_file)

    # Remove the default stderr logger
    logger.remove()

    logger.add(log_file, level="DEBUG" if debug_mode else "INFO", format=formatter)
    logger.add(sys.stderr, level="WARNING", format=formatter, colorize=False)

    # This contains full request URLs
    getLogger("urllib3").setLevel(WARNING)


def main() -> None:
    # Set the log level from the presence (or absence) of a "DEBUG" file in the app data folder
    debug_file_path = AppInfo().app_storage_folder / "DEBUG"
    debug_mode = debug_file_path.is_file()
    if DEBUG_FLAG in sys.argv[1:]:
        sys.argv.remove(DEBUG_FLAG)
        debug_mode = True

    setup_logging(debug_mode)
    sys.excepthook = handle_exception

    logger.info(f"Initializing MultiBound: {AppInfo().app_version}")

    from multibound.cli.main import cli

    cli()


if __name__ == "__main__":
    main()
