import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from modcatalog.utils.obfuscate_message import obfuscate_message

if TYPE_CHECKING:
    import loguru

LOG_NAME = "ModCatalog"
UPDATER_LOG_NAME = "ModCatalog_Updater"


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


def updater_formatter(record: "loguru.Record") -> str:
    """Shorter format for the updater log, which is read by curators."""
    record["extra"]["obfuscated_message"] = obfuscate_message(record["message"])
    return "{time:YYYY-MM-DD HH:mm:ss} - {level: <8} {extra[obfuscated_message]}\n{exception}"


def _rotate(log_file: Path) -> None:
    """
    Keep one previous log around: foo.log is renamed to foo.old.log, replacing
    any older one. loguru creates the new foo.log itself.
    """
    old_log_file = log_file.with_suffix(".old.log")
    if old_log_file.exists() and old_log_file.is_file():
        old_log_file.unlink()
    if log_file.exists() and log_file.is_file():
        log_file.rename(old_log_file)


def setup_logging(log_folder: Path, debug: bool = False) -> Path:
    """
    Replace loguru's default sink with the application sinks.

    * ``ModCatalog.log`` gets everything at INFO, or DEBUG in debug mode
    * ``ModCatalog_Updater.log`` only gets messages bound with ``updater=True``
    * stderr gets WARNING and up

    Each sink serialises its own writes, so messages from different threads never interleave.

    :param log_folder: Folder for the log files, created if needed
    :param debug: Log debug messages to the files
    :return: The path of the updater log
    """
    log_folder.mkdir(parents=True, exist_ok=True)
    log_file = log_folder / f"{LOG_NAME}.log"
    updater_log_file = log_folder / f"{UPDATER_LOG_NAME}.log"
    _rotate(log_file)
    _rotate(updater_log_file)

    level = "DEBUG" if debug else "INFO"

    # Remove the default stderr logger
    logger.remove()

    logger.add(log_file, level=level, format=formatter, encoding="utf-8")
    logger.add(
        updater_log_file,
        level=level,
        format=updater_formatter,
        filter=lambda record: bool(record["extra"].get("updater")),
        encoding="utf-8",
    )
    logger.add(sys.stderr, level="WARNING", format=formatter, colorize=False)

    # requests logs every connection through urllib3
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return updater_log_file
