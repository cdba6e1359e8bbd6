"""
Logging setup for the rules engine.

Every engine logger lives under the `crawler` namespace, so a single rich
handler on the root logger formats the combat, loot and error messages alike.
Messages may carry a context dictionary, rendered after them as key=value
pairs.
"""

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "crawler"


def setup_logging(level: int = logging.INFO, width: int = 120) -> RichHandler:
    """
    Installs a rich handler on the root logger.

    Args:
        level (int): The logging level. Defaults to logging.INFO.
        width (int): The console width used for wrapping.

    Returns:
        RichHandler: The installed handler.

    """
    handler = RichHandler(
        console=Console(width=width, force_terminal=True, force_jupyter=False),
        show_time=True,
        show_level=True,
        show_path=False,
        markup=True,
        rich_tracebacks=True,
        tracebacks_show_locals=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s - %(message)s", datefmt="[%X]"))
    # Replaces handlers installed by an earlier call.
    logging.basicConfig(level=level, handlers=[handler], force=True)
    return handler


def get_logger(name: str = "") -> logging.Logger:
    """
    Returns an engine logger.

    Args:
        name (str): The component name, e.g. "combat". Empty for the
            namespace root.

    Returns:
        logging.Logger: The `crawler.<name>` logger.

    """
    if not name or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


logger = get_logger()


def format_context(message: str, context: dict[str, Any] | None = None) -> str:
    """Appends a context dictionary to a message as key=value pairs."""
    if not context:
        return message
    pairs = " ".join(f"{key}={value}" for key, value in context.items())
    return f"{message} [{pairs}]"


def log_error(message: str, context: dict[str, Any] | None = None) -> None:
    logger.error(format_context(message, context))


def log_warning(message: str, context: dict[str, Any] | None = None) -> None:
    logger.warning(format_context(message, context))


def log_info(message: str, context: dict[str, Any] | None = None) -> None:
    logger.info(format_context(message, context))


def log_debug(message: str, context: dict[str, Any] | None = None) -> None:
    logger.debug(format_context(message, context))
