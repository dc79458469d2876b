"""Lightweight logging setup for the command line."""

import logging
import sys

PACKAGE_LOGGER = "gemini_keystore"
_HANDLER_NAME = "gemini_keystore.cli"


def configure_logging(level: int = logging.WARNING) -> None:
    # Package logger only; stderr keeps stdout free for command output.
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        logging.Formatter("[%(asctime)s] %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S")
    )
    logger.addHandler(handler)
    logger.setLevel(level)
