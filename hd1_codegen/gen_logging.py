"""Logging for the generator: one "hd1.gen" hierarchy, levels set by the CLI."""

import logging
import sys

_LOGGER_NAME = "hd1.gen"


def get_logger(name: str = None) -> logging.Logger:
    """hd1_codegen.synthesizers.typedefs -> hd1.gen.typedefs"""
    if name is None or name == _LOGGER_NAME:
        return logging.getLogger(_LOGGER_NAME)
    return logging.getLogger(f"{_LOGGER_NAME}.{name.rsplit('.', 1)[-1]}")


def configure_gen_logging(verbose: bool = False, quiet: bool = False) -> None:
    """DEBUG with --verbose, WARNING with --quiet, INFO otherwise."""
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO

    gen_logger = logging.getLogger(_LOGGER_NAME)
    gen_logger.setLevel(level)

    # Each CLI invocation may run against a different stderr (e.g. CliRunner)
    for handler in gen_logger.handlers:
        if isinstance(handler.formatter, _GenFormatter):
            handler.setLevel(level)
            handler.setStream(sys.stderr)
            return

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(_GenFormatter())
    gen_logger.addHandler(handler)
    gen_logger.propagate = False


class _GenFormatter(logging.Formatter):
    """Messages already carry their [PHASE] tags."""

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()
