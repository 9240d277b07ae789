import json
import logging
import os
import traceback
from pathlib import Path
from typing import Any

import click

from ..loaders import load_document, load_metadata
from ..store import SchemaStore

DEBUG_ENV_VAR = "SCHEMAGUARD_DEBUG"
TRUTHY = frozenset({"1", "true", "yes", "on"})


def debug_from_env() -> bool:
    """Whether ``SCHEMAGUARD_DEBUG`` asks for debug output."""
    return os.environ.get(DEBUG_ENV_VAR, "").strip().lower() in TRUTHY


def configure_logging(debug: bool = False, log_level: str | None = None) -> None:
    """Send schemaguard logs to stderr.

    ``debug`` (or ``SCHEMAGUARD_DEBUG``) forces DEBUG; otherwise ``log_level``
    is used, falling back to WARNING for unknown names.
    """
    if debug or debug_from_env():
        level = logging.DEBUG
    else:
        level = getattr(logging, (log_level or "WARNING").upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Repeated invocations in one process must not stack handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("%(levelname)s:%(name)s:%(message)s"))
    root_logger.addHandler(stream_handler)

    logging.getLogger("schemaguard").setLevel(level)


def output_result(result: Any, json_output: bool = False, status: str = "ok") -> None:
    """Output a result in either JSON or human-readable format.

    Args:
        result: The result to output
        json_output: Whether to output in JSON format
        status: Status reported alongside a JSON result
    """
    if json_output:
        click.echo(json.dumps({"status": status, "result": result}, indent=2, default=str))
    elif isinstance(result, list):
        for row in result:
            click.echo(row)
    else:
        click.echo(result)


def output_error(error: Exception, json_output: bool = False, debug: bool = False) -> None:
    """Report ``error`` and abort the command.

    JSON output goes to stdout as ``{"status": "error", "error": ...}``;
    text goes to stderr. ``debug`` (or ``SCHEMAGUARD_DEBUG``) adds the
    exception type and traceback.
    """
    debug = debug or debug_from_env()
    payload: dict[str, Any] = {"status": "error", "error": str(error)}
    if debug:
        payload["type"] = type(error).__name__
        payload["traceback"] = "".join(traceback.format_exception(error))

    if json_output:
        click.echo(json.dumps(payload, indent=2))
    else:
        click.echo(f"Error: {payload['error']}", err=True)
        if debug:
            click.echo(f"\n{payload['type']}:\n{payload['traceback']}", err=True)

    raise click.Abort()


def build_store(document: Path, metadata: Path, exclude: tuple[str, ...]) -> SchemaStore:
    """Load a document and metadata file into a schema store.

    Exclusions given on the command line are added to the ones in the
    metadata file.
    """
    types, exclusions = load_metadata(metadata)
    return SchemaStore.build(load_document(document), types, [*exclusions, *exclude])
