from pathlib import Path

import click

from .._types import Channel
from ..config import load_settings
from ..loaders import read_file
from ..session import ValidationSession
from .utils import build_store, configure_logging, output_error, output_result


@click.command(name="check")
@click.argument("document", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("metadata", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("type_name", metavar="TYPE")
@click.argument("value_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--channel",
    type=click.Choice([c.name.lower() for c in Channel]),
    default="body",
    show_default=True,
    help="Channel the value arrives on",
)
@click.option("--exclude", multiple=True, help="Type name to exclude from validation")
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def check(
    document: Path,
    metadata: Path,
    type_name: str,
    value_file: Path,
    channel: str,
    exclude: tuple[str, ...],
    json_output: bool,
    debug: bool,
) -> None:
    """Validate a JSON or YAML value file against a named type.

    Prints the coerced value, or the violation report and exits with 1.

    \b
    Examples:
        schemaguard check openapi.json metadata.yaml Query1 query.json --channel query
        schemaguard check openapi.json metadata.yaml CreateUser body.yaml --json-output
    """
    try:
        settings = load_settings()
        configure_logging(debug, settings.log_level)

        store = build_store(document, metadata, exclude)
        session = ValidationSession(store, settings)
        value = read_file(value_file)
        result = session.validate(value, type_name, Channel[channel.upper()])
    except click.ClickException:
        raise
    except Exception as e:
        output_error(e, json_output, debug)
        return

    if result.report is None:
        output_result(result.value, json_output)
        return

    if json_output:
        output_result(result.report.to_error_body(), json_output, status="invalid")
    else:
        click.echo(click.style("❌ Validation failed!", fg="red", bold=True))
        for line in result.report.describe():
            click.echo(f"  {click.style('✗', fg='red')} {line}")
    raise click.exceptions.Exit(1)
