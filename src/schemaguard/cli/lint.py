from pathlib import Path

import click

from ..compiler import NodeCompiler
from ..config import load_settings
from .utils import build_store, configure_logging, output_error, output_result


def _format_lint_result(checked: list[str], errors: dict[str, str]) -> str:
    output = []
    output.append(f"\n{click.style('🔍 Lint Results', fg='cyan', bold=True)}")
    output.append(f"   Compiled {click.style(str(len(checked)), fg='yellow')} named types")

    if errors:
        output.append(f"\n{click.style('❌ Failed to compile:', fg='red', bold=True)}")
        for name in sorted(errors):
            output.append(f"  {click.style('✗', fg='red')} {name}")
            output.append(f"    {click.style('Error:', fg='red')} {errors[name]}")
    else:
        output.append(f"\n{click.style('🎉 All types compile!', fg='green', bold=True)}")

    return "\n".join(output)


@click.command(name="lint")
@click.argument("document", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("metadata", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--exclude", multiple=True, help="Type name to exclude from validation")
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def lint(
    document: Path, metadata: Path, exclude: tuple[str, ...], json_output: bool, debug: bool
) -> None:
    """Compile every named type and report compilation errors.

    \b
    Examples:
        schemaguard lint openapi.json metadata.yaml
        schemaguard lint openapi.json metadata.yaml --exclude RawPayload
        schemaguard lint openapi.json metadata.yaml --json-output
    """
    try:
        settings = load_settings()
        configure_logging(debug, settings.log_level)

        store = build_store(document, metadata, exclude)
        compiler = NodeCompiler(store, cache=settings.cache_validators)
        errors = {name: str(e) for name, e in compiler.compile_errors().items()}
        checked = store.type_names()
    except click.ClickException:
        raise
    except Exception as e:
        output_error(e, json_output, debug)
        return

    if json_output:
        output_result(
            {"checked": checked, "errors": errors},
            json_output,
            status="error" if errors else "ok",
        )
    else:
        click.echo(_format_lint_result(checked, errors))

    if errors:
        raise click.exceptions.Exit(1)
