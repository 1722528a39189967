import json
from pathlib import Path

import click
import yaml

from datetime import date
from rich import pretty
from rich.console import Console
from rich.table import Table

from hd1_codegen.emitters import build_route_table
from hd1_codegen.gen_logging import configure_gen_logging
from hd1_codegen.orchestrator import BuildOptions, BuildOrchestrator
from hd1_codegen.synthesizers import ComponentCapabilityExtractor, capabilities_manifest

pretty.install()
console = Console()


def _today() -> str:
    return date.today().strftime('%Y-%m-%d')


def _overrides(strict, fail_on_missing, no_auto_routing, no_handler_validation, path_conflicts) -> dict:
    """Only flags actually given on the command line override file/env settings."""
    return {
        "strict_validation": True if strict else None,
        "fail_on_missing_handlers": True if fail_on_missing else None,
        "auto_routing": False if no_auto_routing else None,
        "handler_validation": False if no_handler_validation else None,
        "path_conflicts": path_conflicts,
    }


def build_options(f):
    """Options shared by every command that runs the pipeline."""
    decorators = [
        click.argument("schema_dir", type=click.Path(path_type=Path)),
        click.option("--handlers", "handler_root", default=".", type=click.Path(path_type=Path),
                     help="Root directory handler x-handler paths are resolved against."),
        click.option("--typedefs", "typedefs_dir", default=None, type=click.Path(path_type=Path),
                     help="Directory of TypeScript *.d.ts files to synthesize payload schemas from."),
        click.option("--components", "components_dir", default=None, type=click.Path(path_type=Path),
                     help="Directory of component-library sources to extract capabilities from."),
        click.option("--strict", is_flag=True, help="Enable strict validation (missing handlers are fatal)."),
        click.option("--fail-on-missing-handlers", "fail_on_missing", is_flag=True,
                     help="Fail the build when a handler file is missing."),
        click.option("--no-auto-routing", is_flag=True, help="Do not emit the request router."),
        click.option("--no-handler-validation", is_flag=True, help="Skip handler file checks."),
        click.option("--path-conflicts", type=click.Choice(["override", "error"], case_sensitive=False),
                     default=None, help="Same path+method in two fragments: last wins, or error."),
    ]
    for decorator in reversed(decorators):
        f = decorator(f)
    return f


def _run(schema_dir, handler_root, typedefs_dir, components_dir, out_dir, emit, **flags):
    options = BuildOptions(
        schema_dir=schema_dir,
        output_dir=Path(out_dir) if out_dir else Path("generated"),
        handler_root=handler_root,
        typedefs_dir=typedefs_dir,
        components_dir=components_dir,
        overrides=_overrides(**flags),
        emit=emit,
    )
    return BuildOrchestrator(options).run()


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
@click.option("-q", "--quiet", is_flag=True, help="Errors only.")
@click.pass_context
def cli(context, verbose, quiet):
    context.ensure_object(dict)
    configure_gen_logging(verbose=verbose, quiet=quiet)


@cli.command("generate", help="Merge schema fragments and emit router, CLI client and scripting client.")
@click.pass_context
@build_options
@click.option("--out", "out_dir", default="generated", help="Output directory (default: ./generated)")
def generate(context, schema_dir, handler_root, typedefs_dir, components_dir, out_dir, **flags):
    report = _run(schema_dir, handler_root, typedefs_dir, components_dir, out_dir, emit=True, **flags)
    if report.ok:
        for artifact in report.artifacts:
            state = "emitted" if artifact.changed else "unchanged"
            console.print(f"[{_today()}] {artifact.kind} {state}: {artifact.output_path}", style="green")
        for warning in report.warnings:
            console.print(f"[{_today()}] {warning}", style="yellow")
    else:
        console.print(f"[{_today()}] Generate failed with error(s):", style="red")
        console.print(report.format(), style="red", markup=False, soft_wrap=True)
    context.exit(report.exit_code)


@cli.command("validate", help="Load, merge and validate without emitting anything.")
@click.pass_context
@build_options
def validate(context, schema_dir, handler_root, typedefs_dir, components_dir, **flags):
    report = _run(schema_dir, handler_root, typedefs_dir, components_dir, None, emit=False, **flags)
    if report.ok:
        console.print(f"[{_today()}] Schema validation success!", style="green")
        for warning in report.warnings:
            console.print(f"[{_today()}] {warning}", style="yellow")
    else:
        console.print(f"[{_today()}] Validation failed with error(s):", style="red")
        console.print(report.format(), style="red", markup=False, soft_wrap=True)
    context.exit(report.exit_code)


@cli.command("inspect", help="Print the merged route table.")
@click.pass_context
@build_options
@click.option("--document", is_flag=True, default=False,
              help="Print the merged specification as YAML instead of the route table.")
def inspect_cmd(context, schema_dir, handler_root, typedefs_dir, components_dir, document, **flags):
    report = _run(schema_dir, handler_root, typedefs_dir, components_dir, None, emit=False, **flags)
    if report.spec is None:
        console.print(f"[{_today()}] Inspect failed with error(s):", style="red")
        console.print(report.format(), style="red", markup=False, soft_wrap=True)
        context.exit(1)

    if document:
        click.echo(yaml.safe_dump(report.spec.to_document(), sort_keys=False), nl=False)
        context.exit(report.exit_code)

    stubs = report.validation.stub_operations if report.validation else set()
    table = Table(title=str(report.spec.info.get("title") or "Routes"))
    table.add_column("Method", style="cyan")
    table.add_column("Path")
    table.add_column("operationId")
    table.add_column("Handler")
    table.add_column("Source", style="dim")
    for route in build_route_table(report.spec, stubs):
        handler = "[yellow]stub[/yellow]" if route.stub else f"{route.handler_file}:{route.handler_function}"
        source = report.spec.paths[route.path].operations_by_method[route.method].source
        table.add_row(route.method, route.path, route.operation_id, handler, source)
    console.print(table)
    for key, value in sorted(report.spec.code_generation.items()):
        console.print(f"[{_today()}] x-code-generation {key}: {value}", style="dim")
    for conflict in report.spec.conflicts:
        console.print(
            f"[{_today()}] {conflict.method} {conflict.path}: '{conflict.later_source}' "
            f"overrides '{conflict.earlier_source}'",
            style="yellow",
        )
    context.exit(report.exit_code)


@cli.command("components", help="Extract component capabilities and print them as JSON.")
@click.pass_context
@click.argument("components_dir", type=click.Path(path_type=Path))
@click.option("--out", "out_file", default=None, type=click.Path(path_type=Path),
              help="Write the manifest to a file instead of stdout.")
def components_cmd(context, components_dir, out_file):
    extractor = ComponentCapabilityExtractor()
    specs = extractor.extract_directory(components_dir)
    for warning in extractor.warnings:
        console.print(f"[{_today()}] {warning}", style="yellow")
    if extractor.errors:
        for err in extractor.errors:
            console.print(f"[{_today()}] {err}", style="red")
        context.exit(1)

    manifest = json.dumps(capabilities_manifest(specs), indent=2)
    if out_file:
        Path(out_file).write_text(manifest + "\n", encoding="utf-8")
        console.print(f"[{_today()}] {len(specs)} component(s) written to: {out_file}", style="green")
    else:
        click.echo(manifest)
    context.exit(0)


def main():
    cli(prog_name="hd1gen")


if __name__ == "__main__":
    main()
