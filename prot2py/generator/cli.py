"""Command-line interface for prot2py code generation."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
from lark.exceptions import LarkError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from prot2py import __version__
from prot2py.generator import parse, python
from prot2py.generator.bitfield import CompiledBitField, compile_bitfield
from prot2py.generator.file import DEFAULT_RUNTIME_IMPORT, SinkWriteFailure, render_schema
from prot2py.generator.sizes import SchemaSizeInfo, calculate_sizes
from prot2py.generator.types import Schema
from prot2py.generator.validation import ValidationError
from prot2py.schemas import render_all

logger = logging.getLogger(__name__)

err_console = Console(stderr=True)


def _load(input_file: str) -> Schema:
    with open(input_file, encoding="utf-8") as f:
        text = f.read()
    logger.debug("parsing %s", input_file)
    return parse(text)


def _fail(message: str) -> NoReturn:
    err_console.print(f"[bold red]error:[/bold red] {escape(message)}", highlight=False)
    sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
@click.version_option(__version__, prog_name="prot2py")
def cli(verbose: bool) -> None:
    """prot2py bit-exact protocol codec generator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input schema file")
@click.option("--output", "-o", "output_file", required=True, help="Output file")
@click.option(
    "--runtime-import",
    "runtime_import",
    default=DEFAULT_RUNTIME_IMPORT,
    show_default=True,
    envvar="PROT2PY_RUNTIME_IMPORT",
    help="Module the generated code imports its runtime from",
)
def gen(input_file: str, output_file: str, runtime_import: str) -> None:
    """Generate Python codecs from a schema file."""
    try:
        schema = _load(input_file)
        title = f"Codecs for {Path(input_file).name}."
        genfile = render_schema(schema, runtime_import, title)
        genfile.write_file(output_file)
    except (OSError, LarkError, ValidationError, SinkWriteFailure) as err:
        _fail(str(err))


@cli.command()
@click.option("--output", "-o", "output_path", default=".", help="Output directory")
@click.option("--name", default="prot2py_runtime", help="Runtime package name")
def runtime(output_path: str, name: str) -> None:
    """Copy the runtime package next to generated code."""
    runtime_dir = Path(output_path) / name
    try:
        runtime_dir.mkdir(parents=True, exist_ok=True)
        for filename, content in python.runtime().items():
            (runtime_dir / filename).write_text(content, encoding="utf-8")
    except OSError as err:
        _fail(f"Could not write runtime to {runtime_dir}: {err}")
    click.echo(f"Generated Python runtime in {runtime_dir}")


@cli.command()
@click.option("--output", "-o", "output_path", required=True, help="Output directory")
@click.option("--package", default="ieee802154", help="Package name of the generated modules")
@click.option(
    "--runtime-import",
    "runtime_import",
    default=DEFAULT_RUNTIME_IMPORT,
    show_default=True,
    envvar="PROT2PY_RUNTIME_IMPORT",
    help="Module the generated code imports its runtime from",
)
def builtin(output_path: str, package: str, runtime_import: str) -> None:
    """Generate the built-in IEEE 802.15.4 codecs."""
    errors = render_all(Path(output_path) / package, package, runtime_import)
    for error in errors:
        err_console.print(f"[bold red]error:[/bold red] {escape(str(error))}", highlight=False)
    if errors:
        sys.exit(1)
    click.echo(f"Generated {package} in {output_path}")


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input schema file")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(input_file: str, output_json: bool) -> None:
    """Display bit layouts and structure sizes."""
    try:
        schema = _load(input_file)
        layouts = [compile_bitfield(b) for b in schema.bitfields]
        size_info = calculate_sizes(schema)
    except (OSError, LarkError, ValidationError) as err:
        _fail(str(err))

    if output_json:
        _output_json(size_info, layouts)
    else:
        _output_plain(size_info, layouts)


def _format_range(min_size: int, max_size: int) -> str:
    if min_size == max_size:
        return f"{min_size} bytes"
    return f"{min_size}-{max_size} bytes"


def _output_json(size_info: SchemaSizeInfo, layouts: list[CompiledBitField]) -> None:
    """Output schema info as JSON."""
    data: dict = {
        "bitfields": {},
        "structs": {},
    }

    for layout in layouts:
        data["bitfields"][layout.name] = {
            "width": layout.width,
            "size": layout.size,
            "reserved_mask": layout.reserved_mask,
            "slots": [
                {
                    "name": slot.name,
                    "offset": slot.offset,
                    "width": slot.width,
                    "values": {m.name: m.value for m in slot.members},
                }
                for slot in layout.slots
            ],
        }

    for name, struct_info in size_info.structs.items():
        data["structs"][name] = {
            "min_size": struct_info.size.min_size,
            "max_size": struct_info.size.max_size,
            "kind": struct_info.size.kind.value,
            "variants": {
                field: {variant: size.min_size for variant, size in variants.items()}
                for field, variants in struct_info.variants.items()
            },
        }

    click.echo(json.dumps(data, indent=2))


def _output_plain(size_info: SchemaSizeInfo, layouts: list[CompiledBitField]) -> None:
    """Output schema info using rich text formatting."""
    console = Console()

    for layout in layouts:
        console.print(f"[bold cyan]Bitfield {layout.name}[/bold cyan] ({layout.width} bits)")

        slot_table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
        slot_table.add_column("Bits", style="yellow", justify="right")
        slot_table.add_column("Name", style="white")
        slot_table.add_column("Values", style="dim")

        rows = [
            (s.offset, s.width, s.name, ", ".join(m.name for m in s.members) or "numeric")
            for s in layout.slots
        ]
        rows.extend((r.offset, r.width, "reserved", "") for r in layout.reserved)
        for offset, width, name, values in sorted(rows):
            slot_table.add_row(f"{offset}-{offset + width - 1}", name, values)

        console.print(slot_table)
        console.print()

    console.print("[bold cyan]Structs[/bold cyan]")
    struct_table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    struct_table.add_column("Name", style="white")
    struct_table.add_column("Size", style="yellow", justify="right")
    struct_table.add_column("Kind", style="dim")

    for name, struct_info in size_info.structs.items():
        size = struct_info.size
        struct_table.add_row(name, _format_range(size.min_size, size.max_size), size.kind.value)

    console.print(struct_table)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
