"""Tools command for listing the built-in tools."""

import typer
from rich import box
from rich.markup import escape
from rich.table import Table

from toolcall_llm.cli.common import console
from toolcall_llm.tools import create_default_registry


def tools_command(
    manifest: bool = typer.Option(False, "--manifest", help="Print the native function-calling manifest as JSON"),
):
    """List the tools the model can call."""
    registry = create_default_registry()

    if manifest:
        console.print_json(data=registry.manifest())
        return

    table = Table(title="Registered Tools", box=box.ROUNDED)
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Parameters", style="dim")

    for spec in registry.schemas():
        params = []
        for param_name, param in spec.parameters.items():
            marker = "" if param.required else "?"
            params.append(f"{param_name}{marker}: {param.type}")
        table.add_row(spec.name, escape(spec.description), ", ".join(params) or "-")

    console.print(table)
