"""CLI commands for Verigpu."""

import typer
from click import Context
from typer.core import TyperGroup

from verigpu.cli.db_commands import db_app
from verigpu.cli.testing_commands import test_scoring
from verigpu.cli.validator_commands import validate


class OrderedCommands(TyperGroup):
    """Custom TyperGroup that preserves command order instead of sorting alphabetically."""

    def list_commands(self, ctx: Context):
        order = [
            "validate",
            "db",
            "test-scoring",
        ]
        ordered = [cmd for cmd in order if cmd in self.commands]
        additional = [cmd for cmd in self.commands if cmd not in ordered]
        return ordered + additional


app = typer.Typer(
    name="verigpu",
    help="Verigpu - GPU Compute Verification Subnet CLI",
    add_completion=False,
    no_args_is_help=True,
    cls=OrderedCommands,
)

app.command()(validate)
app.command()(test_scoring)
app.add_typer(db_app, name="db")

__all__ = ["app"]
