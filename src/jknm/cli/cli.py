"""CLI entrypoint: Typer app definition and command registration"""

import typer

from jknm.cli.commands import convert_cmd, index_cmd, init_cmd, migrate_cmd, sections_cmd


app = typer.Typer(name="jknm", no_args_is_help=True, help="Legacy article migration and search indexing")

app.command(name="init")(init_cmd)
app.command(name="convert")(convert_cmd)
app.command(name="sections")(sections_cmd)
app.command(name="migrate")(migrate_cmd)
app.command(name="index")(index_cmd)
