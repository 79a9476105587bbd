"""Typer application for var2tmpfiles.

Global flags are handled here; each subcommand lives in
``var2tmpfiles.cli.commands``.
"""

from typing import Annotated

import typer

from var2tmpfiles import __version__
from var2tmpfiles.cli.commands import check, config, convert
from var2tmpfiles.utils.formatting import configure_logging

app = typer.Typer(
    name="var2tmpfiles",
    help="Translate /var content into systemd tmpfiles.d entries.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.add_typer(convert.app, name="convert")
app.add_typer(check.app, name="check")
app.add_typer(config.app, name="config")


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"var2tmpfiles version {__version__}")
        raise typer.Exit()


VersionOption = Annotated[
    bool,
    typer.Option(
        "--version", "-V", callback=_show_version, is_eager=True, help="Show version and exit."
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Log each path as it is handled."),
]
QuietOption = Annotated[
    bool,
    typer.Option("--quiet", "-q", help="Hide informational messages."),
]


@app.callback()
def main(
    ctx: typer.Context,
    version: VersionOption = False,
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """var2tmpfiles - bake /var into tmpfiles.d for image-based systems.

    Directories and symlinks under /var are declared in a generated
    tmpfiles.d file and removed, so they are recreated at boot instead
    of being shipped in the image.
    """
    configure_logging(verbose=verbose)
    ctx.obj = {"verbose": verbose, "quiet": quiet}


if __name__ == "__main__":
    app()
