"""Configuration commands.

Show, locate and initialize the var2tmpfiles config file.
"""

from typing import Annotated

import tomli_w
import typer
from rich.markup import escape

from var2tmpfiles.core.config import (
    ConfigError,
    config_to_dict,
    get_default_config,
    load_config_or_default,
    save_config,
)
from var2tmpfiles.core.paths import get_config_path
from var2tmpfiles.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show and initialize configuration.",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.command()
def show() -> None:
    """Print the effective configuration as TOML."""
    try:
        config = load_config_or_default()
    except ConfigError as e:
        print_error(escape(str(e)))
        raise typer.Exit(code=1) from e

    console.print(escape(tomli_w.dumps(config_to_dict(config))), end="", soft_wrap=True)


@app.command()
def path() -> None:
    """Print the config file location."""
    console.print(escape(str(get_config_path())), soft_wrap=True)


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a config file with all defaults."""
    config_path = get_config_path()
    if config_path.exists() and not force:
        print_info(f"Config already exists: {escape(str(config_path))} (use --force to overwrite)")
        raise typer.Exit(code=1)

    try:
        saved = save_config(get_default_config(), config_path)
    except ConfigError as e:
        print_error(escape(str(e)))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {escape(str(saved))}")
