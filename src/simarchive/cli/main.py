# Copyright (c) Syntropy Systems
"""Main CLI entry point for simarchive."""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from simarchive.cli.archive import archive
from simarchive.cli.doctor import doctor
from simarchive.cli.init_cmd import init
from simarchive.cli.runs import runs, show

app = typer.Typer(
    name="simarchive",
    help=(
        "Archive Gatling simulation reports with the run that produced them."
    ),
    no_args_is_help=True,
    add_completion=False,
)


def configure_logging(verbose: bool) -> None:  # noqa: FBT001
    """Send simarchive log records to the terminal through rich."""
    logger = logging.getLogger("simarchive")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO if verbose else logging.WARNING)


@app.callback()
def main(
    verbose: bool = typer.Option(  # noqa: FBT001
        False,
        "--verbose", "-v",
        help="Show informational log messages",
    ),
) -> None:
    """Archive Gatling simulation reports with the run that produced them."""
    configure_logging(verbose)


# Register commands
_ = app.command()(init)
_ = app.command()(archive)
_ = app.command()(runs)
_ = app.command()(show)
_ = app.command()(doctor)


if __name__ == "__main__":
    app()
