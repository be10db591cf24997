# src/ctrwatch/cli/main.py
"""
Root of the ctrwatch CLI.

    ctrwatch start     poll containerd and ship documents to Elasticsearch until stopped
    ctrwatch collect   run one cycle and print the documents instead of shipping them
    ctrwatch version   print the installed version
"""

import logging

import typer

from .. import __version__
from ..core.config import config
from . import collect, start

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

app = typer.Typer(
    name="ctrwatch",
    help="Ship per-container containerd resource usage to Elasticsearch.",
    add_completion=False,
)


def _echo_version():
    typer.echo(f"ctrwatch version: {__version__}")


def _version_option(value: bool):
    if value:
        _echo_version()
        raise typer.Exit()


@app.command()
def version():
    """
    Print the installed ctrwatch version.
    """
    _echo_version()


@app.callback()
def main(
    show_version: bool = typer.Option(
        None,
        "--version",
        callback=_version_option,
        is_eager=True,
        help="Print the version and exit.",
    ),
):
    """
    Per-node containerd telemetry. Settings come from the environment (METRICS_URL,
    CONTAINERD_SOCKET, ELASTICSEARCH_HOSTS, ...); LOG_LEVEL sets the verbosity.
    """
    logging.basicConfig(level=config.LOG_LEVEL.upper(), format=LOG_FORMAT)


app.add_typer(start.app, name="start")
app.add_typer(collect.app, name="collect")
