# src/ctrwatch/cli/collect.py
"""
One-shot collection: runs a single cycle and prints the documents instead of
delivering them. Handy to check socket access and metric names on a node.
"""

import asyncio
import json
import logging
from datetime import datetime
from typing import List

import typer

from ..core.config import Config, config
from ..core.factory import get_metrics_collector, get_runtime_collector
from ..core.poll_loop import PollLoop
from ..utils.host import read_hostname

logger = logging.getLogger(__name__)

app = typer.Typer(name="collect", help="Run one collection cycle and print the documents as JSON lines.")


def _json_default(value):
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


async def _collect_once(settings: Config) -> List[dict]:
    poll_loop = PollLoop(
        runtime=get_runtime_collector(settings),
        metrics=get_metrics_collector(settings),
        sink=None,
        hostname=read_hostname(settings.HOSTNAME_FILE),
        interval_seconds=settings.METRIC_INTERVAL,
    )
    try:
        documents = await poll_loop.collect()
    finally:
        await poll_loop.close()
    return [document.to_source() for document in documents]


@app.callback(invoke_without_command=True)
def collect(ctx: typer.Context) -> None:
    """
    Print one cycle's documents to stdout.
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        sources = asyncio.run(_collect_once(config))
    except Exception as e:
        logger.error(f"Collection failed: {e}")
        raise typer.Exit(code=1)

    for source in sources:
        typer.echo(json.dumps(source, default=_json_default))
    logger.info("Collected %d document(s).", len(sources))
