# src/ctrwatch/cli/start.py
"""
Start command for the ctrwatch CLI.

Connects to Elasticsearch, assembles the poll loop and runs it until the
process receives SIGTERM/SIGINT or an upstream call fails.
"""

import asyncio
import logging
import signal
import traceback

import typer

from ..core.config import Config, config
from ..core.factory import build_poll_loop
from ..storage.elasticsearch_sink import setup_elasticsearch

logger = logging.getLogger(__name__)

app = typer.Typer(name="start", help="Start the containerd collection service.")


async def _async_start(settings: Config) -> None:
    await setup_elasticsearch(settings)
    poll_loop = build_poll_loop(settings)

    loop = asyncio.get_running_loop()
    main_task = asyncio.current_task()

    def _request_shutdown(sig: signal.Signals):
        logger.info(f"Received {sig.name}, initiating graceful shutdown...")
        main_task.cancel()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _request_shutdown, sig)

    try:
        await poll_loop.run()
    except asyncio.CancelledError:
        await poll_loop.finish()
        logger.info("Shutting down ctrwatch gracefully.")
    finally:
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)
        await poll_loop.close()


@app.callback(invoke_without_command=True)
def start(ctx: typer.Context) -> None:
    """
    Connect to Elasticsearch and poll containerd until stopped.
    """
    if ctx.invoked_subcommand is not None:
        return

    logger.info("Initializing ctrwatch...")

    try:
        asyncio.run(_async_start(config))
    except KeyboardInterrupt:
        logger.info("Shutting down ctrwatch.")
        raise typer.Exit()
    except Exception as e:
        # Exit non-zero so the DaemonSet restart policy brings the collector back.
        logger.error(f"ctrwatch stopped on a fatal error: {e}")
        logger.error("Fatal error: %s", traceback.format_exc())
        raise typer.Exit(code=1)
