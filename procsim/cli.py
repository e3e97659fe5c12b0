"""CLI entry point for procsim."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import click

from procsim import __version__
from procsim.config import EngineConfig, load_config
from procsim.models import ProcessStatus
from procsim.processor import ActionResult, ProcessService
from procsim.store import JsonFileProcessStore
from procsim.utils.logging import configure_logging, get_correlation_id, get_logger
from procsim.utils.result import ExitCode


class Context:
    """CLI context for sharing state between commands."""

    def __init__(self, config: EngineConfig) -> None:
        self.config = config
        self.logger = get_logger("cli")

    def run(self, operation: Callable[[ProcessService], Awaitable[Any]]) -> Any:
        """Run one operation against a service bound to the state file."""

        async def _main() -> Any:
            # One correlation id per command, inherited by background tasks
            self.logger.debug("command_started", correlation_id=get_correlation_id())
            service = ProcessService(JsonFileProcessStore(self.config.store_path), self.config)
            try:
                return await operation(service)
            finally:
                await service.shutdown()

        return asyncio.run(_main())


pass_context = click.make_pass_decorator(Context)


def output_json(data: Any) -> None:
    """Output JSON to stdout."""
    click.echo(json.dumps(data, indent=2, default=str))


def finish(result: ActionResult) -> None:
    """Print an action result and exit non-zero on failure."""
    output_json(result.to_dict())
    if not result.success:
        sys.exit(ExitCode.GENERAL_ERROR)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to YAML config file",
)
@click.option(
    "--store",
    "store_path",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to the JSON state file (overrides config)",
)
@click.option(
    "--parallelism",
    type=int,
    default=None,
    help="Background worker limit (overrides config)",
)
@click.option(
    "--work-delay",
    type=float,
    default=None,
    help="Seconds of simulated work per item (overrides config)",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warn", "error"], case_sensitive=False),
    default=None,
    help="Logging level",
)
@click.option(
    "--log-format",
    type=click.Choice(["json", "text"], case_sensitive=False),
    default=None,
    help="Log format",
)
@click.version_option(version=__version__)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[Path],
    store_path: Optional[Path],
    parallelism: Optional[int],
    work_delay: Optional[float],
    log_level: Optional[str],
    log_format: Optional[str],
) -> None:
    """
    Process simulator - create processes and drive their items to completion.
    """
    result = load_config(config_path)
    if result.is_err():
        click.echo(str(result.unwrap_err()), err=True)
        sys.exit(ExitCode.CONFIG_ERROR)
    config = result.unwrap()

    if store_path is not None:
        config.store_path = store_path
    if parallelism is not None:
        config.parallelism = parallelism
    if work_delay is not None:
        config.work_delay = work_delay
    if log_level is not None:
        config.logging.level = log_level
    if log_format is not None:
        config.logging.format = log_format

    validation = config.validate()
    if validation.is_err():
        click.echo(str(validation.unwrap_err()), err=True)
        sys.exit(ExitCode.CONFIG_ERROR)

    configure_logging(level=config.logging.level, format_type=config.logging.format)

    ctx.obj = Context(config)


@cli.command()
@click.argument("items", nargs=-1, type=int)
@pass_context
def create(ctx: Context, items: tuple[int, ...]) -> None:
    """Create a process from a list of integer items."""

    async def op(service: ProcessService):
        return await service.create_process(list(items))

    result = ctx.run(op)
    if result.is_err():
        output_json({"success": False, "message": result.unwrap_err().message})
        sys.exit(ExitCode.GENERAL_ERROR)
    output_json({"id": result.unwrap().id})


@cli.command()
@click.argument("process_id")
@click.option(
    "--sequential",
    is_flag=True,
    default=False,
    help="Only mark the process Running; advance it with 'next'",
)
@pass_context
def start(ctx: Context, process_id: str, sequential: bool) -> None:
    """
    Start a process.

    By default all items are processed in the background and the
    command waits for that run to finish.
    """

    async def op(service: ProcessService):
        result = await service.start_process(process_id, background=not sequential)
        if result.is_ok() and not sequential:
            await service.wait_for_background(process_id)
        return result

    finish(ActionResult.from_result(ctx.run(op)))


@cli.command()
@click.argument("process_id")
@click.option("--revert", is_flag=True, default=False, help="Cancel with revert")
@pass_context
def cancel(ctx: Context, process_id: str, revert: bool) -> None:
    """Cancel a running process."""

    async def op(service: ProcessService):
        return await service.cancel_process(process_id, revert=revert)

    finish(ActionResult.from_result(ctx.run(op)))


@cli.command("next")
@click.argument("process_id")
@pass_context
def next_item(ctx: Context, process_id: str) -> None:
    """Process the next remaining item of a running process."""

    async def op(service: ProcessService):
        return await service.process_next_item(process_id)

    finish(ActionResult.from_result(ctx.run(op)))


@cli.command("process-item")
@click.argument("process_id")
@click.argument("item", type=int)
@pass_context
def process_item(ctx: Context, process_id: str, item: int) -> None:
    """Process one specific item, regardless of process status."""

    async def op(service: ProcessService):
        return await service.process_item_manually(process_id, item)

    finish(ActionResult.from_result(ctx.run(op)))


@cli.command()
@click.argument("process_id")
@pass_context
def get(ctx: Context, process_id: str) -> None:
    """Show one process."""

    async def op(service: ProcessService):
        return await service.get_process(process_id)

    process = ctx.run(op)
    if process is None:
        output_json({"success": False, "message": "Process not found"})
        sys.exit(ExitCode.GENERAL_ERROR)
    output_json(process.to_dict())


@cli.command("list")
@click.option("--summary", is_flag=True, default=False, help="Only print counts per status")
@pass_context
def list_processes(ctx: Context, summary: bool) -> None:
    """List all processes."""

    async def op(service: ProcessService):
        if summary:
            return await service.status_summary()
        return [p.to_dict() for p in await service.list_processes()]

    output_json(ctx.run(op))


@cli.command()
@click.argument("items", nargs=-1, type=int, required=True)
@pass_context
def run(ctx: Context, items: tuple[int, ...]) -> None:
    """Create a process, start it and wait for background processing."""

    async def op(service: ProcessService):
        created = await service.create_process(list(items))
        if created.is_err():
            return None
        process_id = created.unwrap().id
        await service.start_process(process_id)
        await service.wait_for_background(process_id)
        return await service.get_process(process_id)

    process = ctx.run(op)
    if process is None:
        output_json({"success": False, "message": "Process could not be created"})
        sys.exit(ExitCode.GENERAL_ERROR)

    ctx.logger.info("run_finished", process_id=process.id, status=process.status.value)
    output_json(process.to_dict())
    if process.status != ProcessStatus.COMPLETED:
        sys.exit(ExitCode.GENERAL_ERROR)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
