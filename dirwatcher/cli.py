import threading
import time

import click
from rich.console import Console
from rich.table import Table

from dirwatcher import config
from dirwatcher import logger as logger_module
from dirwatcher.errors import DirWatcherError
from dirwatcher.filters import pattern_filter
from dirwatcher.provider import WatchdogProvider
from dirwatcher.watchable import DirectoryWatchable
from dirwatcher.watcher import DirectoryWatcher, WatchOptions

KIND_STYLES = {
    "created": "green",
    "modified": "yellow",
    "deleted": "red",
}


class ConsoleWatchable(DirectoryWatchable):
    """Prints every change to a rich console and remembers a failure."""

    def __init__(self, console):
        self.console = console
        self.failed = threading.Event()
        self.error = None

    def on_change_detected(self, event):
        style = KIND_STYLES.get(event.kind.value, "white")
        self.console.print(
            f"[dim]{event.when_as_string()}[/dim] [{style}]{event.kind.value:<8}[/{style}] {event.path}"
        )

    def on_failure(self, error):
        self.error = error
        self.console.print(f"[bold red]Watching failed:[/bold red] {error}")
        self.failed.set()


@click.group()
@click.option("--config", "-c", "config_path", default=None, help="Path to configuration TOML/YAML file.")
@click.option("--debug", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx, config_path, debug):
    """
    dirwatcher CLI: watch a directory for created, modified and deleted files.
    """
    try:
        cfg = config.load_config(config_path)
    except FileNotFoundError as e:
        if config_path:
            click.echo(f"Error loading configuration: {e}")
            ctx.abort()
        # No explicit file asked for: run on defaults.
        cfg = {}
    except Exception as e:
        click.echo(f"Error loading configuration: {e}")
        ctx.abort()
    if debug:
        cfg.setdefault("logging", {})["level"] = "DEBUG"
    ctx.obj = {"config": cfg, "config_path": config_path, "debug": debug}


@main.command()
@click.pass_context
def show_config(ctx):
    """
    Show the effective configuration.
    """
    cfg = ctx.obj.get("config")
    try:
        settings = config.watch_settings(cfg)
    except DirWatcherError as e:
        click.echo(f"Invalid configuration: {e}")
        ctx.exit(1)
    level, log_dir = config.logging_settings(cfg)

    table = Table(title="dirwatcher configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("config file", str(ctx.obj.get("config_path") or config.resolve_config_path()))
    for key, value in settings.items():
        table.add_row(f"watch.{key}", str(value))
    table.add_row("logging.level", level)
    table.add_row("logging.log_dir", str(log_dir))
    Console().print(table)


@main.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False, dir_okay=True))
@click.option("--recursive/--no-recursive", "-r", default=None, help="Also watch subdirectories (default from config).")
@click.option("--include", "-i", multiple=True, help="Glob pattern of files to report (repeatable).")
@click.option("--exclude", "-e", multiple=True, help="Glob pattern of files to ignore (repeatable).")
@click.option("--duration", "-d", type=float, default=None, help="Stop after this many seconds.")
@click.option("--log-file", is_flag=True, help="Also write logs to <log_dir>/dirwatcher.log.")
@click.pass_context
def watch(ctx, directory, recursive, include, exclude, duration, log_file):
    """
    Watch DIRECTORY and print every change until interrupted.
    """
    cfg = ctx.obj.get("config")
    try:
        settings = config.watch_settings(cfg)
    except DirWatcherError as e:
        click.echo(f"Invalid configuration: {e}")
        ctx.exit(1)
    level, log_dir = config.logging_settings(cfg)
    logger_module.setup_logger("dirwatcher", log_dir if log_file else None, "dirwatcher.log", level=level)

    if recursive is None:
        recursive = settings["recursive"]
    options = WatchOptions.INCLUDE_SUB_DIRS if recursive else WatchOptions.ROOT_ONLY
    watch_filter = pattern_filter(
        include=list(include) or settings["include"],
        exclude=list(exclude) or settings["exclude"],
    )

    console = Console()
    consumer = ConsoleWatchable(console)
    watcher = DirectoryWatcher(
        directory,
        consumer,
        options=options,
        provider=WatchdogProvider(batch_latency=settings["batch_latency"]),
        watch_filter=watch_filter,
    )

    console.print(f"Watching [bold]{watcher.directory}[/bold] ({options.name}). Press Ctrl+C to stop.")
    deadline = time.monotonic() + duration if duration is not None else None
    with watcher:
        try:
            while not consumer.failed.is_set():
                if deadline is not None and time.monotonic() >= deadline:
                    break
                consumer.failed.wait(0.2)
        except KeyboardInterrupt:
            pass
    console.print("Stopped.")
    if consumer.failed.is_set():
        ctx.exit(1)


if __name__ == "__main__":
    main()
