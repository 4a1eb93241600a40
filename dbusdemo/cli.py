"""Command Line Interface for DBusDemo."""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table
from ruamel.yaml import YAML

from .bus import BusCallError, Introspector, SendMode, Transport
from .config import DEFAULT_CONFIG_PATH, DemoConfig, load_config, save_config
from .notify import NotificationRequest, NotificationSender
from .util import get_logger, setup_logging

console = Console()
logger = get_logger(__name__)


def make_transport(config: DemoConfig) -> Transport:
    """Create the bus transport described by ``config``."""
    from .bus.glib import GLibTransport

    return GLibTransport(
        bus_type=config.bus.bus_type,
        bus_address=config.bus.address,
        connect_attempts=config.bus.connect_attempts,
    )


def _parse_pair(value: str, option: str) -> Tuple[str, str]:
    if "=" not in value:
        raise click.BadParameter(f"expected NAME=VALUE, got {value!r}", param_hint=option)
    name, _, rest = value.partition("=")
    return name, rest


def parse_hint_value(raw: str) -> Any:
    """Interpret a command line hint value as bool, int or string."""
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(raw)
    except ValueError:
        return raw


def _get_config(ctx: click.Context) -> DemoConfig:
    return ctx.find_root().obj["config"]


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--config", "-c", type=click.Path(exists=True, path_type=Path), help="Configuration file path")
@click.pass_context
def cli(ctx, verbose: bool, config: Optional[Path]):
    """DBusDemo - session bus introspection and desktop notifications."""
    ctx.ensure_object(dict)
    if config:
        loaded = load_config(config)
    elif DEFAULT_CONFIG_PATH.exists():
        loaded = load_config(DEFAULT_CONFIG_PATH)
    else:
        # Defaults only; `config init` writes the file
        loaded = DemoConfig()
    ctx.obj["config"] = loaded

    level = "DEBUG" if verbose else loaded.log_level
    setup_logging(level=level, log_file=loaded.log_file, console=Console(stderr=True))


@cli.command("notify")
@click.option("--summary", "-s", help="Notification title")
@click.option("--body", "-b", help="Notification body")
@click.option("--app-name", help="Application name")
@click.option("--icon", help="Icon name or file URI")
@click.option("--replaces-id", type=int, default=-1, show_default=True, help="Notification to replace, -1 for new")
@click.option("--action", "actions", multiple=True, help="Action as ID=LABEL")
@click.option("--hint", "hints", multiple=True, help="Hint as NAME=VALUE")
@click.option("--urgency", type=click.IntRange(0, 2), help="Urgency: 0 low, 1 normal, 2 critical")
@click.option("--expire-timeout", type=int, help="Milliseconds, -1 server default, 0 never")
@click.option("--async", "use_async", is_flag=True, help="Send without blocking and wait on the main loop")
@click.pass_context
def notify(ctx, summary: Optional[str], body: Optional[str], app_name: Optional[str], icon: Optional[str],
           replaces_id: int, actions: List[str], hints: List[str], urgency: Optional[int],
           expire_timeout: Optional[int], use_async: bool):
    """Send a desktop notification."""
    config = _get_config(ctx)
    defaults = config.notification

    hint_values: Dict[str, Any] = {}
    if defaults.urgency is not None:
        hint_values["urgency"] = defaults.urgency
    for raw in hints:
        name, value = _parse_pair(raw, "--hint")
        hint_values[name] = parse_hint_value(value)
    if urgency is not None:
        hint_values["urgency"] = urgency

    action_pairs = [tuple(pair) for pair in defaults.actions]
    if actions:
        action_pairs = [_parse_pair(raw, "--action") for raw in actions]

    request = NotificationRequest(
        app_name=app_name if app_name is not None else defaults.app_name,
        summary=summary if summary is not None else defaults.summary,
        body=body if body is not None else defaults.body,
        replaces_id=replaces_id,
        icon=icon if icon is not None else defaults.icon,
        actions=action_pairs,
        hints=hint_values,
        expire_timeout=expire_timeout if expire_timeout is not None else defaults.expire_timeout,
    )

    transport = None
    try:
        transport = make_transport(config)
        sender = NotificationSender(transport, config.bus.call_timeout_ms)
        if use_async:
            pending = sender.notify(request, mode=SendMode.ASYNC)
            transport.wait(pending)
            result = pending.result()
        else:
            result = sender.notify(request)
    except BusCallError as e:
        _fail(f"Notification failed: {e}")
        return
    finally:
        if transport is not None:
            transport.close()

    console.print(f"[green]Notification id:[/green] {result.id}")


@cli.command("introspect")
@click.argument("destination")
@click.argument("path", default="/")
@click.option("--async", "use_async", is_flag=True, help="Send without blocking and wait on the main loop")
@click.option("--xml", "show_xml", is_flag=True, help="Print the raw introspection XML")
@click.pass_context
def introspect(ctx, destination: str, path: str, use_async: bool, show_xml: bool):
    """Introspect an object on the bus."""
    config = _get_config(ctx)

    transport = None
    try:
        transport = make_transport(config)
        introspector = Introspector(transport, config.bus.call_timeout_ms)
        if use_async:
            pending = introspector.introspect(destination, path, mode=SendMode.ASYNC)
            transport.wait(pending)
            result = pending.result()
        else:
            result = introspector.introspect(destination, path)

        if show_xml:
            console.print(Syntax(result.xml, "xml"))
            return

        table = Table(title=f"{destination} {path}")
        table.add_column("Interface", style="cyan")
        table.add_column("Methods", style="white")
        table.add_column("Signals", style="white")
        table.add_column("Properties", style="white")
        for iface in result.interfaces():
            table.add_row(iface.name, str(iface.methods), str(iface.signals), str(iface.properties))
        console.print(table)

        children = result.children()
        if children:
            console.print(f"Child nodes: {', '.join(children)}")
    except BusCallError as e:
        _fail(f"Introspection failed: {e}")
    finally:
        if transport is not None:
            transport.close()


@cli.command("gui")
@click.pass_context
def gui(ctx):
    """Launch the GTK4 demo window."""
    from .gui.app import main as gui_main

    sys.exit(gui_main(_get_config(ctx), argv=[sys.argv[0]]))


@cli.group("config")
def config_group():
    """Configuration commands."""
    pass


@config_group.command("show")
@click.pass_context
def config_show(ctx):
    """Print the active configuration."""
    config = _get_config(ctx)
    yaml = YAML()
    yaml.default_flow_style = False
    yaml.dump(config.model_dump(mode="json"), sys.stdout)


@config_group.command("init")
@click.option("--path", "-p", type=click.Path(path_type=Path), default=DEFAULT_CONFIG_PATH,
              show_default=True, help="Where to write the configuration")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(path: Path, force: bool):
    """Write a default configuration file."""
    if path.exists() and not force:
        _fail(f"{path} already exists, use --force to overwrite")
    save_config(DemoConfig(), path)
    console.print(f"[green]Configuration written to {path}[/green]")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
