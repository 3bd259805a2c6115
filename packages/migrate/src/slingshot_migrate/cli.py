"""Slingshot CLI: run document migrations described in a config file.

Commands:
- ``run``: reconcile the mapping, copy and transform documents, optionally
  switch aliases
- ``switch-alias``: move aliases from the source index to the target index
- ``reconcile-mapping``: apply the mapping overrides without copying data
"""

import logging
import sys
from contextlib import contextmanager

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from slingshot_common import SlingshotError
from slingshot_config import Config

from . import __version__
from .alias import AliasSwitcher
from .factory import HostsConfig, connect_stores
from .mapping import MappingReconciler
from .orchestrator import MigrationOrchestrator
from .spec import MigrationSpec
from .transforms import identity, load_transform

console = Console()

LOG_FORMAT = "%(asctime)s %(name)s - %(levelname)s: %(message)s"


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Log every page fetched')
@click.option('--quiet', '-q', is_flag=True, help='Only log warnings and errors')
def cli(verbose: bool, quiet: bool):
    """Slingshot - Elasticsearch document migration tool"""
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def load_settings(config_file: str):
    """Load a migration config file into ``(hosts, spec, config)``."""
    config = Config(config_file)
    hosts = HostsConfig.from_dict(config.require('hosts'))
    spec = MigrationSpec.from_dict(config.require('migration'))
    return hosts, spec, config


@contextmanager
def stores(hosts: HostsConfig):
    source, target = connect_stores(hosts)
    try:
        yield source, target
    finally:
        source.close()
        if target is not source:
            target.close()


def print_stats(stats) -> None:
    table = Table(title="Migration statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value")
    total = stats.total if stats.total is not None else "?"
    table.add_row("Status", stats.status.value)
    table.add_row("Read", f"{stats.docs_read}/{total}")
    table.add_row("Written", str(stats.docs_written))
    table.add_row("Skipped", str(stats.docs_skipped))
    table.add_row("Batches", str(stats.batches_flushed))
    table.add_row("Errors", str(stats.error_count))
    table.add_row("Mapping applied", "yes" if stats.mapping_applied else "no")
    table.add_row("Duration", f"{stats.duration:.2f}s")
    if stats.peak_memory_mb is not None:
        table.add_row("Peak memory", f"{stats.peak_memory_mb}MB")
    console.print(table)


def fail(error: SlingshotError) -> None:
    console.print(f"[red]Error: {escape(str(error))}[/red]", soft_wrap=True)
    stats = getattr(error, 'stats', None)
    if stats is not None:
        print_stats(stats)
    sys.exit(1)


@cli.command()
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--transform', '-t', help='Transform as "package.module:function"')
@click.option('--switch-aliases', '-a', is_flag=True, help='Switch the configured aliases once done')
def run(config_file: str, transform: str | None, switch_aliases: bool):
    """Migrate documents as described in CONFIG_FILE"""
    try:
        hosts, spec, config = load_settings(config_file)
        reference = transform or config.get('transform')
        transform_fn = load_transform(reference) if reference else identity

        console.print("[bold]Starting migration[/bold]")
        console.print(f"  Source: {hosts.source} {spec.source}")
        console.print(f"  Target: {hosts.target or hosts.source} {spec.target}")
        console.print(f"  Transform: {reference or 'identity'}")

        with stores(hosts) as (source, target):
            stats = MigrationOrchestrator(source, target).run(spec, transform_fn)
            print_stats(stats)
            if switch_aliases and spec.aliases:
                for result in AliasSwitcher(source, target).switch_all(spec):
                    state = "switched" if result.changed else "unchanged"
                    console.print(f"  Alias {result.alias}: {state}")
    except SlingshotError as e:
        fail(e)

    if stats.has_errors:
        console.print(f"[yellow]{stats.error_count} document(s) were not written[/yellow]")
    console.print("[green]Migration completed[/green]")


@cli.command('switch-alias')
@click.argument('config_file', type=click.Path(exists=True))
@click.argument('aliases', nargs=-1)
def switch_alias(config_file: str, aliases: tuple):
    """Move ALIASES (default: the configured ones) to the target index"""
    try:
        hosts, spec, _ = load_settings(config_file)
        names = aliases or spec.aliases
        if not names:
            console.print("[yellow]No aliases to switch[/yellow]")
            return
        with stores(hosts) as (source, target):
            switcher = AliasSwitcher(source, target)
            for alias in names:
                result = switcher.switch(alias, spec)
                state = "switched" if result.changed else "already on target"
                console.print(f"  {alias}: {state}")
    except SlingshotError as e:
        fail(e)


@cli.command('reconcile-mapping')
@click.argument('config_file', type=click.Path(exists=True))
def reconcile_mapping(config_file: str):
    """Apply the configured mapping overrides to the target index"""
    try:
        hosts, spec, _ = load_settings(config_file)
        with stores(hosts) as (source, target):
            applied = MappingReconciler(source, target).reconcile(spec)
    except SlingshotError as e:
        fail(e)

    if applied:
        console.print(f"[green]Mapping applied to {spec.target}[/green]")
    else:
        console.print("No mapping changes required")


if __name__ == '__main__':
    cli()
