"""azscrape command line interface.

Commands:
    azscrape run          Run the resource group inventory collector loop
    azscrape cache show   Inspect a persisted snapshot
"""

import logging
import signal
import sys
import threading
from datetime import timedelta

import click
from rich.console import Console
from rich.table import Table

from azscrape import __version__
from azscrape.azure_discovery import AzureDiscoveryClient
from azscrape.cache.cache_spec import (
    CacheConfigError,
    CacheSpec,
    open_snapshot_store,
    resolve_cache_spec,
)
from azscrape.cache.snapshot_store import StorageUnavailableError
from azscrape.collector.cache_manager import CollectorCacheManager
from azscrape.collector.resource_groups import ResourceGroupCollector
from azscrape.collector.snapshot import SnapshotDecodeError, SnapshotRecord
from azscrape.config_manager import CollectorConfig, ConfigError, ConfigManager
from azscrape.credential_factory import AuthMethod, CredentialFactory, CredentialFactoryError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _setup_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT)
    # Azure SDK logs every HTTP request at INFO
    logging.getLogger("azure").setLevel(logging.WARNING)


def _build_cache_manager(
    config: CollectorConfig, credential: object
) -> CollectorCacheManager | None:
    """Resolve the configured cache location into a cache manager.

    Raises:
        CacheConfigError: If the cache location is malformed
    """
    if config.cache is None:
        return None

    spec = resolve_cache_spec(config.cache, tag=config.cache_tag)
    store = open_snapshot_store(spec, credential=credential, timeout=config.storage_timeout)
    return CollectorCacheManager(spec, store, timedelta(seconds=config.scrape_interval))


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """azscrape - Azure inventory metrics collector.

    \b
    CONFIGURATION:
        Config file: ~/.azscrape/config.toml ([collector] table)
        Environment: AZSCRAPE_CACHE, AZSCRAPE_CACHE_TAG, AZSCRAPE_SCRAPE_INTERVAL, ...

    For help on any command: azscrape <command> --help
    """


@main.command(name="run")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Config file path")
@click.option("--cache", help="Cache location (path, file://path or azblob://account/container/blob)")
@click.option("--cache-tag", help="Invalidation tag, cached state with another tag is ignored")
@click.option("--scrape-interval", type=click.IntRange(min=1), help="Seconds between scrapes")
@click.option(
    "--subscription", "subscriptions", multiple=True, help="Subscription ID filter (repeatable)"
)
@click.option("--az-cli", is_flag=True, help="Force Azure CLI authentication")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level",
)
@click.option("--once", is_flag=True, help="Run a single collection cycle and exit")
def run_command(
    config_path: str | None,
    cache: str | None,
    cache_tag: str | None,
    scrape_interval: int | None,
    subscriptions: tuple[str, ...],
    az_cli: bool,
    log_level: str | None,
    once: bool,
) -> None:
    """Run the resource group inventory collector.

    \b
    Examples:
        azscrape run --cache /var/cache/azscrape/metrics.json
        azscrape run --cache azblob://acct.blob.core.windows.net/azscrape/metrics.json --cache-tag v2
    """
    try:
        config = ConfigManager.resolve(
            config_path,
            cache=cache,
            cache_tag=cache_tag,
            scrape_interval=scrape_interval,
            subscriptions=list(subscriptions) or None,
            use_az_cli=True if az_cli else None,
            log_level=log_level,
        )
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    _setup_logging(config.log_level)

    # Fail on a malformed cache location before touching Azure
    try:
        if config.cache is not None:
            resolve_cache_spec(config.cache, tag=config.cache_tag)
    except CacheConfigError as e:
        click.echo(f"Error: invalid cache location: {e}", err=True)
        sys.exit(1)

    try:
        method = AuthMethod.AZURE_CLI if config.use_az_cli else AuthMethod.DEFAULT
        credential = CredentialFactory.create_credential(method)
        cache_manager = _build_cache_manager(config, credential)
    except (CredentialFactoryError, CacheConfigError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    discovery = AzureDiscoveryClient(
        credential,
        cache_ttl=config.discovery_cache_ttl,
        subscription_filter=config.subscriptions,
    )
    collector = ResourceGroupCollector(discovery, timedelta(seconds=config.scrape_interval))
    collector.set_cache(cache_manager)

    if once:
        if not collector.run_cycle():
            sys.exit(1)
        return

    stop_event = threading.Event()

    def handle_shutdown(signum, frame):
        logger.info(f"Received signal {signum}, shutting down gracefully...")
        stop_event.set()

    signal.signal(signal.SIGTERM, handle_shutdown)
    signal.signal(signal.SIGINT, handle_shutdown)

    discovery.start_cache_janitors()
    try:
        collector.start(stop_event)
    finally:
        discovery.stop_cache_janitors()


@main.group(name="cache")
def cache_group() -> None:
    """Inspect persisted collector state."""


@cache_group.command(name="show")
@click.argument("location")
@click.option("--az-cli", is_flag=True, help="Force Azure CLI authentication")
def cache_show_command(location: str, az_cli: bool) -> None:
    """Show the snapshot stored at LOCATION.

    \b
    Examples:
        azscrape cache show /var/cache/azscrape/metrics.json
    """
    try:
        spec: CacheSpec = resolve_cache_spec(location)
        credential = None
        if spec.account_url is not None:
            method = AuthMethod.AZURE_CLI if az_cli else AuthMethod.DEFAULT
            credential = CredentialFactory.create_credential(method)
        store = open_snapshot_store(spec, credential=credential)
        content, found = store.read()
    except (CacheConfigError, CredentialFactoryError, StorageUnavailableError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not found:
        click.echo(f"No cached state found at {store.location}", err=True)
        sys.exit(1)

    try:
        record = SnapshotRecord.from_json(content)
    except SnapshotDecodeError as e:
        click.echo(f"Error: unable to decode cache: {e}", err=True)
        sys.exit(1)

    console = Console()
    console.print(f"[bold]Location:[/bold] {store.location}")
    console.print(f"[bold]Created:[/bold]  {record.created.isoformat() if record.created else '-'}")
    console.print(f"[bold]Expiry:[/bold]   {record.expiry.isoformat() if record.expiry else '-'}")
    console.print(f"[bold]Tag:[/bold]      {record.tag or '-'}")

    table = Table(title="Cached Metrics", show_header=True, header_style="bold")
    table.add_column("Metric", style="cyan")
    table.add_column("Samples", justify="right")
    for name, samples in sorted(record.metrics.items()):
        table.add_row(name, str(len(samples)))
    console.print(table)


if __name__ == "__main__":
    main()
