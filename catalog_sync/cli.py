"""Command-line interface for manual catalog imports."""

import asyncio
import sys

import click

from .services.import_service import ImportService
from .utils.config import get_config


def _request_payload(url: str, key: str, secret: str, overwrite: bool = False) -> dict:
    return {
        "target_url": url,
        "credential_key": key,
        "credential_secret": secret,
        "overwrite_existing": overwrite,
    }


@click.group()
@click.version_option(version="1.0.0")
def cli():
    """
    WooCommerce Catalog Import CLI.

    Import a remote store catalog into a tenant's products.
    """
    pass


@cli.command("import")
@click.option("--tenant", "tenant_id", required=True, help="Organization id that receives the products")
@click.option("--url", required=True, help="WooCommerce store URL")
@click.option("--key", required=True, envvar="WOO_CONSUMER_KEY", help="Consumer key (ck_...)")
@click.option("--secret", required=True, envvar="WOO_CONSUMER_SECRET", help="Consumer secret (cs_...)")
@click.option(
    "--overwrite",
    is_flag=True,
    help="Update products that already exist instead of skipping them"
)
def import_catalog(tenant_id: str, url: str, key: str, secret: str, overwrite: bool):
    """
    Import every published product of a WooCommerce store.

    Existing products (matched by SKU, then by name) are skipped unless
    --overwrite is given.
    """
    click.echo("╔════════════════════════════════════════════════════════╗")
    click.echo("║  WooCommerce → Catalog Import                          ║")
    click.echo("╚════════════════════════════════════════════════════════╝")
    click.echo()

    if overwrite:
        click.echo(click.style("OVERWRITE MODE - existing products will be updated", fg="yellow", bold=True))
        click.echo()

    try:
        service = ImportService()
        payload = _request_payload(url, key, secret, overwrite)
        result = asyncio.run(service.import_catalog(tenant_id, payload))

        click.echo()
        click.echo("─" * 60)

        if not result.success:
            click.echo(click.style(f"✗ Import failed: {result.errors[0]}", fg="red", bold=True))
            click.echo("─" * 60)
            sys.exit(1)

        if result.failed or result.warnings:
            click.echo(click.style("✓ Import completed with errors", fg="yellow", bold=True))
        else:
            click.echo(click.style("✓ Import completed successfully!", fg="green", bold=True))

        click.echo()
        click.echo(f"Total items:    {result.total}")
        click.echo(click.style(f"Imported:       {result.imported}", fg="green"))
        click.echo(click.style(f"Updated:        {result.updated}", fg="green"))
        click.echo(f"Skipped:        {result.skipped}")
        click.echo(click.style(f"Failed:         {result.failed}", fg="red" if result.failed > 0 else None))
        click.echo(f"Duration:       {result.duration:.2f}s")

        if result.errors:
            click.echo()
            click.echo(click.style(f"Errors ({len(result.errors)}):", fg="red", bold=True))
            for i, error in enumerate(result.errors[:10], 1):
                click.echo(f"  {i}. {error}")

            if len(result.errors) > 10:
                click.echo(f"  ... and {len(result.errors) - 10} more errors")
                click.echo("  Check logs/import.log for full details")

        click.echo("─" * 60)
        sys.exit(0)

    except Exception as e:
        click.echo(click.style(f"✗ Unexpected error: {str(e)}", fg="red"), err=True)
        sys.exit(1)


@cli.command("test-connection")
@click.option("--url", default=None, help="WooCommerce store URL to check as well")
@click.option("--key", default=None, envvar="WOO_CONSUMER_KEY", help="Consumer key (ck_...)")
@click.option("--secret", default=None, envvar="WOO_CONSUMER_SECRET", help="Consumer secret (cs_...)")
def test_connection(url: str, key: str, secret: str):
    """
    Test connectivity to Supabase and, optionally, a WooCommerce store.
    """
    click.echo("Testing API connections...")
    click.echo()

    try:
        service = ImportService()
        payload = _request_payload(url, key or "", secret or "") if url else None
        results = asyncio.run(service.test_connections(payload))

        for name, label in (("supabase", "Supabase"), ("woocommerce", "WooCommerce REST API")):
            click.echo(f"{label}:")
            if results[name]["success"]:
                click.echo(click.style("  ✓ Connected successfully", fg="green"))
            elif payload is None and name == "woocommerce":
                click.echo(click.style("  ⚠ Not checked (no --url given)", fg="yellow"))
            else:
                click.echo(click.style(f"  ✗ Connection failed: {results[name]['error']}", fg="red"))
            click.echo()

        checked = [r for n, r in results.items() if payload is not None or n != "woocommerce"]
        if all(r["success"] for r in checked):
            click.echo(click.style("✓ All connections successful!", fg="green", bold=True))
            sys.exit(0)
        else:
            click.echo(click.style("⚠ Some connections failed", fg="yellow", bold=True))
            sys.exit(1)

    except Exception as e:
        click.echo(click.style(f"✗ Error: {str(e)}", fg="red"), err=True)
        sys.exit(1)


@cli.command("config-info")
def config_info():
    """Display current configuration settings."""
    try:
        config = get_config()

        click.echo("Configuration Settings:")
        click.echo("=" * 60)
        click.echo()

        click.echo("Environment:")
        click.echo(f"  Environment:     {config.env.environment}")
        click.echo(f"  Log level:       {config.logging.level}")
        click.echo()

        click.echo("Supabase:")
        click.echo(f"  URL:             {config.env.supabase_url}")
        click.echo(f"  Service key:     {config.env.supabase_service_key[:10]}...")
        click.echo(f"  Storage bucket:  {config.env.storage_bucket}")
        click.echo()

        click.echo("Revalidation:")
        click.echo(f"  Hook URL:        {config.env.revalidate_url or '(not configured)'}")
        click.echo(f"  Listing path:    {config.server.catalog_listing_path}")
        click.echo()

        click.echo("HTTP:")
        click.echo(f"  Timeout:         {config.api.timeout}s")
        click.echo(f"  Max retries:     {config.api.max_retries}")
        click.echo(f"  Max image size:  {config.assets.max_image_bytes} bytes")
        click.echo()

    except Exception as e:
        click.echo(click.style(f"✗ Error loading config: {str(e)}", fg="red"), err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
