"""Command line interface for sobject-client."""

import asyncio
import json
import logging
import math
import sys
from pathlib import Path
from typing import Any, Optional, Tuple

import click
from rich.console import Console

from . import __version__
from .api_clients import APIClientError, QueryBuilder, SObjectAPIClient
from .config import ClientConfig, ConfigManager

logger = logging.getLogger(__name__)

console = Console()
error_console = Console(stderr=True)


def create_client(config: ClientConfig) -> SObjectAPIClient:
    """Build the API client used by commands."""
    return SObjectAPIClient(config)


def parse_condition(raw: str) -> Any:
    """Turn a command line value into a bool, int, float or string condition.

    Non-finite numbers such as "nan" or "inf" stay strings.
    """
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        number = float(raw)
    except ValueError:
        return raw
    return number if math.isfinite(number) else raw


def parse_payload(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"payload is not valid JSON: {e}")


def _load_config(ctx: click.Context) -> ClientConfig:
    config_manager: ConfigManager = ctx.obj["config_manager"]
    try:
        return config_manager.load()
    except ValueError as e:
        error_console.print(f"❌ {e}", style="red")
        sys.exit(1)


def _run(ctx: click.Context, method: str, *args: Any) -> Any:
    """Call one client method with a fresh client and report API errors."""
    config = _load_config(ctx)

    async def _call():
        async with create_client(config) as client:
            return await getattr(client, method)(*args)

    try:
        return asyncio.run(_call())
    except APIClientError as e:
        error_console.print(f"❌ {type(e).__name__}: {e}", style="red", markup=False)
        sys.exit(1)


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file path (default: .sobject-client/config.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.version_option(version=__version__, prog_name="sobject-client")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """Work with sObjects over the REST API.

    \b
    EXAMPLES:
      sobject-client versions
      sobject-client get Account 001D000000IqhSLIAZ
      sobject-client create Account '{"Name": "Acme"}'
      sobject-client query --from Account --select Id --select Name \\
          --where Industry=Energy --order-desc CreatedDate --limit 10
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_manager"] = ConfigManager(config_path)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)


@cli.command()
@click.pass_context
def versions(ctx: click.Context) -> None:
    """List API versions supported by the instance."""
    result = _run(ctx, "versions")
    console.print_json(data=[v.model_dump() for v in result])


@cli.command()
@click.pass_context
def resources(ctx: click.Context) -> None:
    """List resources of the configured API version."""
    console.print_json(data=_run(ctx, "resources"))


@cli.command()
@click.pass_context
def describe(ctx: click.Context) -> None:
    """Describe all sObjects available to the API user."""
    console.print_json(data=_run(ctx, "describe_global"))


@cli.command()
@click.argument("object_name")
@click.argument("object_id")
@click.pass_context
def get(ctx: click.Context, object_name: str, object_id: str) -> None:
    """Fetch one object by OBJECT_NAME and OBJECT_ID."""
    console.print_json(data=_run(ctx, "get_object", object_name, object_id))


@cli.command()
@click.argument("object_name")
@click.argument("payload")
@click.pass_context
def create(ctx: click.Context, object_name: str, payload: str) -> None:
    """Create an OBJECT_NAME from a JSON PAYLOAD and print its id."""
    new_id = _run(ctx, "create_object", object_name, parse_payload(payload))
    console.print(f"✅ Created {object_name} {new_id}", style="green")


@cli.command()
@click.argument("object_name")
@click.argument("object_id")
@click.argument("payload")
@click.pass_context
def update(ctx: click.Context, object_name: str, object_id: str, payload: str) -> None:
    """Update OBJECT_ID of OBJECT_NAME with the fields of a JSON PAYLOAD."""
    _run(ctx, "update_object", object_name, object_id, parse_payload(payload))
    console.print(f"✅ Updated {object_name} {object_id}", style="green")


@cli.command()
@click.argument("object_name")
@click.argument("object_id")
@click.pass_context
def delete(ctx: click.Context, object_name: str, object_id: str) -> None:
    """Delete OBJECT_ID of OBJECT_NAME."""
    _run(ctx, "delete_object", object_name, object_id)
    console.print(f"✅ Deleted {object_name} {object_id}", style="green")


@cli.command()
@click.option("--from", "object_name", required=True, help="sObject to query")
@click.option("--select", "-s", "fields", multiple=True, help="Field to return (repeatable)")
@click.option("--where", "-w", "filters", multiple=True, help="FIELD=VALUE filter (repeatable)")
@click.option("--order-asc", help="Sort ascending by field")
@click.option("--order-desc", help="Sort descending by field")
@click.option(
    "--nulls", type=click.Choice(["first", "last"]), help="Null placement when ordering"
)
@click.option("--limit", "-l", type=int, default=0, help="Max records (0 = unlimited)")
@click.option("--dry-run", is_flag=True, help="Print the SOQL statement without sending it")
@click.pass_context
def query(
    ctx: click.Context,
    object_name: str,
    fields: Tuple[str, ...],
    filters: Tuple[str, ...],
    order_asc: Optional[str],
    order_desc: Optional[str],
    nulls: Optional[str],
    limit: int,
    dry_run: bool,
) -> None:
    """Run a SOQL query built from options."""
    if order_asc and order_desc:
        raise click.UsageError("--order-asc and --order-desc are mutually exclusive")

    builder = QueryBuilder(object_name).select(*fields).limit(limit)
    for item in filters:
        field_name, sep, value = item.partition("=")
        if not sep or not field_name:
            raise click.BadParameter(f"expected FIELD=VALUE, got {item!r}", param_hint="--where")
        builder.where(field_name, parse_condition(value))

    if order_asc:
        builder.order_asc(order_asc)
    elif order_desc:
        builder.order_desc(order_desc)
    if nulls == "first":
        builder.order_null_first()
    elif nulls == "last":
        builder.order_null_last()

    if dry_run:
        click.echo(builder.to_soql())
        return

    console.print_json(data=_run(ctx, "query_objects", builder))


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
