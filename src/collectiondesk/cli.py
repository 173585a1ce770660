"""Command-line interface for CollectionDesk.

This module provides the CLI commands for running the API server and for
previewing schema migrations offline.
"""

import json
import sys
from pathlib import Path
from typing import Any, NoReturn

import click

from collectiondesk import __version__
from collectiondesk.core.config import get_settings
from collectiondesk.core.exceptions import CollectionDeskError
from collectiondesk.core.logging import configure_logging, get_logger
from collectiondesk.domain.entities.collection import CollectionSchema, FieldDefinition
from collectiondesk.domain.entities.migration import ConflictPolicy
from collectiondesk.domain.services.migration_planner import MigrationPlanner


@click.group()
@click.version_option(version=__version__, prog_name="CollectionDesk")
def cli() -> None:
    """CollectionDesk - schema-governed collections with safe migrations."""


@cli.command()
@click.option(
    "--host",
    type=str,
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
@click.option(
    "--reload",
    is_flag=True,
    default=False,
    help="Enable auto-reload for development",
)
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the CollectionDesk API server."""
    import uvicorn

    settings = get_settings()
    bind_host = host or settings.host
    bind_port = port or settings.port

    configure_logging(settings)
    logger = get_logger(__name__)
    logger.info(
        "Starting CollectionDesk server",
        host=bind_host,
        port=bind_port,
        reload=reload,
        environment=settings.environment,
        gateway_backend=settings.gateway_backend,
    )

    uvicorn.run(
        "collectiondesk.infrastructure.api.app:create_app",
        factory=True,
        host=bind_host,
        port=bind_port,
        reload=reload,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


def _load_json(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"{path} is not valid JSON: {e}") from e


def _parse_renames(renames: tuple[str, ...]) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for item in renames:
        old_name, sep, new_name = item.partition("=")
        if not sep or not old_name or not new_name:
            raise click.BadParameter(f"'{item}' must have the form old=new", param_hint="--rename")
        parsed[old_name.strip()] = new_name.strip()
    return parsed


@cli.command("plan-migration")
@click.argument("current", type=click.Path(exists=True, dir_okay=False))
@click.argument("desired", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--rename",
    "renames",
    multiple=True,
    help="Rename a field, as old=new (repeatable)",
)
@click.option(
    "--policy",
    type=click.Choice([p.value for p in ConflictPolicy]),
    default=ConflictPolicy.FAIL.value,
    show_default=True,
    help="Treatment of values that cannot be converted to a new type",
)
def plan_migration(current: str, desired: str, renames: tuple[str, ...], policy: str) -> None:
    """Print the migration plan from CURRENT to DESIRED as JSON.

    CURRENT is a collection schema file ({"slug", "version", "fields"}).
    DESIRED is a field list, or an object with a "fields" key.
    """
    current_data = _load_json(current)
    if not isinstance(current_data, dict) or "slug" not in current_data:
        raise click.BadParameter(f"{current} must be a schema object with a 'slug' key")
    current_schema = CollectionSchema.from_dict(current_data)
    desired_data = _load_json(desired)
    if isinstance(desired_data, dict):
        desired_data = desired_data.get("fields", [])
    desired_fields = [FieldDefinition.from_dict(f) for f in desired_data]

    try:
        plan = MigrationPlanner.plan(
            current_schema,
            desired_fields,
            renames=_parse_renames(renames),
            conflict_policy=policy,
        )
    except CollectionDeskError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    click.echo(json.dumps(plan.to_dict(), indent=2, default=str))


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `collectiondesk` command is run
    or when using `python -m collectiondesk`.
    """
    cli()


if __name__ == "__main__":
    main()
