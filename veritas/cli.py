"""CLI for Veritas model configuration maintenance."""
import json
import sys

import click

from veritas.adapters.postgres.models import Base
from veritas.context import AppContext, build_context
from veritas.core.config import get_settings
from veritas.domain.model_configs.bootstrap import migrate_default_model_config
from veritas.domain.model_configs.service import ModelConfigService
from veritas.domain.secrets.master_key import generate_master_key
from veritas.errors import ConfigError, KeyUnavailable


def _load_context() -> AppContext:
    try:
        return build_context(get_settings())
    except KeyUnavailable as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)


@click.group()
def cli():
    """Veritas model configuration CLI."""
    pass


@cli.command("generate-key")
def generate_key():
    """Print a fresh ENCRYPTION_KEY value."""
    click.echo(generate_master_key())


@cli.command("bootstrap")
@click.option("--create-schema/--no-create-schema", default=False, help="Create missing tables first")
def bootstrap(create_schema: bool):
    """Create the default configuration from OPENAI_API_KEY if none exist."""
    context = _load_context()
    if create_schema:
        Base.metadata.create_all(bind=context.engine)

    with context.open_session() as db:
        created = migrate_default_model_config(context.model_config_store(db), context.settings)

    if created:
        click.echo(f"✓ Default configuration '{created.name}' created (ID: {created.id})")
    else:
        click.echo("Nothing to do: configurations exist or OPENAI_API_KEY is not set")


@cli.command("reseal-legacy")
def reseal_legacy():
    """Encrypt stored credentials that predate envelope encryption."""
    context = _load_context()
    with context.open_session() as db:
        try:
            count = context.model_config_store(db).reseal_legacy_credentials()
        except ConfigError as e:
            click.echo(f"Error: {e.message}", err=True)
            sys.exit(1)
    click.echo(f"✓ Sealed {count} legacy credential(s)")


@cli.group()
def configs():
    """Inspect model configurations."""
    pass


@configs.command("list")
@click.option("--format", "fmt", type=click.Choice(["table", "json"]), default="table")
def list_configs(fmt: str):
    """List model configurations (credentials are never shown)."""
    context = _load_context()
    with context.open_session() as db:
        views = ModelConfigService(context.model_config_store(db)).list_configs()

    if fmt == "json":
        click.echo(json.dumps([v.model_dump(mode="json", by_alias=True) for v in views], indent=2))
    else:
        click.echo(f"\n{'ID':<38} {'Name':<24} {'Provider':<12} {'Model':<24} {'Default':<8}")
        click.echo("-" * 108)
        for v in views:
            default = "✓" if v.is_default else ""
            click.echo(f"{v.id:<38} {v.name[:23]:<24} {v.provider:<12} {v.model_id[:23]:<24} {default:<8}")


if __name__ == "__main__":
    cli()
