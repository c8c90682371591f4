"""CLI entry point for qkdpx."""

from __future__ import annotations

import click

from .config import ConfigStore, mask_token
from .errors import Cancelled
from .models import DEFAULT_REGISTRY, Configuration, PublishOptions, ReleaseOptions, validate_registry_url
from .pipeline import run_publish, run_release
from .versions import BUMP_KINDS

bump_option = click.option(
    "-v",
    "--version",
    "bump",
    type=click.Choice(BUMP_KINDS),
    default=None,
    help="Version bump type. Asks interactively if omitted.",
)
message_option = click.option(
    "-m",
    "--message",
    default=None,
    help="Commit message for uncommitted changes.",
)
skip_confirm_option = click.option(
    "--skip-confirm", is_flag=True, help="Skip confirmation prompts."
)


@click.group()
@click.version_option(package_name="qkdpx")
def cli() -> None:
    """Guided npm publishing: commit, bump, build, publish, tag."""


@cli.command()
@bump_option
@skip_confirm_option
@click.option("--dry-run", is_flag=True, help="Run npm publish --dry-run; change nothing.")
@message_option
def publish(bump: str | None, skip_confirm: bool, dry_run: bool, message: str | None) -> None:
    """Publish the package in the current directory to npm."""
    options = PublishOptions(
        bump=bump, skip_confirm=skip_confirm, dry_run=dry_run, message=message
    )
    config = ConfigStore().load()
    try:
        run_publish(options, config)
    except Cancelled as exc:
        click.secho(str(exc), fg="yellow")


@cli.command()
@bump_option
@skip_confirm_option
@message_option
@click.option("--force-tag", is_flag=True, help="Replace an existing tag without asking.")
def release(bump: str | None, skip_confirm: bool, message: str | None, force_tag: bool) -> None:
    """Bump, tag, and push; let CI build and publish."""
    options = ReleaseOptions(
        bump=bump, skip_confirm=skip_confirm, message=message, force_tag=force_tag
    )
    try:
        run_release(options)
    except Cancelled as exc:
        click.secho(str(exc), fg="yellow")


def _registry_value(value: str) -> str:
    try:
        return validate_registry_url(value.strip())
    except ValueError as exc:
        raise click.BadParameter("Please enter a valid URL.") from exc


def show_config(store: ConfigStore) -> None:
    summary = store.summarize()
    click.secho("Current qkdpx configuration:", fg="blue")
    click.echo()
    registry = summary.registry
    click.echo(
        f"├── Registry: {click.style(registry.value, fg='green')} "
        f"{click.style(f'({registry.source})', dim=True)}"
    )
    token = summary.auth_token
    if token:
        click.echo(
            f"└── Auth token: {click.style(token.value, fg='yellow')} "
            f"{click.style(f'({token.source})', dim=True)}"
        )
    else:
        click.echo(f"└── Auth token: {click.style('not configured', fg='red')}")
    click.echo()


def init_global(store: ConfigStore) -> None:
    click.secho("Initializing global qkdpx configuration...", fg="blue")
    click.echo(f"Config will be stored in: {store.global_path}")
    click.echo()

    existing = store.load_global()
    has_existing = store.global_exists()
    if has_existing:
        click.echo(f"├── Registry: {existing.registry or DEFAULT_REGISTRY}")
        if existing.auth_token:
            click.echo(f"└── Auth token: {mask_token(existing.auth_token)}")
        else:
            click.echo("└── Auth token: not configured")
        click.echo("Press Enter to keep current values.")
        click.echo()

    registry = click.prompt(
        "NPM registry URL",
        default=existing.registry or DEFAULT_REGISTRY,
        value_proc=_registry_value,
    )
    token_question = (
        "Auth token (leave empty to keep current)"
        if existing.auth_token
        else "Auth token (optional)"
    )
    token = click.prompt(token_question, default="", show_default=False, hide_input=True)

    config = Configuration(registry=registry, auth_token=token.strip() or existing.auth_token)
    path = store.save(config)
    click.echo()
    click.secho(
        "✓ Configuration updated" if has_existing else "✓ Configuration created", fg="green"
    )
    click.echo(f"  Location: {path}")


def init_project(store: ConfigStore) -> None:
    click.secho("Initializing project qkdpx configuration...", fg="blue")
    click.echo("Only the registry is stored per project; tokens live in the global config.")
    current = store.load().registry
    registry = click.prompt("NPM registry URL", default=current, value_proc=_registry_value)
    path = store.save_project(registry)
    click.secho(f"✓ Wrote {path.name}", fg="green")


@cli.command()
@click.option("--global", "global_", is_flag=True, help="Initialize global configuration.")
@click.option("--show", is_flag=True, help="Show current configuration.")
def init(global_: bool, show: bool) -> None:
    """Create or update the qkdpx configuration."""
    store = ConfigStore()
    if show:
        show_config(store)
    elif global_:
        init_global(store)
    else:
        init_project(store)
