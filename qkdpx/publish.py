"""Build and publish steps.

Registry and token reach npm as command-line parameters of the single
`npm publish` call. Nothing is written to .npmrc, so there is no
credential file to clean up on any exit path. The token is masked
wherever the command is displayed.
"""

from __future__ import annotations

from urllib.parse import urlparse

import click

from .config import mask_token
from .errors import BuildFailed, CommandFailed, PublishCancelled, PublishFailed
from .models import Configuration, PackageDescriptor
from .shell import info, run


def run_build_if_present(descriptor: PackageDescriptor) -> bool:
    """Run `npm run build` when package.json defines a build script.

    Returns:
        True if a build ran.

    Raises:
        BuildFailed: If the build exits non-zero.
    """
    if not descriptor.has_build_script:
        info("No build script, skipping build")
        return False

    info("Running build script...")
    try:
        run("npm", "run", "build", cwd=descriptor.root)
    except CommandFailed as exc:
        raise BuildFailed(exc.returncode) from exc
    return True


def auth_token_key(registry: str) -> str:
    """npm's per-registry credential key, e.g. "//registry.npmjs.org/:_authToken"."""
    parsed = urlparse(registry)
    path = parsed.path if parsed.path.endswith("/") else parsed.path + "/"
    return f"//{parsed.netloc}{path}:_authToken"


def publish_command(config: Configuration, *, dry_run: bool = False) -> list[str]:
    cmd = ["npm", "publish", f"--registry={config.registry}"]
    if config.auth_token:
        cmd.append(f"--{auth_token_key(config.registry)}={config.auth_token}")
    if dry_run:
        cmd.append("--dry-run")
    return cmd


def describe_config(config: Configuration) -> None:
    click.echo("Using configuration:")
    click.echo(f"├── Registry: {click.style(config.registry, fg='green')}")
    if config.auth_token:
        click.echo(f"└── Auth token: {click.style(mask_token(config.auth_token), fg='yellow')}")
    else:
        click.echo(f"└── Auth token: {click.style('not configured', fg='red')}")


def _validate_token(value: str) -> str:
    if not value.strip():
        raise click.BadParameter("Token cannot be empty.")
    return value.strip()


def ask_for_credentials(config: Configuration, descriptor: PackageDescriptor) -> Configuration:
    """Let the user pick how to authenticate when no token is configured.

    "login" runs npm's own login flow against the registry; "token" asks
    for a token that is used for this publish only and never saved.
    """
    click.echo("No auth token configured and no .npmrc found.")
    method = click.prompt(
        "Authenticate with npm login or a one-off token?",
        type=click.Choice(["login", "token"]),
        default="login",
    )
    if method == "login":
        run("npm", "login", f"--registry={config.registry}", cwd=descriptor.root)
        return config

    token = click.prompt("Auth token", hide_input=True, value_proc=_validate_token)
    return config.model_copy(update={"auth_token": token.strip()})


def publish(
    descriptor: PackageDescriptor,
    version: str,
    config: Configuration,
    *,
    dry_run: bool = False,
    assume_yes: bool = False,
) -> None:
    """Publish the package to the configured registry.

    Raises:
        PublishCancelled: If the user declines the final confirmation.
        PublishFailed: If npm publish exits non-zero.
    """
    describe_config(config)

    interactive = not (assume_yes or dry_run)
    if interactive and not config.auth_token and not (descriptor.root / ".npmrc").exists():
        config = ask_for_credentials(config, descriptor)

    if interactive and not click.confirm(
        f"Ready to publish {descriptor.name}@{version}?", default=True
    ):
        raise PublishCancelled()

    secrets = [config.auth_token] if config.auth_token else []
    try:
        run(
            *publish_command(config, dry_run=dry_run),
            cwd=descriptor.root,
            secrets=secrets,
        )
    except CommandFailed as exc:
        raise PublishFailed(exc.returncode, exc.output) from exc
