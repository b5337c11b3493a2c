"""
ec2shell/cli.py

Command-line interface.

Usage:
    ec2shell ssh web                       # shell on the one "web" instance
    ec2shell ssh ubuntu@web uptime         # uptime on every "web" instance
    ec2shell ssh --private Env:prod df -h
    ec2shell ls web
    ec2shell ec2ri ls --all
    ec2shell init config
"""

import logging
import sys
from pathlib import Path

import click

from .config import SettingsManager, AppSettings, init_aws_profile
from .directory import EC2InstanceDirectory
from .errors import Ec2ShellError
from .listing import (
    DEFAULT_FIELDS,
    DEFAULT_RI_FIELDS,
    format_instances,
    format_reserved_instances,
)
from .session import AddressPreference, SessionRequest, SessionOrchestrator

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(debug: bool) -> None:
    """Log to stderr only, stdout carries command output."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
    # paramiko is chatty at DEBUG
    if not debug:
        logging.getLogger("paramiko").setLevel(logging.WARNING)


def fail(error: Ec2ShellError) -> None:
    """Print one error line and exit with the error's code."""
    click.echo(f"Error: {error}", err=True)
    sys.exit(error.exit_code)


def split_login(target: str, default_login: str) -> tuple[str, str]:
    """'user@tag' -> ('user', 'tag'); 'tag' -> (default_login, 'tag')."""
    if '@' in target:
        login_name, filter_tag = target.split('@', 1)
        return login_name or default_login, filter_tag
    return default_login, target


def make_directory(settings: AppSettings) -> EC2InstanceDirectory:
    return EC2InstanceDirectory(profile=settings.profile, region=settings.region)


@click.group()
@click.option("--config", "config_path", default=None,
              type=click.Path(dir_okay=False, path_type=Path),
              help="Config file (default ~/.ec2shell.yml)")
@click.option("--profile", default=None, help="AWS profile (default: AWS environment)")
@click.option("--region", default=None, help="AWS region (default: AWS environment)")
@click.option("--debug", is_flag=True, default=False, help="Enable debug logging")
@click.version_option(package_name="ec2shell")
@click.pass_context
def cli(ctx, config_path, profile, region, debug):
    """Find EC2 instances by tag and open SSH sessions to them."""
    ctx.ensure_object(dict)
    manager = SettingsManager(config_path)
    try:
        settings = manager.settings.merged(profile=profile, region=region)
    except Ec2ShellError as e:
        fail(e)
    if debug:
        settings.debug = True

    setup_logging(settings.debug)
    ctx.obj["manager"] = manager
    ctx.obj["settings"] = settings


@cli.command("ssh", context_settings={
    "ignore_unknown_options": True,
    "allow_interspersed_args": False,
})
@click.option("-l", "--login-name", default=None,
              help="Login user (default from config, ec2-user)")
@click.option("-i", "--identity-file", default=None,
              help="Private key file (default from config, ~/.ssh/id_rsa)")
@click.option("--private", is_flag=True, default=False,
              help="Connect to the private instead of the public address")
@click.argument("target")
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def ssh(ctx, login_name, identity_file, private, target, command):
    """
    SSH to instances matching [USER@]FILTER_TAG.

    Without COMMAND, opens a shell on the single matching instance.
    With COMMAND, runs it on every matching instance in turn and stops
    at the first failure.
    """
    settings = ctx.obj["settings"].merged(
        login_name=login_name,
        identity_file=identity_file,
        private=private or None,
    )
    login, filter_tag = split_login(target, settings.login_name)
    if command and command[0] == "--":
        command = command[1:]

    request = SessionRequest(
        filter_tag=filter_tag,
        login_name=login,
        identity_file=settings.identity_file,
        address_preference=AddressPreference.from_private_flag(settings.private),
        command=" ".join(command) or None,
    )

    orchestrator = SessionOrchestrator(
        make_directory(settings),
        connect_timeout=settings.connect_timeout,
    )
    try:
        orchestrator.run(request)
    except Ec2ShellError as e:
        fail(e)


@cli.command("ls")
@click.argument("filter_tag", required=False, default=None)
@click.option("-a", "--all", "show_all", is_flag=True,
              help="Include instances that are not running")
@click.option("-q", "--quiet", is_flag=True, help="Only show instance IDs")
@click.option("-F", "--fields", default=",".join(DEFAULT_FIELDS), show_default=True,
              help="Comma separated output fields")
@click.pass_context
def list_instances(ctx, filter_tag, show_all, quiet, fields):
    """List instances, optionally filtered by tag."""
    directory = make_directory(ctx.obj["settings"])
    field_list = [f.strip() for f in fields.split(",") if f.strip()]

    try:
        instances = directory.find(filter_tag, only_active=not show_all)
        lines = format_instances(instances, field_list, quiet=quiet)
    except Ec2ShellError as e:
        fail(e)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--fields")

    for line in lines:
        click.echo(line)


@cli.group("ec2ri")
def ec2ri():
    """Reserved instances."""
    pass


@ec2ri.command("ls")
@click.option("-a", "--all", "show_all", is_flag=True,
              help="Include reservations that are not active")
@click.option("-q", "--quiet", is_flag=True, help="Only show reserved instance IDs")
@click.option("-F", "--fields", default=",".join(DEFAULT_RI_FIELDS), show_default=True,
              help="Comma separated output fields")
@click.pass_context
def list_reserved_instances(ctx, show_all, quiet, fields):
    """List reserved instances, active ones unless --all."""
    directory = make_directory(ctx.obj["settings"])
    field_list = [f.strip() for f in fields.split(",") if f.strip()]

    try:
        reserved = directory.find_reserved_instances(include_all=show_all)
        lines = format_reserved_instances(reserved, field_list, quiet=quiet)
    except Ec2ShellError as e:
        fail(e)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--fields")

    for line in lines:
        click.echo(line)


@cli.group("init")
def init():
    """Create configuration files."""
    pass


@init.command("config")
@click.pass_context
def init_config(ctx):
    """Write a default ~/.ec2shell.yml."""
    manager = ctx.obj["manager"]
    try:
        path = manager.init_config()
    except Ec2ShellError as e:
        fail(e)
    click.echo(f"Created config file => ({path})")


@init.command("profile")
def init_profile():
    """Create ~/.aws/credentials with a placeholder profile."""
    try:
        path = init_aws_profile()
    except Ec2ShellError as e:
        fail(e)
    click.echo(f"Created credentials file at {path}")


def main():
    """Entry point for CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
