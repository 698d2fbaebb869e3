"""
helm-bulk - Install or uninstall a list of Helm releases from one manifest.
Reads config.yaml, runs helm for every chart in order and waits for the
installed releases to become ready.
"""

import logging
from pathlib import Path

import click

from .errors import HelmBulkError, InvalidAction, InvalidFlag
from .helm_executor import INSTALL, UNINSTALL, build_command
from .logs import DEFAULT_LOG_FILE, setup_logging
from .manifest import ChartEntry, GlobalOptions, Manifest, load_manifest, resolve_chart
from .orchestrator import run_charts
from .readiness import ReadinessPoller, PollState, wait_for_release

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

BANNER = r"""
+------------------------------------------+
|  helm-bulk  -  batch Helm releases       |
+------------------------------------------+
"""


class FlagErrorMixin:
    """Report option parsing errors with the invalid flag exit code."""

    def parse_args(self, ctx, args):
        try:
            return super().parse_args(ctx, args)
        except InvalidFlag:
            raise
        except click.UsageError as e:
            raise InvalidFlag(e.format_message(), ctx=e.ctx or ctx) from e


class ActionCommand(FlagErrorMixin, click.Command):
    pass


class ActionGroup(FlagErrorMixin, click.Group):
    command_class = ActionCommand

    def parse_args(self, ctx, args):
        if not args:
            raise InvalidFlag("Missing action: expected one of install, uninstall, help", ctx=ctx)
        return super().parse_args(ctx, args)

    def resolve_command(self, ctx, args):
        if args and not args[0].startswith("-") and self.get_command(ctx, args[0]) is None:
            raise InvalidAction(args[0])
        return super().resolve_command(ctx, args)


def manifest_options(f):
    """Options shared by the install and uninstall commands."""
    f = click.option(
        '--log-file',
        type=click.Path(dir_okay=False, path_type=Path),
        default=DEFAULT_LOG_FILE,
        envvar='HELM_BULK_LOG_FILE',
        show_default=True,
        help='Run log file; the previous run log is rotated to <file>.1'
    )(f)
    f = click.option(
        '--verbose',
        is_flag=True,
        help='Show helm output and debug messages on the console'
    )(f)
    f = click.option(
        '-f', '--file', 'manifest_file',
        type=click.Path(path_type=Path),
        default='config.yaml',
        show_default=True,
        help='Manifest listing the charts to process'
    )(f)
    return f


def execute(action: str, manifest_file: Path, verbose: bool = False, log_file: Path = Path(DEFAULT_LOG_FILE)) -> int:
    """
    Load the manifest and apply action to all of its charts.

    Errors are written to the run log before they propagate to click, which
    prints them and exits with the error's exit code.
    """
    setup_logging(log_file, verbose)
    click.echo(BANNER)

    logger.info("helm-bulk %s: %s using %s", __version__, action, manifest_file)
    try:
        manifest = load_manifest(manifest_file)
        count = run_charts(action, manifest)
    except HelmBulkError as e:
        logger.error(e.format_message(), extra={"file_only": True})
        raise

    click.echo(f"Done: {action} of {count} chart(s) completed")
    return count


@click.group(cls=ActionGroup)
@click.version_option(version=__version__, prog_name='helm-bulk')
def cli():
    """helm-bulk - Install or uninstall Helm releases listed in a manifest.

    Charts are processed one at a time, in manifest order. After each
    install the release pods are checked until they are all Running.
    """
    pass


@cli.command()
@manifest_options
def install(manifest_file, verbose, log_file):
    """Install or upgrade every release in the manifest.

    Examples:

      helm-bulk install

      helm-bulk install -f charts.yaml --verbose
    """
    execute(INSTALL, manifest_file, verbose, log_file)


@cli.command()
@manifest_options
def uninstall(manifest_file, verbose, log_file):
    """Uninstall every release in the manifest."""
    execute(UNINSTALL, manifest_file, verbose, log_file)


@cli.command(name='help')
@click.pass_context
def help_command(ctx):
    """Show usage and exit."""
    click.echo(ctx.parent.get_help())


__all__ = [
    "cli",
    "execute",
    "load_manifest",
    "resolve_chart",
    "build_command",
    "run_charts",
    "wait_for_release",
    "ReadinessPoller",
    "PollState",
    "GlobalOptions",
    "ChartEntry",
    "Manifest",
]
