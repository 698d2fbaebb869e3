"""Helm command construction and execution."""

import logging
import subprocess
from typing import Optional

from .chart_manager import ChartRef, resolve_chart_ref
from .errors import InvalidAction, HelmCommandFailed
from .manifest import ChartEntry, GlobalOptions
from .utils import format_command

logger = logging.getLogger(__name__)

HELM = "helm"
HELM_TIMEOUT = "20m"

INSTALL = "install"
UNINSTALL = "uninstall"
ACTIONS = (INSTALL, UNINSTALL)


def build_install_args(chart: ChartEntry, options: GlobalOptions, chart_ref: ChartRef) -> list[str]:
    """
    Build the `helm upgrade --install` argument vector for a chart entry.

    Optional flags are appended in a fixed order: --dry-run=client,
    --create-namespace, --wait, --timeout, --version.
    """
    cmd = [
        HELM, "upgrade", "--install",
        chart.release_name,
        chart_ref.reference,
        "-f", chart.values_file,
        "--namespace", chart.namespace,
    ]

    if options.dry_run:
        cmd.append("--dry-run=client")
    if options.create_namespace:
        cmd.append("--create-namespace")
    if options.wait:
        cmd.append("--wait")
    if options.timeout_enabled:
        cmd.append(f"--timeout={HELM_TIMEOUT}")
    if chart.version:
        cmd.extend(["--version", chart.version])

    return cmd


def build_uninstall_args(chart: ChartEntry) -> list[str]:
    """Build the `helm uninstall` argument vector. Global options do not apply."""
    return [HELM, "uninstall", chart.release_name, "--namespace", chart.namespace]


def build_command(action: str, chart: ChartEntry, options: GlobalOptions, chart_ref: Optional[ChartRef] = None) -> list[str]:
    """
    Build the helm invocation for an action.

    Raises:
        InvalidAction: If action is neither install nor uninstall
    """
    if action == INSTALL:
        return build_install_args(chart, options, chart_ref or resolve_chart_ref(chart))
    if action == UNINSTALL:
        return build_uninstall_args(chart)
    raise InvalidAction(action)


def run_helm(cmd: list[str]) -> int:
    """
    Run a helm command and copy its combined output into the run log.

    The argument vector is executed directly, never through a shell.

    Returns:
        Process exit status

    Raises:
        HelmCommandFailed: If the helm binary cannot be executed
    """
    logger.info("Running: %s", format_command(cmd))

    try:
        process = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except OSError as e:
        raise HelmCommandFailed(f"Cannot execute {cmd[0]}: {e}") from e

    for line in (process.stdout or "").splitlines():
        logger.debug("[%s] %s", cmd[0], line)

    if process.returncode != 0:
        logger.debug("%s exited with code %d", cmd[0], process.returncode)

    return process.returncode
