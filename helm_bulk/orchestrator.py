"""Sequential processing of the manifest's chart entries."""

import logging
import time
from typing import Callable, Optional

from .chart_manager import resolve_chart_ref
from .cluster import PodPhaseLister
from .errors import InvalidAction, HelmCommandFailed
from .helm_executor import ACTIONS, INSTALL, build_command, run_helm
from .manifest import ChartEntry, GlobalOptions, Manifest
from .readiness import wait_for_release
from .repo_manager import ensure_repo_added

logger = logging.getLogger(__name__)

PAUSE_BETWEEN_CHARTS = 2


def process_chart(
    action: str,
    chart: ChartEntry,
    options: GlobalOptions,
    helm: Callable[[list[str]], int],
    register_repo: Callable[[str, str], None],
    pod_lister: Callable[[str, str], list],
    sleep: Callable[[float], None],
    clock: Callable[[], float] = time.monotonic,
):
    """
    Apply one action to one chart entry.

    Raises:
        InvalidAction: If action is not install or uninstall
        HelmCommandFailed: If helm exits non-zero
        NoPodsFound, ReadinessTimeout: If the installed release does not become ready
    """
    if action not in ACTIONS:
        raise InvalidAction(action)

    logger.info("%s %s (chart %s, namespace %s)", action.capitalize(), chart.release_name, chart.chart_name, chart.namespace)

    chart_ref = None
    if action == INSTALL:
        chart_ref = resolve_chart_ref(chart)
        if chart_ref.needs_repo:
            register_repo(chart_ref.repo_alias, chart_ref.repo_url)

    cmd = build_command(action, chart, options, chart_ref)
    returncode = helm(cmd)
    if returncode != 0:
        raise HelmCommandFailed(f"helm {action} of {chart.release_name} failed with exit code {returncode}", returncode)

    if action == INSTALL and not options.dry_run:
        wait_for_release(chart.release_name, chart.namespace, pod_lister, clock=clock, sleep=sleep)


def run_charts(
    action: str,
    manifest: Manifest,
    helm: Optional[Callable[[list[str]], int]] = None,
    register_repo: Optional[Callable[[str, str], None]] = None,
    pod_lister: Optional[Callable[[str, str], list]] = None,
    sleep: Optional[Callable[[float], None]] = None,
    clock: Optional[Callable[[], float]] = None,
) -> int:
    """
    Apply an action to every chart of the manifest, in manifest order.

    The first failure aborts the run; remaining entries are not processed.
    Collaborators default to the real helm binary, the Kubernetes API,
    time.sleep and time.monotonic.

    Returns:
        Number of processed chart entries
    """
    helm = helm or run_helm
    register_repo = register_repo or ensure_repo_added
    pod_lister = pod_lister or PodPhaseLister()
    sleep = sleep or time.sleep
    clock = clock or time.monotonic

    if action not in ACTIONS:
        raise InvalidAction(action)

    charts = manifest.charts
    if not charts:
        logger.warning("No charts defined in %s, nothing to %s", manifest.path or "manifest", action)
        return 0

    if manifest.options.dry_run and action == INSTALL:
        logger.info("Dry run enabled, releases will not be changed")

    for index, chart in enumerate(charts):
        if index > 0:
            sleep(PAUSE_BETWEEN_CHARTS)
        logger.info("[%d/%d] %s", index + 1, len(charts), chart.release_name)
        process_chart(action, chart, manifest.options, helm, register_repo, pod_lister, sleep, clock)

    logger.info("Finished %s of %d chart(s)", action, len(charts))
    return len(charts)
