"""
Release readiness polling.

After a release is installed, its pods (selected by the release instance
label) are polled until all of them report the Running phase. The poller is
a small state machine:

    POLLING -> READY       all pods Running
    POLLING -> NO_PODS     no pods match the release
    POLLING -> TIMED_OUT   still not ready after the timeout

A release with no pods at all fails on the first observation. This can race
with a freshly installed release whose pods are not created yet.
"""

import enum
import logging
import time
from typing import Callable

from .errors import NoPodsFound, ReadinessTimeout

logger = logging.getLogger(__name__)

READY_PHASE = "Running"
DEFAULT_TIMEOUT = 1200
DEFAULT_INTERVAL = 5


class PollState(enum.Enum):
    POLLING = "polling"
    READY = "ready"
    NO_PODS = "no_pods"
    TIMED_OUT = "timed_out"

    @property
    def terminal(self) -> bool:
        return self is not PollState.POLLING


class ReadinessPoller:
    """Bounded readiness check for one release.

    Args:
        release_name: Release whose pods are checked
        namespace: Namespace of the release
        list_pod_phases: Callable (release_name, namespace) -> list of pod phases
        timeout: Seconds after which polling gives up
        interval: Seconds to sleep between observations
        clock: Monotonic clock, injectable for tests
        sleep: Sleep function, injectable for tests
    """

    def __init__(
        self,
        release_name: str,
        namespace: str,
        list_pod_phases: Callable[[str, str], list],
        timeout: float = DEFAULT_TIMEOUT,
        interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.release_name = release_name
        self.namespace = namespace
        self.list_pod_phases = list_pod_phases
        self.timeout = timeout
        self.interval = interval
        self.clock = clock
        self.sleep = sleep
        self.state = PollState.POLLING
        self.started_at = None
        self.checks = 0

    @property
    def elapsed(self) -> float:
        if self.started_at is None:
            return 0.0
        return self.clock() - self.started_at

    def tick(self) -> PollState:
        """Observe the release pods once and move to the next state."""
        if self.state.terminal:
            return self.state
        if self.started_at is None:
            self.started_at = self.clock()

        phases = self.list_pod_phases(self.release_name, self.namespace)
        self.checks += 1

        if not phases:
            self.state = PollState.NO_PODS
        elif all(phase == READY_PHASE for phase in phases):
            self.state = PollState.READY
        elif self.elapsed > self.timeout:
            self.state = PollState.TIMED_OUT
        else:
            running = sum(1 for phase in phases if phase == READY_PHASE)
            logger.info(
                "Waiting for %s in %s: %d/%d pods running (%ds elapsed)",
                self.release_name, self.namespace, running, len(phases), int(self.elapsed),
            )

        return self.state

    def run(self) -> PollState:
        """Tick until a terminal state is reached, sleeping between ticks."""
        while not self.tick().terminal:
            self.sleep(self.interval)
        return self.state


def wait_for_release(release_name: str, namespace: str, list_pod_phases: Callable[[str, str], list], **kwargs) -> PollState:
    """
    Block until all pods of a release are Running.

    Keyword arguments are passed to ReadinessPoller.

    Raises:
        NoPodsFound: If no pods match the release
        ReadinessTimeout: If the pods are not all Running before the timeout
    """
    poller = ReadinessPoller(release_name, namespace, list_pod_phases, **kwargs)
    logger.info("Checking readiness of %s in namespace %s", release_name, namespace)
    state = poller.run()

    if state is PollState.NO_PODS:
        raise NoPodsFound(f"No pods found for release {release_name} in namespace {namespace}")
    if state is PollState.TIMED_OUT:
        raise ReadinessTimeout(
            f"Release {release_name} in namespace {namespace} not ready after {int(poller.timeout)} seconds"
        )

    logger.info("Release %s is ready (%d check(s))", release_name, poller.checks)
    return state
