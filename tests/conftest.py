"""Global pytest configuration and fixtures for all tests."""

import logging
import sys
import textwrap
from pathlib import Path

import pytest

# Add parent directory to path to import the main module
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture(scope="function", autouse=True)
def reset_run_logger():
    """Global post-hook: close helm_bulk log handlers after each test.

    The CLI attaches a file handler for the run log; closing it keeps log
    files in one test's tmp_path from leaking into the next test.
    """
    yield

    logger = logging.getLogger("helm_bulk")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def write_manifest(tmp_path):
    """Factory fixture: write a manifest YAML string to tmp_path and return its path."""

    def _write(content: str, name: str = "config.yaml") -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(content))
        return path

    return _write


class FakeHelm:
    """Records helm argument vectors and returns preset exit codes."""

    def __init__(self, returncodes=None):
        self.calls = []
        self.returncodes = dict(returncodes or {})

    def __call__(self, cmd):
        self.calls.append(list(cmd))
        # keyed by release name (position 3 for upgrade --install, 2 for uninstall)
        release = cmd[3] if cmd[1] == "upgrade" else cmd[2]
        return self.returncodes.get(release, 0)

    @property
    def actions(self):
        return [cmd[1] for cmd in self.calls]


class FakePods:
    """Pod phase lister returning scripted observations per release."""

    def __init__(self, observations=None, default=("Running",)):
        self.observations = {k: list(v) for k, v in (observations or {}).items()}
        self.default = list(default)
        self.calls = []

    def __call__(self, release_name, namespace):
        self.calls.append((release_name, namespace))
        queue = self.observations.get(release_name)
        if queue:
            return queue.pop(0) if len(queue) > 1 else queue[0]
        return self.default


class FakeClock:
    """Monotonic clock advanced only by the paired sleep function."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_helm():
    return FakeHelm()


@pytest.fixture
def fake_pods():
    return FakePods()


@pytest.fixture
def fake_clock():
    return FakeClock()
