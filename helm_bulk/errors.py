"""Exception types raised by helm-bulk.

Every error carries the process exit code click uses when the exception
escapes a command.
"""

import click

EXIT_CLUSTER_QUERY = 1
EXIT_READINESS_TIMEOUT = 2
EXIT_NO_PODS = 3
EXIT_INVALID_ACTION = 4
EXIT_HELM_FAILED = 5
EXIT_INVALID_MANIFEST = 6
EXIT_INVALID_FLAG = 7
EXIT_MANIFEST_NOT_FOUND = 8


class HelmBulkError(click.ClickException):
    """Base class for errors that terminate a run."""
    exit_code = 1


class ManifestNotFound(HelmBulkError):
    exit_code = EXIT_MANIFEST_NOT_FOUND


class ManifestParseError(HelmBulkError):
    exit_code = EXIT_INVALID_MANIFEST


class ManifestMissingField(ManifestParseError):
    """Raised when a chart record lacks one of the required fields."""

    def __init__(self, field: str, index: int, release_name: str = None):
        where = f"chart #{index}"
        if release_name:
            where += f" ({release_name})"
        super().__init__(f"Invalid manifest: {where} is missing required field '{field}'")
        self.field = field
        self.index = index


class InvalidAction(HelmBulkError):
    exit_code = EXIT_INVALID_ACTION

    def __init__(self, action: str):
        super().__init__(f"Invalid action '{action}', expected one of: install, uninstall, help")
        self.action = action


class HelmCommandFailed(HelmBulkError):
    exit_code = EXIT_HELM_FAILED

    def __init__(self, message: str, returncode: int = None):
        super().__init__(message)
        self.returncode = returncode


class NoPodsFound(HelmBulkError):
    exit_code = EXIT_NO_PODS


class ReadinessTimeout(HelmBulkError):
    exit_code = EXIT_READINESS_TIMEOUT


class ClusterQueryFailed(HelmBulkError):
    exit_code = EXIT_CLUSTER_QUERY


class InvalidFlag(click.UsageError):
    """Usage error (unknown flag, missing option value) with its own exit code."""
    exit_code = EXIT_INVALID_FLAG
