"""Helm repository management functions."""

import logging
import subprocess
from typing import Optional

import yaml

from .errors import HelmCommandFailed
from .helm_executor import HELM, run_helm

logger = logging.getLogger(__name__)


def get_registered_url(repo_name: str) -> Optional[str]:
    """Return the URL registered for a Helm repository alias, or None if it is not added."""
    try:
        result = subprocess.run(
            [HELM, "repo", "list", "-o", "json"],
            capture_output=True,
            text=True
        )
    except OSError as e:
        raise HelmCommandFailed(f"Cannot execute {HELM}: {e}") from e

    if result.returncode != 0:
        # helm exits non-zero when no repositories are configured
        return None

    try:
        repos = yaml.safe_load(result.stdout) or []
    except yaml.YAMLError:
        logger.warning("Could not parse 'helm repo list' output, assuming %s is not added", repo_name)
        return None

    for repo in repos:
        if isinstance(repo, dict) and repo.get("name") == repo_name:
            return repo.get("url") or ""
    return None


def is_repo_added(repo_name: str) -> bool:
    """Check if Helm repository is already added."""
    return get_registered_url(repo_name) is not None


def ensure_repo_added(repo_name: str, repo_url: str):
    """
    Ensure Helm repository is added with the expected URL and updated.

    An alias already registered for a different URL is re-added with
    --force-update.

    Raises:
        HelmCommandFailed: If `helm repo add` or `helm repo update` fails
    """
    registered_url = get_registered_url(repo_name)

    if registered_url is None:
        logger.info("Adding Helm repository %s (%s)", repo_name, repo_url)
        cmd = [HELM, "repo", "add", repo_name, repo_url]
    elif registered_url.rstrip("/") != repo_url.rstrip("/"):
        logger.warning("Helm repository %s points to %s, replacing with %s", repo_name, registered_url, repo_url)
        cmd = [HELM, "repo", "add", repo_name, repo_url, "--force-update"]
    else:
        logger.info("Helm repository %s already added", repo_name)
        cmd = None

    if cmd:
        returncode = run_helm(cmd)
        if returncode != 0:
            raise HelmCommandFailed(f"Failed to add Helm repository {repo_name} ({repo_url})", returncode)

    # Update repo to get latest chart info
    returncode = run_helm([HELM, "repo", "update", repo_name])
    if returncode != 0:
        raise HelmCommandFailed(f"Failed to update Helm repository {repo_name}", returncode)
