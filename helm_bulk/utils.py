"""Common utility functions for helm-bulk."""

import shlex
from urllib.parse import urlparse


def is_https_repo(repo_url: str) -> bool:
    """Check if the repository is a classic HTTPS Helm repository (not OCI)."""
    return repo_url.startswith("https://")


def get_repo_alias(repo_url: str) -> str:
    """
    Derive the local Helm repository alias from an HTTPS repo URL.

    The alias is the host component:
    For https://argoproj.github.io/argo-helm, return 'argoproj.github.io'
    For https://charts.bitnami.com:443/bitnami, return 'charts.bitnami.com'
    """
    host = urlparse(repo_url).hostname
    if not host:
        raise ValueError(f"Cannot derive repository alias from '{repo_url}'")
    return host


def format_command(cmd: list[str]) -> str:
    """Render an argument vector for log output."""
    return shlex.join(cmd)
