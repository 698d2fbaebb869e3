"""Chart reference resolution."""

import logging
from dataclasses import dataclass
from typing import Optional

from .errors import ManifestParseError
from .manifest import ChartEntry
from .utils import is_https_repo, get_repo_alias

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChartRef:
    """Chart reference as passed to helm, plus the repository to register (if any)."""
    reference: str
    repo_alias: Optional[str] = None
    repo_url: Optional[str] = None

    @property
    def needs_repo(self) -> bool:
        return self.repo_alias is not None


def resolve_chart_ref(chart: ChartEntry) -> ChartRef:
    """
    Compute the chart reference for a chart entry.

    HTTPS repositories are referenced through a local alias derived from the
    repository host (alias/chart_name); the alias must be registered with
    `helm repo add` before use. Anything else is treated as an OCI reference
    and used directly (chart_repo/chart_name).
    """
    if is_https_repo(chart.chart_repo):
        try:
            repo_alias = get_repo_alias(chart.chart_repo)
        except ValueError as e:
            raise ManifestParseError(f"Invalid chart_repo for {chart.release_name}: {e}") from e
        return ChartRef(
            reference=f"{repo_alias}/{chart.chart_name}",
            repo_alias=repo_alias,
            repo_url=chart.chart_repo,
        )

    return ChartRef(reference=f"{chart.chart_repo.rstrip('/')}/{chart.chart_name}")
