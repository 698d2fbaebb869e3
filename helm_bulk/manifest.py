"""
Manifest loading and per-chart defaulting.

The manifest is a YAML document with global run options and an ordered list
of chart records:

    dry_run: false
    create_namespace: true
    wait: false
    timeout: true
    charts:
      - release_name: argocd
        chart_name: argo-cd
        chart_repo: https://argoproj.github.io/argo-helm
        values_file: values/argocd.yaml
        version: 6.4.0
        namespace: argo-cd
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from .errors import ManifestNotFound, ManifestParseError, ManifestMissingField

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "default"
REQUIRED_FIELDS = ("release_name", "chart_name", "chart_repo", "values_file")
CHART_FIELDS = REQUIRED_FIELDS + ("namespace", "version")

# manifest key -> GlobalOptions attribute
OPTION_KEYS = {
    "dry_run": "dry_run",
    "create_namespace": "create_namespace",
    "wait": "wait",
    "timeout": "timeout_enabled",
}


@dataclass(frozen=True)
class GlobalOptions:
    dry_run: bool = False
    create_namespace: bool = False
    wait: bool = False
    timeout_enabled: bool = False


@dataclass(frozen=True)
class ChartEntry:
    release_name: str
    chart_name: str
    chart_repo: str
    values_file: str
    namespace: str = DEFAULT_NAMESPACE
    version: Optional[str] = None


@dataclass(frozen=True)
class Manifest:
    options: GlobalOptions
    charts: tuple
    path: Optional[Path] = None


def _scalar(value, field: str = None, index: int = 0) -> Optional[str]:
    """Return value as a stripped string, or None when it is null or blank."""
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise ManifestParseError(f"Invalid manifest: chart #{index} field '{field}' must be a scalar value")
    text = str(value).strip()
    return text or None


def resolve_chart(record: dict, index: int = 0) -> ChartEntry:
    """
    Build a ChartEntry from a raw chart record.

    Missing namespace falls back to "default"; missing version stays None,
    meaning the latest chart version.

    Raises:
        ManifestMissingField: If a required field is absent or empty
        ManifestParseError: If a field holds a mapping or a list
    """
    values = {field: _scalar(record.get(field), field, index) for field in CHART_FIELDS}
    for field in REQUIRED_FIELDS:
        if values[field] is None:
            raise ManifestMissingField(field, index, values["release_name"])

    return ChartEntry(
        release_name=values["release_name"],
        chart_name=values["chart_name"],
        chart_repo=values["chart_repo"],
        values_file=values["values_file"],
        namespace=values["namespace"] or DEFAULT_NAMESPACE,
        version=values["version"],
    )


def parse_options(data: dict) -> GlobalOptions:
    """Read the global boolean switches, defaulting absent ones to False."""
    values = {}
    for key, attr in OPTION_KEYS.items():
        value = data.get(key)
        if value is None:
            value = False
        if not isinstance(value, bool):
            raise ManifestParseError(f"Invalid manifest: '{key}' must be true or false, got {value!r}")
        values[attr] = value
    return GlobalOptions(**values)


def parse_manifest(data, path: Optional[Path] = None) -> Manifest:
    """
    Validate a parsed manifest document and resolve every chart record.

    All records are resolved up front, so a malformed entry anywhere in the
    list fails the run before any helm command is executed.
    """
    if not isinstance(data, dict):
        raise ManifestParseError("Invalid manifest: top level must be a mapping")

    options = parse_options(data)

    records = data.get("charts") or []
    if not isinstance(records, list):
        raise ManifestParseError("Invalid manifest: 'charts' must be a list")

    charts = []
    seen = set()
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise ManifestParseError(f"Invalid manifest: chart #{index} must be a mapping")
        chart = resolve_chart(record, index)
        if chart.release_name in seen:
            raise ManifestParseError(f"Invalid manifest: duplicate release_name '{chart.release_name}'")
        seen.add(chart.release_name)
        charts.append(chart)

    return Manifest(options=options, charts=tuple(charts), path=path)


def load_manifest(path: Path = Path("config.yaml")) -> Manifest:
    """
    Load and validate the manifest file.

    Raises:
        ManifestNotFound: If path does not exist or cannot be read
        ManifestParseError: If the document is not valid YAML or has the wrong shape
        ManifestMissingField: If a chart record lacks a required field
    """
    path = Path(path)
    if not path.is_file():
        raise ManifestNotFound(f"Manifest file not found: {path}")

    logger.info("Loading manifest %s", path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise ManifestParseError(f"Invalid manifest {path}: {e}") from e
    except OSError as e:
        raise ManifestNotFound(f"Cannot read manifest file {path}: {e}") from e

    manifest = parse_manifest(data, path)
    logger.debug("Global options: %s", manifest.options)
    logger.info("Loaded %d chart(s) from %s", len(manifest.charts), path)
    return manifest
