"""Kubernetes API access for release pod status."""

import logging
from typing import Optional

import urllib3
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from .errors import ClusterQueryFailed

logger = logging.getLogger(__name__)

RELEASE_LABEL = "app.kubernetes.io/instance"


def load_core_api(kubeconfig: Optional[str] = None) -> client.CoreV1Api:
    """
    Create a CoreV1Api client.

    Uses the kubeconfig (KUBECONFIG or ~/.kube/config by default) and falls
    back to the in-cluster service account when no kubeconfig is available.
    """
    try:
        config.load_kube_config(config_file=kubeconfig)
    except ConfigException as e:
        logger.debug("No usable kubeconfig (%s), trying in-cluster configuration", e)
        try:
            config.load_incluster_config()
        except ConfigException as e:
            raise ClusterQueryFailed(f"Cannot load Kubernetes configuration: {e}") from e
    return client.CoreV1Api()


class PodPhaseLister:
    """Callable returning the phases of all pods that belong to a release.

    The Kubernetes client is created on first use, so runs that never poll
    (dry runs, uninstalls) do not need cluster credentials.
    """

    def __init__(self, core_api: Optional[client.CoreV1Api] = None, kubeconfig: Optional[str] = None):
        self._core_api = core_api
        self._kubeconfig = kubeconfig

    @property
    def core_api(self) -> client.CoreV1Api:
        if self._core_api is None:
            self._core_api = load_core_api(self._kubeconfig)
        return self._core_api

    def __call__(self, release_name: str, namespace: str) -> list[str]:
        selector = f"{RELEASE_LABEL}={release_name}"
        try:
            pods = self.core_api.list_namespaced_pod(namespace, label_selector=selector).items
        except ApiException as e:
            raise ClusterQueryFailed(
                f"Failed to list pods for release {release_name} in namespace {namespace}: {e.status} {e.reason}"
            ) from e
        except urllib3.exceptions.HTTPError as e:
            raise ClusterQueryFailed(
                f"Cannot reach the Kubernetes API while listing pods for release {release_name}: {e}"
            ) from e

        phases = [(pod.status.phase if pod.status else None) or "Unknown" for pod in pods]
        for pod, phase in zip(pods, phases):
            logger.debug("Pod %s/%s: %s", namespace, pod.metadata.name, phase)
        return phases
