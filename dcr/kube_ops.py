from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any

import urllib3
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException

from .errors import StartupError


log = logging.getLogger(__name__)

COMPONENT = "container-checker"
EVENT_TYPE_WARNING = "Warning"
# Node is cluster scoped; its events land in the default namespace.
EVENT_NAMESPACE = "default"

RUNTIME_SCHEMES = ("docker://", "containerd://", "cri-o://")
# Sidecar (init, restartPolicy=Always) and debug containers run on the node too.
STATUS_FIELDS = ("container_statuses", "init_container_statuses", "ephemeral_container_statuses")

KUBE_ERRORS = (ApiException, urllib3.exceptions.HTTPError, OSError)


def build_core_v1(kubeconfig: str = "", context: str = "") -> client.CoreV1Api:
    """Connect to the cluster: in-cluster service account first, then kubeconfig."""
    cfg = client.Configuration()
    try:
        config.load_incluster_config(client_configuration=cfg)
        log.info("Using in-cluster Kubernetes configuration")
    except ConfigException:
        try:
            config.load_kube_config(
                config_file=kubeconfig or None,
                context=context or None,
                client_configuration=cfg,
            )
        except (ConfigException, OSError) as e:
            raise StartupError(f"Error with connecting to cluster: {e}") from e
        log.info("Using kubeconfig %s (context=%s)", kubeconfig or "<default>", context or "<current>")
    return client.CoreV1Api(client.ApiClient(cfg))


def read_node(core_v1: client.CoreV1Api, node_name: str) -> Any:
    if not node_name:
        raise StartupError("Node name is not set (use --node or NODE).")
    try:
        return core_v1.read_node(node_name)
    except KUBE_ERRORS as e:
        raise StartupError(f"Node information was not retrieved: {e}") from e


def normalize_container_id(raw: str) -> str:
    for scheme in RUNTIME_SCHEMES:
        if raw.startswith(scheme):
            return raw[len(scheme):]
    return raw


def list_node_container_ids(core_v1: client.CoreV1Api, node_name: str) -> list[str]:
    """Container ids of every pod scheduled on node_name, across all namespaces.

    Regular, init and ephemeral container statuses all count. Status entries
    without a usable container id (e.g. still waiting) are skipped. API failures yield an empty list.
    """
    try:
        pods = core_v1.list_pod_for_all_namespaces(field_selector=f"spec.nodeName={node_name}")
    except KUBE_ERRORS as e:
        log.warning("Error in listing pods: %s", e)
        return []

    ids: list[str] = []
    for pod in getattr(pods, "items", None) or []:
        spec = getattr(pod, "spec", None)
        if getattr(spec, "node_name", None) != node_name:
            continue
        status = getattr(pod, "status", None)
        for field in STATUS_FIELDS:
            for cs in getattr(status, field, None) or []:
                raw = getattr(cs, "container_id", None)
                if not isinstance(raw, str) or not raw:
                    continue
                cid = normalize_container_id(raw)
                if cid:
                    ids.append(cid)
    return ids


class EventSink:
    """Writes events about the local node to the cluster event stream."""

    def __init__(self, core_v1: client.CoreV1Api, node: Any, host: str, component: str = COMPONENT):
        self.core_v1 = core_v1
        self.node = node
        self.host = host
        self.component = component

    def build_event(self, reason: str, message: str, now: datetime | None = None) -> client.CoreV1Event:
        now = now or datetime.now(timezone.utc)
        meta = self.node.metadata
        return client.CoreV1Event(
            metadata=client.V1ObjectMeta(name=f"{meta.name}.{time.time_ns():x}", namespace=EVENT_NAMESPACE),
            involved_object=client.V1ObjectReference(
                kind="Node",
                api_version="v1",
                name=meta.name,
                uid=getattr(meta, "uid", None),
            ),
            reason=reason,
            message=message,
            type=EVENT_TYPE_WARNING,
            source=client.V1EventSource(component=self.component, host=self.host),
            first_timestamp=now,
            last_timestamp=now,
            count=1,
        )

    def send(self, reason: str, message: str) -> None:
        self.core_v1.create_namespaced_event(EVENT_NAMESPACE, self.build_event(reason, message))
