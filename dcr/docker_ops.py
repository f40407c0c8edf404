from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable

import docker
from docker.errors import DockerException
from requests.exceptions import RequestException


log = logging.getLogger(__name__)

# Anything that can go wrong talking to the daemon socket.
RUNTIME_ERRORS = (DockerException, RequestException)


@dataclass(frozen=True)
class ContainerRecord:
    id: str
    image: str
    image_id: str
    created: datetime

    def age(self, now: datetime | None = None):
        return (now or datetime.now(timezone.utc)) - self.created


def connect(factory: Callable[[], docker.DockerClient] = docker.from_env) -> docker.DockerClient | None:
    """Open a client for the local daemon, or None when it is unreachable."""
    try:
        return factory()
    except RUNTIME_ERRORS as e:
        log.warning("Cannot connect to Docker daemon: %s", e)
        return None


def is_whitelisted(image: str, whitelist: Iterable[str]) -> bool:
    return any(rule in image for rule in whitelist)


def _to_record(attrs: dict) -> ContainerRecord | None:
    container_id = attrs.get("Id")
    if not container_id:
        return None
    created = attrs.get("Created") or 0
    try:
        created_at = datetime.fromtimestamp(int(created), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        created_at = datetime.fromtimestamp(0, tz=timezone.utc)
    return ContainerRecord(
        id=str(container_id),
        image=str(attrs.get("Image") or ""),
        image_id=str(attrs.get("ImageID") or ""),
        created=created_at,
    )


def list_running_containers(client: docker.DockerClient | None, whitelist: Iterable[str]) -> list[ContainerRecord]:
    """Running containers on the local daemon, minus whitelisted images.

    Uses a single list call (sparse, no per-container inspect). If the daemon
    cannot be reached the inventory is empty for this pass.
    """
    if client is None:
        return []
    rules = list(whitelist)
    try:
        containers = client.containers.list(sparse=True)
    except RUNTIME_ERRORS as e:
        log.warning("No running containers found in Docker: %s", e)
        return []

    records: list[ContainerRecord] = []
    for c in containers:
        rec = _to_record(getattr(c, "attrs", None) or {})
        if rec is None:
            log.debug("Skipping container entry without an id")
            continue
        if is_whitelisted(rec.image, rules):
            continue
        records.append(rec)
    return records


def stop_container(client: docker.DockerClient | None, container_id: str, timeout_s: int) -> bool:
    """Stop a container, giving it timeout_s seconds before it is killed.

    Returns False if the stop call failed; the caller decides what to report.
    """
    if client is None:
        log.error("Cannot stop container %s: Docker daemon not connected", container_id)
        return False
    try:
        client.api.stop(container_id, timeout=timeout_s)
        return True
    except RUNTIME_ERRORS as e:
        log.error("Failed to stop container %s: %s", container_id, e)
        return False
