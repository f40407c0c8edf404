from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Callable

import docker

from .settings import MODE_WATCH, Config


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class Context:
    """Everything a pass needs; built once at startup and never mutated."""

    config: Config
    node_name: str
    core_v1: Any
    mode: str = MODE_WATCH
    docker_factory: Callable[[], docker.DockerClient] = docker.from_env


@dataclass
class PassSummary:
    started_at: str
    finished_at: str | None = None
    runtime_containers: int = 0
    orchestrator_ids: int = 0
    orphans: list[str] = field(default_factory=list)


class RuntimeState:
    """Last completed pass, for the status endpoint."""

    def __init__(self) -> None:
        self.lock = Lock()
        self.passes = 0
        self._last: PassSummary | None = None

    def record_pass(self, summary: PassSummary) -> None:
        with self.lock:
            self.passes += 1
            self._last = summary

    def last_pass(self) -> PassSummary | None:
        with self.lock:
            return self._last
