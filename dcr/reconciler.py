from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from threading import Event, Thread
from typing import Any, Callable, Iterable, Sequence

from . import docker_ops, kube_ops
from .docker_ops import ContainerRecord
from .runtime import Context, PassSummary, RuntimeState, utc_now
from .settings import MODE_REMOVE


log = logging.getLogger(__name__)


def _is_known(container_id: str, known_ids: Iterable[str]) -> bool:
    return any(k in container_id for k in known_ids)


def find_orphans(containers: Sequence[ContainerRecord], known_ids: Sequence[str]) -> list[ContainerRecord]:
    """Containers for which no orchestrator id is a substring of the container id.

    Matching is deliberately loose (substring, not equality) so truncated or
    prefixed ids still match. Runtime order is kept.
    """
    return [c for c in containers if not _is_known(c.id, known_ids)]


class Dispatcher:
    """Acts on orphans: report them (watch) or stop them (remove)."""

    def __init__(self, mode: str, stop_timeout_s: int, notify: Callable[[str], Any]):
        self.mode = mode
        self.stop_timeout_s = stop_timeout_s
        self.notify = notify

    def dispatch(self, orphans: Iterable[ContainerRecord], client: Any) -> list[str]:
        messages: list[str] = []
        for c in orphans:
            if self.mode == MODE_REMOVE:
                log.info("Stopping container: %s (%s) timeout=%ss", c.id, c.image, self.stop_timeout_s)
                # The message is the same whether or not the stop succeeded.
                docker_ops.stop_container(client, c.id, self.stop_timeout_s)
                msg = f"Dangling container stopped: {c.id} ({c.image_id})"
            else:
                log.info("Observing dangling container: %s (%s)", c.id, c.image)
                msg = f"Dangling container found: {c.id} ({c.image_id})"
            self.notify(msg)
            messages.append(msg)
        return messages


class Reconciler:
    """Runs a reconciliation pass, sleeps check_interval, and repeats."""

    def __init__(self, ctx: Context, notify: Callable[[str], Any], state: RuntimeState | None = None):
        self.ctx = ctx
        self.state = state
        self.dispatcher = Dispatcher(ctx.mode, ctx.config.timing.stop_timeout, notify)
        self._stop = Event()
        self._thr: Thread | None = None

    def start(self) -> None:
        if self._thr and self._thr.is_alive():
            return
        self._thr = Thread(target=self.run_forever, name="reconciler", daemon=True)
        self._thr.start()

    def stop(self) -> None:
        self._stop.set()

    def run_forever(self) -> None:
        log.info(
            "Reconciler started (node=%s mode=%s interval=%ss)",
            self.ctx.node_name,
            self.ctx.mode,
            self.ctx.config.timing.check_interval,
        )
        while not self._stop.is_set():
            try:
                self.run_pass()
            except Exception as e:
                log.error("Reconciliation pass failed: %s: %s", type(e).__name__, e)
            self._stop.wait(self.ctx.config.timing.check_interval)

    def _fetch_runtime(self) -> tuple[Any, list[ContainerRecord]]:
        client = docker_ops.connect(self.ctx.docker_factory)
        return client, docker_ops.list_running_containers(client, self.ctx.config.whitelist.images)

    def _fetch_orchestrator(self) -> list[str]:
        return kube_ops.list_node_container_ids(self.ctx.core_v1, self.ctx.node_name)

    @staticmethod
    def _result(fut: Future, side: str, empty: Any) -> Any:
        try:
            return fut.result()
        except Exception as e:
            log.error("Fetching %s inventory failed: %s: %s", side, type(e).__name__, e)
            return empty

    def run_pass(self) -> list[ContainerRecord]:
        summary = PassSummary(started_at=utc_now())

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="fetch") as pool:
            runtime_fut = pool.submit(self._fetch_runtime)
            kube_fut = pool.submit(self._fetch_orchestrator)
            client, containers = self._result(runtime_fut, "docker", (None, []))
            known_ids = self._result(kube_fut, "kubernetes", [])

        try:
            orphans = find_orphans(containers, known_ids)
            for c in orphans:
                log.warning("Orphan container found: %s (%s) age=%s", c.id, c.image, c.age())

            if orphans:
                log.info("Found %d orphaned container(s) out of %d.", len(orphans), len(containers))
                self.dispatcher.dispatch(orphans, client)
            else:
                log.info("No orphaned containers found.")
        finally:
            if client is not None:
                client.close()

        summary.finished_at = utc_now()
        summary.runtime_containers = len(containers)
        summary.orchestrator_ids = len(known_ids)
        summary.orphans = [c.id for c in orphans]
        if self.state is not None:
            self.state.record_pass(summary)
        return orphans
