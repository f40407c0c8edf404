from __future__ import annotations

import logging
import signal
import sys

from dcr.api import create_app, serve_in_background
from dcr.errors import DCRError
from dcr.kube_ops import EventSink, build_core_v1, read_node
from dcr.logs import configure_logging
from dcr.notifier import Notifier
from dcr.reconciler import Reconciler
from dcr.runtime import Context, RuntimeState
from dcr.settings import Settings, load_config, parse_settings


log = logging.getLogger("dcr")

SHUTDOWN_FLUSH_S = 10.0


def bootstrap(settings: Settings) -> tuple[Context, Notifier]:
    """Everything that must succeed before the first pass. Raises DCRError."""
    log.info(
        "kubeconfig: %s node: %s mode: %s context: %s",
        settings.kubeconfig,
        settings.node,
        settings.mode,
        settings.context,
    )
    config = load_config(settings.config_path)
    core_v1 = build_core_v1(settings.kubeconfig, settings.context)
    node = read_node(core_v1, settings.node)
    log.info("config: %s", config.model_dump())

    ctx = Context(config=config, node_name=settings.node, core_v1=core_v1, mode=settings.mode)
    notifier = Notifier(EventSink(core_v1, node, host=settings.node))
    return ctx, notifier


def main(argv: list[str] | None = None) -> int:
    settings = parse_settings(argv)
    try:
        configure_logging(settings.log_level)
    except DCRError as e:
        print(str(e), file=sys.stderr)
        return 1

    try:
        ctx, notifier = bootstrap(settings)
    except DCRError as e:
        log.error("Startup failed: %s", e)
        return 1

    state = RuntimeState()
    reconciler = Reconciler(ctx, notifier.notify, state)

    def _shutdown(signum, _frame) -> None:
        log.info("Received signal %s, stopping after the current pass", signum)
        reconciler.stop()

    signal.signal(signal.SIGTERM, _shutdown)
    signal.signal(signal.SIGINT, _shutdown)

    notifier.start()
    if settings.status_port:
        serve_in_background(create_app(ctx, state), settings.status_port)
        log.info("Status endpoint listening on :%d", settings.status_port)

    try:
        reconciler.run_forever()
    finally:
        if not notifier.flush(SHUTDOWN_FLUSH_S):
            log.warning("Dropping undelivered events on shutdown")
        notifier.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
