from __future__ import annotations

from dataclasses import asdict
from threading import Thread

import uvicorn
from fastapi import FastAPI

from .api_models import PassReport, StatusResponse
from .runtime import Context, RuntimeState


def create_app(ctx: Context, state: RuntimeState) -> FastAPI:
    app = FastAPI(title="Dangling Container Reconciler")

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "healthy"}

    @app.get("/status", response_model=StatusResponse)
    def status() -> StatusResponse:
        last = state.last_pass()
        return StatusResponse(
            node=ctx.node_name,
            mode=ctx.mode,
            passes=state.passes,
            config=ctx.config,
            last_pass=PassReport(**asdict(last)) if last else None,
        )

    return app


def serve_in_background(app: FastAPI, port: int, host: str = "0.0.0.0") -> Thread:
    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="warning"))
    thr = Thread(target=server.run, name="status-api", daemon=True)
    thr.start()
    return thr
