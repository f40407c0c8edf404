from __future__ import annotations

from pydantic import BaseModel, Field

from .settings import Config


class PassReport(BaseModel):
    started_at: str
    finished_at: str | None = None
    runtime_containers: int = Field(0, ge=0, description="Non-whitelisted containers seen on the daemon")
    orchestrator_ids: int = Field(0, ge=0, description="Container ids Kubernetes reports for this node")
    orphans: list[str] = Field(default_factory=list)


class StatusResponse(BaseModel):
    node: str
    mode: str
    passes: int
    config: Config
    last_pass: PassReport | None = None
