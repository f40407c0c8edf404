from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError


MODE_WATCH = "watch"
MODE_REMOVE = "remove"
MODES = (MODE_WATCH, MODE_REMOVE)

DEFAULT_CONFIG_PATH = "/config/config.yaml"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if not raw:
        return default
    return raw


class Timing(BaseModel):
    check_interval: int = Field(90, ge=1, description="Seconds to sleep between passes")
    stop_timeout: int = Field(30, ge=0, description="Grace period handed to docker stop")


class Whitelist(BaseModel):
    images: list[str] = Field(default_factory=list, description="Image reference substrings to ignore")


class Config(BaseModel):
    timing: Timing = Field(default_factory=Timing)
    whitelist: Whitelist = Field(default_factory=Whitelist)


def load_config(path: str | os.PathLike[str]) -> Config:
    """Read and validate the YAML configuration file.

    Missing sections keep their defaults; an empty file yields the defaults.
    Any read, parse or validation problem raises ConfigError.
    """
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read config file {p}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {p}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {p} must contain a mapping, got {type(raw).__name__}")

    try:
        return Config.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {p}: {e}") from e


@dataclass(frozen=True)
class Settings:
    # Kubernetes access
    kubeconfig: str
    context: str
    node: str

    # Behaviour
    mode: str = MODE_WATCH
    config_path: str = DEFAULT_CONFIG_PATH

    # Ambient
    log_level: str = "INFO"
    status_port: int = 0


def _default_kubeconfig() -> str:
    home = os.getenv("HOME")
    if home:
        return os.path.join(home, ".kube", "config")
    return ""


def parse_settings(argv: list[str] | None = None) -> Settings:
    """Build Settings from command line flags, falling back to the environment."""
    p = argparse.ArgumentParser(
        description="Report or stop Docker containers that Kubernetes no longer knows about"
    )
    p.add_argument("--kubeconfig", default=_default_kubeconfig(), help="(optional) absolute path to the kubeconfig file")
    p.add_argument("--context", default="", help="kubeconfig context to use")
    p.add_argument("--node", default=_env_str("NODE", ""), help="current node")
    p.add_argument("--mode", default=_env_str("MODE", MODE_WATCH), help="remove or watch [default]")
    p.add_argument("--config", dest="config_path", default=_env_str("DCR_CONFIG", DEFAULT_CONFIG_PATH))
    p.add_argument("--log-level", default=_env_str("DCR_LOG_LEVEL", "INFO"))
    p.add_argument(
        "--status-port",
        type=int,
        default=_env_int("DCR_STATUS_PORT", 0),
        help="Serve /health and /status on this port (0 disables)",
    )

    args = p.parse_args(argv)

    mode = args.mode.strip().lower()
    if mode not in MODES:
        p.error(f"unknown mode {args.mode!r} (expected one of: {', '.join(MODES)})")
    if args.status_port < 0 or args.status_port > 65535:
        p.error("--status-port must be between 0 and 65535")

    return Settings(
        kubeconfig=args.kubeconfig,
        context=args.context,
        node=args.node.strip(),
        mode=mode,
        config_path=args.config_path,
        log_level=args.log_level,
        status_port=args.status_port,
    )
