from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import ConfigError


@dataclass(frozen=True)
class RunnerConfig:
    actor: str = "target/release/xof_actor"
    actor_args: Tuple[str, ...] = ()
    workers: int = 4
    timeout_secs: float = 30.0

    @staticmethod
    def from_mapping(obj: Dict[str, Any], base: Optional["RunnerConfig"] = None) -> "RunnerConfig":
        cfg = base or RunnerConfig()
        known = {f.name for f in fields(RunnerConfig)}
        extra = sorted(k for k in obj if k not in known)
        if extra:
            raise ConfigError(f"unexpected config keys: {extra}")
        updates: Dict[str, Any] = {}
        if "actor" in obj:
            if not isinstance(obj["actor"], str) or not obj["actor"]:
                raise ConfigError("actor: must be a non-empty string")
            updates["actor"] = obj["actor"]
        if "actor_args" in obj:
            args = obj["actor_args"]
            if isinstance(args, str):
                args = shlex.split(args)
            if not isinstance(args, list) or not all(isinstance(a, str) for a in args):
                raise ConfigError("actor_args: must be a list of strings")
            updates["actor_args"] = tuple(args)
        if "workers" in obj:
            w = obj["workers"]
            if isinstance(w, bool) or not isinstance(w, int) or w < 1:
                raise ConfigError("workers: must be an integer >= 1")
            updates["workers"] = w
        if "timeout_secs" in obj:
            t = obj["timeout_secs"]
            if isinstance(t, bool) or not isinstance(t, (int, float)) or t <= 0:
                raise ConfigError("timeout_secs: must be a positive number")
            updates["timeout_secs"] = float(t)
        return replace(cfg, **updates)

    @staticmethod
    def from_env(base: Optional["RunnerConfig"] = None, environ: Optional[Dict[str, str]] = None) -> "RunnerConfig":
        env = os.environ if environ is None else environ
        obj: Dict[str, Any] = {}
        if env.get("XOFV_ACTOR"):
            obj["actor"] = env["XOFV_ACTOR"]
        if env.get("XOFV_ACTOR_ARGS") is not None:
            obj["actor_args"] = env["XOFV_ACTOR_ARGS"]
        for name, key, conv in (("XOFV_WORKERS", "workers", int), ("XOFV_TIMEOUT_SECS", "timeout_secs", float)):
            v = env.get(name)
            if v is None or not v.strip():
                continue
            try:
                obj[key] = conv(v)
            except ValueError as e:
                raise ConfigError(f"{name}: {e}") from e
        return RunnerConfig.from_mapping(obj, base)

    @staticmethod
    def load(path: Optional[Path] = None, environ: Optional[Dict[str, str]] = None) -> "RunnerConfig":
        cfg = RunnerConfig()
        if path is not None:
            try:
                doc = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"cannot read config {path}: {e}") from e
            if doc is None:
                doc = {}
            if not isinstance(doc, dict):
                raise ConfigError("config file must be a mapping")
            cfg = RunnerConfig.from_mapping(doc, cfg)
        return RunnerConfig.from_env(cfg, environ)
