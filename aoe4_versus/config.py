from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Any, Dict, Iterable, Optional, Tuple
import os, json

try:
    import yaml  # optional
except Exception:
    yaml = None

DEFAULT_SIEGE_CLASSES: Tuple[str, ...] = (
    "siege",
    "siege_range",
    "siege_tower",
    "ram",
    "catapult",
    "trebuchet_counterweight",
)


@dataclass(frozen=True)
class EngineSettings:
    """Tunables for the combat evaluator and the cost-equalisation solver."""

    draw_tolerance: float = 0.05
    cost_tolerance: float = 0.10
    max_multiplier: int = 50
    siege_classes: Tuple[str, ...] = DEFAULT_SIEGE_CLASSES
    gunpowder_token: str = "gunpowder"
    dps_decimals: int = 2
    ttk_decimals: int = 1

    @classmethod
    def from_config(cls, cfg: Optional[Dict[str, Any]]) -> "EngineSettings":
        block = dict((cfg or {}).get("engine", {}) or {})
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in block.items():
            if key not in known:
                continue
            if key == "siege_classes":
                if isinstance(value, str):
                    value = [v.strip() for v in value.split(",") if v.strip()]
                value = tuple(str(v).lower() for v in value)
            kwargs[key] = value
        return cls(**kwargs)


DEFAULT_SETTINGS = EngineSettings()


def _deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(a)
    for k, v in (b or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out

def _load_one(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    # YAML is a superset of JSON; fall back to json when PyYAML is absent
    if yaml is not None:
        try:
            d = yaml.safe_load(text)
            if isinstance(d, dict):
                return d
        except yaml.YAMLError:
            pass
    try:
        d = json.loads(text)
        if isinstance(d, dict):
            return d
    except ValueError:
        pass
    return {}

def load_configs(paths: Iterable[str] | None) -> Dict[str, Any]:
    cfg: Dict[str, Any] = {}
    for p in (paths or []):
        cfg = _deep_merge(cfg, _load_one(p))
    return cfg

def env_overrides(prefix: str = "AOE4_VERSUS__") -> Dict[str, Any]:
    # Nested via double underscores: AOE4_VERSUS__ENGINE__DRAW_TOLERANCE=0.1
    out: Dict[str, Any] = {}
    for k, v in os.environ.items():
        if not k.startswith(prefix):
            continue
        parts = k[len(prefix):].split("__")
        cur = out
        for i, part in enumerate(parts):
            key = part.lower()
            if i == len(parts) - 1:
                cur[key] = _coerce(v)
            else:
                cur = cur.setdefault(key, {})
    return out

def _coerce(s: str) -> Any:
    t = s.strip().lower()
    if t in ("true", "false"):
        return t == "true"
    try:
        if "." in t:
            return float(t)
        return int(t)
    except ValueError:
        return s

def apply_cli_overrides(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    return _deep_merge(base, overrides or {})

def load_settings(paths: Iterable[str] | None = None, env_prefix: str = "AOE4_VERSUS__") -> Tuple[Dict[str, Any], EngineSettings]:
    """Merge config files and environment overrides, returning the raw dict and engine settings."""
    cfg = apply_cli_overrides(load_configs(paths), env_overrides(env_prefix))
    return cfg, EngineSettings.from_config(cfg)

__all__ = [
    "DEFAULT_SETTINGS",
    "DEFAULT_SIEGE_CLASSES",
    "EngineSettings",
    "load_configs",
    "load_settings",
    "env_overrides",
    "apply_cli_overrides",
    "_deep_merge",
]
