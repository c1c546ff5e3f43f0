from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterable, Mapping, Optional, Set, Type, TypeVar

import yaml

from .collectors.source import BACKENDS
from .models import AddressFamily, Protocol
from .utils.path import config_path

log = logging.getLogger(__name__)

E = TypeVar("E", AddressFamily, Protocol)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

@dataclass
class CFG:
    tick_rate: float = 0.25   # seconds between socket refreshes
    idle_ms: int = 80         # key poll timeout
    backend: str = "auto"
    families: Set[AddressFamily] = field(default_factory=lambda: {AddressFamily.IPV4, AddressFamily.IPV6})
    protocols: Set[Protocol] = field(default_factory=lambda: {Protocol.TCP, Protocol.UDP})
    event_limit: int = 200
    log_file: str = "sockets_live.log"
    log_level: str = "INFO"

def _parse_set(value: Any, enum: Type[E]) -> Set[E]:
    if isinstance(value, str):
        items: Iterable[str] = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        items = value
    else:
        raise ValueError(f"{enum.__name__} must be a comma-separated string or a list, not {value!r}")
    out: Set[E] = set()
    for item in items:
        item = str(item).strip().lower()
        if not item:
            continue
        try:
            out.add(enum(item))
        except ValueError:
            choices = ", ".join(e.value for e in enum)
            raise ValueError(f"unknown {enum.__name__} {item!r} (expected {choices})") from None
    if not out:
        raise ValueError(f"at least one {enum.__name__} is required")
    return out

def _number(key: str, value: Any, kind: type):
    if isinstance(value, bool):
        raise ValueError(f"{key} must be a number, not {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be a number, not {value!r}") from None

def apply_settings(cfg: CFG, data: Mapping[str, Any]) -> CFG:
    known = {f.name for f in fields(CFG)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(unknown)}")
    for key, value in data.items():
        if value is None:
            continue
        if key == "families":
            value = _parse_set(value, AddressFamily)
        elif key == "protocols":
            value = _parse_set(value, Protocol)
        elif key == "tick_rate":
            value = _number(key, value, float)
            if value <= 0:
                raise ValueError("tick_rate must be positive")
        elif key in ("idle_ms", "event_limit"):
            value = _number(key, value, int)
            if value <= 0:
                raise ValueError(f"{key} must be positive")
        elif key == "backend" and value not in BACKENDS:
            raise ValueError(f"unknown backend {value!r} (expected one of {', '.join(BACKENDS)})")
        elif key == "log_level":
            value = str(value).upper()
            if value not in LOG_LEVELS:
                raise ValueError(f"unknown log level {value!r}")
        setattr(cfg, key, value)
    return cfg

def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    p = config_path(path)
    if not p or not p.exists():
        log.warning("config not found: %s", p)
        return {}
    txt = p.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(txt) if p.suffix in (".yaml", ".yml") else json.loads(txt)
    except (yaml.YAMLError, ValueError) as err:
        raise ValueError(f"{p}: {err}") from err
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{p}: expected a mapping at the top level")
    log.info("config loaded from %s", p)
    return data

def init_cfg_from_args(args) -> CFG:
    cfg = CFG()
    apply_settings(cfg, load_config_file(getattr(args, "config", None)))
    apply_settings(cfg, {
        "tick_rate": getattr(args, "interval", None),
        "backend": getattr(args, "backend", None),
        "families": getattr(args, "families", None),
        "protocols": getattr(args, "protocols", None),
        "event_limit": getattr(args, "events", None),
        "log_file": getattr(args, "log_file", None),
        "log_level": getattr(args, "log_level", None),
    })
    return cfg
