from __future__ import annotations

"""Load and persist the JSON configuration file."""

import json
from pathlib import Path
from typing import Any

from loguru import logger

from core import events
from core.errors import ConfigError
from utils import logx

from .constants import CONFIG_PATH, DEFAULT_CONFIG


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """Return configuration from ``path`` merged over :data:`DEFAULT_CONFIG`.

    A missing file yields the defaults. Malformed JSON or a non-object
    document raises :class:`ConfigError`. Unknown keys are kept so callers
    can carry application specific settings alongside pipeline options.
    """

    cfg = DEFAULT_CONFIG.copy()
    p = Path(path or CONFIG_PATH)
    if not p.exists():
        logger.debug("config file {} not found; using defaults", p)
        return cfg
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"cannot read {p}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{p} must contain a JSON object")
    cfg.update({k: v for k, v in data.items() if v is not None})
    logx.event(events.CONFIG_LOADED, path=str(p), keys=sorted(data))
    return cfg


def save_config(cfg: dict[str, Any], path: str | Path | None = None) -> Path:
    """Write ``cfg`` to ``path`` as pretty-printed JSON."""

    p = Path(path or CONFIG_PATH)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(cfg, indent=2, sort_keys=True), encoding="utf-8")
    return p


__all__ = ["load_config", "save_config"]
